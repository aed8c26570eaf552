"""Numeric and comment formatting for G-code words.

Every number written to the program goes through a ``NumberFormat`` so
the modal cache compares exactly the text the controller would see.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class NumberFormat:
    """Fixed-point renderer with a fixed number of fraction digits.

    Never uses scientific notation.  A value that rounds to zero is
    written without a sign, so ``-0.0004`` and ``0.0`` share the cached
    text ``"0.000"``.

    Parameters
    ----------
    decimals : int
        Digits after the decimal point (0 drops the point).
    """

    decimals: int

    def __post_init__(self) -> None:
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")

    def format(self, value: float) -> str:
        text = f"{value:.{self.decimals}f}"
        if text.startswith("-") and not text.strip("-0."):
            return text[1:]
        return text


XYZ_FORMAT = NumberFormat(3)
FEED_FORMAT = NumberFormat(0)
VOLTAGE_FORMAT = NumberFormat(1)
SECONDS_FORMAT = NumberFormat(2)


def feed_mm_min(feed_mm_s: float) -> float:
    """Convert a mm/s feed rate to the G-code ``F`` unit (mm/min)."""
    return feed_mm_s * 60.0


def format_comment(text: str, marker: str = ";") -> str:
    """Render a comment line; parentheses are stripped."""
    cleaned = text.replace("(", "").replace(")", "").strip()
    return f"{marker} {cleaned}" if cleaned else marker
