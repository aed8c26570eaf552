"""Structured G-code line builder.

Lines are assembled from typed words and serialised once, so every
command in the program shares the same spacing and number formats.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from plasma_post.gcode.formatting import NumberFormat


@dataclass(slots=True)
class GCodeLine:
    """One command line: a command word followed by parameter words.

    Examples
    --------
    >>> line = GCodeLine("G1")
    >>> _ = line.add_modal(" X10.000").add_word("F", 2400.0, NumberFormat(0))
    >>> line.render()
    'G1 X10.000 F2400'
    """

    command: str
    tokens: list[str] = field(default_factory=list)

    def add_modal(self, token: str | None) -> GCodeLine:
        """Append a token from ``ModalAxis.emit_if_changed`` (skips None)."""
        if token is not None:
            self.tokens.append(token)
        return self

    def add_word(self, letter: str, value: float, fmt: NumberFormat) -> GCodeLine:
        """Append an unconditional numeric word."""
        self.tokens.append(f" {letter}{fmt.format(value)}")
        return self

    def add_text(self, text: str) -> GCodeLine:
        """Append a free-form argument (status text, axis names)."""
        if text:
            self.tokens.append(f" {text}")
        return self

    @property
    def has_words(self) -> bool:
        return bool(self.tokens)

    def render(self) -> str:
        return self.command + "".join(self.tokens)
