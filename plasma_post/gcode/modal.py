"""Modal output tracking.

The controller keeps every axis and feed word in effect until it is
changed, so a word only needs to be sent when its *formatted* text
differs from what was sent last.  ``ModalState`` holds one
``ModalAxis`` per word letter.
"""

from __future__ import annotations

from plasma_post.gcode.formatting import FEED_FORMAT, XYZ_FORMAT, NumberFormat


class ModalAxis:
    """Last-emitted cache for one word letter.

    Parameters
    ----------
    letter : str
        Word identifier, e.g. ``"X"`` or ``"F"``.
    fmt : NumberFormat
        Formatter used both for output and for cache comparison.
    """

    __slots__ = ("letter", "fmt", "_last")

    def __init__(self, letter: str, fmt: NumberFormat) -> None:
        self.letter = letter
        self.fmt = fmt
        self._last: str | None = None

    @property
    def last(self) -> str | None:
        """Formatted value last sent, ``None`` after a reset."""
        return self._last

    def emit_if_changed(self, value: float | None) -> str | None:
        """Return ``" <letter><value>"`` if the word must be sent.

        ``None`` means the caller did not request this axis: nothing is
        returned and the cache is left alone.  Zero is an ordinary value.
        """
        if value is None:
            return None
        text = self.fmt.format(value)
        if text == self._last:
            return None
        self._last = text
        return f" {self.letter}{text}"

    def reset(self) -> None:
        """Forget the cached value so the next request always emits."""
        self._last = None


class ModalState:
    """Modal caches for the X, Y, Z and F words."""

    def __init__(self) -> None:
        self.x = ModalAxis("X", XYZ_FORMAT)
        self.y = ModalAxis("Y", XYZ_FORMAT)
        self.z = ModalAxis("Z", XYZ_FORMAT)
        self.f = ModalAxis("F", FEED_FORMAT)

    def axes(self) -> tuple[ModalAxis, ModalAxis, ModalAxis, ModalAxis]:
        return (self.x, self.y, self.z, self.f)

    def reset(self) -> None:
        for axis in self.axes():
            axis.reset()
