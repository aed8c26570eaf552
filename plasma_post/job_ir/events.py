"""Toolpath events -- the vocabulary between the CAM host and G-code.

Every event the host can deliver is an immutable, slotted dataclass.
Events use **semantic** names (``Power(on=True)``, not ``M3``),
**millimetre** units and absolute machine coordinates.

A host delivers events one at a time, in program order, and each event
is consumed exactly once::

    Open, SectionStart, Rapid, Power(on), Linear, Circular, ...,
    Power(off), SectionEnd, ..., Close

``None`` for a Rapid/Linear coordinate means "axis not requested"; the
translator never emits that axis for the event.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from enum import Enum

# ---------------------------------------------------------------------------
# Geometry value types
# ---------------------------------------------------------------------------


class Plane(Enum):
    """Working plane of a circular move."""

    XY = "XY"
    ZX = "ZX"
    YZ = "YZ"


@dataclass(frozen=True, slots=True)
class Point:
    """Absolute position in mm."""

    x: float
    y: float
    z: float = 0.0


@dataclass(frozen=True, slots=True)
class AxisRange:
    """Closed interval ``[min, max]`` of one axis within a section."""

    min: float
    max: float

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError(
                f"AxisRange min must be <= max, got {self.min} > {self.max}"
            )


@dataclass(frozen=True, slots=True)
class Bounds:
    """Per-axis extents of a section, used for the descriptive banner."""

    x: AxisRange
    y: AxisRange
    z: AxisRange

    @classmethod
    def from_extents(
        cls,
        lower: tuple[float, float, float],
        upper: tuple[float, float, float],
    ) -> Bounds:
        """Build from ``(xmin, ymin, zmin)`` / ``(xmax, ymax, zmax)``."""
        return cls(
            x=AxisRange(lower[0], upper[0]),
            y=AxisRange(lower[1], upper[1]),
            z=AxisRange(lower[2], upper[2]),
        )


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Event(ABC):
    """Base class for all toolpath events."""

    pass


# ---------------------------------------------------------------------------
# Document events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Open(Event):
    """Start of program."""

    pass


@dataclass(frozen=True, slots=True)
class Close(Event):
    """End of program: torch off, park, completion message."""

    pass


@dataclass(frozen=True, slots=True)
class SectionStart(Event):
    """Start of one operation (e.g. a single profile pass).

    Parameters
    ----------
    name : str
        Operation name, shown in the banner comment and status line.
    bounds : Bounds | None
        Section extents; ``None`` omits the bounds comment.
    """

    name: str
    bounds: Bounds | None = None


@dataclass(frozen=True, slots=True)
class SectionEnd(Event):
    """End of the current operation; forces full modal re-emission."""

    pass


@dataclass(frozen=True, slots=True)
class Parameter(Event):
    """Advisory metadata (timestamp, document path, operation notes).

    Parameters
    ----------
    name : str
        Parameter key, e.g. ``"document-path"``.
    value : str
        Text surfaced verbatim in a comment.
    """

    name: str
    value: str


# ---------------------------------------------------------------------------
# Motion events  (absolute machine mm)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rapid(Event):
    """Travel move at rapid speed -- torch should be off.

    Parameters
    ----------
    x, y, z : float | None
        Target position; ``None`` leaves the axis untouched.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None


@dataclass(frozen=True, slots=True)
class Linear(Event):
    """Straight cutting move.

    Parameters
    ----------
    x, y, z : float | None
        End-point; ``None`` leaves the axis untouched.
    feed : float | None
        Feed requested by the host (mm/s).  Recorded only; the output
        always uses the configured cutting feed.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None


@dataclass(frozen=True, slots=True)
class Circular(Event):
    """Circular cutting move from the current position.

    Parameters
    ----------
    clockwise : bool
        ``True`` for G2, ``False`` for G3.
    center : Point
        Absolute arc centre.
    end : Point
        Absolute arc end-point.
    feed : float | None
        Requested feed (mm/s); ignored like ``Linear.feed``.
    plane : Plane
        Working plane reported by the host.
    """

    clockwise: bool
    center: Point
    end: Point
    feed: float | None = None
    plane: Plane = Plane.XY


# ---------------------------------------------------------------------------
# Tool events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Power(Event):
    """Switch the torch on or off."""

    on: bool


@dataclass(frozen=True, slots=True)
class Dwell(Event):
    """Pause motion.

    Parameters
    ----------
    seconds : float
        Dwell duration, >= 0.
    """

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError(f"Dwell seconds must be >= 0, got {self.seconds}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def wrap_program(events: list[Event]) -> list[Event]:
    """Surround *events* with ``Open``/``Close`` unless already present."""
    out = list(events)
    if not out or not isinstance(out[0], Open):
        out.insert(0, Open())
    if not isinstance(out[-1], Close):
        out.append(Close())
    return out
