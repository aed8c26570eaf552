"""Arc encoder -- absolute arcs to ``G2``/``G3`` centre offsets.

The controller interpolates circles in the XY plane only.  The offsets
are measured from the arc **start** to the centre::

    I = center.x - start.x
    J = center.y - start.y

Arcs that the controller cannot take (other planes, helical moves,
geometry outside ``ArcConfig``) are reported back to the host, which
resubmits them as short linear moves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from plasma_post.configs.loader import ArcConfig
from plasma_post.job_ir.events import Plane, Point

# Coordinates closer than this are treated as identical (mm).
_EPS = 1e-9

CW_COMMAND = "G2"
CCW_COMMAND = "G3"


@dataclass(frozen=True, slots=True)
class EncodedArc:
    """Centre offsets and motion code for one accepted arc."""

    i: float
    j: float
    command: str


# ---------------------------------------------------------------------------
# Geometry helpers
# ---------------------------------------------------------------------------


def arc_radius(start: Point, center: Point) -> float:
    """XY distance from *center* to *start*."""
    return math.hypot(start.x - center.x, start.y - center.y)


def arc_chord(start: Point, end: Point) -> float:
    """XY distance between the arc end-points."""
    return math.hypot(end.x - start.x, end.y - start.y)


def arc_sweep(start: Point, center: Point, end: Point, clockwise: bool) -> float:
    """Swept angle in radians, in ``(0, 2*pi]``.

    Coincident start and end points describe a full circle.
    """
    a0 = math.atan2(start.y - center.y, start.x - center.x)
    a1 = math.atan2(end.y - center.y, end.x - center.x)
    sweep = (a0 - a1) if clockwise else (a1 - a0)
    sweep %= 2.0 * math.pi
    if sweep <= _EPS or arc_chord(start, end) <= _EPS:
        return 2.0 * math.pi
    return sweep


# ---------------------------------------------------------------------------
# Encoder
# ---------------------------------------------------------------------------


class ArcEncoder:
    """Accept or reject circular moves and compute their I/J offsets.

    Parameters
    ----------
    limits : ArcConfig
        Minimum chord, radius and sweep, maximum radius and sweep.
    """

    def __init__(self, limits: ArcConfig) -> None:
        self._limits = limits

    def rejection_reason(
        self,
        start: Point,
        center: Point,
        end: Point,
        clockwise: bool,
    ) -> str | None:
        """Return why an XY arc must be linearized, ``None`` if it is fine."""
        lim = self._limits
        if abs(end.z - start.z) > _EPS:
            return "helical arc"

        chord = arc_chord(start, end)
        full_circle = chord <= _EPS
        if not full_circle and chord < lim.min_chord_mm:
            return f"chord {chord:.4f} mm < {lim.min_chord_mm} mm"

        radius = arc_radius(start, center)
        if radius < lim.min_radius_mm:
            return f"radius {radius:.4f} mm < {lim.min_radius_mm} mm"
        if radius > lim.max_radius_mm:
            return f"radius {radius:.4f} mm > {lim.max_radius_mm} mm"

        sweep_deg = math.degrees(arc_sweep(start, center, end, clockwise))
        if sweep_deg < lim.min_sweep_deg:
            return f"sweep {sweep_deg:.3f} deg < {lim.min_sweep_deg} deg"
        if sweep_deg > lim.max_sweep_deg + _EPS:
            return f"sweep {sweep_deg:.3f} deg > {lim.max_sweep_deg} deg"
        return None

    def accepts(
        self,
        start: Point,
        center: Point,
        end: Point,
        clockwise: bool,
    ) -> bool:
        """True when the arc fits within the configured limits."""
        return self.rejection_reason(start, center, end, clockwise) is None

    def encode(
        self,
        plane: Plane,
        start: Point,
        center: Point,
        end: Point,
        clockwise: bool,
    ) -> EncodedArc | None:
        """Encode an accepted arc; ``None`` means "linearize".

        Only the plane is checked here.  Callers gate geometry with
        :meth:`accepts` first.
        """
        if plane is not Plane.XY:
            return None
        return EncodedArc(
            i=center.x - start.x,
            j=center.y - start.y,
            command=CW_COMMAND if clockwise else CCW_COMMAND,
        )
