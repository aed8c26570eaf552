"""Host-side replay driver.

The CAM host owns arc subdivision: when ``PlasmaPost.circular()``
returns ``False`` it resubmits the arc as short linear moves.  This
module plays that role for recorded event streams (job files, tests) so
they can be turned into complete programs outside the CAM application.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable

from plasma_post.gcode.generator import PlasmaPost
from plasma_post.job_ir.events import Circular, Event, Plane, Point

logger = logging.getLogger(__name__)

DEFAULT_SEGMENT_MM = 0.5

# plane -> (first in-plane axis, second in-plane axis, normal axis)
_PLANE_AXES = {
    Plane.XY: ("x", "y", "z"),
    Plane.ZX: ("z", "x", "y"),
    Plane.YZ: ("y", "z", "x"),
}


def linearize_arc(
    start: Point,
    center: Point,
    end: Point,
    clockwise: bool,
    plane: Plane = Plane.XY,
    segment_mm: float = DEFAULT_SEGMENT_MM,
) -> list[Point]:
    """Approximate an arc by points spaced at most *segment_mm* apart.

    The rotation sense is taken looking down the plane normal.  The
    normal coordinate is interpolated linearly, so helical arcs work too.
    Coincident start and end points describe a full circle.

    Returns
    -------
    list[Point]
        Points after *start*, ending exactly at *end*.
    """
    if segment_mm <= 0:
        raise ValueError(f"segment_mm must be > 0, got {segment_mm}")

    u, v, n = _PLANE_AXES[plane]
    su, sv = getattr(start, u) - getattr(center, u), getattr(start, v) - getattr(center, v)
    eu, ev = getattr(end, u) - getattr(center, u), getattr(end, v) - getattr(center, v)

    radius = math.hypot(su, sv)
    a0 = math.atan2(sv, su)
    a1 = math.atan2(ev, eu)
    sweep = (a0 - a1) if clockwise else (a1 - a0)
    sweep %= 2.0 * math.pi
    if sweep <= 1e-9:
        sweep = 2.0 * math.pi
    direction = -1.0 if clockwise else 1.0

    count = max(1, math.ceil(radius * sweep / segment_mm))
    n0, n1 = getattr(start, n), getattr(end, n)

    points: list[Point] = []
    for k in range(1, count):
        t = k / count
        angle = a0 + direction * sweep * t
        coords = {
            u: getattr(center, u) + radius * math.cos(angle),
            v: getattr(center, v) + radius * math.sin(angle),
            n: n0 + (n1 - n0) * t,
        }
        points.append(Point(coords["x"], coords["y"], coords["z"]))
    points.append(end)
    return points


def replay(
    post: PlasmaPost,
    events: Iterable[Event],
    segment_mm: float = DEFAULT_SEGMENT_MM,
) -> str:
    """Feed *events* to *post*, linearizing every rejected arc.

    Returns
    -------
    str
        Program text produced so far (complete if the stream ends with
        ``Close``).
    """
    linearized = 0
    for event in events:
        if post.handle(event):
            continue
        assert isinstance(event, Circular)
        points = linearize_arc(
            post.position,
            event.center,
            event.end,
            event.clockwise,
            event.plane,
            segment_mm,
        )
        for p in points:
            post.linear(p.x, p.y, p.z, event.feed)
        linearized += 1

    if linearized:
        logger.info("Linearized %d arc(s) at %.3f mm segments", linearized, segment_mm)
    return post.program
