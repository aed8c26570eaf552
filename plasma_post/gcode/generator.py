"""Plasma post-processor -- toolpath events to G-code.

One ``PlasmaPost`` instance translates one program, from ``open()`` to
``close()``.  The CAM host delivers one event at a time; each call
appends zero or more complete lines to the program before returning.

Modal output:
    Axis and feed words are only written when their formatted text
    changes (see ``ModalState``).  A move that changes no axis writes
    nothing at all.  Caches are cleared at every section boundary.

Feed rate convention:
    Python stores feed rates in **mm/s**.  This module converts to the
    G-code ``F`` parameter (mm/min) at the generation boundary::

        F_value = feed_mm_s * 60.0

    Cutting moves always use ``motion.cut_feed_mm_s``; the feed passed
    by the host is ignored.

Arcs:
    ``circular()`` returns ``False`` when the arc cannot be sent as
    ``G2``/``G3`` (plane other than XY, helical, or outside the
    configured limits).  The host must then resubmit it as linear moves.
"""

from __future__ import annotations

import logging
import math
from io import StringIO
from typing import Iterable

from plasma_post.configs.loader import PostConfig
from plasma_post.gcode.arcs import ArcEncoder
from plasma_post.gcode.cutter import CutterStateMachine
from plasma_post.gcode.formatting import XYZ_FORMAT, feed_mm_min, format_comment
from plasma_post.gcode.line import GCodeLine
from plasma_post.gcode.modal import ModalState
from plasma_post.job_ir.events import (
    Bounds,
    Circular,
    Close,
    Dwell,
    Event,
    Linear,
    Open,
    Parameter,
    Plane,
    Point,
    Power,
    Rapid,
    SectionEnd,
    SectionStart,
)

logger = logging.getLogger(__name__)

RAPID_COMMAND = "G0"
LINEAR_COMMAND = "G1"
DWELL_COMMAND = "G4"


class GCodeError(Exception):
    """Raised when an event cannot be translated."""

    pass


class ArcRejected(GCodeError):
    """Raised by :meth:`PlasmaPost.translate` when an arc needs linearizing."""

    def __init__(self, event: Circular) -> None:
        super().__init__(
            f"Arc to ({event.end.x:.3f}, {event.end.y:.3f}) in plane "
            f"{event.plane.value} must be linearized by the caller"
        )
        self.event = event


# ---------------------------------------------------------------------------
# Translator
# ---------------------------------------------------------------------------


class PlasmaPost:
    """Translate toolpath events into a G-code program.

    Parameters
    ----------
    config : PostConfig
        Validated post-processor configuration.

    Notes
    -----
    State owned by the instance: the output buffer, the current
    position, the modal caches, the torch power state and the
    first-section flag.  Nothing is shared between instances.
    """

    def __init__(self, config: PostConfig) -> None:
        self._cfg = config
        self._modal = ModalState()
        self._arcs = ArcEncoder(config.arcs)
        self._cutter = CutterStateMachine(config.commands, config.thc, self._modal)
        self._buf = StringIO()
        self._position = Point(0.0, 0.0, 0.0)
        self._first_section = True
        self._sections = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def position(self) -> Point:
        """Current tool position (mm)."""
        return self._position

    @property
    def torch_on(self) -> bool:
        return self._cutter.is_on

    @property
    def program(self) -> str:
        """Program text written so far."""
        return self._buf.getvalue()

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handle(self, event: Event) -> bool:
        """Translate one event.

        Returns
        -------
        bool
            ``False`` only for a circular move the caller must linearize.

        Raises
        ------
        GCodeError
            For an unknown event type or an event after ``Close``.
        """
        if isinstance(event, Rapid):
            self.rapid(event.x, event.y, event.z)
        elif isinstance(event, Linear):
            self.linear(event.x, event.y, event.z, event.feed)
        elif isinstance(event, Circular):
            return self.circular(
                event.clockwise, event.center, event.end, event.feed, event.plane,
            )
        elif isinstance(event, Power):
            self.power(event.on)
        elif isinstance(event, Dwell):
            self.dwell(event.seconds)
        elif isinstance(event, SectionStart):
            self.section_start(event.name, event.bounds)
        elif isinstance(event, SectionEnd):
            self.section_end()
        elif isinstance(event, Parameter):
            self.parameter(event.name, event.value)
        elif isinstance(event, Open):
            self.open()
        elif isinstance(event, Close):
            self.close()
        else:
            raise GCodeError(f"Unsupported event: {type(event).__name__}")
        return True

    def translate(self, events: Iterable[Event]) -> str:
        """Translate a complete event list and return the program.

        Raises
        ------
        ArcRejected
            If any circular move must be linearized.  Hosts that can
            subdivide arcs use ``plasma_post.host.replay`` instead.
        """
        for event in events:
            if not self.handle(event):
                raise ArcRejected(event)
        return self.program

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Start a program: clear caches, write the banner."""
        self._buf = StringIO()
        self._modal.reset()
        self._cutter = CutterStateMachine(
            self._cfg.commands, self._cfg.thc, self._modal,
        )
        self._position = Point(0.0, 0.0, 0.0)
        self._first_section = True
        self._sections = 0
        self._closed = False
        if self._cfg.program.name:
            self._comment(self._cfg.program.name)

    def close(self) -> str:
        """Finish the program: torch off, park, completion status.

        The deactivation sequence is written even if the torch is
        already off.

        Returns
        -------
        str
            The complete program text.
        """
        self._check_open()
        prog = self._cfg.program
        self._cutter.force_off(self._buf)
        self._modal.reset()
        self.rapid(None, None, prog.safe_z_mm)
        self.rapid(0.0, 0.0, None)
        self._status(prog.completion_message)
        self._closed = True
        logger.info("Program closed after %d section(s)", self._sections)
        return self.program

    def section_start(self, name: str, bounds: Bounds | None = None) -> None:
        """Begin an operation; the first one also writes the preamble."""
        self._check_open()
        if self._first_section:
            self._write_preamble()
            self._first_section = False
        self._sections += 1
        self._modal.reset()
        logger.info("Section %d: %s", self._sections, name)

        self._comment(f"Section: {name}")
        if bounds is not None:
            fmt = XYZ_FORMAT.format
            self._comment(
                f"X: {fmt(bounds.x.min)}..{fmt(bounds.x.max)} "
                f"Y: {fmt(bounds.y.min)}..{fmt(bounds.y.max)} "
                f"Z: {fmt(bounds.z.min)}..{fmt(bounds.z.max)}"
            )
        self._status(name)

    def section_end(self) -> None:
        """End an operation; every axis is re-sent by the next move."""
        self._check_open()
        self._modal.reset()

    def parameter(self, name: str, value: str) -> None:
        """Surface advisory metadata as a comment."""
        self._check_open()
        if name not in self._cfg.program.comment_parameters:
            logger.debug("Ignoring parameter %s=%r", name, value)
            return
        self._comment(f"{name}: {value}")

    def dwell(self, seconds: float) -> None:
        """Pause for *seconds* (``G4 P`` takes milliseconds)."""
        self._check_open()
        if seconds < 0:
            raise GCodeError(f"Dwell seconds must be >= 0, got {seconds}")
        self._write(f"{DWELL_COMMAND} P{int(round(seconds * 1000))}")

    # ------------------------------------------------------------------
    # Tool
    # ------------------------------------------------------------------

    def power(self, on: bool) -> None:
        """Switch the torch; repeated requests for the same state are no-ops."""
        self._check_open()
        self._cutter.set_power(on, self._buf)

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def rapid(
        self,
        x: float | None = None,
        y: float | None = None,
        z: float | None = None,
    ) -> None:
        """Rapid travel; only axes whose formatted value changed are sent."""
        self._check_open()
        motion = self._cfg.motion
        xy_feed = feed_mm_min(motion.xy_travel_mm_s)
        tx = self._modal.x.emit_if_changed(x)
        ty = self._modal.y.emit_if_changed(y)
        tz = self._modal.z.emit_if_changed(z)

        if not motion.split_rapids:
            line = GCodeLine(RAPID_COMMAND).add_modal(tx).add_modal(ty).add_modal(tz)
            if line.has_words:
                line.add_modal(self._modal.f.emit_if_changed(xy_feed))
                self._write(line.render())
        else:
            xy_line = GCodeLine(RAPID_COMMAND).add_modal(tx).add_modal(ty)
            z_line = GCodeLine(RAPID_COMMAND).add_modal(tz)
            z_feed = feed_mm_min(motion.z_travel_mm_s)
            rising = z is not None and z >= self._position.z
            if z_line.has_words and (rising or not xy_line.has_words):
                order = [(z_line, z_feed), (xy_line, xy_feed)]
            else:
                order = [(xy_line, xy_feed), (z_line, z_feed)]
            for line, feed in order:
                if line.has_words:
                    line.add_modal(self._modal.f.emit_if_changed(feed))
                    self._write(line.render())

        self._move_to(x, y, z)

    def linear(
        self,
        x: float | None = None,
        y: float | None = None,
        z: float | None = None,
        feed: float | None = None,
    ) -> None:
        """Cutting move at the configured cutting feed.

        *feed* is the host's request and is not used for the ``F`` word.
        """
        self._check_open()
        motion = self._cfg.motion
        if feed is not None and not math.isclose(feed, motion.cut_feed_mm_s):
            logger.debug(
                "Host feed %.3f mm/s replaced by cutting feed %.3f mm/s",
                feed,
                motion.cut_feed_mm_s,
            )

        if motion.subdivide_linear:
            for px, py, pz in self._subdivide(x, y, z, motion.subdivision_step_mm):
                self._emit_linear(px, py, pz)
        else:
            self._emit_linear(x, y, z)
        self._move_to(x, y, z)

    def circular(
        self,
        clockwise: bool,
        center: Point,
        end: Point,
        feed: float | None = None,
        plane: Plane = Plane.XY,
    ) -> bool:
        """Arc from the current position.

        Returns
        -------
        bool
            ``True`` if a ``G2``/``G3`` line was written, ``False`` if the
            caller must resubmit the arc as linear moves.
        """
        self._check_open()
        start = self._position
        arc = self._arcs.encode(plane, start, center, end, clockwise)
        if arc is None:
            reason = f"{plane.value} plane"
        else:
            reason = self._arcs.rejection_reason(start, center, end, clockwise)
        if reason is not None:
            logger.debug("Arc rejected (%s); caller must linearize", reason)
            return False

        line = (
            GCodeLine(arc.command)
            .add_modal(self._modal.x.emit_if_changed(end.x))
            .add_modal(self._modal.y.emit_if_changed(end.y))
            .add_modal(self._modal.z.emit_if_changed(end.z))
            .add_word("I", arc.i, XYZ_FORMAT)
            .add_word("J", arc.j, XYZ_FORMAT)
            .add_modal(self._modal.f.emit_if_changed(
                feed_mm_min(self._cfg.motion.cut_feed_mm_s)
            ))
        )
        self._write(line.render())
        self._position = end
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit_linear(
        self, x: float | None, y: float | None, z: float | None,
    ) -> None:
        line = (
            GCodeLine(LINEAR_COMMAND)
            .add_modal(self._modal.x.emit_if_changed(x))
            .add_modal(self._modal.y.emit_if_changed(y))
            .add_modal(self._modal.z.emit_if_changed(z))
        )
        if not line.has_words:
            return
        line.add_modal(self._modal.f.emit_if_changed(
            feed_mm_min(self._cfg.motion.cut_feed_mm_s)
        ))
        self._write(line.render())

    def _subdivide(
        self,
        x: float | None,
        y: float | None,
        z: float | None,
        step_mm: float,
    ) -> list[tuple[float | None, float | None, float | None]]:
        """Split a move into equal steps no longer than *step_mm*.

        Axes that were not requested stay ``None`` in every step.
        """
        cur = self._position
        tx = cur.x if x is None else x
        ty = cur.y if y is None else y
        tz = cur.z if z is None else z
        length = math.dist((cur.x, cur.y, cur.z), (tx, ty, tz))
        count = max(1, math.ceil(length / step_mm))

        steps = []
        for k in range(1, count + 1):
            t = k / count
            steps.append((
                None if x is None else cur.x + (tx - cur.x) * t,
                None if y is None else cur.y + (ty - cur.y) * t,
                None if z is None else cur.z + (tz - cur.z) * t,
            ))
        return steps

    def _move_to(
        self, x: float | None, y: float | None, z: float | None,
    ) -> None:
        cur = self._position
        self._position = Point(
            cur.x if x is None else x,
            cur.y if y is None else y,
            cur.z if z is None else z,
        )

    def _write_preamble(self) -> None:
        cmd = self._cfg.commands
        self._write("G90")
        self._write("G21")
        self._write(GCodeLine(cmd.home).add_text("Z").render())
        self._write(
            GCodeLine(cmd.set_origin)
            .add_word("Z", self._cfg.program.z_home_offset_mm, XYZ_FORMAT)
            .render()
        )

    def _status(self, text: str) -> None:
        marker = self._cfg.program.comment_marker
        for ch in ("(", ")", marker):
            text = text.replace(ch, "")
        cleaned = " ".join(text.split())
        self._write(GCodeLine(self._cfg.commands.status).add_text(cleaned).render())

    def _comment(self, text: str) -> None:
        for part in text.splitlines() or [""]:
            self._write(format_comment(part, self._cfg.program.comment_marker))

    def _write(self, line: str) -> None:
        self._buf.write(line + "\n")

    def _check_open(self) -> None:
        if self._closed:
            raise GCodeError("Program already closed")
