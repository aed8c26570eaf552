"""Tests for the plasma post-processor.

Validates modal suppression, section resets, rapid variants, the
cutting-feed policy, arc encoding and rejection, torch sequencing and
the program preamble/footer.
"""

from __future__ import annotations

from typing import Any

import pytest

from plasma_post.configs.loader import PostConfig, parse_config
from plasma_post.gcode.generator import ArcRejected, GCodeError, PlasmaPost
from plasma_post.job_ir.events import (
    Bounds,
    Circular,
    Close,
    Dwell,
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


# ---------------------------------------------------------------------------
# Fixtures / helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def post(config: PostConfig) -> PlasmaPost:
    """Default (split rapid) translator, opened."""
    p = PlasmaPost(config)
    p.open()
    return p


@pytest.fixture()
def compact(compact_config: PostConfig) -> PlasmaPost:
    """Compact (combined rapid) translator, opened."""
    p = PlasmaPost(compact_config)
    p.open()
    return p


def _new_lines(post: PlasmaPost, before: str) -> list[str]:
    return post.program[len(before):].splitlines()


# ---------------------------------------------------------------------------
# Full program
# ---------------------------------------------------------------------------


class TestCompactProgram:
    def test_golden_program(self, compact_config: PostConfig) -> None:
        events = [
            Open(),
            SectionStart(
                "Profile1", Bounds.from_extents((0, 0, 0), (100, 50, 5)),
            ),
            Rapid(10.0, 0.0, 5.0),
            Power(True),
            Linear(10.0, 0.0, 1.5, feed=12.0),
            Circular(False, Point(0.0, 0.0, 1.5), Point(0.0, 10.0, 1.5)),
            Power(False),
            SectionEnd(),
            Close(),
        ]
        program = PlasmaPost(compact_config).translate(events)
        assert program.splitlines() == [
            "G90",
            "G21",
            "G28 Z",
            "G92 Z10.000",
            "; Section: Profile1",
            "; X: 0.000..100.000 Y: 0.000..50.000 Z: 0.000..5.000",
            "M117 Profile1",
            "G0 X10.000 Y0.000 Z5.000 F6000",
            "M400",
            "M3 V105.0 D0.40 H1.200",
            "G1 Z1.500 F1800",
            "G3 X0.000 Y10.000 I-10.000 J0.000",
            "M400",
            "M5",
            "M400",
            "M5",
            "G0 Z20.000 F6000",
            "G0 X0.000 Y0.000",
            "M117 Job complete",
        ]
        assert program.endswith("\n")


# ---------------------------------------------------------------------------
# Modal suppression
# ---------------------------------------------------------------------------


class TestModalSuppression:
    def test_repeated_rapid_emits_nothing(self, compact: PlasmaPost) -> None:
        compact.rapid(10.0, 20.0, 5.0)
        before = compact.program
        compact.rapid(10.0, 20.0, 5.0)
        assert compact.program == before

    def test_only_changed_axes_emitted(self, compact: PlasmaPost) -> None:
        compact.rapid(10.0, 20.0, 5.0)
        before = compact.program
        compact.rapid(15.0, 20.0, 5.0)
        assert _new_lines(compact, before) == ["G0 X15.000"]

    def test_unrequested_axis_not_emitted(self, compact: PlasmaPost) -> None:
        compact.section_start("A")
        before = compact.program
        compact.rapid(x=5.0)
        assert _new_lines(compact, before) == ["G0 X5.000 F6000"]

    def test_zero_length_linear_suppressed(self, compact: PlasmaPost) -> None:
        compact.linear(1.0, 2.0, 0.0)
        before = compact.program
        compact.linear(1.0, 2.0, 0.0)
        compact.linear(1.0004, 2.0, 0.0)
        assert compact.program == before

    def test_feed_only_change_writes_nothing(self, compact: PlasmaPost) -> None:
        compact.rapid(1.0, 2.0, 0.0)
        before = compact.program
        compact.linear(1.0, 2.0, 0.0)
        assert compact.program == before
        compact.linear(3.0, 2.0, 0.0)
        assert _new_lines(compact, before) == ["G1 X3.000 F1800"]


class TestSectionReset:
    def test_section_end_forces_reemission(self, compact: PlasmaPost) -> None:
        compact.section_start("A")
        compact.rapid(10.0, 20.0, 5.0)
        compact.section_end()
        before = compact.program
        compact.rapid(10.0, 20.0, 5.0)
        assert _new_lines(compact, before) == ["G0 X10.000 Y20.000 Z5.000 F6000"]

    def test_preamble_only_once(self, compact: PlasmaPost) -> None:
        compact.section_start("A")
        compact.section_end()
        compact.section_start("B")
        lines = compact.program.splitlines()
        assert lines.count("G90") == 1
        assert lines.count("G28 Z") == 1
        assert "M117 A" in lines and "M117 B" in lines

    def test_section_name_sanitized(self, compact: PlasmaPost) -> None:
        compact.section_start("Cut (outer)")
        assert "; Section: Cut outer" in compact.program.splitlines()

    def test_bounds_comment_optional(self, compact: PlasmaPost) -> None:
        compact.section_start("A")
        lines = compact.program.splitlines()
        assert not any(line.startswith("; X:") for line in lines)


# ---------------------------------------------------------------------------
# Rapid variants
# ---------------------------------------------------------------------------


class TestRapidVariants:
    def test_combined_single_line(self, compact: PlasmaPost) -> None:
        compact.rapid(10.0, 0.0, 5.0)
        assert compact.program.splitlines() == ["G0 X10.000 Y0.000 Z5.000 F6000"]

    def test_split_raises_z_first(self, post: PlasmaPost) -> None:
        post.rapid(10.0, 0.0, 5.0)
        assert post.program.splitlines() == [
            "G0 Z5.000 F1500",
            "G0 X10.000 Y0.000 F9000",
        ]

    def test_split_descends_after_xy(self, post: PlasmaPost) -> None:
        post.rapid(10.0, 0.0, 5.0)
        before = post.program
        post.rapid(20.0, 0.0, 1.0)
        assert _new_lines(post, before) == [
            "G0 X20.000",
            "G0 Z1.000 F1500",
        ]

    def test_split_z_only(self, post: PlasmaPost) -> None:
        post.rapid(z=7.0)
        assert post.program.splitlines() == ["G0 Z7.000 F1500"]


# ---------------------------------------------------------------------------
# Cutting feed policy / subdivision
# ---------------------------------------------------------------------------


class TestLinear:
    def test_host_feed_ignored(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 0.0, feed=999.0)
        assert post.program.splitlines() == ["G1 X10.000 Y0.000 Z0.000 F2400"]

    def test_position_updated(self, post: PlasmaPost) -> None:
        post.linear(x=4.0, y=2.0)
        post.linear(z=1.0)
        assert post.position == Point(4.0, 2.0, 1.0)

    def test_subdivision_off_by_default(self, config: PostConfig) -> None:
        assert config.motion.subdivide_linear is False

    def test_subdivision(self, raw_config: dict[str, Any]) -> None:
        raw_config["motion"]["subdivide_linear"] = True
        raw_config["motion"]["subdivision_step_mm"] = 1.0
        p = PlasmaPost(parse_config(raw_config))
        p.open()
        p.linear(x=3.0)
        assert p.program.splitlines() == [
            "G1 X1.000 F2400",
            "G1 X2.000",
            "G1 X3.000",
        ]
        assert p.position == Point(3.0, 0.0, 0.0)


# ---------------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------------


class TestCircular:
    def test_offset_convention(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 0.0)
        assert post.circular(False, Point(0.0, 0.0), Point(0.0, 10.0)) is True
        last = post.program.splitlines()[-1]
        assert last == "G3 X0.000 Y10.000 I-10.000 J0.000"
        assert post.position == Point(0.0, 10.0, 0.0)

    def test_full_circle_keeps_ij(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 0.0)
        assert post.circular(True, Point(0.0, 0.0), Point(10.0, 0.0)) is True
        assert post.program.splitlines()[-1] == "G2 I-10.000 J0.000"

    def test_arc_after_reset_sends_every_axis(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 1.5)
        post.section_end()
        post.circular(False, Point(0.0, 0.0, 1.5), Point(0.0, 10.0, 1.5))
        assert post.program.splitlines()[-1] == (
            "G3 X0.000 Y10.000 Z1.500 I-10.000 J0.000 F2400"
        )

    def test_arc_keeps_cached_z(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 1.5)
        post.circular(False, Point(0.0, 0.0, 1.5), Point(0.0, 10.0, 1.5))
        assert "Z" not in post.program.splitlines()[-1]

    def test_plane_rejected(self, post: PlasmaPost) -> None:
        post.linear(10.0, 0.0, 0.0)
        before = post.program
        ok = post.circular(
            False, Point(0.0, 0.0), Point(0.0, 10.0), plane=Plane.ZX,
        )
        assert ok is False
        assert post.program == before
        assert post.position == Point(10.0, 0.0, 0.0)

    def test_out_of_limits_rejected(self, post: PlasmaPost) -> None:
        post.linear(2000.0, 0.0, 0.0)
        assert post.circular(False, Point(0.0, 0.0), Point(0.0, 2000.0)) is False

    def test_handle_reports_rejection(self, post: PlasmaPost) -> None:
        event = Circular(False, Point(0.0, 0.0), Point(0.0, 10.0), plane=Plane.YZ)
        assert post.handle(event) is False

    def test_translate_raises(self, config: PostConfig) -> None:
        events = [
            Open(),
            Rapid(10.0, 0.0, 0.0),
            Circular(False, Point(0.0, 0.0), Point(0.0, 10.0), plane=Plane.ZX),
        ]
        with pytest.raises(ArcRejected, match="linearized"):
            PlasmaPost(config).translate(events)


# ---------------------------------------------------------------------------
# Torch / document
# ---------------------------------------------------------------------------


class TestPower:
    def test_power_idempotent(self, post: PlasmaPost) -> None:
        post.power(True)
        post.power(True)
        assert post.program.count("M3 ") == 1
        assert post.torch_on

    def test_rehome_before_pierce(self, post: PlasmaPost) -> None:
        post.rapid(z=3.8)
        post.power(True)
        before = post.program
        post.linear(z=3.8)
        # Z was re-homed, so the same height is sent again
        assert _new_lines(post, before) == ["G1 Z3.800 F2400"]

    def test_activation_before_next_motion(self, post: PlasmaPost) -> None:
        post.rapid(10.0, 0.0, 3.8)
        post.power(True)
        post.linear(20.0, 0.0, 1.5)
        lines = post.program.splitlines()
        assert lines.index("M400") < lines.index("G28 Z")
        assert lines[-1].startswith("G1 ")
        assert lines[-2].startswith("M3 ")


class TestClose:
    @pytest.mark.parametrize("torch_on", [False, True])
    def test_close_emits_one_deactivation(
        self, post: PlasmaPost, torch_on: bool,
    ) -> None:
        post.section_start("A")
        post.power(torch_on)
        before = post.program
        post.close()
        new = _new_lines(post, before)
        assert new.count("M5") == 1
        assert new[:2] == ["M400", "M5"]
        assert not post.torch_on

    def test_close_parks(self, post: PlasmaPost, config: PostConfig) -> None:
        post.linear(50.0, 50.0, 1.5)
        program = post.close()
        lines = program.splitlines()
        assert lines[-3:] == [
            f"G0 Z{config.program.safe_z_mm:.3f} F1500",
            "G0 X0.000 Y0.000 F9000",
            f"M117 {config.program.completion_message}",
        ]

    def test_events_after_close_rejected(self, post: PlasmaPost) -> None:
        post.close()
        with pytest.raises(GCodeError, match="closed"):
            post.rapid(1.0, 1.0, 1.0)


class TestMisc:
    def test_dwell_in_milliseconds(self, post: PlasmaPost) -> None:
        post.handle(Dwell(0.5))
        assert post.program.splitlines() == ["G4 P500"]

    def test_negative_dwell_rejected(self, post: PlasmaPost) -> None:
        with pytest.raises(GCodeError, match="Dwell seconds"):
            post.dwell(-0.5)
        assert post.program == ""

    def test_status_text_sanitized(self, post: PlasmaPost) -> None:
        post.section_start("Cut (outer); pass 2")
        assert "M117 Cut outer pass 2" in post.program.splitlines()

    def test_parameter_comment(self, post: PlasmaPost) -> None:
        post.handle(Parameter("document-path", "/parts/a (copy).f3d"))
        assert post.program.splitlines() == ["; document-path: /parts/a copy.f3d"]

    def test_unknown_parameter_dropped(self, post: PlasmaPost) -> None:
        post.parameter("tool-number", "3")
        assert post.program == ""

    def test_unknown_event(self, post: PlasmaPost) -> None:
        with pytest.raises(GCodeError, match="Unsupported event"):
            post.handle(object())  # type: ignore[arg-type]

    def test_program_name_banner(self, raw_config: dict[str, Any]) -> None:
        raw_config["program"]["name"] = "Bracket (rev B)"
        p = PlasmaPost(parse_config(raw_config))
        p.open()
        assert p.program.splitlines() == ["; Bracket rev B"]

    def test_open_resets_state(self, post: PlasmaPost) -> None:
        post.rapid(1.0, 2.0, 3.0)
        post.power(True)
        post.open()
        assert post.program == ""
        assert post.position == Point(0.0, 0.0, 0.0)
        assert not post.torch_on
