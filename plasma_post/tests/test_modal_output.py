"""Tests for number formatting, modal tracking and the line builder.

Validates fixed-point rendering, negative-zero suppression, per-axis
modal caching and cache resets.
"""

from __future__ import annotations

from plasma_post.gcode.formatting import (
    FEED_FORMAT,
    XYZ_FORMAT,
    NumberFormat,
    feed_mm_min,
    format_comment,
)
from plasma_post.gcode.line import GCodeLine
from plasma_post.gcode.modal import ModalAxis, ModalState


# ---------------------------------------------------------------------------
# NumberFormat
# ---------------------------------------------------------------------------


class TestNumberFormat:
    def test_three_decimals(self) -> None:
        assert XYZ_FORMAT.format(12.0) == "12.000"

    def test_stable_across_calls_and_instances(self) -> None:
        a = NumberFormat(3)
        b = NumberFormat(3)
        assert a.format(12.0) == a.format(12.0) == b.format(12.0) == "12.000"

    def test_negative_preserved(self) -> None:
        assert XYZ_FORMAT.format(-10.0) == "-10.000"
        assert XYZ_FORMAT.format(-0.001) == "-0.001"

    def test_negative_zero_suppressed(self) -> None:
        assert XYZ_FORMAT.format(-0.0004) == "0.000"
        assert XYZ_FORMAT.format(-0.0) == "0.000"
        assert FEED_FORMAT.format(-0.2) == "0"

    def test_no_scientific_notation(self) -> None:
        assert XYZ_FORMAT.format(1e-7) == "0.000"
        assert "e" not in XYZ_FORMAT.format(1e16)

    def test_feed_has_no_decimal_point(self) -> None:
        assert FEED_FORMAT.format(2400.0) == "2400"
        assert FEED_FORMAT.format(feed_mm_min(40.0)) == "2400"


class TestComment:
    def test_parentheses_stripped(self) -> None:
        assert format_comment("Profile (outer)") == "; Profile outer"

    def test_custom_marker(self) -> None:
        assert format_comment("hello", "%") == "% hello"


# ---------------------------------------------------------------------------
# ModalAxis / ModalState
# ---------------------------------------------------------------------------


class TestModalAxis:
    def test_first_value_emitted_with_separator(self) -> None:
        axis = ModalAxis("X", XYZ_FORMAT)
        assert axis.emit_if_changed(10.0) == " X10.000"

    def test_same_value_suppressed(self) -> None:
        axis = ModalAxis("X", XYZ_FORMAT)
        axis.emit_if_changed(10.0)
        assert axis.emit_if_changed(10.0) is None

    def test_equal_after_formatting_suppressed(self) -> None:
        axis = ModalAxis("X", XYZ_FORMAT)
        axis.emit_if_changed(10.0)
        assert axis.emit_if_changed(10.0004) is None

    def test_zero_is_cacheable(self) -> None:
        axis = ModalAxis("Y", XYZ_FORMAT)
        assert axis.emit_if_changed(0.0) == " Y0.000"
        assert axis.emit_if_changed(0.0) is None

    def test_none_means_not_requested(self) -> None:
        axis = ModalAxis("Z", XYZ_FORMAT)
        axis.emit_if_changed(5.0)
        assert axis.emit_if_changed(None) is None
        assert axis.last == "5.000"

    def test_reset_forces_emit(self) -> None:
        axis = ModalAxis("F", FEED_FORMAT)
        axis.emit_if_changed(2400.0)
        axis.reset()
        assert axis.last is None
        assert axis.emit_if_changed(2400.0) == " F2400"


class TestModalState:
    def test_axes_independent(self) -> None:
        state = ModalState()
        assert state.x.emit_if_changed(1.0) == " X1.000"
        assert state.y.emit_if_changed(1.0) == " Y1.000"
        assert state.x.emit_if_changed(1.0) is None

    def test_reset_clears_all(self) -> None:
        state = ModalState()
        for axis in state.axes():
            axis.emit_if_changed(1.0)
        state.reset()
        assert all(axis.last is None for axis in state.axes())


# ---------------------------------------------------------------------------
# GCodeLine
# ---------------------------------------------------------------------------


class TestGCodeLine:
    def test_render(self) -> None:
        line = GCodeLine("G1").add_modal(" X10.000").add_modal(None)
        line.add_word("F", 2400.0, FEED_FORMAT)
        assert line.render() == "G1 X10.000 F2400"

    def test_has_words(self) -> None:
        assert not GCodeLine("G0").add_modal(None).has_words
        assert GCodeLine("G28").add_text("Z").has_words
