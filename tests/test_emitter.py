"""Tests for the motion code emitter."""

import pytest

from cncpost.core.toolpath.base import EntryType, ExitType, OperationType, Point, ToolpathOperation
from cncpost.errors import GenerationError
from cncpost.gcode.emitter import MAX_PASSES, MotionEmitter, compute_passes
from cncpost.gcode.generator import GenerationParams


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _line_op(**kwargs) -> ToolpathOperation:
    """Three collinear points, so no arc fitting kicks in."""
    defaults = dict(
        type=OperationType.PROFILE,
        points=[Point(0, 0), Point(10, 0), Point(20, 0)],
        depth=5.0,
    )
    defaults.update(kwargs)
    return ToolpathOperation(**defaults)


@pytest.fixture
def emitter() -> MotionEmitter:
    return MotionEmitter(GenerationParams())


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestComputePasses:
    def test_last_pass_is_clipped(self):
        passes = compute_passes(10.0, 4.0)
        assert [p.depth for p in passes] == [4.0, 8.0, 10.0]
        assert [p.index for p in passes] == [1, 2, 3]
        assert all(p.total == 3 for p in passes)
        assert passes[-1].z == -10.0

    def test_no_stepdown_is_single_pass(self):
        passes = compute_passes(3.0, None)
        assert len(passes) == 1
        assert passes[0].depth == 3.0

    def test_non_positive_stepdown_is_single_pass(self):
        assert len(compute_passes(3.0, 0)) == 1

    def test_float_noise_does_not_add_pass(self):
        assert len(compute_passes(1.0, 0.1)) == 10

    def test_zero_depth_has_no_passes(self):
        assert compute_passes(0.0, 1.0) == []

    def test_pass_limit(self):
        with pytest.raises(GenerationError):
            compute_passes(100.0, 100.0 / (MAX_PASSES * 2))


class TestMotionEmitter:
    def test_plunge_entry_sequence(self, emitter):
        lines = emitter.emit(_line_op())
        assert lines[:4] == [
            "G0 Z5.000 ; Move to safe height",
            "; Pass 1/1 - Depth: 5.000mm",
            "G0 X0.000 Y0.000 ; Rapid to start position",
            "G1 Z-5.000 F300 ; Plunge to depth",
        ]
        assert "G1 X10.000 Y0.000 Z-5.000 F1000 ; Linear move" in lines
        assert "G1 X20.000 Y0.000 Z-5.000 F1000 ; Linear move" in lines
        assert lines[-1] == ""

    def test_pass_comments(self, emitter):
        lines = emitter.emit(_line_op(depth=10.0, stepdown=4.0))
        headers = [l for l in lines if l.startswith("; Pass")]
        assert headers == [
            "; Pass 1/3 - Depth: 4.000mm",
            "; Pass 2/3 - Depth: 8.000mm",
            "; Pass 3/3 - Depth: 10.000mm",
        ]
        assert lines.count("") == 3

    def test_inch_depth_label(self):
        emitter = MotionEmitter(GenerationParams(use_inches=True))
        lines = emitter.emit(_line_op(depth=0.25))
        assert "; Pass 1/1 - Depth: 0.250in" in lines

    def test_missing_depth_uses_params_depth(self):
        emitter = MotionEmitter(GenerationParams(depth=2.0))
        lines = emitter.emit(_line_op(depth=None))
        assert "G1 Z-2.000 F300 ; Plunge to depth" in lines

    def test_helix_entry(self, emitter):
        lines = emitter.emit(_line_op(entry_type=EntryType.HELIX, tool_diameter=6.0))
        assert lines[3:8] == [
            "G0 X3.000 Y0.000 ; Position for helical entry",
            "G0 Z5.000 ; Safe height before helical entry",
            "G1 Z0.000 F300 ; Move to surface",
            "G3 X3.000 Y0.000 Z-5.000 I-3.000 J0.000 F300 ; Helical entry",
            "G1 X0.000 Y0.000 F1000 ; Move to start point",
        ]

    def test_helix_radius_falls_back_to_params_tool(self, emitter):
        lines = emitter.emit(_line_op(entry_type=EntryType.HELIX))
        assert "G0 X3.000 Y0.000 ; Position for helical entry" in lines

    def test_ramp_entry_descends_along_first_segment(self, emitter):
        lines = emitter.emit(_line_op(entry_type=EntryType.RAMP))
        assert lines[3:7] == [
            "G0 Z5.000 ; Safe height before ramp entry",
            "G1 Z0.000 F300 ; Move to surface",
            "G1 X10.000 Y0.000 Z-5.000 F300 ; Ramp entry",
            "G1 X0.000 Y0.000 Z-5.000 F1000 ; Return to start at full depth",
        ]

    def test_ramp_entry_single_point(self, emitter):
        lines = emitter.emit(_line_op(points=[Point(4, 4)], entry_type=EntryType.RAMP))
        assert "G1 X4.000 Y4.000 Z-5.000 F300 ; Ramp entry" in lines

    def test_direct_entry(self, emitter):
        lines = emitter.emit(_line_op(entry_type=EntryType.DIRECT))
        assert lines[3:6] == [
            "G0 Z5.000 ; Safe height",
            "G0 X0.000 Y0.000 ; Position for plunge",
            "G1 Z-5.000 F300 ; Direct plunge to depth",
        ]

    def test_arc_replaces_two_linear_moves(self, emitter):
        op = _line_op(points=[Point(0, 0), Point(1, 1), Point(2, 0)], depth=1.0)
        lines = emitter.emit(op)
        assert "G2 X2.000 Y0.000 Z-1.000 I1.000 J0.000 F1000 ; CW arc" in lines
        assert not any(l.startswith("G1 X1.000") for l in lines)

    def test_ccw_arc(self, emitter):
        op = _line_op(points=[Point(0, 0), Point(1, -1), Point(2, 0)], depth=1.0)
        lines = emitter.emit(op)
        assert "G3 X2.000 Y0.000 Z-1.000 I1.000 J0.000 F1000 ; CCW arc" in lines

    def test_loop_exit_returns_to_start(self, emitter):
        lines = emitter.emit(_line_op(exit_type=ExitType.LOOP))
        assert lines[-2] == "G1 X0.000 Y0.000 Z-5.000 F1000 ; Loop back to start"

    def test_fractional_feed_rendered_as_supplied(self):
        emitter = MotionEmitter(GenerationParams(feedrate=250.5))
        lines = emitter.emit(_line_op())
        assert "G1 X10.000 Y0.000 Z-5.000 F250.5 ; Linear move" in lines

    def test_empty_operation_only_retracts(self, emitter):
        lines = emitter.emit(_line_op(points=[]))
        assert lines == ["G0 Z5.000 ; Move to safe height", "; Pass 1/1 - Depth: 5.000mm", ""]
