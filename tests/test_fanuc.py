"""Tests for the Fanuc post-processing path."""

import pytest

from cncpost.config.controllers import get_profile
from cncpost.config.options import FanucOptions, OptimizationOptions
from cncpost.gcode.tokenizer import tokenize_line
from cncpost.gcode.validate import validate_fanuc_program
from cncpost.post.baseline import optimize_baseline
from cncpost.post.fanuc import (
    SECTION_END,
    apply_advanced_pass,
    apply_corner_rounding,
    apply_high_speed_mode,
    high_speed_deactivation,
    process_fanuc,
    strip_trailing_zeros,
)


# ---------------------------------------------------------------------------
# Baseline optimizer
# ---------------------------------------------------------------------------


class TestBaseline:
    def test_normalizes_and_elides(self):
        result = optimize_baseline("G00 X1 Y1\nG01 X2 F100\nG01 X3 F100")
        assert result.code.split("\n") == ["G0 X1 Y1", "G1 X2 F100", "X3"]
        assert "Removed redundant feed rate commands" in result.improvements
        assert "Removed redundant modal G-codes" in result.improvements

    def test_feed_state_survives_elision(self):
        code = "G1 X1 F100\nG1 X2 F100\nG1 X3 F200\nG1 X4 F200"
        result = optimize_baseline(code)
        assert result.code.split("\n") == ["G1 X1 F100", "X2", "X3 F200", "X4"]

    def test_spindle_speed_elided(self):
        result = optimize_baseline("M3 S1000\nG1 X1 S1000 F100")
        assert result.code.split("\n") == ["M3 S1000", "G1 X1 F100"]
        assert "Removed redundant spindle speed commands" in result.improvements

    def test_redundant_move_removed(self):
        result = optimize_baseline("G1 X1 Y1 F100\nG1 X1 Y1")
        assert result.code == "G1 X1 Y1 F100"
        assert result.improvements[0] == "Removed redundant position commands"

    def test_move_after_mode_change_kept(self):
        result = optimize_baseline("G0 X1 Y1\nG1 X1 Y1 F100")
        assert result.code.split("\n") == ["G0 X1 Y1", "G1 X1 Y1 F100"]

    def test_blank_lines_dropped_comments_kept(self):
        result = optimize_baseline("; header\n\n\nG1 X1 F100\n%")
        assert result.code.split("\n") == ["; header", "G1 X1 F100", "%"]

    def test_plane_and_units_elided(self):
        result = optimize_baseline("G17 G21\nG17\nG21 G1 X1 F100")
        assert result.code.split("\n") == ["G17 G21", "G1 X1 F100"]

    def test_distance_mode_not_elided(self):
        result = optimize_baseline("G90\nG90")
        assert result.code == "G90\nG90"

    def test_already_optimal(self):
        result = optimize_baseline("G1 X1 F100")
        assert result.improvements == ["Code is already well optimized"]
        assert result.stats.reduction_percent == 0.0

    def test_stats(self):
        result = optimize_baseline("G1 X1 F100\n\nG1 X1\nM30")
        assert result.stats.original_lines == 4
        assert result.stats.optimized_lines == 2
        assert result.stats.reduction_percent == 50.0
        assert result.stats.estimated_time_reduction == pytest.approx(0.02)


# ---------------------------------------------------------------------------
# High-speed mode
# ---------------------------------------------------------------------------


class TestHighSpeedMode:
    def test_blocks_placed_after_setup_and_before_end(self):
        code = apply_high_speed_mode("G90\nG21\nG0 X0\nM30", FanucOptions())
        lines = code.split("\n")
        assert lines[:3] == ["G90", "G21", "; ----- High-speed mode on -----"]
        on = lines.index("G64 P0.05 ; Cutting mode, 0.05mm blending tolerance")
        assert lines.index("G0 X0") > on
        assert lines[-3:] == ["G64 ; Normal cutting mode", SECTION_END, "M30"]

    def test_ai_and_nano_smoothing(self):
        fanuc = FanucOptions(use_ai=True, use_nano_smoothing=True)
        code = apply_high_speed_mode("G90\nG1 X1 F100\nM30", fanuc)
        assert "G05.1 Q1 ; AI contour control on" in code
        assert "G05.1 Q3 ; Nano smoothing on" in code
        assert code.count("G05.1 Q0") == 2

    def test_high_precision_mode(self):
        code = apply_high_speed_mode("G90\nG1 X1 F100\nM30",
                                     FanucOptions(use_high_precision_mode=True))
        assert "G61.1 ; Exact stop mode" in code
        assert "G64 P0.05" not in code

    def test_deactivation_order(self):
        block = high_speed_deactivation(FanucOptions(use_ai=True))
        assert block == [
            "; ----- High-speed mode off -----",
            "G05.1 Q0 ; AI contour control off",
            "G64 ; Normal cutting mode",
            SECTION_END,
        ]

    def test_no_setup_line_inserts_at_start(self):
        code = apply_high_speed_mode("G0 X0\nM30", FanucOptions())
        assert code.startswith("; ----- High-speed mode on -----")

    def test_setup_after_first_move_ignored(self):
        code = apply_high_speed_mode("G0 X0\nG90\nM30", FanucOptions())
        assert code.split("\n")[0] == "; ----- High-speed mode on -----"

    def test_no_end_appends(self):
        code = apply_high_speed_mode("G90\nG0 X0", FanucOptions())
        lines = code.split("\n")
        assert lines[-5:] == [
            "G0 X0",
            "",
            "; ----- High-speed mode off -----",
            "G64 ; Normal cutting mode",
            SECTION_END,
        ]

    def test_last_end_command_used(self):
        code = apply_high_speed_mode("G90\nG0 X0\nM2\nG0 X1\nM30", FanucOptions())
        lines = code.split("\n")
        assert lines.index("; ----- High-speed mode off -----") > lines.index("G0 X1")


# ---------------------------------------------------------------------------
# Corner rounding and advanced pass
# ---------------------------------------------------------------------------


class TestCornerRounding:
    def test_diagonal_corner_rounded(self):
        code = apply_corner_rounding("G1 X0 Y0 F100\nG1 X10 Y10\nG1 X20 Y10")
        assert code.split("\n") == [
            "G1 X0 Y0 F100 R0.5 ; Corner rounding",
            "G1 X10 Y10",
            "G1 X20 Y10",
        ]

    def test_modal_g1_counts(self):
        code = apply_corner_rounding("G1 X0 Y0 F100\nX10 Y10")
        assert code.split("\n")[0].startswith("G1 X0 Y0 F100 R0.5")

    def test_existing_comment_kept(self):
        code = apply_corner_rounding("G1 X0 Y0 F100 ; corner\nG1 X10 Y10")
        assert code.split("\n")[0] == "G1 X0 Y0 F100 R0.5 ; corner"

    def test_depth_change_not_rounded(self):
        code = "G1 X0 Y0 Z0 F100\nG1 X10 Y10 Z-1"
        assert apply_corner_rounding(code) == code

    def test_rapids_not_rounded(self):
        code = "G0 X0 Y0\nG0 X10 Y10"
        assert apply_corner_rounding(code) == code

    def test_existing_radius_not_doubled(self):
        code = "G1 X0 Y0 R1 F100\nG1 X10 Y10"
        assert apply_corner_rounding(code) == code


class TestAdvancedPass:
    def test_strip_trailing_zeros(self):
        line, changed = strip_trailing_zeros(tokenize_line("G1 X10.000 Y5.500 ; at 10.000"))
        assert changed
        assert line.render() == "G1 X10 Y5.500 ; at 10.000"

    def test_decimal_and_modal(self):
        code = apply_advanced_pass("G1 X10.000 F100\nG1 X20.000 F100", OptimizationOptions())
        assert code.split("\n") == ["G1 X10 F100", "X20"]

    def test_switches_off(self):
        options = OptimizationOptions.from_dict({
            "optimize_feedrates": False,
            "fanuc": {"use_decimal_format": False, "use_modal_gcodes": False},
        })
        code = "G1 X10.000 F100\nG1 X20.000 F100"
        assert apply_advanced_pass(code, options) == code


# ---------------------------------------------------------------------------
# Full path and validation
# ---------------------------------------------------------------------------


def _replay_states(code: str) -> list[dict]:
    """Machine state (motion mode, X/Y/Z, F) after every line that moves."""
    state = {"G": None, "X": None, "Y": None, "Z": None, "F": None}
    states = []
    for raw in code.split("\n"):
        line = tokenize_line(raw)
        if line.motion_code is not None:
            state["G"] = line.motion_code
        for letter in "XYZF":
            value = line.get(letter)
            if value is not None:
                state[letter] = value
        if line.has_axis_words:
            states.append(dict(state))
    return states


class TestProcessFanuc:
    def test_elided_program_replays_to_same_states(self):
        code = "\n".join(f"G1 X{i}.5 Y{2 * i}.0 F1000" for i in range(1, 9))
        result = process_fanuc(code, OptimizationOptions(), get_profile("fanuc"))
        optimized = result.code.split("\n")
        assert optimized[0] == "G1 X1.5 Y2 F1000"
        assert all("F" not in line and "G1" not in line for line in optimized[1:])
        assert _replay_states(result.code) == _replay_states(code)
        assert len(_replay_states(code)) == 8

    def test_time_estimate_bonus(self):
        result = process_fanuc("G1 X1 F100\n\nG1 X1\nM30", OptimizationOptions(), get_profile("fanuc"))
        assert result.code == "G1 X1 F100\nM30"
        assert result.stats.estimated_time_reduction == pytest.approx(0.024)
        assert result.stats.reduction_percent == 50.0

    def test_high_speed_improvements(self):
        options = OptimizationOptions.from_dict({"useHighSpeedMode": True, "fanuc": {"useAI": True}})
        result = process_fanuc("G90\nG1 X1 F100\nM30", options, get_profile("fanuc"))
        assert "Applied high-speed mode (AICC/Nano Smoothing)" in result.improvements
        assert "Applied AI contour control for smoother motion" in result.improvements
        assert "G05.1 Q1 ; AI contour control on" in result.code

    def test_haas_note(self):
        result = process_fanuc("G1 X1 F100\nM30", OptimizationOptions(), get_profile("haas"))
        assert result.improvements[-1] == "Adapted for Haas controller"

    def test_validation_attached(self):
        result = process_fanuc("%\nG2 X1 Y1\nM30", OptimizationOptions(), get_profile("fanuc"))
        assert not result.validation.is_valid
        assert "Line 2: arc is missing I/J or R" in result.validation.errors


class TestValidateFanuc:
    def test_clean_program(self):
        result = validate_fanuc_program("%\nG0 X0 Y0\nG2 X1 Y1 I1 J0\nM30\n%")
        assert result.is_ok

    def test_missing_markers(self):
        result = validate_fanuc_program("G0 X0")
        assert "Program has no start marker (%)" in result.warnings
        assert "Program has no end command (M30/M2)" in result.warnings
        assert not result.has_errors

    def test_long_line(self):
        result = validate_fanuc_program("%\nG1 X1 ; " + "x" * 130 + "\nM30")
        assert any("longer than 128" in w for w in result.warnings)

    def test_radius_arc_ok(self):
        assert validate_fanuc_program("%\nG3 X1 Y1 R5\nM30").is_ok

    def test_malformed_word(self):
        result = validate_fanuc_program("%\nG1.5A X1\nM30")
        assert "Line 2: malformed G-code word" in result.errors

    def test_program_too_long(self):
        code = "%\n" + "G1 X1\n" * 10_000 + "M30"
        result = validate_fanuc_program(code)
        assert any("very long" in w for w in result.warnings)
