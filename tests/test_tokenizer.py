"""Tests for the G-code line tokenizer and modal tracker."""

import pytest

from cncpost.gcode.modal import ModalState, group_of
from cncpost.gcode.tokenizer import Word, tokenize, tokenize_line


class TestTokenizeLine:
    def test_words_and_values(self):
        line = tokenize_line("G1 X10.5 Y-2 F300")
        assert [str(w) for w in line.words] == ["G1", "X10.5", "Y-2", "F300"]
        assert line.get("X") == pytest.approx(10.5)
        assert line.get("Y") == pytest.approx(-2.0)
        assert line.get("Z") is None

    def test_g17_is_not_g1(self):
        line = tokenize_line("G17 X1")
        assert line.motion_code is None
        assert not line.has_g(1)
        assert line.has_g(17)

    def test_leading_zero_codes(self):
        line = tokenize_line("G00 X1")
        assert line.motion_code == 0
        assert line.words[0].text == "00"

    def test_lowercase_and_packed_words(self):
        line = tokenize_line("g1x1y2")
        assert [w.letter for w in line.words] == ["G", "X", "Y"]
        assert line.axes() == {"X": 1.0, "Y": 2.0}

    def test_semicolon_comment(self):
        line = tokenize_line("G0 Z5 ; Move to safe height")
        assert line.comment == "; Move to safe height"
        assert line.code_text == "G0 Z5"
        assert not line.is_comment

    def test_parenthesis_comment(self):
        line = tokenize_line("G0 X1 (rapid)")
        assert line.comment == "(rapid)"
        assert [str(w) for w in line.words] == ["G0", "X1"]

    def test_comment_only_line(self):
        line = tokenize_line("; Operation 1: profile")
        assert line.is_comment
        assert line.words == []

    def test_residue(self):
        line = tokenize_line("%")
        assert line.residue == "%"
        assert line.words == []
        assert not line.is_comment

    def test_blank(self):
        assert tokenize_line("   ").is_blank

    def test_tokenize_splits_lines(self):
        lines = tokenize("G0 X0\n\nM30")
        assert len(lines) == 3
        assert lines[2].has_m(30)


class TestRewriting:
    def test_without_keeps_comment(self):
        line = tokenize_line("G1 X1 F100 ; cut").without(lambda w: w.letter == "F")
        assert line.render() == "G1 X1 ; cut"

    def test_without_count(self):
        line = tokenize_line("G1 G1 X1").without(lambda w: w.is_code("G", 1), count=1)
        assert line.render() == "G1 X1"

    def test_appended(self):
        line = tokenize_line("G1 X1").appended(Word.make("R", 0.5))
        assert line.render() == "G1 X1 R0.5"

    def test_word_make_integer(self):
        assert str(Word.make("g", 1.0)) == "G1"

    def test_without_comment(self):
        line = tokenize_line("G1 X1 ; cut").without_comment()
        assert line.render() == "G1 X1"
        assert not line.is_empty_after_edit

    def test_empty_after_edit(self):
        line = tokenize_line("G90").without(lambda w: True)
        assert line.is_empty_after_edit

    def test_unmodified_line_renders_raw(self):
        raw = "G1  X1.000   F100"
        assert tokenize_line(raw).render() == raw


class TestModalState:
    def test_group_of(self):
        assert group_of(1) == "motion"
        assert group_of(83) == "motion"
        assert group_of(17) == "plane"
        assert group_of(43) is None

    def test_repeated_word_elided(self):
        modal = ModalState(("motion",))
        modal.elide(tokenize_line("G1 X1"))
        line, dropped = modal.elide(tokenize_line("G1 X2"))
        assert dropped == 1
        assert line.render() == "X2"

    def test_mode_change_not_elided(self):
        modal = ModalState(("motion",))
        modal.elide(tokenize_line("G1 X1"))
        line, dropped = modal.elide(tokenize_line("G0 X2"))
        assert dropped == 0
        assert modal.motion == 0

    def test_cycle_resets_motion_mode(self):
        modal = ModalState(("motion",))
        modal.elide(tokenize_line("G1 X1"))
        modal.elide(tokenize_line("G81 X5 Y5 Z-2"))
        line, dropped = modal.elide(tokenize_line("G1 X2"))
        assert dropped == 0

    def test_cycles_never_elided_by_default(self):
        modal = ModalState(("motion",))
        modal.elide(tokenize_line("G81 X5 Y5 Z-2"))
        _, dropped = modal.elide(tokenize_line("G81 X6 Y5 Z-2"))
        assert dropped == 0

    def test_untracked_groups_pass_through(self):
        modal = ModalState(("motion",))
        modal.elide(tokenize_line("G17"))
        _, dropped = modal.elide(tokenize_line("G17"))
        assert dropped == 0

    def test_observe(self):
        modal = ModalState()
        modal.observe(tokenize_line("G2 X1 Y1 I1 J0"))
        assert modal.motion == 2

    def test_unknown_group(self):
        with pytest.raises(ValueError, match="spindle"):
            ModalState(("spindle",))
