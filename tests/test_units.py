"""Tests for units module."""

import pytest
from cncpost.core.units import Units


class TestUnits:
    def test_inch_to_mm(self):
        assert Units.INCH.to_mm(1.0) == pytest.approx(25.4)

    def test_mm_to_mm(self):
        assert Units.MM.to_mm(25.4) == pytest.approx(25.4)

    def test_inch_from_mm(self):
        assert Units.INCH.from_mm(25.4) == pytest.approx(1.0)

    def test_from_flag(self):
        assert Units.from_flag(True) is Units.INCH
        assert Units.from_flag(False) is Units.MM

    def test_gcode_modal(self):
        assert Units.INCH.gcode_modal == "G20"
        assert Units.MM.gcode_modal == "G21"

    def test_labels(self):
        assert Units.INCH.label() == "in"
        assert Units.MM.label() == "mm"
        assert Units.MM.feed_label() == "mm/min"
        assert Units.INCH.heidenhain_label == "INCH"
        assert Units.MM.heidenhain_label == "MM"
