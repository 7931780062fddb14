"""Unit system enum and conversion helpers."""

from enum import Enum


class Units(Enum):
    INCH = "inch"
    MM = "mm"

    @classmethod
    def from_flag(cls, use_inches: bool) -> "Units":
        return cls.INCH if use_inches else cls.MM

    def to_mm(self, value: float) -> float:
        if self is Units.MM:
            return value
        return value * 25.4

    def from_mm(self, value: float) -> float:
        if self is Units.MM:
            return value
        return value / 25.4

    def label(self) -> str:
        return "in" if self is Units.INCH else "mm"

    def feed_label(self) -> str:
        return f"{self.label()}/min"

    @property
    def gcode_modal(self) -> str:
        """G-code modal group 6 word."""
        return "G20" if self is Units.INCH else "G21"

    @property
    def heidenhain_label(self) -> str:
        """Unit keyword used in ``BEGIN PGM`` / ``END PGM`` blocks."""
        return "INCH" if self is Units.INCH else "MM"
