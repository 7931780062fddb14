"""Cutting tool descriptor used by the generator header and entry moves."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum


class ToolType(Enum):
    ENDMILL = "endmill"
    BALL_ENDMILL = "ballnose"
    V_BIT = "v-bit"
    DRILL = "drill"
    FACE_MILL = "face_mill"


@dataclass
class Tool:
    """A cutting tool definition.

    Dimensions are in the program's units (mm unless the job uses inches).
    """
    name: str = "Default"
    diameter: float = 6.0
    tool_type: ToolType = ToolType.ENDMILL
    flute_count: int = 2
    number: int = 1

    @property
    def radius(self) -> float:
        return self.diameter / 2.0

    def describe(self, units_label: str = "mm") -> str:
        """Short descriptor for header comments, e.g. ``6mm endmill``."""
        dia = f"{self.diameter:g}"
        return f"{dia}{units_label} {self.tool_type.value}"

    def to_dict(self) -> dict:
        d = asdict(self)
        d["tool_type"] = self.tool_type.value
        return d

    @classmethod
    def from_dict(cls, d: dict) -> Tool:
        d = dict(d)
        if "type" in d:
            d["tool_type"] = d.pop("type")
        if "tool_type" in d and not isinstance(d["tool_type"], ToolType):
            d["tool_type"] = ToolType(d["tool_type"])
        known = {k: v for k, v in d.items() if k in cls.__dataclass_fields__}
        return cls(**known)
