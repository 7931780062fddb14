"""Core toolpath data structures.

A Toolpath is produced upstream by CAM planning and is only read during
G-code generation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import numpy as np


class OperationType(Enum):
    PROFILE = "profile"
    POCKET = "pocket"
    DRILL = "drill"
    CONTOUR = "contour"
    FACE = "face"
    ENGRAVE = "engrave"


class EntryType(Enum):
    """How the tool reaches cutting depth at the start of each pass."""
    DIRECT = "direct"    # retract, reposition, plunge
    RAMP = "ramp"        # descend along the first segment
    HELIX = "helix"      # full helical turn at tool-radius offset
    PLUNGE = "plunge"    # straight down where the tool stands


class ExitType(Enum):
    DIRECT = "direct"
    RAMP = "ramp"
    LOOP = "loop"        # return to the first point at depth


@dataclass(frozen=True)
class Point:
    """A single point the tool tip must pass through."""
    x: float
    y: float
    z: float = 0.0

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @classmethod
    def from_any(cls, value) -> Point:
        """Accept a Point, a mapping with x/y/z keys or a 2/3-sequence."""
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            return cls(float(value["x"]), float(value["y"]), float(value.get("z", 0.0)))
        coords = [float(v) for v in value]
        return cls(*coords[:3])


@dataclass
class ToolpathOperation:
    """One machining operation: an ordered point sequence cut at depth."""

    type: OperationType
    points: list[Point] = field(default_factory=list)
    depth: Optional[float] = None        # positive, below stock top
    stepdown: Optional[float] = None     # None -> single pass at depth
    tool_diameter: Optional[float] = None
    entry_type: EntryType = EntryType.PLUNGE
    exit_type: ExitType = ExitType.DIRECT
    entry_distance: Optional[float] = None
    exit_distance: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return len(self.points) == 0

    @classmethod
    def from_dict(cls, d: dict) -> ToolpathOperation:
        """Build from the mapping shape used by the application layer.

        Entry/exit may be given flat (``entry_type``) or nested under
        ``leads_and_links`` as ``{"entry_type": ..., "exit_type": ...}``.
        """
        links = d.get("leads_and_links") or {}
        entry = d.get("entry_type", links.get("entry_type", EntryType.PLUNGE))
        exit_ = d.get("exit_type", links.get("exit_type", ExitType.DIRECT))
        return cls(
            type=OperationType(d["type"]),
            points=[Point.from_any(p) for p in d.get("points", [])],
            depth=d.get("depth"),
            stepdown=d.get("stepdown"),
            tool_diameter=d.get("tool_diameter"),
            entry_type=EntryType(entry),
            exit_type=ExitType(exit_),
            entry_distance=d.get("entry_distance", links.get("entry_distance")),
            exit_distance=d.get("exit_distance", links.get("exit_distance")),
        )


@dataclass
class Workpiece:
    """Rectangular stock; Z=0 is the top face, cuts go negative."""
    width: float
    height: float
    thickness: float
    material: str = "other"

    def footprint(self):
        """Shapely box covering the stock in XY."""
        from shapely.geometry import box

        return box(0.0, 0.0, self.width, self.height)


@dataclass
class Toolpath:
    """An ordered collection of operations making up one job."""
    id: str = ""
    name: str = "Untitled"
    operations: list[ToolpathOperation] = field(default_factory=list)
    elements: list[Any] = field(default_factory=list)
    parameters: dict[str, Any] = field(default_factory=dict)
    workpiece: Optional[Workpiece] = None

    def add_operation(self, op: ToolpathOperation) -> None:
        self.operations.append(op)

    @property
    def total_points(self) -> int:
        return sum(len(op.points) for op in self.operations)

    @property
    def is_empty(self) -> bool:
        return all(op.is_empty for op in self.operations)

    @property
    def bounds(self) -> Optional[tuple[float, float, float, float, float, float]]:
        """(xmin, ymin, zmin, xmax, ymax, zmax) over all points."""
        coords = [p.as_tuple() for op in self.operations for p in op.points]
        if not coords:
            return None
        arr = np.asarray(coords, dtype=float)
        lo, hi = arr.min(axis=0), arr.max(axis=0)
        return (*(float(v) for v in lo), *(float(v) for v in hi))
