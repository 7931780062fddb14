"""Motion code emitter: one toolpath operation -> G-code motion lines.

Algorithm per operation
-----------------------
1. Retract to the safe height.
2. Split the total depth into ``ceil(depth / stepdown)`` passes; the last
   pass is clipped to the total depth.
3. At the first point of every pass, rapid over it and enter the material
   with the operation's entry strategy (helix, ramp, direct or plunge).
4. Walk the remaining points.  Where a point and its neighbours fit a
   circular arc, one G2/G3 move replaces two linear moves.
5. Optionally loop back to the first point, then separate passes with a
   blank line.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.geometry import arc_direction, can_form_arc, circumcenter
from ..core.toolpath.base import EntryType, ExitType, Point, ToolpathOperation
from ..errors import GenerationError
from .gcode_writer import arc, comment, fmt, linear, rapid

if TYPE_CHECKING:
    from .generator import GenerationParams

logger = logging.getLogger(__name__)

# Upper bound on depth passes per operation
MAX_PASSES = 10_000


@dataclass(frozen=True)
class DepthPass:
    index: int      # 1-based
    total: int
    depth: float    # positive depth below stock top

    @property
    def z(self) -> float:
        return -self.depth


def compute_passes(total_depth: float, stepdown: float | None) -> list[DepthPass]:
    """Depth levels for a multi-pass cut.

    ``stepdown`` of None or <= 0 means a single pass at *total_depth*.  The
    final pass is clipped so it never exceeds *total_depth*.
    """
    if total_depth <= 0:
        return []
    if stepdown is None or stepdown <= 0:
        stepdown = total_depth

    # Tolerate float noise such as 1.0 / 0.1 = 10.000000000000002
    count = math.ceil(total_depth / stepdown - 1e-9)
    if count > MAX_PASSES:
        raise GenerationError(
            f"{count} depth passes requested (depth {total_depth}, "
            f"stepdown {stepdown}); limit is {MAX_PASSES}"
        )
    return [
        DepthPass(i, count, min(i * stepdown, total_depth))
        for i in range(1, count + 1)
    ]


class MotionEmitter:
    """Emits the motion block for operations under one set of parameters."""

    def __init__(self, params: GenerationParams):
        self.params = params

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def emit(self, op: ToolpathOperation) -> list[str]:
        p = self.params
        lines = [rapid(z=p.safe_height, note="Move to safe height")]

        total_depth = op.depth if op.depth is not None else p.depth
        passes = compute_passes(total_depth, op.stepdown)
        logger.debug("%s: %d pass(es) to depth %s", op.type.value, len(passes), total_depth)

        unit = p.units.label()
        for dp in passes:
            lines.append(comment(
                f"Pass {dp.index}/{dp.total} - Depth: {fmt(dp.depth)}{unit}"
            ))
            lines.extend(self._emit_pass(op, dp.z))
            lines.append("")

        return lines

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit_pass(self, op: ToolpathOperation, z: float) -> list[str]:
        p = self.params
        pts = op.points
        lines: list[str] = []

        i = 0
        while i < len(pts):
            point = pts[i]
            if i == 0:
                lines.append(rapid(point.x, point.y, note="Rapid to start position"))
                second = pts[1] if len(pts) > 1 else point
                lines.extend(self._entry(op, point, second, z))
                i += 1
                continue

            prev = pts[i - 1]
            nxt = pts[i + 1] if i + 1 < len(pts) else None
            if nxt is not None and can_form_arc(prev, point, nxt, p.arc_tolerance):
                lines.append(self._arc_move(prev, point, nxt, z))
                i += 2   # next point consumed by the arc
            else:
                lines.append(linear(point.x, point.y, z, p.feedrate, note="Linear move"))
                i += 1

        if op.exit_type is ExitType.LOOP and pts:
            first = pts[0]
            lines.append(linear(first.x, first.y, z, p.feedrate, note="Loop back to start"))

        return lines

    def _entry(self, op: ToolpathOperation, start: Point, second: Point, z: float) -> list[str]:
        p = self.params
        entry = op.entry_type

        if entry is EntryType.HELIX:
            diameter = op.tool_diameter or p.tool.diameter
            r = diameter / 2.0
            return [
                rapid(start.x + r, start.y, note="Position for helical entry"),
                rapid(z=p.safe_height, note="Safe height before helical entry"),
                linear(z=0.0, f=p.plungerate, note="Move to surface"),
                arc("G3", start.x + r, start.y, z, -r, 0.0, p.plungerate,
                    note="Helical entry"),
                linear(start.x, start.y, f=p.feedrate, note="Move to start point"),
            ]

        if entry is EntryType.RAMP:
            return [
                rapid(z=p.safe_height, note="Safe height before ramp entry"),
                linear(z=0.0, f=p.plungerate, note="Move to surface"),
                linear(second.x, second.y, z, p.plungerate, note="Ramp entry"),
                linear(start.x, start.y, z, p.feedrate,
                       note="Return to start at full depth"),
            ]

        if entry is EntryType.DIRECT:
            return [
                rapid(z=p.safe_height, note="Safe height"),
                rapid(start.x, start.y, note="Position for plunge"),
                linear(z=z, f=p.plungerate, note="Direct plunge to depth"),
            ]

        return [linear(z=z, f=p.plungerate, note="Plunge to depth")]

    def _arc_move(self, p1: Point, p2: Point, p3: Point, z: float) -> str:
        direction = arc_direction(p1, p2, p3)
        center = circumcenter(p1, p2, p3)
        if center is None:
            # can_form_arc already rejects collinear triples
            raise GenerationError(f"No arc through {p1}, {p2}, {p3}")
        i = center[0] - p1.x
        j = center[1] - p1.y
        note = "CW arc" if direction.value == "G2" else "CCW arc"
        return arc(direction.value, p3.x, p3.y, z, i, j, self.params.feedrate, note=note)
