"""Generic G-code generator.

Assembles header, initialization, one motion block per operation and the
footer, then optionally strips moves that go nowhere.

Output conventions
------------------
- Semicolon line comments.
- G21 (mm) unless ``use_inches`` is set.
- Absolute positioning (G90), XY plane (G17), feed per minute (G94).
- Z=0 is the stock top; cutting depths are negative.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Union

from ..config import defaults
from ..config.options import normalize_key
from ..core.tool import Tool
from ..core.toolpath.base import Toolpath, ToolpathOperation
from ..core.units import Units
from .emitter import MotionEmitter
from .gcode_writer import command, comment, num, rapid
from .modal import CANNED_CYCLES
from .tokenizer import AXIS_LETTERS, tokenize_line

logger = logging.getLogger(__name__)

BANNER_RULE = ";" + "=" * 36
SECTION_RULE = ";" + "-" * 36

# Non-motion G codes that move the machine or change its position frame
_POSITIONING_CODES = (28, 30, 53, 92)


@dataclass
class GenerationOptimization:
    remove_redundant_moves: bool = False


@dataclass
class GenerationParams:
    """Machine and cutting parameters for one generation run."""

    machine_type: str = defaults.DEFAULT_MACHINE_TYPE
    tool: Tool = field(default_factory=defaults.build_default_tool)
    feedrate: float = defaults.DEFAULT_FEEDRATE
    plungerate: float = defaults.DEFAULT_PLUNGERATE
    spindle_speed: float = defaults.DEFAULT_SPINDLE_SPEED
    coolant: bool = False
    coordinate_system: str = defaults.DEFAULT_COORDINATE_SYSTEM
    use_inches: bool = False
    safe_height: float = defaults.DEFAULT_SAFE_HEIGHT
    clearance_height: float = defaults.DEFAULT_CLEARANCE_HEIGHT
    arc_tolerance: float = defaults.DEFAULT_ARC_TOLERANCE
    depth: float = defaults.DEFAULT_DEPTH   # used when an operation has none
    optimization: GenerationOptimization = field(default_factory=GenerationOptimization)

    @property
    def units(self) -> Units:
        return Units.from_flag(self.use_inches)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GenerationParams:
        """Build params from a partial mapping; absent keys keep defaults.

        Keys may be camelCase (``spindleSpeed``) or snake_case.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in d.items():
            key = normalize_key(raw_key)
            if key not in known:
                logger.warning("Ignoring unknown generation parameter %r", key)
                continue
            if value is None:
                continue
            if key == "tool" and isinstance(value, dict):
                value = Tool.from_dict({normalize_key(k): v for k, v in value.items()})
            elif key == "optimization" and isinstance(value, dict):
                flags = {normalize_key(k): v for k, v in value.items()}
                value = GenerationOptimization(
                    remove_redundant_moves=bool(flags.get("remove_redundant_moves", False))
                )
            kwargs[key] = value
        return cls(**kwargs)


ParamsLike = Union[GenerationParams, dict, None]


def _coerce_params(params: ParamsLike) -> GenerationParams:
    if params is None:
        return GenerationParams()
    if isinstance(params, dict):
        return GenerationParams.from_dict(params)
    return params


class GCodeGenerator:
    """Turns a Toolpath into a complete generic G-code program."""

    def __init__(self, params: ParamsLike = None):
        self.params = _coerce_params(params)
        self._emitter = MotionEmitter(self.params)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_lines(self, toolpath: Toolpath, timestamp: Optional[datetime] = None) -> list[str]:
        lines: list[str] = []
        lines.extend(self._header(toolpath, timestamp))
        lines.extend(self._initialization())
        for index, op in enumerate(toolpath.operations):
            lines.extend(self._operation(op, index))
        lines.extend(self._footer())
        return lines

    def generate_code(self, toolpath: Toolpath, timestamp: Optional[datetime] = None) -> str:
        code = "\n".join(self.get_lines(toolpath, timestamp)) + "\n"
        if self.params.optimization.remove_redundant_moves:
            code = remove_redundant_moves(code)
        logger.info(
            "Generated %d lines for toolpath %r (%d operations)",
            code.count("\n"), toolpath.name, len(toolpath.operations),
        )
        return code

    def generate(self, toolpath: Toolpath, output: Path) -> None:
        """Write the program for *toolpath* to *output*."""
        output.write_text(self.generate_code(toolpath))

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _header(self, toolpath: Toolpath, timestamp: Optional[datetime]) -> list[str]:
        p = self.params
        stamp = (timestamp or datetime.now(timezone.utc)).isoformat()
        units = p.units
        material = toolpath.workpiece.material if toolpath.workpiece else "Unknown"

        lines = [
            BANNER_RULE,
            comment(defaults.GENERATOR_BANNER),
            BANNER_RULE,
            comment(f"Toolpath: {toolpath.name}"),
            comment(f"Date: {stamp}"),
            comment(f"Machine: {p.machine_type}"),
            comment(f"Tool: {p.tool.name} ({p.tool.describe(units.label())})"),
            comment(f"Material: {material}"),
        ]
        if toolpath.workpiece is not None:
            wp = toolpath.workpiece
            lines.append(comment(
                f"Workpiece: {num(wp.width)} x {num(wp.height)} x {num(wp.thickness)}"
            ))
        lines += [
            comment(f"Feedrate: {num(p.feedrate)}{units.feed_label()}"),
            comment(f"Plunge rate: {num(p.plungerate)}{units.feed_label()}"),
            comment(f"Spindle speed: {num(p.spindle_speed)} RPM"),
            comment(f"Coolant: {'ON' if p.coolant else 'OFF'}"),
            BANNER_RULE,
            "",
        ]
        return lines

    def _initialization(self) -> list[str]:
        p = self.params
        unit_note = "Set units to inches" if p.use_inches else "Set units to mm"
        lines = [
            command(p.units.gcode_modal, unit_note),
            command("G90", "Absolute positioning"),
            command("G17", "XY plane selection"),
            command("G94", "Feed rate mode"),
            command(p.coordinate_system, "Work coordinate system"),
            command(f"M3 S{num(p.spindle_speed)}", "Start spindle"),
        ]
        if p.coolant:
            lines.append(command("M8", "Turn on coolant"))
        lines.append(rapid(z=p.clearance_height, note="Move to clearance height"))
        lines.append("")
        return lines

    def _operation(self, op: ToolpathOperation, index: int) -> list[str]:
        lines = [
            SECTION_RULE,
            comment(f"Operation {index + 1}: {op.type.value}"),
            SECTION_RULE,
        ]
        lines.extend(self._emitter.emit(op))
        return lines

    def _footer(self) -> list[str]:
        p = self.params
        lines = [
            SECTION_RULE,
            comment("Program End"),
            SECTION_RULE,
            rapid(z=p.clearance_height, note="Retract to clearance height"),
            command("M5", "Stop spindle"),
        ]
        if p.coolant:
            lines.append(command("M9", "Turn off coolant"))
        lines.append(command("M30", "Program end and rewind"))
        return lines


def generate_gcode(
    toolpath: Toolpath,
    params: ParamsLike = None,
    *,
    timestamp: Optional[datetime] = None,
) -> str:
    """Generate a generic G-code program for *toolpath*."""
    return GCodeGenerator(params).generate_code(toolpath, timestamp)


def remove_redundant_moves(code: str) -> str:
    """Drop G0/G1 lines that leave position and feed unchanged.

    A move is dropped only when each X/Y/Z/F word it carries equals the
    last known value, it carries no other words besides its motion code,
    and it does not switch the motion mode.  Lines that are not G0/G1
    moves are always kept; arcs update the tracked position, other
    positioned lines (canned cycles, G28, incremental moves) reset it.
    """
    state: dict[str, Optional[float]] = {"X": None, "Y": None, "Z": None, "F": None}
    mode: Optional[int] = None
    absolute = True
    out: list[str] = []

    for raw in code.split("\n"):
        line = tokenize_line(raw)
        if not line.words:
            out.append(raw)
            continue

        previous_mode = mode
        if line.has_g(90):
            absolute = True
        if line.has_g(91):
            absolute = False
        for g in line.g_codes:
            if g in (0, 1, 2, 3) or g in CANNED_CYCLES:
                mode = int(g)

        repositions = line.has_g(*_POSITIONING_CODES)
        feed = line.get("F")
        is_move = (
            mode in (0, 1)
            and (line.motion_code is not None or line.has_axis_words)
            and absolute
            and not repositions
        )

        if is_move:
            axes = line.axes()
            only_motion = all(
                w.letter in AXIS_LETTERS or w.letter == "F"
                or (w.letter == "G" and w.value in (0, 1))
                for w in line.words
            )
            unchanged = all(
                a not in axes or (state[a] is not None and axes[a] == state[a])
                for a in AXIS_LETTERS
            ) and (feed is None or feed == state["F"])
            same_mode = line.motion_code is None or line.motion_code == previous_mode

            if only_motion and unchanged and same_mode:
                continue

            state.update(axes)
        elif line.has_axis_words:
            if mode in (2, 3) and absolute and not repositions:
                state.update(line.axes())
            else:
                state.update({a: None for a in AXIS_LETTERS})

        if feed is not None:
            state["F"] = feed
        out.append(raw)

    return "\n".join(out)
