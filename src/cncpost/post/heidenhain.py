"""Heidenhain conversational translation path.

Address-word G-code is translated into a list of typed blocks, which the
optional passes (TCPM, function blocks) rearrange before the program is
numbered and rendered.

Mapping
-------
- ``G0``          -> ``L <coords> FMAX``
- ``G1``          -> ``L <coords> [F]``
- ``G2``/``G3``   -> ``CR <coords> R-r|R+r [F]``; full circles become
                     ``CC`` + ``CP IPA-360|IPA+360``
- ``G81/83/84``   -> ``CYCL DEF 200/203/207`` plus Q parameters, then a
                     point call ``L X Y R0 FMAX M99``
- ``M3``/``M4``   -> ``TOOL CALL`` with the spindle speed
- ``T<n> M6``     -> ``TOOL CALL <n>``
- ``G41/G42/G40`` -> ``RL``/``RR``/``R0`` on the next ``L`` block
- ``M30``/``M2``  -> ``L Z+100 R0 FMAX M2``

Unrecognised lines are kept as ``; Unconverted: <line>`` comments.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from ..config.controllers import ControllerProfile
from ..config.options import OptimizationOptions
from ..core.units import Units
from ..gcode.gcode_writer import fmt, num, signed
from ..gcode.tokenizer import AXIS_LETTERS, Line, tokenize
from ..gcode.validate import validate_heidenhain_program
from .directives import Directive, apply_directives, insert_after, insert_before
from .result import OptimizationResult, OptimizationStats, ProgramValidation

logger = logging.getLogger(__name__)

PROGRAM_NAME = "WORKPIECE"
DEFAULT_STOCK = (100.0, 100.0, 100.0)   # width, height, depth
RENUMBER_STEP = 5
HEIDENHAIN_TIME_FACTOR = 0.015

TCPM_ON = "FUNCTION TCPM F TCP AXIS POS PATHCTRL AXIS"
TCPM_OFF = "FUNCTION TCPM RESET"

STOCK_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)\s*x\s*(\d+(?:\.\d+)?)", re.IGNORECASE
)
STOCK_KEYWORDS = re.compile(r"workpiece|material|stock", re.IGNORECASE)
RAPID_BLOCK = re.compile(r"L .*FMAX")

# Lines holding only these words carry nothing Heidenhain needs
SKIPPED_CODES = (20, 21, 90, 91)
COMPENSATION = {41: "RL", 42: "RR", 40: "R0"}


class BlockKind(Enum):
    PROGRAM = "program"          # BEGIN/END PGM, BLK FORM
    COMMENT = "comment"
    TOOL_CALL = "tool_call"
    MOVE = "move"
    ARC = "arc"
    CYCLE_DEF = "cycle_def"
    CYCLE_PARAM = "cycle_param"
    POINT_CALL = "point_call"
    LABEL = "label"
    FUNCTION = "function"
    MISC = "misc"
    END = "end"                  # final retract with M2


UNNUMBERED = (BlockKind.PROGRAM, BlockKind.COMMENT)


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str
    number: Optional[int] = None

    @property
    def numbered(self) -> bool:
        return self.kind not in UNNUMBERED

    def render(self) -> str:
        if self.number is None:
            return self.text
        return f"{self.number} {self.text}"


@dataclass
class HeidenhainProgram:
    units: Units
    blocks: list[Block] = field(default_factory=list)

    def renumbered(self, step: int = 1, start: int = 1) -> HeidenhainProgram:
        """Copy with every numbered block renumbered from *start*."""
        number = start
        blocks: list[Block] = []
        for block in self.blocks:
            if block.numbered:
                block = replace(block, number=number)
                number += step
            blocks.append(block)
        return replace(self, blocks=blocks)

    def with_blocks(self, blocks: list[Block]) -> HeidenhainProgram:
        return replace(self, blocks=blocks)

    def index_of_last(self, kind: BlockKind) -> Optional[int]:
        for i in range(len(self.blocks) - 1, -1, -1):
            if self.blocks[i].kind is kind:
                return i
        return None

    @property
    def unconverted(self) -> list[str]:
        prefix = "; Unconverted: "
        return [b.text[len(prefix):] for b in self.blocks
                if b.kind is BlockKind.COMMENT and b.text.startswith(prefix)]

    def render(self) -> str:
        return "\n".join(b.render() for b in self.blocks)


# ---- translation -----------------------------------------------------------


@dataclass(frozen=True)
class CycleDefinition:
    code: int
    params: tuple[tuple[str, str, str], ...]   # (Q name, value, label)

    @property
    def title(self) -> str:
        return {
            81: "CYCL DEF 200 DRILLING",
            83: "CYCL DEF 203 UNIVERSAL DRILLING",
            84: "CYCL DEF 207 RIGID TAPPING",
        }[self.code]

    def blocks(self) -> list[Block]:
        out = [Block(BlockKind.CYCLE_DEF, self.title)]
        out += [Block(BlockKind.CYCLE_PARAM, f"{q}={value} ; {label}")
                for q, value, label in self.params]
        return out


def cycle_definition(code: int, line: Line) -> CycleDefinition:
    """Q parameters for a G81/G83/G84 line, with the usual defaults."""

    def value(letter: str, default: float) -> float:
        v = line.get(letter)
        return default if v is None else v

    retract = num(value("R", 2))
    z = line.get("Z")
    depth = num(abs(z) if z is not None else 10)

    if code == 81:
        params = (
            ("Q200", retract, "SET-UP CLEARANCE"),
            ("Q201", f"-{depth}", "DEPTH"),
            ("Q206", num(value("F", 150)), "FEED RATE FOR PLUNGING"),
            ("Q202", depth, "PLUNGING DEPTH"),
            ("Q210", "0", "DWELL TIME AT TOP"),
            ("Q203", "0", "SURFACE COORDINATE"),
            ("Q204", retract, "2ND SET-UP CLEARANCE"),
            ("Q211", "0", "DWELL TIME AT DEPTH"),
        )
    elif code == 83:
        peck = num(value("Q", 3))
        params = (
            ("Q200", retract, "SET-UP CLEARANCE"),
            ("Q201", f"-{depth}", "DEPTH"),
            ("Q206", num(value("F", 150)), "FEED RATE FOR PLUNGING"),
            ("Q202", peck, "PLUNGING DEPTH"),
            ("Q210", "0", "DWELL TIME AT TOP"),
            ("Q203", "0", "SURFACE COORDINATE"),
            ("Q204", retract, "2ND SET-UP CLEARANCE"),
            ("Q212", "0", "DECREMENT"),
            ("Q213", "0", "BREAKS"),
            ("Q205", peck, "MIN. PLUNGING DEPTH"),
            ("Q211", "0", "DWELL TIME AT DEPTH"),
            ("Q208", "500", "RETRACTION FEED RATE"),
            ("Q256", "0.2", "DIST. FOR CHIP BRKNG"),
        )
    elif code == 84:
        params = (
            ("Q200", retract, "SET-UP CLEARANCE"),
            ("Q201", f"-{depth}", "DEPTH"),
            ("Q239", num(value("F", 1.5)), "THREAD PITCH"),
            ("Q203", "0", "SURFACE COORDINATE"),
            ("Q204", retract, "2ND SET-UP CLEARANCE"),
        )
    else:
        raise ValueError(f"G{code} is not a supported drilling cycle")
    return CycleDefinition(code, params)


def format_coords(axes: dict[str, float]) -> str:
    return " ".join(f"{a}{signed(axes[a])}" for a in AXIS_LETTERS if a in axes)


@dataclass
class _State:
    tool: int
    position: dict[str, Optional[float]] = field(
        default_factory=lambda: {a: None for a in AXIS_LETTERS}
    )
    mode: Optional[int] = None
    cycle: Optional[CycleDefinition] = None
    compensation: Optional[str] = None


class HeidenhainTranslator:
    """Translates address-word G-code into a ``HeidenhainProgram``.

    Parameters
    ----------
    modal_cycles : bool
        Emit a cycle definition only when it differs from the active one;
        repeated definitions become point calls.
    polar_full_circles : bool
        Write full circles as ``CC`` + ``CP``.  Otherwise they are split
        into two ``CR`` half circles.
    """

    def __init__(self, *, modal_cycles: bool = True, polar_full_circles: bool = True):
        self.modal_cycles = modal_cycles
        self.polar_full_circles = polar_full_circles

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def translate(self, code: str) -> HeidenhainProgram:
        lines = tokenize(code)
        units = self._units(lines)
        state = _State(tool=self._first_tool(lines))

        blocks = self._header(lines, units, state.tool)
        for line in lines:
            blocks.extend(self._translate_line(line, state))
        if state.compensation is not None:
            blocks.append(Block(BlockKind.MISC, state.compensation))
        blocks.append(Block(BlockKind.PROGRAM, f"END PGM {PROGRAM_NAME} {units.heidenhain_label}"))

        program = HeidenhainProgram(units=units, blocks=blocks).renumbered(step=1)
        logger.debug(
            "Translated %d source lines into %d blocks (%d unconverted)",
            len(lines), len(program.blocks), len(program.unconverted),
        )
        return program

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    @staticmethod
    def _units(lines: list[Line]) -> Units:
        units = Units.MM
        for line in lines:
            if line.motion_code is not None:
                break
            if line.has_g(20):
                units = Units.INCH
            elif line.has_g(21):
                units = Units.MM
        return units

    @staticmethod
    def _first_tool(lines: list[Line]) -> int:
        for line in lines:
            if line.has_m(6) and line.has("T"):
                return int(line.get("T"))
        return 1

    @staticmethod
    def _stock(lines: list[Line]) -> tuple[float, float, float]:
        for line in lines:
            if line.words or not STOCK_KEYWORDS.search(line.comment):
                continue
            m = STOCK_PATTERN.search(line.comment)
            if m:
                return (float(m.group(1)), float(m.group(2)), float(m.group(3)))
        return DEFAULT_STOCK

    def _header(self, lines: list[Line], units: Units, tool: int) -> list[Block]:
        width, height, depth = self._stock(lines)
        return [
            Block(BlockKind.PROGRAM, f"BEGIN PGM {PROGRAM_NAME} {units.heidenhain_label}"),
            Block(BlockKind.PROGRAM, f"BLK FORM 0.1 Z X+0 Y+0 Z-{num(depth)}"),
            Block(BlockKind.PROGRAM, f"BLK FORM 0.2 X+{num(width)} Y+{num(height)} Z+0"),
            Block(BlockKind.TOOL_CALL, f"TOOL CALL {tool} Z S0"),
        ]

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------

    def _translate_line(self, line: Line, state: _State) -> list[Block]:
        if not line.words:
            return []
        if all(w.letter == "G" and w.value in SKIPPED_CODES for w in line.words):
            return []

        blocks: list[Block] = []
        handled = False

        if line.has_g(80):
            state.cycle = None
            state.mode = 80
            handled = True

        for code, tag in COMPENSATION.items():
            if line.has_g(code):
                state.compensation = tag
                handled = True

        motion = line.motion_code
        cycle_code = next((int(g) for g in line.g_codes if g in (81, 83, 84)), None)

        if line.has_g(43) and line.has("H") and not line.has_axis_words:
            return []   # length compensation is part of the TOOL CALL

        if cycle_code is not None:
            blocks += self._cycle(line, cycle_code, state)
            handled = True
        elif motion is not None or (line.has_axis_words and state.mode in (0, 1, 2, 3)):
            mode = motion if motion is not None else state.mode
            state.mode = mode
            moved = self._motion(line, mode, state)
            blocks += moved
            handled = handled or bool(moved)
        elif line.has_axis_words and state.cycle is not None:
            blocks.append(self._point_call(line, state))
            handled = True

        blocks += self._misc(line, state)
        if blocks:
            handled = True

        if not handled:
            return [Block(BlockKind.COMMENT, f"; Unconverted: {line.raw.strip()}")]
        return blocks

    def _take_compensation(self, state: _State) -> str:
        tag, state.compensation = state.compensation, None
        return f" {tag}" if tag else ""

    def _motion(self, line: Line, mode: int, state: _State) -> list[Block]:
        axes = line.axes()
        if not axes:
            return []
        feed = line.get("F")
        feed_text = f" F{num(feed)}" if feed is not None else ""

        if mode in (0, 1):
            comp = self._take_compensation(state)
            tail = " FMAX" if mode == 0 else feed_text
            state.position.update(axes)
            return [Block(BlockKind.MOVE, f"L {format_coords(axes)}{comp}{tail}")]

        return self._arc(line, mode, axes, feed_text, state)

    def _arc(
        self, line: Line, mode: int, axes: dict[str, float], feed_text: str, state: _State
    ) -> list[Block]:
        i, j, r = line.get("I"), line.get("J"), line.get("R")
        if i is None and j is None and r is None:
            return []

        cw = mode == 2
        start = dict(state.position)
        end = {**start, **axes}
        state.position.update(axes)

        has_centre = i is not None or j is not None
        closed = (
            has_centre
            and start["X"] is not None and start["Y"] is not None
            and math.isclose(start["X"], end["X"], abs_tol=1e-9)
            and math.isclose(start["Y"], end["Y"], abs_tol=1e-9)
        )
        if not closed:
            radius = math.hypot(i or 0.0, j or 0.0) if has_centre else abs(r)
            sign = "-" if cw else "+"
            return [Block(BlockKind.ARC,
                          f"CR {format_coords(axes)} R{sign}{fmt(radius)}{feed_text}")]

        cx, cy = start["X"] + (i or 0.0), start["Y"] + (j or 0.0)
        dz = 0.0
        if "Z" in axes and start["Z"] is not None:
            dz = axes["Z"] - start["Z"]

        if self.polar_full_circles:
            direction = "-" if cw else "+"
            helix = f" IZ{signed(dz)}" if dz else ""
            return [
                Block(BlockKind.ARC, f"CC X{signed(cx)} Y{signed(cy)}"),
                Block(BlockKind.ARC, f"CP IPA{direction}360{helix} DR{direction}{feed_text}"),
            ]

        # Two half circles through the point opposite the start
        radius = math.hypot(i or 0.0, j or 0.0)
        sign = "-" if cw else "+"
        mid = {"X": 2 * cx - start["X"], "Y": 2 * cy - start["Y"]}
        if dz and start["Z"] is not None:
            mid["Z"] = start["Z"] + dz / 2.0
        return [
            Block(BlockKind.ARC, f"CR {format_coords(mid)} R{sign}{fmt(radius)}{feed_text}"),
            Block(BlockKind.ARC, f"CR {format_coords(axes)} R{sign}{fmt(radius)}"),
        ]

    def _cycle(self, line: Line, code: int, state: _State) -> list[Block]:
        definition = cycle_definition(code, line)
        state.mode = code
        blocks: list[Block] = []
        if not (self.modal_cycles and state.cycle == definition):
            blocks += definition.blocks()
        state.cycle = definition
        if line.has("X") or line.has("Y"):
            blocks.append(self._point_call(line, state))
        return blocks

    def _point_call(self, line: Line, state: _State) -> Block:
        for a in ("X", "Y"):
            if line.has(a):
                state.position[a] = line.get(a)
        state.position["Z"] = None   # cycles retract to the clearance plane
        xy = {a: state.position[a] for a in ("X", "Y") if state.position[a] is not None}
        return Block(BlockKind.POINT_CALL, f"L {format_coords(xy)} R0 FMAX M99")

    def _misc(self, line: Line, state: _State) -> list[Block]:
        blocks: list[Block] = []
        speed = line.get("S")

        if line.has_m(6) and line.has("T"):
            state.tool = int(line.get("T"))
            blocks.append(Block(
                BlockKind.TOOL_CALL,
                f"TOOL CALL {state.tool} Z S{num(speed) if speed is not None else 0}",
            ))
        elif line.has_m(3, 4):
            rotation = "M4" if line.has_m(4) else "M3"
            if speed is not None:
                blocks.append(Block(BlockKind.TOOL_CALL, f"TOOL CALL {state.tool} Z S{num(speed)}"))
            blocks.append(Block(BlockKind.MISC, rotation))

        if line.has_m(5):
            blocks.append(Block(BlockKind.MISC, "M5"))
        if line.has_m(7, 8):
            blocks.append(Block(BlockKind.MISC, "M8"))
        if line.has_m(9):
            blocks.append(Block(BlockKind.MISC, "M9"))
        if line.has_m(30, 2):
            if state.compensation is not None:
                blocks.append(Block(BlockKind.MISC, state.compensation))
                state.compensation = None
            blocks.append(Block(BlockKind.END, "L Z+100 R0 FMAX M2"))
        return blocks


def translate_to_heidenhain(code: str, step: int = 1) -> str:
    """Translate *code* with default settings and render it numbered by *step*."""
    return HeidenhainTranslator().translate(code).renumbered(step=step).render()


# ---- optional passes -------------------------------------------------------


def apply_tcpm(program: HeidenhainProgram) -> HeidenhainProgram:
    """Enable TCPM before the first rapid after a TOOL CALL, reset it at the end."""
    blocks = program.blocks
    directives: list[Directive[Block]] = []
    on = Block(BlockKind.FUNCTION, TCPM_ON)
    off = Block(BlockKind.FUNCTION, TCPM_OFF)

    first_tool_call = None
    anchor = None
    for i, block in enumerate(blocks):
        if block.kind is BlockKind.TOOL_CALL:
            if first_tool_call is None:
                first_tool_call = i
        elif first_tool_call is not None and RAPID_BLOCK.match(block.text):
            anchor = i
            break

    if anchor is not None:
        directives.append(insert_before(anchor, [on]))
    elif first_tool_call is not None:
        directives.append(insert_after(first_tool_call, [on]))

    end = program.index_of_last(BlockKind.END)
    if end is None:
        end = len(blocks) - 1   # END PGM
    directives.append(insert_before(end, [off]))

    return program.with_blocks(apply_directives(blocks, directives))


def apply_function_blocks(program: HeidenhainProgram) -> tuple[HeidenhainProgram, int]:
    """Move runs of two or more cycle point calls into labelled subprograms.

    Returns the new program and the number of subprograms created.
    """
    blocks = program.blocks
    body: list[Block] = []
    subprograms: list[Block] = []
    label = 1
    i = 0
    while i < len(blocks):
        block = blocks[i]
        if block.kind is BlockKind.CYCLE_DEF:
            j = i + 1
            while j < len(blocks) and blocks[j].kind is BlockKind.CYCLE_PARAM:
                j += 1
            k = j
            while k < len(blocks) and blocks[k].kind is BlockKind.POINT_CALL:
                k += 1
            if k - j >= 2:
                body.extend(blocks[i:j])
                body.append(Block(BlockKind.LABEL, f"CALL LBL {label}"))
                subprograms.append(Block(BlockKind.LABEL, f"LBL {label}"))
                subprograms.extend(replace(b, number=None) for b in blocks[j:k])
                subprograms.append(Block(BlockKind.LABEL, "LBL 0"))
                label += 1
                i = k
                continue
        body.append(block)
        i += 1

    if not subprograms:
        return program, 0

    # Subprograms follow the program end block
    end = next((n for n in range(len(body) - 1, -1, -1)
                if body[n].kind is BlockKind.END), None)
    directive = (insert_after(end, subprograms) if end is not None
                 else insert_before(len(body) - 1, subprograms))
    return program.with_blocks(apply_directives(body, [directive])), label - 1


# ---- path ------------------------------------------------------------------


def process_heidenhain(
    code: str,
    options: OptimizationOptions,
    profile: ControllerProfile,
) -> OptimizationResult:
    hh = options.heidenhain
    translator = HeidenhainTranslator(
        modal_cycles=hh.use_cycle_define,
        polar_full_circles=hh.use_conversational_format,
    )
    program = translator.translate(code)
    improvements = ["Converted to Heidenhain format"]

    if hh.use_conversational_format:
        improvements.append("Applied Heidenhain conversational format")
    if hh.use_tcp or options.use_tcp_mode:
        program = apply_tcpm(program)
        improvements.append("Added TCPM support for advanced machining")
    if hh.use_function_blocks:
        program, created = apply_function_blocks(program)
        if created:
            improvements.append("Optimized with function blocks to reduce program complexity")
    if hh.use_cycle_define:
        improvements.append("Optimized machining cycles")

    program = program.renumbered(step=RENUMBER_STEP)
    improvements.append("Applied advanced Heidenhain optimizations")

    processed = program.render()
    validation = validate_heidenhain_program(processed)
    stats = OptimizationStats.measure(code, processed, HEIDENHAIN_TIME_FACTOR)
    skipped = program.unconverted
    if skipped:
        stats.minor_warnings.append(
            f"{len(skipped)} line(s) could not be converted and were kept as comments"
        )

    logger.info(
        "%s: %d -> %d lines", profile.display_name,
        stats.original_lines, stats.optimized_lines,
    )
    return OptimizationResult(
        code=processed,
        improvements=improvements,
        stats=stats,
        validation=ProgramValidation.from_result(validation),
    )
