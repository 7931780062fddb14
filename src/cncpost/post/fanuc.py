"""Fanuc post-processing path.

Baseline optimizer first, then the Fanuc-specific layers: high-speed mode
blocks, corner rounding and the advanced modal/decimal pass.  Haas
programs take the same path.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..config.controllers import ControllerProfile
from ..config.options import FanucOptions, OptimizationOptions
from ..gcode.modal import CANNED_CYCLES, ModalState
from ..gcode.tokenizer import AXIS_LETTERS, Line, Word, tokenize, tokenize_line
from ..gcode.validate import validate_fanuc_program
from .baseline import drop_repeated_word, optimize_baseline
from .directives import Directive, append, apply_directives, insert_after, insert_before
from .result import OptimizationResult, OptimizationStats, ProgramValidation

logger = logging.getLogger(__name__)

# Fixed corner radius appended to in-plane G1 corners
CORNER_RADIUS = 0.5
# Advanced optimizations are credited with 20% on top of the baseline estimate
ADVANCED_TIME_BONUS = 1.2

SECTION_END = "; -----------------------------------------"
TRAILING_ZERO_DECIMAL = re.compile(r"^([+-]?\d+)\.0+$")


# ---- high-speed mode -------------------------------------------------------


def high_speed_activation(fanuc: FanucOptions) -> list[str]:
    block = ["; ----- High-speed mode on -----", ""]
    if fanuc.use_ai:
        block.append("G05.1 Q1 ; AI contour control on")
    if fanuc.use_nano_smoothing:
        block.append("G05.1 Q3 ; Nano smoothing on")
    if fanuc.use_high_precision_mode:
        block.append("G61.1 ; Exact stop mode")
    else:
        block.append("G64 P0.05 ; Cutting mode, 0.05mm blending tolerance")
    block += [SECTION_END, ""]
    return block


def high_speed_deactivation(fanuc: FanucOptions) -> list[str]:
    block = ["; ----- High-speed mode off -----"]
    if fanuc.use_ai:
        block.append("G05.1 Q0 ; AI contour control off")
    if fanuc.use_nano_smoothing:
        block.append("G05.1 Q0 ; Nano smoothing off")
    block += ["G64 ; Normal cutting mode", SECTION_END]
    return block


def _setup_anchor(lines: list[Line]) -> Optional[int]:
    """Index of the last G90/G21/G17 line before the first G0/G1 move."""
    anchor = None
    for i, line in enumerate(lines):
        if line.has_g(0, 1):
            break
        if line.has_g(90, 21, 17):
            anchor = i
    return anchor


def _end_anchor(lines: list[Line]) -> Optional[int]:
    for i in range(len(lines) - 1, -1, -1):
        if lines[i].has_m(30, 2):
            return i
    return None


def apply_high_speed_mode(code: str, fanuc: FanucOptions) -> str:
    raw = code.split("\n")
    lines = tokenize(code)
    directives: list[Directive[str]] = []

    anchor = _setup_anchor(lines)
    on_block = high_speed_activation(fanuc)
    if anchor is None:
        directives.append(insert_before(0, on_block))
    else:
        directives.append(insert_after(anchor, on_block))

    end = _end_anchor(lines)
    off_block = high_speed_deactivation(fanuc)
    if end is None:
        directives.append(append(["", *off_block]))
    else:
        directives.append(insert_before(end, off_block))

    return "\n".join(apply_directives(raw, directives))


# ---- corner rounding -------------------------------------------------------


def apply_corner_rounding(code: str) -> str:
    """Append ``R0.5`` to a G1 move followed by a G1 that turns in XY."""
    raw = code.split("\n")
    lines = tokenize(code)

    # Motion mode and absolute position after each line
    modes: list[Optional[int]] = []
    positions: list[dict[str, Optional[float]]] = []
    mode: Optional[int] = None
    pos: dict[str, Optional[float]] = {a: None for a in AXIS_LETTERS}
    for line in lines:
        for g in line.g_codes:
            if g in (0, 1, 2, 3) or g in CANNED_CYCLES:
                mode = int(g)
        pos = {**pos, **line.axes()}
        modes.append(mode)
        positions.append(pos)

    def is_feed_move(i: int) -> bool:
        return modes[i] == 1 and lines[i].has_axis_words

    out = list(raw)
    rounded = 0
    for i in range(len(lines) - 1):
        if not (is_feed_move(i) and is_feed_move(i + 1)) or lines[i].has("R"):
            continue
        here, there = positions[i], positions[i + 1]
        if any(here[a] is None or there[a] is None for a in ("X", "Y")):
            continue
        if here["X"] != there["X"] and here["Y"] != there["Y"] and here["Z"] == there["Z"]:
            line = lines[i].appended(Word.make("R", CORNER_RADIUS))
            text = line.render()
            if not line.comment:
                text += " ; Corner rounding"
            out[i] = text
            rounded += 1

    logger.debug("Corner rounding applied to %d move(s)", rounded)
    return "\n".join(out)


# ---- advanced pass ---------------------------------------------------------


def strip_trailing_zeros(line: Line) -> tuple[Line, bool]:
    """``X10.000`` -> ``X10``; comments are not touched."""
    changed = False
    words: list[Word] = []
    for w in line.words:
        m = TRAILING_ZERO_DECIMAL.match(w.text)
        if m:
            w = Word(w.letter, w.value, m.group(1))
            changed = True
        words.append(w)
    return (line.with_words(words), True) if changed else (line, False)


def apply_advanced_pass(code: str, options: OptimizationOptions) -> str:
    fanuc = options.fanuc
    modal = ModalState(("motion",), elidable=(0, 1)) if fanuc.use_modal_gcodes else None
    feed: Optional[float] = None
    speed: Optional[float] = None
    out: list[str] = []

    for raw in code.split("\n"):
        text = raw.strip()
        line = tokenize_line(text)
        if not line.words:
            out.append(text)
            continue

        carried = line
        modified = False
        if modal is not None:
            line, count = modal.elide(line)
            modified |= count > 0
        if options.optimize_feedrates:
            line, dropped_f = drop_repeated_word(line, "F", feed)
            line, dropped_s = drop_repeated_word(line, "S", speed)
            modified |= dropped_f or dropped_s
            if carried.get("F") is not None:
                feed = carried.get("F")
            if carried.get("S") is not None:
                speed = carried.get("S")
        if fanuc.use_decimal_format:
            line, stripped = strip_trailing_zeros(line)
            modified |= stripped

        if line.is_empty_after_edit:
            continue
        out.append(line.render() if modified else text)

    return "\n".join(out)


# ---- path ------------------------------------------------------------------


def process_fanuc(
    code: str,
    options: OptimizationOptions,
    profile: ControllerProfile,
) -> OptimizationResult:
    fanuc = options.fanuc
    baseline = optimize_baseline(code)
    processed = baseline.code
    improvements = list(baseline.improvements)

    if options.use_high_speed_mode:
        processed = apply_high_speed_mode(processed, fanuc)
        improvements.append("Applied high-speed mode (AICC/Nano Smoothing)")
        if fanuc.use_ai:
            improvements.append("Applied AI contour control for smoother motion")

    if fanuc.use_corner_rounding:
        processed = apply_corner_rounding(processed)
        improvements.append("Rounded corners for smoother machining")

    processed = apply_advanced_pass(processed, options)
    validation = validate_fanuc_program(processed)

    stats = OptimizationStats.measure(code, processed, time_factor=0.0)
    stats.estimated_time_reduction = (
        baseline.stats.estimated_time_reduction * ADVANCED_TIME_BONUS
    )

    if profile.adaptation_note:
        improvements.append(profile.adaptation_note)

    logger.info(
        "%s: %d -> %d lines (%s%%)",
        profile.display_name, stats.original_lines, stats.optimized_lines,
        stats.reduction_percent,
    )
    return OptimizationResult(
        code=processed,
        improvements=improvements,
        stats=stats,
        validation=ProgramValidation.from_result(validation),
    )
