"""Generic post-processing path (Siemens, Mazak, Okuma, generic).

Only portable clean-ups are applied; the program is then labelled with the
controller it was prepared for.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Optional

from ..config.controllers import ControllerProfile
from ..config.options import OptimizationOptions
from ..gcode.modal import ModalState
from ..gcode.tokenizer import AXIS_LETTERS, tokenize_line
from ..gcode.validate import validate_generic_program
from .result import OptimizationResult, OptimizationStats, ProgramValidation

logger = logging.getLogger(__name__)

GENERIC_TIME_FACTOR = 0.01
RAPID_TOLERANCE = 0.001

# Comment lines naming these sections survive comment removal
KEPT_COMMENT_KEYWORDS = ("OPERATION", "SETUP", "BEGIN", "END")
EXISTING_HEADER = re.compile(r"Generated by|Post-processor", re.IGNORECASE)
HEADER_SCAN_LINES = 10
RULE = "; " + "=" * 50

CONSOLIDATED_GROUPS = ("motion", "plane", "units", "distance", "cutter")


def collapse_blank_lines(code: str) -> str:
    """Runs of blank lines shrink to a single blank line."""
    return re.sub(r"\n{3,}", "\n\n", code)


def remove_comments(code: str) -> str:
    out: list[str] = []
    for raw in code.split("\n"):
        stripped = raw.strip()
        if stripped.startswith(";") and any(k in stripped for k in KEPT_COMMENT_KEYWORDS):
            out.append(raw)
            continue
        line = tokenize_line(raw)
        if not line.comment:
            if stripped:
                out.append(raw)
            continue
        bare = line.without_comment()
        if not bare.is_empty_after_edit:
            out.append(bare.render())
    return "\n".join(out)


def drop_null_rapids(code: str) -> str:
    """Remove G0 lines that move less than the tolerance on every axis."""
    position: dict[str, Optional[float]] = {a: None for a in AXIS_LETTERS}
    out: list[str] = []
    for raw in code.split("\n"):
        line = tokenize_line(raw)
        axes = line.axes()
        if line.has_g(0) and all(w.letter in AXIS_LETTERS or w.is_code("G", 0) for w in line.words):
            moved = any(
                position[a] is None or abs(v - position[a]) > RAPID_TOLERANCE
                for a, v in axes.items()
            )
            position.update(axes)
            if not moved:
                continue
        else:
            position.update(axes)
        out.append(raw)
    return "\n".join(out)


def consolidate_gcodes(code: str) -> str:
    """Drop modal G words already in effect."""
    modal = ModalState(CONSOLIDATED_GROUPS)
    out: list[str] = []
    for raw in code.split("\n"):
        line = tokenize_line(raw)
        if not line.words:
            out.append(raw)
            continue
        line, count = modal.elide(line)
        if count and line.is_empty_after_edit:
            continue
        out.append(line.render() if count else raw)
    return "\n".join(out)


def label_controller(code: str, controller_name: str, today: Optional[date] = None) -> str:
    """Name the target controller in the program header.

    Programs without a recognisable header get a ``%`` header block; an
    existing header gets a ``; Controller:`` line after its banner line.
    """
    lines = code.split("\n")
    for i, raw in enumerate(lines[:HEADER_SCAN_LINES]):
        if EXISTING_HEADER.search(raw):
            return "\n".join([*lines[: i + 1], f"; Controller: {controller_name}", *lines[i + 1:]])

    stamp = (today or date.today()).isoformat()
    header = [
        "%",
        RULE,
        "; G-code prepared by the cncpost post-processor",
        f"; Controller: {controller_name}",
        f"; Date: {stamp}",
        RULE,
        "",
    ]
    return "\n".join(header) + "\n" + code


def process_generic(
    code: str,
    options: OptimizationOptions,
    profile: ControllerProfile,
    today: Optional[date] = None,
) -> OptimizationResult:
    processed = code
    improvements: list[str] = []

    if options.remove_empty_lines:
        processed = collapse_blank_lines(processed)
        improvements.append("Removed excess blank lines")
    if options.remove_comments:
        processed = remove_comments(processed)
        improvements.append("Removed comments")
    if options.optimize_rapid_moves:
        processed = drop_null_rapids(processed)
        improvements.append("Optimized rapid moves")
    if options.consolidate_gcodes:
        processed = consolidate_gcodes(processed)
        improvements.append("Consolidated redundant G-codes")

    processed = label_controller(processed, profile.display_name, today)
    validation = validate_generic_program(processed)
    stats = OptimizationStats.measure(code, processed, GENERIC_TIME_FACTOR)

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
