"""Toolpath sanity checks and per-dialect program validation.

Findings are collected as issues rather than raised: an ``error`` means the
program is very likely unusable on the target controller, a ``warning``
flags something suspicious but plausibly intentional.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import numpy as np
import shapely

from ..core.toolpath.base import Toolpath
from .tokenizer import tokenize_line

if TYPE_CHECKING:
    from .generator import GenerationParams

# Fanuc controllers buffer at most this many characters per block
FANUC_MAX_LINE_LENGTH = 128
FANUC_MAX_PROGRAM_LINES = 10_000

MALFORMED_G_WORD = re.compile(r"G\d+\.\d+[^\s\d.]")
HEIDENHAIN_BLOCK = re.compile(
    r"^\d+\s+(?:(?:L|CR|CC|C|CP|CYCL|LBL|CALL|TOOL|FUNCTION|RL|RR|R0|M\d+)\b|Q\d+\s*=)"
)
BLOCK_NUMBER = re.compile(r"^\d+")
INTEGER_PART = re.compile(r"^[+-]?(\d*)")


@dataclass
class ValidationIssue:
    """A single problem found in a toolpath or program."""

    severity: str  # "error" or "warning"
    message: str
    line: Optional[int] = None   # 1-based program line, when applicable


@dataclass
class ValidationResult:
    """Issues found by one validation run."""

    issues: list[ValidationIssue] = field(default_factory=list)

    def error(self, message: str, line: Optional[int] = None) -> None:
        self.issues.append(ValidationIssue("error", message, line))

    def warning(self, message: str, line: Optional[int] = None) -> None:
        self.issues.append(ValidationIssue("warning", message, line))

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        return any(i.severity == "error" for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity == "warning" for i in self.issues)

    @property
    def is_ok(self) -> bool:
        return len(self.issues) == 0


# ---- toolpath checks -------------------------------------------------------


def validate_toolpath(
    toolpath: Toolpath,
    params: Optional[GenerationParams] = None,
) -> ValidationResult:
    """Check *toolpath* and *params* before generating code.

    Checks performed:
    - Every operation has at least one point
    - Stepdown does not exceed the operation depth
    - XY points lie on the workpiece footprint, when a workpiece is known
    - Safe height is above the stock, clearance height above safe height
    """
    result = ValidationResult()

    if not toolpath.operations:
        result.warning("Toolpath has no operations; no motion will be generated")

    for n, op in enumerate(toolpath.operations, start=1):
        label = f"Operation {n} ({op.type.value})"
        if op.is_empty:
            result.error(f"{label} has no points")
            continue

        if op.depth is not None and op.stepdown is not None and op.stepdown > op.depth:
            result.warning(
                f"{label}: stepdown {op.stepdown} exceeds depth {op.depth}"
            )

        if toolpath.workpiece is not None:
            xy = np.asarray([(p.x, p.y) for p in op.points], dtype=float)
            inside = shapely.intersects_xy(toolpath.workpiece.footprint(), xy[:, 0], xy[:, 1])
            outside = int(np.count_nonzero(~inside))
            if outside:
                result.warning(
                    f"{label}: {outside} point(s) outside the "
                    f"{toolpath.workpiece.width} x {toolpath.workpiece.height} workpiece"
                )

    if params is not None:
        if params.safe_height <= 0:
            result.error(f"Safe height {params.safe_height} is not above the stock top")
        if params.clearance_height < params.safe_height:
            result.warning(
                f"Clearance height {params.clearance_height} is below "
                f"safe height {params.safe_height}"
            )

    return result


# ---- program checks --------------------------------------------------------


def validate_fanuc_program(code: str) -> ValidationResult:
    """Static checks for a Fanuc-dialect program."""
    result = ValidationResult()
    lines = code.split("\n")
    has_start = False
    has_end = False

    for n, raw in enumerate(lines, start=1):
        text = raw.strip()
        if len(text) > FANUC_MAX_LINE_LENGTH:
            result.warning(
                f"Line {n} is longer than {FANUC_MAX_LINE_LENGTH} characters ({len(text)})", n
            )
        if text.startswith("%"):
            has_start = True

        line = tokenize_line(text)
        if line.has_m(30, 2):
            has_end = True
        if line.has_g(2, 3) and not any(line.has(a) for a in ("I", "J", "R")):
            result.error(f"Line {n}: arc is missing I/J or R", n)
        if MALFORMED_G_WORD.search(line.code_text):
            result.error(f"Line {n}: malformed G-code word", n)

    if not has_start:
        result.warning("Program has no start marker (%)")
    if not has_end:
        result.warning("Program has no end command (M30/M2)")
    if len(lines) > FANUC_MAX_PROGRAM_LINES:
        result.warning(
            f"Program is very long ({len(lines)} lines) and may exceed controller memory"
        )
    return result


def validate_heidenhain_program(code: str) -> ValidationResult:
    """Static checks for a Heidenhain conversational program."""
    result = ValidationResult()
    has_begin = has_end = has_tool_call = False

    for n, raw in enumerate(code.split("\n"), start=1):
        text = raw.strip()
        if text.startswith("BEGIN PGM"):
            has_begin = True
        if text.startswith("END PGM"):
            has_end = True
        if "TOOL CALL" in text:
            has_tool_call = True
        if BLOCK_NUMBER.match(text) and not HEIDENHAIN_BLOCK.match(text):
            result.warning(f"Line {n}: unrecognised block syntax", n)

    if not has_begin:
        result.error("Missing BEGIN PGM")
    if not has_end:
        result.error("Missing END PGM")
    if not has_tool_call:
        result.warning("No TOOL CALL found")
    return result


def validate_generic_program(code: str) -> ValidationResult:
    """Static checks for portable address-word G-code."""
    result = ValidationResult()

    for n, raw in enumerate(code.split("\n"), start=1):
        line = tokenize_line(raw.strip())
        if not line.words:
            continue
        if line.has_g(0, 1, 2, 3) and not line.has_axis_words:
            result.warning(f"Line {n}: motion command without coordinates", n)
        if line.has_g(2, 3) and not any(line.has(a) for a in ("I", "J", "R")):
            result.error(f"Line {n}: arc without centre or radius", n)
        for word in line.words:
            if word.letter == "G" and len(INTEGER_PART.match(word.text).group(1)) > 3:
                result.error(f"Line {n}: malformed G-code word G{word.text}", n)
    return result
