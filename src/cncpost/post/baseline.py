"""Baseline optimizer for address-word G-code.

First stage of the Fanuc path.  It works on tokenized lines and never
changes the machine state a program produces:

- blank lines are dropped, comment lines kept as they are
- G0/G1 moves that go nowhere are dropped when the previous move had the
  same mode and the feed is unchanged
- repeated F and S words are dropped
- repeated modal words (motion, plane, units, cutter compensation, feed
  mode) are dropped
- ``G00``..``G03`` are written ``G0``..``G3``
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..gcode.modal import CANNED_CYCLES, ModalState
from ..gcode.tokenizer import AXIS_LETTERS, Line, Word, tokenize_line
from .result import OptimizationStats

logger = logging.getLogger(__name__)

BASELINE_TIME_FACTOR = 0.01   # seconds saved per removed line

BASELINE_GROUPS = ("motion", "plane", "units", "cutter", "feed_mode")
_POSITIONING_CODES = (28, 30, 53, 92)


@dataclass
class BaselineResult:
    code: str
    improvements: list[str]
    stats: OptimizationStats


class _Notes:
    """Ordered, de-duplicated improvement messages."""

    def __init__(self):
        self.items: list[str] = []

    def add(self, message: str) -> None:
        if message not in self.items:
            self.items.append(message)


def normalize_motion_words(line: Line) -> Line:
    """``G01`` -> ``G1``; other words untouched."""
    changed = False
    words: list[Word] = []
    for w in line.words:
        if w.letter == "G" and w.value in (0, 1, 2, 3) and w.text != str(int(w.value)):
            w = Word.make("G", w.value)
            changed = True
        words.append(w)
    return line.with_words(words) if changed else line


def drop_repeated_word(line: Line, letter: str, last: Optional[float]) -> tuple[Line, bool]:
    """Drop the first *letter* word when it repeats *last*."""
    value = line.get(letter)
    if value is not None and value == last:
        return line.without(lambda w: w.letter == letter, count=1), True
    return line, False


def optimize_baseline(code: str) -> BaselineResult:
    notes = _Notes()
    modal = ModalState(BASELINE_GROUPS)
    position: dict[str, Optional[float]] = {a: None for a in AXIS_LETTERS}
    feed: Optional[float] = None
    speed: Optional[float] = None
    absolute = True
    out: list[str] = []

    for raw in code.split("\n"):
        text = raw.strip()
        if not text:
            continue
        line = tokenize_line(text)
        if not line.words:
            out.append(text)   # comments, "%" and other residue-only lines
            continue

        line = normalize_motion_words(line)
        modified = line.raw != text
        carried = line

        previous_mode = modal.motion
        if line.has_g(90):
            absolute = True
        elif line.has_g(91):
            absolute = False

        mode = previous_mode
        for g in line.g_codes:
            if g in (0, 1, 2, 3) or g in CANNED_CYCLES:
                mode = int(g)

        is_move = (
            mode in (0, 1)
            and (line.motion_code is not None or line.has_axis_words)
            and absolute
            and not line.has_g(*_POSITIONING_CODES)
        )
        if is_move and mode == previous_mode:
            axes = line.axes()
            only_motion = all(
                w.letter in AXIS_LETTERS or w.letter == "F" or w.is_code("G", mode)
                for w in line.words
            )
            unchanged = all(
                position[a] is not None and position[a] == v for a, v in axes.items()
            )
            line_feed = line.get("F")
            if only_motion and unchanged and (line_feed is None or line_feed == feed):
                notes.add("Removed redundant position commands")
                continue

        line, dropped = drop_repeated_word(line, "F", feed)
        if dropped:
            notes.add("Removed redundant feed rate commands")
            modified = True
        line, dropped = drop_repeated_word(line, "S", speed)
        if dropped:
            notes.add("Removed redundant spindle speed commands")
            modified = True

        line, count = modal.elide(line)
        if count:
            notes.add("Removed redundant modal G-codes")
            modified = True

        # State follows the words the line carried before elision
        if carried.get("F") is not None:
            feed = carried.get("F")
        if carried.get("S") is not None:
            speed = carried.get("S")
        if carried.has_axis_words:
            if absolute and mode in (0, 1, 2, 3) and not carried.has_g(*_POSITIONING_CODES):
                position.update(carried.axes())
            else:
                position.update({a: None for a in AXIS_LETTERS})

        if line.is_empty_after_edit:
            continue
        out.append(line.render() if modified else text)

    optimized = "\n".join(out)
    stats = OptimizationStats.measure(code, optimized, BASELINE_TIME_FACTOR)
    logger.debug(
        "Baseline pass: %d -> %d lines", stats.original_lines, stats.optimized_lines
    )
    return BaselineResult(
        code=optimized,
        improvements=notes.items or ["Code is already well optimized"],
        stats=stats,
    )
