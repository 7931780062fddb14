"""Line tokenizer for address-word G-code.

Each line is split into typed ``Word`` tokens (letter + numeric value) and a
trailing comment.  Optimization passes match and rewrite tokens instead of
raw substrings, so ``G17`` is never mistaken for ``G1`` and ``G00`` is the
same command as ``G0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Optional

WORD_PATTERN = re.compile(r"([A-Za-z])\s*([+-]?(?:\d+\.?\d*|\.\d+))")
COMMENT_PATTERN = re.compile(r";.*$|\([^)]*\)")

MOTION_CODES = (0, 1, 2, 3)
AXIS_LETTERS = ("X", "Y", "Z")


@dataclass(frozen=True)
class Word:
    """One address word such as ``G1`` or ``X-12.500``."""
    letter: str
    value: float
    text: str   # numeric part as written

    def __str__(self) -> str:
        return f"{self.letter}{self.text}"

    @classmethod
    def make(cls, letter: str, value: float, text: Optional[str] = None) -> Word:
        if text is None:
            text = str(int(value)) if float(value).is_integer() else repr(float(value))
        return cls(letter.upper(), float(value), text)

    def is_code(self, letter: str, value: float) -> bool:
        return self.letter == letter and self.value == value


@dataclass
class Line:
    """A tokenized program line."""
    raw: str
    words: list[Word] = field(default_factory=list)
    comment: str = ""
    residue: str = ""   # non-word text outside comments, e.g. "%"

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def is_blank(self) -> bool:
        return self.raw.strip() == ""

    @property
    def is_comment(self) -> bool:
        """True for lines holding nothing but a comment."""
        return not self.words and not self.residue and bool(self.comment)

    @property
    def code_text(self) -> str:
        """The line without its comment, stripped."""
        return COMMENT_PATTERN.sub("", self.raw).strip()

    def values(self, letter: str) -> list[float]:
        return [w.value for w in self.words if w.letter == letter]

    def get(self, letter: str) -> Optional[float]:
        """Value of the first *letter* word, or None."""
        for w in self.words:
            if w.letter == letter:
                return w.value
        return None

    def has(self, letter: str) -> bool:
        return any(w.letter == letter for w in self.words)

    def has_g(self, *codes: float) -> bool:
        return any(w.letter == "G" and w.value in codes for w in self.words)

    def has_m(self, *codes: float) -> bool:
        return any(w.letter == "M" and w.value in codes for w in self.words)

    @property
    def g_codes(self) -> list[float]:
        return self.values("G")

    @property
    def motion_code(self) -> Optional[int]:
        """The G0-G3 word on this line, if any."""
        for w in self.words:
            if w.letter == "G" and w.value in MOTION_CODES:
                return int(w.value)
        return None

    @property
    def has_axis_words(self) -> bool:
        return any(w.letter in AXIS_LETTERS for w in self.words)

    def axes(self) -> dict[str, float]:
        """X/Y/Z values present on the line."""
        return {w.letter: w.value for w in self.words if w.letter in AXIS_LETTERS}

    # ------------------------------------------------------------------
    # Rewriting (returns new Line objects)
    # ------------------------------------------------------------------

    def without(self, predicate: Callable[[Word], bool], count: int = 0) -> Line:
        """Drop words matching *predicate* (the first *count* only, if > 0)."""
        kept: list[Word] = []
        dropped = 0
        for w in self.words:
            if predicate(w) and (count <= 0 or dropped < count):
                dropped += 1
                continue
            kept.append(w)
        return replace(self, words=kept, raw=_render(kept, self.residue, self.comment))

    def with_words(self, words: Iterable[Word]) -> Line:
        words = list(words)
        return replace(self, words=words, raw=_render(words, self.residue, self.comment))

    def appended(self, word: Word) -> Line:
        return self.with_words([*self.words, word])

    def without_comment(self) -> Line:
        return replace(self, comment="", raw=_render(self.words, self.residue, ""))

    def render(self) -> str:
        return self.raw

    @property
    def is_empty_after_edit(self) -> bool:
        return not self.words and not self.residue and not self.comment


def _render(words: list[Word], residue: str, comment: str) -> str:
    parts = [str(w) for w in words]
    if residue:
        parts.append(residue)
    if comment:
        parts.append(comment)
    return " ".join(parts)


def tokenize_line(raw: str) -> Line:
    """Split *raw* into words, comment and residue."""
    comments = [m.group(0) for m in COMMENT_PATTERN.finditer(raw)]
    code = COMMENT_PATTERN.sub(" ", raw)

    words: list[Word] = []
    residue: list[str] = []
    pos = 0
    for m in WORD_PATTERN.finditer(code):
        gap = code[pos:m.start()].strip()
        if gap:
            residue.append(gap)
        words.append(Word(m.group(1).upper(), float(m.group(2)), m.group(2)))
        pos = m.end()
    tail = code[pos:].strip()
    if tail:
        residue.append(tail)

    return Line(raw=raw, words=words, comment=" ".join(comments), residue=" ".join(residue))


def tokenize(code: str) -> list[Line]:
    return [tokenize_line(raw) for raw in code.split("\n")]
