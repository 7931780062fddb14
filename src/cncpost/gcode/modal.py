"""Modal G-code groups and a tracker for eliding repeated modal words."""

from __future__ import annotations

from typing import Iterable, Optional

from .tokenizer import Line, Word

# Canned cycles share the motion group: they replace G0-G3 until G80
CANNED_CYCLES: tuple[int, ...] = tuple(range(80, 90))

MODAL_GROUPS: dict[str, tuple[int, ...]] = {
    "motion": (0, 1, 2, 3, *CANNED_CYCLES),
    "plane": (17, 18, 19),
    "units": (20, 21),
    "distance": (90, 91),
    "cutter": (40, 41, 42),
    "feed_mode": (94, 95),
}


def group_of(code: float) -> Optional[str]:
    for name, codes in MODAL_GROUPS.items():
        if code in codes:
            return name
    return None


class ModalState:
    """Active G code per modal group, fed one line at a time.

    Only groups listed in *groups* are tracked.  ``elide`` drops G words
    that repeat the active code of their group; *elidable* restricts which
    codes may be dropped (canned cycles are never dropped by default, but
    still change the active motion mode).
    """

    def __init__(
        self,
        groups: Iterable[str] = tuple(MODAL_GROUPS),
        elidable: Optional[Iterable[int]] = None,
    ):
        self.groups = frozenset(groups)
        unknown = self.groups - MODAL_GROUPS.keys()
        if unknown:
            raise ValueError(f"Unknown modal group(s): {', '.join(sorted(unknown))}")
        self.elidable = (
            frozenset(elidable) if elidable is not None
            else frozenset(c for g in MODAL_GROUPS.values() for c in g) - set(CANNED_CYCLES)
        )
        self.active: dict[str, float] = {}

    def elide(self, line: Line) -> tuple[Line, int]:
        """Return *line* without repeated modal words, and how many were dropped."""
        kept: list[Word] = []
        dropped = 0
        for w in line.words:
            group = group_of(w.value) if w.letter == "G" else None
            if group in self.groups:
                if self.active.get(group) == w.value and w.value in self.elidable:
                    dropped += 1
                    continue
                self.active[group] = w.value
            kept.append(w)
        if not dropped:
            return line, 0
        return line.with_words(kept), dropped

    def observe(self, line: Line) -> None:
        """Record the line's modal words without changing it."""
        for w in line.words:
            group = group_of(w.value) if w.letter == "G" else None
            if group in self.groups:
                self.active[group] = w.value

    @property
    def motion(self) -> Optional[int]:
        value = self.active.get("motion")
        return int(value) if value is not None else None
