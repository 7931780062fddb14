"""Insertion directives applied to a line list in a single pass.

Transforms that add blocks (high-speed mode, TCPM) describe *where* to
insert relative to indices of the unmodified input; ``apply_directives``
then builds the new list once.  Anchors always refer to the original
indices, so several insertions never shift each other.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, Sequence, TypeVar

T = TypeVar("T")


class Placement(Enum):
    BEFORE = "before"
    AFTER = "after"
    END = "end"


@dataclass(frozen=True)
class Directive(Generic[T]):
    placement: Placement
    anchor: int          # index into the original sequence; ignored for END
    items: tuple[T, ...]


def insert_before(anchor: int, items: Iterable[T]) -> Directive[T]:
    return Directive(Placement.BEFORE, anchor, tuple(items))


def insert_after(anchor: int, items: Iterable[T]) -> Directive[T]:
    return Directive(Placement.AFTER, anchor, tuple(items))


def append(items: Iterable[T]) -> Directive[T]:
    return Directive(Placement.END, -1, tuple(items))


def apply_directives(source: Sequence[T], directives: Iterable[Directive[T]]) -> list[T]:
    """Return a new list with every directive applied.

    Directives sharing an anchor and placement keep their given order.
    """
    before: dict[int, list[T]] = defaultdict(list)
    after: dict[int, list[T]] = defaultdict(list)
    tail: list[T] = []

    for d in directives:
        if d.placement is Placement.END:
            tail.extend(d.items)
            continue
        if not 0 <= d.anchor < len(source):
            raise IndexError(
                f"Directive anchor {d.anchor} outside 0..{len(source) - 1}"
            )
        target = before if d.placement is Placement.BEFORE else after
        target[d.anchor].extend(d.items)

    out: list[T] = []
    for i, item in enumerate(source):
        out.extend(before.get(i, ()))
        out.append(item)
        out.extend(after.get(i, ()))
    out.extend(tail)
    return out
