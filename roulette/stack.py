from __future__ import annotations
"""
Ordered queue of candidates awaiting a decision.

Order is FIFO: first fetched, first shown.  Only the head is interactive;
everything else in :meth:`CardStack.visible_window` is backdrop.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple, Union

from loguru import logger

from .candidate import Candidate


class EmptyStackError(IndexError):
    """pop_head() on an empty stack."""


@dataclass(frozen=True)
class Head:
    candidate: Candidate

    @property
    def is_empty(self) -> bool:
        return False


@dataclass(frozen=True)
class Empty:
    @property
    def is_empty(self) -> bool:
        return True


EMPTY = Empty()
HeadResult = Union[Head, Empty]


class CardStack:
    def __init__(self, batch: Iterable[Candidate] = ()) -> None:
        self._items: List[Candidate] = []
        self.append(batch)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, candidate_id: object) -> bool:
        return any(c.id == candidate_id for c in self._items)

    def ids(self) -> List[str]:
        return [c.id for c in self._items]

    def visible_window(self, n: int) -> Tuple[Candidate, ...]:
        return tuple(self._items[:max(0, n)])

    def head(self) -> HeadResult:
        if not self._items:
            return EMPTY
        return Head(self._items[0])

    def pop_head(self) -> Candidate:
        if not self._items:
            raise EmptyStackError("pop_head() on an empty card stack")
        return self._items.pop(0)

    def append(self, batch: Iterable[Candidate]) -> int:
        """
        Add a batch at the tail, keeping its order.
        Ids already in the stack (or repeated within the batch) are skipped.
        Returns the number of candidates actually added.
        """
        seen = {c.id for c in self._items}
        added = 0
        skipped = 0
        for cand in batch:
            if cand.id in seen:
                skipped += 1
                continue
            seen.add(cand.id)
            self._items.append(cand)
            added += 1
        if skipped:
            logger.warning("Skipped {} duplicate candidate(s) on append", skipped)
        return added

    def reset(self, batch: Sequence[Candidate]) -> None:
        """Replace the whole stack; only explicit refresh does this."""
        fresh = CardStack(batch)
        self._items = fresh._items
