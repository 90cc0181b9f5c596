from __future__ import annotations
"""
One swipe transaction, start to finish.

States: ``idle`` -> ``dragging`` -> ``committed`` | ``cancelled`` -> ``idle``.
A commit pops the head, bumps the tally, fires the decision at the sink
without waiting for it, then asks for a render.  A remote failure never
undoes any of that; it only turns into a toast.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Union

from loguru import logger

from .candidate import Candidate
from .client import DecisionSink, PortalError
from .config import MSG_ACCEPTED, MSG_PERSIST_FAILED, MSG_REJECTED, TALLY_LOG_EVERY
from .gesture import DragTransform, GestureError, GestureOutcome, GestureTracker, Point
from .lifetime import Lifetime
from .notify import NotificationCenter
from .stack import CardStack


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"

    @property
    def direction(self) -> str:
        """Wire name used by the preferences endpoint."""
        return "right" if self is Decision.ACCEPT else "left"

    @classmethod
    def from_outcome(cls, outcome: GestureOutcome) -> "Decision":
        if outcome is GestureOutcome.COMMIT_RIGHT:
            return cls.ACCEPT
        if outcome is GestureOutcome.COMMIT_LEFT:
            return cls.REJECT
        raise ValueError(f"{outcome.value} does not carry a decision")

    @classmethod
    def from_direction(cls, direction: str) -> "Decision":
        if direction == "right":
            return cls.ACCEPT
        if direction == "left":
            return cls.REJECT
        raise ValueError(f"Unknown swipe direction: {direction!r}")


@dataclass
class DecisionTally:
    accepted: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.accepted + self.rejected

    @property
    def accept_rate(self) -> int:
        """Accepted share as a rounded percentage; 0 before any decision."""
        if self.total == 0:
            return 0
        return round(self.accepted * 100 / self.total)

    def record(self, decision: Decision) -> None:
        if decision is Decision.ACCEPT:
            self.accepted += 1
        else:
            self.rejected += 1

    def reset(self) -> None:
        self.accepted = 0
        self.rejected = 0


class SwipeState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


_ALLOWED: Dict[SwipeState, FrozenSet[SwipeState]] = {
    SwipeState.IDLE: frozenset({SwipeState.DRAGGING, SwipeState.COMMITTED}),
    SwipeState.DRAGGING: frozenset({SwipeState.COMMITTED, SwipeState.CANCELLED}),
    SwipeState.COMMITTED: frozenset({SwipeState.IDLE}),
    SwipeState.CANCELLED: frozenset({SwipeState.IDLE}),
}


@dataclass(frozen=True)
class SwipeResult:
    outcome: GestureOutcome
    candidate: Optional[Candidate] = None
    decision: Optional[Decision] = None


CommitHook = Callable[[Candidate, Decision], None]


class SwipeDecisionEngine:
    def __init__(
        self,
        stack: CardStack,
        tracker: GestureTracker,
        sink: DecisionSink,
        *,
        tally: Optional[DecisionTally] = None,
        notifications: Optional[NotificationCenter] = None,
        lifetime: Optional[Lifetime] = None,
        on_commit: Optional[CommitHook] = None,
        on_render: Optional[Callable[[], None]] = None,
    ) -> None:
        self.stack = stack
        self.tracker = tracker
        self.sink = sink
        self.tally = tally if tally is not None else DecisionTally()
        self.notifications = notifications if notifications is not None else NotificationCenter()
        self.lifetime = lifetime if lifetime is not None else Lifetime()
        self.on_commit = on_commit
        self.on_render = on_render
        self.state = SwipeState.IDLE

    def _transition(self, new: SwipeState) -> None:
        if new not in _ALLOWED[self.state]:
            raise GestureError(f"Illegal swipe transition {self.state.value} -> {new.value}")
        self.state = new

    # --- gesture callbacks -------------------------------------------------

    def begin(self, origin: Point, candidate_id: Optional[str] = None) -> None:
        if self.state is not SwipeState.IDLE:
            raise GestureError(f"Cannot begin a drag while {self.state.value}")
        head = self.stack.head()
        if head.is_empty:
            raise GestureError("Nothing to drag: the stack is empty")
        head_id = head.candidate.id
        self.tracker.begin(origin, candidate_id or head_id, head_id)
        self._transition(SwipeState.DRAGGING)

    def update(self, point: Point) -> DragTransform:
        if self.state is not SwipeState.DRAGGING:
            raise GestureError("update() outside of a drag")
        return self.tracker.update(point)

    def end(self) -> SwipeResult:
        if self.state is not SwipeState.DRAGGING:
            raise GestureError("end() outside of a drag")
        outcome = self.tracker.end()
        if not outcome.committed:
            self._transition(SwipeState.CANCELLED)
            self._render()
            self._transition(SwipeState.IDLE)
            return SwipeResult(outcome)
        decision = Decision.from_outcome(outcome)
        self._transition(SwipeState.COMMITTED)
        candidate = self._commit(decision)
        return SwipeResult(outcome, candidate, decision)

    def decide(self, choice: Union[Decision, str], candidate_id: Optional[str] = None) -> Optional[SwipeResult]:
        """
        Pass / Save buttons: commit on the head without a drag.
        A ``candidate_id`` that is not the current head is refused.
        """
        decision = choice if isinstance(choice, Decision) else Decision.from_direction(choice)
        if self.state is not SwipeState.IDLE:
            raise GestureError(f"Cannot decide while {self.state.value}")
        head = self.stack.head()
        if head.is_empty:
            if candidate_id is not None:
                raise GestureError(f"Card {candidate_id!r} is no longer in the stack")
            return None
        if candidate_id is not None and candidate_id != head.candidate.id:
            raise GestureError(f"Card {candidate_id!r} is not the interactive head")
        self._transition(SwipeState.COMMITTED)
        candidate = self._commit(decision)
        outcome = GestureOutcome.COMMIT_RIGHT if decision is Decision.ACCEPT else GestureOutcome.COMMIT_LEFT
        return SwipeResult(outcome, candidate, decision)

    def abort_drag(self) -> bool:
        """Drop an in-progress drag without a decision (the stack under it changed)."""
        if self.state is not SwipeState.DRAGGING:
            return False
        self.tracker.abort()
        self._transition(SwipeState.CANCELLED)
        self._render()
        self._transition(SwipeState.IDLE)
        return True

    # --- commit ------------------------------------------------------------

    def _commit(self, decision: Decision) -> Candidate:
        # EmptyStackError here means the state machine is broken; let it surface
        candidate = self.stack.pop_head()
        self.tally.record(decision)
        logger.info("{} {} ({})", decision.value, candidate.id, candidate.title)
        if self.tally.total % TALLY_LOG_EVERY == 0:
            logger.info(
                "Accepted {}% of decisions ({}/{})",
                self.tally.accept_rate, self.tally.accepted, self.tally.total,
            )
        self.lifetime.spawn(self._persist(candidate.id, decision, self.lifetime.token()))
        if self.on_commit is not None:
            self.on_commit(candidate, decision)
        self._render()
        self._transition(SwipeState.IDLE)
        return candidate

    async def _persist(self, candidate_id: str, decision: Decision, token: int) -> None:
        try:
            await self.sink.record_decision(candidate_id, decision)
        except PortalError as e:
            if not self.lifetime.is_current(token):
                logger.warning("Ignoring late persist failure for {}: {}", candidate_id, e)
                return
            logger.warning("Could not save {} for {}: {}", decision.value, candidate_id, e)
            self.notifications.toast(MSG_PERSIST_FAILED, level="error")
            return
        if not self.lifetime.is_current(token):
            logger.debug("Persist for {} finished after teardown", candidate_id)
            return
        if decision is Decision.ACCEPT:
            self.notifications.toast(MSG_ACCEPTED, level="success")
        else:
            self.notifications.toast(MSG_REJECTED, level="info")

    def _render(self) -> None:
        if self.on_render is not None:
            self.on_render()
