from __future__ import annotations
"""
The swipe session: one object owning the stack, the tally and the
in-progress drag, handed to whatever presents it.

Everything here runs on a single event loop.  Gesture callbacks are
synchronous; only the fetch and persist calls suspend, and they do so in
background tasks so the next drag can start before they resolve.
"""

from dataclasses import dataclass
from typing import List, Optional, Union

from loguru import logger

from .client import CandidateSource, DecisionSink
from .config import SwipeSettings
from .decision import Decision, DecisionTally, SwipeDecisionEngine, SwipeResult, SwipeState
from .gesture import DragTransform, GestureError, GestureTracker, Point
from .lifetime import Lifetime
from .notify import Notification, NotificationCenter
from .render import CardLayer, stacked_layers
from .replenish import ReplenishmentPolicy
from .stack import CardStack


@dataclass(frozen=True)
class Frame:
    """Everything the presentation layer needs to draw one frame."""

    state: SwipeState
    layers: List[CardLayer]
    tally: DecisionTally
    notifications: List[Notification]

    @property
    def empty(self) -> bool:
        # empty is a normal state: render "nothing left" with a refresh button
        return not self.layers


class SwipeSession:
    def __init__(
        self,
        source: CandidateSource,
        sink: DecisionSink,
        settings: Optional[SwipeSettings] = None,
    ) -> None:
        self.settings = settings or SwipeSettings()
        self.stack = CardStack()
        self.tally = DecisionTally()
        self.notifications = NotificationCenter()
        self.lifetime = Lifetime()
        self.tracker = GestureTracker(self.settings)
        self.renders = 0
        self.engine = SwipeDecisionEngine(
            self.stack,
            self.tracker,
            sink,
            tally=self.tally,
            notifications=self.notifications,
            lifetime=self.lifetime,
            on_render=self._request_render,
        )
        self.policy = ReplenishmentPolicy(
            self.stack,
            source,
            self.tally,
            notifications=self.notifications,
            lifetime=self.lifetime,
            settings=self.settings,
            on_reset=self.engine.abort_drag,
            on_render=self._request_render,
        )
        self.engine.on_commit = self.policy.on_commit

    def _request_render(self) -> None:
        self.renders += 1

    def _ensure_open(self) -> None:
        if self.lifetime.closed:
            raise GestureError("Session is closed")

    @property
    def state(self) -> SwipeState:
        return self.engine.state

    # --- lifecycle ---------------------------------------------------------

    async def start(self) -> bool:
        """Initial load; same path as a manual refresh, minus the toast."""
        self._ensure_open()
        return await self.policy.refresh(announce=False)

    async def close(self, drain: bool = False) -> None:
        """
        Tear down.  Requests still in flight are not cancelled; whatever
        they return is ignored.
        """
        if self.lifetime.closed:
            return
        self.engine.abort_drag()
        self.lifetime.end()
        logger.info("Swipe session closed ({} decisions)", self.tally.total)
        if drain:
            await self.lifetime.drain()

    # --- presentation callbacks ---------------------------------------------

    def begin(self, x: float, y: float, candidate_id: Optional[str] = None) -> None:
        self._ensure_open()
        self.engine.begin(Point(x, y), candidate_id)

    def update(self, x: float, y: float) -> DragTransform:
        self._ensure_open()
        return self.engine.update(Point(x, y))

    def end(self) -> SwipeResult:
        self._ensure_open()
        return self.engine.end()

    def decide(self, choice: Union[Decision, str], candidate_id: Optional[str] = None) -> Optional[SwipeResult]:
        self._ensure_open()
        return self.engine.decide(choice, candidate_id)

    async def manual_refresh(self) -> bool:
        self._ensure_open()
        logger.info("Manual refresh requested")
        return await self.policy.refresh()

    def dismiss(self, notification_id: int) -> bool:
        return self.notifications.dismiss(notification_id)

    def frame(self) -> Frame:
        window = self.stack.visible_window(self.settings.visible_window)
        return Frame(
            state=self.engine.state,
            layers=stacked_layers(window, self.tracker.transform, self.settings),
            tally=DecisionTally(self.tally.accepted, self.tally.rejected),
            notifications=self.notifications.active(),
        )
