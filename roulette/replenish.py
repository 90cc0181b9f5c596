from __future__ import annotations
"""
Keeps the card stack from running dry.

After every commit the visible depth is compared to the watermark; at or
below it one background fetch is started and its batch appended.  Only
one such fetch is ever in flight, extra triggers are coalesced.  A manual
refresh skips the watermark, always fetches, and on success replaces the
stack and zeroes the tally.
"""

import asyncio
from typing import Callable, Optional

from loguru import logger

from .candidate import Candidate
from .client import CandidateSource, PortalError
from .config import MSG_REFRESHED, MSG_REPLENISH_FAILED, SwipeSettings
from .decision import Decision, DecisionTally
from .lifetime import Lifetime
from .notify import BANNER, NotificationCenter
from .stack import CardStack


class ReplenishmentPolicy:
    def __init__(
        self,
        stack: CardStack,
        source: CandidateSource,
        tally: DecisionTally,
        *,
        notifications: Optional[NotificationCenter] = None,
        lifetime: Optional[Lifetime] = None,
        settings: Optional[SwipeSettings] = None,
        on_reset: Optional[Callable[[], None]] = None,
        on_render: Optional[Callable[[], None]] = None,
    ) -> None:
        self.stack = stack
        self.source = source
        self.tally = tally
        self.notifications = notifications if notifications is not None else NotificationCenter()
        self.lifetime = lifetime if lifetime is not None else Lifetime()
        self.settings = settings or SwipeSettings()
        self.on_reset = on_reset
        self.on_render = on_render
        self._inflight: Optional[asyncio.Task] = None
        # bumped by every refresh so an older replenishment cannot land on the new stack
        self._epoch = 0

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def below_watermark(self) -> bool:
        depth = len(self.stack.visible_window(self.settings.visible_window))
        return depth <= self.settings.replenish_watermark

    def on_commit(self, candidate: Candidate, decision: Decision) -> None:
        self.check()

    def check(self) -> Optional[asyncio.Task]:
        if not self.below_watermark():
            return None
        return self.trigger()

    def trigger(self) -> Optional[asyncio.Task]:
        """Start a background fetch unless one is already running."""
        if self.in_flight:
            logger.debug("Replenishment already in flight; coalescing")
            return None
        self._inflight = self.lifetime.spawn(self._replenish(self._epoch, self.lifetime.token()))
        return self._inflight

    async def _replenish(self, epoch: int, token: int) -> None:
        try:
            batch = await self.source.fetch_candidates(self.settings.batch_size)
        except PortalError as e:
            if self._stale(epoch, token):
                return
            logger.warning("Replenishment failed: {}", e)
            self.notifications.banner(MSG_REPLENISH_FAILED)
            self._render()
            return
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None
        if self._stale(epoch, token):
            logger.warning("Discarding replenishment batch of {} that resolved too late", len(batch))
            return
        added = self.stack.append(batch)
        logger.info("Replenished {} candidate(s); stack depth {}", added, len(self.stack))
        self.notifications.clear(BANNER)
        self._render()

    async def refresh(self, announce: bool = True) -> bool:
        """
        Fetch a fresh batch and replace the stack with it.

        Returns False when the fetch failed or was overtaken; the stack is
        then left untouched.
        """
        self._epoch += 1
        epoch, token = self._epoch, self.lifetime.token()
        # an older replenishment stays in flight (and keeps coalescing triggers)
        # until it lands; the epoch check then discards its batch
        try:
            batch = await self.source.fetch_candidates(self.settings.batch_size)
        except PortalError as e:
            if self._stale(epoch, token):
                return False
            logger.warning("Refresh failed: {}", e)
            self.notifications.banner(MSG_REPLENISH_FAILED)
            self._render()
            return False
        if self._stale(epoch, token):
            logger.warning("Discarding refresh batch of {} that resolved too late", len(batch))
            return False
        if self.on_reset is not None:
            self.on_reset()
        self.stack.reset(batch)
        self.tally.reset()
        logger.info("Refreshed stack with {} candidate(s)", len(self.stack))
        self.notifications.clear(BANNER)
        if announce:
            self.notifications.toast(MSG_REFRESHED, level="success")
        self._render()
        return True

    def _stale(self, epoch: int, token: int) -> bool:
        return epoch != self._epoch or not self.lifetime.is_current(token)

    def _render(self) -> None:
        if self.on_render is not None:
            self.on_render()
