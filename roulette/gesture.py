from __future__ import annotations
"""
Pointer / touch tracking for the head card.

A drag is strictly ``begin`` -> any number of ``update`` -> one ``end``.
Nothing outside this module changes while a drag is in progress; the
only thing a drag produces is a transform for rendering and, on release,
a :class:`GestureOutcome`.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from loguru import logger

from .config import SwipeSettings


class GestureError(RuntimeError):
    """Gesture callbacks arrived out of order or for a non-head card."""


class GestureOutcome(str, Enum):
    COMMIT_LEFT = "commit-left"
    COMMIT_RIGHT = "commit-right"
    CANCEL = "cancel"

    @property
    def committed(self) -> bool:
        return self is not GestureOutcome.CANCEL


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class DragTransform:
    """Visual state of the dragged card."""

    dx: float = 0.0
    dy: float = 0.0
    rotation: float = 0.0
    opacity: float = 1.0
    indicator: Optional[str] = None  # "save" | "pass"

    @property
    def is_identity(self) -> bool:
        return self == IDENTITY


IDENTITY = DragTransform()


@dataclass
class DragSession:
    candidate_id: str
    origin: Point
    current: Point
    active: bool = True

    @property
    def dx(self) -> float:
        return self.current.x - self.origin.x

    @property
    def dy(self) -> float:
        return self.current.y - self.origin.y


def classify(dx: float, threshold: float) -> GestureOutcome:
    """Threshold is inclusive; direction follows the sign of dx."""
    if abs(dx) >= threshold:
        return GestureOutcome.COMMIT_RIGHT if dx > 0 else GestureOutcome.COMMIT_LEFT
    return GestureOutcome.CANCEL


class GestureTracker:
    def __init__(self, settings: Optional[SwipeSettings] = None) -> None:
        self.settings = settings or SwipeSettings()
        self._session: Optional[DragSession] = None

    @property
    def active(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    def begin(self, origin: Point, candidate_id: str, head_id: Optional[str]) -> DragSession:
        if self.active:
            raise GestureError("A drag is already in progress")
        if head_id is None or candidate_id != head_id:
            raise GestureError(f"Card {candidate_id!r} is not the interactive head")
        self._session = DragSession(candidate_id=candidate_id, origin=origin, current=origin)
        logger.debug("Drag started on {} at ({}, {})", candidate_id, origin.x, origin.y)
        return self._session

    def update(self, point: Point) -> DragTransform:
        if not self.active:
            raise GestureError("update() without an active drag")
        self._session.current = point
        return self.transform

    @property
    def transform(self) -> DragTransform:
        """Current transform; identity whenever no drag is active."""
        if not self.active:
            return IDENTITY
        s = self.settings
        dx, dy = self._session.dx, self._session.dy
        opacity = max(s.opacity_floor, 1.0 - abs(dx) / s.opacity_falloff)
        indicator = None
        if abs(dx) >= s.indicator_min_dx and dx != 0:
            indicator = "save" if dx > 0 else "pass"
        return DragTransform(
            dx=dx,
            dy=dy,
            rotation=dx * s.rotation_factor,
            opacity=opacity,
            indicator=indicator,
        )

    def abort(self) -> None:
        if self._session is not None:
            logger.debug("Drag on {} aborted", self._session.candidate_id)
            self._session.active = False
        self._session = None

    def end(self) -> GestureOutcome:
        if not self.active:
            raise GestureError("end() without an active drag")
        session = self._session
        # the session never outlives its gesture
        session.active = False
        self._session = None
        outcome = classify(session.dx, self.settings.commit_threshold)
        logger.debug("Drag on {} ended: dx={} -> {}", session.candidate_id, session.dx, outcome.value)
        return outcome
