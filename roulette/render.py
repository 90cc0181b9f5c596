from __future__ import annotations
"""Per-frame card layers: pure derivation, no business logic."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .candidate import Candidate
from .config import SwipeSettings
from .gesture import IDENTITY, DragTransform


@dataclass(frozen=True)
class CardLayer:
    candidate: Candidate
    index: int
    z_index: int
    interactive: bool
    translate_x: float
    translate_y: float
    rotation: float
    opacity: float
    scale: float
    offset_y: float
    indicator: Optional[str] = None


def stacked_layers(
    window: Sequence[Candidate],
    drag: DragTransform = IDENTITY,
    settings: Optional[SwipeSettings] = None,
) -> List[CardLayer]:
    """
    Lay out the visible window back-to-front style: each card below the
    head is a little smaller, lower and fainter.  Only the head follows
    the drag.
    """
    s = settings or SwipeSettings()
    layers: List[CardLayer] = []
    for i, cand in enumerate(window):
        top = i == 0
        t = drag if top else IDENTITY
        layers.append(
            CardLayer(
                candidate=cand,
                index=i,
                z_index=len(window) - i,
                interactive=top,
                translate_x=t.dx,
                translate_y=t.dy,
                rotation=t.rotation,
                opacity=max(0.0, 1.0 - s.fade_step * i) * t.opacity,
                scale=max(0.0, 1.0 - s.scale_step * i),
                offset_y=s.offset_step * i,
                indicator=t.indicator,
            )
        )
    return layers
