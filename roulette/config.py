from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


# ---------------------------
# Paths
# ---------------------------

PROJECT_ROOT = Path(__file__).resolve().parents[1]

LOG_DIR = PROJECT_ROOT / "logs"


# ---------------------------
# Gesture tuning
# ---------------------------

COMMIT_THRESHOLD = 100.0   # inclusive, same units as pointer events
ROTATION_FACTOR = 0.1      # degrees of tilt per unit of dx

OPACITY_FLOOR = 0.6
OPACITY_FALLOFF = 200.0    # opacity = max(floor, 1 - |dx| / falloff)

INDICATOR_MIN_DX = 30.0    # SAVE / PASS badge only shows past this


# ---------------------------
# Card stack presentation
# ---------------------------

VISIBLE_WINDOW = 3
SCALE_STEP = 0.05
OFFSET_STEP = 10.0
FADE_STEP = 0.2


# ---------------------------
# Replenishment
# ---------------------------

REPLENISH_WATERMARK = 2
FETCH_BATCH_SIZE = int(os.getenv("ROULETTE_BATCH_SIZE", "10"))


# ---------------------------
# Backend API
# ---------------------------

DEFAULT_API_BASE = "https://smarter-job-portal-backend.onrender.com"
API_BASE_URL = os.getenv("ROULETTE_API_BASE", DEFAULT_API_BASE)
API_TOKEN: Optional[str] = os.getenv("ROULETTE_API_TOKEN") or None

CANDIDATES_PATH = "/api/internships/random"
DECISION_PATH = "/api/preferences/save"

HTTP_TIMEOUT = 10.0
HTTP_USER_AGENT = "internship-roulette/1.0"


# ---------------------------
# Logging / observability
# ---------------------------

TALLY_LOG_EVERY = 5  # accept-rate summary every N decisions


# ---------------------------
# Notification copy
# ---------------------------

MSG_ACCEPTED = "Internship saved! Check your dashboard to view it."
MSG_REJECTED = "Thanks for your feedback!"
MSG_REFRESHED = "Fresh internships loaded!"
MSG_PERSIST_FAILED = "Failed to save preference. Please try again."
MSG_REPLENISH_FAILED = "Failed to load internships. Please try again."


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class SwipeSettings(BaseModel):
    """
    Presentation tuning for one session.

    Defaults come from the module constants above; the values carry no
    meaning beyond feel, so a session may be built with its own.
    """

    commit_threshold: float = Field(default=COMMIT_THRESHOLD, gt=0)
    rotation_factor: float = ROTATION_FACTOR
    opacity_floor: float = Field(default=OPACITY_FLOOR, gt=0, le=1)
    opacity_falloff: float = Field(default=OPACITY_FALLOFF, gt=0)
    indicator_min_dx: float = Field(default=INDICATOR_MIN_DX, ge=0)
    visible_window: int = Field(default=VISIBLE_WINDOW, ge=1)
    scale_step: float = Field(default=SCALE_STEP, ge=0)
    offset_step: float = Field(default=OFFSET_STEP, ge=0)
    fade_step: float = Field(default=FADE_STEP, ge=0)
    replenish_watermark: int = Field(default=REPLENISH_WATERMARK, ge=0)
    batch_size: int = Field(default=FETCH_BATCH_SIZE, ge=1)


class HealthResponse(BaseModel):
    """
    Response body for GET /health.
    """

    status: str


class PointRequest(BaseModel):
    """
    Body for the gesture begin/update endpoints.
    """

    x: float
    y: float
    candidate_id: Optional[str] = None  # begin only: the card under the pointer


class DecideRequest(BaseModel):
    direction: str = Field(..., pattern="^(left|right)$")
    candidate_id: Optional[str] = None


class LayerOut(BaseModel):
    candidate_id: str
    title: str
    organization: str
    interactive: bool
    translate_x: float
    translate_y: float
    rotation: float
    opacity: float
    scale: float
    offset_y: float
    indicator: Optional[str] = None


class TallyOut(BaseModel):
    accepted: int
    rejected: int
    total: int
    accept_rate: int


class NotificationOut(BaseModel):
    id: int
    kind: str
    level: str
    message: str


class FrameResponse(BaseModel):
    """
    Response body for every endpoint that changes what is on screen.
    """

    state: str
    empty: bool
    layers: List[LayerOut]
    tally: TallyOut
    notifications: List[NotificationOut]
    outcome: Optional[str] = None
