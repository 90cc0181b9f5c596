from __future__ import annotations

"""
FastAPI surface for one swipe session.

- GET  /frame                -> what to draw right now
- POST /gesture/{begin,update,end}
- POST /decide               -> Pass / Save buttons
- POST /refresh              -> manual refresh (awaits the fetch)
- DELETE /notifications/{id} -> dismiss a toast or banner

Out-of-order gesture calls answer 409; they never reach the stack.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .client import PortalClient
from .config import (
    LOG_DIR,
    DecideRequest,
    FrameResponse,
    HealthResponse,
    LayerOut,
    NotificationOut,
    PointRequest,
    TallyOut,
)
from .gesture import GestureError
from .session import Frame, SwipeSession


_session: Optional[SwipeSession] = None
_log_sink: Optional[int] = None


def build_session() -> SwipeSession:
    client = PortalClient()
    return SwipeSession(source=client, sink=client)


def to_response(frame: Frame, outcome: Optional[str] = None) -> FrameResponse:
    return FrameResponse(
        state=frame.state.value,
        empty=frame.empty,
        layers=[
            LayerOut(
                candidate_id=layer.candidate.id,
                title=layer.candidate.title,
                organization=layer.candidate.organization,
                interactive=layer.interactive,
                translate_x=layer.translate_x,
                translate_y=layer.translate_y,
                rotation=layer.rotation,
                opacity=layer.opacity,
                scale=layer.scale,
                offset_y=layer.offset_y,
                indicator=layer.indicator,
            )
            for layer in frame.layers
        ],
        tally=TallyOut(
            accepted=frame.tally.accepted,
            rejected=frame.tally.rejected,
            total=frame.tally.total,
            accept_rate=frame.tally.accept_rate,
        ),
        notifications=[
            NotificationOut(id=n.id, kind=n.kind, level=n.level, message=n.message)
            for n in frame.notifications
        ],
        outcome=outcome,
    )


def _require_session() -> SwipeSession:
    if _session is None:
        raise HTTPException(status_code=503, detail="Session not started")
    return _session


async def startup_event() -> None:
    global _session, _log_sink
    if _log_sink is None:
        LOG_DIR.mkdir(exist_ok=True)
        _log_sink = logger.add(LOG_DIR / "roulette.log", rotation="5 MB", retention=3)
    logger.info("Starting swipe session...")
    _session = build_session()
    loaded = await _session.start()
    logger.info("Initial load {} ({} cards)", "ok" if loaded else "failed", len(_session.stack))


async def shutdown_event() -> None:
    global _session
    if _session is None:
        return
    await _session.close()
    closer = getattr(_session.policy.source, "aclose", None)
    if closer is not None:
        await closer()
    _session = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup_event()
    try:
        yield
    finally:
        await shutdown_event()


app = FastAPI(title="Internship Roulette", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="healthy")


@app.get("/frame", response_model=FrameResponse)
async def frame() -> FrameResponse:
    return to_response(_require_session().frame())


@app.post("/gesture/begin", response_model=FrameResponse)
async def gesture_begin(req: PointRequest) -> FrameResponse:
    session = _require_session()
    try:
        session.begin(req.x, req.y, req.candidate_id)
    except GestureError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return to_response(session.frame())


@app.post("/gesture/update", response_model=FrameResponse)
async def gesture_update(req: PointRequest) -> FrameResponse:
    session = _require_session()
    try:
        session.update(req.x, req.y)
    except GestureError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return to_response(session.frame())


@app.post("/gesture/end", response_model=FrameResponse)
async def gesture_end() -> FrameResponse:
    session = _require_session()
    try:
        result = session.end()
    except GestureError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return to_response(session.frame(), outcome=result.outcome.value)


@app.post("/decide", response_model=FrameResponse)
async def decide(req: DecideRequest) -> FrameResponse:
    session = _require_session()
    try:
        result = session.decide(req.direction, req.candidate_id)
    except GestureError as e:
        raise HTTPException(status_code=409, detail=str(e))
    outcome = result.outcome.value if result is not None else None
    return to_response(session.frame(), outcome=outcome)


@app.post("/refresh", response_model=FrameResponse)
async def refresh() -> FrameResponse:
    session = _require_session()
    await session.manual_refresh()
    return to_response(session.frame())


@app.delete("/notifications/{notification_id}", response_model=FrameResponse)
async def dismiss_notification(notification_id: int) -> FrameResponse:
    session = _require_session()
    if not session.dismiss(notification_id):
        raise HTTPException(status_code=404, detail="No such notification")
    return to_response(session.frame())
