"""
REST endpoints for the live emotion session.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
import logging

from analytics.config import Settings
from analytics.live import LiveSession
from analytics.models import DistributionProjection, LiveStatus, TimeSeriesProjection


live_session = {"session": None}

router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)


def build_session(s: Settings) -> LiveSession:
    return LiveSession(s)


def _current() -> LiveSession:
    session = live_session["session"]
    if session is None:
        raise HTTPException(status_code=404, detail="No live session")
    return session


@router.post("/live/start")
def live_start():
    """
    Start a new live session: load the face detector, open the camera, start ticking.

    Returns:
        dict: {"status": "started" | "already_running"}
    """
    current = live_session["session"]
    if current is not None and current.running:
        return {"status": "already_running"}

    session = build_session(settings)
    try:
        session.start()
    except RuntimeError as e:
        logger.exception("[api] live session failed to start")
        session.stop()
        raise HTTPException(status_code=503, detail=str(e))
    live_session["session"] = session
    return {"status": "started"}


@router.post("/live/stop")
def live_stop():
    session = live_session["session"]
    if session is None or not session.running:
        return {"status": "not_running"}
    session.stop()
    return {"status": "stopped"}


@router.get("/live/status", response_model=LiveStatus)
def live_status():
    session = live_session["session"]
    if session is None:
        return LiveStatus(running=False)
    return session.status()


@router.get("/live/timeseries", response_model=TimeSeriesProjection)
def live_timeseries():
    return _current().time_series()


@router.get("/live/distribution", response_model=DistributionProjection)
def live_distribution():
    return _current().distribution()


@router.get("/live/chart")
def live_chart():
    """Line (last W samples per emotion) and pie (current distribution) datasets with colors."""
    return _current().chart()


@router.get("/live/overlay")
def live_overlay():
    data = _current().overlay_jpeg()
    if data is None:
        raise HTTPException(status_code=404, detail="No frame rendered yet")
    return Response(content=data, media_type="image/jpeg")
