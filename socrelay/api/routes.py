from __future__ import annotations

import logging

import aiosqlite
from fastapi import APIRouter, Depends, Form, HTTPException

from ..core.config import settings
from ..core.errors import ConfigValueError
from ..domain.controller import parse_command
from ..services.poller import PollerService
from .schemas import AckResponse, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Dependency getters ---
# main.py points these at the real service via app.dependency_overrides.
def get_poller() -> PollerService:  # overridden in main
    raise RuntimeError("Poller dependency not configured")


def _ack(svc: PollerService) -> AckResponse:
    cfg = svc.engine.config
    return AckResponse(
        threshold=cfg.threshold,
        manualOverride=cfg.manual_override,
        manualState=cfg.manual_state,
        outputState=svc.output_state is True,
    )


@router.get("/health")
async def health():
    return {"ok": True, "app": settings.app_name}


@router.get("/status", response_model=StatusResponse)
@router.get("/getStatus", response_model=StatusResponse, include_in_schema=False)
async def get_status(svc: PollerService = Depends(get_poller)):
    s = svc.engine.snapshot()
    return StatusResponse(
        soc=s.soc,
        threshold=s.threshold,
        manualOverride=s.manual_override,
        manualState=s.manual_state,
        outputState=svc.output_state is True,
        decisionState=s.output_on,
        lastUpdate=s.last_update,
        apiSuccess=s.api_success,
        dataIsFresh=s.data_is_fresh,
        dataAgeMinutes=s.data_age_minutes,
        freshness=s.freshness.value,
        mode=s.mode.value,
        reason=s.reason,
        lastPollUtc=s.last_poll_utc.isoformat() if s.last_poll_utc else None,
        lastError=s.last_error,
    )


@router.post("/setThreshold", response_model=AckResponse)
async def set_threshold(threshold: str = Form(...), svc: PollerService = Depends(get_poller)):
    try:
        await svc.set_threshold(threshold)
    except ConfigValueError as e:
        logger.warning("Rejected threshold %r: %s", threshold, e)
        raise HTTPException(status_code=400, detail=str(e))
    except aiosqlite.Error as e:
        logger.exception("Failed to persist threshold: %s", e)
        raise HTTPException(status_code=500, detail="Threshold applied but not persisted")
    return _ack(svc)


@router.post("/manualControl", response_model=AckResponse)
async def manual_control(state: str = Form(...), svc: PollerService = Depends(get_poller)):
    try:
        command = parse_command(state)
    except ConfigValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        await svc.apply_command(command)
    except aiosqlite.Error as e:
        logger.exception("Failed to persist manual control: %s", e)
        raise HTTPException(status_code=500, detail="Manual control applied but not persisted")
    return _ack(svc)
