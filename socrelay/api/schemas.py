from __future__ import annotations
from pydantic import BaseModel
from typing import Optional


class StatusResponse(BaseModel):
    soc: Optional[float]
    threshold: float
    manualOverride: bool
    manualState: bool
    outputState: bool
    decisionState: bool  # may lead outputState until the next output sync
    lastUpdate: str
    apiSuccess: bool
    dataIsFresh: bool
    dataAgeMinutes: Optional[int]  # None = unknown
    freshness: str
    mode: str
    reason: str
    lastPollUtc: Optional[str]
    lastError: Optional[str]


class AckResponse(BaseModel):
    ok: bool = True
    threshold: float
    manualOverride: bool
    manualState: bool
    outputState: bool
