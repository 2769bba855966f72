from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Reading:
    soc: float
    upload_instant: Optional[datetime]  # None = unparsable upload time
    upload_time_text: str
    received_at: datetime


@dataclass
class ControlConfig:
    threshold: float = 90.0
    manual_override: bool = False
    manual_state: bool = False


class Freshness(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    INVALID = "invalid"


@dataclass(frozen=True)
class FreshnessVerdict:
    freshness: Freshness
    age_seconds: Optional[int]  # None = unknown

    @property
    def is_fresh(self) -> bool:
        return self.freshness is Freshness.FRESH


class ControlMode(str, Enum):
    MANUAL_ON = "manual_on"
    MANUAL_OFF = "manual_off"
    AUTO = "auto"


class Command(str, Enum):
    ON = "on"
    OFF = "off"
    AUTO = "auto"


@dataclass(frozen=True)
class Decision:
    output_on: bool
    reason: str


@dataclass(frozen=True)
class StatusSnapshot:
    soc: Optional[float]
    last_update: str
    data_age_minutes: Optional[int]
    freshness: Freshness
    api_success: bool
    threshold: float
    manual_override: bool
    manual_state: bool
    mode: ControlMode
    output_on: bool
    reason: str
    last_poll_utc: Optional[datetime]
    last_error: Optional[str]

    @property
    def data_is_fresh(self) -> bool:
        return self.freshness is Freshness.FRESH
