from __future__ import annotations
import math
from datetime import datetime
from typing import Optional

from .models import Freshness, FreshnessVerdict


FRESHNESS_WINDOW_SECONDS = 900  # 15 minutes


def evaluate_freshness(
    upload_instant: Optional[datetime],
    now: datetime,
    clock_synced: bool,
    window_seconds: int = FRESHNESS_WINDOW_SECONDS,
) -> FreshnessVerdict:
    """Classify a reading's age against the freshness window.

    A timestamp in the future is Stale, not "very fresh".
    """
    if not clock_synced or upload_instant is None:
        return FreshnessVerdict(Freshness.INVALID, None)

    age_seconds = math.floor((now - upload_instant).total_seconds())

    if age_seconds < 0:
        return FreshnessVerdict(Freshness.STALE, age_seconds)
    if age_seconds <= window_seconds:
        return FreshnessVerdict(Freshness.FRESH, age_seconds)
    return FreshnessVerdict(Freshness.STALE, age_seconds)


def age_minutes(verdict: FreshnessVerdict) -> Optional[int]:
    if verdict.age_seconds is None:
        return None
    # truncate toward zero, so -90 s reports -1 minute
    return int(verdict.age_seconds / 60)
