from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from .controller import ControlStateMachine
from .freshness import FRESHNESS_WINDOW_SECONDS, age_minutes, evaluate_freshness
from .interfaces import Clock
from .models import (
    Command,
    ControlConfig,
    Decision,
    Freshness,
    FreshnessVerdict,
    Reading,
    StatusSnapshot,
)
from ..core.errors import ClockNotSyncedError

logger = logging.getLogger(__name__)


class ControlEngine:
    """Owns control state, the latest reading and the derived decision.

    Every mutation goes through a method that recomputes and returns the
    current :class:`Decision`. Freshness is evaluated against the clock on
    each recompute, never cached from poll time.
    """

    def __init__(
        self,
        clock: Clock,
        config: Optional[ControlConfig] = None,
        window_seconds: int = FRESHNESS_WINDOW_SECONDS,
    ) -> None:
        self._clock = clock
        self._window_seconds = window_seconds
        self._machine = ControlStateMachine(config)
        self._reading: Optional[Reading] = None
        self._api_success = False
        self._last_poll_utc: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._verdict = FreshnessVerdict(Freshness.INVALID, None)
        self._decision = Decision(False, "Starting up")
        self._recompute()

    @property
    def decision(self) -> Decision:
        return self._decision

    @property
    def config(self) -> ControlConfig:
        return self._machine.config

    @property
    def reading(self) -> Optional[Reading]:
        return self._reading

    def load_config(self, config: ControlConfig) -> Decision:
        self._machine = ControlStateMachine(config)
        logger.info(
            "Loaded settings: threshold=%.1f manual_override=%s manual_state=%s",
            config.threshold, config.manual_override, config.manual_state,
        )
        return self._recompute()

    # --- poll path ---

    def ingest_reading(self, reading: Reading) -> Decision:
        self._reading = reading
        self._api_success = True
        self._last_poll_utc = reading.received_at
        self._last_error = None
        logger.info("SOC: %.1f%% (upload time %s)", reading.soc, reading.upload_time_text or "?")
        return self._recompute()

    def record_poll_failure(self, error: object) -> Decision:
        # previous reading is kept and keeps ageing
        self._api_success = False
        self._last_poll_utc = self._clock.now()
        self._last_error = str(error)
        return self._recompute()

    def refresh(self) -> Decision:
        return self._recompute()

    # --- command path ---

    def apply_command(self, command: Command) -> Decision:
        self._machine.apply(command)
        return self._recompute()

    def set_threshold(self, value: object) -> Decision:
        self._machine.set_threshold(value)
        return self._recompute()

    # --- status ---

    def snapshot(self) -> StatusSnapshot:
        """Read-only view. Age is measured now; the decision is the last one computed."""
        verdict = self._evaluate()
        cfg = self._machine.config
        r = self._reading
        return StatusSnapshot(
            soc=r.soc if r else None,
            last_update=r.upload_time_text if r else "",
            data_age_minutes=age_minutes(verdict),
            freshness=verdict.freshness,
            api_success=self._api_success,
            threshold=cfg.threshold,
            manual_override=cfg.manual_override,
            manual_state=cfg.manual_state,
            mode=self._machine.mode,
            output_on=self._decision.output_on,
            reason=self._decision.reason,
            last_poll_utc=self._last_poll_utc,
            last_error=self._last_error,
        )

    def _evaluate(self) -> FreshnessVerdict:
        if self._reading is None:
            return FreshnessVerdict(Freshness.INVALID, None)
        try:
            now = self._clock.require_synced_now()
        except ClockNotSyncedError:
            return evaluate_freshness(self._reading.upload_instant, self._clock.now(), False, self._window_seconds)
        return evaluate_freshness(self._reading.upload_instant, now, True, self._window_seconds)

    def _recompute(self) -> Decision:
        verdict = self._evaluate()
        if verdict.freshness != self._verdict.freshness and self._reading is not None:
            if verdict.freshness is Freshness.STALE and verdict.age_seconds is not None and verdict.age_seconds < 0:
                logger.warning("Upload time is in the future (age %ss)", verdict.age_seconds)
            elif verdict.freshness is Freshness.STALE:
                logger.warning("Data is stale (age %ss > %ss)", verdict.age_seconds, self._window_seconds)
            elif verdict.freshness is Freshness.INVALID:
                logger.warning("Upload time unparsable or clock not synchronised")
        self._verdict = verdict

        decision = self._machine.decide(self._reading, verdict)
        if decision != self._decision:
            logger.info("decision: %s - %s", "ON" if decision.output_on else "OFF", decision.reason)
        self._decision = decision
        return decision
