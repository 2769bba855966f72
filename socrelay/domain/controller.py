from __future__ import annotations
import logging
import math
from dataclasses import replace
from typing import Optional

from .models import Command, ControlConfig, ControlMode, Decision, FreshnessVerdict, Reading
from ..core.errors import ConfigValueError

logger = logging.getLogger(__name__)

THRESHOLD_MIN = 0.0
THRESHOLD_MAX = 100.0


def parse_command(raw: str) -> Command:
    try:
        return Command(raw.strip().lower())
    except (AttributeError, ValueError):
        raise ConfigValueError("state", raw, f"Unknown manual control state: {raw!r}") from None


def validate_threshold(value: object) -> float:
    """Return ``value`` as a float in [0, 100] or raise ConfigValueError.

    Out-of-range values are rejected, never clamped.
    """
    try:
        thr = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigValueError("threshold", value, f"Threshold is not a number: {value!r}") from None
    if not math.isfinite(thr) or not (THRESHOLD_MIN <= thr <= THRESHOLD_MAX):
        raise ConfigValueError(
            "threshold", value, f"Threshold {value!r} outside {THRESHOLD_MIN:g}..{THRESHOLD_MAX:g}"
        )
    return thr


class ControlStateMachine:
    def __init__(self, config: Optional[ControlConfig] = None) -> None:
        self._config = replace(config) if config else ControlConfig()

    @property
    def config(self) -> ControlConfig:
        return replace(self._config)

    @property
    def mode(self) -> ControlMode:
        if not self._config.manual_override:
            return ControlMode.AUTO
        return ControlMode.MANUAL_ON if self._config.manual_state else ControlMode.MANUAL_OFF

    def apply(self, command: Command) -> ControlMode:
        if command is Command.ON:
            self._config.manual_override = True
            self._config.manual_state = True
        elif command is Command.OFF:
            self._config.manual_override = True
            self._config.manual_state = False
        else:
            # manual_state is kept but ignored while in auto
            self._config.manual_override = False
        logger.info("Manual control: %s -> mode=%s", command.value, self.mode.value)
        return self.mode

    def set_threshold(self, value: object) -> float:
        thr = validate_threshold(value)
        self._config.threshold = thr
        logger.info("Threshold updated to: %.1f", thr)
        return thr

    def decide(self, reading: Optional[Reading], verdict: FreshnessVerdict) -> Decision:
        # Manual override takes priority
        if self._config.manual_override:
            return Decision(self._config.manual_state, "Manual override")

        if reading is None:
            return Decision(False, "Auto mode: no reading yet - defaulting to OFF")

        if not verdict.is_fresh:
            return Decision(False, f"Auto mode: data {verdict.freshness.value} - defaulting to OFF")

        on = reading.soc >= self._config.threshold
        return Decision(
            on,
            f"Auto mode: SOC {reading.soc:.1f}% {'>=' if on else '<'} threshold {self._config.threshold:.1f}%",
        )
