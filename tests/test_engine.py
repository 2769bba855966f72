from __future__ import annotations

from datetime import UTC, datetime, timedelta

from socrelay.core.errors import ClockNotSyncedError, TransportError
from socrelay.domain.engine import ControlEngine
from socrelay.domain.models import Command, ControlConfig, ControlMode, Freshness, Reading
from socrelay.domain.timeparse import try_parse_upload_time


class _FakeClock:
    def __init__(self, now: datetime, synced: bool = True) -> None:
        self.current = now
        self.is_synced = synced

    def now(self) -> datetime:
        return self.current

    def synced(self) -> bool:
        return self.is_synced

    def require_synced_now(self) -> datetime:
        if not self.is_synced:
            raise ClockNotSyncedError("not synced")
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


T0 = datetime(2026, 1, 18, 12, 0, 0, tzinfo=UTC)


def _reading(soc: float, upload_text: str = "2026-01-18 12:00:00") -> Reading:
    return Reading(
        soc=soc,
        upload_instant=try_parse_upload_time(upload_text),
        upload_time_text=upload_text,
        received_at=T0,
    )


def test_starts_off_with_unknown_data() -> None:
    engine = ControlEngine(_FakeClock(T0))
    s = engine.snapshot()
    assert engine.decision.output_on is False
    assert s.freshness is Freshness.INVALID
    assert s.data_age_minutes is None
    assert s.api_success is False
    assert s.soc is None
    assert s.last_update == ""


def test_fresh_reading_above_threshold_turns_on() -> None:
    engine = ControlEngine(_FakeClock(T0 + timedelta(minutes=2)))
    decision = engine.ingest_reading(_reading(95))
    assert decision.output_on is True
    s = engine.snapshot()
    assert s.data_is_fresh is True
    assert s.data_age_minutes == 2
    assert s.api_success is True
    assert s.last_update == "2026-01-18 12:00:00"
    assert s.output_on is True


def test_old_reading_is_stale() -> None:
    engine = ControlEngine(_FakeClock(T0 + timedelta(seconds=1000)))
    assert engine.ingest_reading(_reading(95)).output_on is False
    assert engine.snapshot().freshness is Freshness.STALE


def test_unparsable_upload_time_is_invalid() -> None:
    engine = ControlEngine(_FakeClock(T0))
    assert engine.ingest_reading(_reading(100, "not-a-date")).output_on is False
    s = engine.snapshot()
    assert s.freshness is Freshness.INVALID
    assert s.data_age_minutes is None
    assert s.soc == 100


def test_unsynced_clock_is_invalid() -> None:
    clock = _FakeClock(T0, synced=False)
    engine = ControlEngine(clock)
    assert engine.ingest_reading(_reading(95)).output_on is False
    assert engine.snapshot().freshness is Freshness.INVALID

    clock.is_synced = True
    assert engine.refresh().output_on is True


def test_reading_ages_out_without_new_poll() -> None:
    clock = _FakeClock(T0)
    engine = ControlEngine(clock)
    assert engine.ingest_reading(_reading(95)).output_on is True

    clock.advance(900)
    assert engine.refresh().output_on is True
    clock.advance(1)
    assert engine.refresh().output_on is False
    assert engine.snapshot().freshness is Freshness.STALE


def test_poll_failure_keeps_previous_reading() -> None:
    clock = _FakeClock(T0)
    engine = ControlEngine(clock)
    engine.ingest_reading(_reading(95))

    clock.advance(60)
    decision = engine.record_poll_failure(TransportError("boom"))
    assert decision.output_on is True
    s = engine.snapshot()
    assert s.api_success is False
    assert s.soc == 95
    assert s.last_error == "boom"
    assert s.last_poll_utc == T0 + timedelta(seconds=60)

    clock.advance(900)
    engine.record_poll_failure(TransportError("still down"))
    assert engine.decision.output_on is False


def test_new_reading_replaces_previous_wholesale() -> None:
    clock = _FakeClock(T0)
    engine = ControlEngine(clock)
    engine.ingest_reading(_reading(95))
    engine.ingest_reading(_reading(40, "garbage"))
    s = engine.snapshot()
    assert s.soc == 40
    assert s.last_update == "garbage"
    assert s.freshness is Freshness.INVALID


def test_commands_recompute_with_last_reading() -> None:
    engine = ControlEngine(_FakeClock(T0))
    engine.ingest_reading(_reading(50))
    assert engine.decision.output_on is False

    assert engine.apply_command(Command.ON).output_on is True
    assert engine.snapshot().mode is ControlMode.MANUAL_ON
    assert engine.apply_command(Command.OFF).output_on is False
    assert engine.apply_command(Command.AUTO).output_on is False
    assert engine.set_threshold(50).output_on is True
    assert engine.config.threshold == 50.0


def test_manual_on_survives_stale_data() -> None:
    clock = _FakeClock(T0)
    engine = ControlEngine(clock)
    engine.apply_command(Command.ON)
    engine.ingest_reading(_reading(0))
    clock.advance(5000)
    assert engine.refresh().output_on is True


def test_load_config() -> None:
    engine = ControlEngine(_FakeClock(T0))
    engine.ingest_reading(_reading(95))
    decision = engine.load_config(ControlConfig(threshold=99.0, manual_override=False, manual_state=True))
    assert decision.output_on is False
    s = engine.snapshot()
    assert s.threshold == 99.0
    assert s.manual_state is True
    assert s.mode is ControlMode.AUTO


def test_snapshot_reports_current_age_without_changing_decision() -> None:
    clock = _FakeClock(T0)
    engine = ControlEngine(clock)
    engine.ingest_reading(_reading(95))

    clock.advance(1000)
    s = engine.snapshot()
    assert s.freshness is Freshness.STALE
    assert s.data_age_minutes == 16
    assert s.output_on is True
    assert engine.decision.output_on is True

    assert engine.refresh().output_on is False
    assert engine.snapshot().output_on is False
