from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from socrelay.core.errors import ClockNotSyncedError
from socrelay.core.timeutil import SystemClock


def test_assume_mode_is_always_synced(tmp_path: Path) -> None:
    clock = SystemClock("assume", flag_path=tmp_path / "missing")
    assert clock.synced() is True
    now = clock.require_synced_now()
    assert now.utcoffset() == timedelta(0)


def test_timesyncd_mode_follows_flag_file(tmp_path: Path) -> None:
    flag = tmp_path / "synchronized"
    clock = SystemClock("timesyncd", flag_path=flag)
    assert clock.synced() is False
    with pytest.raises(ClockNotSyncedError):
        clock.require_synced_now()

    flag.touch()
    assert clock.synced() is True
    assert clock.require_synced_now().tzinfo is not None
