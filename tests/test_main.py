from __future__ import annotations

import asyncio
import importlib
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from socrelay.core.config import settings
from socrelay.core.errors import TransportError
from socrelay.domain.models import ControlConfig, Reading
from socrelay.drivers.output_sim import SimulatedOutput
from socrelay.storage.sqlite_repo import SQLiteRepository


class _DownSource:
    async def fetch(self) -> Reading:
        raise TransportError("offline")


class _RecordingOutput(SimulatedOutput):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[bool] = []

    async def set_state(self, on: bool, reason: str) -> None:
        self.writes.append(on)
        await super().set_state(on, reason)


@pytest.fixture
def main_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    db_path = str(tmp_path / "settings.db")
    monkeypatch.setattr(settings, "sqlite_path", db_path)
    monkeypatch.setattr(settings, "output_mode", "sim")
    monkeypatch.setattr(settings, "log_file", "")

    repo = SQLiteRepository(db_path)
    asyncio.run(repo.init())
    asyncio.run(repo.save_control_config(ControlConfig(threshold=42.0, manual_override=True, manual_state=True)))

    # fresh import so the module singletons pick up the settings above
    monkeypatch.delitem(sys.modules, "socrelay.main", raising=False)
    main = importlib.import_module("socrelay.main")
    monkeypatch.setattr(main, "source", _DownSource())
    monkeypatch.setattr(main, "output", _RecordingOutput())
    return main


def test_startup_forces_off_then_applies_stored_settings(main_module) -> None:
    with TestClient(main_module.app) as client:
        assert main_module.output.writes == [False, True]

        data = client.get("/status").json()
        assert data["threshold"] == 42.0
        assert data["manualOverride"] is True
        assert data["manualState"] is True
        assert data["mode"] == "manual_on"
        assert data["outputState"] is True

    assert main_module.poller is not None


def test_startup_with_empty_store_stays_off(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "sqlite_path", str(tmp_path / "empty.db"))
    monkeypatch.setattr(settings, "output_mode", "sim")
    monkeypatch.setattr(settings, "log_file", "")
    monkeypatch.delitem(sys.modules, "socrelay.main", raising=False)
    main = importlib.import_module("socrelay.main")
    monkeypatch.setattr(main, "source", _DownSource())
    monkeypatch.setattr(main, "output", _RecordingOutput())

    with TestClient(main.app) as client:
        data = client.get("/status").json()
        assert data["threshold"] == 90.0
        assert data["outputState"] is False
        assert data["apiSuccess"] is False

    assert main.output.writes == [False]
