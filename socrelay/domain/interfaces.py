from __future__ import annotations
from datetime import datetime
from typing import Protocol, runtime_checkable
from .models import ControlConfig, Reading


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime:
        ...

    def synced(self) -> bool:
        ...

    def require_synced_now(self) -> datetime:
        ...


@runtime_checkable
class SocSource(Protocol):
    async def fetch(self) -> Reading:
        ...


@runtime_checkable
class Output(Protocol):
    output_id: str

    async def get_state(self) -> bool:
        ...

    async def set_state(self, on: bool, reason: str) -> None:
        ...


@runtime_checkable
class SettingsStore(Protocol):
    async def init(self) -> None:
        ...

    async def load_control_config(self) -> ControlConfig:
        ...

    async def save_control_config(self, config: ControlConfig) -> None:
        ...
