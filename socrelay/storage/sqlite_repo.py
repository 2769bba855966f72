from __future__ import annotations
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Dict

import aiosqlite

from ..core.errors import ConfigValueError
from ..domain.controller import validate_threshold
from ..domain.models import ControlConfig

logger = logging.getLogger(__name__)

KEY_THRESHOLD = "threshold"
KEY_MANUAL_OVERRIDE = "manualOverride"
KEY_MANUAL_STATE = "manualState"


class SQLiteRepository:
    """Durable key/value store for control settings."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        async with aiosqlite.connect(self._path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.commit()

    async def get_all_settings(self) -> Dict[str, str]:
        async with self._lock:
            async with aiosqlite.connect(self._path) as db:
                cur = await db.execute("SELECT key, value FROM settings")
                rows = await cur.fetchall()
        return {k: v for k, v in rows}

    async def set_settings_batch(self, updates: Dict[str, str]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        async with self._lock:
            async with aiosqlite.connect(self._path) as db:
                for key, value in updates.items():
                    await db.execute(
                        "INSERT INTO settings(key, value, updated_at) VALUES (?, ?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                        (key, value, now),
                    )
                await db.commit()

    async def load_control_config(self) -> ControlConfig:
        defaults = ControlConfig()
        raw = await self.get_all_settings()
        threshold = _decode(raw, KEY_THRESHOLD, defaults.threshold, float)
        try:
            threshold = validate_threshold(threshold)
        except ConfigValueError as e:
            logger.warning("%s, using default %.1f", e, defaults.threshold)
            threshold = defaults.threshold
        return ControlConfig(
            threshold=threshold,
            manual_override=_decode(raw, KEY_MANUAL_OVERRIDE, defaults.manual_override, bool),
            manual_state=_decode(raw, KEY_MANUAL_STATE, defaults.manual_state, bool),
        )

    async def save_control_config(self, config: ControlConfig) -> None:
        await self.set_settings_batch({
            KEY_THRESHOLD: json.dumps(float(config.threshold)),
            KEY_MANUAL_OVERRIDE: json.dumps(bool(config.manual_override)),
            KEY_MANUAL_STATE: json.dumps(bool(config.manual_state)),
        })


def _decode(raw: Dict[str, str], key: str, default, kind: type):
    if key not in raw:
        return default
    try:
        value = json.loads(raw[key])
    except ValueError:
        logger.warning("Stored setting %s=%r is not valid JSON, using default %r", key, raw[key], default)
        return default
    if kind is bool:
        if isinstance(value, bool):
            return value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    logger.warning("Stored setting %s=%r has wrong type, using default %r", key, raw[key], default)
    return default
