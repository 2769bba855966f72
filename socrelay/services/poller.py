from __future__ import annotations
import asyncio
import logging
import time
from typing import Callable, Optional

from ..core.errors import ProtocolError, TransportError
from ..domain.engine import ControlEngine
from ..domain.interfaces import Output, SettingsStore, SocSource
from ..domain.models import Command, Decision

logger = logging.getLogger(__name__)


class PollerService:
    """Polls the SOC source on a fixed interval and keeps the output in line
    with the engine's decision.

    Runs as one asyncio task, so polls never overlap. Between polls it wakes
    every ``tick_seconds`` to re-evaluate freshness, which turns the output
    off once the last reading ages out even if no new poll succeeds.
    """

    def __init__(
        self,
        engine: ControlEngine,
        source: SocSource,
        output: Output,
        store: SettingsStore,
        poll_seconds: float = 300,
        tick_seconds: float = 5,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._engine = engine
        self._source = source
        self._output = output
        self._store = store
        self._poll_seconds = poll_seconds
        self._tick_seconds = tick_seconds
        self._monotonic = monotonic

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()
        self._last_poll: Optional[float] = None
        self._output_lock = asyncio.Lock()
        self._output_state: Optional[bool] = None  # None = unknown, read from device

    @property
    def engine(self) -> ControlEngine:
        return self._engine

    @property
    def output_state(self) -> Optional[bool]:
        """State last confirmed on the output device."""
        return self._output_state

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="poller_loop")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    def poll_due(self) -> bool:
        if self._last_poll is None:
            return True
        return self._monotonic() - self._last_poll >= self._poll_seconds

    async def poll_once(self) -> Decision:
        logger.info("--- Polling SOC source ---")
        self._last_poll = self._monotonic()
        try:
            reading = await self._source.fetch()
        except (TransportError, ProtocolError) as e:
            logger.warning("Poll failed: %s", e)
            decision = self._engine.record_poll_failure(e)
        except Exception as e:
            # Fail-safe: any other source fault is still just a failed poll
            logger.exception("Poll failed unexpectedly: %s", e)
            decision = self._engine.record_poll_failure(e)
        else:
            decision = self._engine.ingest_reading(reading)
        await self.sync_output()
        return decision

    async def tick(self) -> Decision:
        decision = self._engine.refresh()
        await self.sync_output()
        return decision

    async def sync_output(self) -> bool:
        """Drive the output to the current decision; returns the confirmed state.

        The device is only read when its state is unknown or right after a
        write, so steady-state ticks cost no I/O.
        """
        async with self._output_lock:
            decision = self._engine.decision
            if self._output_state is None:
                self._output_state = await self._output.get_state()
            if self._output_state != decision.output_on:
                self._output_state = None
                await self._output.set_state(decision.output_on, decision.reason)
                # a failed write leaves a mismatch, retried on the next tick
                self._output_state = await self._output.get_state()
            return self._output_state

    # --- command path ---

    async def apply_command(self, command: Command) -> Decision:
        decision = self._engine.apply_command(command)
        await self._store.save_control_config(self._engine.config)
        await self.sync_output()
        return decision

    async def set_threshold(self, value: object) -> Decision:
        decision = self._engine.set_threshold(value)
        await self._store.save_control_config(self._engine.config)
        await self.sync_output()
        return decision

    async def _run(self) -> None:
        logger.info(
            "Poller loop started (poll_seconds=%s tick_seconds=%s)",
            self._poll_seconds,
            self._tick_seconds,
        )

        while not self._stop.is_set():
            try:
                if self.poll_due():
                    await self.poll_once()
                else:
                    await self.tick()
            except Exception as e:
                logger.exception("Poller loop error: %s", e)

            # sleep with cancellation awareness
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._tick_seconds)
            except asyncio.TimeoutError:
                pass

        logger.info("Poller loop stopped")
