from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class SonoffOutput:
    """Output driver for a Sonoff BASICR3 relay in eWeLink DIY mode."""

    output_id = "output_sonoff"

    def __init__(
        self,
        ip: str,
        port: int = 8081,
        device_id: str = "",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = f"http://{ip}:{port}"
        self._device_id = device_id
        self._timeout = timeout
        self._transport = transport
        self._last_known_state: bool = False

    async def get_state(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self._base_url}/zeroconf/info",
                    json={"deviceid": self._device_id, "data": {}},
                )
                resp.raise_for_status()
                data = resp.json()
                self._last_known_state = data["data"]["switch"] == "on"
        except (httpx.HTTPError, ValueError, KeyError, TypeError):
            logger.warning(
                "Sonoff get_state failed, returning last known state: %s",
                self._last_known_state,
                exc_info=True,
            )
        return self._last_known_state

    async def set_state(self, on: bool, reason: str) -> None:
        switch_val = "on" if on else "off"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self._base_url}/zeroconf/switch",
                    json={
                        "deviceid": self._device_id,
                        "data": {"switch": switch_val},
                    },
                )
                resp.raise_for_status()
                self._last_known_state = on
                logger.info("Sonoff set_state=%s reason=%s", switch_val, reason)
        except httpx.HTTPError:
            # state left unchanged; the poller retries on its next tick
            logger.warning(
                "Sonoff set_state(%s) failed, reason=%s",
                switch_val,
                reason,
                exc_info=True,
            )
