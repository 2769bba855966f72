from __future__ import annotations

import logging
import math
from typing import Any, Callable, Optional

import httpx

from ..core.errors import ProtocolError, TransportError
from ..core.timeutil import now_utc
from ..domain.models import Reading
from ..domain.timeparse import try_parse_upload_time

logger = logging.getLogger(__name__)


class SolaxCloudSource:
    """Fetches battery SOC from the SolaX Cloud realtime API.

    Expected body: ``{"success": true, "result": {"soc": 87, "uploadTime": "2026-01-18 11:59:46"}}``.
    Raises TransportError or ProtocolError; never returns a partial reading.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        upload_time_offset_seconds: int = 0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], Any] = now_utc,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._offset = upload_time_offset_seconds
        self._transport = transport
        self._clock = clock

    async def fetch(self) -> Reading:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(self._url)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out after {self._timeout}s", url=self._url) from e
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP request failed: {e}", url=self._url) from e

        if resp.status_code != 200:
            raise TransportError(
                f"HTTP request failed, status {resp.status_code}",
                status_code=resp.status_code,
                url=self._url,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise ProtocolError(f"JSON parsing failed: {e}") from e

        return self._to_reading(data)

    def _to_reading(self, data: Any) -> Reading:
        if not isinstance(data, dict):
            raise ProtocolError("Response body is not a JSON object")
        if data.get("success") is not True:
            raise ProtocolError(f"API returned success={data.get('success')!r}")

        result = data.get("result")
        if not isinstance(result, dict):
            raise ProtocolError("Response has no result object")

        soc = result.get("soc")
        if isinstance(soc, bool) or not isinstance(soc, (int, float)):
            raise ProtocolError(f"Invalid soc value: {soc!r}")
        soc = float(soc)
        if not math.isfinite(soc) or not (0.0 <= soc <= 100.0):
            raise ProtocolError(f"SOC out of range: {soc!r}")

        raw_time = result.get("uploadTime")
        upload_text = raw_time if isinstance(raw_time, str) else ""
        upload_instant = try_parse_upload_time(upload_text, self._offset)
        if upload_instant is None:
            logger.warning("Failed to parse uploadTime %r", raw_time)

        logger.info("API response received: soc=%.1f uploadTime=%s", soc, upload_text or "?")
        return Reading(
            soc=soc,
            upload_instant=upload_instant,
            upload_time_text=upload_text,
            received_at=self._clock(),
        )
