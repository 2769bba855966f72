from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class GpioOutput:
    """Relay on a GPIO pin, with an optional indicator LED mirroring it.

    Both pins are driven LOW (OFF) as soon as the driver is constructed.
    """

    output_id = "output_gpio"

    def __init__(self, pin: int, indicator_pin: Optional[int] = None, active_high: bool = True) -> None:
        from gpiozero import DigitalOutputDevice

        self._relay = DigitalOutputDevice(pin, active_high=active_high, initial_value=False)
        self._indicator = (
            DigitalOutputDevice(indicator_pin, initial_value=False) if indicator_pin is not None else None
        )
        logger.info("GPIO output ready (pin=%s indicator=%s active_high=%s)", pin, indicator_pin, active_high)

    async def get_state(self) -> bool:
        return bool(self._relay.value)

    async def set_state(self, on: bool, reason: str) -> None:
        if on:
            self._relay.on()
        else:
            self._relay.off()
        if self._indicator is not None:
            self._indicator.value = bool(on)
        logger.info("GPIO set_state=%s reason=%s", "ON" if on else "OFF", reason)

    def close(self) -> None:
        try:
            self._relay.off()
            if self._indicator is not None:
                self._indicator.off()
        finally:
            self._relay.close()
            if self._indicator is not None:
                self._indicator.close()
