from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging
from .core.timeutil import SystemClock

from .api.routes import router as api_router
import socrelay.api.routes as routes_module

from .domain.engine import ControlEngine
from .domain.interfaces import Output
from .drivers.output_gpio import GpioOutput
from .drivers.output_sim import SimulatedOutput
from .drivers.output_sonoff import SonoffOutput
from .drivers.solax_cloud import SolaxCloudSource
from .services.poller import PollerService
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


gpio_output: GpioOutput | None = None


def build_output() -> Output:
    global gpio_output

    mode = settings.output_mode.lower()
    if mode == "gpio":
        # pins start LOW here, before settings are loaded
        gpio_output = GpioOutput(
            pin=settings.output_pin,
            indicator_pin=settings.indicator_pin,
            active_high=settings.output_active_high,
        )
        return gpio_output

    if mode == "sonoff":
        return SonoffOutput(
            ip=settings.sonoff_ip,
            port=settings.sonoff_port,
            device_id=settings.sonoff_device_id,
            timeout=settings.sonoff_timeout_seconds,
        )

    # default to sim
    return SimulatedOutput()


# --- Singletons ---
output = build_output()
clock = SystemClock()
engine = ControlEngine(clock=clock, window_seconds=settings.freshness_window_seconds)
source = SolaxCloudSource(
    url=settings.api_url,
    timeout=settings.http_timeout_seconds,
    upload_time_offset_seconds=settings.upload_time_offset_seconds,
)
repo = SQLiteRepository(settings.sqlite_path)
poller: PollerService | None = None


def get_poller() -> PollerService:
    assert poller is not None
    return poller


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("=== %s starting (output=%s) ===", settings.app_name, settings.output_mode)

    # Fail-safe: output OFF until settings are loaded
    await output.set_state(False, "Startup")

    await repo.init()
    engine.load_config(await repo.load_control_config())

    global poller
    poller = PollerService(
        engine=engine,
        source=source,
        output=output,
        store=repo,
        poll_seconds=settings.poll_seconds,
        tick_seconds=settings.tick_seconds,
    )
    await poller.sync_output()
    await poller.start()

    try:
        yield
    finally:
        if poller:
            await poller.stop()

        if gpio_output is not None:
            gpio_output.close()

        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_poller] = get_poller

app.include_router(api_router)


def run() -> None:
    import uvicorn

    uvicorn.run("socrelay.main:app", host=settings.host, port=settings.port)
