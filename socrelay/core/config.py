from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="SOCRELAY_", extra="ignore")

    app_name: str = "Solar SOC Relay"

    # Remote data source (SolaX Cloud realtime API)
    api_url: str = Field(
        default="https://www.solaxcloud.com/proxyApp/proxy/api/getRealtimeInfo.do?tokenId=CHANGE_ME&sn=CHANGE_ME"
    )
    http_timeout_seconds: float = 10.0

    # Polling
    poll_seconds: int = 300     # 5 minutes between API polls
    tick_seconds: int = 5       # freshness re-evaluation between polls

    # uploadTime offset from UTC, in seconds (0 = source reports UTC)
    upload_time_offset_seconds: int = 0
    freshness_window_seconds: int = 900

    # "assume" trusts the system clock, "timesyncd" checks systemd-timesyncd
    clock_sync_mode: str = "assume"

    # Storage
    sqlite_path: str = Field(default="socrelay.db")

    # Output: "sim", "gpio" or "sonoff"
    output_mode: str = "sim"
    output_pin: int = 2
    indicator_pin: Optional[int] = 4
    output_active_high: bool = True

    # Sonoff BASICR3 (DIY mode)
    sonoff_ip: str = "192.168.1.19"
    sonoff_port: int = 8081
    sonoff_device_id: str = ""
    sonoff_timeout_seconds: float = 5.0

    # Logging
    log_file: str = "socrelay.log"
    log_level: str = "INFO"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8080


settings = Settings()
