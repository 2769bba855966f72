from datetime import datetime, timezone
from pathlib import Path

from .config import settings
from .errors import ClockNotSyncedError

# Flag file maintained by systemd-timesyncd once NTP sync succeeded
TIMESYNCD_FLAG = Path("/run/systemd/timesync/synchronized")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SystemClock:
    """Wall clock plus an explicit answer to "is this clock trustworthy?"."""

    def __init__(self, sync_mode: str | None = None, flag_path: Path = TIMESYNCD_FLAG) -> None:
        self._mode = (sync_mode or settings.clock_sync_mode).lower()
        self._flag_path = flag_path

    def now(self) -> datetime:
        return now_utc()

    def synced(self) -> bool:
        if self._mode == "timesyncd":
            return self._flag_path.exists()
        return True

    def require_synced_now(self) -> datetime:
        if not self.synced():
            raise ClockNotSyncedError(f"System clock not synchronised (mode={self._mode})")
        return self.now()
