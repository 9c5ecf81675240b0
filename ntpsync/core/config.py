from dataclasses import dataclass, replace

from ntpsync.utils.constants import (
    DEFAULT_SERVER, DEFAULT_TIMEOUT, DEFAULT_TOLERANCE_MS, DEFAULT_THREADS,
    DEFAULT_AUTO_TZ, DEFAULT_TZ_SERVICE, DEFAULT_UTC_OFFSET, DEFAULT_NOTIFY,
    DEFAULT_SYNC_ON_BOOT, DEFAULT_SYNC_ON_CHANGES, DEFAULT_LOCAL_CLOCK,
    DEFAULT_INTERVAL,
)


@dataclass(frozen=True)
class SyncConfig:
    """Read-only configuration snapshot used by a synchronization pass."""
    server: str = DEFAULT_SERVER
    timeout: int = DEFAULT_TIMEOUT              # seconds
    tolerance: int = DEFAULT_TOLERANCE_MS       # milliseconds
    threads: int = DEFAULT_THREADS
    auto_tz: bool = DEFAULT_AUTO_TZ
    tz_service: int = DEFAULT_TZ_SERVICE
    utc_offset: int = DEFAULT_UTC_OFFSET        # minutes
    notify: int = DEFAULT_NOTIFY
    sync_on_boot: bool = DEFAULT_SYNC_ON_BOOT
    sync_on_changes: bool = DEFAULT_SYNC_ON_CHANGES
    local_clock: bool = DEFAULT_LOCAL_CLOCK
    interval: int = DEFAULT_INTERVAL            # minutes

    @property
    def tolerance_seconds(self) -> float:
        return self.tolerance / 1000.0

    def with_utc_offset(self, offset: int) -> 'SyncConfig':
        return replace(self, utc_offset=offset)
