import logging
import time
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


class SystemClock:
    """Access to the host's wall clock.

    If local_clock is set, the hardware clock keeps local time rather than UTC,
    and utc_offset (minutes) is used to convert between the two.
    """

    def __init__(self, utc_offset: int = 0, local_clock: bool = False):
        self.utc_offset = utc_offset
        self.local_clock = local_clock

    def now(self) -> float:
        """Current time as Unix seconds (UTC)."""
        t = time.time()
        if self.local_clock:
            t -= self.utc_offset * 60
        return t

    def apply_correction(self, delta: float) -> bool:
        if not hasattr(time, 'clock_settime'):
            logger.error("Setting the clock is not supported on this platform")
            return False
        try:
            current = time.clock_gettime(time.CLOCK_REALTIME)
            time.clock_settime(time.CLOCK_REALTIME, current + delta)
        except OSError as e:
            logger.error("clock_settime() failed: %s", e)
            return False
        logger.info("Clock stepped by %+.6f s", delta)
        return True

    def format_now(self) -> str:
        tz = timezone(timedelta(minutes=self.utc_offset))
        local = datetime.fromtimestamp(self.now(), tz=tz)
        return local.strftime("%Y-%m-%d %H:%M:%S.") + f"{local.microsecond // 1000:03d}"
