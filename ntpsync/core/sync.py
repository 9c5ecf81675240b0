"""
Synchronization pass: resolve the configured servers, query every address
concurrently, average the corrections and step the clock when the drift is
beyond the tolerance.
"""
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from ntpsync.system import SystemClock, ensure_network, fetch_timezone
from ntpsync.transport import Address, SocketType, lookup
from ntpsync.utils import seconds_to_human, split_servers, tz_offset_to_string
from ntpsync.utils.constants import NTP_SERVICE
from ntpsync.utils.exceptions import (
    NtpSyncException, AlreadyRunningError, CanceledError, ClockError,
    NoAddressError, NoServerError,
)
from .cancel import CancelToken
from .config import SyncConfig
from .query import ntp_query
from .report import Level, Reporter
from .thread_pool import ThreadPool

logger = logging.getLogger(__name__)


def describe_error(e: BaseException) -> str:
    if isinstance(e, NtpSyncException):
        return e.message
    return str(e) or e.__class__.__name__


class ExecutionGuard:
    """Process-wide "a pass is in progress" flag. Never blocks."""

    def __init__(self):
        self._lock = threading.Lock()

    def acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    @property
    def held(self) -> bool:
        return self._lock.locked()

    def __enter__(self):
        if not self.acquire():
            raise AlreadyRunningError("Skipping NTP task: operation already in progress.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


@dataclass
class QueryOutcome:
    address: Address
    correction: Optional[float] = None
    latency: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SyncResult:
    correction: float
    applied: bool
    outcomes: List[QueryOutcome] = field(default_factory=list)


@dataclass
class ServerStats:
    """Per-name statistics gathered by a preview."""
    name: str
    addresses: int = 0
    errors: int = 0
    corrections: List[float] = field(default_factory=list)
    latencies: List[float] = field(default_factory=list)
    resolve_error: Optional[str] = None

    def _summary(self, values: List[float]) -> Optional[Tuple[float, float, float]]:
        if not values:
            return None
        return min(values), max(values), sum(values) / len(values)

    @property
    def correction_summary(self) -> Optional[Tuple[float, float, float]]:
        """(min, max, avg) correction, or None without a single answer."""
        return self._summary(self.corrections)

    @property
    def latency_summary(self) -> Optional[Tuple[float, float, float]]:
        return self._summary(self.latencies)


@dataclass
class PreviewResult:
    servers: List[ServerStats]
    correction: Optional[float] = None

    @property
    def needs_correction(self) -> bool:
        return self.correction is not None


class Synchronizer:
    """Runs synchronization passes for one configuration.

    Collaborators are injectable: `resolver(name, service, socktype)`,
    `query(token, address, timeout, now=...)`, `timezone_lookup(service_index)`
    and `network_check()`. `on_utc_offset(minutes)` is called after automatic
    time zone detection changed the offset, so that the caller can persist it.
    """

    def __init__(self, config: SyncConfig, reporter: Optional[Reporter] = None,
                 clock: Optional[SystemClock] = None,
                 resolver: Callable = lookup,
                 query: Callable = ntp_query,
                 timezone_lookup: Callable[[int], Tuple[str, int]] = fetch_timezone,
                 network_check: Callable[[], None] = ensure_network,
                 on_utc_offset: Optional[Callable[[int], None]] = None,
                 guard: Optional[ExecutionGuard] = None):
        self.config = config
        self.reporter = reporter or Reporter(config.notify)
        self.clock = clock or SystemClock(config.utc_offset, config.local_clock)
        self.resolver = resolver
        self.query = query
        self.timezone_lookup = timezone_lookup
        self.network_check = network_check
        self.on_utc_offset = on_utc_offset
        self.guard = guard or ExecutionGuard()

    @property
    def busy(self) -> bool:
        return self.guard.held

    def _update_timezone(self, silent: bool) -> None:
        try:
            name, offset = self.timezone_lookup(self.config.tz_service)
            if offset == self.config.utc_offset:
                return

            if self.on_utc_offset is not None:
                self.on_utc_offset(offset)
            self.config = self.config.with_utc_offset(offset)
            self.clock.utc_offset = offset
        except Exception as e:
            logger.debug("Time zone update failed", exc_info=True)
            if not silent:
                self.reporter.error(Level.VERBOSE,
                                    f"Failed to update time zone: {describe_error(e)}")
            return

        if not silent:
            self.reporter.info(Level.VERBOSE,
                               f"Updated time zone to {name} ({tz_offset_to_string(offset)})")

    def _resolve_all(self, token: CancelToken, pool: ThreadPool,
                     names: List[str], silent: bool) -> List[Address]:
        futures: List[Tuple[str, Future]] = [
            (name, pool.submit(self.resolver, name, NTP_SERVICE, SocketType.UDP))
            for name in names
        ]

        addresses = set()
        for name, future in futures:
            try:
                infos = future.result()
            except NtpSyncException as e:
                if not silent:
                    self.reporter.error(Level.VERBOSE, describe_error(e))
                continue
            for info in infos:
                addresses.add(info.addr)

        token.check()
        logger.debug("Resolved %d names into %d addresses", len(names), len(addresses))
        return sorted(addresses)

    def _query_all(self, token: CancelToken, pool: ThreadPool,
                   addresses: List[Address], silent: bool) -> List[QueryOutcome]:
        token.check()
        futures = [
            (addr, pool.submit(self.query, token, addr, self.config.timeout, now=self.clock.now))
            for addr in addresses
        ]
        token.check()

        outcomes = []
        for addr, future in futures:
            token.check()
            try:
                correction, latency = future.result()
            except CanceledError:
                raise
            except Exception as e:
                message = describe_error(e)
                if not silent:
                    self.reporter.error(Level.VERBOSE, f"{addr}: {message}")
                outcomes.append(QueryOutcome(addr, error=message))
                continue
            if not silent:
                self.reporter.info(Level.VERBOSE,
                                   f"{addr}: correction = {seconds_to_human(correction, True)}, "
                                   f"latency = {seconds_to_human(latency)}")
            outcomes.append(QueryOutcome(addr, correction, latency))
        return outcomes

    def run(self, token: CancelToken, silent: bool = False) -> SyncResult:
        """Run one synchronization pass.

        Raises AlreadyRunningError when another pass holds the guard, and
        CanceledError as soon as cancellation is observed.
        """
        with self.guard:
            self.network_check()

            if self.config.auto_tz:
                self._update_timezone(silent)

            token.check()
            names = split_servers(self.config.server)

            with ThreadPool(self.config.threads) as pool:
                addresses = self._resolve_all(token, pool, names, silent)
                if not addresses:
                    raise NoAddressError("No NTP address could be used.")
                outcomes = self._query_all(token, pool, addresses, silent)

            corrections = [o.correction for o in outcomes if o.ok]
            if not corrections:
                raise NoServerError("No NTP server could be used!")

            avg = sum(corrections) / len(corrections)

            if abs(avg) <= self.config.tolerance_seconds:
                if not silent:
                    self.reporter.info(Level.VERBOSE,
                                       f"Tolerating clock drift (correction is only "
                                       f"{seconds_to_human(avg, True)}).")
                return SyncResult(avg, False, outcomes)

            token.check()
            if not self.clock.apply_correction(avg):
                raise ClockError("Failed to set system clock!")

            if not silent:
                self.reporter.success(Level.NORMAL,
                                      f"Clock corrected by {seconds_to_human(avg, True)}")
            return SyncResult(avg, True, outcomes)

    def preview(self, token: CancelToken) -> PreviewResult:
        """Query every configured server one address at a time, without touching the clock."""
        stats: Dict[str, ServerStats] = {}
        all_corrections: List[float] = []

        for name in split_servers(self.config.server):
            token.check()
            entry = stats.setdefault(name, ServerStats(name))
            try:
                infos = self.resolver(name, NTP_SERVICE, SocketType.UDP)
            except NtpSyncException as e:
                entry.resolve_error = describe_error(e)
                continue

            addresses = sorted({info.addr for info in infos})
            entry.addresses = len(addresses)
            for addr in addresses:
                token.check()
                try:
                    correction, latency = self.query(token, addr, self.config.timeout,
                                                     now=self.clock.now)
                except CanceledError:
                    raise
                except Exception as e:
                    logger.debug("%s (%s): %s", name, addr, describe_error(e))
                    entry.errors += 1
                    continue
                entry.corrections.append(correction)
                entry.latencies.append(latency)
                all_corrections.append(correction)

        needed = None
        if all_corrections:
            avg = sum(all_corrections) / len(all_corrections)
            if abs(avg) > self.config.tolerance_seconds:
                needed = avg
        return PreviewResult(list(stats.values()), needed)
