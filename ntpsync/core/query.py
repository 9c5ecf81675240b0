import logging
import time
from typing import Callable, Optional, Tuple

from ntpsync.protocol import Packet, Timestamp, LeapFlag, Mode
from ntpsync.transport import Address, DatagramTransport, create_transport
from ntpsync.utils.constants import (
    NTP_VERSION, NTP_MIN_VERSION, NTP_MAX_VERSION, NTP_PACKET_SIZE,
    ERA_SECONDS, HALF_ERA_SECONDS, RECV_BUFFER_SIZE,
    SEND_MAX_ATTEMPTS, SEND_RETRY_DELAY, POLL_MAX_ATTEMPTS, POLL_RETRY_DELAY,
    DEFAULT_TIMEOUT,
)
from ntpsync.utils.exceptions import (
    ResourceBusyError, TransportError, QueryTimeoutError,
    ProtocolError, InvalidResponseError,
)
from .cancel import CancelToken

logger = logging.getLogger(__name__)


def compute_correction(t1: float, t2: float, t3: float, t4: float) -> Tuple[float, float]:
    """Return (correction, latency) from the four exchange timestamps, in seconds.

    t1: client transmit, t2: server receive, t3: server transmit, t4: client receive.
    All values are NTP-era seconds, so any of them may have wrapped at the end of Era 0.

    Double precision leaves 21 fraction bits in Era 0 and 20 in Era 1, which is
    still sub-microsecond resolution.
    """
    if t4 < t1:
        t4 += ERA_SECONDS
    if t3 < t2:
        t3 += ERA_SECONDS

    roundtrip = (t4 - t1) - (t3 - t2)
    latency = roundtrip / 2.0

    # t4 + correction = t3 + latency
    correction = t3 + latency - t4

    # The local clock entered Era 1 ahead of the server: it wrapped back to zero.
    if correction > HALF_ERA_SECONDS:
        correction -= ERA_SECONDS

    # The server entered Era 1 ahead of the local clock.
    if correction < -HALF_ERA_SECONDS:
        correction += ERA_SECONDS

    return correction, latency


def _send_with_retry(token: CancelToken, sock: DatagramTransport,
                     packet: Packet, now: Callable[[], float]) -> Timestamp:
    attempts = 0
    while True:
        # cancellation point: before sending
        token.check()
        t1 = Timestamp.from_unix(now())
        packet.transmit_time = t1
        try:
            sock.send(packet.pack())
            return t1
        except ResourceBusyError:
            attempts += 1
            if attempts >= SEND_MAX_ATTEMPTS:
                raise TransportError("No resources for send(), too many retries!")
            token.sleep(SEND_RETRY_DELAY)


def _poll_with_retry(token: CancelToken, sock: DatagramTransport, timeout: float) -> bool:
    attempts = 0
    while True:
        # cancellation point: before polling
        token.check()
        try:
            return sock.poll_readable(timeout)
        except ResourceBusyError:
            # Some hosts only handle a few concurrent select()/poll() calls,
            # so we may need to try again later.
            attempts += 1
            if attempts >= POLL_MAX_ATTEMPTS:
                raise TransportError("No resources for poll(), too many retries!")
            token.sleep(POLL_RETRY_DELAY)


def validate_response(packet: Packet, t1: Timestamp) -> None:
    v = packet.version
    if v < NTP_MIN_VERSION or v > NTP_MAX_VERSION:
        raise ProtocolError(f"Unsupported NTP version: {v}")

    m = packet.mode
    if m != Mode.SERVER:
        raise ProtocolError(f"Invalid NTP packet mode: {m!s}")

    if packet.leap == LeapFlag.UNKNOWN:
        raise ProtocolError("Unknown value for leap flag.")

    if packet.origin_time != t1:
        raise ProtocolError(f"NTP response mismatch: [{t1!r}] vs [{packet.origin_time!r}]")

    # Zero is not a valid timestamp.
    if not packet.receive_time or not packet.transmit_time:
        raise ProtocolError("NTP response has invalid timestamps.")


def ntp_query(token: CancelToken, address: Address,
              timeout: float = DEFAULT_TIMEOUT,
              now: Optional[Callable[[], float]] = None,
              transport_factory: Callable[[], DatagramTransport] = create_transport) -> Tuple[float, float]:
    """Perform one client/server exchange with address.

    Returns (correction, latency) in seconds. `now` returns the local clock as
    Unix seconds (UTC); it defaults to time.time.
    """
    if now is None:
        now = time.time

    with transport_factory() as sock:
        sock.connect(address)

        packet = Packet.client_request(NTP_VERSION)
        t1 = _send_with_retry(token, sock, packet, now)

        if not _poll_with_retry(token, sock, timeout):
            raise QueryTimeoutError("Timeout reached!")

        # Measure the arrival time as soon as possible.
        t4 = Timestamp.from_unix(now())

        data = sock.recv(RECV_BUFFER_SIZE)
        if len(data) < NTP_PACKET_SIZE:
            raise InvalidResponseError("Invalid NTP response!")

    response = Packet.unpack(data)
    validate_response(response, t1)

    t2 = response.receive_time
    t3 = response.transmit_time

    correction, latency = compute_correction(
        t1.to_seconds(), t2.to_seconds(), t3.to_seconds(), t4.to_seconds()
    )
    logger.debug("%s: correction=%.6f latency=%.6f", address, correction, latency)
    return correction, latency
