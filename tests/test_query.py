import threading
import time
import unittest

from ntpsync.core import CancelToken, ntp_query, compute_correction
from ntpsync.protocol import Packet, Timestamp, LeapFlag, Mode
from ntpsync.transport import Address, DatagramTransport
from ntpsync.utils.constants import ERA_SECONDS, POLL_MAX_ATTEMPTS, POLL_RETRY_DELAY
from ntpsync.utils.exceptions import (
    CanceledError, InvalidResponseError, ProtocolError, QueryTimeoutError,
    ResourceBusyError, TransportError,
)

SERVER = Address.from_string("192.0.2.1", 123)


def server_reply(request: bytes, t2: float, t3: float, tweak=None) -> bytes:
    req = Packet.unpack(request)
    resp = Packet(stratum=2)
    resp.version = 4
    resp.mode = Mode.SERVER
    resp.origin_time = req.transmit_time
    resp.receive_time = Timestamp.from_unix(t2)
    resp.transmit_time = Timestamp.from_unix(t3)
    if tweak is not None:
        tweak(resp)
    return resp.pack()


class FakeTransport(DatagramTransport):
    """Scripted transport. The local clock jumps to `arrival` once the reply is polled."""

    def __init__(self, departure=1000.0, arrival=1000.2, t2=1001.05, t3=1001.15,
                 send_errors=0, poll_errors=0, readable=True, tweak=None, raw_reply=None):
        self.clock = departure
        self.arrival = arrival
        self.t2 = t2
        self.t3 = t3
        self.send_errors = send_errors
        self.poll_errors = poll_errors
        self.readable = readable
        self.tweak = tweak
        self.raw_reply = raw_reply
        self.connected = None
        self.sent = []
        self.closed = False
        self._reply = None

    def now(self):
        return self.clock

    def connect(self, address):
        self.connected = address

    def send(self, data):
        if self.send_errors:
            self.send_errors -= 1
            raise ResourceBusyError("busy")
        self.sent.append(data)
        if self.raw_reply is not None:
            self._reply = self.raw_reply
        else:
            self._reply = server_reply(data, self.t2, self.t3, self.tweak)
        return len(data)

    def poll_readable(self, timeout):
        if self.poll_errors:
            self.poll_errors -= 1
            raise ResourceBusyError("busy")
        if not self.readable:
            return False
        self.clock = self.arrival
        return True

    def recv(self, size):
        return self._reply[:size]

    def close(self):
        self.closed = True

    @property
    def is_open(self):
        return not self.closed


def query(transport, token=None):
    return ntp_query(token or CancelToken(), SERVER, timeout=1,
                     now=transport.now, transport_factory=lambda: transport)


class TestNtpQuery(unittest.TestCase):
    def test_successful_exchange(self):
        transport = FakeTransport()
        correction, latency = query(transport)
        self.assertAlmostEqual(correction, 1.0, places=5)
        self.assertAlmostEqual(latency, 0.05, places=5)
        self.assertEqual(transport.connected, SERVER)
        self.assertEqual(len(transport.sent), 1)
        self.assertTrue(transport.closed)

    def test_request_is_a_version_4_client_packet(self):
        transport = FakeTransport()
        query(transport)
        request = Packet.unpack(transport.sent[0])
        self.assertEqual(request.version, 4)
        self.assertEqual(request.mode, Mode.CLIENT)
        self.assertTrue(request.transmit_time)

    def test_send_is_retried_on_resource_errors(self):
        transport = FakeTransport(send_errors=2)
        correction, _ = query(transport)
        self.assertAlmostEqual(correction, 1.0, places=5)

    def test_send_gives_up_after_four_attempts(self):
        transport = FakeTransport(send_errors=4)
        with self.assertRaises(TransportError) as cm:
            query(transport)
        self.assertIn("too many retries", cm.exception.message)
        self.assertTrue(transport.closed)

    def test_poll_gives_up_after_four_attempts(self):
        transport = FakeTransport(poll_errors=4)
        with self.assertRaises(TransportError) as cm:
            query(transport)
        self.assertIn("too many retries", cm.exception.message)

    def test_poll_is_retried_on_resource_errors(self):
        transport = FakeTransport(poll_errors=3)
        correction, _ = query(transport)
        self.assertAlmostEqual(correction, 1.0, places=5)

    def test_no_reply_times_out(self):
        transport = FakeTransport(readable=False)
        with self.assertRaises(QueryTimeoutError):
            query(transport)
        self.assertTrue(transport.closed)

    def test_short_reply_is_invalid(self):
        with self.assertRaises(InvalidResponseError):
            query(FakeTransport(raw_reply=bytes(20)))

    def test_origin_mismatch_is_rejected(self):
        def tweak(resp):
            resp.origin_time = Timestamp(resp.origin_time.raw + 1)

        with self.assertRaises(ProtocolError) as cm:
            query(FakeTransport(tweak=tweak))
        self.assertIn("NTP response mismatch", cm.exception.message)

    def test_unsupported_version_is_rejected(self):
        def tweak(resp):
            resp.version = 2

        with self.assertRaises(ProtocolError) as cm:
            query(FakeTransport(tweak=tweak))
        self.assertIn("Unsupported NTP version: 2", cm.exception.message)

    def test_non_server_mode_is_rejected(self):
        def tweak(resp):
            resp.mode = Mode.BROADCAST

        with self.assertRaises(ProtocolError) as cm:
            query(FakeTransport(tweak=tweak))
        self.assertIn("Invalid NTP packet mode: broadcast", cm.exception.message)

    def test_unknown_leap_flag_is_rejected(self):
        def tweak(resp):
            resp.leap = LeapFlag.UNKNOWN

        with self.assertRaises(ProtocolError):
            query(FakeTransport(tweak=tweak))

    def test_zero_server_timestamps_are_rejected(self):
        def tweak(resp):
            resp.receive_time = Timestamp()

        with self.assertRaises(ProtocolError) as cm:
            query(FakeTransport(tweak=tweak))
        self.assertIn("invalid timestamps", cm.exception.message)

    def test_cancellation_before_send(self):
        token = CancelToken()
        token.request()
        transport = FakeTransport()
        with self.assertRaises(CanceledError):
            query(transport, token)
        self.assertEqual(transport.sent, [])
        self.assertTrue(transport.closed)

    def test_cancellation_interrupts_the_send_back_off(self):
        token = CancelToken()
        transport = FakeTransport(send_errors=4)
        timer = threading.Timer(0.02, token.request)
        original_send = transport.send
        attempts = []

        def send(data):
            attempts.append(time.monotonic())
            return original_send(data)

        transport.send = send
        timer.start()
        try:
            with self.assertRaises(CanceledError):
                query(transport, token)
        finally:
            timer.cancel()
        self.assertEqual(len(attempts), 1)
        self.assertTrue(transport.closed)

    def test_cancellation_interrupts_the_poll_back_off(self):
        token = CancelToken()
        transport = FakeTransport(poll_errors=4)
        original_poll = transport.poll_readable

        def poll_readable(timeout):
            token.request()
            return original_poll(timeout)

        transport.poll_readable = poll_readable
        started = time.monotonic()
        with self.assertRaises(CanceledError):
            query(transport, token)
        self.assertLess(time.monotonic() - started, POLL_RETRY_DELAY * POLL_MAX_ATTEMPTS)
        self.assertEqual(transport.poll_errors, 3)


class TestComputeCorrection(unittest.TestCase):
    def test_symmetric_delay(self):
        correction, latency = compute_correction(100.0, 101.05, 101.15, 100.2)
        self.assertAlmostEqual(correction, 1.0, places=9)
        self.assertAlmostEqual(latency, 0.05, places=9)

    def test_arrival_plus_correction_matches_server_departure(self):
        t1, t2, t3, t4 = 5000.0, 4990.125, 4990.25, 5000.5
        correction, latency = compute_correction(t1, t2, t3, t4)
        self.assertGreaterEqual(latency, 0.0)
        self.assertEqual(t4 + correction, t3 + latency)

    def test_both_clocks_crossing_the_era_boundary(self):
        correction, latency = compute_correction(
            ERA_SECONDS - 0.1, ERA_SECONDS - 0.05, 0.05, 0.1)
        self.assertAlmostEqual(correction, 0.0, places=5)
        self.assertAlmostEqual(latency, 0.05, places=5)

    def test_local_clock_ahead_in_the_next_era(self):
        correction, _ = compute_correction(10.0, ERA_SECONDS - 5.0, ERA_SECONDS - 4.9, 10.2)
        self.assertAlmostEqual(correction, -15.05, places=5)

    def test_server_ahead_in_the_next_era(self):
        correction, _ = compute_correction(ERA_SECONDS - 20.0, 5.0, 5.1, ERA_SECONDS - 19.8)
        self.assertAlmostEqual(correction, 24.95, places=5)

    def test_correction_is_bounded_by_half_an_era(self):
        for t2 in (0.0, 1e9, 2e9, 3e9, 4e9):
            correction, _ = compute_correction(1e9, t2, t2, 1e9)
            self.assertLessEqual(abs(correction), ERA_SECONDS / 2)


if __name__ == "__main__":
    unittest.main()
