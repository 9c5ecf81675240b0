import time
import unittest
from types import SimpleNamespace

import ntpsync.system.clock as clock_mod
import ntpsync.system.network as network
from ntpsync.system import SystemClock
from ntpsync.utils.exceptions import NetworkError


class TestSystemClock(unittest.TestCase):
    def with_time(self, value, func):
        old_time = clock_mod.time.time
        clock_mod.time.time = lambda: value
        try:
            return func()
        finally:
            clock_mod.time.time = old_time

    def test_utc_hardware_clock(self):
        clock = SystemClock(utc_offset=60)
        self.assertEqual(self.with_time(1000.0, clock.now), 1000.0)

    def test_local_hardware_clock_is_shifted_to_utc(self):
        clock = SystemClock(utc_offset=60, local_clock=True)
        self.assertEqual(self.with_time(10000.0, clock.now), 10000.0 - 3600)

    def test_format_now_uses_the_utc_offset(self):
        clock = SystemClock(utc_offset=90)
        self.assertEqual(self.with_time(0.25, clock.format_now), "1970-01-01 01:30:00.250")

    @unittest.skipUnless(hasattr(time, "clock_settime"), "clock_settime() not available")
    def test_apply_correction_reports_failure(self):
        old_settime = clock_mod.time.clock_settime

        def denied(clk, value):
            raise PermissionError(1, "Operation not permitted")

        clock_mod.time.clock_settime = denied
        try:
            with self.assertLogs("ntpsync.system.clock", level="ERROR"):
                self.assertFalse(SystemClock().apply_correction(1.5))
        finally:
            clock_mod.time.clock_settime = old_settime

    @unittest.skipUnless(hasattr(time, "clock_settime"), "clock_settime() not available")
    def test_apply_correction_steps_the_clock(self):
        old_settime = clock_mod.time.clock_settime
        old_gettime = clock_mod.time.clock_gettime
        calls = []

        clock_mod.time.clock_gettime = lambda clk: 500.0
        clock_mod.time.clock_settime = lambda clk, value: calls.append((clk, value))
        try:
            self.assertTrue(SystemClock().apply_correction(-2.5))
        finally:
            clock_mod.time.clock_settime = old_settime
            clock_mod.time.clock_gettime = old_gettime
        self.assertEqual(calls, [(time.CLOCK_REALTIME, 497.5)])


class TestNetwork(unittest.TestCase):
    def with_interfaces(self, stats, func):
        old = network.psutil.net_if_stats
        if isinstance(stats, Exception):
            def boom():
                raise stats
            network.psutil.net_if_stats = boom
        else:
            network.psutil.net_if_stats = lambda: stats
        try:
            return func()
        finally:
            network.psutil.net_if_stats = old

    def test_loopback_is_not_a_network(self):
        stats = {"lo": SimpleNamespace(isup=True)}
        self.assertEqual(self.with_interfaces(stats, network.active_interfaces), [])
        with self.assertRaises(NetworkError):
            self.with_interfaces(stats, network.ensure_network)

    def test_up_interfaces_are_listed(self):
        stats = {
            "lo": SimpleNamespace(isup=True),
            "wlan0": SimpleNamespace(isup=True),
            "eth0": SimpleNamespace(isup=True),
            "eth1": SimpleNamespace(isup=False),
        }
        self.assertEqual(self.with_interfaces(stats, network.active_interfaces), ["eth0", "wlan0"])
        self.with_interfaces(stats, network.ensure_network)

    def test_psutil_failure_means_no_network(self):
        self.assertEqual(self.with_interfaces(OSError("denied"), network.active_interfaces), [])


if __name__ == "__main__":
    unittest.main()
