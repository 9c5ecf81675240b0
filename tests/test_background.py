import threading
import unittest

from ntpsync.core import BackgroundRunner, Level, Reporter, RunState, Severity, SyncResult
from ntpsync.utils.exceptions import ClockError, NoServerError


class RecordingReporter(Reporter):
    def __init__(self):
        super().__init__(Level.VERBOSE)
        self.messages = []

    def report(self, severity, level, message):
        self.messages.append((severity, level, message))


class FakeSynchronizer:
    def __init__(self, action=None):
        self.reporter = RecordingReporter()
        self.action = action
        self.calls = 0
        self.busy = False

    def run(self, token):
        self.calls += 1
        if self.action is not None:
            return self.action(token, self.calls)
        return SyncResult(0.0, False)


def make_runner(action=None, **kwargs):
    kwargs.setdefault("grace_period", 0)
    kwargs.setdefault("poll_interval", 0.01)
    sync = FakeSynchronizer(action)
    return BackgroundRunner(sync, **kwargs), sync


class TestBackgroundRunner(unittest.TestCase):
    def test_initial_state(self):
        runner, _ = make_runner()
        self.assertEqual(runner.state, RunState.IDLE)
        self.assertTrue(runner.wait(0))

    def test_run_finishes(self):
        runner, sync = make_runner()
        runner.run()
        self.assertTrue(runner.wait(2))
        self.assertEqual(runner.state, RunState.FINISHED)
        self.assertEqual(sync.calls, 1)
        self.assertIsInstance(runner.last_result, SyncResult)

    def test_run_once_only_until_finished(self):
        runner, sync = make_runner()
        self.assertTrue(runner.run_once())
        runner.wait(2)
        self.assertFalse(runner.run_once())
        self.assertEqual(sync.calls, 1)

        runner.run()
        runner.wait(2)
        self.assertEqual(sync.calls, 2)

    def test_stop_during_grace_period(self):
        runner, sync = make_runner(grace_period=10)
        runner.run()
        runner.stop()
        self.assertEqual(runner.state, RunState.CANCELED)
        self.assertEqual(sync.calls, 0)
        self.assertTrue(runner.wait(2))

    def test_stop_cancels_a_running_pass(self):
        started = threading.Event()

        def action(token, _):
            started.set()
            while True:
                token.sleep(0.01)

        runner, _ = make_runner(action)
        runner.run()
        self.assertTrue(started.wait(2))
        runner.stop()
        self.assertEqual(runner.state, RunState.CANCELED)

    def test_stop_gives_up_after_bounded_wait(self):
        release = threading.Event()

        def stubborn(token, _):
            release.wait(5)
            return SyncResult(0.0, False)

        runner, _ = make_runner(stubborn, max_polls=3)
        runner.run()
        try:
            with self.assertLogs("ntpsync.core.background", level="WARNING") as cm:
                runner.stop()
            self.assertIn("Background thread did not stop!", cm.output[0])
            self.assertEqual(runner.state, RunState.RUNNING)
        finally:
            release.set()
        self.assertTrue(runner.wait(2))
        self.assertEqual(runner.state, RunState.FINISHED)

    def test_stop_when_idle_is_harmless(self):
        runner, _ = make_runner()
        runner.stop()
        self.assertEqual(runner.state, RunState.IDLE)

    def test_errors_are_reported_not_raised(self):
        def failing(token, _):
            raise NoServerError("No NTP server could be used!")

        runner, sync = make_runner(failing)
        runner.run()
        runner.wait(2)
        self.assertEqual(runner.state, RunState.FINISHED)
        self.assertIsInstance(runner.last_error, NoServerError)
        self.assertEqual(sync.reporter.messages,
                         [(Severity.ERROR, Level.NORMAL, "No NTP server could be used!")])

    def test_clock_errors_are_always_shown(self):
        def failing(token, _):
            raise ClockError("Failed to set system clock!")

        runner, sync = make_runner(failing)
        runner.run()
        runner.wait(2)
        self.assertEqual(sync.reporter.messages,
                         [(Severity.ERROR, Level.QUIET, "Failed to set system clock!")])

    def test_unexpected_errors_do_not_escape(self):
        def broken(token, _):
            raise RuntimeError("boom")

        runner, sync = make_runner(broken)
        with self.assertLogs("ntpsync.core.background", level="ERROR"):
            runner.run()
            runner.wait(2)
        self.assertEqual(runner.state, RunState.FINISHED)
        self.assertEqual(sync.reporter.messages, [(Severity.ERROR, Level.NORMAL, "boom")])

    def test_superseded_run_does_not_overwrite_state(self):
        release = threading.Event()
        entered = threading.Event()

        def action(token, call):
            if call == 1:
                entered.set()
                release.wait(5)
                raise ClockError("Failed to set system clock!")
            return SyncResult(1.0, True)

        runner, _ = make_runner(action)
        runner.run()
        self.assertTrue(entered.wait(2))
        first = runner._thread
        runner.run()
        self.assertTrue(runner.wait(2))
        self.assertEqual(runner.state, RunState.FINISHED)

        release.set()
        first.join(2)
        self.assertEqual(runner.state, RunState.FINISHED)
        self.assertIsNone(runner.last_error)
        self.assertTrue(runner.last_result.applied)

    def test_busy_mirrors_the_synchronizer(self):
        runner, sync = make_runner()
        self.assertFalse(runner.busy)
        sync.busy = True
        self.assertTrue(runner.busy)


if __name__ == "__main__":
    unittest.main()
