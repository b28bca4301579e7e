"""Tests for daemon start/stop bookkeeping."""

from unittest.mock import patch

from aco.server.lifecycle import DaemonLifecycle, ShutdownState


class TestShutdownState:
    def test_remaining_seconds(self):
        state = ShutdownState(
            reason="SIGTERM", requested_at=100.0, drain_deadline=130.0
        )

        assert state.remaining_seconds(now=110.0) == 20.0
        assert state.remaining_seconds(now=200.0) == 0.0


class TestDaemonLifecycle:
    def test_uptime(self):
        with patch("aco.server.lifecycle.time.monotonic", return_value=1060.0):
            lifecycle = DaemonLifecycle(started_at=1000.0)
            assert lifecycle.uptime_seconds == 60.0

    def test_not_shutting_down_initially(self):
        lifecycle = DaemonLifecycle(drain_timeout=15.0)

        assert not lifecycle.is_shutting_down
        assert lifecycle.drain_budget() == 15.0

    def test_request_opens_drain_window(self):
        lifecycle = DaemonLifecycle(drain_timeout=15.0)

        with patch("aco.server.lifecycle.time.monotonic", return_value=500.0):
            assert lifecycle.request_shutdown("SIGTERM") is True

        assert lifecycle.is_shutting_down
        assert lifecycle.shutdown.reason == "SIGTERM"
        assert lifecycle.shutdown.drain_deadline == 515.0

    def test_drain_budget_shrinks(self):
        lifecycle = DaemonLifecycle(drain_timeout=15.0)
        with patch("aco.server.lifecycle.time.monotonic", return_value=500.0):
            lifecycle.request_shutdown("SIGINT")

        with patch("aco.server.lifecycle.time.monotonic", return_value=510.0):
            assert lifecycle.drain_budget() == 5.0

    def test_second_request_keeps_first(self):
        lifecycle = DaemonLifecycle()
        lifecycle.request_shutdown("SIGTERM")
        first = lifecycle.shutdown

        assert lifecycle.request_shutdown("SIGINT") is False
        assert lifecycle.shutdown is first
