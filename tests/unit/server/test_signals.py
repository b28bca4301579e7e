"""Tests for SIGTERM/SIGINT routing."""

import asyncio
import signal
from unittest.mock import MagicMock

from aco.server.signals import (
    SHUTDOWN_SIGNALS,
    remove_signal_handlers,
    setup_signal_handlers,
)


class TestSetupSignalHandlers:
    def test_installs_sigterm_and_sigint(self):
        loop = MagicMock()

        installed = setup_signal_handlers(loop, lambda name: None)

        assert installed == [signal.SIGTERM, signal.SIGINT]
        registered = [c.args[0] for c in loop.add_signal_handler.call_args_list]
        assert registered == [signal.SIGTERM, signal.SIGINT]

    def test_callback_receives_signal_name(self):
        loop = MagicMock()
        received = []

        setup_signal_handlers(loop, received.append)
        dispatch, sig = loop.add_signal_handler.call_args_list[0].args[1:]
        dispatch(sig)

        assert received == ["SIGTERM"]

    def test_unsupported_platform_only_warns(self, caplog):
        loop = MagicMock()
        loop.add_signal_handler.side_effect = NotImplementedError()

        installed = setup_signal_handlers(loop, lambda name: None)

        assert installed == []
        assert "Cannot handle SIGTERM" in caplog.text

    def test_real_loop_round_trip(self):
        async def _test() -> None:
            loop = asyncio.get_running_loop()
            setup_signal_handlers(loop, lambda name: None)
            remove_signal_handlers(loop)
            for sig in SHUTDOWN_SIGNALS:
                assert loop.remove_signal_handler(sig) is False

        asyncio.run(_test())


class TestRemoveSignalHandlers:
    def test_ignores_missing_handlers(self):
        loop = MagicMock()
        loop.remove_signal_handler.side_effect = RuntimeError()

        remove_signal_handlers(loop)

        assert loop.remove_signal_handler.call_count == len(SHUTDOWN_SIGNALS)
