"""Tests for the test-harness CLI transport loop."""

from contextlib import AsyncExitStack
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from test_harness import cli
from test_harness.client.transports import TransportSession
from test_harness.config.loader import HarnessConfig
from test_harness.errors import TransportSetupError


@pytest.mark.asyncio
async def test_every_transport_runs_and_sweep_follows(monkeypatch):
    async def not_connected():
        raise RuntimeError("client is not connected")

    async def pipe_closed():
        raise RuntimeError("pipe closed")

    async def stdio_session(config, manager):
        stack = AsyncExitStack()
        stack.push_async_callback(pipe_closed)
        client = SimpleNamespace(session=SimpleNamespace(initialize=not_connected))
        return TransportSession("stdio", client, stack)

    async def http_session(config, manager):
        raise TransportSetupError("http", "port already in use")

    monkeypatch.setitem(cli.SESSION_FACTORIES, "stdio", stdio_session)
    monkeypatch.setitem(cli.SESSION_FACTORIES, "http", http_session)
    manager = Mock()

    outcomes = await cli._run_transports(HarnessConfig(), manager, ["stdio", "http"])

    assert [(o.item_id, o.passed) for o in outcomes] == [
        ("stdio_initialize/handshake", False),
        ("stdio_teardown/session", False),
        ("http_setup/session", False),
    ]
    assert outcomes[1].detail == "pipe closed"
    manager.sweep_all.assert_called_once_with()
