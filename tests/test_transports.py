"""Tests for transport session factories, with the MCP client and Docker faked."""

from unittest.mock import Mock

import pytest

from test_harness.client import transports
from test_harness.config.loader import HarnessConfig
from test_harness.containers import ContainerHandle
from test_harness.errors import ContainerStartError, ReadinessTimeoutError, TransportSetupError


class FakeClient:
    """Stands in for fastmcp.Client; records connect and close."""

    fail_on_connect: Exception | None = None

    def __init__(self, transport, client_info=None):
        self.transport = transport
        self.client_info = client_info
        self.events = None

    async def __aenter__(self):
        self.events.append("client connected")
        if self.fail_on_connect is not None:
            raise self.fail_on_connect
        return self

    async def __aexit__(self, *exc_info):
        self.events.append("client closed")
        return False


@pytest.fixture
def events():
    return []


@pytest.fixture
def fake_client(monkeypatch, events):
    created: list[FakeClient] = []

    def build(transport, client_info=None):
        client = FakeClient(transport, client_info=client_info)
        client.events = events
        created.append(client)
        return client

    monkeypatch.setattr(transports, "Client", build)
    monkeypatch.setattr(transports, "StreamableHttpTransport", lambda url: ("http", url))
    monkeypatch.setattr(
        transports, "StdioTransport", lambda command, args: ("stdio", command, tuple(args))
    )
    yield created
    FakeClient.fail_on_connect = None


@pytest.fixture
def ready_calls(monkeypatch, events):
    calls = []

    async def fake_wait_ready(base_url, **kwargs):
        calls.append((base_url, kwargs))
        events.append("ready")
        return 1

    monkeypatch.setattr(transports, "wait_ready", fake_wait_ready)
    return calls


@pytest.fixture
def manager(events):
    manager = Mock()
    manager.image_tag = "terraform-mcp-server:test-e2e"

    def start(mode, port):
        events.append(f"start {mode} {port}")
        return ContainerHandle("0123456789ab", port)

    manager.start.side_effect = start
    manager.stop.side_effect = lambda handle: events.append(f"stop {handle.container_id}")
    return manager


class TestHttpSession:
    @pytest.mark.asyncio
    async def test_uses_port_from_environment(self, fake_client, ready_calls, manager, events):
        session = await transports.create_http_session(
            HarnessConfig(), manager, environ={"E2E_TEST_PORT": "9191"}
        )

        manager.start.assert_called_once_with("http", 9191)
        assert ready_calls[0][0] == "http://localhost:9191"
        assert ready_calls[0][1]["max_attempts"] == 30
        assert fake_client[0].transport == ("http", "http://localhost:9191/mcp")
        assert fake_client[0].client_info.name == "e2e-test-client"
        assert fake_client[0].client_info.version == "0.0.1"
        assert session.container == ContainerHandle("0123456789ab", 9191)

        await session.release()

        assert events == [
            "start http 9191",
            "ready",
            "client connected",
            "client closed",
            "stop 0123456789ab",
        ]

    @pytest.mark.asyncio
    async def test_default_port(self, fake_client, ready_calls, manager):
        async with await transports.create_http_session(HarnessConfig(), manager, environ={}):
            pass

        manager.start.assert_called_once_with("http", 8080)

    @pytest.mark.asyncio
    async def test_release_is_idempotent(self, fake_client, ready_calls, manager):
        session = await transports.create_http_session(HarnessConfig(), manager, environ={})

        await session.release()
        await session.release()

        assert session.released
        manager.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_readiness_timeout_stops_container(self, fake_client, monkeypatch, manager, events):
        async def never_ready(base_url, **kwargs):
            raise ReadinessTimeoutError(f"{base_url}/health", 30, "connection refused")

        monkeypatch.setattr(transports, "wait_ready", never_ready)

        with pytest.raises(TransportSetupError, match="not ready after 30 attempts") as exc_info:
            await transports.create_http_session(HarnessConfig(), manager, environ={})

        assert exc_info.value.transport == "http"
        assert isinstance(exc_info.value.__cause__, ReadinessTimeoutError)
        assert events == ["start http 8080", "stop 0123456789ab"]
        assert fake_client == []

    @pytest.mark.asyncio
    async def test_start_failure_has_nothing_to_release(self, fake_client, ready_calls, manager):
        manager.start.side_effect = ContainerStartError("port is already allocated")

        with pytest.raises(TransportSetupError, match="port is already allocated"):
            await transports.create_http_session(HarnessConfig(), manager, environ={})

        manager.stop.assert_not_called()
        assert ready_calls == []

    @pytest.mark.asyncio
    async def test_connect_failure_unwinds_container(self, fake_client, ready_calls, manager, events):
        FakeClient.fail_on_connect = ConnectionError("session refused")

        with pytest.raises(TransportSetupError, match="session refused"):
            await transports.create_http_session(HarnessConfig(), manager, environ={})

        assert events[-1] == "stop 0123456789ab"

    @pytest.mark.asyncio
    async def test_bad_port_value(self, fake_client, ready_calls, manager):
        with pytest.raises(TransportSetupError, match="E2E_TEST_PORT"):
            await transports.create_http_session(
                HarnessConfig(), manager, environ={"E2E_TEST_PORT": "not-a-port"}
            )

        manager.start.assert_not_called()


class TestStdioSession:
    @pytest.mark.asyncio
    async def test_runs_image_over_docker(self, fake_client, manager, events):
        session = await transports.create_stdio_session(HarnessConfig(), manager)

        assert fake_client[0].transport == (
            "stdio",
            "docker",
            ("run", "-i", "--rm", "terraform-mcp-server:test-e2e"),
        )
        assert session.container is None

        await session.release()

        assert events == ["client connected", "client closed"]
        manager.start.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_failure(self, fake_client, manager):
        FakeClient.fail_on_connect = RuntimeError("docker: command not found")

        with pytest.raises(TransportSetupError, match="stdio transport: docker: command not found"):
            await transports.create_stdio_session(HarnessConfig(), manager)
