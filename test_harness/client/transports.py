"""MCP client sessions bound to a server container over stdio or HTTP.

Each factory acquires its resources on an ``AsyncExitStack`` so a failure
half-way through construction releases what was already acquired, in
reverse order, before ``TransportSetupError`` is raised.
"""

import asyncio
from collections.abc import Awaitable, Callable, Mapping
from contextlib import AsyncExitStack
from typing import Any

import structlog
from fastmcp import Client
from fastmcp.client.transports import StdioTransport, StreamableHttpTransport
from mcp.types import Implementation

from ..config.loader import HarnessConfig
from ..containers import ContainerHandle, ContainerLifecycleManager
from ..errors import TransportSetupError
from ..readiness import wait_ready

logger = structlog.get_logger(__name__)


class TransportSession:
    """A connected MCP client plus the resources that keep it alive."""

    def __init__(
        self,
        name: str,
        client: Client,
        stack: AsyncExitStack,
        container: ContainerHandle | None = None,
    ):
        self.name = name
        self.client = client
        self.container = container
        self._stack = stack
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    async def release(self) -> None:
        """Close the client and stop any container. Later calls do nothing."""
        if self._released:
            return
        self._released = True
        logger.info("Releasing transport session", transport=self.name)
        await self._stack.aclose()

    async def __aenter__(self) -> "TransportSession":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.release()


def client_info(config: HarnessConfig) -> Implementation:
    return Implementation(name=config.client.name, version=config.client.version)


async def create_stdio_session(
    config: HarnessConfig, manager: ContainerLifecycleManager
) -> TransportSession:
    """Connect a client to ``docker run -i --rm <image>`` over stdio.

    Connecting runs the MCP handshake, so no readiness wait is needed.
    """
    stack = AsyncExitStack()
    try:
        transport = StdioTransport(
            command="docker",
            args=["run", "-i", "--rm", manager.image_tag],
        )
        client = Client(transport, client_info=client_info(config))
        logger.info("Starting stdio MCP client", image=manager.image_tag)
        await stack.enter_async_context(client)
    except Exception as e:
        await stack.aclose()
        raise TransportSetupError("stdio", str(e) or type(e).__name__) from e

    return TransportSession("stdio", client, stack)


async def create_http_session(
    config: HarnessConfig,
    manager: ContainerLifecycleManager,
    environ: Mapping[str, str] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TransportSession:
    """Start an HTTP-mode container, wait for /health and connect to /mcp.

    The host port comes from the port environment variable (E2E_TEST_PORT)
    or the configured default.
    """
    stack = AsyncExitStack()
    container: ContainerHandle | None = None
    try:
        port = config.container.resolve_port(environ)
        base_url = f"http://localhost:{port}"

        container = await asyncio.to_thread(manager.start, "http", port)
        stack.push_async_callback(asyncio.to_thread, manager.stop, container)

        readiness = config.readiness
        await wait_ready(
            base_url,
            health_path=readiness.health_path,
            max_attempts=readiness.max_attempts,
            interval=readiness.interval,
            request_timeout=readiness.request_timeout,
            sleep=sleep,
        )

        client = Client(
            StreamableHttpTransport(f"{base_url}{config.client.mcp_path}"),
            client_info=client_info(config),
        )
        logger.info("Starting HTTP MCP client", url=f"{base_url}{config.client.mcp_path}")
        await stack.enter_async_context(client)
    except Exception as e:
        await stack.aclose()
        raise TransportSetupError("http", str(e) or type(e).__name__) from e

    return TransportSession("http", client, stack, container=container)


SESSION_FACTORIES = {
    "stdio": create_stdio_session,
    "http": create_http_session,
}
