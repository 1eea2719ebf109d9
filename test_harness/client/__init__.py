"""
MCP client sessions for the test harness.

A ``TransportSession`` pairs a FastMCP client with the exit stack that owns
its process or container.
"""

from .transports import (
    SESSION_FACTORIES,
    TransportSession,
    create_http_session,
    create_stdio_session,
)

__all__ = [
    "SESSION_FACTORIES",
    "TransportSession",
    "create_http_session",
    "create_stdio_session",
]
