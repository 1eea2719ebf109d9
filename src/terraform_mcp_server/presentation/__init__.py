"""Presentation layer: MCP tool registration and the HTTP/stdio server."""

from .handlers import RegistryToolHandlers
from .server import TerraformMCPServer

__all__ = ["RegistryToolHandlers", "TerraformMCPServer"]
