"""Terraform MCP Server - Terraform registry lookups exposed as MCP tools.

This package provides an MCP server that lets AI agents resolve provider
documentation, search and inspect registry modules, and fetch policy sets
from the Terraform registry over stdio or streamable HTTP.
"""

__version__ = "0.1.0"

SERVER_NAME = "terraform-mcp-server"

from .domain.models import (  # noqa: E402
    ErrorCode,
    ProviderDataType,
    RegistryError,
    TerraformMCPError,
)

__all__ = [
    "__version__",
    "SERVER_NAME",
    "ErrorCode",
    "ProviderDataType",
    "RegistryError",
    "TerraformMCPError",
]
