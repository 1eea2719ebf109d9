#!/usr/bin/env python3
"""
Command-line interface for Terraform MCP Server.

Usage:
    terraform-mcp-server                 # transport from MODE (default stdio)
    terraform-mcp-server stdio
    terraform-mcp-server http -p 9000
    terraform-mcp-server http -c config/server.yaml
    terraform-mcp-server --version
"""

import argparse
import sys

from . import __version__
from .main import run


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with one subcommand per transport."""
    parser = argparse.ArgumentParser(
        prog="terraform-mcp-server",
        description="Terraform registry lookups exposed as MCP tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  MODE              stdio (default) or http
  TRANSPORT_HOST    HTTP listen address (default 0.0.0.0)
  TRANSPORT_PORT    HTTP listen port (default 8080)
  TFE_REGISTRY_URL  Registry base URL (default https://registry.terraform.io)
  LOG_LEVEL         DEBUG, INFO, WARNING, ERROR
  LOG_FORMAT        console or json
""",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="transport", metavar="{stdio,http}")

    stdio_parser = subparsers.add_parser("stdio", help="Serve MCP over stdin/stdout")
    stdio_parser.add_argument("-c", "--config", help="Path to a YAML config file")

    http_parser = subparsers.add_parser(
        "http", help="Serve MCP over streamable HTTP at /mcp, with /health"
    )
    http_parser.add_argument("-c", "--config", help="Path to a YAML config file")
    http_parser.add_argument("-p", "--port", type=int, help="Listen port")
    http_parser.add_argument("--host", help="Listen address")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the server."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.transport is None:
        run()
        return

    run(
        config_file=args.config,
        transport=args.transport,
        port=getattr(args, "port", None),
        host=getattr(args, "host", None),
    )


if __name__ == "__main__":
    sys.exit(main())
