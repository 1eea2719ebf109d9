"""Main entry point for Terraform MCP Server."""

import asyncio
import sys

from .infrastructure.config import ConfigManager, ServerConfig
from .infrastructure.logging_config import configure_logging, get_application_logger
from .presentation.server import TerraformMCPServer

logger = get_application_logger(__name__)


def setup_logging(config: ServerConfig) -> None:
    """Configure logging from the loaded configuration.

    Logs always go to stderr so the stdio transport keeps stdout to itself.
    """
    configure_logging(
        log_format=config.logging.format,
        log_handler=config.logging.handler,
        level=config.logging.level,
        stream=sys.stderr,
    )


async def async_main(
    config: ServerConfig, transport: str | None = None, port: int | None = None
) -> None:
    """Run the server until its transport finishes, then release resources."""
    server = TerraformMCPServer(config)
    logger.info(
        "Starting Terraform MCP Server",
        transport=transport or config.transport.mode,
        registry=config.registry.base_url,
    )
    async with server:
        await server.start(transport=transport, port=port)


def run(
    config_file: str | None = None,
    transport: str | None = None,
    port: int | None = None,
    host: str | None = None,
) -> None:
    """Load configuration, configure logging and run the server to completion."""
    config = ConfigManager(config_file).load_config()
    if host:
        config.transport.host = host
    setup_logging(config)

    try:
        asyncio.run(async_main(config, transport=transport, port=port))
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        sys.exit(0)
    except Exception as e:
        logger.error("Fatal error", error=str(e), error_type=type(e).__name__)
        sys.exit(1)


def main() -> None:
    """Entry point driven purely by environment (MODE, TRANSPORT_PORT, ...)."""
    run()


if __name__ == "__main__":
    main()
