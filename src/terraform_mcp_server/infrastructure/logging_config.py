"""Structured logging configuration for Terraform MCP Server."""

import logging
import sys
from typing import Any, TextIO

import structlog

# Libraries that install their own handlers; rerouted so nothing reaches stdout
THIRD_PARTY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "httpx",
    "mcp",
    "fastmcp",
)


def configure_logging(
    log_format: str = "console",
    log_handler: str = "print",
    level: str = "INFO",
    stream: TextIO = sys.stderr,
) -> None:
    """Configure structlog and stdlib logging.

    Args:
        log_format: "console" for human-readable output, "json" for structured
        log_handler: "print" for the stdlib LoggerFactory, "write" for WriteLogger
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream; stderr by default because stdio mode owns stdout
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    line_format = (
        "%(message)s"
        if log_format == "json"
        else "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.basicConfig(
        level=numeric_level,
        stream=stream,
        format=line_format,
        force=True,
    )

    for logger_name in THIRD_PARTY_LOGGERS:
        logger = logging.getLogger(logger_name)
        for existing in logger.handlers[:]:
            logger.removeHandler(existing)
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter(line_format))
        logger.addHandler(handler)
        logger.propagate = False

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.TimeStamper(fmt="ISO"),
                structlog.dev.ConsoleRenderer(),
            ]
        )

    if log_handler == "write":
        # WriteLogger tolerates closed streams better inside containers
        logger_factory: Any = structlog.WriteLoggerFactory(stream)
    else:
        logger_factory = structlog.stdlib.LoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )


def get_application_logger(name: str) -> Any:
    """Get an application logger instance"""
    return structlog.get_logger(name)
