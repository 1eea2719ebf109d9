"""
Configuration management for the test harness.

Settings come from an optional TOML file, then TEST_HARNESS_* environment
overrides, and are validated with pydantic.
"""

from .loader import (
    ClientConfig,
    ConfigLoader,
    ContainerConfig,
    HarnessConfig,
    ImageConfig,
    ReadinessConfig,
    load_config,
)

__all__ = [
    "ClientConfig",
    "ConfigLoader",
    "ContainerConfig",
    "HarnessConfig",
    "ImageConfig",
    "ReadinessConfig",
    "load_config",
]
