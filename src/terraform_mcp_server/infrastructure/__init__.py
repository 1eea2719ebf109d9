"""Infrastructure layer: configuration, logging, errors and the registry client."""

from .config import ConfigManager, RegistryConfig, ServerConfig, TransportConfig
from .error_handler import describe_error, log_and_raise
from .registry_client import RegistryClient

__all__ = [
    "ConfigManager",
    "RegistryConfig",
    "ServerConfig",
    "TransportConfig",
    "RegistryClient",
    "describe_error",
    "log_and_raise",
]
