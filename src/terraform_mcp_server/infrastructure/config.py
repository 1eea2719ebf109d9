"""Configuration management for Terraform MCP Server."""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from .. import __version__

# Environment variable -> (section, key) in the configuration tree
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "MODE": ("transport", "mode"),
    "TRANSPORT_HOST": ("transport", "host"),
    "TRANSPORT_PORT": ("transport", "port"),
    "MCP_ENDPOINT": ("transport", "mcp_path"),
    "MCP_CORS_ORIGINS": ("transport", "cors_origins"),
    "TFE_REGISTRY_URL": ("registry", "base_url"),
    "REGISTRY_TIMEOUT": ("registry", "timeout_seconds"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
    "LOG_HANDLER": ("logging", "handler"),
}


class TransportConfig(BaseModel):
    """Transport selection and HTTP listener settings."""

    mode: Literal["stdio", "http"] = Field(
        default="stdio", description="Transport the server listens on"
    )
    host: str = Field(default="0.0.0.0", description="HTTP listen address")
    port: int = Field(default=8080, description="HTTP listen port")
    mcp_path: str = Field(default="/mcp", description="Streamable HTTP MCP endpoint")
    health_path: str = Field(default="/health", description="Readiness endpoint")
    cors_origins: list[str] = Field(default=["*"], description="CORS allowed origins")

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v: Any) -> Any:
        """Accept any casing, and treat the legacy `streamable-http` name as http."""
        if isinstance(v, str):
            v = v.strip().lower()
            if v in ("streamable-http", "streamable_http"):
                return "http"
        return v

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class RegistryConfig(BaseModel):
    """Terraform registry client settings."""

    base_url: str = Field(
        default="https://registry.terraform.io", description="Registry base URL"
    )
    timeout_seconds: float = Field(default=30.0, description="Per-request timeout")
    user_agent: str = Field(
        default=f"terraform-mcp-server/{__version__}",
        description="User-Agent sent to the registry",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: Literal["console", "json"] = Field(
        default="console", description="console or json rendering"
    )
    handler: Literal["print", "write"] = Field(
        default="print", description="print for local runs, write for containers"
    )


class ServerConfig(BaseModel):
    """Server configuration model."""

    transport: TransportConfig = Field(default_factory=TransportConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigManager:
    """Manager for loading and managing server configuration."""

    def __init__(
        self,
        config_file: str | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        """Initialize the config manager.

        Args:
            config_file: Optional path to a YAML configuration file
            environ: Environment to read overrides from (defaults to os.environ)
        """
        self.environ = os.environ if environ is None else environ
        self.config_file = config_file or self.environ.get(
            "TERRAFORM_MCP_CONFIG", "config/server.yaml"
        )
        self._config: ServerConfig | None = None

    def load_config(self) -> ServerConfig:
        """Load configuration from file, then apply environment overrides.

        Returns:
            ServerConfig instance with loaded configuration
        """
        config_data: dict[str, Any] = {}

        config_path = Path(self.config_file)
        if config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = self.environ.get(env_name)
            if value:
                config_data.setdefault(section, {})[key] = value

        self._config = ServerConfig(**config_data)
        return self._config

    def get_config(self) -> ServerConfig:
        """Get the current configuration, loading it on first use."""
        if self._config is None:
            return self.load_config()
        return self._config
