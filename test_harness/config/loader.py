"""Configuration loading and management for the test harness."""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG_FILE = Path(__file__).parent / "default.toml"
ENV_PREFIX = "TEST_HARNESS_"


class ImageConfig(BaseModel):
    """Server image and how to build it."""

    name: str = Field(default="terraform-mcp-server", description="Image repository name")
    version: str = Field(default="test-e2e", description="Image tag used for the run")
    build_target: str = Field(default="docker-build", description="Make target that builds the image")
    project_root: Path = Field(default=PROJECT_ROOT, description="Directory the build runs in")

    @property
    def tag(self) -> str:
        return f"{self.name}:{self.version}"

    def build_command(self) -> list[str]:
        return ["make", f"VERSION={self.version}", self.build_target]


class ContainerConfig(BaseModel):
    """Container launch settings."""

    internal_port: int = Field(default=8080, description="HTTP port inside the container")
    default_host_port: int = Field(default=8080, description="Host port when none is configured")
    port_env: str = Field(default="E2E_TEST_PORT", description="Environment variable overriding the host port")
    stop_timeout: int = Field(default=10, description="Seconds to wait for a graceful stop")

    def resolve_port(self, environ: Mapping[str, str] | None = None) -> int:
        """Host port for the HTTP container, read from the environment at call time."""
        environ = os.environ if environ is None else environ
        value = environ.get(self.port_env, "").strip()
        if not value:
            return self.default_host_port
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"{self.port_env} must be a port number, got {value!r}") from e


class ReadinessConfig(BaseModel):
    """Health polling settings."""

    health_path: str = Field(default="/health", description="Health check endpoint")
    max_attempts: int = Field(default=30, ge=1, description="Polls before giving up")
    interval: float = Field(default=1.0, ge=0, description="Seconds between polls")
    request_timeout: float = Field(default=2.0, gt=0, description="Per-request timeout in seconds")


class ClientConfig(BaseModel):
    """MCP client identity and call limits."""

    name: str = Field(default="e2e-test-client", description="clientInfo name sent on initialize")
    version: str = Field(default="0.0.1", description="clientInfo version sent on initialize")
    mcp_path: str = Field(default="/mcp", description="Streamable HTTP endpoint path")
    call_timeout: float = Field(default=30.0, gt=0, description="Deadline for each protocol call")
    expected_server_name: str = Field(default="terraform-mcp-server", description="serverInfo name the handshake must return")


class HarnessConfig(BaseModel):
    """Complete test harness configuration."""

    image: ImageConfig = Field(default_factory=ImageConfig)
    container: ContainerConfig = Field(default_factory=ContainerConfig)
    readiness: ReadinessConfig = Field(default_factory=ReadinessConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


class ConfigLoader:
    """Configuration loader with TOML support and validation."""

    def __init__(self, config_file: Path | None = None):
        """Initialize the config loader.

        Args:
            config_file: TOML file to read. Defaults to default.toml next to
                this module; a missing file means built-in defaults.
        """
        self.config_file = Path(config_file) if config_file else DEFAULT_CONFIG_FILE
        self._config: HarnessConfig | None = None

    def load_config(self, environ: Mapping[str, str] | None = None) -> HarnessConfig:
        """Load configuration from TOML, then apply environment overrides.

        Raises:
            ValueError: If the TOML file cannot be parsed or fails validation
        """
        config_data: dict[str, Any] = {}
        if self.config_file.exists():
            config_data = self._load_toml_file(self.config_file)

        config_data = self._apply_env_overrides(
            config_data, os.environ if environ is None else environ
        )

        try:
            self._config = HarnessConfig(**config_data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e
        return self._config

    def _load_toml_file(self, file_path: Path) -> dict[str, Any]:
        try:
            with open(file_path, "rb") as f:
                return tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ValueError(f"Failed to parse TOML file {file_path}: {e}") from e

    def _apply_env_overrides(
        self, config_data: dict[str, Any], environ: Mapping[str, str]
    ) -> dict[str, Any]:
        """Apply TEST_HARNESS_<SECTION>__<KEY> environment overrides.

        The double underscore separates section from key so keys may contain
        single underscores (TEST_HARNESS_READINESS__MAX_ATTEMPTS=5).
        """
        result = {
            key: dict(value) if isinstance(value, dict) else value
            for key, value in config_data.items()
        }

        for env_key, env_value in environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue
            section, sep, key = env_key[len(ENV_PREFIX):].lower().partition("__")
            if not sep or not key:
                continue
            result.setdefault(section, {})[key] = env_value

        return result

    def get_config(self) -> HarnessConfig:
        """Get the current configuration.

        Raises:
            RuntimeError: If no configuration has been loaded
        """
        if self._config is None:
            raise RuntimeError("No configuration loaded. Call load_config() first.")
        return self._config


def load_config(
    config_file: Path | None = None, environ: Mapping[str, str] | None = None
) -> HarnessConfig:
    """Load harness configuration from an optional TOML file plus environment."""
    return ConfigLoader(config_file).load_config(environ)
