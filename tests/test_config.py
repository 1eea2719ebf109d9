"""Tests for server configuration and logging setup."""

import io
import json
import logging

import pytest
import structlog
import yaml
from pydantic import ValidationError

from terraform_mcp_server.infrastructure.config import ConfigManager, TransportConfig
from terraform_mcp_server.infrastructure.logging_config import configure_logging


class TestConfigManager:
    def test_defaults_without_file_or_env(self, tmp_path):
        config = ConfigManager(str(tmp_path / "missing.yaml"), environ={}).load_config()

        assert config.transport.mode == "stdio"
        assert config.transport.port == 8080
        assert config.transport.mcp_path == "/mcp"
        assert config.transport.health_path == "/health"
        assert config.registry.base_url == "https://registry.terraform.io"
        assert config.logging.format == "console"

    def test_yaml_file_is_loaded(self, tmp_path):
        config_file = tmp_path / "server.yaml"
        config_file.write_text(
            yaml.safe_dump(
                {
                    "transport": {"mode": "http", "port": 9000},
                    "registry": {"timeout_seconds": 5},
                }
            )
        )

        config = ConfigManager(str(config_file), environ={}).load_config()

        assert config.transport.mode == "http"
        assert config.transport.port == 9000
        assert config.registry.timeout_seconds == 5

    def test_environment_overrides_file(self, tmp_path):
        config_file = tmp_path / "server.yaml"
        config_file.write_text(yaml.safe_dump({"transport": {"mode": "stdio", "port": 9000}}))
        environ = {
            "MODE": "HTTP",
            "TRANSPORT_PORT": "8181",
            "TFE_REGISTRY_URL": "https://registry.example.test",
            "LOG_FORMAT": "json",
            "MCP_CORS_ORIGINS": "https://a.example, https://b.example",
        }

        config = ConfigManager(str(config_file), environ=environ).load_config()

        assert config.transport.mode == "http"
        assert config.transport.port == 8181
        assert config.registry.base_url == "https://registry.example.test"
        assert config.logging.format == "json"
        assert config.transport.cors_origins == ["https://a.example", "https://b.example"]

    def test_config_path_from_environment(self, tmp_path):
        config_file = tmp_path / "custom.yaml"
        config_file.write_text(yaml.safe_dump({"transport": {"port": 7070}}))

        manager = ConfigManager(environ={"TERRAFORM_MCP_CONFIG": str(config_file)})

        assert manager.get_config().transport.port == 7070


class TestTransportConfig:
    @pytest.mark.parametrize("value", ["streamable-http", "Streamable_HTTP", " http "])
    def test_http_aliases(self, value):
        assert TransportConfig(mode=value).mode == "http"

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(ValidationError):
            TransportConfig(mode="websocket")


@pytest.fixture
def restore_logging():
    yield
    structlog.reset_defaults()
    logging.basicConfig(level=logging.WARNING, force=True)


def test_json_logging_goes_to_given_stream(restore_logging):
    stream = io.StringIO()
    configure_logging(log_format="json", log_handler="write", level="INFO", stream=stream)

    logger = structlog.get_logger("test")
    logger.info("Server ready", transport="stdio")
    logger.debug("filtered out")

    lines = [line for line in stream.getvalue().splitlines() if line]
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["event"] == "Server ready"
    assert event["transport"] == "stdio"
    assert event["level"] == "info"
