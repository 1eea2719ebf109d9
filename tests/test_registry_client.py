"""Tests for the registry HTTP client."""

import httpx
import pytest

from terraform_mcp_server.domain.models import ErrorCode, RegistryError
from terraform_mcp_server.infrastructure.config import RegistryConfig
from terraform_mcp_server.infrastructure.registry_client import RegistryClient

from .fakes import REGISTRY_URL, FakeRegistry


class TestBuildUrl:
    def test_v1_and_v2_prefixes(self):
        client = RegistryClient(RegistryConfig(base_url=f"{REGISTRY_URL}/"))

        assert client.build_url("providers/hashicorp/aws") == f"{REGISTRY_URL}/v1/providers/hashicorp/aws"
        assert client.build_url("/provider-docs/1", "v2") == f"{REGISTRY_URL}/v2/provider-docs/1"


class TestSendRegistryCall:
    @pytest.mark.asyncio
    async def test_returns_body_and_sends_params(self, registry_client, fake_registry):
        body = await registry_client.send_registry_call(
            "GET", "modules/search", params={"q": "vpc", "offset": 0}
        )

        assert b"terraform-aws-modules/vpc/aws/5.1.0" in body
        request = fake_registry.requests[-1]
        assert request.url.params["q"] == "vpc"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["User-Agent"].startswith("terraform-mcp-server/")

    @pytest.mark.asyncio
    async def test_404_raises_not_found(self, registry_client):
        with pytest.raises(RegistryError) as exc_info:
            await registry_client.send_registry_call("GET", "providers/hashicorp/nope")

        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert exc_info.value.status_code == 404
        assert exc_info.value.url == f"{REGISTRY_URL}/v1/providers/hashicorp/nope"

    @pytest.mark.asyncio
    async def test_server_error_raises_request_failed(self):
        registry = FakeRegistry()
        registry.add("/v2/policies", {"errors": ["boom"]}, status=503)
        client = RegistryClient(RegistryConfig(base_url=REGISTRY_URL), transport=registry.transport())

        with pytest.raises(RegistryError) as exc_info:
            await client.send_registry_call("GET", "policies", "v2")
        await client.close()

        assert exc_info.value.code == ErrorCode.REGISTRY_REQUEST_FAILED
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_failure_raises_unavailable(self):
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = RegistryClient(
            RegistryConfig(base_url=REGISTRY_URL), transport=httpx.MockTransport(refuse)
        )

        with pytest.raises(RegistryError) as exc_info:
            await client.send_registry_call("GET", "modules/search")
        await client.close()

        assert exc_info.value.code == ErrorCode.REGISTRY_UNAVAILABLE
        assert "connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_timeout_raises_unavailable(self):
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = RegistryClient(
            RegistryConfig(base_url=REGISTRY_URL), transport=httpx.MockTransport(slow)
        )

        with pytest.raises(RegistryError, match="timed out") as exc_info:
            await client.send_registry_call("GET", "modules/search")
        await client.close()

        assert exc_info.value.code == ErrorCode.REGISTRY_UNAVAILABLE
