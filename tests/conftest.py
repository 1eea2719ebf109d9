"""Shared fixtures for the server and harness tests."""

import pytest
import pytest_asyncio

from terraform_mcp_server.infrastructure.config import RegistryConfig
from terraform_mcp_server.infrastructure.registry_client import RegistryClient

from .fakes import (
    AWS_PROVIDER_V1,
    AWS_PROVIDER_V2,
    MODULE_DETAILS,
    MODULE_SEARCH,
    POLICY_DETAILS,
    POLICY_LIST,
    REGISTRY_URL,
    S3_BUCKET_DOC_CONTENT,
    FakeRegistry,
    docs_by_slug,
    provider_doc,
)


@pytest.fixture
def fake_registry() -> FakeRegistry:
    """A registry pre-loaded with the AWS provider, a VPC module and a policy set."""
    registry = FakeRegistry()
    registry.add("/v1/providers/hashicorp/aws", AWS_PROVIDER_V1)
    registry.add("/v2/providers/hashicorp/aws", AWS_PROVIDER_V2)
    registry.add("/v2/provider-docs", docs_by_slug)
    s3_doc = provider_doc("8894603", "resources", "s3_bucket")
    s3_doc["attributes"]["content"] = S3_BUCKET_DOC_CONTENT
    registry.add("/v2/provider-docs/8894603", {"data": s3_doc})
    registry.add("/v1/modules/search", MODULE_SEARCH)
    registry.add("/v1/modules/terraform-aws-modules/vpc/aws/5.1.0", MODULE_DETAILS)
    registry.add("/v2/policies", POLICY_LIST)
    registry.add("/v2/policies/hashicorp/CIS-Policy-Set-for-AWS-Terraform/1.0.1", POLICY_DETAILS)
    return registry


@pytest_asyncio.fixture
async def registry_client(fake_registry: FakeRegistry):
    """RegistryClient wired to the fake registry."""
    client = RegistryClient(
        RegistryConfig(base_url=REGISTRY_URL), transport=fake_registry.transport()
    )
    yield client
    await client.close()


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run end-to-end tests that build and start Docker containers",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="end-to-end tests need --run-e2e")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)
