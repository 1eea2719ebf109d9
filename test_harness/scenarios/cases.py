"""Fixed tool-call tables driven against every transport.

The tables run against the live public registry, so payloads name long-lived
providers and modules.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ContentType(str, Enum):
    """What a successful response is expected to be about."""

    NONE = ""
    RESOURCE = "resources"
    DATA_SOURCE = "data-sources"
    GUIDES = "guides"
    FUNCTIONS = "functions"


@dataclass(frozen=True)
class ToolCase:
    """One tool invocation and what its response must look like."""

    name: str
    description: str
    payload: Mapping[str, Any] = field(default_factory=dict, hash=False)
    should_fail: bool = False
    content_type: ContentType = ContentType.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def arguments(self) -> dict[str, Any]:
        """Payload as a fresh dict for a tool call."""
        return dict(self.payload)


RESOLVE_PROVIDER_DOC_ID_CASES: tuple[ToolCase, ...] = (
    ToolCase(
        name="empty_payload",
        description="Calling with no arguments at all",
        payload={},
        should_fail=True,
    ),
    ToolCase(
        name="missing_provider_name",
        description="serviceSlug without providerName",
        payload={"serviceSlug": "s3_bucket", "providerDataType": "resources"},
        should_fail=True,
    ),
    ToolCase(
        name="invalid_data_type",
        description="providerDataType outside the allowed values",
        payload={
            "providerName": "aws",
            "serviceSlug": "s3_bucket",
            "providerDataType": "invalid-type",
        },
        should_fail=True,
    ),
    ToolCase(
        name="unknown_provider",
        description="A provider that does not exist in the registry",
        payload={
            "providerName": "this-provider-does-not-exist",
            "providerNamespace": "hashicorp",
            "serviceSlug": "anything",
        },
        should_fail=True,
    ),
    ToolCase(
        name="unknown_provider_version",
        description="A version the provider never published",
        payload={
            "providerName": "aws",
            "serviceSlug": "s3_bucket",
            "providerVersion": "0.0.0-does-not-exist",
        },
        should_fail=True,
    ),
    ToolCase(
        name="defaults_resource_lookup",
        description="Only providerName and serviceSlug; namespace, type and version default",
        payload={"providerName": "aws", "serviceSlug": "s3_bucket"},
        content_type=ContentType.RESOURCE,
    ),
    ToolCase(
        name="prefixed_slug_resource",
        description="Slug carrying the provider prefix, latest version",
        payload={
            "providerName": "aws",
            "providerNamespace": "hashicorp",
            "serviceSlug": "aws_s3_bucket",
            "providerDataType": "resources",
            "providerVersion": "latest",
        },
        content_type=ContentType.RESOURCE,
    ),
    ToolCase(
        name="pinned_version_resource",
        description="Resource docs for an explicitly pinned provider version",
        payload={
            "providerName": "aws",
            "providerNamespace": "hashicorp",
            "serviceSlug": "instance",
            "providerDataType": "resources",
            "providerVersion": "5.0.0",
        },
        content_type=ContentType.RESOURCE,
    ),
    ToolCase(
        name="data_source_lookup",
        description="Data source docs for an S3 bucket",
        payload={
            "providerName": "aws",
            "providerNamespace": "hashicorp",
            "serviceSlug": "s3_bucket",
            "providerDataType": "data-sources",
        },
        content_type=ContentType.DATA_SOURCE,
    ),
    ToolCase(
        name="guides_lookup",
        description="Guides published by the AWS provider",
        payload={
            "providerName": "aws",
            "serviceSlug": "custom-service-endpoints",
            "providerDataType": "guides",
        },
        content_type=ContentType.GUIDES,
    ),
    ToolCase(
        name="functions_lookup",
        description="Provider-defined functions of the AWS provider",
        payload={
            "providerName": "aws",
            "serviceSlug": "arn_parse",
            "providerDataType": "functions",
        },
        content_type=ContentType.FUNCTIONS,
    ),
)

GET_PROVIDER_DOCS_CASES: tuple[ToolCase, ...] = (
    ToolCase(
        name="missing_doc_id",
        description="Calling without providerDocID",
        payload={},
        should_fail=True,
    ),
    ToolCase(
        name="empty_doc_id",
        description="An empty providerDocID",
        payload={"providerDocID": ""},
        should_fail=True,
    ),
    ToolCase(
        name="non_numeric_doc_id",
        description="A providerDocID that is not a number",
        payload={"providerDocID": "aws_s3_bucket"},
        should_fail=True,
    ),
    ToolCase(
        name="unknown_doc_id",
        description="A numeric providerDocID the registry does not know",
        payload={"providerDocID": "999999999999"},
        should_fail=True,
    ),
    ToolCase(
        name="valid_doc_id",
        description="Documentation for a known provider document",
        payload={"providerDocID": "8894603"},
    ),
)

SEARCH_MODULES_CASES: tuple[ToolCase, ...] = (
    ToolCase(
        name="missing_query",
        description="Calling without moduleQuery",
        payload={},
        should_fail=True,
    ),
    ToolCase(
        name="negative_offset",
        description="currentOffset below zero",
        payload={"moduleQuery": "vpc", "currentOffset": -1},
        should_fail=True,
    ),
    ToolCase(
        name="simple_query",
        description="Search for VPC modules",
        payload={"moduleQuery": "vpc"},
    ),
    ToolCase(
        name="query_with_offset",
        description="Second page of a VPC search",
        payload={"moduleQuery": "vpc", "currentOffset": 15},
    ),
    ToolCase(
        name="no_matches",
        description="A query nothing matches still succeeds",
        payload={"moduleQuery": "zzz-no-module-matches-this-query-zzz"},
    ),
)

MODULE_DETAILS_CASES: tuple[ToolCase, ...] = (
    ToolCase(
        name="missing_module_id",
        description="Calling without moduleID",
        payload={},
        should_fail=True,
    ),
    ToolCase(
        name="malformed_module_id",
        description="A moduleID with too few segments",
        payload={"moduleID": "terraform-aws-modules/vpc"},
        should_fail=True,
    ),
    ToolCase(
        name="unknown_module",
        description="A well-formed moduleID that does not exist",
        payload={"moduleID": "no-such-namespace/no-such-module/aws/0.0.1"},
        should_fail=True,
    ),
    ToolCase(
        name="versioned_module",
        description="Details of a pinned VPC module version",
        payload={"moduleID": "terraform-aws-modules/vpc/aws/5.1.0"},
        content_type=ContentType.RESOURCE,
    ),
    ToolCase(
        name="latest_module",
        description="Details of the latest S3 bucket module",
        payload={"moduleID": "terraform-aws-modules/s3-bucket/aws"},
        content_type=ContentType.DATA_SOURCE,
    ),
)

TOOL_TABLES: dict[str, tuple[ToolCase, ...]] = {
    "resolveProviderDocID": RESOLVE_PROVIDER_DOC_ID_CASES,
    "getProviderDocs": GET_PROVIDER_DOCS_CASES,
    "searchModules": SEARCH_MODULES_CASES,
    "moduleDetails": MODULE_DETAILS_CASES,
}
