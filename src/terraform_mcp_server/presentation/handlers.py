"""Tool handlers for Terraform MCP Server.

Each handler validates its arguments, calls the registry, parses the JSON
payload and returns the formatted text the MCP tool hands back to the caller.
Every failure leaves through ``log_and_raise`` as a ``ToolError``.
"""

import re
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..domain.formatting import (
    format_module_details,
    format_module_search,
    format_policy_details,
    format_policy_search,
    format_provider_doc_list,
)
from ..domain.models import (
    ErrorCode,
    ModuleDetails,
    ModuleSearchResult,
    PolicyDetails,
    PolicyList,
    ProviderDataType,
    ProviderDetails,
    ProviderDoc,
    ProviderDocDetails,
    ProviderDocList,
    ProviderVersionList,
    RegistryError,
)
from ..infrastructure.error_handler import log_and_raise
from ..infrastructure.registry_client import ApiVersion, RegistryClient

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Categories where the registry can filter by slug server-side
SLUG_FILTERED_TYPES = {ProviderDataType.RESOURCES, ProviderDataType.DATA_SOURCES}
MODULE_SEARCH_LIMIT = 15
DOCS_PAGE_SIZE = 100
POLICY_PAGE_SIZE = 100

_DOC_ID_RE = re.compile(r"^\d+$")


class RegistryToolHandlers:
    """Handlers backing the registry tools."""

    def __init__(self, registry: RegistryClient) -> None:
        """Initialize the handlers.

        Args:
            registry: Client used for every registry call
        """
        self.registry = registry
        self.logger = logger

    async def _fetch(
        self,
        model: type[ModelT],
        concern: str,
        uri: str,
        api_version: ApiVersion = "v1",
        params: dict[str, Any] | None = None,
    ) -> ModelT:
        """GET a registry resource and parse it into `model`."""
        try:
            body = await self.registry.send_registry_call(
                "GET", uri, api_version, params=params
            )
        except RegistryError as e:
            if e.code == ErrorCode.NOT_FOUND:
                log_and_raise(self.logger, f"{concern}: not found in the registry", e)
            log_and_raise(
                self.logger,
                f"{concern}: registry API did not return a successful response",
                e,
            )

        try:
            return model.model_validate_json(body)
        except ValidationError as e:
            log_and_raise(self.logger, f"{concern}: error unmarshalling response", e)

    # Providers

    async def resolve_provider_doc_id(
        self,
        provider_name: str,
        service_slug: str,
        provider_namespace: str = "hashicorp",
        provider_data_type: str = "resources",
        provider_version: str = "latest",
    ) -> str:
        """List the provider documents matching a service slug."""
        name = (provider_name or "").strip().lower()
        namespace = (provider_namespace or "hashicorp").strip().lower()
        slug = (service_slug or "").strip().lower()
        version = (provider_version or "latest").strip()

        if not name:
            log_and_raise(self.logger, "providerName is required and must be a string")
        if not slug:
            log_and_raise(self.logger, "serviceSlug is required and must be a string")
        try:
            data_type = ProviderDataType((provider_data_type or "resources").strip())
        except ValueError as e:
            log_and_raise(
                self.logger,
                "providerDataType must be one of "
                + ", ".join(t.value for t in ProviderDataType),
                e,
                code=ErrorCode.INVALID_ARGUMENT,
            )

        if version == "latest":
            details = await self._fetch(
                ProviderDetails,
                f"provider {namespace}/{name}",
                f"providers/{namespace}/{name}",
            )
            version = details.version

        versions = await self._fetch(
            ProviderVersionList,
            f"provider versions of {namespace}/{name}",
            f"providers/{namespace}/{name}",
            "v2",
            params={"include": "provider-versions"},
        )
        version_id = versions.version_id(version)
        if version_id is None:
            log_and_raise(
                self.logger,
                f"provider {namespace}/{name} has no version {version}",
                provider=f"{namespace}/{name}",
                code=ErrorCode.NOT_FOUND,
            )

        # Slugs are published without the provider prefix (aws_s3_bucket -> s3_bucket)
        slug = slug.removeprefix(f"{name}_")
        docs = await self._list_provider_docs(version_id, data_type, slug)
        if not docs:
            log_and_raise(
                self.logger,
                f"no {data_type.value} documentation found for serviceSlug {slug} "
                f"in provider {namespace}/{name} version {version}",
                code=ErrorCode.NOT_FOUND,
            )

        self.logger.info(
            "Resolved provider documentation",
            provider=f"{namespace}/{name}",
            version=version,
            data_type=data_type.value,
            matches=len(docs),
        )
        return format_provider_doc_list(docs, data_type, namespace, name, version)

    async def _list_provider_docs(
        self, version_id: str, data_type: ProviderDataType, slug: str
    ) -> list[ProviderDoc]:
        params = {
            "filter[provider-version]": version_id,
            "filter[category]": data_type.value,
            "filter[language]": "hcl",
            "page[size]": str(DOCS_PAGE_SIZE),
        }
        concern = f"{data_type.value} documentation listing"

        if data_type in SLUG_FILTERED_TYPES:
            exact = await self._fetch(
                ProviderDocList,
                concern,
                "provider-docs",
                "v2",
                params={**params, "filter[slug]": slug},
            )
            if exact.data:
                return exact.data

        listing = await self._fetch(
            ProviderDocList, concern, "provider-docs", "v2", params=params
        )
        matches = [
            doc
            for doc in listing.data
            if slug in doc.attributes.slug.lower()
            or slug in doc.attributes.title.lower()
        ]
        if matches or data_type in SLUG_FILTERED_TYPES:
            return matches
        # Guides, functions and overview pages are few; fall back to all of them
        return listing.data

    async def get_provider_docs(self, provider_doc_id: str) -> str:
        """Return the raw markdown of a provider document."""
        doc_id = (provider_doc_id or "").strip()
        if not doc_id:
            log_and_raise(
                self.logger,
                "providerDocID is required and must be a string, it is fetched by "
                "running the resolveProviderDocID tool",
            )
        if not _DOC_ID_RE.match(doc_id):
            log_and_raise(
                self.logger,
                f"providerDocID {doc_id} is invalid, it must be the numeric id "
                "returned by the resolveProviderDocID tool",
            )

        details = await self._fetch(
            ProviderDocDetails,
            f"provider documentation {doc_id}",
            f"provider-docs/{doc_id}",
            "v2",
        )
        content = details.data.attributes.content
        if not content:
            log_and_raise(
                self.logger, f"provider documentation {doc_id} has no content",
                code=ErrorCode.NOT_FOUND,
            )
        return content

    # Modules

    async def search_modules(self, module_query: str, current_offset: int = 0) -> str:
        """Search registry modules by free text."""
        query = (module_query or "").strip()
        if not query:
            log_and_raise(self.logger, "moduleQuery is required and must be a string")
        if current_offset < 0:
            log_and_raise(
                self.logger, f"currentOffset must be >= 0, got {current_offset}"
            )

        result = await self._fetch(
            ModuleSearchResult,
            f"module search for {query}",
            "modules/search",
            params={
                "q": query,
                "offset": current_offset,
                "limit": MODULE_SEARCH_LIMIT,
            },
        )
        if not result.modules:
            self.logger.info("Module search returned no results", query=query)
        return format_module_search(query, result)

    async def module_details(self, module_id: str) -> str:
        """Describe a registry module (namespace/name/provider[/version])."""
        module_id = (module_id or "").strip().strip("/")
        parts = module_id.split("/")
        if not module_id or len(parts) not in (3, 4) or not all(parts):
            log_and_raise(
                self.logger,
                f"moduleID {module_id!r} is invalid, expected "
                "namespace/name/provider or namespace/name/provider/version as "
                "returned by the searchModules tool",
            )

        details = await self._fetch(
            ModuleDetails, f"module details for {module_id}", f"modules/{module_id}"
        )
        return format_module_details(details)

    # Policies

    async def search_policies(self, policy_query: str) -> str:
        """Find policy libraries whose name or title matches the query."""
        query = (policy_query or "").strip()
        if not query:
            log_and_raise(self.logger, "policyQuery is required and must be a string")

        listing = await self._fetch(
            PolicyList,
            "policy listing",
            "policies",
            "v2",
            params={"page[size]": str(POLICY_PAGE_SIZE), "include": "latest-version"},
        )

        needle = query.lower()
        entries: list[tuple[str, str, str]] = []
        for library in listing.data:
            attrs = library.attributes
            haystack = " ".join(
                filter(None, [attrs.name, attrs.full_name, attrs.title])
            ).lower()
            if needle not in haystack:
                continue
            latest = listing.latest_version(library)
            if latest is None or not latest.attributes.version:
                continue
            entries.append(
                (
                    f"policies/{attrs.full_name}/{latest.attributes.version}",
                    attrs.title or attrs.name,
                    latest.attributes.description or "",
                )
            )

        if not entries:
            log_and_raise(
                self.logger, f"no policies found matching {query}", code=ErrorCode.NOT_FOUND
            )
        return format_policy_search(query, entries)

    async def policy_details(self, terraform_policy_id: str) -> str:
        """Return a policy set's readme and a policies.hcl template."""
        policy_id = (terraform_policy_id or "").strip().strip("/")
        if not policy_id:
            log_and_raise(
                self.logger,
                "terraform_policy_id cannot be empty, it is fetched by running "
                "the searchPolicies tool",
            )

        details = await self._fetch(
            PolicyDetails,
            f"policy details for {policy_id}",
            policy_id,
            "v2",
            params={"include": "policies,policy-modules,policy-library"},
        )
        return format_policy_details(policy_id, details)
