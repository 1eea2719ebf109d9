"""Domain models for the Terraform MCP Server."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ProviderDataType(str, Enum):
    """Documentation categories published for a provider version."""

    RESOURCES = "resources"
    DATA_SOURCES = "data-sources"
    FUNCTIONS = "functions"
    GUIDES = "guides"
    OVERVIEW = "overview"


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    INVALID_ARGUMENT = "ARG_001"
    REGISTRY_UNAVAILABLE = "REGISTRY_001"
    REGISTRY_REQUEST_FAILED = "REGISTRY_002"
    NOT_FOUND = "NOT_FOUND_001"
    PARSE_FAILED = "PARSE_001"
    INTERNAL_ERROR = "INTERNAL_001"


class TerraformMCPError(Exception):
    """Base exception carrying a code and structured context."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.context = context or {}
        super().__init__(message)


class RegistryError(TerraformMCPError):
    """Raised when the registry cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        code: ErrorCode = ErrorCode.REGISTRY_REQUEST_FAILED,
    ):
        self.url = url
        self.status_code = status_code
        super().__init__(
            code, message, context={"url": url, "status_code": status_code}
        )


class _RegistryModel(BaseModel):
    """Registry payloads use hyphenated keys and carry many unused fields."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Providers


class ProviderDetails(_RegistryModel):
    """v1 provider lookup (`/v1/providers/{namespace}/{name}`)."""

    namespace: str
    name: str
    version: str
    versions: list[str] = Field(default_factory=list)


class ProviderVersionAttributes(_RegistryModel):
    version: str


class ProviderVersion(_RegistryModel):
    id: str
    type: str
    attributes: ProviderVersionAttributes


class ProviderData(_RegistryModel):
    id: str
    type: str


class ProviderVersionList(_RegistryModel):
    """v2 provider lookup including its `provider-versions`."""

    data: ProviderData
    included: list[ProviderVersion] = Field(default_factory=list)

    def version_id(self, version: str) -> str | None:
        """Return the registry id of `version`, if the provider publishes it."""
        for item in self.included:
            if item.type == "provider-versions" and item.attributes.version == version:
                return item.id
        return None


class ProviderDocAttributes(_RegistryModel):
    category: str
    slug: str
    title: str
    language: str = "hcl"
    path: str | None = None
    subcategory: str | None = None
    content: str | None = None


class ProviderDoc(_RegistryModel):
    id: str
    type: str = "provider-docs"
    attributes: ProviderDocAttributes


class ProviderDocList(_RegistryModel):
    data: list[ProviderDoc] = Field(default_factory=list)


class ProviderDocDetails(_RegistryModel):
    data: ProviderDoc


# Modules


class ModuleSummary(_RegistryModel):
    id: str
    namespace: str
    name: str
    provider: str
    version: str
    description: str | None = None
    source: str | None = None
    published_at: str | None = None
    downloads: int = 0
    verified: bool = False


class SearchMeta(_RegistryModel):
    limit: int = 0
    current_offset: int = 0
    next_offset: int | None = None


class ModuleSearchResult(_RegistryModel):
    meta: SearchMeta = Field(default_factory=SearchMeta)
    modules: list[ModuleSummary] = Field(default_factory=list)


class ModuleInput(_RegistryModel):
    name: str
    type: str | None = None
    description: str | None = None
    default: Any = None
    required: bool = False


class ModuleOutput(_RegistryModel):
    name: str
    description: str | None = None


class ProviderDependency(_RegistryModel):
    name: str
    namespace: str | None = None
    source: str | None = None
    version: str | None = None


class ModuleResource(_RegistryModel):
    name: str
    type: str


class ModulePart(_RegistryModel):
    """Root module, submodule, or example of a registry module."""

    path: str = ""
    name: str = ""
    readme: str | None = None
    inputs: list[ModuleInput] = Field(default_factory=list)
    outputs: list[ModuleOutput] = Field(default_factory=list)
    provider_dependencies: list[ProviderDependency] = Field(default_factory=list)
    resources: list[ModuleResource] = Field(default_factory=list)


class ModuleDetails(_RegistryModel):
    id: str
    namespace: str
    name: str
    provider: str
    version: str
    description: str | None = None
    source: str | None = None
    published_at: str | None = None
    downloads: int = 0
    verified: bool = False
    root: ModulePart = Field(default_factory=ModulePart)
    submodules: list[ModulePart] = Field(default_factory=list)
    examples: list[ModulePart] = Field(default_factory=list)


# Policies


class PolicyLibraryAttributes(_RegistryModel):
    name: str
    full_name: str = Field(alias="full-name")
    title: str | None = None
    downloads: int = 0
    verified: bool = False


class RelationshipRef(_RegistryModel):
    id: str
    type: str


class Relationship(_RegistryModel):
    data: RelationshipRef | None = None


class PolicyLibraryRelationships(_RegistryModel):
    latest_version: Relationship = Field(
        default_factory=Relationship, alias="latest-version"
    )


class PolicyLibrary(_RegistryModel):
    id: str
    type: str
    attributes: PolicyLibraryAttributes
    relationships: PolicyLibraryRelationships = Field(
        default_factory=PolicyLibraryRelationships
    )


class PolicyVersionAttributes(_RegistryModel):
    version: str | None = None
    description: str | None = None


class PolicyVersion(_RegistryModel):
    id: str
    type: str
    attributes: PolicyVersionAttributes


class PolicyList(_RegistryModel):
    data: list[PolicyLibrary] = Field(default_factory=list)
    included: list[PolicyVersion] = Field(default_factory=list)

    def latest_version(self, library: PolicyLibrary) -> PolicyVersion | None:
        """Resolve the `latest-version` relationship of a policy library."""
        ref = library.relationships.latest_version.data
        if ref is None:
            return None
        for item in self.included:
            if item.id == ref.id and item.type == ref.type:
                return item
        return None


class PolicyItemAttributes(_RegistryModel):
    name: str | None = None
    shasum: str | None = None


class PolicyItem(_RegistryModel):
    id: str
    type: str
    attributes: PolicyItemAttributes


class PolicyDetailsAttributes(_RegistryModel):
    readme: str | None = None
    version: str | None = None


class PolicyDetailsData(_RegistryModel):
    id: str
    type: str
    attributes: PolicyDetailsAttributes


class PolicyDetails(_RegistryModel):
    data: PolicyDetailsData
    included: list[PolicyItem] = Field(default_factory=list)
