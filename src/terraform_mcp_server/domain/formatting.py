"""Text renderers for tool output.

Every tool returns a single text block meant to be read by an LLM, so the
renderers favour flat ``- Key: value`` listings and small markdown tables.
"""

import re
from collections.abc import Iterable

from .models import (
    ModuleDetails,
    ModuleSearchResult,
    PolicyDetails,
    ProviderDataType,
    ProviderDoc,
)

REGISTRY_POLICY_BASE = "https://registry.terraform.io/v2"

_HEADER_RE = re.compile(r"^#+\s?")


def extract_readme(readme: str | None) -> str:
    """Return the readme up to (not including) its second markdown header."""
    if not readme:
        return ""

    lines: list[str] = []
    header_found = False
    for line in readme.split("\n"):
        if _HEADER_RE.match(line):
            if header_found:
                break
            header_found = True
        lines.append(line)
    return "\n".join(lines).rstrip("\n")


def _one_line(text: str | None) -> str:
    return " ".join((text or "").split())


def format_provider_doc_list(
    docs: Iterable[ProviderDoc],
    data_type: ProviderDataType,
    namespace: str,
    name: str,
    version: str,
) -> str:
    """Render the providerDocID listing returned by resolveProviderDocID."""
    parts = [
        f"Available Documentation (top matches) for {data_type.value} in "
        f"Terraform provider {namespace}/{name} version: {version}\n\n",
        "Each result includes:\n",
        "- providerDocID: tfprovider-compatible identifier\n",
        "- Title: Service or resource name\n",
        "- Category: Type of document\n",
        "For best results, select libraries based on the serviceSlug match "
        "and category of information requested.\n\n---\n\n",
    ]
    for doc in docs:
        attrs = doc.attributes
        parts.append(
            f"- providerDocID: {doc.id}\n"
            f"- Title: {attrs.title}\n"
            f"- Category: {attrs.category}\n"
        )
        if attrs.subcategory:
            parts.append(f"- Subcategory: {attrs.subcategory}\n")
        parts.append("---\n")
    return "".join(parts)


def format_module_search(query: str, result: ModuleSearchResult) -> str:
    """Render the module listing returned by searchModules."""
    if not result.modules:
        return f"No modules found matching '{query}'."

    parts = [
        f"Available Terraform Modules (top matches) for {query}\n\n",
        "Each result includes:\n",
        "- moduleID: The module ID (format: namespace/name/provider-name/module-version)\n",
        "- Name: The name of the module\n",
        "- Description: A short description of the module\n",
        "- Downloads: The total number of times the module has been downloaded\n",
        "- Verified: Verification status of the module\n",
        "- Published: The date and time when the module was published\n",
        "---\n\n",
    ]
    for module in result.modules:
        parts.append(
            f"- moduleID: {module.id}\n"
            f"- Name: {module.name}\n"
            f"- Description: {_one_line(module.description)}\n"
            f"- Downloads: {module.downloads}\n"
            f"- Verified: {str(module.verified).lower()}\n"
            f"- Published: {module.published_at or 'unknown'}\n"
            "---\n\n"
        )
    if result.meta.next_offset is not None:
        parts.append(
            f"More results are available: call searchModules again with "
            f"currentOffset={result.meta.next_offset}.\n"
        )
    return "".join(parts)


def _cell(value: object) -> str:
    if value is None:
        return ""
    return _one_line(str(value)).replace("|", "\\|")


def format_module_details(details: ModuleDetails) -> str:
    """Render a module's inputs, outputs, dependencies and examples as markdown."""
    root = details.root
    parts = [
        f"## Module: {details.namespace}/{details.name}/{details.provider}/{details.version}\n\n",
        f"**Description:** {_one_line(details.description)}\n\n",
        f"**Source:** {details.source or 'unknown'}\n\n",
        f"**Published:** {details.published_at or 'unknown'}\n\n",
    ]

    intro = extract_readme(root.readme)
    if intro:
        parts.append(f"### Readme\n\n{intro}\n\n")

    parts.append("### Inputs\n\n")
    if root.inputs:
        parts.append("| Name | Type | Description | Default | Required |\n")
        parts.append("|------|------|-------------|---------|----------|\n")
        for item in root.inputs:
            default = "" if item.default is None else f"`{_cell(item.default)}`"
            parts.append(
                f"| {_cell(item.name)} | {_cell(item.type)} | "
                f"{_cell(item.description)} | {default} | "
                f"{'yes' if item.required else 'no'} |\n"
            )
    else:
        parts.append("This module has no inputs.\n")
    parts.append("\n")

    parts.append("### Outputs\n\n")
    if root.outputs:
        parts.append("| Name | Description |\n|------|-------------|\n")
        for output in root.outputs:
            parts.append(f"| {_cell(output.name)} | {_cell(output.description)} |\n")
    else:
        parts.append("This module has no outputs.\n")
    parts.append("\n")

    if root.provider_dependencies:
        parts.append("### Provider Dependencies\n\n")
        parts.append("| Name | Namespace | Source | Version |\n")
        parts.append("|------|-----------|--------|---------|\n")
        for dep in root.provider_dependencies:
            parts.append(
                f"| {_cell(dep.name)} | {_cell(dep.namespace)} | "
                f"{_cell(dep.source)} | {_cell(dep.version)} |\n"
            )
        parts.append("\n")

    if root.resources:
        parts.append("### Resources\n\n")
        for resource in root.resources:
            parts.append(f"- `{resource.type}.{resource.name}`\n")
        parts.append("\n")

    if details.examples:
        parts.append("### Examples\n\n")
        for example in details.examples:
            parts.append(f"#### {example.name or example.path}\n\n")
            summary = extract_readme(example.readme)
            if summary:
                parts.append(f"{summary}\n\n")

    return "".join(parts).rstrip("\n") + "\n"


def format_policy_search(query: str, entries: list[tuple[str, str, str]]) -> str:
    """Render (terraform_policy_id, title, description) rows for searchPolicies."""
    parts = [
        f"Matching Terraform Policies for query: {query}\n\n",
        "Each result includes:\n",
        "- terraform_policy_id: Unique identifier to be used with the policyDetails tool\n",
        "- Name: Policy name\n",
        "- Title: Policy description\n",
        "---\n\n",
    ]
    for policy_id, title, description in entries:
        parts.append(
            f"- terraform_policy_id: {policy_id}\n"
            f"- Name: {title}\n"
            f"- Title: {_one_line(description)}\n"
            "---\n\n"
        )
    return "".join(parts)


def format_policy_details(policy_id: str, details: PolicyDetails) -> str:
    """Render a policy set's readme plus a policies.hcl usage template."""
    readme = extract_readme(details.data.attributes.readme)
    source_base = f"{REGISTRY_POLICY_BASE}/{policy_id.strip('/')}"

    policy_list: list[str] = []
    module_list: list[str] = []
    for item in details.included:
        name = item.attributes.name
        shasum = item.attributes.shasum
        if item.type == "policy-modules":
            module_list.append(
                f'\nmodule "{name}" {{\n'
                f'source = "{source_base}/policy-module/'
                f'{name}.sentinel?checksum=sha256:{shasum}"\n}}\n'
            )
        elif item.type == "policies":
            policy_list.append(
                f"- POLICY_NAME: {name}\n- POLICY_CHECKSUM: sha256:{shasum}\n\n---\n"
            )

    hcl_template = (
        f"\n{''.join(module_list)}\n"
        'policy "<<POLICY_NAME>>" {\n'
        f'source = "{source_base}/policy/'
        '<<POLICY_NAME>>.sentinel?checksum=<<POLICY_CHECKSUM>>"\n'
        'enforcement_level = "advisory"\n}\n'
    )

    return (
        f"## Policy details about {policy_id}\n\n{readme}\n\n"
        "---\n"
        "## Usage\n\n"
        "Generate the content for a HashiCorp Configuration Language (HCL) file "
        "named policies.hcl. This file should define a set of policies. For each "
        "policy provided, create a distinct policy block using the following "
        "template.\n"
        f"\n```hcl\n{hcl_template}\n```\n"
        f"Available policies with SHA for {policy_id} are: \n\n"
        f"{''.join(policy_list)}"
    )
