"""Tests for tool output renderers."""

from terraform_mcp_server.domain.formatting import (
    extract_readme,
    format_module_search,
    format_policy_search,
    format_provider_doc_list,
)
from terraform_mcp_server.domain.models import (
    ModuleSearchResult,
    ProviderDataType,
    ProviderDoc,
)


class TestExtractReadme:
    def test_stops_at_second_header(self):
        readme = "# Title\n\nIntro text.\n\n## Usage\n\nDetails."

        assert extract_readme(readme) == "# Title\n\nIntro text."

    def test_text_before_first_header_is_kept(self):
        readme = "Badges\n# Title\nBody\n# Next"

        assert extract_readme(readme) == "Badges\n# Title\nBody"

    def test_empty(self):
        assert extract_readme(None) == ""
        assert extract_readme("") == ""


def test_provider_doc_list_lines():
    docs = [
        ProviderDoc.model_validate(
            {
                "id": "8894603",
                "attributes": {"category": "resources", "slug": "s3_bucket", "title": "s3_bucket"},
            }
        )
    ]

    text = format_provider_doc_list(docs, ProviderDataType.RESOURCES, "hashicorp", "aws", "5.31.0")

    assert "for resources in Terraform provider hashicorp/aws version: 5.31.0" in text
    assert "- providerDocID: 8894603\n- Title: s3_bucket\n- Category: resources\n" in text
    assert "Subcategory" not in text


def test_module_search_empty():
    assert format_module_search("nothing", ModuleSearchResult()) == "No modules found matching 'nothing'."


def test_module_search_collapses_multiline_descriptions():
    result = ModuleSearchResult.model_validate(
        {
            "modules": [
                {
                    "id": "a/b/aws/1.0.0",
                    "namespace": "a",
                    "name": "b",
                    "provider": "aws",
                    "version": "1.0.0",
                    "description": "line one\n  line two",
                }
            ]
        }
    )

    text = format_module_search("b", result)

    assert "- Description: line one line two\n" in text
    assert "More results are available" not in text


def test_policy_search_rows():
    text = format_policy_search("cis", [("policies/a/b/1.0.0", "B", "Does\nthings")])

    assert "- terraform_policy_id: policies/a/b/1.0.0\n- Name: B\n- Title: Does things\n" in text
