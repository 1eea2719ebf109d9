"""
Tool-call tables for the end-to-end suite.

One ordered table per tool; the same tables run against every transport.
"""

from .cases import (
    GET_PROVIDER_DOCS_CASES,
    MODULE_DETAILS_CASES,
    RESOLVE_PROVIDER_DOC_ID_CASES,
    SEARCH_MODULES_CASES,
    TOOL_TABLES,
    ContentType,
    ToolCase,
)

__all__ = [
    "GET_PROVIDER_DOCS_CASES",
    "MODULE_DETAILS_CASES",
    "RESOLVE_PROVIDER_DOC_ID_CASES",
    "SEARCH_MODULES_CASES",
    "TOOL_TABLES",
    "ContentType",
    "ToolCase",
]
