"""Run the tool tables against a connected MCP client.

``run_tool_case`` raises ``AssertionError`` on the first mismatch so pytest
reports it against the case. ``run_suite`` catches per case and returns a
``CaseOutcome`` for each, for the CLI.
"""

import asyncio
from dataclasses import dataclass

import structlog
from fastmcp import Client
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError
from mcp.types import CallToolResult, InitializeResult, TextContent

from .config.loader import HarnessConfig
from .scenarios.cases import TOOL_TABLES, ContentType, ToolCase

logger = structlog.get_logger(__name__)

# Tools whose successful result may carry no content
EMPTY_CONTENT_TOOLS = {"searchModules"}


@dataclass
class CaseOutcome:
    """Result of one tool case on one transport."""

    transport: str
    tool: str
    case: str
    passed: bool
    detail: str = ""

    @property
    def item_id(self) -> str:
        return case_id(self.transport, self.tool, self.case)


def case_id(transport: str, tool: str, case: str) -> str:
    return f"{transport}_{tool}/{case}"


async def ensure_initialized(client: Client, config: HarnessConfig) -> InitializeResult:
    """Re-run the initialize handshake and check who answered."""
    async with asyncio.timeout(config.client.call_timeout):
        result = await client.session.initialize()

    server = result.serverInfo
    logger.debug("Initialized with server", name=server.name, version=server.version)
    if server.name != config.client.expected_server_name:
        raise AssertionError(
            f"expected server {config.client.expected_server_name!r}, got {server.name!r}"
        )
    return result


def _response_text(result: CallToolResult) -> str:
    return " ".join(item.text for item in result.content if isinstance(item, TextContent))


def check_category(tool: str, content_type: ContentType, text: str) -> None:
    """Category substring checks for a successful response."""
    if tool == "resolveProviderDocID":
        required = {
            ContentType.DATA_SOURCE: "Category: data-sources",
            ContentType.RESOURCE: "Category: resources",
            ContentType.GUIDES: "guide",
            ContentType.FUNCTIONS: "functions",
        }.get(content_type)
        if required and required not in text:
            raise AssertionError(f"expected {tool} content to contain {required!r}")
    elif tool == "getProviderDocs":
        if "page_title" not in text:
            raise AssertionError(f"expected {tool} content to contain a page_title")
    elif tool == "moduleDetails":
        forbidden = {
            ContentType.DATA_SOURCE: "**Category:** resources",
            ContentType.RESOURCE: "**Category:** data-sources",
        }.get(content_type)
        if forbidden and forbidden in text:
            raise AssertionError(f"expected {tool} content not to contain {forbidden!r}")


def check_response(tool: str, case: ToolCase, result: CallToolResult) -> None:
    """Shape and content checks for an expected-success call."""
    if result.isError:
        raise AssertionError(f"expected {tool} result not to be an error: {_response_text(result)}")

    content = result.content
    if tool in EMPTY_CONTENT_TOOLS:
        if not content:
            logger.info("Response content is empty for successful call", tool=tool, case=case.name)
            return
    elif len(content) != 1:
        raise AssertionError(f"expected {tool} content to have one item, got {len(content)}")

    item = content[0]
    if not isinstance(item, TextContent):
        raise AssertionError(f"expected {tool} content to be text, got {item.type}")
    logger.debug("Content received", tool=tool, case=case.name, length=len(item.text))

    check_category(tool, case.content_type, item.text)


async def run_tool_case(
    client: Client, tool: str, case: ToolCase, config: HarnessConfig
) -> CallToolResult | None:
    """Handshake, call the tool and check the response.

    Returns:
        The tool result for expected-success cases, None for expected failures

    Raises:
        AssertionError: If the response does not match the case
    """
    await ensure_initialized(client, config)
    logger.info(
        "Calling tool",
        tool=tool,
        case=case.name,
        description=case.description,
        payload=case.arguments(),
    )

    if case.should_fail:
        try:
            async with asyncio.timeout(config.client.call_timeout):
                await client.call_tool(tool, case.arguments())
        except (ToolError, McpError, TimeoutError) as e:
            logger.info(
                "Tool failed as expected",
                tool=tool,
                case=case.name,
                error=str(e) or type(e).__name__,
            )
            return None
        raise AssertionError(f"expected {tool} call to fail for case {case.name}")

    async with asyncio.timeout(config.client.call_timeout):
        result = await client.call_tool_mcp(tool, case.arguments())
    check_response(tool, case, result)
    return result


async def run_suite(
    client: Client,
    transport_name: str,
    config: HarnessConfig | None = None,
    tables: dict[str, tuple[ToolCase, ...]] | None = None,
) -> list[CaseOutcome]:
    """Run every table and collect one outcome per case without stopping early.

    Any exception from a case, including a transport that died mid-run, is
    recorded as a failed outcome for that case.
    """
    config = config or HarnessConfig()
    outcomes: list[CaseOutcome] = []

    try:
        await ensure_initialized(client, config)
        outcomes.append(CaseOutcome(transport_name, "initialize", "handshake", True))
    except Exception as e:
        detail = _failure_detail(e)
        logger.warning("Handshake failed", transport=transport_name, error=detail)
        outcomes.append(CaseOutcome(transport_name, "initialize", "handshake", False, detail))
        return outcomes

    for tool, cases in (tables or TOOL_TABLES).items():
        for case in cases:
            try:
                await run_tool_case(client, tool, case, config)
            except Exception as e:
                detail = _failure_detail(e)
                logger.warning("Case failed", item=case_id(transport_name, tool, case.name), error=detail)
                outcomes.append(CaseOutcome(transport_name, tool, case.name, False, detail))
            else:
                outcomes.append(CaseOutcome(transport_name, tool, case.name, True))

    return outcomes


def _failure_detail(error: Exception) -> str:
    # Assertion and tool errors carry readable messages; anything else is named by type
    if isinstance(error, (AssertionError, ToolError, McpError)) and str(error):
        return str(error)
    message = str(error)
    return f"{type(error).__name__}: {message}" if message else type(error).__name__
