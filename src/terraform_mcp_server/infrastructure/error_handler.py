"""Error handling for tool handlers."""

from typing import Any, NoReturn

from fastmcp.exceptions import ToolError
from pydantic import ValidationError

from ..domain.models import ErrorCode, TerraformMCPError


def describe_error(message: str, error: BaseException | None = None) -> str:
    """Join a descriptive message with the underlying cause, if any."""
    if error is None:
        return message
    return f"{message}: {error}"


def _error_code(error: BaseException | None) -> ErrorCode:
    if isinstance(error, TerraformMCPError):
        return error.code
    if isinstance(error, ValidationError):
        return ErrorCode.PARSE_FAILED
    if error is not None:
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.INVALID_ARGUMENT


def log_and_raise(
    logger: Any,
    message: str,
    error: BaseException | None = None,
    code: ErrorCode | None = None,
    **context: Any,
) -> NoReturn:
    """Log a tool failure and raise it as a ToolError.

    The raised message always names what the tool was doing, so a caller can
    attribute the failure without a stack trace. FastMCP turns the ToolError
    into an error result for the client. Without an explicit ``code`` the
    error code is derived from ``error``; no error at all means the caller
    passed a bad argument.
    """
    fields: dict[str, Any] = dict(context)
    fields["error_code"] = (code or _error_code(error)).value
    if isinstance(error, TerraformMCPError):
        fields.update(error.context)
    elif error is not None:
        fields["error_type"] = type(error).__name__

    logger.error(message, error=str(error) if error else None, **fields)
    raise ToolError(describe_error(message, error)) from error
