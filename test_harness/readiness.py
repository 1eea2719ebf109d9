"""Health polling for HTTP-mode server containers."""

import asyncio
from collections.abc import Awaitable, Callable

import httpx
import structlog

from .errors import ReadinessTimeoutError

logger = structlog.get_logger(__name__)


async def wait_ready(
    base_url: str,
    *,
    health_path: str = "/health",
    max_attempts: int = 30,
    interval: float = 1.0,
    request_timeout: float = 2.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Poll the health endpoint until it answers 200.

    Sleeps ``interval`` after every failed attempt, so success on attempt k
    costs k-1 sleeps and giving up costs exactly ``max_attempts``.

    Returns:
        The attempt number that succeeded

    Raises:
        ReadinessTimeoutError: If no attempt got a 200
    """
    url = base_url.rstrip("/") + health_path
    last_error = ""

    async with httpx.AsyncClient(timeout=request_timeout, transport=transport) as client:
        for attempt in range(1, max_attempts + 1):
            try:
                response = await client.get(url)
                await response.aclose()
                if response.status_code == 200:
                    logger.info("Server ready", url=url, attempt=attempt)
                    return attempt
                last_error = f"status {response.status_code}"
            except httpx.HTTPError as e:
                last_error = str(e) or type(e).__name__

            logger.debug("Server not ready", url=url, attempt=attempt, error=last_error)
            await sleep(interval)

    raise ReadinessTimeoutError(url, max_attempts, last_error)
