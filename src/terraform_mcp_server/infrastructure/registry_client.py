"""HTTP client for the Terraform registry API."""

from typing import Any, Literal

import httpx
import structlog

from ..domain.models import ErrorCode, RegistryError
from .config import RegistryConfig

ApiVersion = Literal["v1", "v2"]


class RegistryClient:
    """Thin async wrapper around the registry's v1 and v2 REST APIs.

    Callers pass the path below the API version (``providers/hashicorp/aws``)
    and get the raw response body back; parsing stays with the tool handlers.
    """

    def __init__(
        self,
        config: RegistryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or RegistryConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self.logger = structlog.get_logger(__name__)
        self.client = httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            headers={
                "Accept": "application/json",
                "User-Agent": self.config.user_agent,
            },
            follow_redirects=True,
            transport=transport,
        )

    def build_url(self, uri: str, api_version: ApiVersion = "v1") -> str:
        return f"{self.base_url}/{api_version}/{uri.lstrip('/')}"

    async def send_registry_call(
        self,
        method: str,
        uri: str,
        api_version: ApiVersion = "v1",
        params: dict[str, Any] | None = None,
    ) -> bytes:
        """Issue a registry request and return the body of a 2xx response.

        Raises:
            RegistryError: On transport failures or non-2xx responses
        """
        url = self.build_url(uri, api_version)
        self.logger.debug("Registry request", method=method, url=url, params=params)

        try:
            response = await self.client.request(method, url, params=params)
        except httpx.TimeoutException as e:
            raise RegistryError(
                f"registry request timed out: {e}",
                url=url,
                code=ErrorCode.REGISTRY_UNAVAILABLE,
            ) from e
        except httpx.RequestError as e:
            raise RegistryError(
                f"registry request failed: {e}",
                url=url,
                code=ErrorCode.REGISTRY_UNAVAILABLE,
            ) from e

        if not response.is_success:
            self.logger.warning(
                "Registry returned an error status",
                url=str(response.request.url),
                status_code=response.status_code,
            )
            code = (
                ErrorCode.NOT_FOUND
                if response.status_code == 404
                else ErrorCode.REGISTRY_REQUEST_FAILED
            )
            raise RegistryError(
                f"registry returned status {response.status_code} for {url}",
                url=url,
                status_code=response.status_code,
                code=code,
            )

        self.logger.debug(
            "Registry response",
            url=url,
            status_code=response.status_code,
            content_length=len(response.content),
        )
        return response.content

    async def close(self) -> None:
        """Close HTTP client."""
        await self.client.aclose()
