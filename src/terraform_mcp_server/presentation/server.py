"""FastMCP server for Terraform registry tools, with stdio and HTTP transports.

HTTP mode runs a FastAPI application under uvicorn:

- ``GET /health`` answers 200 once the server accepts connections
- the FastMCP streamable HTTP app is mounted so the MCP endpoint is ``/mcp``
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated, Any, Literal

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field
from uvicorn import Config, Server

from .. import SERVER_NAME, __version__
from ..infrastructure.config import ServerConfig
from ..infrastructure.registry_client import RegistryClient
from .handlers import RegistryToolHandlers

logger = structlog.get_logger(__name__)

INSTRUCTIONS = (
    "Look up Terraform registry content: resolve provider documentation ids, "
    "fetch provider docs, search and inspect modules, and fetch policy sets."
)


def _annotations(title: str) -> ToolAnnotations:
    """Annotations shared by every registry tool."""
    return ToolAnnotations(title=title, readOnlyHint=True, openWorldHint=True)


class HealthResponse(BaseModel):
    """Response model for the readiness endpoint."""

    status: str
    service: str
    version: str
    transport: str


class TerraformMCPServer:
    """Owns the FastMCP instance, its tools and the transport it runs on."""

    def __init__(
        self,
        config: ServerConfig,
        registry: RegistryClient | None = None,
    ):
        """Initialize the server.

        Args:
            config: Server configuration
            registry: Registry client; one is built from config when omitted
        """
        self.config = config
        self.registry = registry or RegistryClient(config.registry)
        self.handlers = RegistryToolHandlers(self.registry)
        self.uvicorn_server: Server | None = None

        self.mcp: FastMCP = FastMCP(
            name=SERVER_NAME,
            instructions=INSTRUCTIONS,
            version=__version__,
        )
        self._setup_mcp_tools()

    def _setup_mcp_tools(self) -> None:
        """Register the registry tools."""
        handlers = self.handlers

        @self.mcp.tool(
            name="resolveProviderDocID",
            annotations=_annotations("Identify the most relevant provider document ID for a Terraform service"),
        )
        async def resolve_provider_doc_id(
            providerName: Annotated[
                str,
                Field(description="The name of the Terraform provider to perform the read or deployment operation, e.g. aws"),
            ],
            serviceSlug: Annotated[
                str,
                Field(description="The most relevant service slug for the request, e.g. s3_bucket"),
            ],
            providerNamespace: Annotated[
                str,
                Field(description="The publisher of the Terraform provider, typically hashicorp"),
            ] = "hashicorp",
            providerDataType: Annotated[
                Literal["resources", "data-sources", "functions", "guides", "overview"],
                Field(description="The type of the document to retrieve"),
            ] = "resources",
            providerVersion: Annotated[
                str,
                Field(description="The version of the provider, e.g. 5.0.0, or latest"),
            ] = "latest",
        ) -> str:
            """Fetch the providerDocID of the documents that match a provider service.

            Call this first to find the exact providerDocID, then call
            getProviderDocs with it to read the document.
            """
            return await handlers.resolve_provider_doc_id(
                provider_name=providerName,
                service_slug=serviceSlug,
                provider_namespace=providerNamespace,
                provider_data_type=providerDataType,
                provider_version=providerVersion,
            )

        @self.mcp.tool(
            name="getProviderDocs",
            annotations=_annotations("Fetch detailed Terraform provider documentation using a providerDocID"),
        )
        async def get_provider_docs(
            providerDocID: Annotated[
                str,
                Field(description="Exact providerDocID from resolveProviderDocID, e.g. 8894603"),
            ],
        ) -> str:
            """Fetch up-to-date documentation for a specific provider document.

            You must call resolveProviderDocID first to obtain the providerDocID.
            """
            return await handlers.get_provider_docs(providerDocID)

        @self.mcp.tool(
            name="searchModules",
            annotations=_annotations("Search and match Terraform modules based on name and relevance"),
        )
        async def search_modules(
            moduleQuery: Annotated[
                str, Field(description="The query to search for Terraform modules")
            ],
            currentOffset: Annotated[
                int, Field(description="Current offset for pagination", ge=0)
            ] = 0,
        ) -> str:
            """Search the registry for modules and return their moduleIDs."""
            return await handlers.search_modules(moduleQuery, currentOffset)

        @self.mcp.tool(
            name="moduleDetails",
            annotations=_annotations("Retrieve documentation for a specific Terraform module"),
        )
        async def module_details(
            moduleID: Annotated[
                str,
                Field(description="Exact moduleID from searchModules, e.g. terraform-aws-modules/vpc/aws/5.1.0"),
            ],
        ) -> str:
            """Fetch inputs, outputs, dependencies and examples for a module.

            You must call searchModules first to obtain the moduleID.
            """
            return await handlers.module_details(moduleID)

        @self.mcp.tool(
            name="searchPolicies",
            annotations=_annotations("Search and match Terraform policies based on name and relevance"),
        )
        async def search_policies(
            policyQuery: Annotated[
                str, Field(description="The query to search for Terraform policy sets")
            ],
        ) -> str:
            """Search the registry for policy sets and return their terraform_policy_id."""
            return await handlers.search_policies(policyQuery)

        @self.mcp.tool(
            name="policyDetails",
            annotations=_annotations("Fetch detailed Terraform policy documentation using a terraform_policy_id"),
        )
        async def policy_details(
            terraform_policy_id: Annotated[
                str,
                Field(description="terraform_policy_id from searchPolicies, e.g. policies/hashicorp/CIS-Policy-Set-for-AWS-Terraform/1.0.1"),
            ],
        ) -> str:
            """Fetch documentation and a policies.hcl template for a policy set.

            You must call searchPolicies first to obtain the terraform_policy_id.
            """
            return await handlers.policy_details(terraform_policy_id)

    def create_http_app(self) -> FastAPI:
        """Build the FastAPI application serving /health and the MCP endpoint."""
        transport = self.config.transport
        mcp_app = self.mcp.http_app(path=transport.mcp_path)

        @asynccontextmanager
        async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
            logger.info("HTTP transport starting", mcp_path=transport.mcp_path)
            # The MCP session manager must run for the lifetime of the app
            async with mcp_app.lifespan(app):
                yield
            logger.info("HTTP transport stopped")

        app = FastAPI(
            title="Terraform MCP Server",
            version=__version__,
            docs_url=None,
            redoc_url=None,
            lifespan=lifespan,
        )

        app.add_middleware(
            CORSMiddleware,
            allow_origins=transport.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["mcp-session-id"],
        )

        @app.exception_handler(Exception)
        async def global_exception_handler(
            request: Request, exc: Exception
        ) -> JSONResponse:
            logger.error("HTTP: Unhandled exception", error=str(exc), path=str(request.url))
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "error": str(exc)},
            )

        @app.get(transport.health_path, response_model=HealthResponse)
        async def health() -> HealthResponse:
            return HealthResponse(
                status="ok",
                service=SERVER_NAME,
                version=__version__,
                transport="streamable-http",
            )

        # Registered last so /health wins over the catch-all mount
        app.mount("/", mcp_app)
        return app

    async def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        logger.info("Starting stdio transport", server=SERVER_NAME)
        await self.mcp.run_async(transport="stdio")

    async def run_http(self, host: str | None = None, port: int | None = None) -> None:
        """Serve /health and /mcp over HTTP until shutdown."""
        host = host or self.config.transport.host
        port = port or self.config.transport.port
        logger.info(
            "Starting HTTP transport",
            host=host,
            port=port,
            mcp_path=self.config.transport.mcp_path,
        )

        config = Config(
            app=self.create_http_app(),
            host=host,
            port=port,
            log_config=None,  # Use structlog instead
        )
        self.uvicorn_server = Server(config)
        await self.uvicorn_server.serve()

    async def start(self, transport: str | None = None, port: int | None = None) -> None:
        """Run the configured (or overridden) transport."""
        mode = transport or self.config.transport.mode
        if mode == "http":
            await self.run_http(port=port)
        else:
            await self.run_stdio()

    async def stop(self) -> None:
        """Stop the HTTP listener, if any, and release the registry client."""
        if self.uvicorn_server is not None:
            self.uvicorn_server.should_exit = True
        await self.registry.close()
        logger.info("Server stopped")

    async def __aenter__(self) -> "TerraformMCPServer":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        await self.stop()
        return False
