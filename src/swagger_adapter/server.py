"""MCP server setup for the Swagger MCP Adapter."""

import hmac
import logging
from typing import Annotated, Any, Awaitable, Callable, Dict, Optional

from fastmcp import FastMCP
from pydantic import Field

from .catalog import ApiCatalog
from .config import RegistryConfig, Settings
from .executors import RestExecutor
from .models import AdapterTool
from .openapi import OpenAPILoader
from .service import RouterService
from .tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


async def build_server(
    settings: Settings,
    registry_config: RegistryConfig,
    openapi_loader: Optional[OpenAPILoader] = None,
    executor: Optional[RestExecutor] = None,
) -> tuple[FastMCP, object | None, RouterService]:
    openapi_loader = openapi_loader or OpenAPILoader(
        cache_seconds=settings.adapter_openapi_cache_seconds,
        timeout_seconds=settings.adapter_http_timeout_seconds,
    )
    catalog = ApiCatalog(openapi_loader, max_concurrency=settings.adapter_max_concurrency)
    service = RouterService(settings, catalog, executor)
    registry = ToolRegistry(catalog)

    mcp = FastMCP(settings.service_name, instructions=_instructions())
    app = _get_http_app(mcp, settings)
    _attach_auth(app, settings)
    _attach_healthcheck(app, catalog)

    _register_management_tools(mcp, service)

    await catalog.load(registry_config.apis)
    for tool in registry.build_tools():
        handler = _tool_handler(service, tool)
        mcp.tool(name=tool.tool_name, description=tool.description)(handler)
        logger.info("Registered tool: %s", tool.tool_name)

    logger.info(
        "Swagger MCP Adapter initialized with %s APIs and %s tools",
        len(catalog.list()),
        len(registry.tools()),
    )
    return mcp, app, service


def _tool_handler(
    service: RouterService, tool: AdapterTool
) -> Callable[[Any], Awaitable[Dict[str, Any]]]:
    async def handler(payload: tool.input_model) -> Dict[str, Any]:
        return await service.execute_tool(
            tool, payload.model_dump(by_alias=True, exclude_none=True)
        )

    handler.__name__ = tool.tool_name
    return handler


def _register_management_tools(mcp: FastMCP, service: RouterService) -> None:
    @mcp.tool(name="list_apis")
    async def list_apis() -> Dict[str, Any]:
        """List all loaded APIs with their base URL, version and tool count."""
        return service.list_apis()

    @mcp.tool(name="test_connection")
    async def test_connection(
        message: Annotated[str, Field(description="Test message")],
    ) -> Dict[str, Any]:
        """Check that the adapter is up and report how many APIs are active."""
        return service.test_connection(message)

    @mcp.tool(name="search_api")
    async def search_api(
        query: Annotated[
            Optional[str],
            Field(description="Search query to find matching API endpoints (e.g. 'product', 'device', 'user')"),
        ] = None,
        api_name: Annotated[Optional[str], Field(description="API name to call")] = None,
        method: Annotated[
            Optional[str], Field(description="HTTP method (GET, POST, PUT, DELETE)")
        ] = None,
        path: Annotated[
            Optional[str],
            Field(description="API endpoint path (e.g. '/v2/project/{projectId}/product/overview')"),
        ] = None,
        parameters: Annotated[
            Optional[Dict[str, Any]], Field(description="API parameters as key-value pairs")
        ] = None,
        auth_token: Annotated[
            Optional[str], Field(description="Credential for the API's auth scheme")
        ] = None,
    ) -> Dict[str, Any]:
        """Search endpoints (query only) or call one (api_name, method and path)."""
        return await service.search_or_call(
            query=query,
            api_name=api_name,
            method=method,
            path=path,
            parameters=parameters,
            auth_token=auth_token,
        )


def _attach_auth(app, settings: Settings) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return
    if not settings.adapter_auth_token:
        logger.warning("ADAPTER_AUTH_TOKEN not set; HTTP transport is unauthenticated")
        return

    expected = settings.adapter_auth_token.encode("utf-8")

    async def auth_middleware(request, call_next):  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.endswith("/health"):
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() == "bearer" and hmac.compare_digest(
            token.strip().encode("utf-8"), expected
        ):
            return await call_next(request)

        from starlette.responses import JSONResponse

        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    from starlette.middleware.base import BaseHTTPMiddleware

    app.add_middleware(BaseHTTPMiddleware, dispatch=auth_middleware)


def _attach_healthcheck(app, catalog: ApiCatalog) -> None:  # type: ignore[no-untyped-def]
    if not app:
        return

    async def healthcheck(_request):  # type: ignore[no-untyped-def]
        from starlette.responses import JSONResponse

        return JSONResponse(
            {
                "status": "ok",
                "apis": len(catalog.list()),
                "endpoints": len(catalog.endpoints()),
            }
        )

    app.add_route("/health", healthcheck, methods=["GET"])


def _instructions() -> str:
    return (
        "Multi-API Swagger adapter. "
        "Each tool proxies one operation from a configured OpenAPI/Swagger API; "
        "use search_api to discover endpoints and call them by api_name, method and path."
    )


def _get_http_app(mcp: FastMCP, settings: Settings):  # type: ignore[no-untyped-def]
    transport = settings.adapter_transport.lower()
    if transport in {"http"}:
        app = mcp.http_app(transport="http", stateless_http=True, json_response=True)
        _attach_cors(app)
        return app
    if transport in {"streamable-http", "streamablehttp"}:
        app = mcp.http_app(
            transport="streamable-http", stateless_http=True, json_response=True
        )
        _attach_cors(app)
        return app
    if transport in {"sse"}:
        app = mcp.http_app(transport="sse")
        _attach_cors(app)
        return app
    return None


def _attach_cors(app) -> None:  # type: ignore[no-untyped-def]
    from starlette.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
