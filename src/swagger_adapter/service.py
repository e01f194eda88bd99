"""Core router service: lookups, management operations and result rendering."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from .catalog import ApiCatalog
from .config import Settings, with_credential
from .executors import RestExecutor
from .logging import redact_payload
from .models import AdapterTool, CallResult
from .search import SearchResult, search_endpoints

logger = logging.getLogger(__name__)


class RouterService:
    """
    Agent-facing operations over the API catalog.

    Every public coroutine returns an MCP-shaped result dict; failures are
    reported with ``is_error`` set rather than raised.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: ApiCatalog,
        executor: Optional[RestExecutor] = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.executor = executor or RestExecutor(
            timeout_seconds=settings.adapter_http_timeout_seconds
        )
        self.semaphore = asyncio.Semaphore(settings.adapter_max_concurrency)

    async def execute_tool(self, tool: AdapterTool, payload: Dict[str, Any]) -> Dict[str, Any]:
        endpoint = tool.endpoint
        instance = self.catalog.get(endpoint.api_name)
        if instance is None:
            return self._api_not_found(endpoint.api_name)

        async with self.semaphore:
            logger.info("Executing tool=%s payload=%s", tool.tool_name, redact_payload(payload))
            result = await self.executor.execute(instance, endpoint, payload)
        return self._format_call(result)

    async def call_endpoint(
        self,
        api_name: str,
        method: str,
        path: str,
        parameters: Optional[Dict[str, Any]] = None,
        auth_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        instance = self.catalog.get(api_name)
        if instance is None:
            return self._api_not_found(api_name)

        endpoint = self.catalog.find_endpoint(api_name, method, path)
        if endpoint is None:
            return self._format_error(
                f"**Endpoint not found**: {method.upper()} {path}\n\n"
                f"API: {api_name}\n"
                "Use search_api with a query to find available endpoints."
            )

        override = with_credential(instance.config.auth, auth_token) if auth_token else None
        async with self.semaphore:
            logger.info(
                "Calling endpoint api=%s %s %s parameters=%s",
                api_name,
                endpoint.method,
                path,
                redact_payload(parameters or {}),
            )
            result = await self.executor.execute(
                instance, endpoint, dict(parameters or {}), auth_override=override
            )
        return self._format_call(result)

    def search(self, query: str) -> Dict[str, Any]:
        return self._format_search(search_endpoints(self.catalog.endpoints(), query))

    async def search_or_call(
        self,
        query: Optional[str] = None,
        api_name: Optional[str] = None,
        method: Optional[str] = None,
        path: Optional[str] = None,
        parameters: Optional[Dict[str, Any]] = None,
        auth_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        if query and not api_name and not method and not path:
            return self.search(query)
        if api_name and method and path:
            return await self.call_endpoint(api_name, method, path, parameters, auth_token)
        return self._format_error(
            "**Invalid Usage**\n\n"
            "**Search Mode**: Provide only `query` parameter\n"
            'Example: {"query": "product"}\n\n'
            "**Call Mode**: Provide `api_name`, `method`, and `path`\n"
            'Example: {"api_name": "product_enterprise", "method": "GET", '
            '"path": "/v2/project/{projectId}/product/overview", '
            '"parameters": {"projectId": "123"}}'
        )

    def list_apis(self) -> Dict[str, Any]:
        instances = self.catalog.list()
        failures = self.catalog.failures()
        if not instances and not failures:
            return self._format_text("No APIs are currently loaded.")

        lines: List[str] = []
        if instances:
            lines.append("Available APIs:\n")
        else:
            lines.append("No APIs are currently loaded.\n")
        for instance in instances:
            description = instance.description[:100] or "N/A"
            lines.extend(
                [
                    f"**{instance.title}** ({instance.name})",
                    f"  Base URL: {instance.base_url}",
                    f"  Version: {instance.version}",
                    f"  Description: {description}",
                    f"  Tools: {self.catalog.endpoint_count(instance.name)}",
                    "",
                ]
            )
        if failures:
            lines.append("Failed to load:")
            lines.extend(f"  {failure.api_name}: {failure.error}" for failure in failures)
        return self._format_text("\n".join(lines).rstrip())

    def test_connection(self, message: str) -> Dict[str, Any]:
        return self._format_text(
            f"{self.settings.service_name} is working!\n"
            f"Message: {message}\n"
            f"Active APIs: {len(self.catalog.list())}"
        )

    def _api_not_found(self, api_name: str) -> Dict[str, Any]:
        available = ", ".join(self.catalog.names()) or "none"
        return self._format_error(
            f"**API not found**: {api_name}\n\nAvailable APIs: {available}"
        )

    def _format_search(self, result: SearchResult) -> Dict[str, Any]:
        if not result.found:
            return self._format_text(
                f'No endpoints found for query: "{result.query}"\n\n'
                "Try searching for terms like: product, device, user, binding, group, etc."
            )

        lines = [f'Found {result.total} matching endpoints for "{result.query}":', ""]
        for index, endpoint in enumerate(result.shown(), start=1):
            lines.extend(
                [
                    f"**{index}. {endpoint.api_title}**",
                    f"Endpoint: `{endpoint.method} {endpoint.path}`",
                    f"Summary: {endpoint.summary or 'No summary'}",
                    f"Description: {endpoint.description or 'No description'}",
                    f"API Name: {endpoint.api_name}",
                ]
            )
            if endpoint.parameters:
                names = ", ".join(parameter.name for parameter in endpoint.parameters)
                lines.append(f"Parameters: {names}")
            example = {
                "api_name": endpoint.api_name,
                "method": endpoint.method,
                "path": endpoint.path,
                "parameters": {},
                "auth_token": "your-token-here",
            }
            lines.extend(
                [
                    "",
                    "To call this endpoint, use:",
                    "```json",
                    json.dumps(example, indent=2),
                    "```",
                    "",
                ]
            )
        if result.truncated:
            lines.append(f"*Showing first {len(result.shown())} results. Total found: {result.total}*")
        return self._format_text("\n".join(lines).rstrip())

    def _format_call(self, result: CallResult) -> Dict[str, Any]:
        header = [f"**Endpoint**: {result.method} {result.path}"]
        if result.kind == CallResult.TRANSPORT_ERROR:
            return self._format_error(
                "\n".join(
                    [
                        f"**{result.api_title}** API Call Failed",
                        *header,
                        f"**URL**: {result.url}",
                        f"**Error**: {result.error}",
                    ]
                )
            )

        body = _render_body(result.body)
        if result.ok:
            text = "\n".join(
                [
                    f"**{result.api_title}** API Call Successful",
                    *header,
                    f"**Full URL**: {result.url}",
                    f"**Status**: {result.status_code}",
                    f"**Response**:\n```json\n{body}\n```",
                ]
            )
            return self._format_text(text)

        return self._format_error(
            "\n".join(
                [
                    f"**{result.api_title}** API Call Failed",
                    *header,
                    f"**Full URL**: {result.url}",
                    f"**Status**: {result.status_code}",
                    f"**Error Response**:\n```json\n{body}\n```",
                ]
            )
        )

    def _format_text(self, text: str) -> Dict[str, Any]:
        return {"content": [{"type": "text", "text": text}]}

    def _format_error(self, message: str) -> Dict[str, Any]:
        return {"content": [{"type": "text", "text": message}], "is_error": True}


def _render_body(body: Any) -> str:
    if body is None:
        return ""
    if isinstance(body, str):
        return body
    return json.dumps(body, indent=2, ensure_ascii=False)
