"""Tool registry for the Swagger MCP Adapter."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .catalog import ApiCatalog
from .models import AdapterTool, Endpoint
from .naming import tool_identifier
from .schema import build_input_model, build_input_schema


logger = logging.getLogger(__name__)

# Registered by the server itself; endpoint tools never take these names.
MANAGEMENT_TOOL_NAMES = ("list_apis", "test_connection", "search_api")


class ToolRegistry:
    """Binds each indexed endpoint to a unique tool name and input model.

    When two endpoints normalize to the same name the first one registered
    keeps it and later ones get ``_2``, ``_3``... in catalog order, so a
    re-load of the same documents yields the same names.
    """

    def __init__(self, catalog: ApiCatalog) -> None:
        self.catalog = catalog
        self._tools: Dict[str, AdapterTool] = {}

    def build_tools(self) -> List[AdapterTool]:
        tools: Dict[str, AdapterTool] = {}
        for endpoint in self.catalog.endpoints():
            instance = self.catalog.get(endpoint.api_name)
            if instance is None:
                continue

            base_name = tool_identifier(
                endpoint.api_name, endpoint.operation_id, endpoint.method, endpoint.path
            )
            tool_name = self._unique_name(base_name, tools, endpoint)
            input_schema = build_input_schema(instance, endpoint)

            tools[tool_name] = AdapterTool(
                tool_name=tool_name,
                description=self._describe(endpoint),
                endpoint=endpoint,
                input_schema=input_schema,
                input_model=build_input_model(input_schema, tool_name),
            )

        self._tools = tools
        return list(tools.values())

    def get(self, tool_name: str) -> Optional[AdapterTool]:
        return self._tools.get(tool_name)

    def tools(self) -> List[AdapterTool]:
        return list(self._tools.values())

    def _unique_name(
        self, base_name: str, taken: Dict[str, AdapterTool], endpoint: Endpoint
    ) -> str:
        if base_name not in taken and base_name not in MANAGEMENT_TOOL_NAMES:
            return base_name
        suffix = 2
        while f"{base_name}_{suffix}" in taken:
            suffix += 1
        tool_name = f"{base_name}_{suffix}"
        existing = taken.get(base_name)
        logger.warning(
            "Tool name collision: %s and %s %s both map to %s; registering the latter as %s",
            f"{existing.endpoint.method} {existing.endpoint.path}" if existing else "management tool",
            endpoint.method,
            endpoint.path,
            base_name,
            tool_name,
        )
        return tool_name

    def _describe(self, endpoint: Endpoint) -> str:
        headline = endpoint.summary or endpoint.description or f"{endpoint.method} {endpoint.path}"
        return f"[{endpoint.api_title}] {headline} ({endpoint.method} {endpoint.path})"
