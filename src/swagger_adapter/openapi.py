"""OpenAPI / Swagger document loader and helpers."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx


logger = logging.getLogger(__name__)

HTTP_METHODS = frozenset({"get", "put", "post", "delete", "options", "head", "patch", "trace"})


class SpecLoadError(Exception):
    pass


class OpenAPILoader:
    def __init__(
        self,
        cache_seconds: int = 3600,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.cache_seconds = cache_seconds
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self._cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def load_spec(self, url: str) -> Dict[str, Any]:
        cached = self._cache.get(url)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.HTTPError as exc:
            raise SpecLoadError(f"Failed to fetch OpenAPI spec {url}: {exc}") from exc

        if response.status_code != 200:
            raise SpecLoadError(
                f"Failed to fetch OpenAPI spec {url}: HTTP {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise SpecLoadError(f"OpenAPI spec at {url} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise SpecLoadError(f"OpenAPI spec at {url} is not a JSON object")
        if "swagger" not in data and "openapi" not in data:
            raise SpecLoadError(f"Document at {url} is not a Swagger/OpenAPI specification")

        self._cache[url] = (time.time(), data)
        return data


def extract_security_schemes(spec: Mapping[str, Any]) -> Dict[str, Any]:
    # OpenAPI 3.x
    components = spec.get("components") or {}
    if components.get("securitySchemes"):
        return dict(components["securitySchemes"])
    # Swagger 2.0
    if spec.get("securityDefinitions"):
        return dict(spec["securityDefinitions"])
    return {}


def find_api_key_scheme(schemes: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    for scheme in schemes.values():
        if isinstance(scheme, dict) and scheme.get("type") == "apiKey":
            return scheme
    return None


def resolve_ref(spec: Mapping[str, Any], ref: str) -> Optional[Dict[str, Any]]:
    """Follow a local JSON pointer such as ``#/components/parameters/limit``."""
    if not ref.startswith("#/"):
        return None
    node: Any = spec
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, Mapping) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, dict) else None


def resolve_parameters(
    spec: Mapping[str, Any], parameters: Optional[List[Any]]
) -> List[Dict[str, Any]]:
    resolved: List[Dict[str, Any]] = []
    for parameter in parameters or []:
        if not isinstance(parameter, dict):
            continue
        if "$ref" in parameter:
            target = resolve_ref(spec, parameter["$ref"])
            if target is None:
                logger.debug("Unresolvable parameter reference: %s", parameter["$ref"])
                continue
            parameter = target
        if parameter.get("name"):
            resolved.append(parameter)
    return resolved
