"""Catalog of loaded APIs and their indexed endpoints."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ApiConfig
from .models import ApiInstance, Endpoint, EndpointParameter, LoadResult
from .openapi import HTTP_METHODS, OpenAPILoader, extract_security_schemes, resolve_parameters


logger = logging.getLogger(__name__)


def index_endpoints(instance: ApiInstance) -> List[Endpoint]:
    """Collect up to ``max_endpoints`` operations in document order."""
    config = instance.config
    paths = instance.document.get("paths") or {}
    if not paths:
        logger.warning("No paths found in %s specification", config.name)
        return []

    logger.info("Found %s paths in %s", len(paths), config.name)
    limit = config.max_endpoints
    endpoints: List[Endpoint] = []

    for path, path_item in paths.items():
        if len(endpoints) >= limit:
            break
        if not isinstance(path_item, dict):
            continue
        shared = resolve_parameters(instance.document, path_item.get("parameters"))

        for method, operation in path_item.items():
            if len(endpoints) >= limit:
                break
            if method.lower() not in HTTP_METHODS or not isinstance(operation, dict):
                continue

            declared = resolve_parameters(instance.document, operation.get("parameters"))
            endpoint = Endpoint(
                api_name=config.name,
                api_title=config.title,
                method=method.upper(),
                path=path,
                operation_id=operation.get("operationId"),
                summary=operation.get("summary"),
                description=operation.get("description"),
                parameters=_merge_parameters(shared, declared),
                operation=operation,
            )
            endpoints.append(endpoint)
            logger.debug(
                "Collected: %s [%s %s] - %s",
                config.name,
                endpoint.method,
                path,
                endpoint.summary or "No summary",
            )

    logger.info("Collected %s endpoints for %s", len(endpoints), config.name)
    return endpoints


def _merge_parameters(
    shared: Iterable[dict], declared: Iterable[dict]
) -> Tuple[EndpointParameter, ...]:
    merged: Dict[Tuple[str, str], EndpointParameter] = {}
    for parameter in [*shared, *declared]:
        location = parameter.get("in") or "query"
        merged[(parameter["name"], location)] = EndpointParameter(
            name=parameter["name"],
            location=location,
            description=parameter.get("description"),
            required=bool(parameter.get("required", False)),
        )
    return tuple(merged.values())


class ApiCatalog:
    def __init__(self, loader: OpenAPILoader, max_concurrency: int = 20) -> None:
        self.loader = loader
        self.max_concurrency = max_concurrency
        self._instances: Dict[str, ApiInstance] = {}
        self._endpoints: Tuple[Endpoint, ...] = ()
        self._results: Tuple[LoadResult, ...] = ()

    async def load(self, configs: Iterable[ApiConfig]) -> List[LoadResult]:
        """Load every enabled API, isolating failures per API.

        Each API is fetched and indexed in its own task; the partitions are
        merged in configuration order once all tasks finish and then replace
        the current snapshot in one step.
        """
        enabled: List[ApiConfig] = []
        for config in configs:
            if config.enabled:
                enabled.append(config)
            else:
                logger.info("Skipping disabled API: %s", config.name)

        semaphore = asyncio.Semaphore(max(1, self.max_concurrency))
        partitions = await asyncio.gather(
            *(self._load_one(config, semaphore) for config in enabled)
        )

        instances: Dict[str, ApiInstance] = {}
        endpoints: List[Endpoint] = []
        results: List[LoadResult] = []
        for config, (instance, api_endpoints, result) in zip(enabled, partitions):
            results.append(result)
            if instance is None:
                continue
            instances[config.name] = instance
            endpoints.extend(api_endpoints)

        self._instances = instances
        self._endpoints = tuple(endpoints)
        self._results = tuple(results)
        logger.info("Catalog loaded with %s APIs", len(instances))
        return results

    async def _load_one(
        self, config: ApiConfig, semaphore: asyncio.Semaphore
    ) -> Tuple[Optional[ApiInstance], List[Endpoint], LoadResult]:
        async with semaphore:
            logger.info("Loading API: %s (%s)", config.title, config.name)
            try:
                document = await self.loader.load_spec(config.spec_url)
                instance = ApiInstance(
                    config=config,
                    document=document,
                    security_schemes=extract_security_schemes(document),
                )
                endpoints = index_endpoints(instance)
            except Exception as exc:
                logger.error("Failed to load API %s: %s", config.name, exc)
                return None, [], LoadResult(api_name=config.name, ok=False, error=str(exc))

        logger.info("Loaded API: %s with %s endpoints", config.title, len(endpoints))
        return instance, endpoints, LoadResult(
            api_name=config.name, ok=True, endpoint_count=len(endpoints)
        )

    def get(self, api_name: str) -> Optional[ApiInstance]:
        return self._instances.get(api_name)

    def list(self) -> List[ApiInstance]:
        return list(self._instances.values())

    def names(self) -> List[str]:
        return list(self._instances.keys())

    def endpoints(self) -> Tuple[Endpoint, ...]:
        return self._endpoints

    def results(self) -> Tuple[LoadResult, ...]:
        return self._results

    def failures(self) -> List[LoadResult]:
        return [result for result in self._results if not result.ok]

    def endpoint_count(self, api_name: str) -> int:
        return sum(1 for endpoint in self._endpoints if endpoint.api_name == api_name)

    def find_endpoint(self, api_name: str, method: str, path: str) -> Optional[Endpoint]:
        method = method.upper()
        for endpoint in self._endpoints:
            if endpoint.api_name == api_name and endpoint.method == method and endpoint.path == path:
                return endpoint
        return None
