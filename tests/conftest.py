"""Shared fixtures: OpenAPI documents and recording HTTP transports."""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from swagger_adapter.config import ApiConfig, BearerAuth
from swagger_adapter.models import ApiInstance
from swagger_adapter.openapi import extract_security_schemes


def openapi_document(paths: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    document = {
        "openapi": "3.0.1",
        "info": {"title": "Demo", "version": "1.2.3", "description": "Demo API for tests"},
        "paths": paths,
    }
    document.update(extra)
    return document


DEMO_PATHS: Dict[str, Any] = {
    "/items/{id}": {
        "get": {
            "operationId": "getItemUsingGET",
            "summary": "Get one item",
            "parameters": [
                {"name": "id", "in": "path", "required": True, "description": "Item id"}
            ],
        }
    }
}


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Optional[Callable[[httpx.Request], httpx.Response]] = None):
        self.requests: List[httpx.Request] = []
        handler = handler or (lambda request: httpx.Response(200, json={"ok": True}))

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


def spec_server(documents: Dict[str, Any]) -> RecordingTransport:
    """Serve ``documents`` keyed by URL; anything else is a 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        document = documents.get(str(request.url))
        if document is None:
            return httpx.Response(404, json={"error": "not found"})
        if isinstance(document, Exception):
            raise document
        if isinstance(document, str):
            return httpx.Response(200, text=document)
        return httpx.Response(200, json=document)

    return RecordingTransport(handler)


@pytest.fixture
def demo_config() -> ApiConfig:
    return ApiConfig(
        name="demo",
        title="Demo API",
        spec_url="https://x/spec.json",
        base_url="https://x/api",
        auth=BearerAuth(token="abc"),
    )


@pytest.fixture
def make_instance(demo_config: ApiConfig) -> Callable[..., ApiInstance]:
    def _make(document: Optional[Dict[str, Any]] = None, **overrides: Any) -> ApiInstance:
        config = demo_config.model_copy(update=overrides) if overrides else demo_config
        document = document or openapi_document(DEMO_PATHS)
        return ApiInstance(
            config=config,
            document=document,
            security_schemes=extract_security_schemes(document),
        )

    return _make
