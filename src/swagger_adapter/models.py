"""Internal models for loaded APIs, endpoints and call results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from .config import ApiConfig


@dataclass(frozen=True)
class ApiInstance:
    config: ApiConfig
    document: Mapping[str, Any]
    security_schemes: Mapping[str, Any]

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def title(self) -> str:
        return self.config.title

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def version(self) -> str:
        return str((self.document.get("info") or {}).get("version") or "N/A")

    @property
    def description(self) -> str:
        return str((self.document.get("info") or {}).get("description") or "")


@dataclass(frozen=True)
class EndpointParameter:
    name: str
    location: str
    description: Optional[str] = None
    required: bool = False


@dataclass(frozen=True)
class Endpoint:
    api_name: str
    api_title: str
    method: str
    path: str
    operation_id: Optional[str]
    summary: Optional[str]
    description: Optional[str]
    parameters: Tuple[EndpointParameter, ...]
    operation: Mapping[str, Any] = field(repr=False, compare=False)

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.api_name, self.method, self.path)


@dataclass(frozen=True)
class InputField:
    description: str
    required: bool = False


InputSchema = Dict[str, InputField]


@dataclass(frozen=True)
class LoadResult:
    api_name: str
    ok: bool
    endpoint_count: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class CallResult:
    kind: str
    api_title: str
    method: str
    path: str
    url: str
    status_code: Optional[int] = None
    body: Any = None
    error: Optional[str] = None

    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"

    @property
    def ok(self) -> bool:
        return self.kind == self.SUCCESS


@dataclass(frozen=True)
class AdapterTool:
    tool_name: str
    description: str
    endpoint: Endpoint
    input_schema: InputSchema
    input_model: Type[BaseModel]
