"""Configuration for the Swagger MCP Adapter."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    service_name: str = Field(default="swagger-mcp-adapter")

    adapter_transport: str = Field(default="streamable-http")
    adapter_auth_token: Optional[str] = Field(default=None)

    adapter_max_concurrency: int = Field(default=20)
    adapter_openapi_cache_seconds: int = Field(default=3600)
    adapter_http_timeout_seconds: float = Field(default=30)

    adapter_log_level: str = Field(default="INFO")
    adapter_config_path: Optional[str] = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


class _AuthBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class NoAuth(_AuthBase):
    type: Literal["none"] = "none"


class BearerAuth(_AuthBase):
    type: Literal["bearer"] = "bearer"
    token: Optional[str] = None


class ApiKeyAuth(_AuthBase):
    type: Literal["apiKey"] = "apiKey"
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_name: Optional[str] = Field(default=None, alias="apiKeyName")
    api_key_in: Literal["header", "query"] = Field(default="header", alias="apiKeyIn")


class BasicAuth(_AuthBase):
    type: Literal["basic"] = "basic"
    username: Optional[str] = None
    password: Optional[str] = None


AuthPolicy = Annotated[
    Union[NoAuth, BearerAuth, ApiKeyAuth, BasicAuth], Field(discriminator="type")
]


def with_credential(policy: AuthPolicy, credential: str) -> AuthPolicy:
    """Return a copy of ``policy`` whose default credential is ``credential``.

    Used when a caller passes a single token for an API without caring which
    scheme that API uses. Basic and unauthenticated policies have no single
    credential slot and are returned unchanged.
    """
    if isinstance(policy, BearerAuth):
        return BearerAuth(token=credential)
    if isinstance(policy, ApiKeyAuth):
        return policy.model_copy(update={"api_key": credential})
    return policy


class ApiConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1, description="Unique identifier for this API")
    title: str = Field(..., description="Human-readable title for this API")
    spec_url: str = Field(
        ...,
        validation_alias=AliasChoices("spec_url", "specUrl", "swaggerUrl"),
        description="URL to the Swagger/OpenAPI specification",
    )
    base_url: str = Field(
        ...,
        validation_alias=AliasChoices("base_url", "baseUrl"),
        description="Base URL for API calls",
    )
    auth: AuthPolicy = Field(default_factory=NoAuth)
    enabled: bool = True
    max_endpoints: int = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("max_endpoints", "maxEndpoints", "maxTools"),
        description="Maximum number of endpoints to register from this API",
    )

    @model_validator(mode="before")
    @classmethod
    def _default_auth(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("auth") is None:
            data = {key: value for key, value in data.items() if key != "auth"}
        return data

    @model_validator(mode="after")
    def _check_urls(self) -> "ApiConfig":
        for field_name in ("spec_url", "base_url"):
            value = getattr(self, field_name)
            if not value.startswith(("http://", "https://")):
                raise ValueError(f"{field_name} must be an http(s) URL: {value}")
        return self


class LogConfig(BaseModel):
    level: Literal["debug", "info", "warn", "warning", "error"] = "info"

    @field_validator("level", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class ServerConfig(BaseModel):
    port: int = 3000
    host: str = "0.0.0.0"


class RegistryConfig(BaseModel):
    apis: List[ApiConfig] = Field(..., min_length=1)
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @model_validator(mode="after")
    def _unique_names(self) -> "RegistryConfig":
        seen: set[str] = set()
        for api in self.apis:
            if api.name in seen:
                raise ValueError(f"Duplicate API name: {api.name}")
            seen.add(api.name)
        return self

    def log_level(self) -> str:
        level = self.log.level.upper()
        return "WARNING" if level == "WARN" else level


DEFAULT_CONFIG: Dict[str, Any] = {
    "apis": [
        {
            "name": "iot_device_mgr",
            "title": "IoT Device Manager API",
            "swaggerUrl": "https://iot-api.acceleronix.io/v2/devicemgr/v2/api-docs?group=device-mgr-enterpriseapi",
            "baseUrl": "https://iot-api.acceleronix.io/v2/devicemgr",
            "auth": {"type": "bearer", "token": ""},
            "enabled": True,
            "maxTools": 15,
        },
        {
            "name": "petstore",
            "title": "Pet Store API (Demo)",
            "swaggerUrl": "https://petstore.swagger.io/v2/swagger.json",
            "baseUrl": "https://petstore.swagger.io/v2",
            "auth": {
                "type": "apiKey",
                "apiKey": "special-key",
                "apiKeyName": "api_key",
                "apiKeyIn": "header",
            },
            "enabled": False,
            "maxTools": 5,
        },
    ],
    "log": {"level": "info"},
    "server": {"port": 3000, "host": "0.0.0.0"},
}


def default_config() -> RegistryConfig:
    return RegistryConfig.model_validate(DEFAULT_CONFIG)


def load_config(data: Optional[Dict[str, Any]] = None) -> RegistryConfig:
    """Validate registry configuration, falling back to the built-in default set."""
    if data is None:
        return default_config()
    try:
        return RegistryConfig.model_validate(data)
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc.errors())
        logger.warning("Using default configuration")
        return default_config()


def load_config_file(path: Optional[str]) -> RegistryConfig:
    if not path:
        return load_config(None)
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Error loading configuration from %s: %s", path, exc)
        logger.warning("Using default configuration")
        return default_config()
    return load_config(data)
