"""Input contracts for endpoint tools."""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, create_model

from .config import ApiKeyAuth, BasicAuth, BearerAuth, NoAuth
from .models import ApiInstance, Endpoint, InputField, InputSchema
from .openapi import find_api_key_scheme


AUTH_FIELDS = frozenset({"auth_token", "api_key", "username", "password"})


def build_input_schema(instance: ApiInstance, endpoint: Endpoint) -> InputSchema:
    """Auth fields for the API's policy followed by one field per declared parameter.

    Every field is optional; missing credentials fall back to the API's
    configured defaults when the call is executed.
    """
    fields: InputSchema = {}
    auth = instance.config.auth

    if isinstance(auth, BearerAuth):
        fields["auth_token"] = InputField("Bearer token for authentication")
    elif isinstance(auth, ApiKeyAuth):
        fields["api_key"] = InputField(f"API key for {api_key_name(instance) or 'authentication'}")
    elif isinstance(auth, BasicAuth):
        fields["username"] = InputField("Username for basic auth")
        fields["password"] = InputField("Password for basic auth")
    elif not isinstance(auth, NoAuth):
        raise TypeError(f"Unsupported auth policy: {auth!r}")

    for parameter in endpoint.parameters:
        fields[parameter.name] = InputField(
            parameter.description or f"Parameter: {parameter.name}"
        )
    return fields


def api_key_name(instance: ApiInstance) -> Optional[str]:
    auth = instance.config.auth
    if isinstance(auth, ApiKeyAuth) and auth.api_key_name:
        return auth.api_key_name
    scheme = find_api_key_scheme(instance.security_schemes)
    return scheme.get("name") if scheme else None


def build_input_model(schema: InputSchema, model_name: str) -> type[BaseModel]:
    fields: Dict[str, Tuple[Any, Any]] = {}
    for index, (name, spec) in enumerate(schema.items()):
        attribute = _attribute_name(name, index, fields)
        default = ... if spec.required else None
        fields[attribute] = (
            Optional[str],
            Field(default, alias=name, description=spec.description),
        )

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    return create_model(f"{_sanitize_name(model_name)}Input", __config__=model_config, **fields)


def _attribute_name(name: str, index: int, taken: Dict[str, Any]) -> str:
    attribute = _sanitize_name(name).strip("_") or f"field_{index}"
    if attribute[0].isdigit():
        attribute = f"field_{attribute}"
    if attribute in taken or attribute in BaseModel.__dict__ or attribute.startswith("model_"):
        attribute = f"{attribute}_{index}"
    return attribute


def _sanitize_name(name: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in name)
