"""Execution layer for outbound REST calls."""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from .config import ApiKeyAuth, AuthPolicy, BasicAuth, BearerAuth, NoAuth
from .logging import redact_payload
from .models import ApiInstance, CallResult, Endpoint
from .openapi import find_api_key_scheme
from .schema import AUTH_FIELDS, api_key_name

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    pass


class CredentialInjector:
    """Turns an auth policy plus caller-supplied credentials into headers/query."""

    def __init__(self, instance: ApiInstance, policy: AuthPolicy) -> None:
        self.instance = instance
        self.policy = policy

    def build_auth(self, payload: Dict[str, Any]) -> Tuple[Dict[str, str], Dict[str, str]]:
        headers: Dict[str, str] = {}
        query: Dict[str, str] = {}
        policy = self.policy

        if isinstance(policy, NoAuth):
            pass
        elif isinstance(policy, BearerAuth):
            token = payload.get("auth_token") or policy.token
            if token:
                headers["Authorization"] = f"Bearer {token}"
        elif isinstance(policy, ApiKeyAuth):
            value = payload.get("api_key") or policy.api_key
            name, location = self._api_key_placement(policy)
            if value and name:
                if location == "query":
                    query[name] = str(value)
                else:
                    headers[name] = str(value)
        elif isinstance(policy, BasicAuth):
            username = payload.get("username") or policy.username
            password = payload.get("password") or policy.password
            if username and password:
                encoded = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
                headers["Authorization"] = f"Basic {encoded}"
        else:
            raise ExecutionError(f"Unsupported auth policy: {policy!r}")

        return headers, query

    def _api_key_placement(self, policy: ApiKeyAuth) -> Tuple[Optional[str], str]:
        if policy.api_key_name:
            return policy.api_key_name, policy.api_key_in
        scheme = find_api_key_scheme(self.instance.security_schemes) or {}
        location = scheme.get("in") if scheme.get("in") in ("header", "query") else policy.api_key_in
        return api_key_name(self.instance), location


class RestExecutor:
    """Issues one HTTP request per invocation; failures are returned, never retried."""

    def __init__(
        self,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def execute(
        self,
        instance: ApiInstance,
        endpoint: Endpoint,
        payload: Dict[str, Any],
        auth_override: Optional[AuthPolicy] = None,
    ) -> CallResult:
        policy = auth_override if auth_override is not None else instance.config.auth
        headers: Dict[str, str] = {"Content-Type": "application/json"}

        injector = CredentialInjector(instance, policy)
        auth_headers, query = injector.build_auth(payload)
        headers.update(auth_headers)

        path, used_keys = self._substitute_path(endpoint.path, payload)
        url = instance.base_url.rstrip("/") + path
        params = self._extract_params(payload, used_keys)

        method = endpoint.method.upper()
        body: Optional[Dict[str, Any]] = None
        if method == "GET":
            query.update({key: self._query_value(value) for key, value in params.items()})
        elif params:
            body = params

        logger.info(
            "Calling %s %s %s params=%s",
            instance.name,
            method,
            url,
            redact_payload(params),
        )

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    params=query or None,
                    json=body,
                )
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            # ValueError covers header values httpx cannot encode as ASCII
            logger.error("Error in %s API call %s %s: %s", instance.name, method, url, exc)
            return CallResult(
                kind=CallResult.TRANSPORT_ERROR,
                api_title=instance.title,
                method=method,
                path=endpoint.path,
                url=url,
                error=str(exc) or exc.__class__.__name__,
            )

        kind = CallResult.SUCCESS if response.is_success else CallResult.HTTP_ERROR
        if kind == CallResult.HTTP_ERROR:
            logger.warning(
                "%s API call %s %s returned %s", instance.name, method, url, response.status_code
            )
        return CallResult(
            kind=kind,
            api_title=instance.title,
            method=method,
            path=endpoint.path,
            url=str(response.request.url),
            status_code=response.status_code,
            body=self._response_body(response),
        )

    def _substitute_path(self, path: str, payload: Dict[str, Any]) -> Tuple[str, set[str]]:
        used_keys: set[str] = set()
        for key, value in payload.items():
            token = f"{{{key}}}"
            if value is None or token not in path:
                continue
            path = path.replace(token, quote(str(value), safe=""))
            used_keys.add(key)
        return path, used_keys

    def _extract_params(self, payload: Dict[str, Any], used_keys: set[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        for key, value in payload.items():
            if key in AUTH_FIELDS or key in used_keys:
                continue
            if value is None or value == "":
                continue
            params[key] = value
        return params

    def _query_value(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value]
        if isinstance(value, bool):
            return str(value).lower()
        return str(value)

    def _response_body(self, response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
