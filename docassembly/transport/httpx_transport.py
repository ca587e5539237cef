import json
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from docassembly.exceptions import (
    APIError,
    AuthenticationError,
    ClientError,
    NetworkError,
    ValidationError,
)
from docassembly.logging.logger import Log
from docassembly.transport.base import BaseTransport
from docassembly.transport.models import ApiResponse, RequestConfig

DEFAULT_BASE_URL = "https://api.nutrient.io"
USER_AGENT = "docassembly-python"

ApiKey = str | Callable[[], Awaitable[str]]


class HttpxTransport(BaseTransport):
    """Document service transport built on httpx.AsyncClient."""

    def __init__(
        self,
        *,
        api_key: ApiKey,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._client = client

    async def send(self, request: RequestConfig) -> ApiResponse:
        try:
            api_key = await self._resolve_api_key()
            url = f"{self._base_url.rstrip('/')}/{request.endpoint.lstrip('/')}"
            headers = {"Authorization": f"Bearer {api_key}", "User-Agent": USER_AGENT}
            timeout = request.timeout if request.timeout is not None else self._timeout_seconds
            Log.debug(f"Sending {request.method} {request.endpoint}")
            response = await self._request(request, url, headers, timeout)
        except httpx.TimeoutException as exc:
            raise NetworkError("Request timed out", self._details(request, exc)) from exc
        except httpx.RequestError as exc:
            raise NetworkError("Network request failed", self._details(request, exc)) from exc
        finally:
            for file in (request.files or {}).values():
                file.close()

        Log.debug(f"{request.method} {request.endpoint} -> HTTP {response.status_code}")
        if response.status_code >= 400:
            raise create_http_error(response, request)
        return ApiResponse(
            data=self._decode(response, request),
            status=response.status_code,
            headers=dict(response.headers),
        )

    async def _resolve_api_key(self) -> str:
        if isinstance(self._api_key, str):
            if not self._api_key:
                raise AuthenticationError("API key is required")
            return self._api_key
        try:
            resolved = await self._api_key()
        except AuthenticationError:
            raise
        except Exception as exc:
            raise AuthenticationError(
                "Failed to resolve API key from function", {"error": str(exc)}
            ) from exc
        if not isinstance(resolved, str) or not resolved:
            raise AuthenticationError(
                "API key function must return a non-empty string",
                {"resolved_type": type(resolved).__name__},
            )
        return resolved

    async def _request(
        self,
        request: RequestConfig,
        url: str,
        headers: dict[str, str],
        timeout: float,
    ) -> httpx.Response:
        body = self._body(request)
        if self._client is not None:
            return await self._client.request(
                request.method, url, headers=headers, timeout=timeout, **body
            )
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.request(request.method, url, headers=headers, **body)

    @staticmethod
    def _body(request: RequestConfig) -> dict[str, Any]:
        if request.files:
            files = {
                key: (file.filename, file.data, file.content_type)
                for key, file in request.files.items()
            }
            fields = {
                key: value if isinstance(value, str) else json.dumps(value)
                for key, value in (request.data or {}).items()
                if value is not None
            }
            return {"files": files, "data": fields}
        if request.data is not None:
            return {"json": request.data}
        return {}

    @staticmethod
    def _decode(response: httpx.Response, request: RequestConfig) -> object:
        if request.response_type == "json":
            try:
                return response.json()
            except ValueError as exc:
                raise APIError(
                    "Invalid JSON response",
                    response.status_code,
                    {"endpoint": request.endpoint, "error": str(exc)},
                ) from exc
        if request.response_type == "text":
            return response.text
        return response.content

    @staticmethod
    def _details(request: RequestConfig, exc: Exception) -> dict[str, object]:
        return {
            "endpoint": request.endpoint,
            "method": request.method,
            "message": str(exc),
        }


def create_http_error(response: httpx.Response, request: RequestConfig) -> ClientError:
    """Map an HTTP error response onto the client error taxonomy."""
    body = _response_body(response)
    message = _extract_error_message(body) or (
        f"HTTP {response.status_code}: {response.reason_phrase}"
    )
    details: dict[str, object] = dict(body) if isinstance(body, dict) else {"response": body}
    details.setdefault("endpoint", request.endpoint)
    details.setdefault("method", request.method)

    status = response.status_code
    Log.warning(f"{request.method} {request.endpoint} failed with HTTP {status}: {message}")
    if status in (401, 403):
        return AuthenticationError(message, details, status)
    if 400 <= status < 500:
        return ValidationError(message, details, status)
    return APIError(message, status, details)


def _response_body(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return response.text


def _extract_error_message(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    for key in ("message", "error", "detail", "error_description"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None
