"""
Base classes for lupublish integrations.

Every cloud control-plane client in lupublish talks to an Azure Cognitive
Services endpoint. These services share conventions the base client
handles once:

- JSON in, JSON out, with an ``{"error": {"code", "message"}}`` envelope
  on failure
- an ``apim-request-id`` response header identifying the call for support
- throttling answered with 429 and ``Retry-After``

Clients issue exactly one HTTP request per call. Retries are owned by the
caller through ``lupublish.pipeline.retry.with_retry`` so that each call
site decides what a terminal failure looks like. An expired token comes
back as a 401 and is still retried once, so errors carry no "retryable"
verdict of their own.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "apim-request-id"


# =============================================================================
# Exceptions
# =============================================================================


class IntegrationError(Exception):
    """A control-plane call failed."""

    def __init__(
        self,
        message: str,
        integration: str,
        *,
        status_code: int | None = None,
        response_body: str | None = None,
        request_id: str | None = None,
    ):
        super().__init__(message)
        self.integration = integration
        self.status_code = status_code
        self.response_body = response_body
        self.request_id = request_id

    def __str__(self) -> str:
        text = f"[{self.integration}] {self.args[0]}"
        if self.status_code:
            text += f" (status={self.status_code})"
        if self.request_id:
            text += f" (request id {self.request_id})"
        return text


class AuthenticationError(IntegrationError):
    """Token or subscription key rejected (401/403)."""


class RateLimitError(IntegrationError):
    """Throttled by the service (429)."""

    def __init__(self, message: str, integration: str, *, retry_after: float | None = None, **kwargs):
        super().__init__(message, integration, **kwargs)
        self.retry_after = retry_after


class NotFoundError(IntegrationError):
    """Application or account does not exist (404)."""


class ValidationError(IntegrationError):
    """Request rejected as malformed (400/422)."""


_STATUS_ERRORS: dict[int, tuple[type[IntegrationError], str]] = {
    400: (ValidationError, "Validation error"),
    401: (AuthenticationError, "Authentication failed"),
    403: (AuthenticationError, "Authentication failed"),
    404: (NotFoundError, "Resource not found"),
    422: (ValidationError, "Validation error"),
    429: (RateLimitError, "Rate limit exceeded"),
}


def _parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        # HTTP-date form; callers fall back to their own backoff
        return None


# =============================================================================
# Configuration
# =============================================================================


@dataclass(frozen=True, slots=True)
class IntegrationConfig:
    """Connection settings shared by control-plane clients."""

    api_key: str | None = None
    access_token: str | None = None
    base_url: str = ""
    timeout: float = 30.0


# =============================================================================
# Base Client
# =============================================================================


class IntegrationClient(ABC):
    """
    Async JSON client for one control-plane API.

    Subclasses provide ``name`` and ``_get_auth_headers()``; typed API
    methods call ``_request()``, which raises an IntegrationError subclass
    for every failure.
    """

    def __init__(
        self,
        config: IntegrationConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Integration name used in errors and logs."""
        ...

    @abstractmethod
    def _get_auth_headers(self) -> dict[str, str]:
        ...

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                transport=self._transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    **self._get_auth_headers(),
                },
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Send one request relative to the configured endpoint.

        Raises:
            IntegrationError: On an error status, a timeout or a network failure
        """
        client = await self._get_client()

        try:
            response = await client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            raise IntegrationError(
                f"Request timeout after {self.config.timeout}s: {method} {path}",
                self.name,
            ) from e
        except httpx.NetworkError as e:
            raise IntegrationError(
                f"Network error on {method} {path}: {e}",
                self.name,
            ) from e

        logger.debug(
            f"[{self.name}] {response.status_code} {method} {path} "
            f"request_id={response.headers.get(REQUEST_ID_HEADER)}"
        )

        self._check_response(response)
        return response

    def _check_response(self, response: httpx.Response) -> None:
        """Raise the IntegrationError subclass matching an error status."""
        if response.is_success:
            return

        status = response.status_code
        body = response.text
        request_id = response.headers.get(REQUEST_ID_HEADER)
        error_class, summary = _STATUS_ERRORS.get(status, (IntegrationError, "Request failed"))

        kwargs: dict[str, Any] = {
            "status_code": status,
            "response_body": body,
            "request_id": request_id,
        }
        if error_class is RateLimitError:
            kwargs["retry_after"] = _parse_retry_after(response.headers.get("Retry-After"))

        logger.debug(f"[{self.name}] {summary}: status={status} request_id={request_id}")
        raise error_class(f"{summary}: {body}" if body else summary, self.name, **kwargs)

    async def __aenter__(self) -> IntegrationClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
