"""HTTP client for the Commerce Engine services."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from ..config import CommerceConfig


logger = logging.getLogger(__name__)


class CommerceError(Exception):
    """Base exception for Commerce Engine errors."""
    pass


class CommerceAuthenticationError(CommerceError):
    """Raised when the Commerce Engine rejects our credentials (401)."""
    pass


class CommerceHttpError(CommerceError):
    """Raised on any other non-success response."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class CommerceTransportError(CommerceError):
    """Raised when the request fails before a usable response arrives."""
    pass


class CommerceClient:
    """
    Blocking client for the Commerce Engine shops and ops services.

    Every request carries the shop context headers (ShopName, Language,
    Currency, Environment) and, when configured, the client certificate
    header.

    Calls take a ``raise_exception`` flag: failures are always logged, and
    are raised to the caller only when the flag is set. Otherwise the call
    returns None.
    """

    def __init__(
        self,
        settings: CommerceConfig,
        language: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.settings = settings
        self.language = language or settings.default_language

        timeout = settings.request_timeout_seconds or None
        headers = self._default_headers()

        self._shops = httpx.Client(
            base_url=settings.shops_service_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._ops = httpx.Client(
            base_url=settings.ops_service_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @property
    def environment(self) -> str:
        return self.settings.default_environment

    def _default_headers(self) -> dict[str, str]:
        headers = {
            "ShopName": self.settings.default_shop_name,
            "Language": self.language,
            "Currency": self.settings.default_shop_currency,
            "Environment": self.settings.default_environment,
        }
        certificate = self.settings.get_certificate()
        if certificate is not None:
            headers[self.settings.certificate_header_name] = certificate
        return headers

    def get_text(
        self,
        path: str,
        use_commerce_ops: bool = False,
        raise_exception: bool = True,
    ) -> str | None:
        """
        GET a service path and return the response body.

        Args:
            path: Path relative to the service base URL
            use_commerce_ops: Call the ops service instead of the shops service
            raise_exception: Raise on failure instead of returning None

        Raises:
            CommerceAuthenticationError: On 401 (only if raise_exception)
            CommerceHttpError: On other non-2xx responses (only if raise_exception)
            CommerceTransportError: On connection/timeout errors (only if raise_exception)
        """
        client = self._ops if use_commerce_ops else self._shops

        try:
            response = client.get(path)
        except httpx.HTTPError as e:
            logger.error(f"Commerce request failed: {client.base_url}{path}: {e}")
            if raise_exception:
                raise CommerceTransportError(f"Commerce request failed: {e}") from e
            return None

        if not response.is_success:
            self._log_response_error(response, raise_exception)
            return None

        return response.text

    def get_json(
        self,
        path: str,
        use_commerce_ops: bool = False,
        raise_exception: bool = True,
    ) -> dict[str, Any] | None:
        """GET a service path and decode the JSON object it returns."""
        text = self.get_text(path, use_commerce_ops=use_commerce_ops, raise_exception=raise_exception)
        if text is None:
            return None

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Commerce response for {path} is not valid JSON: {e}")
            if raise_exception:
                raise CommerceTransportError(f"Invalid JSON from Commerce Engine: {e}") from e
            return None

        if not isinstance(data, dict):
            logger.error(f"Commerce response for {path} is not a JSON object")
            if raise_exception:
                raise CommerceTransportError("Expected a JSON object from Commerce Engine")
            return None

        return data

    def _log_response_error(self, response: httpx.Response, raise_error: bool = False) -> None:
        """Log a non-success response and raise it if asked to."""
        if response.status_code == 401:
            error: CommerceError = CommerceAuthenticationError(
                "Commerce Engine authentication failed. Check the certificate configuration."
            )
            logger.error(f"Commerce authentication error: {response.request.url}")
        else:
            error = CommerceHttpError(
                f"Commerce Engine returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
            logger.error(f"Commerce HTTP error {response.status_code}: {response.request.url}")

        if raise_error:
            raise error

    def close(self) -> None:
        self._shops.close()
        self._ops.close()

    def __enter__(self) -> CommerceClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
