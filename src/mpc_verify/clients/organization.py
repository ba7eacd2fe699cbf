"""
Organization Public Key Provider

Lazily fetches the custody organization's public key and keeps it for the
provider's lifetime. The provider is an explicit object passed to whoever
needs the key; there is no module-level cache.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from ..engine.exceptions import CustodyAPIError
from ..utils import logger, short

PUBLIC_KEY_PATH = "/config/organization/public-key"
API_KEY_HEADER = "PLANBOK-X-API-KEY"


def unwrap_envelope(payload: Any) -> Any:
    """Return ``payload["data"]`` for ``{"success": true, "data": ...}`` responses."""
    if isinstance(payload, dict) and payload.get("success") and "data" in payload:
        return payload["data"]
    return payload


class OrganizationKeyProvider:
    """
    Lazily initialized holder for the organization public key.

    ``get()`` returns ``ORGANIZATION_PK`` when configured; otherwise it calls
    the custody API once and caches the result. Concurrent callers share a
    single request. ``invalidate()`` drops the cached value so the next
    ``get()`` fetches again.

    Usage:
        ```python
        provider = OrganizationKeyProvider(load_settings())
        public_key = await provider.get()
        provider.invalidate()
        ```
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            settings: Custody API configuration.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).
        """
        self._settings = settings
        self._transport = transport
        self._cached: Optional[str] = settings.organization_public_key or None
        self._lock = asyncio.Lock()

    @property
    def cached(self) -> Optional[str]:
        return self._cached

    def invalidate(self) -> None:
        """Forget the cached key, including one taken from configuration."""
        logger.debug("organization public key invalidated")
        self._cached = None

    async def get(self) -> str:
        """
        Return the organization public key, fetching it on first use.

        Raises:
            ConfigurationError: If a fetch is needed and no API key is set.
            CustodyAPIError: If the custody API call fails.
        """
        if self._cached is not None:
            return self._cached
        async with self._lock:
            if self._cached is None:
                self._cached = await self._fetch()
            return self._cached

    async def _fetch(self) -> str:
        api_key = self._settings.require_api_key()
        url = f"{self._settings.api_base_url}{PUBLIC_KEY_PATH}"
        headers = {"Content-Type": "application/json", API_KEY_HEADER: api_key}

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise CustodyAPIError(f"Request to {url} failed: {exc}") from exc

        if response.status_code != 200:
            raise CustodyAPIError(
                f"Custody API returned {response.status_code} for {PUBLIC_KEY_PATH}: {self._error_text(response)}",
                status_code=response.status_code,
            )

        try:
            data = unwrap_envelope(response.json())
        except ValueError as exc:
            raise CustodyAPIError("Custody API returned a non-JSON body", status_code=response.status_code) from exc

        public_key = data.get("publicKey") if isinstance(data, dict) else None
        if not isinstance(public_key, str) or not public_key:
            raise CustodyAPIError("Custody API response has no publicKey", status_code=response.status_code)

        logger.info(f"Fetched organization public key {short(public_key)}")
        return public_key

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body: Dict[str, Any] = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or body)
        return str(body)
