"""API client for the remote item store."""

from __future__ import annotations

import logging
import random
import time
from typing import Any

import httpx

from .exceptions import (
    RemoteAuthenticationError,
    RemoteNetworkError,
    RemoteRateLimitError,
    RemoteSyncError,
    SnSyncError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_PAGE_SIZE, DEFAULT_RETRY_DELAY

logger = logging.getLogger(__name__)

SYNC_ENDPOINT = "/v1/items/sync"


class ItemStoreClient:
    """Client for the item store's sync endpoint."""

    def __init__(
        self,
        server: str,
        token: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the item store client.

        Args:
            server: Base URL of the item store
            token: Session bearer token
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
            page_size: Number of items requested per page
            transport: Optional httpx transport (used by tests)
        """
        if not token:
            raise RemoteAuthenticationError("Session token not configured.")

        self.server = server.rstrip("/")
        self.token = token
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.page_size = page_size
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with +/- 25% jitter."""
        base_delay = self.retry_delay * (2**attempt)
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Map an HTTP error to a pysnsync exception.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code in (401, 498):
            raise RemoteAuthenticationError(
                "Session token is invalid or has expired"
            ) from e
        if status_code == 429:
            error: Exception = RemoteRateLimitError(
                "Rate limit exceeded - please try again later"
            )
            return (error, attempt < self.max_retries)

        error_msg = f"Item sync failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = error_data.get("message") or error_data.get("error")
                    if isinstance(msg, dict):
                        msg = msg.get("message")
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # Body is not JSON; keep the status-based message
            pass

        error = RemoteSyncError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            RemoteSyncError: If the request fails after all retries
        """
        url = f"{self.server}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                if not response.content:
                    return {}
                try:
                    return response.json()
                except ValueError as e:
                    raise RemoteSyncError(
                        "Invalid JSON response from item store"
                    ) from e

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    retry_after = e.response.headers.get("Retry-After")
                    if isinstance(error, RemoteRateLimitError) and (
                        retry_after and retry_after.isdigit()
                    ):
                        delay = float(retry_after)
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    logger.debug(f"Retrying {method} {url} in {delay:.2f}s: {error}")
                    time.sleep(delay)
                    continue
                raise error from e
            except SnSyncError:
                raise
            except httpx.RequestError as e:
                error = RemoteNetworkError(f"Network error: {e}")
                last_exception = error
                if attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(f"Retrying {method} {url} in {delay:.2f}s: {error}")
                    time.sleep(delay)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise RemoteSyncError("Request failed after all retry attempts")

    def sync_items(
        self, items: list[dict[str, Any]], sync_token: str | None = None
    ) -> dict[str, Any]:
        """Push items and retrieve everything changed since ``sync_token``.

        Pages are followed through ``cursor_token`` until the server has
        nothing more to send. Items are only pushed with the first page.

        Args:
            items: Serialized items to save remotely
            sync_token: Token returned by the previous sync, if any

        Returns:
            Dictionary with ``retrieved_items``, ``saved_items`` and
            ``sync_token``
        """
        retrieved: list[dict[str, Any]] = []
        saved: list[dict[str, Any]] = []
        cursor_token: str | None = None
        to_push = items

        while True:
            payload: dict[str, Any] = {
                "items": to_push,
                "limit": self.page_size,
            }
            if sync_token:
                payload["sync_token"] = sync_token
            if cursor_token:
                payload["cursor_token"] = cursor_token

            data = self._request("POST", SYNC_ENDPOINT, json=payload)
            if not isinstance(data, dict):
                raise RemoteSyncError("Unexpected sync response from item store")

            retrieved.extend(data.get("retrieved_items", []))
            saved.extend(data.get("saved_items", []))
            sync_token = data.get("sync_token", sync_token)
            cursor_token = data.get("cursor_token")
            to_push = []

            logger.debug(
                f"sync page: {len(retrieved)} retrieved, {len(saved)} saved, "
                f"cursor={cursor_token}"
            )
            if not cursor_token:
                break

        return {
            "retrieved_items": retrieved,
            "saved_items": saved,
            "sync_token": sync_token,
        }
