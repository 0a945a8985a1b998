"""HTTP implementation of the Transport port."""

from typing import Any, Optional

import httpx

from ..application.domain import ResponseHandler, Transport
from ..application.exceptions import TransportError

from .base_client import BaseClient
from .decorators import (
    RETRY_ATTEMPTS,
    RETRY_MAX_WAIT_SECONDS,
    RETRY_MIN_WAIT_SECONDS,
    retry_on_network_error,
)
from .tokens import AsyncByteReader


class HttpTransport(BaseClient, Transport):
    """Performs streamed GET requests with bounded retries."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float,
        retry_attempts: int = RETRY_ATTEMPTS,
        retry_min_wait: float = RETRY_MIN_WAIT_SECONDS,
        retry_max_wait: float = RETRY_MAX_WAIT_SECONDS,
        chunk_size: int = 65536,
    ):
        """Initializes the transport adapter."""
        super().__init__(client, timeout)
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        self.chunk_size = chunk_size

    async def _attempt(self, url: str, handler: ResponseHandler) -> Any:
        """Runs one connection attempt and feeds the body to the handler."""
        async with self.client.stream(
            "GET", url, timeout=self.timeout
        ) as response:
            response.raise_for_status()
            reader = AsyncByteReader(response.aiter_bytes(self.chunk_size))
            return await handler(response.status_code, reader)

    async def get(
        self,
        url: str,
        handler: ResponseHandler,
        retry_count: Optional[int] = None,
    ) -> Any:
        """
        Requests a URL, retrying transient failures.

        Args:
            url: The URL to GET.
            handler: Coroutine function taking (status_code, body_reader).
            retry_count: Attempts before giving up, defaults to the
                         configured retry_attempts.

        Returns:
            Whatever the handler returns.

        Raises:
            TransportError: If every attempt failed at the HTTP level.
        """
        attempts = self.retry_attempts if retry_count is None else retry_count
        fetch = retry_on_network_error(
            attempts, self.retry_min_wait, self.retry_max_wait
        )(self._attempt)

        try:
            return await fetch(url, handler)
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise TransportError(
                f"World Bank API responded with status code {status} to {url}",
                url=url,
                status_code=status,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"World Bank API request to {url} failed after {attempts} "
                f"attempts: {type(e).__name__}: {e}",
                url=url,
            ) from e
