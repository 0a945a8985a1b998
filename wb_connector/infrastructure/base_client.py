"""Base class for async HTTP clients."""

import logging
import httpx

from ..application.exceptions import ConfigurationError


class BaseClient:
    """A base client that holds an async client and its request timeout."""

    def __init__(self, client: httpx.AsyncClient, timeout: float):
        """
        Initializes the base client.

        Args:
            client: An instance of httpx.AsyncClient.
            timeout: Per-request timeout in seconds.

        Raises:
            ConfigurationError: If the timeout is missing or not positive.
        """

        if timeout is None or timeout <= 0:
            raise ConfigurationError(
                f"Request timeout for {self.__class__.__name__} must be a "
                f"positive number of seconds, got {timeout!r}. "
                f"Please check your config files."
            )

        self.client = client
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)
