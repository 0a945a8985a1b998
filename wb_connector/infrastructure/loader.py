"""Loads World Bank responses through a Transport and decodes them."""

import logging
import time
from typing import Iterable

from ..application.domain import (
    Dataset,
    EnvelopeSource,
    ResponseEnvelope,
    ResponseHeader,
    Transport,
)
from ..application.exceptions import TransportError
from ..application.tables import Table

from .decoders import decoder_for
from .envelope import parse_header
from .tokens import TokenStream


class HttpEnvelopeLoader(EnvelopeSource):
    """Runs the header parser and a record decoder over each response."""

    def __init__(self, transport: Transport, ignored_fields: Iterable[str] = ()):
        """
        Initializes the loader.

        Args:
            transport: The transport that performs the requests.
            ignored_fields: Extra indicator record fields to skip silently.
        """
        self.transport = transport
        self.ignored_fields = tuple(ignored_fields)
        self.logger = logging.getLogger(self.__class__.__name__)

    def _check_status(self, status: int, url: str):
        if status != 200:
            raise TransportError(
                f"World Bank API responded with status code {status} to {url}",
                url=url,
                status_code=status,
            )

    async def peek(self, url: str, dataset: Dataset) -> ResponseHeader:
        """Reads the header of a response and ignores its records."""

        async def handle(status: int, body) -> ResponseHeader:
            self._check_status(status, url)
            stream = TokenStream.from_reader(body)
            header = await parse_header(stream, dataset.shape)
            return header or ResponseHeader.empty()

        header = await self.transport.get(url, handle)
        self.logger.debug(f"Peeked {url}: {header}")
        return header

    async def load(
        self, url: str, dataset: Dataset, resource: str
    ) -> ResponseEnvelope[Table]:
        """
        Fetches one page and decodes it into its own table.

        Args:
            url: The request URL.
            dataset: Which envelope shape and record layout to expect.
            resource: What is being decoded, used to tag decode errors.

        Returns:
            The envelope holding the page header and the page table.

        Raises:
            TransportError: If the request fails for good.
            DecodeError: If the envelope or a record cannot be decoded.
        """
        started = time.perf_counter()

        async def handle(status: int, body) -> ResponseEnvelope[Table]:
            self._check_status(status, url)
            stream = TokenStream.from_reader(body)
            header = await parse_header(stream, dataset.shape)
            table = Table()
            if header is None:
                return ResponseEnvelope(ResponseHeader.empty(), table)
            decoder = decoder_for(dataset, resource, self.ignored_fields)
            await decoder.decode(stream, table)
            return ResponseEnvelope(header, table)

        envelope = await self.transport.get(url, handle)

        elapsed = (time.perf_counter() - started) * 1000
        self.logger.info(
            f"World Bank request {url} completed in {elapsed:.0f} millis "
            f"({len(envelope.body)} rows)"
        )
        return envelope
