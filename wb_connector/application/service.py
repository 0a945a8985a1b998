"""
The core application services, containing the pagination logic.

This module defines the PaginationOrchestrator, which works out how many
requests a query needs, issues them (serially or concurrently) and merges
the per-page tables, plus one service per World Bank dataset built on it.
"""

import asyncio
import logging
from typing import Callable, List, Sequence

import pandas
from tqdm.asyncio import tqdm_asyncio
from tqdm.contrib.logging import logging_redirect_tqdm

from .climate import YEAR_RANGES
from .domain import (
    ClimateQuery,
    Dataset,
    EnvelopeSource,
    IndicatorQuery,
    ResponseEnvelope,
    ResponseHeader,
)
from .tables import Table
from .urls import WorldBankUrls

logger = logging.getLogger(__name__)

PageUrl = Callable[[int, int], str]


class PaginationOrchestrator:
    """Plans, issues and collects the page requests of one query."""

    def __init__(
        self,
        source: EnvelopeSource,
        peek_batch_size: int = 5,
        concurrency_threshold: int = 10,
        max_concurrent_requests: int = 8,
        show_progress: bool = True,
    ):
        """Initializes the orchestrator with its envelope source (port)."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.source = source
        self.peek_batch_size = peek_batch_size
        self.concurrency_threshold = concurrency_threshold
        self.max_concurrent_requests = max_concurrent_requests
        self.show_progress = show_progress

    async def fetch_paginated(
        self,
        page_url: PageUrl,
        batch_size: int,
        dataset: Dataset,
        resource: str,
    ) -> List[ResponseEnvelope[Table]]:
        """
        Peeks at the first page, then fetches every page of a resource.

        Args:
            page_url: Builds the URL for (page, per_page).
            batch_size: Records per page for the real requests.
            dataset: Record layout of the pages.
            resource: What is being fetched, for logs and errors.

        Returns:
            One envelope per page, in ascending page order.
        """
        header = await self.source.peek(
            page_url(1, self.peek_batch_size), dataset
        )
        request_count = ResponseEnvelope(header, None).request_count(batch_size)
        self.logger.info(
            f"{resource}: {header.total_records} records, "
            f"{request_count} request(s) of {batch_size}"
        )
        urls = [page_url(page, batch_size) for page in range(1, request_count + 1)]
        return await self.fetch_pages(urls, dataset, resource)

    async def fetch_pages(
        self, urls: Sequence[str], dataset: Dataset, resource: str
    ) -> List[ResponseEnvelope[Table]]:
        """Fetches the given URLs, returning envelopes in the same order."""
        if len(urls) > self.concurrency_threshold:
            return await self._fetch_concurrently(urls, dataset, resource)
        return await self._fetch_serially(urls, dataset, resource)

    async def _fetch_serially(
        self, urls: Sequence[str], dataset: Dataset, resource: str
    ) -> List[ResponseEnvelope[Table]]:
        envelopes = []
        for url in urls:
            envelopes.append(await self.source.load(url, dataset, resource))
        return envelopes

    async def _load_with_semaphore(
        self,
        url: str,
        dataset: Dataset,
        resource: str,
        semaphore: asyncio.Semaphore,
    ) -> ResponseEnvelope[Table]:
        """Wrapper to acquire a semaphore before loading a page."""
        async with semaphore:
            return await self.source.load(url, dataset, resource)

    async def _fetch_concurrently(
        self, urls: Sequence[str], dataset: Dataset, resource: str
    ) -> List[ResponseEnvelope[Table]]:
        semaphore = asyncio.Semaphore(self.max_concurrent_requests)
        tasks = [
            asyncio.create_task(
                self._load_with_semaphore(url, dataset, resource, semaphore)
            )
            for url in urls
        ]

        self.logger.info(
            f"Starting {len(tasks)} page requests for {resource} with a "
            f"concurrency limit of {self.max_concurrent_requests}..."
        )

        try:
            with logging_redirect_tqdm():
                # gather hands results back in submission order, whatever
                # order the requests complete in.
                return await tqdm_asyncio.gather(
                    *tasks,
                    desc=resource,
                    unit="page",
                    disable=not self.show_progress,
                )
        except BaseException:
            for task in tasks:
                task.cancel()
            # Collect every outcome so no failure goes unretrieved.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


class IndicatorService:
    """Loads indicator time series as a date x country table."""

    def __init__(self, orchestrator: PaginationOrchestrator, urls: WorldBankUrls):
        self.orchestrator = orchestrator
        self.urls = urls

    async def fetch(self, query: IndicatorQuery) -> ResponseEnvelope[pandas.DataFrame]:
        """
        Runs an indicator query across all of its country partitions.

        Partitions are fetched in the order given and pages in ascending
        order; cells present in several pages keep the earliest value.

        Args:
            query: The indicator, date range, countries and batch size.

        Returns:
            An envelope whose body is the merged DataFrame and whose header
            is that of the last page fetched.
        """
        logger.info(
            f"Loading {query.indicator} for {', '.join(query.countries)} "
            f"from {query.start_date} to {query.end_date}"
        )

        partials: List[Table] = []
        header = ResponseHeader.empty()
        for country in query.countries:
            envelopes = await self.orchestrator.fetch_paginated(
                self._page_url(query, country),
                query.batch_size,
                Dataset.INDICATOR,
                query.indicator,
            )
            partials.extend(envelope.body for envelope in envelopes)
            header = envelopes[-1].header

        merged = Table.combine_first(partials)
        logger.info(
            f"Loaded {len(merged)} dates x {len(merged.columns)} countries "
            f"for {query.indicator}"
        )
        return ResponseEnvelope(header, merged.to_frame("date", "country"))

    def _page_url(self, query: IndicatorQuery, country: str) -> PageUrl:
        def page_url(page: int, per_page: int) -> str:
            return self.urls.indicator(
                query.indicator,
                query.start_date.year,
                query.end_date.year,
                country,
                page,
                per_page,
            )

        return page_url


class ClimateService:
    """Loads monthly climate averages as a ClimateKey x Month table."""

    def __init__(self, orchestrator: PaginationOrchestrator, urls: WorldBankUrls):
        self.orchestrator = orchestrator
        self.urls = urls

    async def fetch(self, query: ClimateQuery) -> ResponseEnvelope[pandas.DataFrame]:
        """Requests every published year range and merges them in order."""
        urls = [
            self.urls.climate(
                query.variable, start, end, query.country, query.gcm, query.scenario
            )
            for start, end in YEAR_RANGES
        ]
        resource = f"{query.variable.code}/{query.country}"
        envelopes = await self.orchestrator.fetch_pages(
            urls, Dataset.CLIMATE, resource
        )
        merged = Table.combine_first(envelope.body for envelope in envelopes)
        logger.info(f"Loaded {len(merged)} climate records for {resource}")
        return ResponseEnvelope(
            envelopes[-1].header, merged.to_frame("key", "month")
        )


class CatalogService:
    """Loads the World Bank data catalog as an item id x attribute table."""

    def __init__(
        self,
        orchestrator: PaginationOrchestrator,
        urls: WorldBankUrls,
        batch_size: int = 1000,
    ):
        self.orchestrator = orchestrator
        self.urls = urls
        self.batch_size = batch_size

    async def fetch(self) -> ResponseEnvelope[pandas.DataFrame]:
        url = self.urls.catalog(self.batch_size)
        envelopes = await self.orchestrator.fetch_pages(
            [url], Dataset.CATALOG, "datacatalog"
        )
        envelope = envelopes[0]
        return ResponseEnvelope(envelope.header, envelope.body.to_frame("id", "attribute"))
