"""
Dependency Injection container for the wb_connector component.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from dependency_injector import containers, providers
import httpx

from ..application.domain import EnvelopeSource, Transport
from ..application.service import (
    CatalogService,
    ClimateService,
    IndicatorService,
    PaginationOrchestrator,
)
from ..application.urls import WorldBankUrls
from ..settings import settings

from .export import ParquetExporter
from .loader import HttpEnvelopeLoader
from .transport import HttpTransport


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    cli_args = providers.Configuration()

    config = providers.Object(settings)

    http_client = providers.Singleton(httpx.AsyncClient, follow_redirects=True)

    transport: providers.Factory[Transport] = providers.Factory(
        HttpTransport,
        client=http_client,
        timeout=config().connector.timeout,
        retry_attempts=config().connector.retry_attempts,
        retry_min_wait=config().connector.retry_min_wait,
        retry_max_wait=config().connector.retry_max_wait,
    )

    envelope_source: providers.Factory[EnvelopeSource] = providers.Factory(
        HttpEnvelopeLoader,
        transport=transport,
        ignored_fields=config().connector.indicator.ignored_fields,
    )

    urls = providers.Factory(
        WorldBankUrls,
        api_base_url=config().connector.api_base_url,
        climate_base_url=config().connector.climate_base_url,
    )

    orchestrator = providers.Factory(
        PaginationOrchestrator,
        source=envelope_source,
        peek_batch_size=config().connector.peek_batch_size,
        concurrency_threshold=config().connector.concurrency_threshold,
        max_concurrent_requests=config().connector.max_concurrent_requests,
        show_progress=cli_args.show_progress,
    )

    indicator_service = providers.Factory(
        IndicatorService,
        orchestrator=orchestrator,
        urls=urls,
    )

    climate_service = providers.Factory(
        ClimateService,
        orchestrator=orchestrator,
        urls=urls,
    )

    catalog_service = providers.Factory(
        CatalogService,
        orchestrator=orchestrator,
        urls=urls,
        batch_size=config().connector.catalog_batch_size,
    )

    exporter = providers.Factory(
        ParquetExporter,
        row_group_size=config().export.row_group_size,
    )
