"""
This module defines the core domain models for the connector.

These classes represent the technology-agnostic values the orchestration
logic operates on, and the ports (interfaces) that infrastructure adapters
implement.
"""

import dataclasses
import datetime
import enum
import math
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, Optional, Tuple, TypeVar

from .climate import Gcm, Scenario, Variable
from .exceptions import QueryError
from .tables import Table

T = TypeVar("T")

ALL_COUNTRIES = "all"


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class ResponseHeader:
    """Pagination metadata carried by one API response."""

    page_number: int
    page_count: int
    record_count: int
    total_records: int

    @classmethod
    def empty(cls) -> "ResponseHeader":
        return cls(0, 0, 0, 0)


@dataclasses.dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """Decoded header paired with the decoded body of one response."""

    header: ResponseHeader
    body: T

    def request_count(self, records_per_page: int) -> int:
        """
        Returns how many requests are needed to load every record.

        Args:
            records_per_page: The batch size the pages will be requested with.

        Returns:
            ceil(total_records / records_per_page), never less than 1.
        """
        if records_per_page <= 0:
            raise ValueError(
                f"Records per page must be positive, got {records_per_page}"
            )
        total = self.header.total_records
        return max(1, math.ceil(total / records_per_page))


class EnvelopeShape(enum.Enum):
    """How the header of a response body is laid out."""

    GENERIC = "generic"
    CATALOG = "catalog"
    BARE_ARRAY = "bare_array"


class Dataset(enum.Enum):
    """The record layouts this connector can decode."""

    INDICATOR = EnvelopeShape.GENERIC
    CLIMATE = EnvelopeShape.BARE_ARRAY
    CATALOG = EnvelopeShape.CATALOG

    @property
    def shape(self) -> EnvelopeShape:
        return self.value


@dataclasses.dataclass(frozen=True)
class IndicatorQuery:
    """A time-series query for one indicator over a set of countries."""

    indicator: str
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    countries: Tuple[str, ...] = ()
    batch_size: int = 10000

    def __post_init__(self):
        if not self.indicator:
            raise QueryError(
                "An indicator code must be specified when querying for "
                "indicator values"
            )
        if self.batch_size <= 0:
            raise QueryError(
                f"Batch size must be positive, got {self.batch_size}"
            )

        start = self.start_date or datetime.date(1970, 1, 1)
        end = self.end_date or datetime.date.today()
        if start > end:
            raise QueryError(f"Start date {start} is after end date {end}")

        countries = tuple(dict.fromkeys(c for c in self.countries if c))
        object.__setattr__(self, "start_date", start)
        object.__setattr__(self, "end_date", end)
        object.__setattr__(self, "countries", countries or (ALL_COUNTRIES,))


@dataclasses.dataclass(frozen=True)
class ClimateQuery:
    """A monthly-average climate query for one country."""

    country: str
    variable: Variable
    gcm: Optional[Gcm] = None
    scenario: Optional[Scenario] = None

    def __post_init__(self):
        if not self.country:
            raise QueryError("A country ISO 3 code must be specified")
        if self.variable is None:
            raise QueryError("A climate variable code must be specified")


# --- Ports (Interfaces) ---

ResponseHandler = Callable[[int, Any], Awaitable[T]]


class Transport(ABC):
    """A port for performing one GET request with bounded retries."""

    @abstractmethod
    async def get(
        self,
        url: str,
        handler: ResponseHandler,
        retry_count: Optional[int] = None,
    ) -> Any:
        """
        Requests the url and hands status and body reader to the handler.

        retry_count overrides the configured number of attempts when given.

        The handler is awaited once per successful connection attempt and
        its result is returned.
        """
        pass


class EnvelopeSource(ABC):
    """A port for loading decoded response envelopes."""

    @abstractmethod
    async def peek(self, url: str, dataset: Dataset) -> ResponseHeader:
        """Loads only the header of a response."""
        pass

    @abstractmethod
    async def load(
        self, url: str, dataset: Dataset, resource: str
    ) -> ResponseEnvelope[Table]:
        """Loads a response, decoding its records into a new table."""
        pass
