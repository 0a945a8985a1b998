"""
Streaming decoders that turn the record sequence of a page into a Table.

Decoders consume a TokenStream positioned just after the envelope and keep
going until the stream is exhausted. At most one record's fields are held
in memory at any time.
"""

import datetime
import enum
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from ..application.climate import (
    ClimateKey,
    Gcm,
    Month,
    MonthlyRecord,
    Scenario,
    Variable,
)
from ..application.domain import Dataset
from ..application.exceptions import RecordDecodeError
from ..application.tables import Table

from .api_models import CatalogItemPayload, MonthlyRecordPayload
from .tokens import SCALARS, TokenKind, TokenStream

MOST_RECENT_VALUE = "MRV"

_YEAR = re.compile(r"\d{4}")


class RecordDecoder(ABC):
    """Decodes the records of one page into a table."""

    def __init__(self, resource: str):
        self.resource = resource

    @abstractmethod
    async def decode(self, stream: TokenStream, table: Table) -> Table:
        pass

    def _error(self, message: str) -> RecordDecodeError:
        return RecordDecodeError(message, resource=self.resource)


class _State(enum.Enum):
    AWAIT_FIELD = "await_field"
    IN_COUNTRY_OBJECT = "in_country_object"
    RECORD_COMPLETE = "record_complete"


class IndicatorRecordDecoder(RecordDecoder):
    """
    Decodes indicator observations into a date x country table of floats.

    Each record looks like::

        {"indicator": {...}, "country": {"id": "US", "value": "..."},
         "value": 123.4, "decimal": 0, "date": "2010"}

    Records are flattened with a small state machine. A cell is written only
    when a record carried a date, a country id and a non-null value, and its
    date is not the "most recent value" sentinel.
    """

    SKIPPED_FIELDS = frozenset({"indicator", "decimal"})

    def __init__(self, resource: str, ignored_fields: Iterable[str] = ()):
        super().__init__(resource)
        self.skipped_fields = self.SKIPPED_FIELDS | {
            name.lower() for name in ignored_fields
        }
        self._reset()

    def _reset(self):
        self._country: Optional[str] = None
        self._date: Optional[str] = None
        self._value: Any = None

    async def decode(self, stream: TokenStream, table: Table) -> Table:
        self._reset()
        state = _State.AWAIT_FIELD
        while True:
            if state is _State.RECORD_COMPLETE:
                self._emit(table)
                self._reset()
                state = _State.AWAIT_FIELD
                continue

            token = await stream.peek()
            if token is None:
                break

            if state is _State.IN_COUNTRY_OBJECT:
                state = await self._read_country_field(stream)
            elif token.kind is TokenKind.NAME:
                state = await self._read_field(stream)
            elif token.kind is TokenKind.END_OBJECT:
                await stream.next()
                state = _State.RECORD_COMPLETE
            elif token.kind is TokenKind.BEGIN_OBJECT:
                await stream.next()
                self._reset()
            elif token.kind in (TokenKind.BEGIN_ARRAY, TokenKind.END_ARRAY):
                await stream.next()
            else:
                raise self._error(
                    f"Unexpected {token.kind.name} token in JSON: {token.value!r}"
                )
        return table

    async def _read_field(self, stream: TokenStream) -> _State:
        name = await stream.expect(TokenKind.NAME)
        key = name.lower()

        if await stream.next_is(TokenKind.NULL):
            await stream.next()
        elif key == "country":
            await stream.expect(TokenKind.BEGIN_OBJECT)
            return _State.IN_COUNTRY_OBJECT
        elif key == "value":
            self._value = await self._read_scalar(stream, name)
        elif key == "date":
            self._date = str(await self._read_scalar(stream, name))
        elif key in self.skipped_fields:
            await stream.skip_value()
        else:
            raise self._error(f"Unexpected field in JSON: {name}")
        return _State.AWAIT_FIELD

    async def _read_country_field(self, stream: TokenStream) -> _State:
        if await stream.next_is(TokenKind.END_OBJECT):
            await stream.next()
            return _State.AWAIT_FIELD

        name = await stream.expect(TokenKind.NAME)
        if name.lower() == "id":
            country = await self._read_scalar(stream, name)
            self._country = None if country is None else str(country)
        else:
            await stream.skip_value()
        return _State.IN_COUNTRY_OBJECT

    async def _read_scalar(self, stream: TokenStream, name: str) -> Any:
        token = await stream.next()
        if token.kind not in SCALARS:
            raise self._error(
                f"Field '{name}' should hold a scalar, found {token.kind.name}"
            )
        return token.value

    def _emit(self, table: Table):
        if self._date is None or self._country is None or self._value is None:
            return
        if self._date.upper() == MOST_RECENT_VALUE:
            return

        row = self._year_end(self._date)
        try:
            value = float(self._value)
        except (TypeError, ValueError) as e:
            raise self._error(
                f"Cannot parse value {self._value!r} for {self._country} "
                f"on {self._date}"
            ) from e

        table.add_row(row)
        table.add_column(self._country, float)
        table.set(row, self._country, value)

    def _year_end(self, date_text: str) -> datetime.date:
        # Annual observations are pinned to the last day of their year.
        if not _YEAR.fullmatch(date_text.strip()):
            raise self._error(f"Cannot parse date: {date_text!r}")
        return datetime.date(int(date_text), 12, 31)


class ClimateRecordDecoder(RecordDecoder):
    """Decodes monthly-average records into a ClimateKey x Month table."""

    async def decode(self, stream: TokenStream, table: Table) -> Table:
        for month in Month:
            table.add_column(month, float)

        while not await stream.at_end():
            token = await stream.peek()
            if token.kind is TokenKind.BEGIN_OBJECT:
                record = self.parse_record(await stream.read_value())
                table.add_row(record.key)
                for month, value in record.by_month().items():
                    table.set(record.key, month, value)
            elif token.kind in (TokenKind.BEGIN_ARRAY, TokenKind.END_ARRAY):
                await stream.next()
            else:
                raise self._error(
                    f"Unexpected {token.kind.name} token between climate records"
                )
        return table

    def parse_record(self, raw: Any) -> MonthlyRecord:
        """
        Validates one raw record and resolves its codes.

        Raises:
            RecordDecodeError: If the record is malformed.
            UnknownCodeError: If a model, scenario or variable code is unknown.
        """
        try:
            payload = MonthlyRecordPayload.model_validate(raw)
        except ValidationError as e:
            raise self._error(f"Invalid monthly record: {e}") from e

        scenario = (
            Scenario.from_code(payload.scenario)
            if payload.scenario is not None
            else Scenario.C20C3M
        )
        key = ClimateKey(
            start=payload.fromYear,
            end=payload.toYear,
            gcm=Gcm.from_code(payload.gcm),
            scenario=scenario,
            variable=Variable.from_code(payload.variable),
        )
        return MonthlyRecord(key, payload.monthVals)


class CatalogRecordDecoder(RecordDecoder):
    """Decodes data catalog items into an item id x metadata table."""

    async def decode(self, stream: TokenStream, table: Table) -> Table:
        while not await stream.at_end():
            token = await stream.peek()
            if token.kind is TokenKind.BEGIN_OBJECT:
                self._add_item(table, await stream.read_value())
            elif token.kind in (TokenKind.END_ARRAY, TokenKind.END_OBJECT):
                await stream.next()
            else:
                raise self._error(
                    f"Unexpected {token.kind.name} token between catalog items"
                )
        return table

    def _add_item(self, table: Table, raw: Any):
        try:
            item = CatalogItemPayload.model_validate(raw)
        except ValidationError as e:
            raise self._error(f"Invalid catalog item: {e}") from e

        table.add_row(item.id)
        for entry in item.metatype:
            if entry.value and entry.value.strip():
                table.add_column(entry.id, str)
                table.set(item.id, entry.id, entry.value)


def decoder_for(
    dataset: Dataset, resource: str, ignored_fields: Iterable[str] = ()
) -> RecordDecoder:
    """Returns a fresh decoder for one page of the given dataset."""
    if dataset is Dataset.INDICATOR:
        return IndicatorRecordDecoder(resource, ignored_fields)
    if dataset is Dataset.CLIMATE:
        return ClimateRecordDecoder(resource)
    if dataset is Dataset.CATALOG:
        return CatalogRecordDecoder(resource)
    raise ValueError(f"Unsupported dataset: {dataset}")
