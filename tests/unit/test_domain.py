"""
Unit tests for the domain models: envelope arithmetic and query validation.
"""

import datetime

import pytest

from wb_connector.application.climate import Variable
from wb_connector.application.domain import (
    ClimateQuery,
    Dataset,
    EnvelopeShape,
    IndicatorQuery,
    ResponseEnvelope,
    ResponseHeader,
)
from wb_connector.application.exceptions import QueryError


def _envelope(total):
    return ResponseEnvelope(ResponseHeader(1, 1, 5, total), None)


class TestResponseEnvelope:

    @pytest.mark.parametrize(
        "total, batch_size, expected",
        [
            (0, 1000, 1),
            (1, 1000, 1),
            (1000, 1000, 1),
            (1001, 1000, 2),
            (50000, 10000, 5),
            (100000, 10000, 10),
            (100001, 10000, 11),
            (2653, 50, 54),
        ],
    )
    def test_request_count(self, total, batch_size, expected):
        assert _envelope(total).request_count(batch_size) == expected

    def test_request_count_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            _envelope(10).request_count(0)

    def test_header_is_immutable(self):
        header = ResponseHeader(1, 2, 3, 4)

        with pytest.raises(AttributeError):
            header.total_records = 5

    def test_empty_header(self):
        assert ResponseHeader.empty() == ResponseHeader(0, 0, 0, 0)


def test_datasets_map_to_envelope_shapes():
    assert Dataset.INDICATOR.shape is EnvelopeShape.GENERIC
    assert Dataset.CATALOG.shape is EnvelopeShape.CATALOG
    assert Dataset.CLIMATE.shape is EnvelopeShape.BARE_ARRAY


class TestIndicatorQuery:

    def test_defaults(self):
        query = IndicatorQuery("NY.GDP.PCAP.CD")

        assert query.start_date == datetime.date(1970, 1, 1)
        assert query.end_date == datetime.date.today()
        assert query.countries == ("all",)
        assert query.batch_size == 10000

    def test_countries_are_deduplicated_in_order(self):
        query = IndicatorQuery("X", countries=("US", "GB", "US", "", "JP"))

        assert query.countries == ("US", "GB", "JP")

    def test_indicator_is_required(self):
        with pytest.raises(QueryError, match="indicator"):
            IndicatorQuery("")

    def test_batch_size_must_be_positive(self):
        with pytest.raises(QueryError, match="Batch size"):
            IndicatorQuery("X", batch_size=0)

    def test_start_must_not_follow_end(self):
        with pytest.raises(QueryError, match="after"):
            IndicatorQuery(
                "X",
                start_date=datetime.date(2020, 1, 1),
                end_date=datetime.date(2010, 1, 1),
            )


class TestClimateQuery:

    def test_country_is_required(self):
        with pytest.raises(QueryError, match="ISO 3"):
            ClimateQuery("", Variable.TEMPERATURE)

    def test_variable_is_required(self):
        with pytest.raises(QueryError, match="variable"):
            ClimateQuery("USA", None)
