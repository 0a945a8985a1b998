"""
Unit tests for the partial/merged Table.
"""

import datetime
import math

import pytest

from wb_connector.application.climate import Month
from wb_connector.application.tables import Table


def _table(cells, value_type=float):
    table = Table()
    for row, column, value in cells:
        table.add_row(row)
        table.add_column(column, value_type)
        table.set(row, column, value)
    return table


class TestTable:

    def test_rows_keep_first_seen_order(self):
        table = Table()

        assert table.add_row("b")
        assert table.add_row("a")
        assert not table.add_row("b")

        assert table.rows == ["b", "a"]

    def test_set_requires_known_row_and_column(self):
        table = Table()
        table.add_row("r")

        with pytest.raises(KeyError):
            table.set("r", "c", 1.0)
        with pytest.raises(KeyError):
            table.set("other", "c", 1.0)

    def test_combine_first_keeps_earliest_value(self):
        first = _table([("2010", "US", 1.0), ("2011", "US", 2.0)])
        second = _table([("2011", "US", 99.0), ("2012", "US", 3.0), ("2011", "GB", 4.0)])

        merged = Table.combine_first([first, second])

        assert merged.rows == ["2010", "2011", "2012"]
        assert merged.columns == ["US", "GB"]
        assert merged.get("2011", "US") == 2.0
        assert merged.get("2012", "US") == 3.0
        assert merged.get("2011", "GB") == 4.0

    def test_combine_first_order_decides_winner(self):
        first = _table([("2010", "US", 1.0)])
        second = _table([("2010", "US", 2.0)])

        assert Table.combine_first([second, first]).get("2010", "US") == 2.0

    def test_combine_first_of_nothing_is_empty(self):
        merged = Table.combine_first([])

        assert len(merged) == 0
        assert merged.to_frame().empty

    def test_to_frame_keeps_order_and_fills_gaps(self):
        table = _table(
            [
                (datetime.date(2011, 12, 31), "US", 2.0),
                (datetime.date(2010, 12, 31), "GB", 1.0),
            ]
        )

        frame = table.to_frame("date", "country")

        assert list(frame.index) == [
            datetime.date(2011, 12, 31),
            datetime.date(2010, 12, 31),
        ]
        assert list(frame.columns) == ["US", "GB"]
        assert frame.index.name == "date"
        assert frame.columns.name == "country"
        assert frame["US"].dtype == float
        assert frame.loc[datetime.date(2011, 12, 31), "US"] == 2.0
        assert math.isnan(frame.loc[datetime.date(2010, 12, 31), "US"])

    def test_to_frame_with_enum_columns(self):
        table = Table()
        for month in Month:
            table.add_column(month, float)
        table.add_row("key")
        table.set("key", Month.MAR, 3.0)

        frame = table.to_frame()

        assert list(frame.columns) == list(Month)
        assert frame.loc["key", Month.MAR] == 3.0

    def test_to_frame_keeps_string_columns(self):
        table = _table([(1, "acronym", "WDI")], value_type=str)

        frame = table.to_frame("id", "attribute")

        assert frame.loc[1, "acronym"] == "WDI"
