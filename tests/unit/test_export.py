"""
Unit tests for the ParquetExporter.
"""

import datetime

import pyarrow.parquet as parquet
import pytest

from wb_connector.application.climate import Gcm, Month, Scenario, Variable, ClimateKey
from wb_connector.application.exceptions import ExportError
from wb_connector.application.tables import Table
from wb_connector.infrastructure.export import ParquetExporter


def _indicator_frame():
    table = Table()
    for year, value in [(2010, 1.5), (2011, 2.5)]:
        row = datetime.date(year, 12, 31)
        table.add_row(row)
        table.add_column("US", float)
        table.set(row, "US", value)
    return table.to_frame("date", "country")


class TestParquetExporter:

    @pytest.mark.asyncio
    async def test_writes_index_as_a_column(self, tmp_path):
        destination = tmp_path / "out" / "gdp.parquet"

        written = await ParquetExporter().to_parquet(_indicator_frame(), destination)

        assert written == destination
        result = parquet.read_table(destination).to_pydict()
        assert result["date"] == [datetime.date(2010, 12, 31), datetime.date(2011, 12, 31)]
        assert result["US"] == [1.5, 2.5]

    @pytest.mark.asyncio
    async def test_climate_keys_and_months_become_strings(self, tmp_path):
        key = ClimateKey(1920, 1939, Gcm.BCM_2_0, Scenario.C20C3M, Variable.PRECIPITATION)
        table = Table()
        table.add_row(key)
        for month in Month:
            table.add_column(month, float)
            table.set(key, month, float(month.value))
        destination = tmp_path / "climate.parquet"

        await ParquetExporter(row_group_size=10).to_parquet(
            table.to_frame("key", "month"), destination
        )

        result = parquet.read_table(destination)
        assert result.column_names[:3] == ["key", "JAN", "FEB"]
        assert result.column("key").to_pylist() == ["[1920-1939, bccr_bcm2_0, 20c3m, pr]"]
        assert result.column("DEC").to_pylist() == [12.0]

    @pytest.mark.asyncio
    async def test_unwritable_destination_raises_export_error(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")

        with pytest.raises(ExportError, match="gdp.parquet"):
            await ParquetExporter().to_parquet(
                _indicator_frame(), blocker / "gdp.parquet"
            )
