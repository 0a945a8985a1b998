"""
Infrastructure adapter that writes query results to Parquet files.
"""

import asyncio
import datetime
import enum
import logging
from pathlib import Path

import pandas
import pyarrow
import pyarrow.parquet as parquet

from ..application.exceptions import ExportError

_PLAIN_TYPES = (str, int, float, bool, datetime.date)


class ParquetExporter:
    """Writes a result DataFrame, index included, to a Parquet file."""

    def __init__(self, row_group_size: int = 100_000):
        """Initializes the exporter."""
        self.logger = logging.getLogger(self.__class__.__name__)
        self.row_group_size = row_group_size

    @staticmethod
    def _label(value) -> str:
        if isinstance(value, enum.Enum):
            return value.name
        return str(value)

    def _flatten(self, frame: pandas.DataFrame) -> pandas.DataFrame:
        """
        Turns the index into a column and makes every label a string.

        Row keys that Arrow cannot store natively (climate keys) are written
        in their string form.
        """
        flat = frame.reset_index()
        flat.columns = [self._label(c) for c in flat.columns]
        for column in flat.columns:
            values = flat[column]
            if values.dtype == object and not all(
                v is None or isinstance(v, _PLAIN_TYPES) for v in values
            ):
                flat[column] = values.map(str)
        return flat

    def _blocking_write(self, frame: pandas.DataFrame, destination: Path):
        try:
            table = pyarrow.Table.from_pandas(
                self._flatten(frame), preserve_index=False
            )
            destination.parent.mkdir(parents=True, exist_ok=True)
            with parquet.ParquetWriter(destination, table.schema) as writer:
                writer.write_table(table, row_group_size=self.row_group_size)
        except (pyarrow.ArrowException, OSError) as e:
            raise ExportError(f"Failed to write {destination.name}: {e}") from e

    async def to_parquet(self, frame: pandas.DataFrame, destination: Path) -> Path:
        """
        Writes the frame without blocking the event loop.

        Returns:
            The path that was written.

        Raises:
            ExportError: If conversion or writing fails.
        """
        self.logger.info(
            f"Writing {len(frame)} rows x {len(frame.columns)} columns "
            f"to {destination.name}..."
        )
        await asyncio.to_thread(self._blocking_write, frame, destination)
        self.logger.info(f"Finished writing {destination.name}")
        return destination
