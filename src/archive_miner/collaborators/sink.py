"""End-of-run result sink writing ``title, body`` rows to a CSV file."""

from __future__ import annotations

import asyncio
import csv
import logging
from collections.abc import Sequence
from pathlib import Path

from archive_miner.core.exceptions import SinkError
from archive_miner.core.models import PipelineRow

logger = logging.getLogger(__name__)

#: Ordered columns written by :class:`CsvResultSink`.
CSV_COLUMNS: list[str] = ["title", "body"]


class CsvResultSink:
    """Appends rows to a CSV file, writing the header when the file is new.

    Each call appends, so successive runs accumulate in the same sheet.

    Args:
        path: Destination CSV file.  Parent directories are created.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def write(self, rows: Sequence[PipelineRow]) -> None:
        """Append ``rows`` to the CSV file.

        Raises:
            SinkError: If the file cannot be written.
        """
        try:
            await asyncio.to_thread(self._write_sync, list(rows))
        except OSError as exc:
            raise SinkError(f"csv: cannot write {self.path}: {exc}", collaborator="csv") from exc
        logger.info("sink: appended %d row(s) to %s", len(rows), self.path)

    def _write_sync(self, rows: list[PipelineRow]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        is_new = not self.path.exists() or self.path.stat().st_size == 0
        with self.path.open("a", newline="", encoding="utf-8") as fh:
            writer = csv.writer(fh)
            if is_new:
                writer.writerow(CSV_COLUMNS)
            writer.writerows(row.as_tuple() for row in rows)
