"""Unit tests for the CSV result sink."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest

from archive_miner.collaborators.base import ResultSink
from archive_miner.collaborators.sink import CSV_COLUMNS, CsvResultSink
from archive_miner.core.exceptions import SinkError
from archive_miner.core.models import PipelineRow


def _read(path: Path) -> list[list[str]]:
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


@pytest.mark.asyncio
class TestCsvResultSink:
    async def test_writes_header_and_rows(self, tmp_path: Path) -> None:
        path = tmp_path / "out" / "articles.csv"
        sink = CsvResultSink(path)
        assert isinstance(sink, ResultSink)

        await sink.write([PipelineRow("T1", "B1 long enough"), PipelineRow("T2", "Line one\n\nLine two")])

        assert _read(path) == [
            CSV_COLUMNS,
            ["T1", "B1 long enough"],
            ["T2", "Line one\n\nLine two"],
        ]

    async def test_second_write_appends_without_header(self, tmp_path: Path) -> None:
        path = tmp_path / "articles.csv"
        sink = CsvResultSink(path)

        await sink.write([PipelineRow("T1", "B1")])
        await sink.write([PipelineRow("T2", "B2")])

        assert _read(path) == [CSV_COLUMNS, ["T1", "B1"], ["T2", "B2"]]

    async def test_unwritable_path_raises_sink_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x")

        with pytest.raises(SinkError) as exc_info:
            await CsvResultSink(blocker / "articles.csv").write([PipelineRow("T", "B")])

        assert exc_info.value.collaborator == "csv"
