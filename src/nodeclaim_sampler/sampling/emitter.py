"""Write snapshots as CSV rows to one or more streams."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import IO, Iterable, Sequence

from nodeclaim_sampler.sampling.schema import HEADER, Snapshot

logger = logging.getLogger(__name__)


class DestinationExistsError(Exception):
    """The output file already exists and overwriting was not requested."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"File {path} already exists. Use -f flag to force overwrite")
        self.path = path


def check_destination(path: Path, force: bool = False) -> None:
    """Raise DestinationExistsError if ``path`` exists and ``force`` is not set."""
    if path.exists() and not force:
        raise DestinationExistsError(path)


def open_destination(path: Path, force: bool = False) -> IO[str]:
    """Open ``path`` for writing, replacing any previous content only when ``force`` is set."""
    check_destination(path, force)
    return path.open("w", newline="", encoding="utf-8")


class CsvSink:
    """Writes CSV rows to every stream and flushes each one per row."""

    def __init__(self, streams: Iterable[IO[str]]) -> None:
        self._streams = list(streams)
        self._writers = [csv.writer(s, lineterminator="\n") for s in self._streams]

    def write_row(self, fields: Sequence[str]) -> None:
        for stream, writer in zip(self._streams, self._writers):
            writer.writerow(fields)
            stream.flush()


class RecordEmitter:
    """Serializes snapshots into the fixed record schema."""

    def __init__(self, sink: CsvSink) -> None:
        self._sink = sink

    def write_header(self) -> None:
        self._sink.write_row(HEADER)

    def emit(self, snapshot: Snapshot) -> None:
        """Write one row; write and flush errors propagate to the caller."""
        row = snapshot.row()
        self._sink.write_row(row)
        logger.debug("Emitted row %s", row)
