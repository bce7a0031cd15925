from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol, Union

import orjson

from .models import SqlInsert

logger = logging.getLogger(__name__)


class SequenceCounter:
    """Thread-safe 1-based counter shared by every feed of a run."""

    def __init__(self, start: int = 0):
        self._value = start
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value


class RecordSink(Protocol):
    def write(self, record: SqlInsert) -> None: ...


def output_file_name(sequence: int, record: SqlInsert) -> str:
    feed_id = "NULL" if record.feed_id is None else str(record.feed_id)
    return f"{sequence}_{record.table}_{feed_id}.json"


class JsonDirectorySink:
    """Write each record as its own JSON document inside ``directory``."""

    def __init__(self, directory: Union[str, Path], counter: SequenceCounter):
        self.directory = Path(directory)
        self.counter = counter

    def write(self, record: SqlInsert) -> None:
        path = self.directory / output_file_name(self.counter.next(), record)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(orjson.dumps(record))
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)


class CollectingSink:
    """Keep records in memory, in emission order."""

    def __init__(self) -> None:
        self.records: list[SqlInsert] = []

    def write(self, record: SqlInsert) -> None:
        self.records.append(record)

    def by_table(self, table: str) -> list[SqlInsert]:
        return [record for record in self.records if record.table == table]
