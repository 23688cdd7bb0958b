"""
Result sinks.

The crawl controller hands accepted records to a ResultSinkAdapter in
batches. The adapter wraps a concrete sink and turns any sink failure into a
SinkError, which is fatal for the run.

Attributes:
    logger: Logger for registering sink events.

Classes:
    SinkError: Raised when a batch could not be recorded.
    ResultSink: Interface of concrete sinks.
    DatabaseSink: SQLAlchemy sink (one session per batch).
    JsonLinesSink: Appends one JSON object per record to a file.
    ResultSinkAdapter: Batch writer used by the controller.

Functions:
    make_sink: Concrete sink selected by the RESULT_SINK setting.
"""

import json
from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from autotrader.config.settings import JSONL_FILE, OUTPUT_DIR, RESULT_SINK
from autotrader.core.database import get_db
from autotrader.scraper.types import VehicleRecord
from autotrader.utils.db_utils import safe_insert_vehicle
from autotrader.utils.logger import get_logger

logger = get_logger(__name__)


class SinkError(Exception):
    """A batch of records could not be recorded."""


class ResultSink(ABC):
    @abstractmethod
    def write_batch(self, records: Sequence[VehicleRecord]) -> int:
        """
        Durably record a batch.

        Args:
            records (Sequence[VehicleRecord]): Accepted records.

        Returns:
            int: Number of records actually written (duplicates excluded).
        """
        pass


class DatabaseSink(ResultSink):
    """
    Sink writing records to the vehicles table.

    Attributes:
        session_factory (Callable): Context manager factory yielding a Session,
            get_db by default.
    """

    def __init__(self, session_factory: Callable[[], AbstractContextManager] = get_db):
        self.session_factory = session_factory

    def write_batch(self, records: Sequence[VehicleRecord]) -> int:
        saved = 0
        with self.session_factory() as db:
            for record in records:
                if safe_insert_vehicle(db, record.to_dict()) is not None:
                    saved += 1
        logger.info(f"Saved {saved}/{len(records)} vehicles to database")
        return saved


class JsonLinesSink(ResultSink):
    """Sink appending records as JSON lines to a file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write_batch(self, records: Sequence[VehicleRecord]) -> int:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            for record in records:
                fh.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")
        logger.info(f"Wrote {len(records)} vehicles to {self.path}")
        return len(records)


class ResultSinkAdapter:
    """
    Batch writer in front of a ResultSink.

    Attributes:
        sink (ResultSink): Concrete sink.
        saved (int): Records written so far.
        batches (int): Batches written so far.
    """

    def __init__(self, sink: ResultSink):
        self.sink = sink
        self.saved = 0
        self.batches = 0

    def flush(self, records: List[VehicleRecord]) -> int:
        """
        Write a batch, converting sink failures into SinkError.

        Args:
            records (List[VehicleRecord]): Batch to write; empty batches are a no-op.

        Returns:
            int: Records written.

        Raises:
            SinkError: If the sink failed.
        """
        if not records:
            return 0
        try:
            written = self.sink.write_batch(records)
        except Exception as e:
            logger.critical(f"Sink failed on a batch of {len(records)} records: {str(e)}", exc_info=True)
            raise SinkError(str(e)) from e
        self.saved += written
        self.batches += 1
        return written


def make_sink(kind: Optional[str] = None) -> ResultSink:
    """
    Build the concrete sink for a run.

    Args:
        kind (Optional[str]): "database" or "jsonl"; RESULT_SINK when omitted.

    Returns:
        ResultSink: DatabaseSink, or a JsonLinesSink writing to
        OUTPUT_DIR / JSONL_FILE.

    Raises:
        ValueError: For an unknown sink kind.
    """
    kind = (kind or RESULT_SINK).lower()
    if kind == "database":
        return DatabaseSink()
    if kind == "jsonl":
        return JsonLinesSink(OUTPUT_DIR / JSONL_FILE)
    raise ValueError(f"Unknown result sink: {kind}")
