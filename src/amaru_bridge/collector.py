import logging
import threading
from typing import Any, Dict, List

# Attributes every LogRecord carries; anything else on a record came from `extra=`.
_STANDARD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class RecordCollector:
    """
    Buffers structured records produced by the engine until the drain loop
    picks them up.

    The engine logs from its own thread while the drain loop runs on the
    application's event loop, so every mutation of the buffer happens under a
    lock. `drain` swaps the buffer for a fresh list, which hands the records
    over without copying and without losing or duplicating any of them.
    """

    def __init__(self):
        self._records: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def record(self, record: Dict[str, Any]):
        """Appends one structured record."""
        with self._lock:
            self._records.append(record)

    def drain(self) -> List[Dict[str, Any]]:
        """Returns every record since the last drain, in append order, and clears the buffer."""
        with self._lock:
            records, self._records = self._records, []
        return records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class CollectorHandler(logging.Handler):
    """
    A logging handler that turns the engine's log calls into structured records.

    The log message becomes the record's `name` and fields passed through
    `extra=` are copied alongside it, so

        logging.getLogger("amaru").info("epoch_transition", extra={"from": 214, "into": 215})

    is collected as `{"name": "epoch_transition", "from": 214, "into": 215, ...}`.
    """

    def __init__(self, collector: RecordCollector, level: int = logging.NOTSET):
        super().__init__(level)
        self.collector = collector

    def to_record(self, log_record: logging.LogRecord) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "name": log_record.getMessage(),
            "level": log_record.levelname,
            "target": log_record.name,
            "timestamp": log_record.created,
        }
        for key, value in log_record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                record[key] = value
        return record

    def emit(self, log_record: logging.LogRecord):
        try:
            self.collector.record(self.to_record(log_record))
        except Exception:
            self.handleError(log_record)
