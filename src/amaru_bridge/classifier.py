"""
Maps structured log records emitted by the engine onto the closed set of
domain events defined in `models`.

Records are loosely typed and their schema drifts between engine releases, so
extraction never fails: a missing field or a value of the wrong shape resolves
to the zero value of the event field. Records whose `name` is not in the table
are dropped.
"""
import re
from typing import Any, Callable, Dict, Mapping, Optional

from .models import (
    AppEvent,
    CreatingState,
    DownloadingSnapshot,
    EpochTransition,
    ImportedSnapshot,
    ImportedSnapshots,
    ImportingSnapshot,
    ImportingSnapshots,
    SnapshotsDownloaded,
    Starting,
    TipCaughtUp,
    TipSyncing,
)

Record = Mapping[str, Any]

_U64_MAX = 2**64 - 1
# At most 20 significant digits (2**64 - 1), leading zeros matched apart.
_DECIMAL = re.compile(r"\+?0*([0-9]{1,20})")


def parse_u64(text: Any) -> int:
    """Parses a decimal string as an unsigned 64-bit integer, 0 on failure."""
    if not isinstance(text, str):
        return 0
    match = _DECIMAL.fullmatch(text)
    if not match:
        return 0
    value = int(match.group(1))
    return value if value <= _U64_MAX else 0


def as_u64(value: Any) -> int:
    """Reads a JSON number as an unsigned 64-bit integer, 0 on failure."""
    # bool is an int subclass but never a valid number here
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value if 0 <= value <= _U64_MAX else 0


def slot_from_point(record: Record, field: str = "point") -> int:
    """Extracts the slot out of a `"<slot>.<hash>"` point string."""
    point = record.get(field)
    if not isinstance(point, str):
        return 0
    return parse_u64(point.split(".", 1)[0])


def _epoch(record: Record) -> int:
    return parse_u64(record.get("epoch"))


def _tip_slot(record: Record) -> int:
    # "tip": {"hash": "d6fe6439...", "slot": 70070379}
    tip = record.get("tip")
    if not isinstance(tip, Mapping):
        return 0
    return as_u64(tip.get("slot"))


def _snapshot_name(record: Record) -> str:
    snapshot = record.get("snapshot")
    return snapshot if isinstance(snapshot, str) else ""


_CLASSIFIERS: Dict[str, Callable[[Record], AppEvent]] = {
    "Downloading snapshot": lambda r: AppEvent.bootstrap(DownloadingSnapshot(epoch=_epoch(r))),
    "All snapshots downloaded and decompressed successfully": lambda r: AppEvent.bootstrap(SnapshotsDownloaded()),
    "Importing snapshots": lambda r: AppEvent.bootstrap(ImportingSnapshots()),
    "Importing snapshot": lambda r: AppEvent.bootstrap(ImportingSnapshot(snapshot=_snapshot_name(r))),
    "Imported snapshot": lambda r: AppEvent.bootstrap(ImportedSnapshot(epoch=_epoch(r))),
    "Imported snapshots": lambda r: AppEvent.bootstrap(ImportedSnapshots()),
    "starting": lambda r: AppEvent.runtime(Starting(tip=_tip_slot(r))),
    "new.known_snapshots": lambda r: AppEvent.runtime(CreatingState()),
    "epoch_transition": lambda r: AppEvent.runtime(
        EpochTransition(from_epoch=as_u64(r.get("from")), into_epoch=as_u64(r.get("into")))
    ),
    "track_peers.caught_up.new_tip": lambda r: AppEvent.runtime(TipCaughtUp(slot=slot_from_point(r))),
    "track_peers.syncing.new_tip": lambda r: AppEvent.runtime(TipSyncing(slot=slot_from_point(r))),
}

KNOWN_RECORD_NAMES = frozenset(_CLASSIFIERS)


def classify(record: Record) -> Optional[AppEvent]:
    """
    Returns the domain event for a structured record, or None when the
    record's name is not one the presentation layer cares about.
    """
    name = record.get("name")
    if not isinstance(name, str):
        return None
    build = _CLASSIFIERS.get(name)
    if build is None:
        return None
    return build(record)
