"""
This module defines the domain events published to the presentation layer,
using Pydantic. Every event is a frozen model carrying primitive payloads only,
and belongs to exactly one category (`bootstrap` or `runtime`) and one variant
(its `kind`).

The wire form is produced by `AppEvent.to_payload()`:

    {"type": "runtime", "payload": {"kind": "epoch_transition", "from": 214, "into": 215}}
"""
from typing import Any, Dict, Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# Bootstrap category

class DownloadingSnapshot(_Event):
    kind: Literal["downloading_snapshot"] = "downloading_snapshot"
    epoch: int = 0

class SnapshotsDownloaded(_Event):
    kind: Literal["snapshots_downloaded"] = "snapshots_downloaded"

class ImportingSnapshots(_Event):
    kind: Literal["importing_snapshots"] = "importing_snapshots"

class ImportingSnapshot(_Event):
    kind: Literal["importing_snapshot"] = "importing_snapshot"
    snapshot: str = ""

class ImportedSnapshot(_Event):
    kind: Literal["imported_snapshot"] = "imported_snapshot"
    epoch: int = 0

class ImportedSnapshots(_Event):
    kind: Literal["imported_snapshots"] = "imported_snapshots"


# Runtime category

class Starting(_Event):
    kind: Literal["starting"] = "starting"
    tip: int = 0  # slot of the tip the node starts from

class CreatingState(_Event):
    kind: Literal["creating_state"] = "creating_state"

class EpochTransition(_Event):
    kind: Literal["epoch_transition"] = "epoch_transition"
    # `from` is a keyword, so both epochs are exposed under aliases on the wire.
    from_epoch: int = Field(default=0, alias="from")
    into_epoch: int = Field(default=0, alias="into")

class TipCaughtUp(_Event):
    kind: Literal["tip_caught_up"] = "tip_caught_up"
    slot: int = 0

class TipSyncing(_Event):
    kind: Literal["tip_syncing"] = "tip_syncing"
    slot: int = 0


BootstrapEvent = Union[
    DownloadingSnapshot,
    SnapshotsDownloaded,
    ImportingSnapshots,
    ImportingSnapshot,
    ImportedSnapshot,
    ImportedSnapshots,
]

RuntimeEvent = Union[
    Starting,
    CreatingState,
    EpochTransition,
    TipCaughtUp,
    TipSyncing,
]


class AppEvent(BaseModel):
    """The envelope sent over the channel: a category tag and one variant."""
    model_config = ConfigDict(frozen=True)

    type: Literal["bootstrap", "runtime"]
    payload: Union[BootstrapEvent, RuntimeEvent] = Field(discriminator="kind")

    @model_validator(mode="after")
    def _check_category(self) -> "AppEvent":
        expected = "bootstrap" if isinstance(self.payload, get_args(BootstrapEvent)) else "runtime"
        if self.type != expected:
            raise ValueError(f"{self.payload.kind!r} is a {expected} event, not a {self.type} event")
        return self

    @classmethod
    def bootstrap(cls, payload: BootstrapEvent) -> "AppEvent":
        return cls(type="bootstrap", payload=payload)

    @classmethod
    def runtime(cls, payload: RuntimeEvent) -> "AppEvent":
        return cls(type="runtime", payload=payload)

    @property
    def kind(self) -> str:
        return self.payload.kind

    def to_payload(self) -> Dict[str, Any]:
        """Serializes the event to its JSON-compatible wire form."""
        return self.model_dump(mode="json", by_alias=True)
