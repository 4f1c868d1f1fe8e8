"""
Configuration models, using Pydantic.

`BridgeSettings` is what the application is started with; `EngineConfig` is
what the orchestrator hands to the engine once it has resolved peers and
storage locations from those settings.
"""
from pathlib import Path
from typing import List, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .network import NetworkName
from .publisher import DEFAULT_CHANNEL
from .drain import DEFAULT_POLLING_INTERVAL

LEDGER_DIR_NAME = "ledger.db"
CHAIN_DIR_NAME = "chain.db"
SETTINGS_DB_NAME = "store.db"


def ledger_dir(app_data_dir: Path) -> Path:
    return Path(app_data_dir) / LEDGER_DIR_NAME


def chain_dir(app_data_dir: Path) -> Path:
    return Path(app_data_dir) / CHAIN_DIR_NAME


class EngineConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    network: Union[NetworkName, str]
    upstream_peers: List[str]
    ledger_store: Path
    chain_store: Path
    migrate_chain_db: bool = True


class BridgeSettings(BaseModel):
    app_data_dir: Path
    network: Union[NetworkName, str] = NetworkName.PREPROD
    channel: str = DEFAULT_CHANNEL
    polling_interval: float = DEFAULT_POLLING_INTERVAL
    # Logger the engine writes its telemetry to.
    engine_logger: str = "amaru"
    migrate_chain_db: bool = True

    @field_validator("network", mode="before")
    @classmethod
    def _parse_network(cls, value):
        return NetworkName.parse(value) if isinstance(value, str) else value

    @property
    def ledger_dir(self) -> Path:
        return ledger_dir(self.app_data_dir)

    @property
    def chain_dir(self) -> Path:
        return chain_dir(self.app_data_dir)

    @property
    def settings_db(self) -> Path:
        return self.app_data_dir / SETTINGS_DB_NAME
