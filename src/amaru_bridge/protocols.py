"""
This module defines the protocols for the collaborators the bridge drives but
does not implement: the one-time bootstrap procedure and the engine itself.

The orchestrator only talks to these interfaces, so any engine binding (or a
fake one in tests) can be plugged in without changing the lifecycle logic.
"""
from pathlib import Path
from typing import Protocol, Union

from .config import EngineConfig
from .network import NetworkName


class Bootstrap(Protocol):
    """
    Imports the initial ledger state for a network into the two storage
    directories. Raises on failure.
    """
    async def __call__(self, network: Union[NetworkName, str], ledger_dir: Path, chain_dir: Path) -> None:
        ...


class RunningEngine(Protocol):
    async def join(self) -> None:
        """Waits until the engine terminates. Raises if it stops with an error."""
        ...


class Engine(Protocol):
    async def build_and_run(self, config: EngineConfig) -> RunningEngine:
        """Builds the engine from `config` and starts it. Raises if it cannot start."""
        ...
