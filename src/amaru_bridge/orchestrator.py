import asyncio
import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .config import EngineConfig
from .network import NetworkName, peers_for_network
from .protocols import Bootstrap, Engine, RunningEngine


class LifecycleState(str, Enum):
    NOT_STARTED = "not_started"
    BOOTSTRAPPING = "bootstrapping"
    RUNNING = "running"
    TERMINATED = "terminated"


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class LifecycleOrchestrator:
    """
    Brings the engine up: bootstrap once if needed, then run until it exits.

    The existence of the ledger directory is the only record of a completed
    bootstrap. When it is missing, the bootstrap collaborator is awaited
    before the engine is configured and started. Failures end the
    orchestration with `Outcome.FAILURE` and are reported to the log only.

    `run()` is a coroutine for callers that already own a suitable loop;
    `launch()` runs it on a dedicated thread with its own event loop so a
    long-lived engine never competes with the drain loop for scheduling.
    """

    def __init__(
        self,
        network: Union[NetworkName, str],
        ledger_dir: Path,
        chain_dir: Path,
        engine: Engine,
        bootstrap: Bootstrap,
        migrate_chain_db: bool = True,
    ):
        self.network = NetworkName.parse(network)
        self.ledger_dir = Path(ledger_dir)
        self.chain_dir = Path(chain_dir)
        self.migrate_chain_db = migrate_chain_db
        self._engine = engine
        self._bootstrap = bootstrap
        self.state = LifecycleState.NOT_STARTED
        self.outcome: Optional[Outcome] = None
        self.engine_handle: Optional[RunningEngine] = None
        self._thread: Optional[threading.Thread] = None

    def build_config(self) -> EngineConfig:
        return EngineConfig(
            network=self.network,
            upstream_peers=peers_for_network(self.network),
            ledger_store=self.ledger_dir,
            chain_store=self.chain_dir,
            migrate_chain_db=self.migrate_chain_db,
        )

    async def run(self) -> Outcome:
        """Runs the whole lifecycle and returns how it ended."""
        if self.state is not LifecycleState.NOT_STARTED:
            raise RuntimeError(f"Orchestrator already {self.state.value}")

        if not self.ledger_dir.exists():
            self.state = LifecycleState.BOOTSTRAPPING
            logging.info(f"No ledger state at {self.ledger_dir}, bootstrapping {self.network}")
            try:
                await self._bootstrap(self.network, self.ledger_dir, self.chain_dir)
            except Exception as e:
                logging.error(f"Bootstrap failed: {e}")
                return self._terminate(Outcome.FAILURE)

        self.state = LifecycleState.RUNNING
        config = self.build_config()
        try:
            self.engine_handle = await self._engine.build_and_run(config)
        except Exception as e:
            logging.error(f"Engine failed to start: {e}")
            return self._terminate(Outcome.FAILURE)

        logging.info(f"Engine running on {self.network} with peers {config.upstream_peers}")
        try:
            await self.engine_handle.join()
        except Exception as e:
            logging.error(f"Engine stopped with an error: {e}")
            return self._terminate(Outcome.FAILURE)
        return self._terminate(Outcome.SUCCESS)

    def _terminate(self, outcome: Outcome) -> Outcome:
        self.state = LifecycleState.TERMINATED
        self.outcome = outcome
        logging.info(f"Orchestration terminated: {outcome.value}")
        return outcome

    def launch(self) -> threading.Thread:
        """Starts `run()` on a daemon thread with its own event loop."""
        if self._thread:
            return self._thread
        self._thread = threading.Thread(
            target=self._run_in_thread, name="engine-lifecycle", daemon=True
        )
        self._thread.start()
        return self._thread

    def _run_in_thread(self):
        asyncio.run(self.run())

    def join(self, timeout: Optional[float] = None) -> bool:
        """Waits for a launched orchestration; returns False if it is still running."""
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()
