"""
Wires the bridge together.

`open_bridge` is the entry point: it captures the shared pieces (collector,
logging handler, publisher, drain loop, orchestrator) for one set of
`BridgeSettings`, starts them, yields the running `BridgeApp`, and tears
everything down on exit.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from .collector import CollectorHandler, RecordCollector
from .config import BridgeSettings
from .drain import DrainLoop
from .orchestrator import LifecycleOrchestrator, Outcome
from .protocols import Bootstrap, Engine
from .publisher import Emitter, EventChannel, EventPublisher
from .settings import open_settings


class BridgeApp:
    def __init__(
        self,
        settings: BridgeSettings,
        engine: Engine,
        bootstrap: Bootstrap,
        emit: Optional[Emitter] = None,
    ):
        self.settings = settings
        self.channel = EventChannel()
        self.collector = RecordCollector()
        self.handler = CollectorHandler(self.collector)
        self.publisher = EventPublisher(emit or self.channel.emit, channel=settings.channel)
        self.drain_loop = DrainLoop(self.collector, self.publisher, settings.polling_interval)
        self.orchestrator = LifecycleOrchestrator(
            network=settings.network,
            ledger_dir=settings.ledger_dir,
            chain_dir=settings.chain_dir,
            engine=engine,
            bootstrap=bootstrap,
            migrate_chain_db=settings.migrate_chain_db,
        )
        self._engine_logger = logging.getLogger(settings.engine_logger)

    async def start(self):
        """Records the selected network, attaches the collector and starts both tasks."""
        network = str(self.settings.network)
        async with open_settings(self.settings.settings_db) as store:
            previous = await store.get("network")
            if isinstance(previous, dict) and previous.get("value") != network:
                logging.info(f"Network changed from {previous.get('value')} to {network}")
            await store.set("network", {"value": network})

        self._engine_logger.addHandler(self.handler)
        if self._engine_logger.level == logging.NOTSET:
            self._engine_logger.setLevel(logging.DEBUG)

        await self.drain_loop.start()
        self.orchestrator.launch()

    async def wait(self, poll_interval: float = 0.1) -> Optional[Outcome]:
        """Waits, without blocking the event loop, for the orchestration to end."""
        while not self.orchestrator.join(timeout=0):
            await asyncio.sleep(poll_interval)
        return self.orchestrator.outcome

    async def stop(self):
        await self.drain_loop.stop()
        # Publish whatever the engine logged after the last cycle.
        self.drain_loop.drain_once()
        self._engine_logger.removeHandler(self.handler)


@asynccontextmanager
async def open_bridge(
    settings: BridgeSettings,
    engine: Engine,
    bootstrap: Bootstrap,
    emit: Optional[Emitter] = None,
) -> AsyncIterator[BridgeApp]:
    app = BridgeApp(settings, engine, bootstrap, emit)
    await app.start()
    try:
        yield app
    finally:
        await app.stop()
