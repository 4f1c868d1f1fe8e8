import asyncio
import logging

from .classifier import classify
from .collector import RecordCollector
from .publisher import EventPublisher

DEFAULT_POLLING_INTERVAL = 0.5


class DrainLoop:
    """
    The background task that moves engine telemetry to the presentation layer.

    Every `polling_interval` seconds it drains the collector, classifies each
    record and publishes the resulting events, preserving the order in which
    the records were collected. It runs until `stop()` is called at shutdown.
    """

    def __init__(
        self,
        collector: RecordCollector,
        publisher: EventPublisher,
        polling_interval: float = DEFAULT_POLLING_INTERVAL,
    ):
        self._collector = collector
        self._publisher = publisher
        self._polling_interval = polling_interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def drain_once(self) -> int:
        """Runs a single drain cycle and returns the number of events published."""
        published = 0
        for record in self._collector.drain():
            try:
                event = classify(record)
            except Exception as e:
                logging.warning(f"Drain loop skipping unclassifiable record: {e}")
                continue
            if event is None:
                continue
            self._publisher.publish(event)
            published += 1
        return published

    async def start(self):
        """Starts the polling task."""
        if self._task:
            return
        self._task = asyncio.create_task(self._poll())
        logging.info(f"Drain loop started, polling every {self._polling_interval}s")

    async def stop(self):
        """Stops the polling task."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logging.info("Drain loop stopped")

    async def _poll(self):
        while True:
            try:
                self.drain_once()
            except Exception as e:
                logging.error(f"Drain loop error: {e}")
            await asyncio.sleep(self._polling_interval)
