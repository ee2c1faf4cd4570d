import asyncio
from abc import ABC, abstractmethod
from typing import Optional
from uuid import uuid4

from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)


class PeriodicWorker(ABC):
    """Base worker that runs a job on a fixed interval until stopped."""

    def __init__(self, interval_seconds: float, worker_id: Optional[str] = None):
        self.interval_seconds = interval_seconds
        self.worker_id = worker_id or f"{type(self).__name__}_{uuid4()}"
        self.running = False
        self._stop_event = asyncio.Event()

    async def setup(self):
        """Initialize worker dependencies."""
        pass

    async def cleanup(self):
        """Cleanup worker resources."""
        pass

    async def start(self):
        """Run the job now and then every interval_seconds."""
        if self.running:
            logger.warning(f"Worker {self.worker_id} is already running")
            return

        self.running = True
        self._stop_event.clear()
        logger.info(
            f"Starting worker {self.worker_id}, interval {self.interval_seconds}s"
        )

        try:
            await self.setup()
            while self.running:
                await self._run_job()
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(), timeout=self.interval_seconds
                    )
                except asyncio.TimeoutError:
                    pass
        finally:
            self.running = False
            await self.cleanup()

    async def stop(self):
        """Stop the worker after the current run."""
        self.running = False
        self._stop_event.set()
        logger.info(f"Stopping worker {self.worker_id}")

    async def _run_job(self):
        try:
            await self.run_once()
        except Exception as e:
            # A failed run is retried on the next tick
            logger.error(
                f"Error in worker {self.worker_id}: {e}",
                exc_info=True,
            )

    @abstractmethod
    async def run_once(self):
        """Run the job once. Must be implemented by subclasses."""
        pass
