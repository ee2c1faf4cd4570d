"""
Process entry point for periodic workers.

Sets up telemetry and logging, runs the worker until SIGINT/SIGTERM and
releases process-wide resources (message queue publisher, DB engine) on
the way out.
"""

import asyncio
import logging
import signal
from typing import Callable, Optional

from common.core.otel_axiom_exporter import _initialize_telemetry, get_logger
from common.db.session import dispose_engine
from common.providers.messaging.factory import close_message_queue
from common.workers.base_worker import PeriodicWorker


class WorkerLauncher:
    """Runs a PeriodicWorker with graceful shutdown."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.worker_instance: Optional[PeriodicWorker] = None

    def _setup_logging(self):
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )

    def _request_stop(self, signame: str) -> None:
        self.logger.info(f"Received {signame}, finishing current run...")
        if self.worker_instance:
            # Wakes the worker out of its interval sleep
            asyncio.get_running_loop().create_task(self.worker_instance.stop())

    def _register_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._request_stop, sig.name)
            except NotImplementedError:
                # Windows event loops have no signal handler support
                signal.signal(sig, lambda *_, name=sig.name: self._request_stop(name))

    async def _shutdown(self) -> None:
        try:
            await close_message_queue()
            await dispose_engine()
        except Exception as e:
            self.logger.error(f"Error during worker shutdown: {e}")

    async def run_async(self, worker: PeriodicWorker, worker_name: str) -> None:
        """Run the worker in the current loop until it is stopped."""
        self.worker_instance = worker
        self._register_signal_handlers()

        try:
            self.logger.info(f"Starting {worker_name}...")
            await worker.start()
        except Exception as e:
            self.logger.error(f"{worker_name} failed with error: {e}", exc_info=True)
            raise
        finally:
            await self._shutdown()
            self.logger.info(f"{worker_name} shutdown complete")

    def run(
        self,
        worker_factory: Callable[..., PeriodicWorker],
        worker_name: str,
        setup_logging: bool = True,
        **factory_kwargs,
    ) -> None:
        """
        Build the worker and block until it exits.

        Args:
            worker_factory: Class or function that creates the worker
            worker_name: Human readable name for logging
            setup_logging: Whether to configure stdlib logging
            **factory_kwargs: Passed through to worker_factory
        """
        _initialize_telemetry()

        if setup_logging:
            self._setup_logging()

        self.logger.info(f"Configuring {worker_name}...")
        worker = worker_factory(**factory_kwargs)

        asyncio.run(self.run_async(worker, worker_name))
