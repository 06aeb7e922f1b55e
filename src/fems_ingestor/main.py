"""FEMS Ingestor Service - streams FEMS channel values to an accumulator."""

import asyncio
import logging
import os
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

from .accumulator import Accumulator, LoggingAccumulator
from .config.settings import ConfigurationError, FemsIngestorSettings, load_settings
from .health import HealthCheckServer
from .metrics import start_metrics_server
from .supervisor import ConnectionState, ConnectionSupervisor
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SECONDS = 15.0


class FemsIngestorService:
    """
    Owns the connection supervisor and its background task.

    ``start`` spawns the supervisor, ``stop`` tears it down and ``gather`` does
    nothing: every record is pushed by the edge as it arrives.
    """

    def __init__(self, settings: FemsIngestorSettings, supervisor_factory=ConnectionSupervisor):
        self.settings = settings
        self.supervisor_factory = supervisor_factory
        self.supervisor: Optional[ConnectionSupervisor] = None
        self._task: Optional[asyncio.Task] = None
        self._shutdown_event = asyncio.Event()
        self._started_at: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, accumulator: Accumulator):
        if self.running:
            logger.warning("Service already running")
            return

        logger.info("Start")
        self.supervisor = self.supervisor_factory(self.settings.fems, accumulator)
        self._task = asyncio.create_task(self.supervisor.run(), name="fems-supervisor")
        self._started_at = datetime.now(timezone.utc)

    async def stop(self):
        if self.supervisor is None:
            return

        await self.supervisor.stop()

        if self._task is not None:
            done, _ = await asyncio.wait({self._task}, timeout=STOP_TIMEOUT_SECONDS)
            if not done:
                logger.warning("Supervisor did not stop in time, cancelling")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None

        logger.info("FEMS Ingestor Service stopped")

    async def gather(self):
        """Records are push-driven; there is nothing to poll."""
        return None

    def request_shutdown(self):
        self._shutdown_event.set()

    async def run_forever(self, accumulator: Accumulator):
        """Run until SIGINT/SIGTERM or ``request_shutdown``."""
        self._setup_signal_handlers()
        await self.start(accumulator)

        try:
            await self._shutdown_event.wait()
        finally:
            logger.info("Shutting down FEMS Ingestor Service")
            await self.stop()

    def _setup_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self._on_signal, signum)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                signal.signal(signum, lambda s, f: self._on_signal(s))

    def _on_signal(self, signum):
        logger.info(f"Received signal {signum}, initiating shutdown")
        self.request_shutdown()

    def health_check(self) -> dict:
        state = self.supervisor.state if self.supervisor else ConnectionState.IDLE
        stats = dict(self.supervisor.stream_processor.stats) if self.supervisor else {}

        return {
            "service": self.settings.service_name,
            "status": "healthy" if state is ConnectionState.STREAMING else "unhealthy",
            "state": state.value,
            "running": self.running,
            "reconnect_count": self.supervisor.reconnect_count if self.supervisor else 0,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "stats": stats,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }


async def main(config_file: Optional[str] = None) -> int:
    """Main entry point."""
    config_file = config_file or os.getenv("CONFIG_FILE", "config/local.yaml")

    try:
        settings = load_settings(config_file)
    except ConfigurationError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error(f"Configuration error: {e}")
        return 1

    setup_logging(settings.logging, settings.service_name)
    logger.info(f"Loaded configuration from: {config_file}")
    logger.info(f"Channels: {settings.fems.channels}")

    service = FemsIngestorService(settings)
    health_server = None

    try:
        start_metrics_server(settings.metrics)

        if settings.health.enabled:
            health_server = HealthCheckServer(service, settings.health.host, settings.health.port)
            await health_server.start()

        await service.run_forever(LoggingAccumulator())
    except Exception as e:
        logger.error(f"Service failed: {e}", exc_info=True)
        return 1
    finally:
        if health_server:
            await health_server.stop()

    return 0


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
