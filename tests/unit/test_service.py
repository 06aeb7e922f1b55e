"""Tests for the service lifecycle commands."""

import asyncio
import logging

import pytest

from fems_ingestor.config.settings import FemsIngestorSettings
from fems_ingestor.main import FemsIngestorService, main
from fems_ingestor.supervisor import ConnectionState


class FakeSupervisor:
    """Stands in for ConnectionSupervisor without any network access."""

    def __init__(self, config, accumulator):
        self.config = config
        self.accumulator = accumulator
        self.state = ConnectionState.IDLE
        self.reconnect_count = 0
        self.stream_processor = type("Processor", (), {"stats": {"records_emitted": 0}})()
        self.stopped = asyncio.Event()

    async def run(self):
        self.state = ConnectionState.STREAMING
        await self.stopped.wait()
        self.state = ConnectionState.TERMINATED

    async def stop(self):
        self.stopped.set()


@pytest.fixture
def settings(fems_config):
    return FemsIngestorSettings(fems=fems_config)


@pytest.mark.unit
class TestFemsIngestorService:

    @pytest.mark.asyncio
    async def test_start_and_stop(self, settings, accumulator):
        service = FemsIngestorService(settings, supervisor_factory=FakeSupervisor)

        await service.start(accumulator)
        await asyncio.sleep(0)
        assert service.running is True
        assert service.health_check()["status"] == "healthy"

        await service.stop()

        assert service.running is False
        assert service.supervisor.state is ConnectionState.TERMINATED

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_supervisor(self, settings, accumulator):
        service = FemsIngestorService(settings, supervisor_factory=FakeSupervisor)

        await service.start(accumulator)
        first = service.supervisor
        await service.start(accumulator)

        assert service.supervisor is first
        await service.stop()

    @pytest.mark.asyncio
    async def test_gather_is_noop(self, settings, accumulator):
        service = FemsIngestorService(settings, supervisor_factory=FakeSupervisor)

        assert await service.gather() is None
        assert accumulator.records == []

    @pytest.mark.asyncio
    async def test_stop_before_start(self, settings):
        service = FemsIngestorService(settings, supervisor_factory=FakeSupervisor)
        await service.stop()

        assert service.health_check()["state"] == "idle"

    @pytest.mark.asyncio
    async def test_run_forever_until_shutdown_requested(self, settings, accumulator):
        service = FemsIngestorService(settings, supervisor_factory=FakeSupervisor)

        task = asyncio.create_task(service.run_forever(accumulator))
        await asyncio.sleep(0.01)
        service.request_shutdown()
        await asyncio.wait_for(task, timeout=1.0)

        assert service.supervisor.state is ConnectionState.TERMINATED


@pytest.mark.unit
class TestMain:

    @pytest.mark.asyncio
    async def test_configuration_error_exits_before_connecting(self, tmp_path, caplog):
        path = tmp_path / "config.yaml"
        path.write_text("fems:\n  url: ''\n  channels: []\n")

        assert await main(str(path)) == 1
        assert any(
            r.levelno == logging.ERROR and "Configuration error" in r.getMessage() for r in caplog.records
        )
