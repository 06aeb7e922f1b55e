"""Pytest configuration and shared fixtures."""

import asyncio
import json
from typing import Any, Dict, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from fems_ingestor.accumulator import MemoryAccumulator
from fems_ingestor.clients.fems_ws import FemsSession
from fems_ingestor.config.settings import FemsConfig


@pytest.fixture
def fems_config() -> FemsConfig:
    """Connection target with a short reconnect delay."""
    return FemsConfig(
        url="127.0.0.1:8085",
        password="secret",
        channels=["_sum/EssSoc", "_sum/GridActivePower"],
        reconnect_interval_seconds=0.05,
    )


@pytest.fixture
def accumulator() -> MemoryAccumulator:
    return MemoryAccumulator()


def make_session() -> Mock:
    """Mock FEMS session with async I/O methods."""
    session = Mock(spec=FemsSession)
    session.send_json = AsyncMock()
    session.recv_message = AsyncMock()
    session.close = AsyncMock()
    return session


def reply_to_last_request(session: Mock, error: Optional[Dict[str, Any]] = None, response_id: Optional[str] = None):
    """Make the next receive answer whatever request was sent last."""
    def _reply():
        request = session.send_json.call_args[0][0]
        return json.dumps({
            "jsonrpc": "2.0",
            "id": request["id"] if response_id is None else response_id,
            "error": error,
        })

    session.recv_message.side_effect = _reply


@pytest.fixture
def mock_session() -> Mock:
    return make_session()


def push_event(values: Dict[str, Any]) -> str:
    """Serialized push event carrying ``values``."""
    return json.dumps({
        "method": "edgeRpc",
        "params": {
            "method": "currentData",
            "payload": {"params": values},
        },
    })


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01):
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)
