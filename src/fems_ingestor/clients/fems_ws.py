"""WebSocket transport session to a FEMS edge."""

import asyncio
import json
import logging
from typing import Any, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when the WebSocket cannot be opened, written or read."""


def build_ws_url(endpoint: str) -> str:
    """Plain ws:// only; no TLS is negotiated here."""
    return f"ws://{endpoint}"


class FemsSession:
    """
    One live WebSocket connection to a FEMS edge.

    A session is opened once and discarded after any failure; the supervisor
    opens a new one for every connection attempt.
    """

    def __init__(self, websocket, url: str):
        self.websocket = websocket
        self.url = url
        self._closed = False

    @classmethod
    async def open(cls, endpoint: str, ping_interval: Optional[float] = None) -> "FemsSession":
        url = build_ws_url(endpoint)
        logger.info(f"Connecting to {url}")

        try:
            websocket = await websockets.connect(
                url,
                ping_interval=ping_interval,
                max_size=2**22,
                compression=None,
            )
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            raise TransportError(f"dial {url}: {e}") from e

        return cls(websocket, url)

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_json(self, value: Any):
        if self._closed:
            raise TransportError("send on closed session")

        try:
            await self.websocket.send(json.dumps(value))
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"send: {e}") from e

    async def recv_message(self) -> Union[str, bytes]:
        """Block until one frame arrives or the connection fails."""
        if self._closed:
            raise TransportError("receive on closed session")

        try:
            return await self.websocket.recv()
        except (ConnectionClosed, OSError) as e:
            raise TransportError(f"receive: {e}") from e

    async def close(self):
        """Close the connection; later calls are no-ops."""
        if self._closed:
            return
        self._closed = True

        try:
            await self.websocket.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug(f"Error while closing {self.url}: {e}")

        logger.info("connection closed")


async def close_session(session: Optional[FemsSession]):
    """Close ``session`` if there is one."""
    if session is not None:
        await session.close()
