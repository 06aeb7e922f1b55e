"""Connection lifecycle for a FEMS edge: connect, log in, subscribe, stream."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .accumulator import Accumulator
from .clients.fems_ws import FemsSession, TransportError, close_session
from .config.settings import FemsConfig
from .handshake import authenticate, subscribe
from .stream_processor import StreamProcessor
from .utils.retry import FixedBackoff
from . import metrics

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Supervisor states."""
    IDLE = "idle"
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    CLOSING = "closing"
    TERMINATED = "terminated"


SessionFactory = Callable[..., Awaitable[FemsSession]]


class ConnectionSupervisor:
    """
    Keeps one session to the edge alive for as long as the service runs.

    Every failure, at any stage, leads to CLOSING: the session is closed and,
    unless shutdown was requested, a new attempt starts after a fixed delay.
    ``stop()`` may be called from any task at any time; it sets the shutdown
    event and closes the active session so blocked reads and writes fail
    immediately.
    """

    def __init__(
        self,
        config: FemsConfig,
        accumulator: Accumulator,
        session_factory: SessionFactory = FemsSession.open,
    ):
        self.config = config
        self.session_factory = session_factory
        self.shutdown_event = asyncio.Event()
        self.backoff = FixedBackoff(config.reconnect_interval_seconds)
        self.stream_processor = StreamProcessor(accumulator, config.measurement, self.shutdown_event)

        self.session: Optional[FemsSession] = None
        self.reconnect_count = 0
        self._state = ConnectionState.IDLE

        self._handlers = {
            ConnectionState.IDLE: self._on_idle,
            ConnectionState.CONNECTING: self._on_connecting,
            ConnectionState.AUTHENTICATING: self._on_authenticating,
            ConnectionState.SUBSCRIBING: self._on_subscribing,
            ConnectionState.STREAMING: self._on_streaming,
            ConnectionState.CLOSING: self._on_closing,
        }

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def stopping(self) -> bool:
        return self.shutdown_event.is_set()

    async def run(self):
        """Drive the state machine until it terminates."""
        self._set_state(ConnectionState.IDLE)

        while self._state is not ConnectionState.TERMINATED:
            try:
                next_state = await self.step(self._state)
            except Exception as e:
                logger.error(f"Unexpected error while {self._state.value}: {e}", exc_info=True)
                next_state = ConnectionState.CLOSING
            self._set_state(next_state)

        logger.info("Connection supervisor terminated")

    async def step(self, state: ConnectionState) -> ConnectionState:
        """Run the work for ``state`` and return the state to move to."""
        if state is ConnectionState.TERMINATED:
            return state
        return await self._handlers[state]()

    async def stop(self):
        """Request shutdown and unblock any pending session I/O."""
        logger.info("Stop")
        self.shutdown_event.set()
        await close_session(self.session)

    def _set_state(self, state: ConnectionState):
        if state is not self._state:
            logger.debug(f"state {self._state.value} -> {state.value}")
        self._state = state
        metrics.set_connection_state(state.value, [s.value for s in ConnectionState])

    async def _on_idle(self) -> ConnectionState:
        return ConnectionState.CONNECTING

    async def _on_connecting(self) -> ConnectionState:
        if self.stopping:
            return ConnectionState.CLOSING

        try:
            self.session = await self.session_factory(
                self.config.url, ping_interval=self.config.ping_interval_seconds
            )
        except TransportError as e:
            logger.error(f"dial: {e}")
            return ConnectionState.CLOSING

        # stop() may have run while the dial was pending and found no session
        if self.stopping:
            return ConnectionState.CLOSING
        return ConnectionState.AUTHENTICATING

    async def _on_authenticating(self) -> ConnectionState:
        if await authenticate(self.session, self.config.password):
            return ConnectionState.SUBSCRIBING
        return ConnectionState.CLOSING

    async def _on_subscribing(self) -> ConnectionState:
        if await subscribe(self.session, self.config.channels):
            return ConnectionState.STREAMING
        return ConnectionState.CLOSING

    async def _on_streaming(self) -> ConnectionState:
        await self.stream_processor.run(self.session)
        return ConnectionState.CLOSING

    async def _on_closing(self) -> ConnectionState:
        session, self.session = self.session, None
        await close_session(session)

        if self.stopping:
            return ConnectionState.TERMINATED

        delay = self.backoff.delay
        logger.warning(f"Connection failure, reconnecting in {delay}s")
        if not await self.backoff.wait(self.shutdown_event):
            return ConnectionState.TERMINATED

        self.reconnect_count += 1
        metrics.RECONNECTS_TOTAL.inc()
        return ConnectionState.CONNECTING
