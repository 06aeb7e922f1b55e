"""Reconnect backoff utilities."""

import asyncio
import logging

logger = logging.getLogger(__name__)


class FixedBackoff:
    """
    Constant delay between reconnect attempts.

    There is no growth, jitter or attempt cap. The wait ends early when the
    shutdown event is set.
    """

    def __init__(self, delay: float = 10.0):
        self.delay = delay

    async def wait(self, shutdown_event: asyncio.Event) -> bool:
        """
        Sleep for the configured delay.

        Returns:
            True if the delay elapsed, False if shutdown was requested first
        """
        if shutdown_event.is_set():
            return False

        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=self.delay)
        except asyncio.TimeoutError:
            return True

        logger.debug("Backoff interrupted by shutdown request")
        return False
