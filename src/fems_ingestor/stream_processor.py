"""Turns FEMS push events into measurement records."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from .accumulator import Accumulator
from .clients.fems_ws import FemsSession, TransportError
from .clients.rpc import ProtocolError, parse_data_update
from . import metrics

logger = logging.getLogger(__name__)


def filter_channel_values(values: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
    """
    Split channel values into reported and missing ones.

    Only ``None`` means "no data"; zero, False and empty strings are real
    readings. Returns the reported values in their original order and the
    names of the channels that were null.
    """
    reported = {}
    missing = []
    for channel, value in values.items():
        if value is None:
            missing.append(channel)
        else:
            reported[channel] = value
    return reported, missing


class StreamProcessor:
    """Reads push events from a subscribed session until it fails."""

    def __init__(self, accumulator: Accumulator, measurement: str, shutdown_event: asyncio.Event):
        self.accumulator = accumulator
        self.measurement = measurement
        self.shutdown_event = shutdown_event

        self.stats = {
            "events_received": 0,
            "records_emitted": 0,
            "decode_errors": 0,
            "empty_events": 0,
            "last_record_time": None,
        }

    async def run(self, session: FemsSession):
        """Process messages until the session fails or shutdown is requested."""
        while True:
            try:
                raw = await session.recv_message()
            except TransportError as e:
                if not self.shutdown_event.is_set():
                    logger.info(f"read error: {e}")
                return

            self.handle_message(raw)

    def handle_message(self, raw) -> Optional[Dict[str, Any]]:
        """
        Decode one push event and emit its batch.

        Returns the emitted fields, or None when nothing was emitted.
        """
        self.stats["events_received"] += 1
        metrics.PUSH_EVENTS_TOTAL.inc()

        try:
            event = parse_data_update(raw)
        except ProtocolError as e:
            self.stats["decode_errors"] += 1
            metrics.EVENTS_DROPPED_TOTAL.labels(reason="decode_error").inc()
            logger.warning(f"could not parse received data: {e}; data was: {raw!r}")
            return None

        values = event.channel_values()
        logger.debug(f"FEMS RX: {values}")

        fields, missing = filter_channel_values(values)
        for channel in missing:
            metrics.NULL_CHANNELS_TOTAL.inc()
            logger.warning(
                f"no data for channel '{channel}' received. "
                f"This most likely means the channel does not exist."
            )

        if not fields:
            self.stats["empty_events"] += 1
            metrics.EVENTS_DROPPED_TOTAL.labels(reason="empty").inc()
            logger.warning(f"No measurement data! Original message was: {raw!r}")
            return None

        self.accumulator.add_fields(self.measurement, fields)
        self.stats["records_emitted"] += 1
        self.stats["last_record_time"] = time.time()
        metrics.RECORDS_EMITTED_TOTAL.inc()
        return fields
