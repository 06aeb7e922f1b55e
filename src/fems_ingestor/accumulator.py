"""Destinations for measurement records."""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class Accumulator(ABC):
    """Receives one record per valid push event."""

    @abstractmethod
    def add_fields(self, measurement: str, fields: Dict[str, Any]) -> None:
        ...


@dataclass
class Record:
    """A single emitted measurement batch."""
    measurement: str
    fields: Dict[str, Any]
    timestamp: float = field(default_factory=time.time)


class MemoryAccumulator(Accumulator):
    """Keeps every record in memory."""

    def __init__(self):
        self.records: List[Record] = []

    def add_fields(self, measurement: str, fields: Dict[str, Any]) -> None:
        self.records.append(Record(measurement=measurement, fields=dict(fields)))


class LoggingAccumulator(Accumulator):
    """Writes every record to a dedicated logger as one JSON line."""

    def __init__(self, logger_name: str = "fems_ingestor.records"):
        self.record_logger = logging.getLogger(logger_name)

    def add_fields(self, measurement: str, fields: Dict[str, Any]) -> None:
        self.record_logger.info(
            json.dumps({"measurement": measurement, "fields": fields, "timestamp": time.time()}, default=str)
        )
