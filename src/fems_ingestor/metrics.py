"""Prometheus metrics for the FEMS ingestor."""

import logging

from prometheus_client import Counter, Gauge, start_http_server

from .config.settings import MetricsConfig

logger = logging.getLogger(__name__)


PUSH_EVENTS_TOTAL = Counter(
    'fems_push_events_total',
    'Push events received from the edge'
)

RECORDS_EMITTED_TOTAL = Counter(
    'fems_records_emitted_total',
    'Measurement records handed to the accumulator'
)

EVENTS_DROPPED_TOTAL = Counter(
    'fems_events_dropped_total',
    'Push events that produced no record',
    ['reason']
)

NULL_CHANNELS_TOTAL = Counter(
    'fems_null_channels_total',
    'Channel values reported as null'
)

RECONNECTS_TOTAL = Counter(
    'fems_reconnects_total',
    'Connection attempts after the first'
)

CONNECTION_STATE = Gauge(
    'fems_connection_state',
    'Current supervisor state (1 for the active state)',
    ['state']
)


def set_connection_state(active: str, all_states):
    for state in all_states:
        CONNECTION_STATE.labels(state=state).set(1 if state == active else 0)


def start_metrics_server(config: MetricsConfig) -> bool:
    """Expose metrics over HTTP if enabled."""
    if not config.enable_prometheus:
        return False

    start_http_server(config.prometheus_port)
    logger.info(f"Prometheus metrics server started on port {config.prometheus_port}")
    return True
