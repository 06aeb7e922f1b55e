"""
FEMS Ingestor - streams live channel values from a FEMS/OpenEMS edge.

Keeps one WebSocket session to the edge, logs in, subscribes to the
configured channels and hands every push event to an accumulator as a single
measurement record, reconnecting indefinitely on failure.
"""

__version__ = "1.0.0"
__author__ = "FEMS Ingestor Team"
