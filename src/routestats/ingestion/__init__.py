"""Snapshot ingestion: session state, sources and real-time streaming."""

from .controller import BULK_MODE, REALTIME_MODE, IngestionController
from .realtime import RealtimeIngestor
from .session import DEFAULT_CHART_LIMITS, AggregationSession, DashboardView, DisplayOptions
from .sources import BulkSource, load_stream_events, parse_stream_event

__all__ = [
    "AggregationSession",
    "BulkSource",
    "BULK_MODE",
    "DashboardView",
    "DEFAULT_CHART_LIMITS",
    "DisplayOptions",
    "IngestionController",
    "RealtimeIngestor",
    "REALTIME_MODE",
    "load_stream_events",
    "parse_stream_event",
]
