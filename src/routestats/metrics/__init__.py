"""Metrics models, classification, counters and reporting."""

from .classifier import DEFAULT_STATUS_BANDS, OTHER_RESPONSE_TYPE, StatusClassifier, classify
from .collector import MetricsReporter, format_response_time
from .counters import Counters, counter_to_sorted_list, increment_counter
from .models import CounterItem, RouteRecord, RouteUrlEntry, StreamEvent

__all__ = [
    "CounterItem",
    "Counters",
    "DEFAULT_STATUS_BANDS",
    "MetricsReporter",
    "OTHER_RESPONSE_TYPE",
    "RouteRecord",
    "RouteUrlEntry",
    "StatusClassifier",
    "StreamEvent",
    "classify",
    "counter_to_sorted_list",
    "format_response_time",
    "increment_counter",
]
