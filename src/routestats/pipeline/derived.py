"""Derived per-entry and per-record statistics."""

import logging
import math
from typing import List, Optional

from ..metrics.classifier import DEFAULT_CLASSIFIER, StatusClassifier
from ..metrics.models import RouteRecord

logger = logging.getLogger(__name__)


def safe_rate(total: float, count: int) -> float:
    """``total / count``, or NaN when there is nothing to divide by.

    NaN means "no data"; callers must not render it as zero latency.
    """
    if not count:
        return math.nan
    return total / count


def build_cache(
    records: List[RouteRecord], classifier: Optional[StatusClassifier] = None
) -> List[RouteRecord]:
    """Compute response type totals and average response times in place.

    Every entry gets a count for every known response type (zero when
    absent), made up of its pre-aggregated type counts plus its status
    codes classified by ``classifier``. Records get the same totals summed
    over their entries. Derived fields are rebuilt from scratch, so running
    this twice gives the same result.

    Args:
        records: Normalized (and optionally filtered/merged) records
        classifier: Status classifier, defaults to HTTP status classes

    Returns:
        The same list, for chaining
    """
    classifier = classifier or DEFAULT_CLASSIFIER
    response_types = classifier.response_types
    no_data_entries = 0

    for record in records:
        record_requests = 0
        record_total_response_time = 0.0
        record.response_types = {type_name: 0 for type_name in response_types}

        for entry in record.urls:
            entry_requests = 0
            entry.response_types = {type_name: 0 for type_name in response_types}

            for type_name, count in entry.response_type_counts.items():
                entry.response_types[type_name] = entry.response_types.get(type_name, 0) + count
                record.response_types[type_name] = record.response_types.get(type_name, 0) + count
                entry_requests += count

            for code, count in entry.status_counts.items():
                type_name = classifier.classify(code)
                entry.response_types[type_name] += count
                record.response_types[type_name] += count
                entry_requests += count

            entry.requests = entry_requests
            entry.response_time = safe_rate(entry.total_response_time, entry_requests)
            if math.isnan(entry.response_time):
                no_data_entries += 1

            record_total_response_time += entry.total_response_time
            record_requests += entry_requests

        record.requests = record_requests
        record.response_time = safe_rate(record_total_response_time, record_requests)

    if no_data_entries:
        logger.debug(f"{no_data_entries} route entries have no requests (response time n/a)")

    return records
