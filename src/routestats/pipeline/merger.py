"""Fold consecutive records from different instances into one row."""

import logging
from typing import List

from ..metrics.counters import increment_counter
from ..metrics.models import RouteRecord, RouteUrlEntry

logger = logging.getLogger(__name__)


def merge_url_lists(target: List[RouteUrlEntry], source: List[RouteUrlEntry]) -> List[RouteUrlEntry]:
    """Merge ``source`` route entries into ``target`` by url, in place.

    Matching entries have their status counts, response type counts and
    total response time summed. Unknown urls are appended as copies.
    """
    by_url = {entry.url: entry for entry in target}

    for entry in source:
        existing = by_url.get(entry.url)
        if existing is None:
            existing = entry.copy()
            target.append(existing)
            by_url[existing.url] = existing
            continue

        existing.total_response_time += entry.total_response_time
        for code, count in entry.status_counts.items():
            increment_counter(existing.status_counts, code, count)
        for type_name, count in entry.response_type_counts.items():
            increment_counter(existing.response_type_counts, type_name, count)

    return target


def merge_instances(records: List[RouteRecord]) -> List[RouteRecord]:
    """Collapse adjacent records from different instances.

    A record is folded into the open (last) output row when the row
    exists, belongs to another instance, and has not already absorbed
    that instance. Otherwise it opens a new row. The decision only looks
    at the immediately preceding output row, not at timestamps.
    """
    result: List[RouteRecord] = []
    open_record = None

    for record in records:
        if (
            open_record is not None
            and open_record.instance != record.instance
            and record.instance not in open_record.merged_instances
        ):
            merge_url_lists(open_record.urls, record.urls)
            open_record.merged_instances.append(record.instance)
        else:
            open_record = record.copy()
            result.append(open_record)

    logger.debug(f"Merged {len(records)} records into {len(result)} rows")
    return result
