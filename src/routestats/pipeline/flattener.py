"""Flatten per-instance snapshots into normalized route records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..metrics.counters import Counters
from ..metrics.models import RouteRecord, RouteUrlEntry

logger = logging.getLogger(__name__)


@dataclass
class FlattenedLogs:
    """Parallel record streams produced from one or more arrivals."""

    routers: List[RouteRecord] = field(default_factory=list)
    cloud_api: List[RouteRecord] = field(default_factory=list)


def parse_created_at(value: Any) -> Optional[datetime]:
    """Parse an arrival timestamp, returning None when it is missing or invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            # Numeric timestamps are epoch milliseconds
            timestamp = pd.to_datetime(value, unit="ms", utc=True)
        else:
            timestamp = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug(f"Unparseable createdAt {value!r}: {e}")
        return None

    if pd.isna(timestamp):
        return None
    return timestamp.to_pydatetime()


def bucket_shape_error(bucket: Any) -> Optional[str]:
    """Describe why an instance bucket cannot be flattened, or return None."""
    if not isinstance(bucket, dict):
        return f"bucket is a {type(bucket).__name__}, not an object"
    for key in ("routers", "cloudApi"):
        entries = bucket.get(key)
        if entries is None:
            continue
        if not isinstance(entries, list):
            return f"{key} is a {type(entries).__name__}, not a list"
        for raw in entries:
            if not isinstance(raw, dict):
                return f"{key} contains a {type(raw).__name__} entry"
    return None


def count_bucket_routes(
    instance_name: str, entries: Iterable[RouteUrlEntry], counters: Counters
) -> None:
    """Feed one instance bucket's route entries into the session counters."""
    for entry in entries:
        requests = entry.status_total()

        counters.increment_instance(instance_name, requests)
        counters.increment_route(entry.url, requests)

        for code, count in entry.status_counts.items():
            counters.increment_status_code(code, count)


def flatten_arrivals(
    arrivals: Iterable[Dict[str, Any]],
    counters: Counters,
    response_types: Iterable[str] = (),
) -> FlattenedLogs:
    """Convert arrivals into per-instance route records.

    Counters are updated from every ``routers`` entry before any view
    filter runs, so they always reflect everything ingested. ``cloudApi``
    entries are flattened into the parallel stream but not counted.

    Args:
        arrivals: Sequence of ``{"instances": [...], "createdAt": ...}`` dicts
        counters: Session counters, updated in place
        response_types: Response type names recognised on raw entries

    Returns:
        FlattenedLogs with one record per instance bucket in arrival order
    """
    response_types = list(response_types)
    flattened = FlattenedLogs()

    for arrival in arrivals:
        created_at = parse_created_at(arrival.get("createdAt"))

        for bucket in arrival.get("instances") or []:
            instance_name = str(bucket.get("instance", ""))

            router_entries = [
                RouteUrlEntry.from_raw(raw, response_types)
                for raw in bucket.get("routers") or []
            ]
            cloud_api_entries = [
                RouteUrlEntry.from_raw(raw, response_types)
                for raw in bucket.get("cloudApi") or []
            ]

            count_bucket_routes(instance_name, router_entries, counters)

            flattened.routers.append(
                RouteRecord(instance=instance_name, created_at=created_at, urls=router_entries)
            )
            flattened.cloud_api.append(
                RouteRecord(instance=instance_name, created_at=created_at, urls=cloud_api_entries)
            )

    logger.debug(
        f"Flattened {len(flattened.routers)} instance buckets "
        f"({sum(len(r.urls) for r in flattened.routers)} router entries)"
    )
    return flattened
