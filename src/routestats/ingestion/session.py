"""Aggregation session holding counters and ingested records."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from ..metrics.classifier import StatusClassifier
from ..metrics.counters import Counters
from ..metrics.models import CounterItem, RouteRecord
from ..pipeline.derived import build_cache
from ..pipeline.filters import filter_by_instance, filter_by_route, filter_by_status_code, is_wildcard
from ..pipeline.flattener import FlattenedLogs, bucket_shape_error, flatten_arrivals
from ..pipeline.merger import merge_instances

logger = logging.getLogger(__name__)

# Display-layer truncation per chart style
DEFAULT_CHART_LIMITS: Dict[str, int] = {
    "pie": 15,
    "column": 10,
    "line": 8,
    "area": 5,
}


@dataclass
class DisplayOptions:
    """Current filter selection; None, "" and "*" all mean "everything"."""

    by_route: Optional[str] = None
    by_instance: Optional[str] = None
    by_status_code: Optional[Any] = None

    def is_filtered(self) -> bool:
        return not (
            is_wildcard(self.by_route)
            and is_wildcard(self.by_instance)
            and is_wildcard(self.by_status_code)
        )


@dataclass
class DashboardView:
    """Chart-ready output of one pass through the pipeline."""

    top_lists: Dict[str, Dict[str, List[CounterItem]]] = field(default_factory=dict)
    routers: List[RouteRecord] = field(default_factory=list)
    cloud_api: List[RouteRecord] = field(default_factory=list)
    options: DisplayOptions = field(default_factory=DisplayOptions)
    response_types: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topLists": {
                style: {name: [item.to_dict() for item in items] for name, items in lists.items()}
                for style, lists in self.top_lists.items()
            },
            "routers": [record.to_dict() for record in self.routers],
            "cloudApi": [record.to_dict() for record in self.cloud_api],
        }


class AggregationSession:
    """Explicit container for all state accumulated during one ingestion mode.

    Stored records are never mutated by the view pipeline: ``build_view``
    filters, merges and derives statistics on copies.
    """

    def __init__(
        self,
        classifier: Optional[StatusClassifier] = None,
        chart_limits: Optional[Dict[str, int]] = None,
        merge_instances: bool = True,
    ):
        """Initialize an empty session.

        Args:
            classifier: Status classifier used for derived statistics
            chart_limits: Top-N limit per chart style (pie, column, line, area)
            merge_instances: Whether build_view folds adjacent instances together
        """
        self.classifier = classifier or StatusClassifier()
        self.chart_limits = dict(chart_limits or DEFAULT_CHART_LIMITS)
        self.merge_instances = merge_instances

        self.counters = Counters()
        self.routers: List[RouteRecord] = []
        self.cloud_api: List[RouteRecord] = []
        self.options = DisplayOptions()

        self.arrivals_ingested = 0
        self.events_skipped = 0

        logger.info("AggregationSession initialized")

    def reset(self) -> None:
        """Drop all counters, records and filter selections."""
        self.counters.reset()
        self.routers = []
        self.cloud_api = []
        self.arrivals_ingested = 0
        self.events_skipped = 0
        self.reset_options()
        logger.info("AggregationSession reset")

    def _append(self, flattened: FlattenedLogs) -> None:
        self.routers.extend(flattened.routers)
        self.cloud_api.extend(flattened.cloud_api)

    def ingest_bulk(self, arrivals: Iterable[Dict[str, Any]]) -> FlattenedLogs:
        """Flatten a whole batch of arrivals and append it to the session."""
        arrivals = list(arrivals)
        flattened = flatten_arrivals(arrivals, self.counters, self.classifier.response_types)
        self._append(flattened)
        self.arrivals_ingested += len(arrivals)

        logger.info(
            f"Ingested {len(arrivals)} arrivals ({len(flattened.routers)} instance buckets), "
            f"{self.counters.total_requests()} requests counted so far"
        )
        return flattened

    def ingest_event(self, bucket: Dict[str, Any], created_at: Optional[datetime] = None) -> bool:
        """Ingest one real-time instance bucket.

        Args:
            bucket: ``{"instance": ..., "routers": [...], "cloudApi": [...]}``
            created_at: Arrival time, defaults to now (UTC)

        Returns:
            False when the bucket was malformed or carried no data and was skipped
        """
        shape_error = bucket_shape_error(bucket)
        if shape_error is not None:
            self.events_skipped += 1
            logger.warning(f"Skipping malformed real-time event: {shape_error}")
            return False

        if not bucket.get("routers") and not bucket.get("cloudApi"):
            self.events_skipped += 1
            logger.debug("Skipping empty real-time event")
            return False

        arrival = {
            "instances": [bucket],
            "createdAt": created_at or datetime.now(timezone.utc),
        }
        flattened = flatten_arrivals([arrival], self.counters, self.classifier.response_types)
        self._append(flattened)
        self.arrivals_ingested += 1

        logger.debug(f"Ingested real-time event from instance {bucket.get('instance')}")
        return True

    def set_filters(
        self,
        by_route: Optional[str] = None,
        by_instance: Optional[str] = None,
        by_status_code: Optional[Any] = None,
    ) -> None:
        self.options = DisplayOptions(
            by_route=by_route, by_instance=by_instance, by_status_code=by_status_code
        )
        logger.debug(f"Display options set: {self.options}")

    def reset_options(self) -> None:
        self.options = DisplayOptions()

    def selection_options(self) -> Dict[str, List[str]]:
        """Values offered by the filter selectors, most requested first."""
        return {
            "routes": [item.name for item in self.counters.top_routes()],
            "instances": [item.name for item in self.counters.top_instances()],
            "status_codes": [item.name for item in self.counters.top_status_codes()],
        }

    def top_lists(self) -> Dict[str, Dict[str, List[CounterItem]]]:
        """Top routes, instances and status codes truncated per chart style."""
        return {
            style: {
                "routes": self.counters.top_routes(limit),
                "instances": self.counters.top_instances(limit),
                "status_codes": self.counters.top_status_codes(limit),
            }
            for style, limit in self.chart_limits.items()
        }

    def _prepare(self, records: List[RouteRecord], apply_route_filter: bool) -> List[RouteRecord]:
        records = [record.copy() for record in records]

        if apply_route_filter:
            records = filter_by_route(records, self.options.by_route)
        records = filter_by_instance(records, self.options.by_instance)
        records = filter_by_status_code(records, self.options.by_status_code)

        if self.merge_instances:
            records = merge_instances(records)

        return build_cache(records, self.classifier)

    def build_view(self) -> DashboardView:
        """Run stored records through filters, merging and derivation.

        The route filter only applies to router records; cloud API entries
        are keyed by API name rather than route.
        """
        view = DashboardView(
            top_lists=self.top_lists(),
            routers=self._prepare(self.routers, apply_route_filter=True),
            cloud_api=self._prepare(self.cloud_api, apply_route_filter=False),
            options=DisplayOptions(**vars(self.options)),
            response_types=list(self.classifier.response_types),
        )

        logger.debug(
            f"Built view: {len(view.routers)} router rows, {len(view.cloud_api)} cloud API rows"
        )
        return view
