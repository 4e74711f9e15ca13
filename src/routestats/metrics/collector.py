"""Summary reporting over derived dashboard views."""

import logging
import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


def format_response_time(value: float, unit: str = "ms") -> str:
    """Render an average response time; no-data (NaN/inf) shows as "n/a", never 0."""
    if value is None or not math.isfinite(value):
        return "n/a"
    return f"{value:.1f}{unit}"


class MetricsReporter:
    """Turns a derived DashboardView into summary statistics and tables."""

    def __init__(self, config: Dict[str, Any]):
        """Initialize the reporter.

        Args:
            config: Metrics configuration containing:
                - percentiles_to_calculate: List of percentiles (e.g., [0.5, 0.9, 0.99])
        """
        self.config = config

    def generate_summary_report(self, view: Any, counters: Any) -> Dict[str, Any]:
        """Generate summary statistics for a view.

        Args:
            view: DashboardView produced by AggregationSession.build_view
            counters: Session Counters (unfiltered totals)

        Returns:
            Dictionary containing all summary metrics
        """
        percentiles = self.config.get("percentiles_to_calculate", [0.5, 0.9, 0.95, 0.99])

        response_type_totals = {type_name: 0 for type_name in view.response_types}
        for record in view.routers:
            for type_name, count in record.response_types.items():
                response_type_totals[type_name] = response_type_totals.get(type_name, 0) + count

        record_times = [record.response_time for record in view.routers]
        finite_times = [value for value in record_times if math.isfinite(value)]
        entry_times = [
            entry.response_time
            for record in view.routers
            for entry in record.urls
            if math.isfinite(entry.response_time)
        ]

        viewed_requests = sum(record.requests for record in view.routers)

        summary = {
            "requests": {
                "total": counters.total_requests(),
                "in_view": viewed_requests,
                "by_response_type": response_type_totals,
                "error_rate": self._error_rate(response_type_totals, viewed_requests),
            },
            "rows": {
                "routers": len(view.routers),
                "cloud_api": len(view.cloud_api),
                "no_data_records": len(record_times) - len(finite_times),
            },
            "response_time": {
                "records": self._calculate_stats(finite_times, percentiles),
                "routes": self._calculate_stats(entry_times, percentiles),
            },
            "top": {
                "routes": [item.to_dict() for item in counters.top_routes()],
                "instances": [item.to_dict() for item in counters.top_instances()],
                "status_codes": [item.to_dict() for item in counters.top_status_codes()],
            },
            "filters": {
                "active": view.options.is_filtered(),
                "by_route": view.options.by_route,
                "by_instance": view.options.by_instance,
                "by_status_code": view.options.by_status_code,
            },
        }

        logger.info("=" * 60)
        logger.info("ROUTE STATISTICS SUMMARY")
        logger.info("=" * 60)
        logger.info(
            f"Requests: {summary['requests']['total']} total, "
            f"{viewed_requests} in view ({summary['requests']['error_rate']:.1%} errors)"
        )
        logger.info(
            f"Rows: {summary['rows']['routers']} router, {summary['rows']['cloud_api']} cloud API "
            f"({summary['rows']['no_data_records']} without data)"
        )
        if view.options.is_filtered():
            logger.info(f"Filtered view: {view.options}")
        record_stats = summary["response_time"]["records"]
        logger.info(
            f"Response time: mean={format_response_time(record_stats.get('mean', math.nan))}, "
            f"p99={format_response_time(record_stats.get('p99', math.nan))}"
        )
        logger.info("=" * 60)

        return summary

    @staticmethod
    def _error_rate(response_type_totals: Dict[str, int], requests: int) -> float:
        errors = response_type_totals.get("client_error", 0) + response_type_totals.get("server_error", 0)
        return errors / requests if requests > 0 else 0.0

    def _calculate_stats(self, values: List[float], percentiles: List[float]) -> Dict[str, float]:
        """Calculate statistics for a list of finite values."""
        if not values:
            return {"count": 0}

        stats = {
            "count": len(values),
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "min": float(np.min(values)),
            "max": float(np.max(values)),
        }

        for p in percentiles:
            stats[f"p{int(round(p * 100))}"] = float(np.percentile(values, p * 100))

        return stats

    def get_entries_df(self, view: Any) -> pd.DataFrame:
        """Get every derived route entry of the view as a pandas DataFrame."""
        rows = []
        for stream_name, records in (("routers", view.routers), ("cloudApi", view.cloud_api)):
            for record in records:
                for entry in record.urls:
                    row = {
                        "stream": stream_name,
                        "instance": record.instance,
                        "merged_instances": ",".join(record.merged_instances),
                        "created_at": record.created_at,
                        "url": entry.url,
                        "requests": entry.requests,
                        "total_response_time": entry.total_response_time,
                        "response_time": entry.response_time,
                    }
                    row.update(entry.response_types)
                    rows.append(row)

        if not rows:
            return pd.DataFrame()
        return pd.DataFrame(rows)
