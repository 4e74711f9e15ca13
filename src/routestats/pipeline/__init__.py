"""Aggregation pipeline stages: flatten, filter, merge, derive."""

from .derived import build_cache, safe_rate
from .filters import apply_filters, filter_by_instance, filter_by_route, filter_by_status_code, is_wildcard
from .flattener import FlattenedLogs, bucket_shape_error, flatten_arrivals
from .merger import merge_instances, merge_url_lists

__all__ = [
    "FlattenedLogs",
    "apply_filters",
    "bucket_shape_error",
    "build_cache",
    "filter_by_instance",
    "filter_by_route",
    "filter_by_status_code",
    "flatten_arrivals",
    "is_wildcard",
    "merge_instances",
    "merge_url_lists",
    "safe_rate",
]
