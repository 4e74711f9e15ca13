"""View filters applied to normalized records before merging."""

from typing import Any, List, Optional

from ..metrics.models import RouteRecord, parse_status_code

WILDCARD_VALUES = ("", None, "*")


def is_wildcard(value: Any) -> bool:
    """True when a filter value means "no filtering"."""
    return value in WILDCARD_VALUES


def _with_urls(record: RouteRecord, urls) -> RouteRecord:
    filtered = record.copy()
    filtered.urls = urls
    return filtered


def filter_by_route(records: List[RouteRecord], route: Optional[str]) -> List[RouteRecord]:
    """Keep only the matching route entry on each record.

    Records without the route stay in the result with an empty ``urls``
    list so the instance/time axis is preserved.
    """
    if is_wildcard(route):
        return records

    result = []
    for record in records:
        match = next((entry for entry in record.urls if entry.url == route), None)
        result.append(_with_urls(record, [match.copy()] if match else []))
    return result


def filter_by_instance(records: List[RouteRecord], instance: Optional[str]) -> List[RouteRecord]:
    """Blank out ``urls`` on records from other instances, keeping the rows."""
    if is_wildcard(instance):
        return records

    return [
        record if record.instance == instance else _with_urls(record, [])
        for record in records
    ]


def filter_by_status_code(records: List[RouteRecord], status_code: Any) -> List[RouteRecord]:
    """Drop every status code count except ``status_code``.

    Response type and other non-status fields are kept as they are.
    """
    if is_wildcard(status_code):
        return records

    wanted = parse_status_code(status_code)
    result = []
    for record in records:
        urls = []
        for entry in record.urls:
            filtered_entry = entry.copy()
            filtered_entry.status_counts = {
                code: count for code, count in entry.status_counts.items() if code == wanted
            }
            urls.append(filtered_entry)
        result.append(_with_urls(record, urls))
    return result


def apply_filters(
    records: List[RouteRecord],
    by_route: Optional[str] = None,
    by_instance: Optional[str] = None,
    by_status_code: Any = None,
) -> List[RouteRecord]:
    """Apply the route, instance and status code filters in turn."""
    records = filter_by_route(records, by_route)
    records = filter_by_instance(records, by_instance)
    return filter_by_status_code(records, by_status_code)
