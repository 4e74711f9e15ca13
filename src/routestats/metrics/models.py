"""Data models for route log aggregation."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _finite_or_none(value: float) -> Optional[float]:
    """JSON has no NaN; missing data is emitted as null."""
    return value if math.isfinite(value) else None


def parse_status_code(key: Any) -> Optional[int]:
    """Return the integer status code a raw field key names, or None."""
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str):
        stripped = key.strip()
        # isdigit() also accepts superscripts such as "²", which int() rejects
        if stripped.isdecimal():
            return int(stripped)
    return None


def as_number(value: Any) -> float:
    """Coerce a raw count or duration; missing or unusable values count as zero."""
    if isinstance(value, bool) or value is None:
        return 0
    if not isinstance(value, (int, float)):
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Treating non-numeric value {value!r} as 0")
            return 0
    return value if math.isfinite(value) else 0


@dataclass
class RouteUrlEntry:
    """Per-route counters for one instance at one snapshot time."""

    url: str
    total_response_time: float = 0.0
    status_counts: Dict[int, int] = field(default_factory=dict)
    response_type_counts: Dict[str, int] = field(default_factory=dict)

    # Derived by build_cache
    response_types: Dict[str, int] = field(default_factory=dict)
    requests: int = 0
    response_time: float = math.nan

    @classmethod
    def from_raw(
        cls, raw: Dict[str, Any], response_types: Iterable[str] = ()
    ) -> "RouteUrlEntry":
        """Parse a loosely-typed source entry.

        Args:
            raw: Source dict, e.g. ``{"url": "GET /", "totalResponseTime": 650, "200": 3}``
            response_types: Names of response types that may already be
                aggregated on the entry (e.g. after an upstream merge)

        Returns:
            New RouteUrlEntry; ``raw`` is left untouched
        """
        known_types = set(response_types)
        entry = cls(
            url=str(raw.get("url", "")),
            total_response_time=as_number(raw.get("totalResponseTime")),
        )

        for key, value in raw.items():
            code = parse_status_code(key)
            if code is not None:
                entry.status_counts[code] = entry.status_counts.get(code, 0) + as_number(value)
            elif key in known_types:
                entry.response_type_counts[key] = (
                    entry.response_type_counts.get(key, 0) + as_number(value)
                )
            elif key not in ("url", "totalResponseTime", "responseTime"):
                logger.debug(f"Ignoring field {key!r} on route {entry.url}")

        return entry

    def status_total(self) -> int:
        """Total requests recorded by status code (before derivation)."""
        return sum(self.status_counts.values())

    def copy(self) -> "RouteUrlEntry":
        return RouteUrlEntry(
            url=self.url,
            total_response_time=self.total_response_time,
            status_counts=dict(self.status_counts),
            response_type_counts=dict(self.response_type_counts),
            response_types=dict(self.response_types),
            requests=self.requests,
            response_time=self.response_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render the entry in the camelCase shape the charts consume."""
        data: Dict[str, Any] = {
            "url": self.url,
            "totalResponseTime": self.total_response_time,
        }
        for code, count in self.status_counts.items():
            data[str(code)] = count
        for type_name, count in self.response_type_counts.items():
            data[type_name] = count
        for type_name, count in self.response_types.items():
            data[type_name] = count
        if self.response_types:
            data["responseTime"] = _finite_or_none(self.response_time)
        return data


@dataclass
class RouteRecord:
    """One instance's per-route counts at one snapshot time."""

    instance: str
    created_at: Optional[datetime] = None
    urls: List[RouteUrlEntry] = field(default_factory=list)
    merged_instances: List[str] = field(default_factory=list)

    # Derived by build_cache
    response_types: Dict[str, int] = field(default_factory=dict)
    requests: int = 0
    response_time: float = math.nan

    def copy(self) -> "RouteRecord":
        """Copy the record and its entries so the original stays untouched."""
        return RouteRecord(
            instance=self.instance,
            created_at=self.created_at,
            urls=[entry.copy() for entry in self.urls],
            merged_instances=list(self.merged_instances),
            response_types=dict(self.response_types),
            requests=self.requests,
            response_time=self.response_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "instance": self.instance,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "urls": [entry.to_dict() for entry in self.urls],
        }
        if self.merged_instances:
            data["mergedInstance"] = list(self.merged_instances)
        if self.response_types:
            data.update(self.response_types)
            data["responseTime"] = _finite_or_none(self.response_time)
        return data


@dataclass
class CounterItem:
    """A ``{name, count}`` row for the top-N charts."""

    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass
class StreamEvent:
    """A discrete event delivered by the real-time source."""

    event_type: str  # "message" or "error"
    data: Optional[str] = None  # JSON-encoded instance bucket
    delay_s: float = 0.0  # Replay offset from the previous event
