"""Running request counters keyed by route, instance and status code."""

import logging
from typing import Dict, Hashable, List, MutableMapping, Optional

from .models import CounterItem

logger = logging.getLogger(__name__)


def increment_counter(counter: MutableMapping[Hashable, int], key: Hashable, amount: int) -> None:
    """Add ``amount`` to ``counter[key]``, creating the key if absent."""
    if key in counter:
        counter[key] += amount
    else:
        counter[key] = amount


def counter_to_sorted_list(
    counter: MutableMapping[Hashable, int], limit: Optional[int] = None
) -> List[CounterItem]:
    """Convert a counter to ``{name, count}`` rows, largest count first.

    ``sorted`` is stable and dicts keep insertion order, so ties stay in
    first-seen order. That order drives chart legends.
    """
    items = sorted(
        (CounterItem(name=str(key), count=count) for key, count in counter.items()),
        key=lambda item: item.count,
        reverse=True,
    )
    if limit is not None:
        items = items[:limit]
    return items


class Counters:
    """Session-wide cumulative counters.

    Values only grow; entries are removed solely by ``reset()``, which the
    session calls when the ingestion mode switches.
    """

    def __init__(self):
        self.by_route: Dict[str, int] = {}
        self.by_instance: Dict[str, int] = {}
        self.by_status_code: Dict[int, int] = {}

    def increment_route(self, route: str, amount: int) -> None:
        increment_counter(self.by_route, route, amount)

    def increment_instance(self, instance: str, amount: int) -> None:
        increment_counter(self.by_instance, instance, amount)

    def increment_status_code(self, code: int, amount: int) -> None:
        increment_counter(self.by_status_code, code, amount)

    def top_routes(self, limit: Optional[int] = None) -> List[CounterItem]:
        return counter_to_sorted_list(self.by_route, limit)

    def top_instances(self, limit: Optional[int] = None) -> List[CounterItem]:
        return counter_to_sorted_list(self.by_instance, limit)

    def top_status_codes(self, limit: Optional[int] = None) -> List[CounterItem]:
        return counter_to_sorted_list(self.by_status_code, limit)

    def total_requests(self) -> int:
        """Total requests seen, taken from the status code counter."""
        return sum(self.by_status_code.values())

    def is_empty(self) -> bool:
        return not (self.by_route or self.by_instance or self.by_status_code)

    def reset(self) -> None:
        self.by_route.clear()
        self.by_instance.clear()
        self.by_status_code.clear()
        logger.debug("Counters reset")
