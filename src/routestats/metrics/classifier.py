"""Status code to response type classification."""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .models import parse_status_code

logger = logging.getLogger(__name__)

OTHER_RESPONSE_TYPE = "other"

# (low, high, response_type), both bounds inclusive
DEFAULT_STATUS_BANDS: List[Tuple[int, int, str]] = [
    (100, 199, "informational"),
    (200, 299, "success"),
    (300, 399, "redirect"),
    (400, 499, "client_error"),
    (500, 599, "server_error"),
]


class StatusClassifier:
    """Maps numeric status codes onto a fixed set of response types.

    Bands are checked in order and the first match wins, so finer bands
    (e.g. ``(404, 404, "not_found")``) must come before the class band
    they carve out of. Codes outside every band map to ``"other"``.
    """

    def __init__(self, bands: Optional[Sequence[Any]] = None):
        """Initialize the classifier.

        Args:
            bands: Sequence of ``(low, high, name)`` tuples or dicts with
                ``low``/``high``/``name`` keys. Defaults to HTTP status classes.
        """
        self.bands: List[Tuple[int, int, str]] = [
            self._parse_band(band) for band in (bands or DEFAULT_STATUS_BANDS)
        ]

        self.response_types: List[str] = []
        for _, _, name in self.bands:
            if name not in self.response_types:
                self.response_types.append(name)
        if OTHER_RESPONSE_TYPE not in self.response_types:
            self.response_types.append(OTHER_RESPONSE_TYPE)

        logger.debug(f"StatusClassifier initialized with {len(self.bands)} bands")

    @staticmethod
    def _parse_band(band: Any) -> Tuple[int, int, str]:
        if isinstance(band, dict):
            low, high, name = band["low"], band["high"], band["name"]
        else:
            low, high, name = band
        low, high = int(low), int(high)
        if low > high:
            raise ValueError(f"Invalid status band {name}: {low} > {high}")
        return low, high, str(name)

    def classify(self, code: Union[int, str]) -> str:
        """Return the response type for a status code."""
        numeric = parse_status_code(code)
        if numeric is None:
            return OTHER_RESPONSE_TYPE

        for low, high, name in self.bands:
            if low <= numeric <= high:
                return name
        return OTHER_RESPONSE_TYPE

    def describe(self) -> Dict[str, str]:
        """Human-readable band table, e.g. ``{"200-299": "success"}``."""
        return {f"{low}-{high}": name for low, high, name in self.bands}


DEFAULT_CLASSIFIER = StatusClassifier()


def classify(code: Union[int, str]) -> str:
    """Classify with the default HTTP status-class bands."""
    return DEFAULT_CLASSIFIER.classify(code)
