"""Loaders for bulk snapshots and recorded stream events."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from ..metrics.models import StreamEvent

logger = logging.getLogger(__name__)


class BulkSource:
    """Delivers a batch of arrivals in one request/response."""

    def __init__(self, arrivals: List[Dict[str, Any]]):
        self.arrivals = arrivals

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "BulkSource":
        """Load arrivals from a JSON file.

        Accepts either a top-level list of arrivals or an object with an
        ``arrivals`` list.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Bulk statistics file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        if isinstance(data, dict):
            data = data.get("arrivals", [])
        if not isinstance(data, list):
            raise ValueError(f"Expected a list of arrivals in {path}")

        logger.info(f"Loaded {len(data)} arrivals from {path}")
        return cls(data)

    def fetch(self) -> List[Dict[str, Any]]:
        return list(self.arrivals)


def parse_stream_event(raw: Dict[str, Any]) -> StreamEvent:
    """Build a StreamEvent from one recorded line.

    ``data`` may be stored either as the JSON string the transport sent or
    as an already-decoded object, which is re-encoded.
    """
    data = raw.get("data")
    if data is not None and not isinstance(data, str):
        data = json.dumps(data)

    return StreamEvent(
        event_type=str(raw.get("type", "message")),
        data=data,
        delay_s=float(raw.get("delay_s", 0.0)),
    )


def load_stream_events(path: Union[str, Path]) -> List[StreamEvent]:
    """Read a JSON-lines recording of stream events.

    Blank lines are ignored; lines that are not valid JSON become error
    events so a broken recording degrades the same way a broken transport
    does.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Stream recording not found: {path}")

    events = []
    with open(path, "r") as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{path}:{line_no}: unreadable event line: {e}")
                events.append(StreamEvent(event_type="error", data=str(e)))
                continue
            if not isinstance(raw, dict):
                events.append(StreamEvent(event_type="error", data=f"line {line_no} is not an object"))
                continue
            events.append(parse_stream_event(raw))

    logger.info(f"Loaded {len(events)} stream events from {path}")
    return events
