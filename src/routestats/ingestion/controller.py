"""Ingestion mode switching between bulk load and real-time stream."""

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Union

from ..core import StreamEnvironment
from ..metrics.models import StreamEvent
from .realtime import RealtimeIngestor
from .session import AggregationSession
from .sources import BulkSource

logger = logging.getLogger(__name__)

BULK_MODE = "bulk"
REALTIME_MODE = "realtime"


class IngestionController:
    """Runs exactly one ingestion mode at a time against a session.

    Switching to real-time closes any open subscription and resets the
    session before the stream starts. Bulk loads append to the session,
    unless they follow a real-time stream, which is torn down and reset
    first.
    """

    def __init__(self, session: AggregationSession, stream_env: Optional[StreamEnvironment] = None):
        self.session = session
        self.stream_env = stream_env or StreamEnvironment()
        self.mode: Optional[str] = None
        self.ingestor: Optional[RealtimeIngestor] = None

    def _close_subscription(self) -> None:
        if self.ingestor is not None:
            self.ingestor.close()
            self.ingestor = None

    def use_bulk(self, source: Union[BulkSource, Iterable[Dict[str, Any]]]) -> AggregationSession:
        """Load one batch of arrivals (a single fetch, processed once)."""
        if self.mode == REALTIME_MODE:
            self._close_subscription()
            self.session.reset()

        arrivals = source.fetch() if isinstance(source, BulkSource) else list(source)
        self.mode = BULK_MODE

        self.session.reset_options()
        self.session.ingest_bulk(arrivals)
        return self.session

    def use_realtime(
        self,
        events: Optional[Iterable[StreamEvent]] = None,
        on_update: Optional[Callable[[AggregationSession], Any]] = None,
    ) -> RealtimeIngestor:
        """Open a fresh real-time subscription.

        Args:
            events: Optional recorded events to replay into the subscription
            on_update: Called after every event that changed the session

        Returns:
            The started RealtimeIngestor; events can also be pushed with ``publish``
        """
        self._close_subscription()
        self.session.reset()
        self.mode = REALTIME_MODE

        self.ingestor = RealtimeIngestor(
            self.stream_env.get_simpy_env(), self.session, on_update=on_update
        )
        self.ingestor.start()

        if events is not None:
            self.stream_env.schedule_process(self.ingestor.replay_events, list(events))

        logger.info("Switched to real-time ingestion")
        return self.ingestor

    def run_stream(self, until: Any = None) -> Dict[str, Any]:
        """Drive the event loop until the replay is exhausted (or ``until``)."""
        if self.ingestor is None:
            raise RuntimeError("No real-time subscription is open")

        self.stream_env.run(until=until)
        status = self.ingestor.get_status()
        logger.info(
            f"Stream processed {status['events_processed']} events: "
            f"{status['events_ingested']} ingested, {status['events_skipped']} skipped, "
            f"{status['transport_errors']} transport errors"
        )
        return status

    def stop(self) -> None:
        self._close_subscription()
        self.mode = None
