"""Single-consumer real-time ingestion driven by a SimPy event loop."""

import json
import logging
from typing import Any, Callable, Iterable, Optional

import simpy

from ..metrics.models import StreamEvent
from .session import AggregationSession

logger = logging.getLogger(__name__)


class RealtimeIngestor:
    """Consumes stream events one at a time and applies them to a session.

    Events are queued on a ``simpy.Store`` and handled by a single
    ``processing_loop`` process; each event is decoded, ingested and
    reported through ``on_update`` before the next one is taken.
    """

    def __init__(
        self,
        simpy_env: simpy.Environment,
        session: AggregationSession,
        on_update: Optional[Callable[[AggregationSession], Any]] = None,
    ):
        """Initialize the ingestor.

        Args:
            simpy_env: SimPy environment owning the event queue
            session: Session receiving the decoded instance buckets
            on_update: Called after every event that changed the session
        """
        self.simpy_env = simpy_env
        self.session = session
        self.on_update = on_update

        self.event_queue = simpy.Store(simpy_env)
        self.process: Optional[simpy.Process] = None
        self.closed = False

        self.events_processed = 0
        self.events_ingested = 0
        self.events_skipped = 0
        self.transport_errors = 0

    def start(self) -> simpy.Process:
        """Subscribe: start the consumer process."""
        if self.process is None:
            self.process = self.simpy_env.process(self.processing_loop())
            logger.info("Real-time subscription opened")
        return self.process

    def close(self) -> None:
        """Abandon the subscription; queued events are dropped."""
        if self.closed:
            return
        self.closed = True
        # A process may not interrupt itself; the loop checks ``closed`` instead
        if (
            self.process is not None
            and self.process.is_alive
            and self.simpy_env.active_process is not self.process
        ):
            self.process.interrupt("subscription closed")
        self.event_queue.items.clear()
        logger.info("Real-time subscription closed")

    def publish(self, event: StreamEvent) -> simpy.events.Event:
        """Hand one event to the consumer (transport side)."""
        return self.event_queue.put(event)

    def replay_events(self, events: Iterable[StreamEvent]):
        """Producer process delivering recorded events with their delays."""
        for event in events:
            if self.closed:
                break
            if event.delay_s > 0:
                yield self.simpy_env.timeout(event.delay_s)
            yield self.publish(event)

    def processing_loop(self):
        """Take one event at a time and process it to completion."""
        pending = None
        try:
            while not self.closed:
                pending = self.event_queue.get()
                event = yield pending
                pending = None
                self.handle_event(event)
        except simpy.Interrupt as interrupt:
            if pending is not None:
                pending.cancel()
            logger.debug(f"Real-time processing loop stopped: {interrupt.cause}")

    def handle_event(self, event: StreamEvent) -> bool:
        """Apply a single stream event; returns True when the session changed."""
        self.events_processed += 1

        if event.event_type == "error":
            self.transport_errors += 1
            logger.error(f"Real-time stream error: {event.data}")
            return False

        if event.event_type != "message":
            logger.debug(f"Ignoring stream event of type {event.event_type!r}")
            self.events_skipped += 1
            return False

        try:
            bucket = json.loads(event.data) if event.data else None
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Skipping malformed real-time event: {e}")
            self.events_skipped += 1
            return False

        if not self.session.ingest_event(bucket):
            self.events_skipped += 1
            return False

        self.events_ingested += 1
        if self.on_update is not None:
            self.on_update(self.session)
        return True

    def get_status(self):
        return {
            "closed": self.closed,
            "queued": len(self.event_queue.items),
            "events_processed": self.events_processed,
            "events_ingested": self.events_ingested,
            "events_skipped": self.events_skipped,
            "transport_errors": self.transport_errors,
        }
