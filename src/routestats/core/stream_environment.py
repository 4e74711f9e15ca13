"""Event loop wrapper around SimPy for replaying ingestion streams."""

import logging
from typing import Any, Callable, Dict, Optional

import simpy

logger = logging.getLogger(__name__)


class StreamEnvironment:
    """Wrapper around simpy.Environment that drives stream replay.

    Every process scheduled here runs on one SimPy event loop, so stream
    events are handled strictly one after another in delivery order.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the environment.

        Args:
            config: Optional settings containing:
                - max_replay_time: Stop the loop after this many simulated seconds
        """
        self.env: simpy.Environment = simpy.Environment()
        self.config: Dict[str, Any] = config or {}

        logger.debug("StreamEnvironment initialized")

    def schedule_process(self, process_generator_func: Callable, *args, **kwargs) -> simpy.Process:
        """Schedule a SimPy process (a generator function).

        Args:
            process_generator_func: A generator function that yields SimPy events
            *args: Positional arguments for the generator function
            **kwargs: Keyword arguments for the generator function

        Returns:
            The SimPy Process object
        """
        process = self.env.process(process_generator_func(*args, **kwargs))
        logger.debug(f"Scheduled process: {process_generator_func.__name__}")
        return process

    def run(self, until: Any = None) -> None:
        """Run until ``until`` (an event or time), max_replay_time, or no events remain."""
        if until is None:
            until = self.config.get("max_replay_time")

        logger.info(f"Starting stream replay (until: {until if until is not None else 'exhausted'})")

        try:
            self.env.run(until=until)
        except Exception as e:
            logger.error(f"Error during stream replay at time {self.env.now}: {e}")
            raise
        finally:
            logger.info(f"Stream replay ended at time {self.env.now}")

    def now(self) -> float:
        return self.env.now

    def get_simpy_env(self) -> simpy.Environment:
        """Provide access to the raw SimPy environment (for Stores and timeouts)."""
        return self.env
