"""Core event loop module."""

from .stream_environment import StreamEnvironment

__all__ = ["StreamEnvironment"]
