"""
Outcome events emitted by the auth core.

Handlers report "operation succeeded/failed with message" here instead of
talking to any UI or notification system directly. The default sink only
logs; other sinks (audit trail, tests) can be installed with set_auth_events().
"""
import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class AuthEvents(Protocol):
    def succeeded(self, operation: str, message: str) -> None: ...

    def failed(self, operation: str, message: str) -> None: ...


class LoggingAuthEvents:
    def succeeded(self, operation: str, message: str) -> None:
        logger.info(f"auth.{operation} succeeded: {message}")

    def failed(self, operation: str, message: str) -> None:
        logger.warning(f"auth.{operation} failed: {message}")


class RecordingAuthEvents:
    """Keeps every event in memory, in order"""

    def __init__(self) -> None:
        self.events: list[tuple[str, str, str]] = []

    def succeeded(self, operation: str, message: str) -> None:
        self.events.append(("succeeded", operation, message))

    def failed(self, operation: str, message: str) -> None:
        self.events.append(("failed", operation, message))


_auth_events: AuthEvents = LoggingAuthEvents()


def get_auth_events() -> AuthEvents:
    return _auth_events


def set_auth_events(sink: AuthEvents) -> AuthEvents:
    """Install a new sink and return the previous one"""
    global _auth_events
    previous = _auth_events
    _auth_events = sink
    return previous
