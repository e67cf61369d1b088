from __future__ import annotations


class RelayError(Exception):
    """Base class for orchestration failures."""


class MessageFormatError(RelayError, ValueError):
    """A log entry is missing its role, payload or recipient."""


class HandoffError(RelayError):
    """An agent could not resolve the next agent to hand off to."""


class AgentNotFoundError(RelayError, LookupError):
    """A name does not match any registered agent."""

    def __init__(self, name: str | None, message: str | None = None) -> None:
        super().__init__(message or f"agent {name!r} not found")
        self.name = name
