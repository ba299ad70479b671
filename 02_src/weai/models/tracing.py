"""Tracing and observability data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TraceEvent:
    """A single observability event for a chat session."""

    id: str
    event_type: str  # e.g. "session_opened", "message_responded"
    actor: str  # who created this event
    data: dict  # user id, step, visible texts; never hidden prompts
    timestamp: datetime
