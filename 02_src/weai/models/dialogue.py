"""Dialogue-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class DialogueStep(str, Enum):
    """Scenario stage of a conversation."""

    INIT = "init"
    ONBOARDING = "onboarding"  # no goals yet, offered to create one
    TASK_SELECTION = "task_selection"
    FREE_QUESTION = "free_question"


class Sender(str, Enum):
    """Author of a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """A single message in a conversation."""

    sender: Sender
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class StateView:
    """Read-only projection of a DialogueState."""

    step: DialogueStep
    history: tuple[ChatTurn, ...] = ()


@dataclass
class DialogueState:
    """Conversation state owned by one DialogueEngine."""

    step: DialogueStep = DialogueStep.INIT
    history: list[ChatTurn] = field(default_factory=list)

    def append(self, sender: Sender, text: str) -> ChatTurn:
        """Append a turn to the history."""
        turn = ChatTurn(sender=sender, text=text)
        self.history.append(turn)
        return turn

    def recent(self, limit: int) -> list[ChatTurn]:
        """Last `limit` turns, oldest first."""
        if limit <= 0:
            return []
        return self.history[-limit:]

    def view(self, recent: int | None = None) -> StateView:
        turns = self.history if recent is None else self.recent(recent)
        return StateView(step=self.step, history=tuple(turns))


@dataclass(frozen=True)
class DailyContext:
    """Per-visit context passed to greeting generators. Never stored."""

    is_first_visit_today: bool = False
    last_visit_timestamp: datetime | None = None
    completed_today_task_count: int = 0
    pending_high_priority_task_count: int = 0
