"""Core data models for the WeAi assistant."""

from .dialogue import ChatTurn, DailyContext, DialogueState, DialogueStep, Sender, StateView
from .profile import (
    Goal,
    GoalStatus,
    Identity,
    Task,
    TaskPriority,
    TaskStatus,
    UserProfileSnapshot,
)
from .scenario import PromptContext, ScenarioKey, ScenarioProfile
from .tracing import TraceEvent

__all__ = [
    # Profile
    "Identity",
    "Goal",
    "GoalStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "UserProfileSnapshot",
    # Dialogue
    "DialogueStep",
    "DialogueState",
    "StateView",
    "ChatTurn",
    "Sender",
    "DailyContext",
    # Scenarios
    "ScenarioKey",
    "ScenarioProfile",
    "PromptContext",
    # Tracing
    "TraceEvent",
]
