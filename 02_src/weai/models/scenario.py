"""Scenario prompt models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .profile import Goal, Task


class ScenarioKey(str, Enum):
    """Named scenarios for context-based prompts."""

    GOAL_PLANNING = "goal_planning"
    TASK_HELP = "task_help"
    PROGRESS_REVIEW = "progress_review"
    RESOURCE_SUGGESTION = "resource_suggestion"
    MOTIVATION_BOOST = "motivation_boost"
    DAILY_PLANNING = "daily_planning"
    SKILL_DEVELOPMENT = "skill_development"
    GOAL_REFLECTION = "goal_reflection"

    @classmethod
    def parse(cls, value: Any) -> "ScenarioKey":
        """Unknown keys fall back to DAILY_PLANNING."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.DAILY_PLANNING


@dataclass(frozen=True)
class ScenarioProfile:
    """Profile fields interpolated into scenario prompts."""

    name: str
    level: int | str | None = None
    skills: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptContext:
    """Everything a scenario prompt may reference."""

    profile: ScenarioProfile
    goals: tuple[Goal, ...] = field(default_factory=tuple)
    tasks: tuple[Task, ...] = field(default_factory=tuple)
