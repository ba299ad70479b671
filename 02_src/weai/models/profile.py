"""User profile snapshot models: identity, goals and tasks."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Mapping

from ..logging_config import get_logger

logger = get_logger(__name__)


class GoalStatus(str, Enum):
    """Lifecycle of a goal."""

    ACTIVE = "active"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "GoalStatus":
        return _parse_enum(cls, value, cls.ACTIVE)


class TaskStatus(str, Enum):
    """Lifecycle of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "TaskStatus":
        return _parse_enum(cls, value, cls.PENDING)


class TaskPriority(str, Enum):
    """Task priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"

    @classmethod
    def parse(cls, value: Any) -> "TaskPriority":
        return _parse_enum(cls, value, cls.NORMAL)


def _parse_enum(enum_cls: type[Enum], value: Any, default: Enum) -> Any:
    """Map a raw value onto enum_cls; None and unknown values become default."""
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        logger.warning(
            "Unknown %s value %r, using %s", enum_cls.__name__, value, default.value
        )
        return default


@dataclass(frozen=True)
class Identity:
    """Who the user is. Used only for text substitution."""

    telegram_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    level: int | None = None

    def display_name(self, fallback: str) -> str:
        """first_name, then username, then fallback."""
        return self.first_name or self.username or fallback


@dataclass(frozen=True)
class Goal:
    """A user goal."""

    id: str
    title: str | None = None
    status: GoalStatus = GoalStatus.ACTIVE
    difficulty_level: str | None = None
    progress_percentage: int | None = None
    nested_title: str | None = None  # goal.goal.title of joined rows

    @property
    def is_completed(self) -> bool:
        return self.status == GoalStatus.COMPLETED

    def resolved_title(self, fallback: str) -> str:
        return self.title or self.nested_title or fallback


@dataclass(frozen=True)
class Task:
    """A task assigned to the user."""

    id: str
    title: str | None = None
    status: TaskStatus = TaskStatus.PENDING
    assigned_at: datetime | None = None
    priority: TaskPriority = TaskPriority.NORMAL
    completed_at: datetime | None = None
    nested_title: str | None = None  # task.task.title of joined rows

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    def resolved_title(self, fallback: str) -> str:
        return self.title or self.nested_title or fallback


@dataclass(frozen=True)
class UserProfileSnapshot:
    """Read-only view of a user's profile handed to a DialogueEngine.

    A snapshot never changes after construction. To reflect new goals or
    tasks the caller builds a fresh one and hands it to the engine.
    """

    identity: Identity = field(default_factory=Identity)
    goals: tuple[Goal, ...] = ()
    tasks: tuple[Task, ...] = ()

    @classmethod
    def empty(cls) -> "UserProfileSnapshot":
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when neither goals nor tasks are known."""
        return not self.goals and not self.tasks

    def display_name(self, fallback: str) -> str:
        return self.identity.display_name(fallback)

    def active_goals(self) -> list[Goal]:
        return [goal for goal in self.goals if not goal.is_completed]

    def pending_tasks(self) -> list[Task]:
        return [task for task in self.tasks if not task.is_completed]

    def pending_high_priority_tasks(self) -> list[Task]:
        return [
            task for task in self.pending_tasks() if task.priority == TaskPriority.HIGH
        ]

    @classmethod
    def from_records(
        cls,
        user: Mapping[str, Any] | None = None,
        goals: Iterable[Mapping[str, Any]] | None = None,
        tasks: Iterable[Mapping[str, Any]] | None = None,
    ) -> "UserProfileSnapshot":
        """Build a snapshot from raw database rows.

        Rows use snake_case keys. Joined rows may carry the title in a
        nested ``goal``/``task`` dict instead of at the top level. Missing
        or malformed fields take their defaults.
        """
        return cls(
            identity=identity_from_record(user),
            goals=tuple(goal_from_record(row) for row in goals or ()),
            tasks=tuple(task_from_record(row) for row in tasks or ()),
        )


def identity_from_record(row: Mapping[str, Any] | None) -> Identity:
    if not row:
        return Identity()
    return Identity(
        telegram_id=_to_int(row.get("telegram_id")),
        first_name=row.get("first_name") or None,
        last_name=row.get("last_name") or None,
        username=row.get("telegram_username") or row.get("username") or None,
        level=_to_int(row.get("level")),
    )


def goal_from_record(row: Mapping[str, Any]) -> Goal:
    nested = row.get("goal") if isinstance(row.get("goal"), Mapping) else {}
    return Goal(
        id=str(row.get("id", "")),
        title=row.get("title") or None,
        status=GoalStatus.parse(row.get("status")),
        difficulty_level=_to_str(row.get("difficulty_level")),
        progress_percentage=_to_int(row.get("progress_percentage")),
        nested_title=nested.get("title") or None,
    )


def task_from_record(row: Mapping[str, Any]) -> Task:
    nested = row.get("task") if isinstance(row.get("task"), Mapping) else {}
    return Task(
        id=str(row.get("id", "")),
        title=row.get("title") or None,
        status=TaskStatus.parse(row.get("status")),
        assigned_at=_to_datetime(row.get("assigned_at")),
        priority=TaskPriority.parse(row.get("priority")),
        completed_at=_to_datetime(row.get("completed_at")),
        nested_title=nested.get("title") or None,
    )


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _to_datetime(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    # Fix timezone for naive timestamps
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
