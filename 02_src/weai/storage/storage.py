"""SQLite storage implementation."""

import json
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import (
    DailyContext,
    Goal,
    GoalStatus,
    Identity,
    Task,
    TaskPriority,
    TaskStatus,
    TraceEvent,
    UserProfileSnapshot,
)


class IStorage(Protocol):
    """Persistent storage for profiles, visits and trace events (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Users
    async def save_user(self, user: Identity) -> None:
        """Insert or update a user by telegram_id."""
        ...

    async def get_user(self, telegram_id: int) -> Identity | None:
        """Get a user by Telegram id."""
        ...

    async def list_users(self) -> list[Identity]:
        """All users, oldest first."""
        ...

    # Goals / Tasks
    async def save_goal(self, telegram_id: int, goal: Goal) -> Goal:
        """Insert or update a goal. Returns it with an id assigned."""
        ...

    async def get_goals(self, telegram_id: int) -> list[Goal]:
        """Goals of a user, oldest first."""
        ...

    async def save_task(
        self, telegram_id: int, task: Task, goal_id: str | None = None
    ) -> Task:
        """Insert or update a task. Returns it with an id assigned."""
        ...

    async def get_tasks(self, telegram_id: int) -> list[Task]:
        """Tasks of a user, oldest first."""
        ...

    async def load_snapshot(self, telegram_id: int) -> UserProfileSnapshot:
        """Profile snapshot of a user; empty for unknown users."""
        ...

    # Visits
    async def record_visit(
        self, telegram_id: int, at: datetime | None = None
    ) -> None:
        """Remember that the user opened the assistant."""
        ...

    async def build_daily_context(
        self, telegram_id: int, now: datetime | None = None
    ) -> DailyContext:
        """Visit recency and task counts for greetings."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _iso(value: datetime | None) -> str | None:
    """UTC ISO string; naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_ts(value: str | None) -> datetime | None:
    if not value:
        return None
    # Fix timezone for timestamp
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    # Users
    async def save_user(self, user: Identity) -> None:
        """Insert or update a user by telegram_id."""
        conn = self._require_conn()
        if user.telegram_id is None:
            raise ValueError("telegram_id is required to save a user")

        now = _iso(_now())
        await conn.execute(
            """
            INSERT INTO users
            (telegram_id, first_name, last_name, username, level, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(telegram_id) DO UPDATE SET
                first_name = excluded.first_name,
                last_name = excluded.last_name,
                username = excluded.username,
                level = excluded.level,
                updated_at = excluded.updated_at
            """,
            (
                user.telegram_id,
                user.first_name,
                user.last_name,
                user.username,
                user.level,
                now,
                now,
            ),
        )
        await conn.commit()

    async def get_user(self, telegram_id: int) -> Identity | None:
        """Get a user by Telegram id."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT telegram_id, first_name, last_name, username, level
            FROM users
            WHERE telegram_id = ?
            """,
            (telegram_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return Identity(
            telegram_id=row[0],
            first_name=row[1],
            last_name=row[2],
            username=row[3],
            level=row[4],
        )

    async def list_users(self) -> list[Identity]:
        """All users, oldest first."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT telegram_id, first_name, last_name, username, level
            FROM users
            ORDER BY created_at ASC, telegram_id ASC
            """
        )
        rows = await cursor.fetchall()

        return [
            Identity(
                telegram_id=row[0],
                first_name=row[1],
                last_name=row[2],
                username=row[3],
                level=row[4],
            )
            for row in rows
        ]

    # Goals
    async def save_goal(self, telegram_id: int, goal: Goal) -> Goal:
        """Insert or update a goal. Returns it with an id assigned."""
        conn = self._require_conn()

        # Generate ID if not provided
        if not goal.id:
            goal = replace(goal, id=str(uuid.uuid4()))

        await conn.execute(
            """
            INSERT INTO goals
            (id, telegram_id, title, status, difficulty_level, progress_percentage, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                status = excluded.status,
                difficulty_level = excluded.difficulty_level,
                progress_percentage = excluded.progress_percentage
            """,
            (
                goal.id,
                telegram_id,
                goal.resolved_title("") or None,
                goal.status.value,
                goal.difficulty_level,
                goal.progress_percentage,
                _iso(_now()),
            ),
        )
        await conn.commit()
        return goal

    async def get_goals(self, telegram_id: int) -> list[Goal]:
        """Goals of a user, oldest first."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, title, status, difficulty_level, progress_percentage
            FROM goals
            WHERE telegram_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (telegram_id,),
        )
        rows = await cursor.fetchall()

        return [
            Goal(
                id=row[0],
                title=row[1],
                status=GoalStatus.parse(row[2]),
                difficulty_level=row[3],
                progress_percentage=row[4],
            )
            for row in rows
        ]

    # Tasks
    async def save_task(
        self, telegram_id: int, task: Task, goal_id: str | None = None
    ) -> Task:
        """Insert or update a task. Returns it with an id assigned."""
        conn = self._require_conn()

        if not task.id:
            task = replace(task, id=str(uuid.uuid4()))

        # Completed tasks always carry a completion time
        if task.is_completed and task.completed_at is None:
            task = replace(task, completed_at=_now())

        await conn.execute(
            """
            INSERT INTO tasks
            (id, telegram_id, goal_id, title, status, priority,
             assigned_at, completed_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                goal_id = excluded.goal_id,
                title = excluded.title,
                status = excluded.status,
                priority = excluded.priority,
                assigned_at = excluded.assigned_at,
                completed_at = excluded.completed_at
            """,
            (
                task.id,
                telegram_id,
                goal_id,
                task.resolved_title("") or None,
                task.status.value,
                task.priority.value,
                _iso(task.assigned_at),
                _iso(task.completed_at),
                _iso(_now()),
            ),
        )
        await conn.commit()
        return task

    async def get_tasks(self, telegram_id: int) -> list[Task]:
        """Tasks of a user, oldest first."""
        conn = self._require_conn()

        cursor = await conn.execute(
            """
            SELECT id, title, status, priority, assigned_at, completed_at
            FROM tasks
            WHERE telegram_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (telegram_id,),
        )
        rows = await cursor.fetchall()

        return [
            Task(
                id=row[0],
                title=row[1],
                status=TaskStatus.parse(row[2]),
                priority=TaskPriority.parse(row[3]),
                assigned_at=_parse_ts(row[4]),
                completed_at=_parse_ts(row[5]),
            )
            for row in rows
        ]

    async def load_snapshot(self, telegram_id: int) -> UserProfileSnapshot:
        """Profile snapshot of a user; empty for unknown users."""
        user = await self.get_user(telegram_id)
        if user is None:
            return UserProfileSnapshot.empty()

        return UserProfileSnapshot(
            identity=user,
            goals=tuple(await self.get_goals(telegram_id)),
            tasks=tuple(await self.get_tasks(telegram_id)),
        )

    # Visits
    async def record_visit(
        self, telegram_id: int, at: datetime | None = None
    ) -> None:
        """Remember that the user opened the assistant."""
        conn = self._require_conn()

        await conn.execute(
            "INSERT INTO visits (telegram_id, visited_at) VALUES (?, ?)",
            (telegram_id, _iso(at or _now())),
        )
        await conn.commit()

    async def build_daily_context(
        self, telegram_id: int, now: datetime | None = None
    ) -> DailyContext:
        """Visit recency and task counts for greetings.

        Days are UTC calendar days. Call before record_visit() for the
        visit being greeted.
        """
        conn = self._require_conn()

        now = now or _now()
        now_iso = _iso(now)
        day_start = _iso(
            datetime.fromisoformat(now_iso).replace(
                hour=0, minute=0, second=0, microsecond=0
            )
        )
        day_end = _iso(datetime.fromisoformat(day_start) + timedelta(days=1))

        cursor = await conn.execute(
            """
            SELECT visited_at FROM visits
            WHERE telegram_id = ? AND visited_at <= ?
            ORDER BY visited_at DESC
            LIMIT 1
            """,
            (telegram_id, now_iso),
        )
        row = await cursor.fetchone()
        last_visit = _parse_ts(row[0]) if row else None

        cursor = await conn.execute(
            """
            SELECT COUNT(*) FROM tasks
            WHERE telegram_id = ? AND status = ?
              AND completed_at >= ? AND completed_at < ?
            """,
            (telegram_id, TaskStatus.COMPLETED.value, day_start, day_end),
        )
        completed_today = (await cursor.fetchone())[0]

        snapshot = UserProfileSnapshot(tasks=tuple(await self.get_tasks(telegram_id)))
        pending_high_priority = len(snapshot.pending_high_priority_tasks())

        return DailyContext(
            is_first_visit_today=last_visit is None or _iso(last_visit) < day_start,
            last_visit_timestamp=last_visit,
            completed_today_task_count=completed_today,
            pending_high_priority_task_count=pending_high_priority,
        )

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        conn = self._require_conn()

        await conn.execute(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, ensure_ascii=False),
                _iso(event.timestamp),
            ),
        )
        await conn.commit()

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters (newest first)."""
        conn = self._require_conn()

        # Build query dynamically
        conditions = []
        params: list = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_iso(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC, rowid DESC
            LIMIT ?
        """
        params.append(limit)

        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()

        return [
            TraceEvent(
                id=row[0],
                event_type=row[1],
                actor=row[2],
                data=json.loads(row[3]),
                timestamp=_parse_ts(row[4]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()

        tables = [
            "trace_events",
            "visits",
            "tasks",
            "goals",
            "users",
        ]

        for table in tables:
            await conn.execute(f"DELETE FROM {table}")

        await conn.commit()
