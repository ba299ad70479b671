"""Profile API routes: users, goals and tasks."""

from datetime import datetime

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...models import Goal, GoalStatus, Identity, Task, TaskPriority, TaskStatus


class UserModel(BaseModel):
    """A Telegram user as stored in the profile store."""

    telegram_id: int
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    level: int | None = None


class GoalRequest(BaseModel):
    title: str
    status: GoalStatus = GoalStatus.ACTIVE
    difficulty_level: str | None = None
    progress_percentage: int | None = Field(None, ge=0, le=100)


class GoalResponse(GoalRequest):
    id: str


class TaskRequest(BaseModel):
    title: str
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.NORMAL
    goal_id: str | None = None
    assigned_at: datetime | None = None


class TaskResponse(BaseModel):
    id: str
    title: str | None
    status: TaskStatus
    priority: TaskPriority
    assigned_at: datetime | None = None
    completed_at: datetime | None = None


def _user_dict(user: Identity) -> dict:
    return {
        "telegram_id": user.telegram_id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "username": user.username,
        "level": user.level,
    }


def create_profiles_router(app: Application) -> APIRouter:
    """Create profiles router."""
    router = APIRouter(prefix="/api/users", tags=["profiles"])

    @router.get("", response_model=list[UserModel])
    async def list_users() -> list[dict]:
        try:
            return [_user_dict(user) for user in await app.storage.list_users()]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("", response_model=UserModel)
    async def save_user(request: UserModel) -> dict:
        """Create or update a user."""
        try:
            await app.storage.save_user(Identity(**request.model_dump()))
            return request.model_dump()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/{telegram_id}", response_model=UserModel)
    async def get_user(telegram_id: int) -> dict:
        try:
            user = await app.storage.get_user(telegram_id)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        return _user_dict(user)

    @router.post("/{telegram_id}/goals", response_model=GoalResponse)
    async def add_goal(telegram_id: int, request: GoalRequest) -> dict:
        if await app.storage.get_user(telegram_id) is None:
            raise HTTPException(status_code=404, detail="User not found")
        try:
            goal = await app.storage.save_goal(
                telegram_id, Goal(id="", **request.model_dump())
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {"id": goal.id, **request.model_dump()}

    @router.post("/{telegram_id}/tasks", response_model=TaskResponse)
    async def add_task(telegram_id: int, request: TaskRequest) -> dict:
        if await app.storage.get_user(telegram_id) is None:
            raise HTTPException(status_code=404, detail="User not found")
        try:
            task = await app.storage.save_task(
                telegram_id,
                Task(
                    id="",
                    title=request.title,
                    status=request.status,
                    priority=request.priority,
                    assigned_at=request.assigned_at,
                ),
                goal_id=request.goal_id,
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        return {
            "id": task.id,
            "title": task.title,
            "status": task.status,
            "priority": task.priority,
            "assigned_at": task.assigned_at,
            "completed_at": task.completed_at,
        }

    return router
