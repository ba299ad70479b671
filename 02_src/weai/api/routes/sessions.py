"""Chat session API routes.

Only user-facing texts leave through these routes. Hidden model context
(system prompt, system instructions) has no endpoint.
"""

from datetime import datetime

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application


class MessageRequest(BaseModel):
    """Request model for sending a message."""

    telegram_id: int
    text: str


class MessageResponse(BaseModel):
    """Response model for message."""

    response: str


class GreetingResponse(BaseModel):
    """Response model for greetings and suggestions."""

    message: str


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


class ChatTurnResponse(BaseModel):
    sender: str
    text: str
    timestamp: datetime


class SessionStateResponse(BaseModel):
    """Response model for session state."""

    step: str
    history: list[ChatTurnResponse]


def create_sessions_router(app: Application) -> APIRouter:
    """Create sessions router."""
    router = APIRouter(prefix="/api", tags=["sessions"])

    @router.post("/sessions/{telegram_id}", response_model=GreetingResponse)
    async def open_session(telegram_id: int) -> dict:
        """Open a chat and get the welcome message."""
        try:
            message = await app.sessions.open_session(telegram_id)
            return {"message": message}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/sessions/{telegram_id}/greeting", response_model=GreetingResponse)
    async def daily_greeting(telegram_id: int) -> dict:
        try:
            return {"message": await app.sessions.daily_greeting(telegram_id)}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/sessions/{telegram_id}/suggestion", response_model=GreetingResponse)
    async def suggestion(telegram_id: int) -> dict:
        try:
            return {"message": await app.sessions.suggestion(telegram_id)}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/messages", response_model=MessageResponse)
    async def send_message(request: MessageRequest) -> dict:
        """Send a message to the assistant."""
        try:
            response = await app.sessions.handle_message(
                telegram_id=request.telegram_id, text=request.text
            )
            return {"response": response}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.post("/sessions/{telegram_id}/reset", response_model=StatusResponse)
    async def reset_session(telegram_id: int) -> dict:
        try:
            await app.sessions.reset_session(telegram_id)
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.delete("/sessions/{telegram_id}", response_model=StatusResponse)
    async def close_session(telegram_id: int) -> dict:
        try:
            await app.sessions.close_session(telegram_id)
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @router.get("/sessions/{telegram_id}/state", response_model=SessionStateResponse)
    async def get_state(telegram_id: int) -> dict:
        state = app.sessions.get_state(telegram_id)
        if state is None:
            raise HTTPException(status_code=404, detail="Session not found")

        return {
            "step": state.step.value,
            "history": [
                {
                    "sender": turn.sender.value,
                    "text": turn.text,
                    "timestamp": turn.timestamp,
                }
                for turn in state.history
            ],
        }

    return router
