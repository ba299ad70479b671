"""SessionManager implementation."""

from typing import Protocol

from ..config import DEFAULT_HISTORY_WINDOW
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import DailyContext, StateView
from ..storage import IStorage
from ..tracker import ITracker
from .engine import DialogueEngine

logger = get_logger(__name__)

ACTOR = "session_manager"


class ISessionManager(Protocol):
    """One DialogueEngine per active chat."""

    async def open_session(self, telegram_id: int) -> str:
        """Load the profile, start or resume the chat, return the welcome text."""
        ...

    async def handle_message(self, telegram_id: int, text: str) -> str:
        """Pass a user message to the chat's engine and return the reply."""
        ...

    async def reset_session(self, telegram_id: int) -> None:
        """Clear the chat's step and history."""
        ...

    async def close_session(self, telegram_id: int) -> None:
        """Drop the chat, cancelling any in-flight model call."""
        ...

    def get_state(self, telegram_id: int) -> StateView | None:
        """Current step and history, or None without a session."""
        ...


class SessionManager:
    """Owns the DialogueEngines of all active chats.

    Profile snapshots are reloaded from Storage before every message, so
    engines always see goals and tasks as currently stored.
    """

    def __init__(
        self,
        storage: IStorage,
        tracker: ITracker,
        llm_provider: ILLMProvider | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ):
        self._storage = storage
        self._tracker = tracker
        self._llm = llm_provider
        self._history_window = history_window

        self._engines: dict[int, DialogueEngine] = {}
        self._running = False

    async def start(self) -> None:
        logger.info("Starting SessionManager")
        self._running = True

    async def stop(self) -> None:
        """Close all sessions, stop accepting messages."""
        logger.info("Stopping SessionManager")
        self._running = False

        for engine in self._engines.values():
            await engine.close()
        self._engines.clear()

    def _check_running(self) -> None:
        if not self._running:
            raise RuntimeError("SessionManager not started")

    async def _engine_for(self, telegram_id: int) -> DialogueEngine:
        """Engine for a chat with a freshly loaded snapshot."""
        snapshot = await self._storage.load_snapshot(telegram_id)
        engine = self._engines.get(telegram_id)
        if engine is None:
            engine = DialogueEngine(
                snapshot=snapshot,
                llm_provider=self._llm,
                history_window=self._history_window,
            )
            self._engines[telegram_id] = engine
        else:
            engine.update_snapshot(snapshot)
        return engine

    async def open_session(self, telegram_id: int) -> str:
        """Load the profile, start or resume the chat, return the welcome text."""
        self._check_running()

        daily_context = await self._storage.build_daily_context(telegram_id)
        await self._storage.record_visit(telegram_id)
        engine = await self._engine_for(telegram_id)

        message = engine.generate_welcome_message(daily_context)
        logger.info(
            "Session opened for %s", telegram_id, extra={"telegram_id": telegram_id}
        )

        await self._tracker.track(
            event_type="session_opened",
            actor=ACTOR,
            data={
                "telegram_id": telegram_id,
                "first_visit_today": daily_context.is_first_visit_today,
                "message": message,
            },
        )
        return message

    async def daily_greeting(
        self, telegram_id: int, daily_context: DailyContext | None = None
    ) -> str:
        """Greeting based on visit recency. Does not record a visit."""
        self._check_running()

        if daily_context is None:
            daily_context = await self._storage.build_daily_context(telegram_id)
        engine = await self._engine_for(telegram_id)
        return engine.generate_daily_greeting(daily_context)

    async def suggestion(self, telegram_id: int) -> str:
        self._check_running()

        engine = await self._engine_for(telegram_id)
        return engine.generate_interesting_suggestion()

    async def handle_message(self, telegram_id: int, text: str) -> str:
        """Pass a user message to the chat's engine and return the reply."""
        self._check_running()

        logger.info(
            f"Message received from {telegram_id}: {text[:100]}",
            extra={"telegram_id": telegram_id},
        )

        engine = await self._engine_for(telegram_id)

        await self._tracker.track(
            event_type="message_received",
            actor=ACTOR,
            data={"telegram_id": telegram_id, "message_text": text},
        )

        response_text = await engine.handle_user_message(text)
        step = engine.current_state(recent=0).step

        await self._tracker.track(
            event_type="message_responded",
            actor=ACTOR,
            data={
                "telegram_id": telegram_id,
                "step": step.value,
                "response_text": response_text,
            },
        )

        return response_text

    async def reset_session(self, telegram_id: int) -> None:
        """Clear the chat's step and history."""
        self._check_running()

        engine = self._engines.get(telegram_id)
        if engine is None:
            await self._engine_for(telegram_id)
        else:
            engine.reset(await self._storage.load_snapshot(telegram_id))

        await self._tracker.track(
            event_type="session_reset",
            actor=ACTOR,
            data={"telegram_id": telegram_id},
        )

    async def close_session(self, telegram_id: int) -> None:
        """Drop the chat, cancelling any in-flight model call."""
        self._check_running()

        engine = self._engines.pop(telegram_id, None)
        if engine is None:
            return

        await engine.close()
        await self._tracker.track(
            event_type="session_closed",
            actor=ACTOR,
            data={"telegram_id": telegram_id},
        )

    def get_state(self, telegram_id: int) -> StateView | None:
        """Current step and history, or None without a session."""
        engine = self._engines.get(telegram_id)
        if engine is None:
            return None
        return engine.current_state()

    @property
    def active_sessions(self) -> list[int]:
        return list(self._engines)
