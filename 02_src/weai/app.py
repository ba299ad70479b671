"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .config import resolve_db_path, resolve_history_window
from .dialogue import SessionManager
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Drop all stored data and sessions."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        llm_provider: ILLMProvider | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._history_window = resolve_history_window(os.getenv("HISTORY_WINDOW"))

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._llm: ILLMProvider | None = llm_provider
        self._sessions: SessionManager | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker (depends on Storage)
        self._tracker = Tracker(self._storage)

        # 3. LLMProvider (optional; engines answer from scenarios without it)
        if self._llm is None:
            try:
                self._llm = LLMProvider()
                logger.info("LLM provider initialized")
            except ValueError as e:
                logger.warning(f"LLM provider disabled: {e}")

        # 4. SessionManager (depends on Storage, Tracker, LLM)
        self._sessions = SessionManager(
            storage=self._storage,
            tracker=self._tracker,
            llm_provider=self._llm,
            history_window=self._history_window,
        )
        await self._sessions.start()
        logger.info("SessionManager started")
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._sessions:
            await self._sessions.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Drop all stored data and sessions."""
        if self._sessions:
            await self._sessions.stop()

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        if self._sessions:
            await self._sessions.start()
            logger.info("Reset complete")

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def sessions(self) -> SessionManager:
        """Get session manager instance."""
        if not self._sessions:
            raise RuntimeError("Application not started")
        return self._sessions

    @property
    def llm_enabled(self) -> bool:
        return self._llm is not None
