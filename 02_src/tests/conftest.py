"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from weai.models import (  # noqa: E402
    Goal,
    GoalStatus,
    Identity,
    Task,
    TaskStatus,
    UserProfileSnapshot,
)


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from weai.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from weai.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest_asyncio.fixture
async def session_manager(storage, tracker, mock_llm):
    """Create SessionManager for testing."""
    from weai.dialogue import SessionManager

    sm = SessionManager(storage=storage, tracker=tracker, llm_provider=mock_llm)
    await sm.start()
    yield sm
    await sm.stop()


@pytest.fixture
def identity():
    return Identity(telegram_id=42, first_name="Anna", username="anna_k", level=3)


@pytest.fixture
def empty_snapshot():
    return UserProfileSnapshot.empty()


@pytest.fixture
def goals_snapshot(identity):
    """One active goal, one completed goal, one pending task."""
    return UserProfileSnapshot(
        identity=identity,
        goals=(
            Goal(id="g1", title="Learn Rust", status=GoalStatus.ACTIVE, difficulty_level="hard"),
            Goal(id="g2", title="Run a marathon", status=GoalStatus.COMPLETED),
        ),
        tasks=(Task(id="t1", title="Read the book", status=TaskStatus.PENDING),),
    )


@pytest.fixture
def idle_snapshot(identity):
    """Goals exist, nothing left to do: free-form questions go to the model."""
    return UserProfileSnapshot(
        identity=identity,
        goals=(Goal(id="g1", title="Learn Rust", status=GoalStatus.COMPLETED),),
        tasks=(Task(id="t1", title="Read the book", status=TaskStatus.COMPLETED),),
    )
