"""WeAi assistant core."""

from .app import Application, IApplication
from .dialogue import (
    DialogueEngine,
    ISessionManager,
    SessionManager,
    generate_context_based_prompt,
)
from .llm import ILLMProvider, LLMError, LLMProvider
from .models import (
    ChatTurn,
    DailyContext,
    DialogueState,
    DialogueStep,
    Goal,
    GoalStatus,
    Identity,
    PromptContext,
    ScenarioKey,
    ScenarioProfile,
    Sender,
    StateView,
    Task,
    TaskPriority,
    TaskStatus,
    TraceEvent,
    UserProfileSnapshot,
)
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Identity",
    "Goal",
    "GoalStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "UserProfileSnapshot",
    "DialogueStep",
    "DialogueState",
    "StateView",
    "ChatTurn",
    "Sender",
    "DailyContext",
    "ScenarioKey",
    "ScenarioProfile",
    "PromptContext",
    "TraceEvent",
    # Components
    "DialogueEngine",
    "generate_context_based_prompt",
    "ISessionManager",
    "SessionManager",
    "IStorage",
    "Storage",
    "ITracker",
    "Tracker",
    "ILLMProvider",
    "LLMError",
    "LLMProvider",
]
