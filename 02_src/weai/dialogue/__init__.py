"""Dialogue module."""

from .engine import DialogueEngine, generate_context_based_prompt
from .scenarios import ScenarioEvent, ScenarioOutcome
from .sessions import ISessionManager, SessionManager

__all__ = [
    "DialogueEngine",
    "generate_context_based_prompt",
    "ScenarioEvent",
    "ScenarioOutcome",
    "ISessionManager",
    "SessionManager",
]
