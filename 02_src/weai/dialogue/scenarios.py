"""Scenario decision table for incoming user messages.

The dialogue is a state machine over DialogueStep. Each incoming message
is classified into a ScenarioEvent from the profile snapshot, and the
(step, event) pair selects a handler in TRANSITIONS. The table covers
every pair; a missing entry fails at import time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from ..models import DialogueStep, UserProfileSnapshot


class ScenarioEvent(str, Enum):
    """What the profile says about the user when a message arrives."""

    NO_GOALS = "no_goals"
    PENDING_TASKS = "pending_tasks"
    IDLE = "idle"


@dataclass(frozen=True)
class ScenarioOutcome:
    """Result of evaluating one message."""

    next_step: DialogueStep
    response_text: str
    consult_model: bool = False


ScenarioHandler = Callable[[UserProfileSnapshot, str], ScenarioOutcome]


NO_GOALS_REPLY = "У тебя пока нет целей. Хочешь создать первую цель?"
ACKNOWLEDGE_REPLY = "Спасибо за сообщение! Я готов помочь с твоими целями и задачами."


def classify(snapshot: UserProfileSnapshot) -> ScenarioEvent:
    """Goal emptiness is checked before pending tasks."""
    if not snapshot.goals:
        return ScenarioEvent.NO_GOALS
    if snapshot.pending_tasks():
        return ScenarioEvent.PENDING_TASKS
    return ScenarioEvent.IDLE


def offer_first_goal(snapshot: UserProfileSnapshot, message: str) -> ScenarioOutcome:
    return ScenarioOutcome(DialogueStep.ONBOARDING, NO_GOALS_REPLY)


def offer_task_selection(snapshot: UserProfileSnapshot, message: str) -> ScenarioOutcome:
    count = len(snapshot.pending_tasks())
    return ScenarioOutcome(
        DialogueStep.TASK_SELECTION,
        f"У тебя {count} незавершённых задач. С какой начнём? Или задай вопрос!",
    )


def answer_free_question(snapshot: UserProfileSnapshot, message: str) -> ScenarioOutcome:
    # The static reply is also the fallback when the model is unavailable
    return ScenarioOutcome(
        DialogueStep.FREE_QUESTION, ACKNOWLEDGE_REPLY, consult_model=True
    )


_EVENT_HANDLERS: dict[ScenarioEvent, ScenarioHandler] = {
    ScenarioEvent.NO_GOALS: offer_first_goal,
    ScenarioEvent.PENDING_TASKS: offer_task_selection,
    ScenarioEvent.IDLE: answer_free_question,
}

# Every step currently reacts to an event the same way. Scenario branches
# that depend on the current step override single entries here.
TRANSITIONS: dict[tuple[DialogueStep, ScenarioEvent], ScenarioHandler] = {
    (step, event): handler
    for step in DialogueStep
    for event, handler in _EVENT_HANDLERS.items()
}


def _check_transitions() -> None:
    missing = [
        (step.value, event.value)
        for step in DialogueStep
        for event in ScenarioEvent
        if (step, event) not in TRANSITIONS
    ]
    if missing:
        raise RuntimeError(f"Scenario transitions missing for: {missing}")


_check_transitions()


def evaluate(
    step: DialogueStep, snapshot: UserProfileSnapshot, message: str
) -> ScenarioOutcome:
    """Pick the next step and the static reply for a user message."""
    handler = TRANSITIONS[(step, classify(snapshot))]
    return handler(snapshot, message)
