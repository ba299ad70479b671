"""DialogueEngine implementation."""

import asyncio

from ..config import DEFAULT_HISTORY_WINDOW
from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import (
    ChatTurn,
    DailyContext,
    DialogueState,
    PromptContext,
    ScenarioKey,
    Sender,
    StateView,
    UserProfileSnapshot,
)
from . import prompts, scenarios

logger = get_logger(__name__)


def generate_context_based_prompt(
    context: PromptContext, scenario: ScenarioKey | str
) -> str:
    """Prompt for a named scenario. Unknown keys use daily_planning."""
    return prompts.generate_context_based_prompt(context, scenario)


class DialogueEngine:
    """Conversation with one user.

    The engine owns the DialogueState and reads a UserProfileSnapshot it
    never modifies. Calls for one engine must not overlap except for the
    model call inside handle_user_message: a newer message supersedes an
    older in-flight request, so at most one request is outstanding.
    """

    def __init__(
        self,
        snapshot: UserProfileSnapshot | None = None,
        llm_provider: ILLMProvider | None = None,
        history_window: int = DEFAULT_HISTORY_WINDOW,
    ):
        self._snapshot = snapshot or UserProfileSnapshot.empty()
        self._llm = llm_provider
        self._history_window = max(1, history_window)
        self._state = DialogueState()
        self._model_call: asyncio.Task | None = None

    @classmethod
    def create(
        cls,
        snapshot: UserProfileSnapshot | None = None,
        llm_provider: ILLMProvider | None = None,
    ) -> "DialogueEngine":
        return cls(snapshot=snapshot, llm_provider=llm_provider)

    generate_context_based_prompt = staticmethod(generate_context_based_prompt)

    @property
    def snapshot(self) -> UserProfileSnapshot:
        return self._snapshot

    @property
    def has_pending_model_call(self) -> bool:
        return self._model_call is not None and not self._model_call.done()

    # State

    def reset(self, snapshot: UserProfileSnapshot | None = None) -> None:
        """Back to the initial step with empty history."""
        if snapshot is not None:
            self._snapshot = snapshot
        self._cancel_model_call()
        self._state = DialogueState()

    def update_snapshot(self, snapshot: UserProfileSnapshot | None) -> None:
        """Rebind the profile without touching the conversation."""
        self._snapshot = snapshot or UserProfileSnapshot.empty()

    def current_state(self, recent: int | None = None) -> StateView:
        return self._state.view(recent)

    async def close(self) -> None:
        """Cancel any in-flight model request."""
        task = self._cancel_model_call()
        if task is not None:
            await asyncio.wait({task})

    # Text generation

    def generate_welcome_message(self, daily_context: DailyContext | None = None) -> str:
        return prompts.welcome_message(self._snapshot, daily_context)

    def generate_daily_greeting(self, daily_context: DailyContext) -> str:
        return prompts.daily_greeting(self._snapshot, daily_context)

    def generate_interesting_suggestion(self) -> str:
        return prompts.interesting_suggestion(self._snapshot)

    def generate_system_prompt(self) -> str:
        return prompts.system_prompt(self._snapshot)

    def generate_system_instructions(self) -> str:
        return prompts.system_instructions(self._snapshot)

    def generate_scenario_prompt(
        self,
        scenario: ScenarioKey | str,
        skills: tuple[str, ...] = (),
        interests: tuple[str, ...] = (),
    ) -> str:
        """Scenario prompt rendered for the bound profile."""
        context = prompts.context_from_snapshot(self._snapshot, skills, interests)
        return prompts.generate_context_based_prompt(context, scenario)

    # Messages

    async def handle_user_message(self, message: str) -> str:
        """Record the message, advance the scenario and return the reply."""
        # A newer message supersedes any reply still being generated
        self._cancel_model_call()

        # A reset while the model is thinking swaps in a new state; the late
        # reply belongs to the old one
        state = self._state
        state.append(Sender.USER, message)

        outcome = scenarios.evaluate(state.step, self._snapshot, message)
        previous_step = state.step
        state.step = outcome.next_step
        logger.debug(
            "Scenario step %s -> %s",
            previous_step.value,
            outcome.next_step.value,
            extra={"step": outcome.next_step.value},
        )

        response_text = outcome.response_text
        if outcome.consult_model and self._llm is not None:
            response_text = await self._ask_model(state, fallback=outcome.response_text)

        state.append(Sender.ASSISTANT, response_text)
        return response_text

    async def _ask_model(self, state: DialogueState, fallback: str) -> str:
        system = "\n\n".join(
            [self.generate_system_instructions(), self.generate_system_prompt()]
        )
        task = asyncio.create_task(
            self._llm.complete(messages=self._model_messages(state), system=system)
        )
        self._model_call = task

        try:
            reply = await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                task.cancel()
                raise
            logger.info("Model call superseded, using scenario reply")
            return fallback
        except Exception as e:
            logger.warning("Model call failed, using scenario reply: %s", e)
            return fallback
        finally:
            if self._model_call is task:
                self._model_call = None

        reply = (reply or "").strip()
        return reply or fallback

    def _model_messages(self, state: DialogueState) -> list[dict]:
        turns = state.recent(self._history_window)
        # The model expects the conversation to open with a user turn
        while turns and turns[0].sender != Sender.USER:
            turns = turns[1:]
        return [_as_model_message(turn) for turn in turns]

    def _cancel_model_call(self) -> asyncio.Task | None:
        task = self._model_call
        self._model_call = None
        if task is not None and not task.done():
            task.cancel()
            return task
        return None


def _as_model_message(turn: ChatTurn) -> dict:
    return {"role": turn.sender.value, "content": turn.text}
