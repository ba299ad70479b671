"""Tests for the scenario decision table."""

import pytest

from weai.dialogue import scenarios
from weai.dialogue.scenarios import ScenarioEvent, classify, evaluate
from weai.models import (
    DialogueStep,
    Goal,
    GoalStatus,
    Task,
    TaskStatus,
    UserProfileSnapshot,
)


class TestClassify:
    """Tests for classify()."""

    def test_no_goals(self, empty_snapshot):
        assert classify(empty_snapshot) == ScenarioEvent.NO_GOALS

    def test_goal_check_precedes_task_check(self):
        snapshot = UserProfileSnapshot(tasks=(Task(id="1", title="Write report"),))
        assert classify(snapshot) == ScenarioEvent.NO_GOALS

    def test_completed_goals_still_count_as_goals(self):
        snapshot = UserProfileSnapshot(
            goals=(Goal(id="1", status=GoalStatus.COMPLETED),),
            tasks=(Task(id="1"),),
        )
        assert classify(snapshot) == ScenarioEvent.PENDING_TASKS

    def test_idle(self, idle_snapshot):
        assert classify(idle_snapshot) == ScenarioEvent.IDLE


class TestTransitions:
    """Tests for the transition table."""

    def test_table_is_total(self):
        for step in DialogueStep:
            for event in ScenarioEvent:
                assert (step, event) in scenarios.TRANSITIONS

    @pytest.mark.parametrize("step", list(DialogueStep))
    def test_every_step_has_defined_outcome(self, step, empty_snapshot, goals_snapshot, idle_snapshot):
        for snapshot in (empty_snapshot, goals_snapshot, idle_snapshot):
            outcome = evaluate(step, snapshot, "anything")
            assert isinstance(outcome.next_step, DialogueStep)
            assert outcome.response_text

    def test_no_goals_goes_to_onboarding(self):
        snapshot = UserProfileSnapshot(
            tasks=(Task(id="1", title="Write report", status=TaskStatus.PENDING),)
        )
        outcome = evaluate(DialogueStep.INIT, snapshot, "hi")
        assert outcome.next_step == DialogueStep.ONBOARDING
        assert outcome.response_text == "У тебя пока нет целей. Хочешь создать первую цель?"
        assert not outcome.consult_model

    def test_pending_tasks_goes_to_task_selection(self, goals_snapshot):
        outcome = evaluate(DialogueStep.ONBOARDING, goals_snapshot, "hi")
        assert outcome.next_step == DialogueStep.TASK_SELECTION
        assert outcome.response_text == (
            "У тебя 1 незавершённых задач. С какой начнём? Или задай вопрос!"
        )

    def test_idle_goes_to_free_question_and_consults_model(self, idle_snapshot):
        outcome = evaluate(DialogueStep.TASK_SELECTION, idle_snapshot, "hi")
        assert outcome.next_step == DialogueStep.FREE_QUESTION
        assert outcome.response_text == scenarios.ACKNOWLEDGE_REPLY
        assert outcome.consult_model
