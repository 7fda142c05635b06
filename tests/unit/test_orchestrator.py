"""Tests for the challenge workflow orchestrator."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from src.challenge.catalog import QUESTION_1_SQL, QUESTION_2_SQL
from src.challenge.orchestrator import ChallengeOrchestrator, WorkflowOutcome
from src.challenge.submission import SolutionSubmitter
from src.challenge.webhook import WebhookGenerator
from src.errors import (
    HttpStatusError,
    InvalidInputError,
    ProtocolError,
    TransportError,
    WorkflowError,
)
from src.models import QuestionId, UserIdentity, WorkflowState, WorkflowStep
from src.transport.client import JsonResponse
from tests.conftest import ACCESS_TOKEN, GENERATOR_URL, WEBHOOK_URL, make_grant, make_user


def _orchestrator(
    user: UserIdentity | None = None,
) -> tuple[ChallengeOrchestrator, MagicMock, MagicMock]:
    generator = MagicMock(spec=WebhookGenerator)
    generator.generate.return_value = make_grant()
    submitter = MagicMock(spec=SolutionSubmitter)
    submitter.submit.return_value = JsonResponse(200, '{"success":true}')
    orchestrator = ChallengeOrchestrator(user or make_user(), generator, submitter)
    return orchestrator, generator, submitter


class TestSuccessfulRun:
    def test_odd_reg_no_submits_q1(self) -> None:
        orchestrator, generator, submitter = _orchestrator(make_user(reg_no="REG12347"))
        outcome = orchestrator.run()

        assert outcome.succeeded
        assert outcome.question is QuestionId.Q1
        assert outcome.submission_status == 200
        assert outcome.error is None
        generator.generate.assert_called_once()
        submitter.submit.assert_called_once_with(generator.generate.return_value, QUESTION_1_SQL)

    def test_even_reg_no_submits_q2(self) -> None:
        orchestrator, _, submitter = _orchestrator(make_user(reg_no="REG12348"))
        outcome = orchestrator.run()

        assert outcome.question is QuestionId.Q2
        assert submitter.submit.call_args.args[1] == QUESTION_2_SQL

    def test_state_history(self) -> None:
        orchestrator, _, _ = _orchestrator()
        outcome = orchestrator.run()
        assert outcome.history == [
            WorkflowState.START,
            WorkflowState.AWAITING_GRANT,
            WorkflowState.AWAITING_SUBMISSION,
            WorkflowState.DONE,
        ]

    def test_raise_for_error_is_noop_on_success(self) -> None:
        orchestrator, _, _ = _orchestrator()
        orchestrator.run().raise_for_error()

    def test_summary_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="src")
        orchestrator, _, _ = _orchestrator()
        orchestrator.run()
        assert "=== Challenge workflow completed successfully ===" in caplog.messages
        assert "  - Assigned question: Q1" in caplog.messages


class TestFailedRun:
    @pytest.mark.parametrize(
        "error",
        [
            TransportError(GENERATOR_URL, "ConnectError: refused"),
            HttpStatusError(500, GENERATOR_URL, "boom"),
            ProtocolError(GENERATOR_URL, "webhook: webhook is missing or empty"),
        ],
    )
    def test_generation_failure_skips_submission(self, error: Exception) -> None:
        orchestrator, generator, submitter = _orchestrator()
        generator.generate.side_effect = error

        outcome = orchestrator.run()

        assert not outcome.succeeded
        assert outcome.state is WorkflowState.FAILED
        assert outcome.error.step is WorkflowStep.GENERATE_WEBHOOK
        assert outcome.error.cause is error
        assert outcome.error.__cause__ is error
        submitter.submit.assert_not_called()

    def test_generation_failure_history(self) -> None:
        orchestrator, generator, _ = _orchestrator()
        generator.generate.side_effect = HttpStatusError(429, GENERATOR_URL, "rate limit")
        outcome = orchestrator.run()
        assert outcome.history == [
            WorkflowState.START,
            WorkflowState.AWAITING_GRANT,
            WorkflowState.FAILED,
        ]

    def test_submission_failure(self) -> None:
        orchestrator, _, submitter = _orchestrator()
        submitter.submit.side_effect = HttpStatusError(401, WEBHOOK_URL, "bad token")

        outcome = orchestrator.run()

        assert outcome.error.step is WorkflowStep.SUBMIT_SOLUTION
        assert outcome.question is QuestionId.Q1
        assert outcome.submission_status is None
        assert outcome.history[-2:] == [WorkflowState.AWAITING_SUBMISSION, WorkflowState.FAILED]

    def test_unvalidated_reg_no_fails_selection(self) -> None:
        user = UserIdentity.model_construct(name="John Doe", reg_no="ABC", email="j@example.com")
        orchestrator, generator, submitter = _orchestrator(user)

        outcome = orchestrator.run()

        generator.generate.assert_called_once()
        submitter.submit.assert_not_called()
        assert outcome.error.step is WorkflowStep.SELECT_QUESTION
        assert isinstance(outcome.error.cause, InvalidInputError)

    def test_raise_for_error_raises_workflow_error(self) -> None:
        orchestrator, generator, _ = _orchestrator()
        generator.generate.side_effect = TransportError(GENERATOR_URL, "timed out (ConnectTimeout)")
        outcome = orchestrator.run()
        with pytest.raises(WorkflowError, match="step generate_webhook failed"):
            outcome.raise_for_error()

    def test_unexpected_exceptions_propagate(self) -> None:
        orchestrator, generator, _ = _orchestrator()
        generator.generate.side_effect = KeyError("bug")
        with pytest.raises(KeyError):
            orchestrator.run()


class TestLogging:
    def test_token_not_logged_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="src")
        orchestrator, _, _ = _orchestrator()
        orchestrator.run()
        for record in caplog.records:
            if record.levelno >= logging.INFO:
                assert ACCESS_TOKEN not in record.getMessage()


class TestTransitions:
    def test_illegal_transition_rejected(self) -> None:
        outcome = WorkflowOutcome(state=WorkflowState.DONE)
        with pytest.raises(RuntimeError, match="Illegal workflow transition"):
            ChallengeOrchestrator._transition(outcome, WorkflowState.AWAITING_GRANT)

    def test_failed_is_terminal(self) -> None:
        outcome = WorkflowOutcome(state=WorkflowState.FAILED)
        with pytest.raises(RuntimeError):
            ChallengeOrchestrator._transition(outcome, WorkflowState.DONE)
