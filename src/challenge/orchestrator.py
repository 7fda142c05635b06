"""Challenge workflow orchestration.

Runs the four steps exactly once, in order:

1. generate_webhook: exchange the user identity for a webhook grant
2. select_question: pick Q1/Q2 from the registration number
3. resolve_sql: look up the SQL answer
4. submit_solution: post the answer with the grant's bearer token

Step failures are not retried. The orchestrator converts any
``ChallengeError`` into a ``WorkflowOutcome`` carrying a ``WorkflowError``
instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.challenge.catalog import sql_for
from src.challenge.selector import select_question
from src.challenge.submission import SolutionSubmitter
from src.challenge.webhook import WebhookGenerator
from src.errors import ChallengeError, WorkflowError
from src.models import QuestionId, UserIdentity, WorkflowState, WorkflowStep

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[WorkflowState, frozenset[WorkflowState]] = {
    WorkflowState.START: frozenset({WorkflowState.AWAITING_GRANT, WorkflowState.FAILED}),
    WorkflowState.AWAITING_GRANT: frozenset(
        {WorkflowState.AWAITING_SUBMISSION, WorkflowState.FAILED},
    ),
    WorkflowState.AWAITING_SUBMISSION: frozenset({WorkflowState.DONE, WorkflowState.FAILED}),
    WorkflowState.DONE: frozenset(),
    WorkflowState.FAILED: frozenset(),
}


@dataclass
class WorkflowOutcome:
    """Result of a single workflow run."""

    state: WorkflowState = WorkflowState.START
    history: list[WorkflowState] = field(default_factory=lambda: [WorkflowState.START])
    question: QuestionId | None = None
    submission_status: int | None = None
    error: WorkflowError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is WorkflowState.DONE

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class ChallengeOrchestrator:
    """Coordinates webhook generation, question assignment and submission."""

    def __init__(
        self,
        user: UserIdentity,
        webhook_generator: WebhookGenerator,
        submitter: SolutionSubmitter,
    ) -> None:
        self._user = user
        self._webhooks = webhook_generator
        self._submitter = submitter

    def run(self) -> WorkflowOutcome:
        outcome = WorkflowOutcome()
        step = WorkflowStep.GENERATE_WEBHOOK
        logger.info("=== Starting challenge workflow ===")

        try:
            self._transition(outcome, WorkflowState.AWAITING_GRANT)
            logger.info("Step 1: generating webhook")
            grant = self._webhooks.generate(self._user)
            logger.info("Step 1 completed: webhook grant received")

            step = WorkflowStep.SELECT_QUESTION
            logger.info("Step 2: determining question assignment")
            outcome.question = select_question(self._user.reg_no)
            logger.info("Step 2 completed: assigned question %s", outcome.question.value)

            step = WorkflowStep.RESOLVE_SQL
            logger.info("Step 3: resolving SQL solution")
            sql = sql_for(outcome.question)
            logger.info("Step 3 completed: SQL query resolved (%d characters)", len(sql))

            step = WorkflowStep.SUBMIT_SOLUTION
            self._transition(outcome, WorkflowState.AWAITING_SUBMISSION)
            logger.info("Step 4: submitting solution")
            response = self._submitter.submit(grant, sql)
            outcome.submission_status = response.status_code
            logger.info("Step 4 completed: solution accepted with status %d", response.status_code)
        except ChallengeError as exc:
            outcome.error = WorkflowError(step, exc)
            self._transition(outcome, WorkflowState.FAILED)
            return outcome

        self._transition(outcome, WorkflowState.DONE)
        logger.info("=== Challenge workflow completed successfully ===")
        logger.info("Summary:")
        logger.info("  - User: %s (%s)", self._user.name, self._user.email)
        logger.info("  - Registration number: %s", self._user.reg_no)
        logger.info("  - Assigned question: %s", outcome.question.value)
        logger.info("  - Submission status: %d", outcome.submission_status)
        return outcome

    @staticmethod
    def _transition(outcome: WorkflowOutcome, target: WorkflowState) -> None:
        if target not in _TRANSITIONS[outcome.state]:
            raise RuntimeError(
                f"Illegal workflow transition {outcome.state.value} -> {target.value}",
            )
        logger.debug("Workflow state: %s -> %s", outcome.state.value, target.value)
        outcome.state = target
        outcome.history.append(target)
