"""Challenge workflow for the webhook SQL hiring challenge.

This package provides:
- Question assignment from the registration number
- The fixed SQL answers
- Webhook generation and solution submission
- The orchestrator that runs the workflow once
"""

from src.challenge.catalog import QUESTION_1_SQL, QUESTION_2_SQL, sql_for
from src.challenge.orchestrator import ChallengeOrchestrator, WorkflowOutcome
from src.challenge.selector import select_question
from src.challenge.submission import SolutionSubmitter
from src.challenge.webhook import WebhookGenerator

__all__ = [
    # Components
    "ChallengeOrchestrator",
    "SolutionSubmitter",
    "WebhookGenerator",
    # Pure steps
    "select_question",
    "sql_for",
    "QUESTION_1_SQL",
    "QUESTION_2_SQL",
    # Result types
    "WorkflowOutcome",
]
