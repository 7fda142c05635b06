"""Question assignment from the registration number."""

from __future__ import annotations

import logging

from src.errors import InvalidInputError
from src.models import QuestionId, has_trailing_digits

logger = logging.getLogger(__name__)


def select_question(reg_no: str) -> QuestionId:
    """Assign a question from the parity of the last two digits of ``reg_no``.

    Odd -> Q1, even (including 00) -> Q2.

    Raises:
        InvalidInputError: If ``reg_no`` does not end in two ASCII digits.
            Configuration validation rejects such values first, so this only
            fires on programming errors.
    """
    if not isinstance(reg_no, str):
        raise InvalidInputError(f"Registration number must be a string, got {type(reg_no).__name__}")
    if not has_trailing_digits(reg_no):
        raise InvalidInputError(
            f"Registration number must end with two digits: {reg_no!r}",
        )

    trailing = int(reg_no[-2:], 10)
    question = QuestionId.Q2 if trailing % 2 == 0 else QuestionId.Q1
    logger.info(
        "Last two digits (%02d) are %s, assigning %s",
        trailing, "even" if question is QuestionId.Q2 else "odd", question.value,
    )
    return question
