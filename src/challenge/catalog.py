"""Fixed SQL answers for the two challenge questions.

The query text is transmitted verbatim, so these constants must not be
reformatted. Note the trailing spaces after ``SELECT`` and inside the
``GROUP_CONCAT`` of question 2.
"""

from __future__ import annotations

import logging

from src.errors import InvalidInputError
from src.models import QuestionId

logger = logging.getLogger(__name__)

# Highest salaried employee per department, excluding payments made on the
# 1st day of the month.
QUESTION_1_SQL = (
    "SELECT \n"
    "    d.DEPARTMENT_NAME,\n"
    "    SUM(p.AMOUNT) AS SALARY,\n"
    "    CONCAT(e.FIRST_NAME, ' ', e.LAST_NAME) AS EMPLOYEE_NAME,\n"
    "    TIMESTAMPDIFF(YEAR, e.DOB, CURDATE()) AS AGE\n"
    "FROM DEPARTMENT d\n"
    "INNER JOIN EMPLOYEE e ON d.DEPARTMENT_ID = e.DEPARTMENT\n"
    "INNER JOIN PAYMENTS p ON e.EMP_ID = p.EMP_ID\n"
    "WHERE DAY(p.PAYMENT_TIME) != 1\n"
    "GROUP BY d.DEPARTMENT_ID, d.DEPARTMENT_NAME, e.EMP_ID, e.FIRST_NAME, e.LAST_NAME, e.DOB\n"
    "HAVING SUM(p.AMOUNT) = (\n"
    "    SELECT MAX(total_salary)\n"
    "    FROM (\n"
    "        SELECT SUM(p2.AMOUNT) AS total_salary\n"
    "        FROM EMPLOYEE e2\n"
    "        INNER JOIN PAYMENTS p2 ON e2.EMP_ID = p2.EMP_ID\n"
    "        WHERE e2.DEPARTMENT = d.DEPARTMENT_ID\n"
    "        AND DAY(p2.PAYMENT_TIME) != 1\n"
    "        GROUP BY e2.EMP_ID\n"
    "    ) AS dept_salaries\n"
    ")\n"
    "ORDER BY d.DEPARTMENT_ID"
)

# Average age and employee list per department for payments above 70000.
QUESTION_2_SQL = (
    "SELECT \n"
    "    d.DEPARTMENT_NAME,\n"
    "    ROUND(AVG(TIMESTAMPDIFF(YEAR, e.DOB, CURDATE())), 2) AS AVERAGE_AGE,\n"
    "    GROUP_CONCAT(\n"
    "        CONCAT(e.FIRST_NAME, ' ', e.LAST_NAME) \n"
    "        ORDER BY e.EMP_ID \n"
    "        SEPARATOR ', '\n"
    "    ) AS EMPLOYEE_LIST\n"
    "FROM DEPARTMENT d\n"
    "INNER JOIN EMPLOYEE e ON d.DEPARTMENT_ID = e.DEPARTMENT\n"
    "INNER JOIN PAYMENTS p ON e.EMP_ID = p.EMP_ID\n"
    "WHERE p.AMOUNT > 70000\n"
    "GROUP BY d.DEPARTMENT_ID, d.DEPARTMENT_NAME\n"
    "ORDER BY d.DEPARTMENT_ID DESC"
)

_SQL_BY_QUESTION: dict[QuestionId, str] = {
    QuestionId.Q1: QUESTION_1_SQL,
    QuestionId.Q2: QUESTION_2_SQL,
}

QUESTION_DESCRIPTIONS: dict[QuestionId, str] = {
    QuestionId.Q1: "Highest salaried employee per department, excluding 1st-of-month payments",
    QuestionId.Q2: "Average age and employee list per department for payments above 70000",
}


def sql_for(question: QuestionId | str) -> str:
    """Return the SQL answer for ``question``.

    Raises:
        InvalidInputError: If ``question`` is not Q1 or Q2.
    """
    try:
        key = QuestionId(question)
    except ValueError:
        raise InvalidInputError(f"Unknown question: {question!r}") from None

    sql = _SQL_BY_QUESTION[key]
    logger.info("Resolved SQL for %s (%d characters)", key.value, len(sql))
    logger.debug("SQL query:\n%s", sql)
    return sql
