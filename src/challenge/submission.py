"""Solution submission to the granted webhook."""

from __future__ import annotations

import logging

from src.models import SubmissionPayload, WebhookGrant
from src.transport.client import JsonHttpClient, JsonResponse
from src.transport.redaction import body_snippet

logger = logging.getLogger(__name__)


class SolutionSubmitter:
    """Posts the final SQL query with bearer authentication."""

    def __init__(self, http: JsonHttpClient) -> None:
        self._http = http

    def submit(self, grant: WebhookGrant, sql: str) -> JsonResponse:
        """POST ``{"finalQuery": sql}`` to the grant's webhook.

        Any 2xx counts as success; the response body is only logged.
        """
        logger.info("Submitting SQL solution (%d characters)", len(sql))
        response = self._http.post_json(
            grant.webhook_url,
            SubmissionPayload(final_query=sql),
            headers=grant.authorization_header(),
            sensitive_url=True,
        )
        logger.info(
            "Solution submitted - status: %d, response: %s",
            response.status_code, body_snippet(response.text.encode("utf-8")) or "<empty>",
        )
        return response
