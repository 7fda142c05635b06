"""Webhook generation: exchange the participant identity for a webhook grant."""

from __future__ import annotations

import logging

from src.errors import ProtocolError
from src.models import UserIdentity, WebhookGrant
from src.transport.client import JsonHttpClient

logger = logging.getLogger(__name__)


class WebhookGenerator:
    """Calls the generator endpoint and validates the returned grant."""

    def __init__(self, http: JsonHttpClient, generator_url: str) -> None:
        self._http = http
        self._generator_url = generator_url

    def generate(self, user: UserIdentity) -> WebhookGrant:
        """POST ``{name, regNo, email}`` and return the webhook grant.

        Raises:
            TransportError, HttpStatusError: From the HTTP client.
            ProtocolError: The response lacked a non-empty ``webhook`` or
                ``accessToken``.
        """
        logger.info("Generating webhook for user: %s", user.email)
        response = self._http.post_json(
            self._generator_url, user, response_model=WebhookGrant,
        )
        grant = response.data
        if not isinstance(grant, WebhookGrant):
            raise ProtocolError(self._generator_url, "response body did not contain a webhook grant")

        logger.info("Webhook grant received")
        logger.debug(
            "Webhook URL: %s, access token length: %d",
            grant.webhook_url, len(grant.access_token.get_secret_value()),
        )
        return grant
