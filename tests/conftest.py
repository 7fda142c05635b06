"""Shared test fixtures for the webhook SQL challenge client."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from src.models import (
    ChallengeSettings,
    EndpointConfig,
    UserIdentity,
    WebhookGrant,
)

GENERATOR_URL = "https://challenge.test/hiring/generateWebhook/JAVA"
SUBMISSION_BASE_URL = "https://challenge.test/hiring/testWebhook/JAVA"
WEBHOOK_URL = "https://challenge.test/hiring/testWebhook/JAVA/session-42"
ACCESS_TOKEN = "eyJhbGciOiJIUzI1NiJ9.c2VjcmV0LXRva2Vu.sig"


@pytest.fixture(autouse=True)
def _reset_package_logging() -> Iterator[None]:
    """Undo configure_logging so handlers never outlive a test's stderr."""
    yield
    package_logger = logging.getLogger("src")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)


@pytest.fixture
def cli_runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner in an empty working directory with no CHALLENGE_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CHALLENGE_USER_NAME",
        "CHALLENGE_USER_REGNO",
        "CHALLENGE_USER_EMAIL",
        "CHALLENGE_API_WEBHOOKGENERATORURL",
        "CHALLENGE_API_SUBMISSIONBASEURL",
        "CHALLENGE_CONFIG_FILE",
        "CHALLENGE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return CliRunner()


# --- Factory functions for test data ---


def make_user(**kwargs: Any) -> UserIdentity:
    """Factory for UserIdentity with sensible defaults."""
    defaults: dict[str, Any] = {
        "name": "John Doe",
        "reg_no": "REG12347",
        "email": "john@example.com",
    }
    defaults.update(kwargs)
    return UserIdentity(**defaults)


def make_settings(**user_kwargs: Any) -> ChallengeSettings:
    """Factory for ChallengeSettings pointing at the test endpoints."""
    return ChallengeSettings(
        user=make_user(**user_kwargs),
        api=EndpointConfig(
            webhook_generator_url=GENERATOR_URL,
            submission_base_url=SUBMISSION_BASE_URL,
        ),
    )


def make_grant(**kwargs: Any) -> WebhookGrant:
    """Factory for WebhookGrant with sensible defaults."""
    defaults: dict[str, Any] = {
        "webhook_url": WEBHOOK_URL,
        "access_token": ACCESS_TOKEN,
    }
    defaults.update(kwargs)
    return WebhookGrant(**defaults)


def grant_response(**overrides: Any) -> httpx.Response:
    body: dict[str, Any] = {"webhook": WEBHOOK_URL, "accessToken": ACCESS_TOKEN}
    body.update(overrides)
    return httpx.Response(200, json=body)


class ChallengeServer:
    """Request handler for ``httpx.MockTransport`` that records every request.

    Routes the generator URL and the webhook URL to configurable responses;
    anything else gets a 404.
    """

    def __init__(
        self,
        grant: httpx.Response | Exception | None = None,
        submission: httpx.Response | Exception | None = None,
    ) -> None:
        self.grant = grant if grant is not None else grant_response()
        self.submission = (
            submission if submission is not None
            else httpx.Response(200, json={"success": True})
        )
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url == GENERATOR_URL:
            return self._reply(self.grant)
        if url == WEBHOOK_URL:
            return self._reply(self.submission)
        return httpx.Response(404, text="not found")

    @staticmethod
    def _reply(outcome: httpx.Response | Exception) -> httpx.Response:
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def json_body(self, index: int) -> Any:
        return json.loads(self.requests[index].content)
