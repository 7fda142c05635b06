"""Shared Pydantic data models for the webhook SQL challenge client."""

from __future__ import annotations

import re
from enum import Enum
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

DEFAULT_WEBHOOK_GENERATOR_URL = "https://bfhldevapigw.healthrx.co.in/hiring/generateWebhook/JAVA"
DEFAULT_SUBMISSION_BASE_URL = "https://bfhldevapigw.healthrx.co.in/hiring/testWebhook/JAVA"

# RFC 5321 addr-spec, dot-atom local part only (no quoted strings)
_ATOM = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]+"
_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
_EMAIL_RE = re.compile(rf"^{_ATOM}(?:\.{_ATOM})*@{_LABEL}(?:\.{_LABEL})*$")
_TRAILING_DIGITS_RE = re.compile(r"[0-9]{2}")


def is_valid_email(value: str) -> bool:
    return len(value) <= 254 and _EMAIL_RE.match(value) is not None


def has_trailing_digits(reg_no: str) -> bool:
    """True when ``reg_no`` has at least two characters and ends in two ASCII digits."""
    return len(reg_no) >= 2 and _TRAILING_DIGITS_RE.fullmatch(reg_no[-2:]) is not None


def is_absolute_url(url: str, schemes: tuple[str, ...] = ("http", "https")) -> bool:
    parts = urlsplit(url)
    return parts.scheme.lower() in schemes and bool(parts.netloc)


# --- Enums ---


class QuestionId(str, Enum):
    """The two SQL problems, assigned by parity of the registration number."""

    Q1 = "Q1"  # odd
    Q2 = "Q2"  # even


class WorkflowStep(str, Enum):
    GENERATE_WEBHOOK = "generate_webhook"
    SELECT_QUESTION = "select_question"
    RESOLVE_SQL = "resolve_sql"
    SUBMIT_SOLUTION = "submit_solution"


class WorkflowState(str, Enum):
    START = "start"
    AWAITING_GRANT = "awaiting_grant"
    AWAITING_SUBMISSION = "awaiting_submission"
    DONE = "done"
    FAILED = "failed"


# --- Configuration Models ---


class UserIdentity(BaseModel):
    """Participant identity sent to the webhook generator.

    Serialises by alias to the wire shape ``{"name", "regNo", "email"}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    name: str
    reg_no: str = Field(alias="regNo")
    email: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "User name is required")
        return value

    @field_validator("reg_no")
    @classmethod
    def _check_reg_no(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "Registration number is required")
        if len(value) < 2:
            raise PydanticCustomError(
                "reg_no_length", "Registration number must have at least 2 characters",
            )
        if not has_trailing_digits(value):
            raise PydanticCustomError(
                "reg_no_digits",
                "Registration number must end with exactly two digits (found: '{found}')",
                {"found": value[-2:]},
            )
        return value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("required", "Email is required")
        if not is_valid_email(value):
            raise PydanticCustomError("email", "Email must be valid")
        return value


_URL_LABELS = {
    "webhook_generator_url": "Webhook generator URL",
    "submission_base_url": "Submission base URL",
}


class EndpointConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    webhook_generator_url: str = Field(
        default=DEFAULT_WEBHOOK_GENERATOR_URL, alias="webhookGeneratorUrl",
    )
    submission_base_url: str = Field(
        default=DEFAULT_SUBMISSION_BASE_URL, alias="submissionBaseUrl",
    )

    @field_validator("webhook_generator_url", "submission_base_url")
    @classmethod
    def _check_https(cls, value: str, info: ValidationInfo) -> str:
        label = _URL_LABELS[info.field_name or ""]
        if not value:
            raise PydanticCustomError("required", "{label} is required", {"label": label})
        if not is_absolute_url(value, schemes=("https",)):
            raise PydanticCustomError(
                "https_url",
                "{label} must be an absolute https:// URL",
                {"label": label},
            )
        return value


class ChallengeSettings(BaseModel):
    """Validated startup configuration. Read-only once built."""

    model_config = ConfigDict(frozen=True)

    user: UserIdentity
    api: EndpointConfig = Field(default_factory=EndpointConfig)


# --- Wire Models ---


class WebhookGrant(BaseModel):
    """Webhook URL and bearer token issued by the generator endpoint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    webhook_url: str = Field(alias="webhook")
    access_token: SecretStr = Field(alias="accessToken")

    @field_validator("webhook_url")
    @classmethod
    def _check_webhook(cls, value: str) -> str:
        if not value.strip():
            raise PydanticCustomError("missing", "webhook is missing or empty")
        if not is_absolute_url(value):
            raise PydanticCustomError("absolute_url", "webhook is not an absolute URL")
        return value

    @field_validator("access_token")
    @classmethod
    def _check_token(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise PydanticCustomError("missing", "accessToken is missing or empty")
        return value

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token.get_secret_value()}"}


class SubmissionPayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    final_query: str = Field(alias="finalQuery")
