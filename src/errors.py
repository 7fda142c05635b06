"""Error taxonomy for the webhook SQL challenge client.

Every failure the client reports is a ``ChallengeError``. The subclasses are
the closed set of kinds a caller can distinguish:

- ConfigError: startup aborted, one or more configuration rules failed
- InvalidInputError: a selector/catalog precondition was violated
- TransportError: DNS, TCP, TLS or timeout failure
- HttpStatusError: the remote answered with a non-2xx status
- ProtocolError: 2xx, but the body was not the expected JSON shape
- WorkflowError: one of the above, annotated with the failing workflow step
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.models import WorkflowStep


class ChallengeError(Exception):
    """Base class for every error raised by the challenge client."""


@dataclass(frozen=True)
class ConfigViolation:
    """A single failed configuration rule."""

    key: str
    message: str

    def __str__(self) -> str:
        return f"{self.key}: {self.message}"


class ConfigError(ChallengeError):
    """Raised when configuration validation fails. Lists every violation."""

    def __init__(self, violations: list[ConfigViolation]) -> None:
        self.violations = violations
        lines = "\n".join(f"  - {v}" for v in violations)
        count = len(violations)
        noun = "violation" if count == 1 else "violations"
        super().__init__(f"Invalid configuration ({count} {noun}):\n{lines}")

    @property
    def keys(self) -> list[str]:
        return [v.key for v in self.violations]


class InvalidInputError(ChallengeError):
    """Raised when a pure step receives input that configuration should have rejected."""


class TransportError(ChallengeError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, url: str, cause: str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Transport failure calling {url}: {cause}")


class HttpStatusError(ChallengeError):
    """Raised when the remote endpoint returns a non-2xx status."""

    def __init__(self, status_code: int, url: str, body_snippet: str) -> None:
        self.status_code = status_code
        self.url = url
        self.body_snippet = body_snippet
        message = f"HTTP {status_code} from {url}"
        if body_snippet:
            message = f"{message} (body: {body_snippet!r})"
        super().__init__(message)


class ProtocolError(ChallengeError):
    """Raised when a 2xx response does not have the expected JSON shape."""

    def __init__(self, url: str, cause: str) -> None:
        self.url = url
        self.cause = cause
        super().__init__(f"Unexpected response from {url}: {cause}")


class WorkflowError(ChallengeError):
    """Wraps the error that stopped the workflow together with the step name."""

    def __init__(self, step: WorkflowStep, cause: ChallengeError) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"step {step.value} failed: {cause}")
        self.__cause__ = cause
