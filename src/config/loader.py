"""Configuration loading and validation.

Values are keyed by Java-style property names (``challenge.user.regNo``) and
resolved from, lowest to highest precedence:

1. built-in defaults (endpoint URLs only)
2. a ``.properties`` file
3. environment variables (``CHALLENGE_USER_REGNO``)
4. explicit overrides, typically CLI flags

Validation reports every violation at once via ``ConfigError``.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator, Mapping
from pathlib import Path

from pydantic import ValidationError

from src.errors import ConfigError, ConfigViolation
from src.models import ChallengeSettings

logger = logging.getLogger(__name__)

DEFAULT_PROPERTIES_FILE = "application.properties"

NAME_KEY = "challenge.user.name"
REG_NO_KEY = "challenge.user.regNo"
EMAIL_KEY = "challenge.user.email"
WEBHOOK_GENERATOR_URL_KEY = "challenge.api.webhookGeneratorUrl"
SUBMISSION_BASE_URL_KEY = "challenge.api.submissionBaseUrl"

PROPERTY_KEYS = (
    NAME_KEY,
    REG_NO_KEY,
    EMAIL_KEY,
    WEBHOOK_GENERATOR_URL_KEY,
    SUBMISSION_BASE_URL_KEY,
)

_USER_KEYS = (NAME_KEY, REG_NO_KEY, EMAIL_KEY)
_API_KEYS = (WEBHOOK_GENERATOR_URL_KEY, SUBMISSION_BASE_URL_KEY)

_PROPERTY_RE = re.compile(r"^(?P<key>[^=:\s]+)(?:\s*[=:]\s*|\s+)?(?P<value>.*)$")
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)")
_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def env_var_name(key: str) -> str:
    """``challenge.user.regNo`` -> ``CHALLENGE_USER_REGNO``."""
    return key.upper().replace(".", "_")


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines, joining trailing-backslash continuations."""
    buffer = ""
    for raw_line in text.splitlines():
        line = raw_line.lstrip()
        if not buffer and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            buffer += line[:-1]
            continue
        yield buffer + line
        buffer = ""
    if buffer:
        yield buffer


def _unescape(value: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if len(escaped) == 5:
            return chr(int(escaped[1:], 16))
        return _ESCAPES.get(escaped, escaped)

    return _ESCAPE_RE.sub(replace, value)


def parse_properties(text: str) -> dict[str, str]:
    """Parse Java ``.properties`` text.

    Supports ``key=value``, ``key: value`` and ``key value`` separators,
    ``#``/``!`` comments, line continuations and the value escapes Java
    tooling writes (``\\:``, ``\\=``, ``\\\\``, ``\\t``, ``\\uXXXX``, ...).
    """
    data: dict[str, str] = {}
    for line in _logical_lines(text):
        match = _PROPERTY_RE.match(line)
        if match is None:
            continue
        data[match.group("key")] = _unescape(match.group("value"))
    return data


def read_properties(path: str | Path) -> dict[str, str]:
    properties_path = Path(path)
    if not properties_path.is_file():
        raise ConfigError([
            ConfigViolation(str(properties_path), "Configuration file not found"),
        ])
    return parse_properties(properties_path.read_text(encoding="utf-8"))


def resolve_values(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, str | None] | None = None,
) -> dict[str, str]:
    """Merge file, environment and override values for the known keys.

    When ``path`` is None, ``application.properties`` in the working
    directory is read if it exists.
    """
    environ = os.environ if environ is None else environ
    values: dict[str, str] = {}

    if path is not None:
        file_values = read_properties(path)
    elif Path(DEFAULT_PROPERTIES_FILE).is_file():
        path = DEFAULT_PROPERTIES_FILE
        file_values = read_properties(path)
    else:
        file_values = {}

    for key, value in file_values.items():
        if key in PROPERTY_KEYS:
            values[key] = value
        elif key.startswith("challenge."):
            logger.warning("Ignoring unknown property %s in %s", key, path)

    for key in PROPERTY_KEYS:
        env_value = environ.get(env_var_name(key))
        if env_value is not None:
            values[key] = env_value

    for key, value in (overrides or {}).items():
        if key not in PROPERTY_KEYS:
            raise ValueError(f"Unknown configuration key: {key}")
        if value is not None:
            values[key] = value

    return values


def _violation(error: Mapping[str, object]) -> ConfigViolation:
    loc = error.get("loc") or ()
    key = "challenge." + ".".join(str(part) for part in loc)  # type: ignore[union-attr]
    return ConfigViolation(key=key, message=str(error["msg"]))


def build_settings(values: Mapping[str, str]) -> ChallengeSettings:
    """Validate resolved values into ``ChallengeSettings``.

    Raises:
        ConfigError: Listing every failed rule, in declaration order.
    """
    data = {
        "user": {key.rsplit(".", 1)[1]: values.get(key, "") for key in _USER_KEYS},
        # Unset URLs fall back to the model defaults.
        "api": {key.rsplit(".", 1)[1]: values[key] for key in _API_KEYS if key in values},
    }
    try:
        return ChallengeSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError([_violation(error) for error in exc.errors()]) from None


def load_settings(
    path: str | Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    overrides: Mapping[str, str | None] | None = None,
) -> ChallengeSettings:
    """Resolve and validate the challenge configuration."""
    settings = build_settings(resolve_values(path, environ=environ, overrides=overrides))
    logger.debug(
        "Configuration loaded: user=%s, webhook generator=%s",
        settings.user.email, settings.api.webhook_generator_url,
    )
    return settings
