"""JSON-over-HTTPS client shared by both challenge endpoints.

Maps every failure onto the challenge error taxonomy:

- no HTTP response (DNS, connect, TLS, timeout) -> TransportError
- non-2xx status -> HttpStatusError with the first 4 KiB of the body
- an undecodable body, or 2xx with an unusable JSON body -> ProtocolError
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from src.errors import HttpStatusError, ProtocolError, TransportError
from src.transport.redaction import body_snippet, mask_url, redact_headers

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10.0
READ_TIMEOUT_SECONDS = 30.0


@dataclass
class JsonResponse:
    """A fully read 2xx response."""

    status_code: int
    text: str
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None


def _is_json_content_type(content_type: str) -> bool:
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def _describe_validation_error(exc: ValidationError) -> str:
    # Only loc and msg: the rejected input may contain the token.
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "body"
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


class JsonHttpClient:
    """Synchronous JSON client over a pooled ``httpx.Client``.

    Use as a context manager so the connection pool is closed on every exit
    path. No retries are attempted.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = READ_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(read_timeout, connect=connect_timeout),
            transport=transport,
        )

    def __enter__(self) -> JsonHttpClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def post_json(
        self,
        url: str,
        body: Mapping[str, Any] | BaseModel,
        *,
        headers: Mapping[str, str] | None = None,
        response_model: type[BaseModel] | None = None,
        sensitive_url: bool = False,
    ) -> JsonResponse:
        """POST ``body`` as JSON and return the response.

        Args:
            url: Absolute target URL.
            body: Mapping, or a pydantic model dumped by alias.
            headers: Extra headers, merged over the JSON defaults.
            response_model: When given, the JSON body is validated into this
                model and returned as ``JsonResponse.data``.
            sensitive_url: Mask the URL path in INFO-level log lines.

        Raises:
            TransportError: No HTTP response was received.
            HttpStatusError: The response status was not 2xx.
            ProtocolError: The body could not be decoded, or
                ``response_model`` was given and the body was not JSON of
                that shape.
        """
        log_url = mask_url(url) if sensitive_url else url
        if isinstance(body, BaseModel):
            payload = body.model_dump(mode="json", by_alias=True)
        else:
            payload = dict(body)
        content = json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")

        request_headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if headers:
            request_headers.update(headers)

        logger.info("HTTP request - method: POST, url: %s", log_url)
        if sensitive_url:
            logger.debug("Request URL: %s", url)
        logger.debug("Request headers: %s", redact_headers(request_headers))
        logger.debug("Request body: %s", content.decode("utf-8"))

        try:
            response = self._client.post(url, content=content, headers=request_headers)
        except httpx.TimeoutException as exc:
            raise TransportError(url, f"timed out ({type(exc).__name__})") from exc
        except httpx.DecodingError as exc:
            # Response arrived but its Content-Encoding could not be decoded
            raise ProtocolError(url, f"undecodable response body: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransportError(url, f"{type(exc).__name__}: {exc}") from exc

        logger.info("HTTP response - status: %d, url: %s", response.status_code, log_url)
        logger.debug("Response headers: %s", redact_headers(response.headers))
        logger.debug("Response body: %s", response.text)

        if not response.is_success:
            snippet = body_snippet(response.content)
            logger.error(
                "HTTP error response - status: %d, url: %s, body: %s",
                response.status_code, log_url, snippet,
            )
            raise HttpStatusError(response.status_code, url, snippet)

        result = JsonResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )
        if response_model is not None:
            result.data = self._parse(response, response_model, url)
        return result

    @staticmethod
    def _parse(response: httpx.Response, model: type[BaseModel], url: str) -> BaseModel:
        content_type = response.headers.get("content-type", "")
        if not _is_json_content_type(content_type):
            raise ProtocolError(
                url, f"expected a JSON response, got content type {content_type or 'none'!r}",
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProtocolError(url, f"invalid JSON body: {exc}") from exc
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ProtocolError(url, _describe_validation_error(exc)) from exc
