"""Synchronous HTTP client for `POST /api/process`.

Architectural role:
    Sends a processing request to a Refiner server and feeds the streamed
    plain-text body into a `StreamConsumer` as it arrives.

Failure handling model:
    - Non-2xx response: the JSON error body is parsed into an `ErrorResponse`
      and raised as `ProcessingFailed`; the body is never read as a stream.
    - Transport failure before a response: `ProcessingFailed` with code
      `NETWORK_ERROR`.
    - Stream broken after some output: `StreamBroken`, with the partial text
      preserved on the exception and in the consumer.

Retry behavior:
    None. Callers decide whether to resubmit (for example on
    `AI_RATE_LIMIT_ERROR`).
"""

import logging
from typing import Any, Dict, Optional

import requests

from refiner.client.stream_consumer import StreamConsumer
from refiner.core.types import ErrorResponse


logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://127.0.0.1:8000"
RETRYABLE_CODES = ("AI_RATE_LIMIT_ERROR", "AI_SERVICE_UNAVAILABLE", "AI_TIMEOUT")


class ProcessingFailed(Exception):
    """Server answered with a structured error instead of a stream."""

    def __init__(self, error: ErrorResponse):
        self.error = error
        super().__init__(f"{error.code}: {error.message}")

    @property
    def retryable(self) -> bool:
        return self.error.code in RETRYABLE_CODES


class StreamBroken(Exception):
    """The response stream failed after it started; output so far is kept."""

    def __init__(self, partial_text: str, cause: Optional[BaseException] = None):
        self.partial_text = partial_text
        self.cause = cause
        super().__init__(
            f"Stream interrupted after {len(partial_text)} characters"
            + (f": {cause.__class__.__name__}" if cause is not None else "")
        )


def error_from_response(response: requests.Response) -> ErrorResponse:
    """Parse a failed response into an `ErrorResponse`.

    Edge cases:
        Bodies that are not the JSON error shape fall back to a generic
        `HTTP_ERROR` carrying the status line.
    """
    fallback = f"API Error: {response.status_code} {response.reason or ''}".strip()
    try:
        data = response.json()
    except ValueError:
        data = None

    if not isinstance(data, dict):
        return ErrorResponse(code="HTTP_ERROR", message=fallback, status=response.status_code)

    return ErrorResponse(
        code=str(data.get("code") or "HTTP_ERROR"),
        message=str(data.get("error") or fallback),
        status=response.status_code,
        details=data.get("details"),
    )


class RefinerClient:
    """Client for one Refiner server.

    Args:
        base_url: Server root, e.g. `http://127.0.0.1:8000`.
        timeout: `(connect, read)` seconds passed to `requests`; the read
            timeout bounds the wait for each chunk, not the whole stream.
        session: Optional shared `requests.Session`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVER_URL,
        timeout=(10, 120),
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def process_url(self) -> str:
        return f"{self.base_url}/api/process"

    def process(self, payload: Dict[str, Any], consumer: Optional[StreamConsumer] = None) -> str:
        """Submit `payload` and stream the result into `consumer`.

        Returns:
            Final output text (partial text if the consumer was cancelled).

        Raises:
            ProcessingFailed: Structured server error or unreachable server.
            StreamBroken: Stream failed mid-way.
        """
        consumer = consumer or StreamConsumer()

        try:
            response = self.session.post(
                self.process_url,
                json=payload,
                stream=True,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as err:
            logger.error("Request to %s failed: %s", self.process_url, err.__class__.__name__)
            raise ProcessingFailed(
                ErrorResponse(
                    code="NETWORK_ERROR",
                    message=f"Could not reach the server at {self.base_url}.",
                    status=0,
                    details={"reason": err.__class__.__name__},
                )
            ) from err

        with response:
            if not response.ok:
                error = error_from_response(response)
                logger.warning("Server rejected request: code=%s status=%s", error.code, error.status)
                raise ProcessingFailed(error)

            response.encoding = "utf-8"
            try:
                return consumer.consume(
                    response.iter_content(chunk_size=None, decode_unicode=True)
                )
            except requests.exceptions.RequestException as err:
                logger.error(
                    "Stream broke after %d chunks: %s", consumer.chunks, err.__class__.__name__
                )
                raise StreamBroken(consumer.text, err) from err

    def list_models(self) -> Dict[str, Any]:
        response = self.session.get(f"{self.base_url}/api/models", timeout=self.timeout)
        response.raise_for_status()
        return response.json()
