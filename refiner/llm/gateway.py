"""Streaming completion gateway.

Architectural role:
    Opens one streaming chat-completion request per call against an
    OpenAI-compatible provider and exposes the response as a `FragmentStream`,
    an explicit pull-based sequence of text fragments.

Model invocation flow:
    `service.open_processing_stream` -> `CompletionGateway.open_stream(...)`
    -> provider SSE response -> `FragmentStream.next_fragment()` per fragment.

Streaming contract:
    - A fragment is released as soon as its SSE `data:` line is parsed; the
      response is never buffered in full.
    - Fragments keep provider order; none are merged, skipped or repeated.
    - `data: [DONE]` is the only clean end of the sequence. A body that ends
      without it was cut off upstream and raises `StreamInterruptedError`
      (reason `incomplete`).
    - A provider error object or transport failure mid-stream raises
      `StreamInterruptedError`. Fragments already handed out stay valid.
    - The stream is forward-only and not restartable: once finished or
      closed, `next_fragment()` keeps returning `None`.

Retry behavior:
    None. Each call makes exactly one HTTP request.

Timeouts:
    Connect and per-chunk read timeouts come from `ProviderConfig.timeout()`;
    a total deadline (`stream_deadline`) bounds the whole stream.

Failure mapping:
    Non-2xx responses become `ProviderHTTPError` (classified by
    `refiner.core.errors.PROVIDER_ERROR_TABLE`); transport failures before the
    first byte become `ProviderTimeoutError` / `ProviderConnectionError`.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx

from refiner.core.errors import (
    MissingApiKeyError,
    ProviderConnectionError,
    ProviderHTTPError,
    ProviderTimeoutError,
    StreamInterruptedError,
)
from refiner.core.types import GenerationParameters, PromptMessage
from refiner.llm.provider_config import ProviderConfig


logger = logging.getLogger(__name__)


# =========================================================
# SSE LINE PARSING
# =========================================================

EVENT_SKIP = "skip"
EVENT_TEXT = "text"
EVENT_DONE = "done"
EVENT_ERROR = "error"


def _extract_delta(data: Dict[str, Any]) -> Optional[str]:
    """Pull delta text from the common OpenAI-compatible chunk shapes."""
    if "choices" in data:
        choices = data.get("choices") or []
        if not choices:
            return None
        choice = choices[0] or {}

        delta = choice.get("delta")
        if isinstance(delta, dict) and delta.get("content"):
            return delta["content"]

        message = choice.get("message")
        if isinstance(message, dict) and message.get("content"):
            return message["content"]

        if choice.get("text"):
            return choice["text"]
        return None

    message = data.get("message")
    if isinstance(message, dict) and message.get("content"):
        return message["content"]
    return None


def parse_stream_line(line: str) -> Tuple[str, Any]:
    """Classify one line of a provider event stream.

    Returns:
        `(EVENT_TEXT, fragment)`, `(EVENT_DONE, None)`,
        `(EVENT_ERROR, error_dict)` or `(EVENT_SKIP, None)`.

    Edge cases:
        - Blank lines, SSE comments (`:`), non-data fields and undecodable
          payloads are skipped.
        - Chunks without content (role announcements, finish markers) are
          skipped.
    """
    line = line.strip()
    if not line or line.startswith(":"):
        return EVENT_SKIP, None

    if line.startswith("data:"):
        line = line[5:].strip()
    elif line.startswith(("event:", "id:", "retry:")):
        return EVENT_SKIP, None

    if line == "[DONE]":
        return EVENT_DONE, None

    try:
        data = json.loads(line)
    except ValueError:
        logger.debug("Skipping undecodable stream line: %r", line[:200])
        return EVENT_SKIP, None

    if not isinstance(data, dict):
        return EVENT_SKIP, None

    if data.get("error"):
        error = data["error"]
        if not isinstance(error, dict):
            error = {"message": str(error)}
        return EVENT_ERROR, error

    delta = _extract_delta(data)
    if delta:
        return EVENT_TEXT, delta
    return EVENT_SKIP, None


# =========================================================
# FRAGMENT STREAM
# =========================================================

class FragmentStream:
    """Pull-based, finite, forward-only sequence of output fragments.

    Protocol:
        - `has_more`: `False` once the end signal was seen, an error was
          raised, or the stream was closed.
        - `await next_fragment()`: next fragment, or `None` at the end.
        - `await aclose()`: release the provider connection (idempotent).

    `async for fragment in stream` is supported on top of the same protocol.
    """

    def __init__(self, response: httpx.Response, deadline: Optional[float] = None):
        self._response = response
        self._lines = response.aiter_lines()
        self._deadline = deadline
        self._finished = False
        self._closed = False
        self.fragments_emitted = 0

    @property
    def has_more(self) -> bool:
        return not self._finished

    async def next_fragment(self) -> Optional[str]:
        if self._finished:
            return None

        try:
            if self._deadline is None:
                fragment = await self._pull()
            else:
                remaining = self._deadline - asyncio.get_running_loop().time()
                if remaining <= 0:
                    raise asyncio.TimeoutError()
                fragment = await asyncio.wait_for(self._pull(), timeout=remaining)

        except asyncio.TimeoutError:
            await self.aclose()
            raise StreamInterruptedError(
                "The AI service stream exceeded its time limit.",
                reason="deadline",
                fragments_emitted=self.fragments_emitted,
            ) from None

        except httpx.TimeoutException as exc:
            await self.aclose()
            raise StreamInterruptedError(
                "The AI service stopped sending data.",
                reason="read_timeout",
                fragments_emitted=self.fragments_emitted,
            ) from exc

        except (httpx.HTTPError, httpx.StreamError) as exc:
            await self.aclose()
            raise StreamInterruptedError(
                reason=exc.__class__.__name__,
                fragments_emitted=self.fragments_emitted,
            ) from exc

        except StreamInterruptedError:
            await self.aclose()
            raise

        if fragment is None:
            await self.aclose()
            return None

        self.fragments_emitted += 1
        return fragment

    async def _pull(self) -> Optional[str]:
        while True:
            try:
                line = await self._lines.__anext__()
            except StopAsyncIteration:
                raise StreamInterruptedError(
                    "The AI service stream ended before completion.",
                    reason="incomplete",
                    fragments_emitted=self.fragments_emitted,
                ) from None

            kind, value = parse_stream_line(line)
            if kind == EVENT_TEXT:
                return value
            if kind == EVENT_DONE:
                return None
            if kind == EVENT_ERROR:
                raise StreamInterruptedError(
                    value.get("message") or None,
                    reason="provider_error",
                    fragments_emitted=self.fragments_emitted,
                    provider_code=value.get("code"),
                )

    async def aclose(self) -> None:
        self._finished = True
        if self._closed:
            return
        self._closed = True
        await self._response.aclose()

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        fragment = await self.next_fragment()
        if fragment is None:
            raise StopAsyncIteration
        return fragment


# =========================================================
# GATEWAY
# =========================================================

def build_payload(
    messages: Sequence[PromptMessage], parameters: GenerationParameters, model: str
) -> Dict[str, Any]:
    """Provider request body for a streaming chat completion."""
    return {
        "model": model,
        "messages": [message.to_dict() for message in messages],
        "temperature": parameters.temperature,
        "max_tokens": parameters.max_output_tokens,
        "stream": True,
    }


def provider_error_from_response(response: httpx.Response) -> ProviderHTTPError:
    """Build a `ProviderHTTPError` from an already-read error response.

    Edge cases:
        Non-JSON bodies keep the status and use the raw text as message.
    """
    provider_code = None
    provider_type = None
    provider_message = None

    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        error = data["error"]
        provider_code = error.get("code")
        provider_type = error.get("type")
        provider_message = error.get("message")
    elif response.text:
        provider_message = response.text[:500]

    if provider_code is not None and not isinstance(provider_code, str):
        provider_code = str(provider_code)

    return ProviderHTTPError(
        response.status_code,
        provider_code=provider_code,
        provider_type=provider_type,
        provider_message=provider_message,
        headers=response.headers,
    )


class CompletionGateway:
    """Streaming client for an OpenAI-compatible chat-completions endpoint.

    Lifetime:
        Construct once per process with an explicit `ProviderConfig`. When no
        `client` is injected the gateway owns its `httpx.AsyncClient` and
        closes it in `aclose()`.
    """

    def __init__(self, config: ProviderConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout())

    async def open_stream(
        self,
        messages: Sequence[PromptMessage],
        parameters: GenerationParameters,
        model: str,
    ) -> FragmentStream:
        """Open a streaming completion and return its fragment stream.

        Raises:
            MissingApiKeyError: No credential configured (no I/O performed).
            ProviderTimeoutError: Connect/first-response timeout.
            ProviderConnectionError: Transport failure before a response.
            ProviderHTTPError: Non-2xx provider status.
        """
        if not self.config.api_key:
            logger.error("Provider API key is not configured")
            raise MissingApiKeyError()

        payload = build_payload(messages, parameters, model)
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }

        logger.info(
            "Opening completion stream model=%s temperature=%s max_tokens=%s messages=%d",
            model,
            parameters.temperature,
            parameters.max_output_tokens,
            len(payload["messages"]),
        )

        deadline = asyncio.get_running_loop().time() + self.config.stream_deadline
        request = self._client.build_request(
            "POST",
            self.config.completions_url,
            json=payload,
            headers=headers,
            timeout=self.config.timeout(),
        )

        try:
            response = await self._client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            logger.error("Provider request timed out: %s", exc.__class__.__name__)
            raise ProviderTimeoutError(phase="connect") from exc
        except httpx.RequestError as exc:
            logger.error("Provider request failed: %s", exc.__class__.__name__)
            raise ProviderConnectionError(reason=exc.__class__.__name__) from exc

        if not response.is_success:
            body_read = True
            try:
                await response.aread()
            except httpx.HTTPError as exc:
                logger.warning("Could not read provider error body: %s", exc.__class__.__name__)
                body_read = False
            finally:
                await response.aclose()

            if body_read:
                error = provider_error_from_response(response)
            else:
                error = ProviderHTTPError(response.status_code, headers=response.headers)
            logger.error(
                "Provider returned status=%s code=%s type=%s",
                error.provider_status,
                error.provider_code,
                error.provider_type,
            )
            raise error

        return FragmentStream(response, deadline=deadline)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
