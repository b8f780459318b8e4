"""Progressive consumer for streamed processing output.

Architectural role:
    Reads fragments from any ordered source (an HTTP response body, a
    `FragmentStream`, a list in tests), appends them to a display buffer and
    reports every step to caller callbacks.

Contract:
    - `on_update(fragment, text)` fires after every non-empty fragment, with
      the buffer already extended.
    - Fragments are appended in arrival order; nothing is reordered or dropped.
    - `finish()` marks the result final and fires `on_complete(text)` once.
    - `cancel()` stops the read loop before the next fragment is taken; a
      cancelled consumer never completes.
    - On failure the partial buffer is left intact for the caller.
"""

import logging
import time
from typing import AsyncIterable, Callable, Iterable, Optional


logger = logging.getLogger(__name__)

UpdateCallback = Callable[[str, str], None]
CompleteCallback = Callable[[str], None]


class StreamConsumer:
    """Append-only buffer fed by a fragment stream."""

    def __init__(
        self,
        on_update: Optional[UpdateCallback] = None,
        on_complete: Optional[CompleteCallback] = None,
    ):
        self.on_update = on_update
        self.on_complete = on_complete
        self._parts = []
        self.chunks = 0
        self.is_complete = False
        self.cancelled = False
        self.started_at: Optional[float] = None

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def feed(self, fragment: str) -> None:
        if self.is_complete:
            raise RuntimeError("Cannot feed a completed stream consumer")
        if not fragment:
            return
        if self.started_at is None:
            self.started_at = time.monotonic()

        self._parts.append(fragment)
        self.chunks += 1
        if self.on_update is not None:
            self.on_update(fragment, self.text)

    def finish(self) -> str:
        if self.is_complete:
            return self.text
        self.is_complete = True
        result = self.text

        elapsed = time.monotonic() - self.started_at if self.started_at else 0.0
        logger.debug(
            "Stream finished: %d chunks, %d chars in %.2fs", self.chunks, len(result), elapsed
        )
        if self.on_complete is not None:
            self.on_complete(result)
        return result

    def cancel(self) -> None:
        self.cancelled = True

    def consume(self, fragments: Iterable[str]) -> str:
        """Drain a synchronous fragment source; returns the final text.

        On cancellation the source is closed when it supports `close()`.
        """
        for fragment in fragments:
            if self.cancelled:
                break
            self.feed(fragment)
            if self.cancelled:
                break

        if self.cancelled:
            logger.info("Consumer cancelled after %d chunks", self.chunks)
            if hasattr(fragments, "close"):
                fragments.close()
            return self.text
        return self.finish()

    async def aconsume(self, fragments: AsyncIterable[str]) -> str:
        """Drain an asynchronous fragment source; returns the final text.

        On cancellation the source is closed when it supports `aclose()`.
        """
        async for fragment in fragments:
            if self.cancelled:
                break
            self.feed(fragment)
            if self.cancelled:
                break

        if self.cancelled:
            logger.info("Consumer cancelled after %d chunks", self.chunks)
            if hasattr(fragments, "aclose"):
                await fragments.aclose()
            return self.text
        return self.finish()
