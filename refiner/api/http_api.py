"""HTTP API adapter for the Refiner pipeline.

Architectural role:
- Expose the `POST /api/process` streaming contract.
- Enforce request validation before any provider call.
- Delegate prompt/parameter preparation and the provider call to
  `refiner.llm.service.open_processing_stream`.
- Relay fragments to the caller as plain text, in arrival order.

Endpoint responsibilities:
- `POST /api/process`: validate, open the provider stream, relay fragments.
- `GET /api/models`: list supported models and their tiers.
- `GET /health`: liveness plus credential presence.

API request lifecycle (`POST /api/process`):
1. Read the raw body and decode it as a JSON object.
2. Validate and normalize it into a `ProcessingRequest`.
3. Build the prompt and parameters and open the provider stream.
4. Return a `StreamingResponse` whose body is the raw fragment text.

Error handling strategy:
- Every failure before the first byte becomes a JSON `{code, error, details?}`
  body with the status chosen by `refiner.core.errors`.
- Unexpected exceptions are logged with traceback and classified as
  `INTERNAL_SERVER_ERROR` (details only in development).
- A mid-stream provider failure is logged and re-raised, which aborts the
  chunked response; fragments already sent are kept by the client.

Cancellation:
- The relay checks for client disconnect before each fragment and always
  closes the upstream response, tearing down the provider connection.

Side effects:
- Builds `ProviderConfig` from the environment when none is injected.
- Configures process logging on app creation.

Run:
    uvicorn refiner.api.http_api:create_app --factory
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from refiner import __version__
from refiner.core.errors import RefinerError, StreamInterruptedError, classify_exception
from refiner.core.logging_setup import configure_logging
from refiner.core.options import DEFAULT_MODEL, MODEL_TIERS
from refiner.core.types import ErrorBody, ErrorResponse
from refiner.llm.gateway import CompletionGateway, FragmentStream
from refiner.llm.provider_config import ProviderConfig
from refiner.llm.service import open_processing_stream
from refiner.validation.request_validator import parse_body, validate_request


logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_RESPONSES = {
    status: {"model": ErrorBody}
    for status in (400, 401, 429, 500, 502, 503, 504)
}

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def error_response(error: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=error.status, content=error.to_body())


# ============================================================
# Fragment Relay
# ============================================================

async def relay_fragments(stream: FragmentStream, request: Request):
    """
    Yield provider fragments to the HTTP response as they arrive.

    Ordering:
    - Fragments are yielded one-for-one in the order the stream produces them.

    Cancellation:
    - Stops when the client disconnects; the upstream response is closed in
      `finally` on every exit path.

    Error handling:
    - `StreamInterruptedError` is logged and re-raised so the response is
      terminated instead of silently truncated.
    """
    relayed = 0
    try:
        while stream.has_more:
            if await request.is_disconnected():
                logger.info("Client disconnected after %d fragments", relayed)
                return

            fragment = await stream.next_fragment()
            if fragment is None:
                break

            relayed += 1
            yield fragment

        logger.info("Stream complete: %d fragments relayed", relayed)

    except StreamInterruptedError as exc:
        logger.error(
            "Stream interrupted after %d fragments: %s (reason=%s)",
            relayed,
            exc.message,
            exc.reason,
        )
        raise

    except asyncio.CancelledError:
        logger.info("Stream cancelled after %d fragments", relayed)
        raise

    finally:
        await stream.aclose()


# ============================================================
# Endpoints
# ============================================================

@router.post("/api/process", responses=ERROR_RESPONSES)
async def process_text(request: Request):
    """
    Summarize or rewrite text, streaming the provider output as plain text.

    Input validation behavior:
    - Runs `parse_body` + `validate_request`; the first failing check decides
      the 400 error code.

    Response formatting:
    - Success: `200 text/plain`, raw fragments, no envelope.
    - Failure: JSON `{code, error, details?}` with the classified status.
    """
    config: ProviderConfig = request.app.state.config
    gateway: CompletionGateway = request.app.state.gateway

    try:
        body = parse_body(await request.body())
        processing = validate_request(body, allow_unknown_model=config.allow_unknown_model)

        if config.debug:
            logger.debug("Input text (start): %r", processing.text[:50])

        stream = await open_processing_stream(processing, gateway)

    except RefinerError as exc:
        error = exc.to_response()
        logger.info("Request rejected: code=%s status=%s", error.code, error.status)
        return error_response(error)

    except Exception as exc:
        logger.exception("Unexpected error while preparing processing stream")
        return error_response(classify_exception(exc, development=config.development))

    return StreamingResponse(
        relay_fragments(stream, request),
        media_type="text/plain; charset=utf-8",
        headers=STREAM_HEADERS,
    )


@router.get("/api/models")
def list_models():
    """Return supported models with their capability tier."""
    return {
        "object": "list",
        "data": [
            {
                "id": model,
                "object": "model",
                "tier": tier,
                "default": model == DEFAULT_MODEL,
            }
            for model, tier in MODEL_TIERS.items()
        ],
    }


@router.get("/health")
def health(request: Request):
    config: ProviderConfig = request.app.state.config
    return {"status": "ok", "apiKeyConfigured": bool(config.api_key)}


# ============================================================
# Application Factory
# ============================================================

def create_app(
    config: Optional[ProviderConfig] = None,
    gateway: Optional[CompletionGateway] = None,
) -> FastAPI:
    """
    Build the FastAPI application with an explicit configuration and gateway.

    Both collaborators live for the lifetime of the app; the gateway is closed
    on shutdown.
    """
    config = config or ProviderConfig.from_env()
    configure_logging(config.log_level)
    gateway = gateway or CompletionGateway(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Refiner API starting up (environment=%s)", config.environment)
        if not config.api_key:
            logger.warning("No provider API key configured; /api/process will fail")
        yield
        logger.info("Refiner API shutting down")
        await gateway.aclose()

    app = FastAPI(
        title="Refiner API",
        description="Streaming text summarization and rewriting",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.gateway = gateway
    app.include_router(router)
    return app
