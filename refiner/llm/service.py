"""Request-to-stream adapter.

Architectural role:
    Bridges a validated `ProcessingRequest` to the completion gateway:
    prompt assembly (`refiner.prompting`) + parameter selection
    (`refiner.llm.parameters`) -> `CompletionGateway.open_stream`.

Determinism:
    Messages and parameters are deterministic for a given request. Generated
    output is not, since inference runs remotely.

Failure scenarios:
    Gateway errors (`MissingApiKeyError`, `ProviderError` subclasses)
    propagate unchanged to the API layer for classification.
"""

import logging
from typing import List, Tuple

from refiner.core.types import GenerationParameters, ProcessingRequest, PromptMessage
from refiner.llm.gateway import CompletionGateway, FragmentStream
from refiner.llm.parameters import parameters_for
from refiner.prompting.prompt_builder import build_messages


logger = logging.getLogger(__name__)


def prepare_request(
    processing: ProcessingRequest,
) -> Tuple[List[PromptMessage], GenerationParameters]:
    """Return the prompt messages and generation parameters for a request."""
    return build_messages(processing), parameters_for(processing)


async def open_processing_stream(
    processing: ProcessingRequest, gateway: CompletionGateway
) -> FragmentStream:
    """Build the prompt for `processing` and open its completion stream."""
    messages, parameters = prepare_request(processing)
    logger.info(
        "Processing mode=%s option=%s model=%s structure=%s",
        processing.mode,
        processing.summary_level if processing.mode == "summarize" else processing.tone,
        processing.model,
        processing.prompt_structure,
    )
    return await gateway.open_stream(messages, parameters, processing.model)
