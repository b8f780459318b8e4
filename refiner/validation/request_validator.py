"""Inbound request validation for `POST /api/process`.

Validation model:
    Short-circuiting checks in a fixed order; the first failing check raises a
    `RequestValidationError` with the most specific taxonomy code:

    1. body is a JSON object                   -> INVALID_JSON
    2. `text` is a non-blank string            -> MISSING_TEXT
    3. trimmed length within bounds            -> TEXT_TOO_SHORT / TEXT_TOO_LONG
    4. `mode` is supported                     -> INVALID_MODE
    5. mode option (`summaryLengthLevel`/`tone`) -> INVALID_SUMMARY_LEVEL / INVALID_TONE
       (`summaryLengthLevel` must be a JSON integer; `3.0` is rejected)
    6. `model` is supported                    -> INVALID_MODEL
    7. optional options (audience, format, goal, prompt structure)

Model policy:
    An absent `model` resolves to `DEFAULT_MODEL`. An unknown `model` is
    rejected unless `allow_unknown_model=True`, in which case the default is
    substituted and a warning is logged.

Determinism:
    Pure for a given body and policy flag; validating the same body twice
    yields equal results or equal errors. No network or filesystem access.
"""

import json
import logging
from typing import Any, Dict, Union

from refiner.core.errors import ErrorCode, RequestValidationError
from refiner.core.options import (
    DEFAULT_AUDIENCE,
    DEFAULT_MODEL,
    DEFAULT_PROMPT_STRUCTURE,
    DEFAULT_REWRITE_GOAL,
    DEFAULT_SUMMARY_FORMAT,
    MAX_INPUT_TEXT_LENGTH,
    MIN_INPUT_TEXT_LENGTH,
    MODE_SUMMARIZE,
    REWRITE_GOALS,
    SUMMARY_FORMATS,
    SUPPORTED_MODELS,
    TARGET_AUDIENCES,
    VALID_MODES,
    VALID_PROMPT_STRUCTURES,
    VALID_SUMMARY_LEVELS,
    VALID_TONES,
)
from refiner.core.types import ProcessingRequest


logger = logging.getLogger(__name__)


def parse_body(raw: Union[bytes, str]) -> Dict[str, Any]:
    """Decode a raw request body into a JSON object.

    Raises:
        RequestValidationError: `INVALID_JSON` for undecodable bytes, malformed
            JSON, or any top-level value that is not an object.
    """
    try:
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        body = json.loads(raw)
    except (UnicodeDecodeError, ValueError):
        raise RequestValidationError(
            ErrorCode.INVALID_JSON,
            "Invalid request body: Must be valid JSON.",
        ) from None

    if not isinstance(body, dict):
        raise RequestValidationError(
            ErrorCode.INVALID_JSON,
            "Invalid request body: Must be a JSON object.",
            {"receivedType": type(body).__name__},
        )
    return body


def _is_level(value: Any) -> bool:
    """True for an integer detail level in 1..5.

    Only JSON integers qualify: `3.0` and `"3"` are rejected, as is `true`
    (bool is an int subclass).
    """
    return isinstance(value, int) and not isinstance(value, bool) and value in VALID_SUMMARY_LEVELS


def _check_choice(body: Dict[str, Any], key: str, allowed, code: ErrorCode, label: str) -> None:
    value = body.get(key)
    if value is None:
        return
    if not isinstance(value, str) or value not in allowed:
        raise RequestValidationError(
            code,
            f"Invalid {label} specified. Must be one of: {', '.join(allowed)}.",
            {"received": value, "valid": list(allowed)},
        )


def validate_request(body: Any, allow_unknown_model: bool = False) -> ProcessingRequest:
    """Validate a decoded request body and return a normalized request.

    Args:
        body: Decoded JSON body (normally from `parse_body`).
        allow_unknown_model: Substitute `DEFAULT_MODEL` for unknown models
            instead of rejecting them.

    Returns:
        `ProcessingRequest` holding only the options relevant to the mode.

    Raises:
        RequestValidationError: On the first failing check.
    """
    if not isinstance(body, dict):
        raise RequestValidationError(
            ErrorCode.INVALID_JSON,
            "Invalid request body: Must be a JSON object.",
            {"receivedType": type(body).__name__},
        )

    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        raise RequestValidationError(ErrorCode.MISSING_TEXT, "Input text cannot be empty.")

    trimmed_length = len(text.strip())
    if trimmed_length < MIN_INPUT_TEXT_LENGTH:
        raise RequestValidationError(
            ErrorCode.TEXT_TOO_SHORT,
            f"Input text is too short. Please provide at least {MIN_INPUT_TEXT_LENGTH} characters.",
            {"minLength": MIN_INPUT_TEXT_LENGTH, "actualLength": trimmed_length},
        )
    if trimmed_length > MAX_INPUT_TEXT_LENGTH:
        raise RequestValidationError(
            ErrorCode.TEXT_TOO_LONG,
            f"Input text is too long. Please limit input to {MAX_INPUT_TEXT_LENGTH} characters.",
            {"maxLength": MAX_INPUT_TEXT_LENGTH, "actualLength": trimmed_length},
        )

    mode = body.get("mode")
    if mode not in VALID_MODES:
        raise RequestValidationError(
            ErrorCode.INVALID_MODE,
            "Invalid processing mode specified. Must be 'summarize' or 'rewrite'.",
            {"receivedMode": mode},
        )

    tone = None
    level = None
    if mode == MODE_SUMMARIZE:
        level = body.get("summaryLengthLevel")
        if not _is_level(level):
            raise RequestValidationError(
                ErrorCode.INVALID_SUMMARY_LEVEL,
                "Invalid or missing summary detail level specified for summarize mode. "
                f"Must be between {VALID_SUMMARY_LEVELS[0]} and {VALID_SUMMARY_LEVELS[-1]}.",
                {"receivedLevel": level, "validLevels": list(VALID_SUMMARY_LEVELS)},
            )
    else:
        tone = body.get("tone")
        if tone not in VALID_TONES:
            raise RequestValidationError(
                ErrorCode.INVALID_TONE,
                "Invalid or missing tone specified for rewrite mode. "
                f"Must be one of: {', '.join(VALID_TONES)}.",
                {"receivedTone": tone, "validTones": list(VALID_TONES)},
            )

    model = body.get("model")
    if model is None:
        model = DEFAULT_MODEL
    elif model not in SUPPORTED_MODELS:
        if not allow_unknown_model:
            raise RequestValidationError(
                ErrorCode.INVALID_MODEL,
                f"Unsupported model requested. Must be one of: {', '.join(SUPPORTED_MODELS)}.",
                {"receivedModel": model, "validModels": list(SUPPORTED_MODELS)},
            )
        logger.warning("Unknown model %r replaced by default %r", model, DEFAULT_MODEL)
        model = DEFAULT_MODEL

    _check_choice(body, "targetAudience", tuple(TARGET_AUDIENCES), ErrorCode.INVALID_AUDIENCE, "target audience")
    if mode == MODE_SUMMARIZE:
        _check_choice(body, "summaryFormat", tuple(SUMMARY_FORMATS), ErrorCode.INVALID_SUMMARY_FORMAT, "summary format")
    else:
        _check_choice(body, "rewriteGoal", tuple(REWRITE_GOALS), ErrorCode.INVALID_REWRITE_GOAL, "rewrite goal")
    _check_choice(
        body, "promptStructure", VALID_PROMPT_STRUCTURES, ErrorCode.INVALID_PROMPT_STRUCTURE, "prompt structure"
    )

    summarize = mode == MODE_SUMMARIZE
    return ProcessingRequest(
        text=text,
        mode=mode,
        model=model,
        tone=tone,
        summary_level=level,
        target_audience=body.get("targetAudience") or DEFAULT_AUDIENCE,
        summary_format=(body.get("summaryFormat") or DEFAULT_SUMMARY_FORMAT) if summarize else None,
        rewrite_goal=None if summarize else (body.get("rewriteGoal") or DEFAULT_REWRITE_GOAL),
        prompt_structure=body.get("promptStructure") or DEFAULT_PROMPT_STRUCTURE,
    )
