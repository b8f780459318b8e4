"""Generation parameter selection.

Maps `(mode, tone | summary level, model)` to `GenerationParameters` through
fixed lookup tables. Parameters are never taken from the caller.

Parameter semantics:
    - Summaries: temperature rises with detail level; brief summaries stay
      close to deterministic, detailed ones get more latitude.
    - Rewrites: temperature rises formal -> casual -> creative.
    - `max_output_tokens` rises with detail level and is larger for the
      `extended` model tier.

Determinism:
    Total and pure over validated inputs; identical inputs always return
    equal (frozen) parameter objects.
"""

from refiner.core.options import DEFAULT_MODEL, MODE_SUMMARIZE, MODEL_TIERS
from refiner.core.types import GenerationParameters


SUMMARY_TEMPERATURE = {1: 0.2, 2: 0.3, 3: 0.4, 4: 0.5, 5: 0.6}

REWRITE_TEMPERATURE = {"formal": 0.4, "casual": 0.7, "creative": 0.9}

SUMMARY_MAX_TOKENS = {
    "standard": {1: 120, 2: 250, 3: 500, 4: 800, 5: 1200},
    "extended": {1: 200, 2: 400, 3: 800, 4: 1300, 5: 2000},
}

REWRITE_MAX_TOKENS = {
    "standard": 2000,
    "extended": 4000,
}


def model_tier(model: str) -> str:
    """Return the capability tier for `model` (default model's tier if unknown)."""
    return MODEL_TIERS.get(model, MODEL_TIERS[DEFAULT_MODEL])


def select_parameters(mode: str, option, model: str) -> GenerationParameters:
    """Look up generation parameters.

    Args:
        mode: `summarize` or `rewrite`.
        option: Summary level (int) for summaries, tone name for rewrites.
        model: Validated model identifier.

    Returns:
        Frozen `GenerationParameters`.

    Edge cases:
        Unknown levels/tones raise `KeyError`; inputs are validated upstream.
    """
    tier = model_tier(model)

    if mode == MODE_SUMMARIZE:
        return GenerationParameters(
            temperature=SUMMARY_TEMPERATURE[option],
            max_output_tokens=SUMMARY_MAX_TOKENS[tier][option],
        )

    return GenerationParameters(
        temperature=REWRITE_TEMPERATURE[option],
        max_output_tokens=REWRITE_MAX_TOKENS[tier],
    )


def parameters_for(request) -> GenerationParameters:
    """Convenience wrapper taking a validated `ProcessingRequest`."""
    option = request.summary_level if request.mode == MODE_SUMMARIZE else request.tone
    return select_parameters(request.mode, option, request.model)
