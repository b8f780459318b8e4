"""Prompt assembly for summarize and rewrite requests.

This module only arranges text. It never shortens, paraphrases or otherwise
transforms the user's input; that work is delegated to the completion
provider. The input is placed verbatim inside a `---` delimited block in the
final user message.

Message order (always):
    1) system message
    2) one-shot example: user instruction
    3) one-shot example: assistant answer
    4) final user instruction with the delimited input

Templates:
    - `system-heavy`: detailed system message, minimal final instruction.
    - `user-heavy`: minimal system message, fully detailed final instruction.
    Both carry the same directives. Even the minimal final instruction embeds
    the detail-level label (summaries) or tone name and tone rule (rewrites).

Determinism:
    Pure functions of the validated request. No I/O, no global state.
"""

from typing import List

from refiner.core.options import (
    DEFAULT_AUDIENCE,
    DEFAULT_REWRITE_GOAL,
    DEFAULT_SUMMARY_FORMAT,
    MODE_SUMMARIZE,
    PROMPT_USER_HEAVY,
    REWRITE_GOALS,
    SUMMARY_DETAIL_LEVELS,
    SUMMARY_FORMATS,
    TARGET_AUDIENCES,
    TONE_RULES,
)
from refiner.core.types import ProcessingRequest, PromptMessage
from refiner.prompting.examples import rewrite_example, summary_example


NO_META_COMMENTARY = (
    "Do not include any preamble, meta-commentary, or concluding remarks "
    "such as \"Here is the result:\"."
)

SUMMARY_SCALE = (
    "A 'Very Brief' summary is one or two key sentences. A 'Detailed' summary "
    "covers every major section or argument. Intermediate levels scale "
    "proportionally."
)


def delimit(text: str) -> str:
    """Wrap input text in the delimited block used by every final instruction."""
    return f"---\n{text}\n---"


# =========================================================
# SUMMARIZATION
# =========================================================

def _summary_system(structure: str, audience: str, summary_format: str) -> str:
    if structure == PROMPT_USER_HEAVY:
        return "You are an AI assistant that summarizes text accurately."

    return (
        "You are a highly skilled AI assistant specialized in summarizing text. "
        "Extract the key points and main argument concisely, and state the single "
        "most important conclusion or finding first. "
        f"{SUMMARY_SCALE} "
        f"Write for {TARGET_AUDIENCES[audience]}. "
        f"{SUMMARY_FORMATS[summary_format]} "
        "Use factual information from the text only. "
        f"Generate only the summary text as output. {NO_META_COMMENTARY}"
    )


def _summary_instruction(
    text: str, structure: str, label: str, audience: str, summary_format: str
) -> str:
    if structure == PROMPT_USER_HEAVY:
        return (
            f"Summarize the following text for {TARGET_AUDIENCES[audience]}, "
            f"aiming for a '{label}' level of detail. {SUMMARY_SCALE} "
            "State the most important conclusion first and keep only the core "
            "argument and essential supporting points. "
            f"{SUMMARY_FORMATS[summary_format]} "
            f"Output only the summary text, with no meta-commentary. {NO_META_COMMENTARY}"
            f"\n\n{delimit(text)}"
        )

    return (
        f"Summarize the following text with a '{label}' level of detail. "
        "Output only the summary text, with no meta-commentary."
        f"\n\n{delimit(text)}"
    )


def build_summary_messages(
    text: str,
    level: int,
    audience: str = DEFAULT_AUDIENCE,
    summary_format: str = DEFAULT_SUMMARY_FORMAT,
    structure: str = "system-heavy",
) -> List[PromptMessage]:
    """Build the message sequence for a summarization request.

    Args:
        text: User input, inserted verbatim.
        level: Detail level 1..5; selects label and one-shot example.
        audience: Key of `TARGET_AUDIENCES`.
        summary_format: Key of `SUMMARY_FORMATS`.
        structure: `system-heavy` or `user-heavy`.

    Returns:
        Four messages: system, example user, example assistant, final user.

    Edge cases:
        Unknown `level`/`audience`/`summary_format` raise `KeyError`; callers
        pass values already checked by the request validator.
    """
    label = SUMMARY_DETAIL_LEVELS[level]
    example_source, example_output = summary_example(level)

    return [
        PromptMessage("system", _summary_system(structure, audience, summary_format)),
        PromptMessage(
            "user",
            _summary_instruction(example_source, structure, label, audience, summary_format),
        ),
        PromptMessage("assistant", example_output),
        PromptMessage(
            "user",
            _summary_instruction(text, structure, label, audience, summary_format),
        ),
    ]


# =========================================================
# REWRITING
# =========================================================

def _rewrite_system(structure: str, tone: str, audience: str, goal: str) -> str:
    if structure == PROMPT_USER_HEAVY:
        return "You are an AI assistant that rewrites text."

    return (
        "You are an expert AI text rewriter. Rewrite the provided text, "
        "meticulously maintaining the original meaning and all key information, "
        f"but adjusting the style to a '{tone}' tone. {TONE_RULES[tone]} "
        "Adhere strictly and consistently to the requested tone throughout. "
        f"Write for {TARGET_AUDIENCES[audience]}. {REWRITE_GOALS[goal]} "
        f"Generate only the rewritten text as output. {NO_META_COMMENTARY}"
    )


def _rewrite_instruction(text: str, structure: str, tone: str, audience: str, goal: str) -> str:
    if structure == PROMPT_USER_HEAVY:
        return (
            f"Rewrite the following text in a '{tone}' tone for "
            f"{TARGET_AUDIENCES[audience]}. {TONE_RULES[tone]} "
            "Keep the core message identical to the original and preserve every "
            f"key point. {REWRITE_GOALS[goal]} "
            f"Output only the rewritten text, with no meta-commentary. {NO_META_COMMENTARY}"
            f"\n\n{delimit(text)}"
        )

    return (
        f"Rewrite the following text in a '{tone}' tone. {TONE_RULES[tone]} "
        "Output only the rewritten text, with no meta-commentary."
        f"\n\n{delimit(text)}"
    )


def build_rewrite_messages(
    text: str,
    tone: str,
    audience: str = DEFAULT_AUDIENCE,
    goal: str = DEFAULT_REWRITE_GOAL,
    structure: str = "system-heavy",
) -> List[PromptMessage]:
    """Build the message sequence for a rewrite request.

    The final instruction names `tone` and carries only that tone's rule.
    """
    example_source, example_output = rewrite_example(tone)

    return [
        PromptMessage("system", _rewrite_system(structure, tone, audience, goal)),
        PromptMessage("user", _rewrite_instruction(example_source, structure, tone, audience, goal)),
        PromptMessage("assistant", example_output),
        PromptMessage("user", _rewrite_instruction(text, structure, tone, audience, goal)),
    ]


# =========================================================
# ENTRY POINT
# =========================================================

def build_messages(request: ProcessingRequest) -> List[PromptMessage]:
    """Dispatch a validated request to the mode-specific builder."""
    if request.mode == MODE_SUMMARIZE:
        return build_summary_messages(
            request.text,
            request.summary_level,
            audience=request.target_audience,
            summary_format=request.summary_format or DEFAULT_SUMMARY_FORMAT,
            structure=request.prompt_structure,
        )

    return build_rewrite_messages(
        request.text,
        request.tone,
        audience=request.target_audience,
        goal=request.rewrite_goal or DEFAULT_REWRITE_GOAL,
        structure=request.prompt_structure,
    )
