"""Option catalog for processing requests.

Architectural role:
    Single source of truth for every enumerated option accepted by
    `POST /api/process`. Validation, prompt assembly and parameter selection
    all read from these tables so the accepted values cannot drift apart.

Determinism:
    Static constants only. No I/O, no environment access.
"""

MIN_INPUT_TEXT_LENGTH = 10
MAX_INPUT_TEXT_LENGTH = 20000

MODE_SUMMARIZE = "summarize"
MODE_REWRITE = "rewrite"
VALID_MODES = (MODE_SUMMARIZE, MODE_REWRITE)


# =========================================================
# SUMMARY DETAIL LEVELS
# =========================================================

SUMMARY_DETAIL_LEVELS = {
    1: "Very Brief",
    2: "Short",
    3: "Medium",
    4: "Long",
    5: "Detailed",
}

VALID_SUMMARY_LEVELS = tuple(SUMMARY_DETAIL_LEVELS)


# =========================================================
# REWRITE TONES
# =========================================================
# Each tone carries exactly one defining stylistic rule. Rules must not
# overlap textually; the prompt builder relies on that to keep a final
# instruction free of other tones' rules.

TONE_RULES = {
    "formal": (
        "Do not use contractions; prefer elevated, precise vocabulary and a "
        "professional, objective stance."
    ),
    "casual": (
        "Use contractions and simpler, everyday vocabulary in a relaxed, "
        "conversational voice."
    ),
    "creative": (
        "Use vivid, figurative language such as metaphors and analogies, but "
        "never invent facts or change the original meaning."
    ),
}

VALID_TONES = tuple(TONE_RULES)


# =========================================================
# AUDIENCE / FORMAT / GOAL
# =========================================================

TARGET_AUDIENCES = {
    "general": "a general audience",
    "simple": "a layperson; avoid jargon and explain any necessary terms plainly",
    "expert": "an expert reader; technical terminology is welcome",
}

SUMMARY_FORMATS = {
    "paragraph": "Write the summary as flowing prose paragraphs.",
    "bullet-points": (
        "Write the summary as a bulleted list using '- ' markers, one key "
        "point per bullet."
    ),
}

REWRITE_GOALS = {
    "maintain-length": "Keep the rewritten text roughly the same length as the original.",
    "make-shorter": (
        "Make the rewritten text noticeably shorter than the original while "
        "keeping every key point."
    ),
}

DEFAULT_AUDIENCE = "general"
DEFAULT_SUMMARY_FORMAT = "paragraph"
DEFAULT_REWRITE_GOAL = "maintain-length"


# =========================================================
# PROMPT STRUCTURE
# =========================================================

PROMPT_SYSTEM_HEAVY = "system-heavy"
PROMPT_USER_HEAVY = "user-heavy"
VALID_PROMPT_STRUCTURES = (PROMPT_SYSTEM_HEAVY, PROMPT_USER_HEAVY)
DEFAULT_PROMPT_STRUCTURE = PROMPT_SYSTEM_HEAVY


# =========================================================
# MODELS
# =========================================================
# Tier drives output-length budgets in `refiner.llm.parameters`.

MODEL_TIERS = {
    "gpt-3.5-turbo": "standard",
    "gpt-4": "extended",
}

SUPPORTED_MODELS = tuple(MODEL_TIERS)
DEFAULT_MODEL = "gpt-3.5-turbo"
