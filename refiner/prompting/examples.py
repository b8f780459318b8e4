"""One-shot example pairs used to steer output style.

Each example is a `(source_text, ideal_output)` pair. The prompt builder
wraps `source_text` with the same instruction it uses for the real input so
the example demonstrates the exact request/response shape.

Selection:
    - Summaries: terse example for levels 1-2, fuller example for levels >= 3.
    - Rewrites: one example per tone.
"""

from typing import Tuple


_SUMMARY_SOURCE = (
    "The city council voted on Tuesday to convert the abandoned rail yard on "
    "the east side into a public park. Supporters argued the project would "
    "give nearby neighborhoods their first large green space and raise "
    "property values. Opponents worried about the cost of soil cleanup, which "
    "engineers estimate at four million dollars, and asked whether the land "
    "would be better used for affordable housing. The council approved the "
    "plan 7-2 and directed staff to apply for a state environmental grant to "
    "cover most of the cleanup. Construction is expected to begin next spring "
    "if the grant is awarded."
)

TERSE_SUMMARY_EXAMPLE: Tuple[str, str] = (
    _SUMMARY_SOURCE,
    "The city council approved, 7-2, turning the east-side rail yard into a "
    "public park, pending a state grant for soil cleanup.",
)

FULL_SUMMARY_EXAMPLE: Tuple[str, str] = (
    _SUMMARY_SOURCE,
    "The city council voted 7-2 to convert the abandoned east-side rail yard "
    "into a public park. Supporters highlighted the neighborhoods' lack of "
    "green space and the likely boost to property values, while opponents "
    "cited an estimated four million dollars in soil cleanup and argued for "
    "affordable housing instead. Staff will seek a state environmental grant "
    "to fund most of the cleanup, and construction could start next spring if "
    "the grant comes through.",
)


_REWRITE_SOURCE = (
    "We can't make the meeting on Friday because the report isn't done yet. "
    "We'll send it over as soon as it's ready, probably early next week."
)

REWRITE_EXAMPLES = {
    "formal": (
        _REWRITE_SOURCE,
        "We regret that we are unable to attend the meeting on Friday, as the "
        "report has not yet been completed. We will forward the document "
        "promptly upon its completion, which we anticipate early next week.",
    ),
    "casual": (
        _REWRITE_SOURCE,
        "We can't make Friday's meeting since the report's not finished. "
        "We'll send it your way once it's done, probably early next week.",
    ),
    "creative": (
        _REWRITE_SOURCE,
        "Friday's meeting will have to sail on without us; the report is "
        "still in the oven. The moment it's baked, likely early next week, "
        "we'll deliver it hot to your inbox.",
    ),
}


def summary_example(level: int) -> Tuple[str, str]:
    """Return the one-shot pair matching a summary detail level."""
    return TERSE_SUMMARY_EXAMPLE if level <= 2 else FULL_SUMMARY_EXAMPLE


def rewrite_example(tone: str) -> Tuple[str, str]:
    """Return the one-shot pair for a rewrite tone."""
    return REWRITE_EXAMPLES[tone]
