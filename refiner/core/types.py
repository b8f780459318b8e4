"""Data contracts for the processing pipeline.

Architectural role:
    Defines the values that flow one way through a request:
    `ProcessingRequest` -> `PromptMessage` list + `GenerationParameters` ->
    streamed fragments, with `ErrorResponse` as the only failure shape that
    crosses the HTTP boundary.

Determinism:
    Pure data holders. `ProcessingRequest` and `GenerationParameters` are
    immutable so a validated request cannot be altered downstream.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Role = Literal["system", "user", "assistant"]


class ProcessingRequest(BaseModel):
    """Normalized, validated request produced by the request validator.

    Only the options relevant to `mode` are populated; the rest stay `None`.
    `text` is kept exactly as submitted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str
    mode: Literal["summarize", "rewrite"]
    model: str
    tone: Optional[str] = None
    summary_level: Optional[int] = Field(default=None, alias="summaryLengthLevel")
    target_audience: str = Field(default="general", alias="targetAudience")
    summary_format: Optional[str] = Field(default=None, alias="summaryFormat")
    rewrite_goal: Optional[str] = Field(default=None, alias="rewriteGoal")
    prompt_structure: str = Field(default="system-heavy", alias="promptStructure")


class ErrorBody(BaseModel):
    """JSON body returned for every failed `/api/process` call."""

    code: str
    error: str
    details: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class PromptMessage:
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationParameters:
    temperature: float
    max_output_tokens: int


@dataclass
class ErrorResponse:
    """Structured failure: taxonomy code, user-facing message, HTTP status.

    `details` holds diagnostics such as provider status and error code.
    """

    code: str
    message: str
    status: int
    details: Optional[Dict[str, Any]] = field(default=None)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"code": self.code, "error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body
