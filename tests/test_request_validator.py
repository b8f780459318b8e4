"""
tests/test_request_validator.py

Unit tests for inbound request validation.

Verifies:
✔ Length bounds are inclusive and measured on trimmed text
✔ Checks run in a fixed order; the first failure decides the code
✔ Mode-specific options are required and validated
✔ Model policy: default when absent, reject or substitute when unknown
✔ Optional options are validated and defaulted per mode
✔ Validation is idempotent and keeps text verbatim
"""

import pytest

from refiner.core.errors import ErrorCode, RequestValidationError
from refiner.core.options import (
    DEFAULT_MODEL,
    MAX_INPUT_TEXT_LENGTH,
    MIN_INPUT_TEXT_LENGTH,
)
from refiner.validation.request_validator import parse_body, validate_request


def summarize_body(text="A" * 50, **extra):
    body = {"text": text, "mode": "summarize", "summaryLengthLevel": 3}
    body.update(extra)
    return body


def rewrite_body(text="A" * 50, **extra):
    body = {"text": text, "mode": "rewrite", "tone": "formal"}
    body.update(extra)
    return body


def error_code(body, **kwargs):
    with pytest.raises(RequestValidationError) as exc_info:
        validate_request(body, **kwargs)
    return exc_info.value


class TestParseBody:
    def test_object_body(self):
        assert parse_body(b'{"text": "hello"}') == {"text": "hello"}

    def test_accepts_str(self):
        assert parse_body('{"mode": "rewrite"}') == {"mode": "rewrite"}

    def test_malformed_json(self):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_body(b"{not json")
        assert exc_info.value.code == ErrorCode.INVALID_JSON
        assert exc_info.value.status == 400

    def test_undecodable_bytes(self):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_body(b"\xff\xfe\xfa")
        assert exc_info.value.code == ErrorCode.INVALID_JSON

    @pytest.mark.parametrize("raw", [b"[]", b'"text"', b"42", b"null"])
    def test_non_object_json(self, raw):
        with pytest.raises(RequestValidationError) as exc_info:
            parse_body(raw)
        assert exc_info.value.code == ErrorCode.INVALID_JSON


class TestTextLength:
    def test_below_minimum(self):
        err = error_code(summarize_body("x" * (MIN_INPUT_TEXT_LENGTH - 1)))
        assert err.code == ErrorCode.TEXT_TOO_SHORT
        assert err.details == {"minLength": 10, "actualLength": 9}

    def test_minimum_accepted(self):
        request = validate_request(summarize_body("x" * MIN_INPUT_TEXT_LENGTH))
        assert len(request.text) == 10

    def test_maximum_accepted(self):
        request = validate_request(summarize_body("x" * MAX_INPUT_TEXT_LENGTH))
        assert len(request.text) == 20000

    def test_above_maximum(self):
        err = error_code(summarize_body("x" * (MAX_INPUT_TEXT_LENGTH + 1)))
        assert err.code == ErrorCode.TEXT_TOO_LONG
        assert err.details["actualLength"] == 20001

    def test_length_measured_after_trim(self):
        err = error_code(summarize_body("   short   "))
        assert err.code == ErrorCode.TEXT_TOO_SHORT
        assert err.details["actualLength"] == 5

    @pytest.mark.parametrize("text", [None, "", "    \n\t", 123])
    def test_missing_text(self, text):
        body = summarize_body()
        body["text"] = text
        assert error_code(body).code == ErrorCode.MISSING_TEXT

    def test_absent_text(self):
        body = summarize_body()
        del body["text"]
        assert error_code(body).code == ErrorCode.MISSING_TEXT


class TestMode:
    def test_unknown_mode(self):
        err = error_code({"text": "A" * 50, "mode": "translate"})
        assert err.code == ErrorCode.INVALID_MODE
        assert err.status == 400
        assert err.details == {"receivedMode": "translate"}

    def test_missing_mode(self):
        assert error_code({"text": "A" * 50}).code == ErrorCode.INVALID_MODE

    def test_text_checked_before_mode(self):
        assert error_code({"text": "short", "mode": "translate"}).code == ErrorCode.TEXT_TOO_SHORT


class TestModeOptions:
    @pytest.mark.parametrize("level", [0, 6, "3", 2.5, 3.0, None, True])
    def test_invalid_summary_level(self, level):
        err = error_code(summarize_body(summaryLengthLevel=level))
        assert err.code == ErrorCode.INVALID_SUMMARY_LEVEL
        assert err.details["validLevels"] == [1, 2, 3, 4, 5]

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_valid_summary_levels(self, level):
        assert validate_request(summarize_body(summaryLengthLevel=level)).summary_level == level

    @pytest.mark.parametrize("tone", ["angry", "", None, "Formal"])
    def test_invalid_tone(self, tone):
        err = error_code(rewrite_body(tone=tone))
        assert err.code == ErrorCode.INVALID_TONE
        assert err.details["validTones"] == ["formal", "casual", "creative"]

    def test_summarize_ignores_tone(self):
        request = validate_request(summarize_body(tone="angry"))
        assert request.tone is None

    def test_rewrite_ignores_level(self):
        request = validate_request(rewrite_body(summaryLengthLevel=99))
        assert request.summary_level is None
        assert request.tone == "formal"


class TestModelPolicy:
    def test_absent_model_uses_default(self):
        assert validate_request(summarize_body()).model == DEFAULT_MODEL

    def test_supported_model_kept(self):
        assert validate_request(summarize_body(model="gpt-4")).model == "gpt-4"

    def test_unknown_model_rejected(self):
        err = error_code(summarize_body(model="llama-70b"))
        assert err.code == ErrorCode.INVALID_MODEL
        assert err.details["receivedModel"] == "llama-70b"

    def test_unknown_model_substituted_when_allowed(self):
        request = validate_request(summarize_body(model="llama-70b"), allow_unknown_model=True)
        assert request.model == DEFAULT_MODEL

    def test_mode_option_checked_before_model(self):
        err = error_code(summarize_body(summaryLengthLevel=9, model="llama-70b"))
        assert err.code == ErrorCode.INVALID_SUMMARY_LEVEL


class TestOptionalOptions:
    def test_summary_defaults(self):
        request = validate_request(summarize_body())
        assert request.target_audience == "general"
        assert request.summary_format == "paragraph"
        assert request.rewrite_goal is None
        assert request.prompt_structure == "system-heavy"

    def test_rewrite_defaults(self):
        request = validate_request(rewrite_body())
        assert request.rewrite_goal == "maintain-length"
        assert request.summary_format is None

    def test_explicit_options(self):
        request = validate_request(
            summarize_body(targetAudience="expert", summaryFormat="bullet-points", promptStructure="user-heavy")
        )
        assert request.target_audience == "expert"
        assert request.summary_format == "bullet-points"
        assert request.prompt_structure == "user-heavy"

    @pytest.mark.parametrize(
        "body, code",
        [
            (summarize_body(targetAudience="children"), ErrorCode.INVALID_AUDIENCE),
            (summarize_body(summaryFormat="table"), ErrorCode.INVALID_SUMMARY_FORMAT),
            (rewrite_body(rewriteGoal="make-longer"), ErrorCode.INVALID_REWRITE_GOAL),
            (rewrite_body(promptStructure="assistant-heavy"), ErrorCode.INVALID_PROMPT_STRUCTURE),
            (summarize_body(targetAudience=["expert"]), ErrorCode.INVALID_AUDIENCE),
        ],
    )
    def test_invalid_options(self, body, code):
        err = error_code(body)
        assert err.code == code
        assert "valid" in err.details

    def test_irrelevant_option_not_validated(self):
        request = validate_request(rewrite_body(summaryFormat="table"))
        assert request.summary_format is None


class TestNormalization:
    def test_text_kept_verbatim(self):
        text = "  Leading and trailing whitespace stays.  \n"
        assert validate_request(rewrite_body(text)).text == text

    def test_idempotent(self):
        body = summarize_body(model="gpt-4", targetAudience="simple")
        assert validate_request(body) == validate_request(body)

    def test_idempotent_errors(self):
        body = summarize_body(summaryLengthLevel=7)
        first = error_code(body)
        second = error_code(body)
        assert first.to_response() == second.to_response()

    def test_request_is_frozen(self):
        request = validate_request(summarize_body())
        with pytest.raises(Exception):
            request.text = "changed"
