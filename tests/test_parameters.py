"""
tests/test_parameters.py

Unit tests for generation parameter selection.
"""

import pytest

from refiner.core.types import GenerationParameters, ProcessingRequest
from refiner.llm.parameters import (
    REWRITE_MAX_TOKENS,
    model_tier,
    parameters_for,
    select_parameters,
)


class TestSelectParameters:
    def test_pure(self):
        assert select_parameters("summarize", 3, "gpt-4") == select_parameters("summarize", 3, "gpt-4")

    def test_returns_frozen_parameters(self):
        params = select_parameters("rewrite", "formal", "gpt-3.5-turbo")
        assert isinstance(params, GenerationParameters)
        with pytest.raises(Exception):
            params.temperature = 1.0

    @pytest.mark.parametrize("model", ["gpt-3.5-turbo", "gpt-4"])
    def test_max_tokens_grow_with_level(self, model):
        budgets = [select_parameters("summarize", level, model).max_output_tokens for level in range(1, 6)]
        assert budgets == sorted(budgets)
        assert budgets[0] < budgets[-1]

    def test_temperature_grows_with_level(self):
        brief = select_parameters("summarize", 1, "gpt-4").temperature
        detailed = select_parameters("summarize", 5, "gpt-4").temperature
        assert brief < detailed

    def test_rewrite_temperature_by_tone(self):
        formal, casual, creative = (
            select_parameters("rewrite", tone, "gpt-4").temperature
            for tone in ("formal", "casual", "creative")
        )
        assert formal < casual < creative

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5])
    def test_extended_tier_has_larger_summary_budget(self, level):
        standard = select_parameters("summarize", level, "gpt-3.5-turbo").max_output_tokens
        extended = select_parameters("summarize", level, "gpt-4").max_output_tokens
        assert extended > standard

    def test_rewrite_budget_by_tier(self):
        assert select_parameters("rewrite", "casual", "gpt-4").max_output_tokens == REWRITE_MAX_TOKENS["extended"]
        assert select_parameters("rewrite", "casual", "gpt-3.5-turbo").max_output_tokens == REWRITE_MAX_TOKENS["standard"]


class TestModelTier:
    def test_known_models(self):
        assert model_tier("gpt-3.5-turbo") == "standard"
        assert model_tier("gpt-4") == "extended"

    def test_unknown_model_falls_back_to_default_tier(self):
        assert model_tier("something-else") == "standard"


class TestParametersFor:
    def test_summary_request(self):
        request = ProcessingRequest(text="x" * 20, mode="summarize", model="gpt-4", summary_level=2)
        assert parameters_for(request) == select_parameters("summarize", 2, "gpt-4")

    def test_rewrite_request(self):
        request = ProcessingRequest(text="x" * 20, mode="rewrite", model="gpt-3.5-turbo", tone="creative")
        assert parameters_for(request) == select_parameters("rewrite", "creative", "gpt-3.5-turbo")
