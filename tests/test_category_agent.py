"""
Tests for the category suggestion agent (stubbed model, no API calls).
"""

import asyncio

import pytest

from kesi_ledger.agents import (
    CategorySuggestion,
    CategorySuggestionAgent,
    CategorySuggestionError,
)


class TestCategorySuggestionAgent:
    """Tests for CategorySuggestionAgent."""

    def test_suggests_category(self, stub_model):
        """Test a well-formed response gives a suggestion."""
        agent = CategorySuggestionAgent(model=stub_model)
        suggestion = asyncio.run(agent.suggest("Weekly vegetables from the market"))
        assert isinstance(suggestion, CategorySuggestion)
        assert suggestion.suggested_category == "Groceries"

    def test_prompt_contains_description(self, stub_model):
        """Test the description is sent to the model."""
        agent = CategorySuggestionAgent(model=stub_model)
        asyncio.run(agent.suggest("  Electricity bill  "))
        [prompt] = stub_model.prompts
        assert "Electricity bill" in prompt
        assert "suggestedCategory" in prompt

    def test_long_description_is_truncated(self):
        """Test the prompt caps the description length."""
        prompt = CategorySuggestionAgent.build_prompt("x" * 2000)
        assert "x" * 500 in prompt
        assert "x" * 501 not in prompt

    @pytest.mark.parametrize("description", ["", "   ", None])
    def test_empty_description_rejected_before_model_call(self, stub_model, description):
        """Test no model call is made without a description."""
        agent = CategorySuggestionAgent(model=stub_model)
        with pytest.raises(CategorySuggestionError):
            asyncio.run(agent.suggest(description))
        assert stub_model.prompts == []

    def test_response_wrapped_in_text(self, make_stub_model):
        """Test JSON surrounded by prose or code fences is accepted."""
        model = make_stub_model('```json\n{"suggestedCategory": " Transport "}\n```')
        suggestion = asyncio.run(CategorySuggestionAgent(model=model).suggest("Taxi home"))
        assert suggestion.suggested_category == "Transport"

    def test_alternative_key(self, make_stub_model):
        """Test a plain "category" key is also understood."""
        model = make_stub_model('{"category": "Rent"}')
        suggestion = asyncio.run(CategorySuggestionAgent(model=model).suggest("May rent"))
        assert suggestion.suggested_category == "Rent"

    @pytest.mark.parametrize("text", [
        "I think it is groceries",
        "{not json}",
        '{"suggestedCategory": ""}',
        '{"other": "value"}',
        "[1, 2]",
    ])
    def test_unusable_response(self, make_stub_model, text):
        """Test unusable model output raises CategorySuggestionError."""
        agent = CategorySuggestionAgent(model=make_stub_model(text))
        with pytest.raises(CategorySuggestionError):
            asyncio.run(agent.suggest("Something"))

    def test_model_failure_is_wrapped(self, make_stub_model):
        """Test API errors surface as CategorySuggestionError."""
        model = make_stub_model(error=RuntimeError("quota exhausted"))
        with pytest.raises(CategorySuggestionError) as exc_info:
            asyncio.run(CategorySuggestionAgent(model=model).suggest("Lunch"))
        assert "quota exhausted" in str(exc_info.value)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
