"""
Category Suggestion Agent

DESIGN DECISION: The LLM only ever SUGGESTS. The suggestion fills the
category field on the form; the user can accept it, edit it, or ignore
it and type their own.

BOUNDARIES:
- NEVER creates or modifies transactions
- NEVER blocks manual category entry
- Failures surface as a non-fatal notice; there is no retry
"""

import json
from typing import Any, Optional

import google.generativeai as genai
from pydantic import BaseModel, Field, ValidationError

from kesi_ledger.config import GeminiSettings, get_settings


MAX_DESCRIPTION_CHARS = 500


class CategorySuggestionError(Exception):
    """The category could not be suggested."""
    pass


class CategorySuggestion(BaseModel):
    """AI's suggestion for a transaction category."""

    suggested_category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Short category name, e.g. 'Groceries'"
    )


def _extract_json(text: str) -> dict:
    """Pull the first JSON object out of a model response."""
    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise CategorySuggestionError("Model response did not contain JSON")
    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise CategorySuggestionError(f"Model response was not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise CategorySuggestionError("Model response was not a JSON object")
    return data


class CategorySuggestionAgent:
    """
    Suggests a category from a free-text transaction description.

    The Gemini model is created lazily so the rest of the app works
    without an API key. Tests pass a stub via `model`.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        model: Optional[Any] = None,
    ):
        self._settings = settings
        self._model = model

    def _get_model(self) -> Any:
        """Configure Google Generative AI on first use."""
        if self._model is None:
            settings = self._settings or get_settings().gemini
            genai.configure(api_key=settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=settings.model_name,
                generation_config={
                    "temperature": settings.temperature,
                    "max_output_tokens": settings.max_tokens,
                }
            )
        return self._model

    @staticmethod
    def build_prompt(description: str) -> str:
        return f"""You are helping categorize a transaction for a personal finance ledger.

Based on the following transaction description, suggest a single short
category name (one to three words, e.g. "Groceries", "Salary", "Transport",
"Utilities", "Rent", "Phone Top-up").

Transaction description:
{description[:MAX_DESCRIPTION_CHARS]}

Respond with ONLY a JSON object in this exact format:
{{"suggestedCategory": "Category Name"}}"""

    async def suggest(self, description: str) -> CategorySuggestion:
        """
        Suggest a category for the description.

        Raises:
            CategorySuggestionError: If the description is empty, the model
                call fails, or the response cannot be understood
        """
        description = (description or "").strip()
        if not description:
            raise CategorySuggestionError("Please enter a description first.")

        try:
            model = self._get_model()
            response = await model.generate_content_async(
                self.build_prompt(description)
            )
            text = response.text.strip()
        except CategorySuggestionError:
            raise
        except Exception as e:
            raise CategorySuggestionError(f"Category service failed: {e}") from e

        data = _extract_json(text)
        category = data.get("suggestedCategory", data.get("category"))
        if isinstance(category, str):
            category = category.strip()

        try:
            return CategorySuggestion(suggested_category=category)
        except ValidationError as e:
            raise CategorySuggestionError(
                "Model did not return a usable category"
            ) from e
