"""AI Agents package."""

from kesi_ledger.agents.category_agent import (
    CategorySuggestion,
    CategorySuggestionAgent,
    CategorySuggestionError,
)

__all__ = [
    "CategorySuggestion",
    "CategorySuggestionAgent",
    "CategorySuggestionError",
]
