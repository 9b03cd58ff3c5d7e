"""Prompt templates for LLM interactions."""
from decimal import Decimal
from typing import List, Optional
from finsight.models.category import EXPENSE_CATEGORIES, Category


def _category_names(categories: Optional[List[Category]] = None) -> str:
    return ", ".join(c.value for c in (categories or EXPENSE_CATEGORIES))


class PromptBuilder:
    """Builds prompts for receipts, insights and categorization."""

    RECEIPT_PROMPT_TEMPLATE = """Analyze this receipt. Extract the total amount, the merchant name (put in note), the date, and categorize it into one of these: {categories}.

Return JSON with keys: amount (number), category (string), date (ISO string), note (string).
If a field cannot be read, use null."""

    INSIGHTS_PROMPT_TEMPLATE = """You are a financial advisor. Analyze these recent transactions:
{summary}

INSTRUCTIONS:
- Only use information explicitly provided in the data above
- Provide 3 brief, actionable insights or savings recommendations

Format the response as a simple JSON array of strings."""

    CATEGORY_PROMPT_TEMPLATE = """Categorize a transaction described as "{note}" with amount {amount} into one of: {categories}. Return only the category name."""

    def build_receipt_prompt(self) -> str:
        """Build receipt extraction prompt."""
        return self.RECEIPT_PROMPT_TEMPLATE.format(categories=_category_names())

    def build_insights_prompt(self, summary: str) -> str:
        """Build savings insights prompt."""
        return self.INSIGHTS_PROMPT_TEMPLATE.format(summary=summary)

    def build_category_prompt(self, note: str, amount: Decimal) -> str:
        """Build categorization prompt."""
        return self.CATEGORY_PROMPT_TEMPLATE.format(
            note=note.replace('"', "'"),
            amount=amount,
            categories=_category_names(),
        )
