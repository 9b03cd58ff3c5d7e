"""Mock insight adapter for testing without API calls."""
from decimal import Decimal
from typing import Any, Dict, List
from finsight.adapters.base import InsightAdapter


class MockInsightAdapter(InsightAdapter):
    """Mock adapter that returns deterministic responses."""

    RECEIPT = {
        "amount": 42.5,
        "category": "Food",
        "date": None,
        "note": "Corner Grocer",
    }

    INSIGHTS = [
        "Rent is your largest fixed cost; check whether it stays under 30% of income.",
        "Food spending spikes on weekends; planning meals could trim it.",
        "Set a budget for Shopping, the only category without a limit.",
    ]

    # Keyword -> category, first match wins
    KEYWORDS = [
        (("rent", "lease", "landlord"), "Rent"),
        (("uber", "taxi", "flight", "train", "fuel"), "Travel"),
        (("grocery", "groceries", "restaurant", "coffee", "pizza"), "Food"),
        (("electric", "water", "internet", "phone", "bill"), "Bills"),
        (("amazon", "mall", "clothes", "shoes"), "Shopping"),
    ]

    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """Return a fixed receipt extraction."""
        return dict(self.RECEIPT)

    async def generate_insights(self, summary: str) -> List[str]:
        """Return fixed insights, none when there is nothing to analyze."""
        if not summary.strip():
            return []
        return list(self.INSIGHTS)

    async def suggest_category(self, note: str, amount: Decimal) -> str:
        """Keyword lookup on the note."""
        text = note.lower()
        for keywords, category in self.KEYWORDS:
            if any(k in text for k in keywords):
                return category
        return "Custom"
