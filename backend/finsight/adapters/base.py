"""Base insight adapter interface."""
import json
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Dict, List


def extract_json(content: str) -> Any:
    """Parse a JSON reply, tolerating markdown code fences around it."""
    if "```json" in content:
        content = content.split("```json")[1].split("```")[0].strip()
    elif "```" in content:
        content = content.split("```")[1].split("```")[0].strip()
    return json.loads(content)


class InsightAdapter(ABC):
    """Abstract base class for generative-AI providers."""

    def __init__(self, model_id: str, **kwargs):
        """
        Initialize the adapter.

        Args:
            model_id: Identifier for the model (e.g., "gemini-2.5-flash", "gpt-4o-mini")
            **kwargs: Additional provider-specific configuration
        """
        self.model_id = model_id
        self.config = kwargs

    @abstractmethod
    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Dict[str, Any]:
        """
        Read a receipt image.

        Args:
            image_b64: Base64-encoded image bytes
            mime_type: Image MIME type

        Returns:
            Dictionary with amount, category, date and note as the model returned them
        """
        pass

    @abstractmethod
    async def generate_insights(self, summary: str) -> List[str]:
        """
        Produce short savings recommendations.

        Args:
            summary: One line per transaction

        Returns:
            List of insight strings
        """
        pass

    @abstractmethod
    async def suggest_category(self, note: str, amount: Decimal) -> str:
        """
        Pick an expense category for a free-text description.

        Returns:
            Category name as the model returned it
        """
        pass
