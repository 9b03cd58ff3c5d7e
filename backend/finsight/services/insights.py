"""Best-effort AI features: receipt reading, insights, categorization."""
import logging
from decimal import Decimal
from typing import List, Optional
from pydantic import ValidationError
from finsight.adapters.base import InsightAdapter
from finsight.adapters.factory import get_insight_adapter
from finsight.config import settings
from finsight.models.category import Category, EXPENSE_CATEGORIES
from finsight.models.insight import ReceiptExtraction
from finsight.models.transaction import Transaction
from finsight.utils.privacy import obfuscate_transactions

logger = logging.getLogger(__name__)

NO_INSIGHTS_MESSAGE = "Could not generate insights at this moment."


def summarize_transactions(transactions: List[Transaction]) -> str:
    """One line per transaction: '2024-03-03: expense $25000 (Rent)'."""
    return "\n".join(
        f"{t.date.date().isoformat()}: {t.type.value} ${t.amount} ({t.category.value})"
        for t in transactions
    )


class InsightService:
    """
    Wraps an insight adapter so callers never see provider errors.

    Nothing is retried. Any failure or malformed reply yields the fallback:
    no receipt data, no insights, or the Custom category.
    """

    def __init__(self, adapter: Optional[InsightAdapter] = None, model_id: Optional[str] = None):
        self._adapter = adapter
        self.model_id = model_id or settings.insight_model

    @property
    def adapter(self) -> Optional[InsightAdapter]:
        if self._adapter is None:
            try:
                self._adapter = get_insight_adapter(self.model_id)
            except ValueError as e:
                logger.warning("Insight provider unavailable", extra={"model_id": self.model_id, "error": str(e)})
                return None
        return self._adapter

    async def analyze_receipt(self, image_b64: str, mime_type: str = "image/jpeg") -> Optional[ReceiptExtraction]:
        adapter = self.adapter
        if adapter is None:
            return None
        try:
            data = await adapter.analyze_receipt(image_b64, mime_type)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return ReceiptExtraction.model_validate(data)
        except (RuntimeError, ValueError, ValidationError) as e:
            logger.error("Error analyzing receipt", extra={"model_id": adapter.model_id, "error": str(e)})
            return None

    async def generate_insights(self, transactions: List[Transaction]) -> List[str]:
        if not transactions:
            return []
        adapter = self.adapter
        if adapter is None:
            return []
        logger.debug(
            "Requesting insights",
            extra={"model_id": adapter.model_id, "transactions": obfuscate_transactions(transactions)},
        )
        try:
            data = await adapter.generate_insights(summarize_transactions(transactions))
        except (RuntimeError, ValueError) as e:
            logger.error("Error generating insights", extra={"model_id": adapter.model_id, "error": str(e)})
            return []
        if not isinstance(data, list):
            logger.warning("Malformed insights response", extra={"model_id": adapter.model_id})
            return []
        return [str(item).strip() for item in data if isinstance(item, str) and item.strip()]

    async def suggest_category(self, note: str, amount: Decimal) -> Category:
        adapter = self.adapter
        if adapter is None:
            return Category.CUSTOM
        try:
            answer = await adapter.suggest_category(note, amount)
        except (RuntimeError, ValueError) as e:
            logger.error("Error suggesting category", extra={"model_id": adapter.model_id, "error": str(e)})
            return Category.CUSTOM
        answer = (answer or "").strip().strip(".").strip('"').lower()
        for category in EXPENSE_CATEGORIES:
            if category.value.lower() == answer:
                return category
        return Category.CUSTOM
