"""AI insight models."""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from finsight.models.category import Category, EXPENSE_CATEGORIES
from finsight.utils.timestamp import coerce_timestamp


class ReceiptExtraction(BaseModel):
    """Fields read off a receipt image. Best effort."""

    amount: Decimal = Field(..., ge=0)
    category: Category = Field(default=Category.CUSTOM)
    date: Optional[datetime] = None
    note: str = Field(default="", description="Merchant name")

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v):
        # Receipts are always expenses; anything else collapses to Custom
        try:
            category = Category(v)
        except ValueError:
            return Category.CUSTOM
        return category if category in EXPENSE_CATEGORIES else Category.CUSTOM

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        try:
            return coerce_timestamp(v)
        except ValueError:
            return None

    @field_validator("note", mode="before")
    @classmethod
    def validate_note(cls, v):
        return v or ""


class AIInsight(BaseModel):
    """A single insight card."""

    type: str = Field(default="advice", description="'alert', 'advice' or 'trend'")
    message: str
    severity: str = Field(default="low", description="'low', 'medium' or 'high'")


class InsightsResponse(BaseModel):
    """Insights for a user."""

    user_id: str
    insights: List[AIInsight] = Field(default_factory=list)
    message: Optional[str] = Field(None, description="Set when nothing could be generated")


class CategorizeRequest(BaseModel):
    """Request to suggest a category for a free-text note."""

    note: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class CategorizeResponse(BaseModel):
    category: Category
