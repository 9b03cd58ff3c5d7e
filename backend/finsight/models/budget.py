"""Budget models."""
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator
from finsight.models.category import Category, TransactionType, check_category


class Budget(BaseModel):
    """Spending limit for one expense category."""

    category: Category
    limit: Decimal = Field(..., ge=0, description="Monthly limit")

    @field_validator("category")
    @classmethod
    def validate_category(cls, v):
        check_category(TransactionType.EXPENSE, v)
        return v


class BudgetUpdate(BaseModel):
    """Request body for setting a budget limit."""

    limit: Decimal = Field(..., ge=0)


def budget_key(user_id: str, category: Category) -> str:
    """Deterministic document key; saving the same category again overwrites."""
    return f"{user_id}_{Category(category).value}"
