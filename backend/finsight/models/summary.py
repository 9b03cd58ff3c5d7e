"""Aggregate and response models."""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field
from finsight.models.category import Category
from finsight.models.transaction import Transaction


class Totals(BaseModel):
    """Income, expenses and balance over a transaction set."""

    income: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")
    balance: Decimal = Decimal("0")


class CategoryTotal(BaseModel):
    """Total spent in one category."""

    category: Category
    amount: Decimal


class DailyPoint(BaseModel):
    """Income and expense booked on one calendar day."""

    date: date
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class MonthlyStats(BaseModel):
    """Totals for a month view."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    savings: Decimal = Decimal("0")


class BudgetProgress(BaseModel):
    """How much of a category budget has been used."""

    category: Category
    limit: Decimal
    spent: Decimal
    percentage: float = Field(..., ge=0.0, description="spent / limit * 100, 0 when no limit")
    remaining: Decimal
    over_budget: bool
    status: str = Field(..., description="'ok', 'warning' (>75%) or 'exceeded' (>100%)")


class SummaryResponse(BaseModel):
    """Dashboard payload."""

    user_id: str
    totals: Totals
    expenses_by_category: List[CategoryTotal] = Field(default_factory=list)
    daily: List[DailyPoint] = Field(default_factory=list)


class MonthlyView(BaseModel):
    """Transactions of one month, filtered and sorted newest first."""

    user_id: str
    year: int
    month: int
    search: Optional[str] = None
    stats: MonthlyStats
    transactions: List[Transaction] = Field(default_factory=list)
