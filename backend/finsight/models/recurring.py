"""Recurring rule models."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from finsight.models.category import Category, TransactionType, check_category
from finsight.utils.timestamp import coerce_timestamp


class RecurringRuleCreate(BaseModel):
    """A recurring transaction template as entered by the user."""

    type: TransactionType
    category: Category
    amount: Decimal = Field(..., gt=0, description="Amount charged every month")
    day_of_month: int = Field(..., ge=1, le=31, description="Calendar day the rule triggers on")
    note: str = Field(default="", description="Free-text label")

    @field_validator("note", mode="before")
    @classmethod
    def validate_note(cls, v):
        return v or ""

    @model_validator(mode="after")
    def validate_category(self):
        check_category(self.type, self.category)
        return self


class RecurringRule(RecurringRuleCreate):
    """A stored recurring rule."""

    id: str
    user_id: str
    last_processed_date: Optional[datetime] = Field(
        None, description="Most recent successful materialization; None means never run"
    )

    @field_validator("last_processed_date", mode="before")
    @classmethod
    def validate_last_processed(cls, v):
        return coerce_timestamp(v)


def to_document(rule: RecurringRuleCreate, user_id: str) -> dict:
    """Complete field set for a new rule document."""
    data = rule.model_dump(mode="json")
    return {
        "type": data["type"],
        "category": data["category"],
        "amount": data["amount"],
        "day_of_month": data["day_of_month"],
        "note": data["note"],
        "user_id": user_id,
        "last_processed_date": None,
    }


class UpcomingCharge(BaseModel):
    """When a rule fires next."""

    rule_id: str
    next_due_date: date
    type: TransactionType
    category: Category
    amount: Decimal
    note: str = ""
