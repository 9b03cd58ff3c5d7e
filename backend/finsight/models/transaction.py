"""Transaction data models."""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from finsight.models.category import Category, TransactionType, check_category
from finsight.utils.timestamp import coerce_timestamp


class TransactionDraft(BaseModel):
    """An unsaved transaction, from manual entry or from a recurring rule."""

    amount: Decimal = Field(..., gt=0, description="Positive amount in the user's currency unit")
    category: Category = Field(..., description="Transaction category")
    date: datetime = Field(..., description="Effective date the transaction represents")
    note: str = Field(default="", description="Free-text label")
    type: TransactionType = Field(..., description="'income' or 'expense'")
    receipt_url: Optional[str] = Field(None, description="Receipt image (URL or base64)")
    idempotency_key: Optional[str] = Field(
        None, description="'<rule_id>:<YYYY-MM>' for transactions created from a recurring rule"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "amount": "25000",
                "category": "Rent",
                "date": "2024-03-03T00:00:00+00:00",
                "note": "Apartment rent",
                "type": "expense",
                "receipt_url": None,
            }
        }
    }

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return coerce_timestamp(v)

    @field_validator("note", mode="before")
    @classmethod
    def validate_note(cls, v):
        return v or ""

    @model_validator(mode="after")
    def validate_category(self):
        check_category(self.type, self.category)
        return self


class Transaction(TransactionDraft):
    """A stored transaction. Immutable once created except for deletion."""

    id: str
    user_id: str = Field(..., description="Owner")
    created_at: Optional[datetime] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def validate_created_at(cls, v):
        return coerce_timestamp(v)


def to_document(draft: TransactionDraft, user_id: str, created_at: datetime) -> dict:
    """Complete field set for the store; optional fields become explicit nulls."""
    data = draft.model_dump(mode="json")
    return {
        "amount": data["amount"],
        "category": data["category"],
        "date": data["date"],
        "note": data["note"] or "",
        "type": data["type"],
        "receipt_url": data.get("receipt_url"),
        "idempotency_key": data.get("idempotency_key"),
        "user_id": user_id,
        "created_at": created_at.isoformat(),
    }
