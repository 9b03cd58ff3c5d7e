"""Builders for test data."""
from datetime import datetime, timezone
from decimal import Decimal
from finsight.models.recurring import RecurringRule
from finsight.models.transaction import Transaction


class FixedClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, year: int, month: int, day: int, hour: int = 12) -> None:
        self.now = datetime(year, month, day, hour, tzinfo=timezone.utc)


def at(year: int, month: int, day: int, hour: int = 12) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_rule(**overrides) -> RecurringRule:
    data = {
        "id": "rule_rent",
        "user_id": "user_1",
        "type": "expense",
        "category": "Rent",
        "amount": Decimal("25000"),
        "day_of_month": 3,
        "note": "Apartment rent",
        "last_processed_date": None,
    }
    data.update(overrides)
    return RecurringRule(**data)


def make_transaction(tx_id: str, tx_type: str, amount, category: str, when: datetime, note: str = "") -> Transaction:
    return Transaction(
        id=tx_id,
        user_id="user_1",
        type=tx_type,
        amount=Decimal(str(amount)),
        category=category,
        date=when,
        note=note,
    )
