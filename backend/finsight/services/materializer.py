"""Builds the transaction a due recurring rule produces."""
from datetime import datetime
from finsight.models.recurring import RecurringRule
from finsight.models.transaction import TransactionDraft
from finsight.services.schedule import effective_day, period_key
from finsight.utils.timestamp import utc_midnight

AUTO_NOTE_SUFFIX = " (Auto)"


def auto_note(note: str) -> str:
    """Mark a note as created by automation."""
    note = (note or "").strip()
    return f"{note}{AUTO_NOTE_SUFFIX}" if note else AUTO_NOTE_SUFFIX.strip()


def materialize(rule: RecurringRule, now: datetime) -> TransactionDraft:
    """
    Build the transaction for the current month's run of a rule.

    Only call this for rules `is_due` approved. The transaction is dated on the
    rule's trigger day of `now`'s month (clamped to the month length), at
    midnight UTC.
    """
    day = effective_day(rule.day_of_month, now.year, now.month)
    return TransactionDraft(
        amount=rule.amount,
        category=rule.category,
        date=utc_midnight(now.year, now.month, day),
        note=auto_note(rule.note),
        type=rule.type,
        receipt_url=None,
        idempotency_key=period_key(rule.id, now),
    )
