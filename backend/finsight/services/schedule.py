"""Due-date evaluation for recurring rules."""
import calendar
from datetime import date, datetime
from finsight.models.recurring import RecurringRule


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def effective_day(day_of_month: int, year: int, month: int) -> int:
    """Trigger day inside a given month; days past the month end clamp to its last day."""
    return min(day_of_month, days_in_month(year, month))


def period_key(rule_id: str, when: datetime) -> str:
    """Identifies one rule's run for one calendar month, e.g. 'abc:2024-03'."""
    return f"{rule_id}:{when.year:04d}-{when.month:02d}"


def _marker_in_tz(rule: RecurringRule, now: datetime) -> datetime:
    marker = rule.last_processed_date
    if marker.tzinfo is not None and now.tzinfo is not None:
        return marker.astimezone(now.tzinfo)
    return marker


def is_due(rule: RecurringRule, now: datetime) -> bool:
    """
    Decide whether a rule should be materialized at `now`.

    A rule is due once the current month's trigger day has been reached and it
    has not yet run in the current calendar month. The marker is compared in
    `now`'s timezone.

    Args:
        rule: The recurring rule
        now: Evaluation time (injected, never read from the clock here)

    Returns:
        True if a transaction should be created for this month
    """
    trigger_reached = now.day >= effective_day(rule.day_of_month, now.year, now.month)
    if rule.last_processed_date is None:
        return trigger_reached

    marker = _marker_in_tz(rule, now)
    ran_before_this_month = (marker.year, marker.month) < (now.year, now.month)
    return ran_before_this_month and trigger_reached


def next_due_date(rule: RecurringRule, now: datetime) -> date:
    """
    Calendar date on which the rule will next fire.

    Returns today's date when the rule is due right now.
    """
    if is_due(rule, now):
        return now.date()

    year, month = now.year, now.month
    day = effective_day(rule.day_of_month, year, month)
    # Not due yet this month means either the day is ahead or this month already ran
    if now.day >= day:
        month += 1
        if month > 12:
            year, month = year + 1, 1
        day = effective_day(rule.day_of_month, year, month)
    return date(year, month, day)
