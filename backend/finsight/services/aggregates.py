"""Folds over a user's transactions for dashboards and budgets."""
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from finsight.models.budget import Budget
from finsight.models.category import Category, TransactionType, EXPENSE_CATEGORIES
from finsight.models.summary import (
    BudgetProgress,
    CategoryTotal,
    DailyPoint,
    MonthlyStats,
    Totals,
)
from finsight.models.transaction import Transaction

ZERO = Decimal("0")

# Budget usage above this percentage is flagged as a warning
WARNING_PERCENT = 75.0


def sum_where(transactions: Iterable[Transaction], tx_type: TransactionType) -> Decimal:
    """Sum of amounts of one transaction type."""
    tx_type = TransactionType(tx_type)
    return sum((t.amount for t in transactions if t.type == tx_type), ZERO)


def get_income(transactions: Iterable[Transaction]) -> Decimal:
    return sum_where(transactions, TransactionType.INCOME)


def get_expenses(transactions: Iterable[Transaction]) -> Decimal:
    return sum_where(transactions, TransactionType.EXPENSE)


def get_balance(transactions: Iterable[Transaction]) -> Decimal:
    transactions = list(transactions)
    return get_income(transactions) - get_expenses(transactions)


def totals(transactions: Iterable[Transaction]) -> Totals:
    transactions = list(transactions)
    income = get_income(transactions)
    expenses = get_expenses(transactions)
    return Totals(income=income, expenses=expenses, balance=income - expenses)


def expenses_by_category(transactions: Iterable[Transaction]) -> List[CategoryTotal]:
    """Expense totals per category, largest first."""
    by_category: Dict[Category, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            by_category[t.category] += t.amount
    return [
        CategoryTotal(category=category, amount=amount)
        for category, amount in sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)
    ]


def daily_series(transactions: Iterable[Transaction], days: int = 7) -> List[DailyPoint]:
    """
    Income and expense per calendar day, oldest first.

    Only days that have transactions appear; the last `days` of them are kept.
    """
    by_day: Dict[date, DailyPoint] = {}
    for t in sorted(transactions, key=lambda t: t.date):
        day = t.date.date()
        point = by_day.setdefault(day, DailyPoint(date=day))
        if t.type == TransactionType.INCOME:
            point.income += t.amount
        else:
            point.expense += t.amount
    points = list(by_day.values())
    return points[-days:] if days > 0 else points


def _matches(t: Transaction, term: str) -> bool:
    return (
        term in (t.note or "").lower()
        or term in t.category.value.lower()
        or term in str(t.amount)
    )


def filter_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    search: Optional[str] = None,
) -> List[Transaction]:
    """
    Transactions dated in the given month, newest first.

    A non-blank search term keeps only transactions whose note, category or
    amount contains it (case-insensitive).
    """
    term = (search or "").strip().lower()
    result = [
        t for t in transactions
        if t.date.year == year and t.date.month == month and (not term or _matches(t, term))
    ]
    return sorted(result, key=lambda t: t.date, reverse=True)


def monthly_stats(transactions: Iterable[Transaction]) -> MonthlyStats:
    transactions = list(transactions)
    income = get_income(transactions)
    expense = get_expenses(transactions)
    return MonthlyStats(income=income, expense=expense, savings=income - expense)


def budget_progress(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    categories: Optional[List[Category]] = None,
) -> List[BudgetProgress]:
    """
    Spending against each category's limit.

    Categories without a budget get a limit of 0 and report 0 %.
    """
    limits = {b.category: b.limit for b in budgets}
    spent_by_category: Dict[Category, Decimal] = defaultdict(lambda: ZERO)
    for t in transactions:
        if t.type == TransactionType.EXPENSE:
            spent_by_category[t.category] += t.amount

    progress = []
    for category in categories or EXPENSE_CATEGORIES:
        limit = limits.get(category, ZERO)
        spent = spent_by_category[category]
        percentage = float(spent / limit * 100) if limit > 0 else 0.0
        over_budget = limit > 0 and spent > limit
        if percentage > 100:
            status = "exceeded"
        elif percentage > WARNING_PERCENT:
            status = "warning"
        else:
            status = "ok"
        progress.append(BudgetProgress(
            category=category,
            limit=limit,
            spent=spent,
            percentage=percentage,
            remaining=max(ZERO, limit - spent),
            over_budget=over_budget,
            status=status,
        ))
    return progress
