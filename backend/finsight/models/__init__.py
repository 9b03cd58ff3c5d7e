from .category import (
    Category,
    TransactionType,
    EXPENSE_CATEGORIES,
    INCOME_CATEGORIES,
    categories_for,
)
from .transaction import Transaction, TransactionDraft
from .recurring import RecurringRule, RecurringRuleCreate, UpcomingCharge
from .budget import Budget, BudgetUpdate, budget_key
from .summary import (
    Totals,
    CategoryTotal,
    DailyPoint,
    MonthlyStats,
    BudgetProgress,
    SummaryResponse,
    MonthlyView,
)
from .insight import (
    ReceiptExtraction,
    AIInsight,
    InsightsResponse,
    CategorizeRequest,
    CategorizeResponse,
)
from .automation import PersistedEffect, AutomationRunResponse

__all__ = [
    "Category",
    "TransactionType",
    "EXPENSE_CATEGORIES",
    "INCOME_CATEGORIES",
    "categories_for",
    "Transaction",
    "TransactionDraft",
    "RecurringRule",
    "RecurringRuleCreate",
    "UpcomingCharge",
    "Budget",
    "BudgetUpdate",
    "budget_key",
    "Totals",
    "CategoryTotal",
    "DailyPoint",
    "MonthlyStats",
    "BudgetProgress",
    "SummaryResponse",
    "MonthlyView",
    "ReceiptExtraction",
    "AIInsight",
    "InsightsResponse",
    "CategorizeRequest",
    "CategorizeResponse",
    "PersistedEffect",
    "AutomationRunResponse",
]
