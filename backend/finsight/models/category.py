"""Transaction types and the category sets allowed for each."""
from enum import Enum
from typing import List


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    """All known categories; which ones are valid depends on the type."""

    FOOD = "Food"
    TRAVEL = "Travel"
    RENT = "Rent"
    BILLS = "Bills"
    SHOPPING = "Shopping"
    SALARY = "Salary"
    INVESTMENT = "Investment"
    FREELANCE = "Freelance"
    CUSTOM = "Custom"


EXPENSE_CATEGORIES: List[Category] = [
    Category.FOOD,
    Category.TRAVEL,
    Category.RENT,
    Category.BILLS,
    Category.SHOPPING,
    Category.CUSTOM,
]

INCOME_CATEGORIES: List[Category] = [
    Category.SALARY,
    Category.INVESTMENT,
    Category.FREELANCE,
    Category.CUSTOM,
]


def categories_for(tx_type: TransactionType) -> List[Category]:
    """Return the categories a transaction of this type may carry."""
    if TransactionType(tx_type) is TransactionType.INCOME:
        return INCOME_CATEGORIES
    return EXPENSE_CATEGORIES


def check_category(tx_type: TransactionType, category: Category) -> None:
    """Raise ValueError when the category does not belong to the type."""
    if Category(category) not in categories_for(tx_type):
        allowed = ", ".join(c.value for c in categories_for(tx_type))
        raise ValueError(
            f"Category '{Category(category).value}' is not valid for "
            f"{TransactionType(tx_type).value} (expected one of: {allowed})"
        )
