"""Privacy utilities for obfuscating sensitive data in logs."""
import re
from typing import List


def obfuscate_note(note: str) -> str:
    """
    Obfuscate free-text notes before they reach the logs.
    Replaces alphanumeric characters with asterisks, preserves structure.
    """
    return re.sub(r'[A-Za-z0-9]', '*', note or "")


def obfuscate_transactions(transactions: list) -> List[dict]:
    """
    Obfuscate transaction data for logging.
    Returns a list of dictionaries with obfuscated notes.
    """
    return [
        {
            "date": tx.date.date().isoformat(),
            "amount": str(tx.amount),
            "type": tx.type.value,
            "category": tx.category.value,
            "note": obfuscate_note(tx.note),
        }
        for tx in transactions
    ]
