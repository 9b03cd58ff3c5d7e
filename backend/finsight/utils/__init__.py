from .privacy import obfuscate_note, obfuscate_transactions
from .timestamp import parse_timestamp, ensure_aware, coerce_timestamp, utc_midnight

__all__ = [
    "obfuscate_note",
    "obfuscate_transactions",
    "parse_timestamp",
    "ensure_aware",
    "coerce_timestamp",
    "utc_midnight",
]
