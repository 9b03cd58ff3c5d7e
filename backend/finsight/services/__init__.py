from .schedule import is_due, next_due_date, effective_day, period_key
from .materializer import materialize
from .automation import AutomationDriver, RulePersistence, StorePersistence, run_automation_pass
from .ledger import LedgerSession, SessionRegistry
from .insights import InsightService

__all__ = [
    "is_due",
    "next_due_date",
    "effective_day",
    "period_key",
    "materialize",
    "AutomationDriver",
    "RulePersistence",
    "StorePersistence",
    "run_automation_pass",
    "LedgerSession",
    "SessionRegistry",
    "InsightService",
]
