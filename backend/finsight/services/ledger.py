"""Per-user live view over transactions, budgets and recurring rules."""
import logging
import time
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from pydantic import ValidationError
from finsight.config import settings
from finsight.models.budget import Budget, budget_key
from finsight.models.category import Category
from finsight.models.recurring import RecurringRule, RecurringRuleCreate
from finsight.models.recurring import to_document as rule_document
from finsight.models.transaction import Transaction, TransactionDraft, to_document
from finsight.services import aggregates
from finsight.services.automation import (
    RULES,
    TRANSACTIONS,
    AutomationDriver,
    Clock,
    StorePersistence,
    local_now,
)
from finsight.storage.base import DocumentStore, Snapshot, StoreError, Subscription
from finsight.utils.privacy import obfuscate_note

logger = logging.getLogger(__name__)

BUDGETS = "budgets"


def _parse_all(model, docs: Snapshot, collection: str) -> list:
    """Validate stored documents, dropping (and logging) the malformed ones."""
    parsed = []
    for doc in docs:
        try:
            parsed.append(model.model_validate(doc))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed document",
                extra={"collection": collection, "doc_id": doc.get("id"), "errors": e.error_count()},
            )
    return parsed


class LedgerSession:
    """
    One signed-in user's data.

    Subscribes to the user's collections on `open()` and keeps the latest
    snapshot of each. Every rule snapshot, the first one included, is handed to
    the automation driver. Without a user id the session stays empty, writes
    are refused and automation is off.
    """

    def __init__(
        self,
        store: DocumentStore,
        user_id: Optional[str],
        clock: Optional[Clock] = None,
        automation_enabled: Optional[bool] = None,
    ):
        self.store = store
        self.user_id = user_id
        self.clock = clock or local_now
        if automation_enabled is None:
            automation_enabled = settings.automation_enabled
        self.transactions: List[Transaction] = []
        self.budgets: List[Budget] = []
        self.rules: List[RecurringRule] = []
        self.driver: Optional[AutomationDriver] = None
        if user_id:
            self.driver = AutomationDriver(
                StorePersistence(store, user_id),
                clock=self.clock,
                enabled=automation_enabled,
            )
        self._subscriptions: List[Subscription] = []
        self.loading = False

    @property
    def is_open(self) -> bool:
        return bool(self._subscriptions)

    async def open(self) -> None:
        """Start the live queries (rules first, so automation runs on login)."""
        if not self.user_id or self.is_open:
            return
        self.loading = True
        self._subscriptions = [
            self.store.subscribe(RULES, self.user_id, self._on_rules),
            self.store.subscribe(TRANSACTIONS, self.user_id, self._on_transactions),
            self.store.subscribe(BUDGETS, self.user_id, self._on_budgets),
        ]
        logger.info("Session opened", extra={"user_id": self.user_id})

    async def wait_idle(self) -> None:
        """Wait until every pending snapshot, and the passes they trigger, is done."""
        for subscription in list(self._subscriptions):
            await subscription.drain()

    async def close(self) -> None:
        """Tear down on logout: stop automation, then the subscriptions."""
        if self.driver is not None:
            await self.driver.close()
        for subscription in self._subscriptions:
            await subscription.close()
        self._subscriptions = []
        self.transactions = []
        self.budgets = []
        self.rules = []
        logger.info("Session closed", extra={"user_id": self.user_id})

    # ------------------------------------------------------------------
    # Snapshot handlers
    # ------------------------------------------------------------------

    async def _on_rules(self, docs: Snapshot) -> None:
        self.rules = _parse_all(RecurringRule, docs, RULES)
        if self.driver is not None:
            await self.driver.on_rules_changed(self.rules)

    async def _on_transactions(self, docs: Snapshot) -> None:
        self.transactions = _parse_all(Transaction, docs, TRANSACTIONS)
        self.loading = False

    async def _on_budgets(self, docs: Snapshot) -> None:
        self.budgets = _parse_all(Budget, docs, BUDGETS)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_transaction(self, draft: TransactionDraft) -> Optional[str]:
        """Store a manually entered transaction; returns its id, or None on failure."""
        if not self.user_id:
            return None
        try:
            # Idempotency keys are reserved for automation
            draft = draft.model_copy(update={"idempotency_key": None})
            return await self.store.insert(TRANSACTIONS, to_document(draft, self.user_id, self.clock()))
        except StoreError as e:
            logger.error(
                "Error adding transaction",
                extra={"user_id": self.user_id, "note": obfuscate_note(draft.note), "error": str(e)},
            )
            return None

    async def delete_transaction(self, transaction_id: str) -> bool:
        return await self._delete(TRANSACTIONS, transaction_id)

    async def update_budget(self, category: Category, limit: Decimal) -> bool:
        """Set a category's limit; saving again overwrites."""
        if not self.user_id:
            return False
        try:
            budget = Budget(category=category, limit=limit)
        except ValidationError as e:
            logger.warning("Rejected budget", extra={"user_id": self.user_id, "errors": e.error_count()})
            return False
        try:
            await self.store.upsert(
                BUDGETS,
                budget_key(self.user_id, budget.category),
                {"user_id": self.user_id, **budget.model_dump(mode="json")},
            )
        except StoreError as e:
            logger.error("Error updating budget", extra={"user_id": self.user_id, "error": str(e)})
            return False
        return True

    async def add_rule(self, rule: RecurringRuleCreate) -> Optional[str]:
        """Store a new recurring rule; returns its id, or None on failure."""
        if not self.user_id:
            return None
        try:
            return await self.store.insert(RULES, rule_document(rule, self.user_id))
        except StoreError as e:
            logger.error("Error adding recurring rule", extra={"user_id": self.user_id, "error": str(e)})
            return None

    async def delete_rule(self, rule_id: str) -> bool:
        return await self._delete(RULES, rule_id)

    async def _delete(self, collection: str, doc_id: str) -> bool:
        if not self.user_id:
            return False
        try:
            doc = await self.store.get(collection, doc_id)
            if doc is None or doc.get("user_id") != self.user_id:
                return False
            await self.store.delete(collection, doc_id)
        except StoreError as e:
            logger.error(
                "Error deleting document",
                extra={"collection": collection, "doc_id": doc_id, "error": str(e)},
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Aggregate readers
    # ------------------------------------------------------------------

    def get_income(self) -> Decimal:
        return aggregates.get_income(self.transactions)

    def get_expenses(self) -> Decimal:
        return aggregates.get_expenses(self.transactions)

    def get_balance(self) -> Decimal:
        return aggregates.get_balance(self.transactions)


class SessionRegistry:
    """
    Open sessions keyed by user id.

    Sessions nobody touched for `idle_timeout` seconds are closed on the next
    `get()`, so requests for many users do not keep their live queries
    running forever.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Optional[Clock] = None,
        idle_timeout: Optional[float] = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.clock = clock
        self.idle_timeout = settings.session_idle_timeout if idle_timeout is None else idle_timeout
        self._timer = timer
        self._sessions: Dict[str, LedgerSession] = {}
        self._last_used: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    async def get(self, user_id: str) -> LedgerSession:
        """Return the user's session, opening it on first use."""
        await self.evict_idle(keep=user_id)
        self._last_used[user_id] = self._timer()
        session = self._sessions.get(user_id)
        if session is None:
            session = LedgerSession(self.store, user_id, clock=self.clock)
            self._sessions[user_id] = session
            await session.open()
        return session

    async def evict_idle(self, keep: Optional[str] = None) -> List[str]:
        """Close sessions idle for longer than the timeout; returns their user ids."""
        if not self.idle_timeout or self.idle_timeout <= 0:
            return []
        now = self._timer()
        idle = [
            user_id for user_id, last_used in self._last_used.items()
            if user_id != keep and now - last_used > self.idle_timeout
        ]
        for user_id in idle:
            await self.close(user_id)
        if idle:
            logger.info("Closed idle sessions", extra={"count": len(idle)})
        return idle

    async def close(self, user_id: str) -> bool:
        self._last_used.pop(user_id, None)
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        await session.close()
        return True

    async def close_all(self) -> None:
        for user_id in list(self._sessions):
            await self.close(user_id)
