"""Recurring rule automation: evaluate, materialize, persist, mark."""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List, Optional, Set
from finsight.models.automation import PersistedEffect
from finsight.models.recurring import RecurringRule
from finsight.models.transaction import TransactionDraft, to_document
from finsight.services.materializer import materialize
from finsight.services.schedule import is_due, period_key
from finsight.storage.base import DocumentStore

logger = logging.getLogger(__name__)

TRANSACTIONS = "transactions"
RULES = "recurring_rules"

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time in the process's local timezone."""
    return datetime.now().astimezone()


class RulePersistence(ABC):
    """The writes an automation pass needs."""

    @abstractmethod
    async def find_materialized(self, idempotency_key: str) -> Optional[str]:
        """Id of the transaction already created for this period, if any."""
        pass

    @abstractmethod
    async def insert_transaction(self, draft: TransactionDraft) -> str:
        """Persist a materialized transaction and return its id."""
        pass

    @abstractmethod
    async def mark_processed(self, rule_id: str, when: datetime) -> None:
        """Record the rule's latest successful run."""
        pass


class StorePersistence(RulePersistence):
    """RulePersistence over a document store, scoped to one user."""

    def __init__(self, store: DocumentStore, user_id: str):
        self.store = store
        self.user_id = user_id

    async def find_materialized(self, idempotency_key: str) -> Optional[str]:
        doc = await self.store.find_one(TRANSACTIONS, self.user_id, "idempotency_key", idempotency_key)
        return doc["id"] if doc else None

    async def insert_transaction(self, draft: TransactionDraft) -> str:
        return await self.store.insert(
            TRANSACTIONS,
            to_document(draft, self.user_id, local_now()),
        )

    async def mark_processed(self, rule_id: str, when: datetime) -> None:
        await self.store.update(RULES, rule_id, {"last_processed_date": when.isoformat()})


async def _write_transaction(
    rule: RecurringRule,
    key: str,
    now: datetime,
    persistence: RulePersistence,
) -> PersistedEffect:
    """Insert the rule's transaction for this period unless one is already stored."""
    try:
        existing_id = await persistence.find_materialized(key)
    except Exception as e:
        logger.error("Idempotency lookup failed", extra={"rule_id": rule.id, "period": key, "error": str(e)})
        return PersistedEffect(rule_id=rule.id, period=key, outcome="failed", error=str(e))

    if existing_id:
        logger.warning(
            "Period already materialized, repairing marker only",
            extra={"rule_id": rule.id, "period": key, "transaction_id": existing_id},
        )
        return PersistedEffect(rule_id=rule.id, period=key, outcome="skipped")

    draft = materialize(rule, now)
    try:
        tx_id = await persistence.insert_transaction(draft)
    except Exception as e:
        logger.error(
            "Failed to persist recurring transaction",
            extra={"rule_id": rule.id, "period": key, "error": str(e)},
        )
        return PersistedEffect(rule_id=rule.id, period=key, outcome="failed", error=str(e))
    logger.info(
        "Materialized recurring transaction",
        extra={"rule_id": rule.id, "period": key, "transaction_id": tx_id, "amount": str(draft.amount)},
    )
    return PersistedEffect(rule_id=rule.id, period=key, outcome="materialized", transaction_id=tx_id)


async def run_automation_pass(
    rules: List[RecurringRule],
    now: datetime,
    persistence: RulePersistence,
    committed: Optional[Set[str]] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> List[PersistedEffect]:
    """
    Evaluate every rule once and commit the due ones, one rule at a time.

    For each due rule the transaction is written first; the rule's marker is
    only updated after that write succeeded. A transaction already stored
    under the rule's period key, or already committed in this session, is not
    written again; the marker write is still attempted, so a marker that
    failed to save earlier is repaired on the next pass.

    Errors are logged and recorded in the returned effects, never raised:
    one rule failing does not stop the others.

    Args:
        rules: Snapshot of the user's rules
        now: Evaluation time; also the marker value written
        persistence: Where transactions and markers go
        committed: Period keys already committed in this session; updated in place
        is_cancelled: Checked before each rule; a True result ends the pass

    Returns:
        One PersistedEffect per due rule
    """
    committed = committed if committed is not None else set()
    effects: List[PersistedEffect] = []

    for index, rule in enumerate(rules):
        if is_cancelled is not None and is_cancelled():
            logger.info("Automation pass cancelled", extra={"remaining_rules": len(rules) - index})
            break

        if not is_due(rule, now):
            continue

        key = period_key(rule.id, now)
        if key in committed:
            # Transaction written earlier this session; the snapshot still shows an old marker
            effect = PersistedEffect(rule_id=rule.id, period=key, outcome="skipped")
        else:
            effect = await _write_transaction(rule, key, now, persistence)
            if effect.outcome == "failed":
                effects.append(effect)
                continue
            committed.add(key)

        try:
            await persistence.mark_processed(rule.id, now)
            effect.marker_written = True
        except Exception as e:
            effect.error = str(e)
            logger.error(
                "Failed to update rule marker",
                extra={"rule_id": rule.id, "period": key, "error": str(e)},
            )

        effects.append(effect)

    return effects


class AutomationDriver:
    """
    Runs automation passes for one user session.

    Passes never overlap: a snapshot arriving while a pass is in flight waits
    for it to finish. Once closed, no further pass starts and a pass in flight
    stops before its next rule.
    """

    def __init__(
        self,
        persistence: RulePersistence,
        clock: Optional[Clock] = None,
        enabled: bool = True,
    ):
        self.persistence = persistence
        self.clock = clock or local_now
        self.enabled = enabled
        self.closed = False
        self._lock = asyncio.Lock()
        self._committed: Set[str] = set()

    async def run(self, rules: List[RecurringRule]) -> List[PersistedEffect]:
        """Run one pass over `rules` at the driver clock's current time."""
        if self.closed or not self.enabled:
            return []
        async with self._lock:
            if self.closed:
                return []
            now = self.clock()
            effects = await run_automation_pass(
                rules,
                now,
                self.persistence,
                committed=self._committed,
                is_cancelled=lambda: self.closed,
            )
        if effects:
            logger.info(
                "Automation pass finished",
                extra={
                    "rules": len(rules),
                    "materialized": sum(1 for e in effects if e.outcome == "materialized"),
                    "failed": sum(1 for e in effects if e.outcome == "failed"),
                },
            )
        return effects

    async def on_rules_changed(self, rules: List[RecurringRule]) -> None:
        """Subscription callback. Never raises."""
        try:
            await self.run(rules)
        except Exception:
            logger.exception("Automation pass crashed")

    async def close(self) -> None:
        """Stop automation and wait for a pass in flight to wind down."""
        self.closed = True
        async with self._lock:
            pass
