"""Document store interface and live query subscriptions."""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]
SnapshotCallback = Callable[[Snapshot], Awaitable[None]]


class StoreError(Exception):
    """A read or write against the document store failed."""


class DocumentNotFound(StoreError):
    """No document with the given id exists in the collection."""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class Subscription:
    """
    Live query over one user's documents in one collection.

    Delivers the current snapshot once on start and again after every change.
    Notifications go through a queue drained by a single task, so the callback
    runs for one snapshot at a time, in emission order, and may itself write to
    the store without re-entering. The snapshot is read when the notification
    is delivered, not when the change happened: several changes made before
    the pump runs are all visible in each of their deliveries. Callback errors
    are logged; the subscription stays alive.
    """

    def __init__(
        self,
        store: "DocumentStore",
        collection: str,
        user_id: str,
        callback: SnapshotCallback,
    ):
        self.store = store
        self.collection = collection
        self.user_id = user_id
        self._callback = callback
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self.closed = False

    def start(self) -> None:
        """Begin delivering snapshots. Must be called from a running event loop."""
        self._task = asyncio.get_running_loop().create_task(self._pump())
        self.notify()

    def notify(self) -> None:
        if not self.closed:
            self._queue.put_nowait(None)

    async def _pump(self) -> None:
        while True:
            await self._queue.get()
            try:
                if not self.closed:
                    snapshot = await self.store.query(self.collection, self.user_id)
                    await self._callback(snapshot)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception(
                    "Snapshot delivery failed",
                    extra={"collection": self.collection},
                )
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Wait until every queued notification has been delivered."""
        if self._task is not None and not self.closed:
            await self._queue.join()

    async def close(self) -> None:
        """Stop delivering snapshots and detach from the store."""
        if self.closed:
            return
        self.closed = True
        self.store.detach(self)
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None


class DocumentStore(ABC):
    """Schemaless per-user collections with live queries."""

    def __init__(self):
        self._subscriptions: Dict[tuple, List[Subscription]] = {}

    @abstractmethod
    async def query(self, collection: str, user_id: str) -> Snapshot:
        """All documents of a user in a collection, oldest first, each with its 'id'."""
        pass

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """A single document by id, or None."""
        pass

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        user_id: str,
        field: str,
        value: Any,
    ) -> Optional[Dict[str, Any]]:
        """First document of a user whose top-level `field` equals `value`."""
        pass

    @abstractmethod
    async def insert(self, collection: str, data: Dict[str, Any]) -> str:
        """Store a new document (must carry 'user_id'); returns the assigned id."""
        pass

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite the named fields of an existing document."""
        pass

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document."""
        pass

    @abstractmethod
    async def upsert(self, collection: str, key: str, data: Dict[str, Any]) -> None:
        """Create or fully replace the document stored at `key`."""
        pass

    def subscribe(
        self,
        collection: str,
        user_id: str,
        callback: SnapshotCallback,
    ) -> Subscription:
        """Start a live query; the first snapshot is delivered right away."""
        subscription = Subscription(self, collection, user_id, callback)
        self._subscriptions.setdefault((collection, user_id), []).append(subscription)
        subscription.start()
        return subscription

    def detach(self, subscription: Subscription) -> None:
        key = (subscription.collection, subscription.user_id)
        subs = self._subscriptions.get(key, [])
        if subscription in subs:
            subs.remove(subscription)
        if not subs:
            self._subscriptions.pop(key, None)

    def _notify(self, collection: str, user_id: str) -> None:
        for subscription in list(self._subscriptions.get((collection, user_id), [])):
            subscription.notify()
