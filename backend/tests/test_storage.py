"""Tests for the SQLite document store and live queries."""
import asyncio
import pytest
from finsight.storage.base import DocumentNotFound, StoreError
from finsight.storage.database import SQLiteDocumentStore, get_store, reset_store


@pytest.mark.asyncio
async def test_insert_query_get(store):
    first = await store.insert("transactions", {"user_id": "u1", "amount": "10", "note": "a"})
    second = await store.insert("transactions", {"user_id": "u1", "amount": "20", "note": "b"})
    await store.insert("transactions", {"user_id": "u2", "amount": "30", "note": "c"})

    docs = await store.query("transactions", "u1")
    assert [d["id"] for d in docs] == [first, second]
    assert docs[0]["note"] == "a"

    doc = await store.get("transactions", second)
    assert doc["amount"] == "20"
    assert doc["user_id"] == "u1"
    assert await store.get("transactions", "missing") is None


@pytest.mark.asyncio
async def test_collections_are_separate(store):
    await store.insert("transactions", {"user_id": "u1"})
    assert await store.query("recurring_rules", "u1") == []


@pytest.mark.asyncio
async def test_insert_requires_user(store):
    with pytest.raises(StoreError):
        await store.insert("transactions", {"amount": "1"})


@pytest.mark.asyncio
async def test_update_merges_fields(store):
    doc_id = await store.insert("recurring_rules", {"user_id": "u1", "day_of_month": 3, "last_processed_date": None})
    await store.update("recurring_rules", doc_id, {"last_processed_date": "2024-03-05T12:00:00+00:00"})

    doc = await store.get("recurring_rules", doc_id)
    assert doc["day_of_month"] == 3
    assert doc["last_processed_date"] == "2024-03-05T12:00:00+00:00"


@pytest.mark.asyncio
async def test_update_and_delete_missing_raise(store):
    with pytest.raises(DocumentNotFound):
        await store.update("recurring_rules", "nope", {"x": 1})
    with pytest.raises(DocumentNotFound):
        await store.delete("recurring_rules", "nope")


@pytest.mark.asyncio
async def test_delete(store):
    doc_id = await store.insert("transactions", {"user_id": "u1"})
    await store.delete("transactions", doc_id)
    assert await store.query("transactions", "u1") == []


@pytest.mark.asyncio
async def test_upsert_last_write_wins(store):
    await store.upsert("budgets", "u1_Food", {"user_id": "u1", "category": "Food", "limit": "100"})
    await store.upsert("budgets", "u1_Food", {"user_id": "u1", "category": "Food", "limit": "250"})

    docs = await store.query("budgets", "u1")
    assert len(docs) == 1
    assert docs[0]["id"] == "u1_Food"
    assert docs[0]["limit"] == "250"


@pytest.mark.asyncio
async def test_find_one(store):
    await store.insert("transactions", {"user_id": "u1", "idempotency_key": "r1:2024-03"})
    target = await store.insert("transactions", {"user_id": "u1", "idempotency_key": "r1:2024-04"})
    await store.insert("transactions", {"user_id": "u2", "idempotency_key": "r1:2024-05"})

    found = await store.find_one("transactions", "u1", "idempotency_key", "r1:2024-04")
    assert found["id"] == target
    assert await store.find_one("transactions", "u1", "idempotency_key", "r1:2024-05") is None


@pytest.mark.asyncio
async def test_bad_path_raises_store_error(tmp_path):
    with pytest.raises(StoreError):
        SQLiteDocumentStore(str(tmp_path / "missing_dir" / "db.sqlite"))


@pytest.mark.asyncio
async def test_subscription_delivers_initial_and_updates(store):
    await store.insert("transactions", {"user_id": "u1", "note": "existing"})
    snapshots = []

    async def on_snapshot(docs):
        snapshots.append([d["note"] for d in docs])

    subscription = store.subscribe("transactions", "u1", on_snapshot)
    await subscription.drain()
    assert snapshots == [["existing"]]

    await store.insert("transactions", {"user_id": "u1", "note": "new"})
    await store.insert("transactions", {"user_id": "u2", "note": "other user"})
    await subscription.drain()

    assert snapshots[-1] == ["existing", "new"]
    assert all("other user" not in s for s in snapshots)
    await subscription.close()


@pytest.mark.asyncio
async def test_callback_runs_one_snapshot_at_a_time(store):
    active = 0
    peak = 0
    calls = 0

    async def on_snapshot(docs):
        nonlocal active, peak, calls
        active += 1
        peak = max(peak, active)
        calls += 1
        await asyncio.sleep(0)
        active -= 1

    subscription = store.subscribe("transactions", "u1", on_snapshot)
    for i in range(3):
        await store.insert("transactions", {"user_id": "u1", "n": i})
    await subscription.drain()

    assert peak == 1
    assert calls == 4
    await subscription.close()


@pytest.mark.asyncio
async def test_callback_may_write_to_store(store):
    """A callback writing to its own collection does not deadlock or loop forever."""
    async def on_snapshot(docs):
        if not docs:
            await store.insert("recurring_rules", {"user_id": "u1", "seeded": True})

    subscription = store.subscribe("recurring_rules", "u1", on_snapshot)
    await asyncio.wait_for(subscription.drain(), timeout=5)

    assert len(await store.query("recurring_rules", "u1")) == 1
    await subscription.close()


@pytest.mark.asyncio
async def test_callback_error_keeps_subscription_alive(store):
    seen = []

    async def on_snapshot(docs):
        seen.append(len(docs))
        if len(docs) == 1:
            raise RuntimeError("bad handler")

    subscription = store.subscribe("transactions", "u1", on_snapshot)
    await subscription.drain()
    await store.insert("transactions", {"user_id": "u1"})
    await subscription.drain()
    await store.insert("transactions", {"user_id": "u1"})
    await subscription.drain()

    # The handler raised on the second delivery and still got the third
    assert seen == [0, 1, 2]
    assert subscription.closed is False
    await subscription.close()


@pytest.mark.asyncio
async def test_delivery_reads_state_at_delivery_time(store):
    """Changes made before the pump runs are all visible in each queued delivery."""
    seen = []

    async def on_snapshot(docs):
        seen.append(len(docs))

    subscription = store.subscribe("transactions", "u1", on_snapshot)
    await store.insert("transactions", {"user_id": "u1"})
    await store.insert("transactions", {"user_id": "u1"})
    await subscription.drain()

    assert seen == [2, 2, 2]
    await subscription.close()


@pytest.mark.asyncio
async def test_closed_subscription_stops_delivery(store):
    seen = []

    async def on_snapshot(docs):
        seen.append(len(docs))

    subscription = store.subscribe("transactions", "u1", on_snapshot)
    await subscription.drain()
    await subscription.close()
    await store.insert("transactions", {"user_id": "u1"})
    await asyncio.sleep(0)

    assert seen == [0]
    assert subscription.closed is True
    await subscription.close()  # idempotent


def test_global_store_reset(tmp_path):
    path = str(tmp_path / "global.db")
    fresh = reset_store(path)
    assert get_store() is fresh
    assert fresh.db_path == path
