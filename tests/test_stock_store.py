import asyncio

import pytest

from models import BloodGroup, StockRecord
from services.exceptions import InvalidBloodGroup, RecordNotFound
from services.stock_store import COLLECTION, StockRecordStore


async def test_find_or_create_uses_defaults(store):
    record = await store.find_or_create("bank-1", "AB-")

    assert record.blood_group == BloodGroup.AB_NEGATIVE
    assert record.current_stock == 0
    assert record.reserved_stock == 0
    assert record.capacity == 100
    assert record.critical_level == 10
    assert record.low_level == 20
    assert record.version == 0


async def test_find_or_create_defaults_come_from_store_config(db):
    store = StockRecordStore(db, default_capacity=250, default_critical_level=5, default_low_level=15)

    record = await store.find_or_create("bank-1", "A+")

    assert (record.capacity, record.critical_level, record.low_level) == (250, 5, 15)


async def test_find_or_create_returns_existing_record(store, seed):
    seeded = await seed(current_stock=42)

    record = await store.find_or_create("bank-1", "O+")

    assert record.id == seeded.id
    assert record.current_stock == 42


async def test_concurrent_find_or_create_yields_one_record(store, db):
    records = await asyncio.gather(*[store.find_or_create("bank-1", "B+") for _ in range(5)])

    assert len({r.id for r in records}) == 1
    assert await db[COLLECTION].count_documents({"blood_bank": "bank-1", "blood_group": "B+"}) == 1


async def test_get_missing_record_raises(store):
    with pytest.raises(RecordNotFound):
        await store.get("bank-1", "O-")


async def test_get_twice_returns_same_derived_values(store, seed):
    await seed(current_stock=15, capacity=60)

    first = await store.get("bank-1", "O+")
    second = await store.get("bank-1", "O+")

    assert (first.status, first.utilization) == (second.status, second.utilization)


async def test_unknown_blood_group_rejected(store):
    with pytest.raises(InvalidBloodGroup):
        await store.find_or_create("bank-1", "C+")


async def test_list_by_bank_sorted_by_blood_group(store, seed):
    for group in ["O-", "A+", "B+"]:
        await seed(blood_group=group)
    await seed(blood_bank="bank-2", blood_group="AB+")

    records = await store.list_by_bank("bank-1")

    assert [r.blood_group.value for r in records] == ["A+", "B+", "O-"]


async def test_list_all_keeps_insertion_order(store, seed):
    await seed(blood_bank="bank-2", blood_group="O-")
    await seed(blood_bank="bank-1", blood_group="A+")

    records = await store.list_all()

    assert [(r.blood_bank, r.blood_group.value) for r in records] == [("bank-2", "O-"), ("bank-1", "A+")]


async def test_replace_if_unchanged_rejects_stale_version(store, seed):
    await seed(current_stock=10)
    current = await store.find_or_create("bank-1", "O+")

    fresh = current.model_copy(update={"current_stock": 12, "version": 1})
    assert await store.replace_if_unchanged(fresh, expected_version=0)

    stale = current.model_copy(update={"current_stock": 99, "version": 1})
    assert not await store.replace_if_unchanged(stale, expected_version=0)

    stored = await store.get("bank-1", "O+")
    assert stored.current_stock == 12
    assert stored.version == 1


async def test_replace_keeps_identity_fields(store, seed):
    seeded = await seed(current_stock=10)
    changed = StockRecord(**seeded.to_document())
    changed.current_stock = 11
    changed.version = 1

    await store.replace_if_unchanged(changed, expected_version=0)

    stored = await store.get("bank-1", "O+")
    assert stored.id == seeded.id
    assert stored.created_at == seeded.created_at
