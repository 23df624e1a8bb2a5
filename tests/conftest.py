import pytest
from mongomock_motor import AsyncMongoMockClient

from models import StockRecord
from services.stock_ledger import StockLedger
from services.stock_reports import InventoryReports
from services.stock_store import COLLECTION, StockRecordStore


@pytest.fixture
def db():
    return AsyncMongoMockClient()["blood_bank_test"]


@pytest.fixture
async def store(db):
    store = StockRecordStore(db)
    await store.ensure_indexes()
    return store


@pytest.fixture
def ledger(store):
    return StockLedger(store)


@pytest.fixture
def reports(store):
    return InventoryReports(store)


@pytest.fixture
def seed(db):
    """Insert a stock record directly, bypassing the ledger."""
    async def _seed(blood_bank="bank-1", blood_group="O+", **fields):
        record = StockRecord(blood_bank=blood_bank, blood_group=blood_group, **fields)
        await db[COLLECTION].insert_one(record.to_document())
        return record
    return _seed
