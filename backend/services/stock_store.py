"""
Stock Record Store
Keyed Mongo storage for per-(blood bank, blood group) stock records.
"""
import logging
from typing import List, Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from models import BloodGroup, StockRecord
from services.exceptions import InvalidBloodGroup, RecordNotFound

logger = logging.getLogger(__name__)

COLLECTION = "blood_inventory"
IMMUTABLE_FIELDS = ("id", "blood_bank", "blood_group", "created_at")


def normalize_blood_group(blood_group) -> BloodGroup:
    try:
        return BloodGroup(blood_group)
    except ValueError:
        raise InvalidBloodGroup(blood_group) from None


class StockRecordStore:
    """
    Find, list and conditionally replace stock records.

    Writes go through ``replace_if_unchanged`` only; callers outside the
    ledger are expected to use the read methods.
    """

    def __init__(self, db, default_capacity: int = 100, default_critical_level: int = 10,
                 default_low_level: int = 20):
        self.collection = db[COLLECTION]
        self.default_capacity = default_capacity
        self.default_critical_level = default_critical_level
        self.default_low_level = default_low_level

    @classmethod
    def from_settings(cls, db, settings) -> "StockRecordStore":
        return cls(
            db,
            default_capacity=settings.default_capacity,
            default_critical_level=settings.default_critical_level,
            default_low_level=settings.default_low_level,
        )

    async def ensure_indexes(self):
        await self.collection.create_index(
            [("blood_bank", ASCENDING), ("blood_group", ASCENDING)],
            unique=True,
            name="blood_bank_blood_group_unique",
        )

    @staticmethod
    def _key(blood_bank: str, blood_group) -> dict:
        return {"blood_bank": blood_bank, "blood_group": normalize_blood_group(blood_group).value}

    async def find_or_create(self, blood_bank: str, blood_group) -> StockRecord:
        key = self._key(blood_bank, blood_group)
        defaults = StockRecord(
            blood_bank=blood_bank,
            blood_group=key["blood_group"],
            capacity=self.default_capacity,
            critical_level=self.default_critical_level,
            low_level=self.default_low_level,
        ).to_document()
        for field in key:
            defaults.pop(field)

        try:
            result = await self.collection.update_one(key, {"$setOnInsert": defaults}, upsert=True)
            if result.upserted_id is not None:
                logger.info("Created stock record bank=%s group=%s", blood_bank, key["blood_group"])
        except DuplicateKeyError:
            # Lost the insert race; the winner's document is read below.
            logger.debug("Concurrent create for bank=%s group=%s", blood_bank, key["blood_group"])

        doc = await self.collection.find_one(key, {"_id": 0})
        return StockRecord(**doc)

    async def get(self, blood_bank: str, blood_group) -> StockRecord:
        key = self._key(blood_bank, blood_group)
        doc = await self.collection.find_one(key, {"_id": 0})
        if not doc:
            raise RecordNotFound(
                f"No stock record for blood bank {blood_bank} and group {key['blood_group']}"
            )
        return StockRecord(**doc)

    async def find(self, blood_bank: Optional[str] = None, blood_group=None) -> List[StockRecord]:
        """Matching records in insertion order."""
        query = {}
        if blood_bank:
            query["blood_bank"] = blood_bank
        if blood_group:
            query["blood_group"] = normalize_blood_group(blood_group).value

        docs = await self.collection.find(query, {"_id": 0}, sort=[("_id", ASCENDING)]).to_list(None)
        return [StockRecord(**doc) for doc in docs]

    async def list_by_bank(self, blood_bank: str) -> List[StockRecord]:
        records = await self.find(blood_bank=blood_bank)
        return sorted(records, key=lambda record: record.blood_group.value)

    async def list_all(self) -> List[StockRecord]:
        return await self.find()

    async def replace_if_unchanged(self, record: StockRecord, expected_version: int) -> bool:
        """
        Persist ``record`` only if the stored version still equals
        ``expected_version``. Returns False when another writer got there first.
        """
        doc = record.to_document()
        for field in IMMUTABLE_FIELDS:
            doc.pop(field)

        query = self._key(record.blood_bank, record.blood_group)
        query["version"] = expected_version
        result = await self.collection.update_one(query, {"$set": doc})
        return result.matched_count == 1
