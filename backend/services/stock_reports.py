"""
Inventory Reports
Read-only projections over the stock record store for dashboards.
"""
from collections import OrderedDict
from datetime import datetime, timezone
from typing import List, Optional

from models import (
    BloodGroup, BloodGroupSummary, ExpiringBatch, InventorySummary, LowStockEntry,
    StatusCount, StockRecord, StockStatus, at_or_below, derive_status, get_expiring_soon,
)
from services.stock_store import StockRecordStore

# Thresholds for the aggregated per-group tier; individual records use their own.
SYSTEM_CRITICAL_LEVEL = 10
SYSTEM_LOW_LEVEL = 20


def _is_low(record: StockRecord) -> bool:
    return at_or_below(record.current_stock, record.capacity, record.low_level)


class InventoryReports:
    def __init__(self, store: StockRecordStore):
        self.store = store

    async def system_wide_low_stock(self) -> List[LowStockEntry]:
        """Low records across every bank, most critical first."""
        records = [record for record in await self.store.list_all() if _is_low(record)]
        # sorted() is stable, so equal utilizations keep insertion order
        records = sorted(records, key=lambda record: record.utilization)
        return [
            LowStockEntry(
                blood_bank=record.blood_bank,
                blood_group=record.blood_group,
                current_stock=record.current_stock,
                capacity=record.capacity,
                utilization=record.utilization,
                status=record.status,
            )
            for record in records
        ]

    async def low_stock_for_bank(self, blood_bank: str) -> List[StockRecord]:
        return [record for record in await self.store.list_by_bank(blood_bank) if _is_low(record)]

    async def summary_by_query(self, blood_bank: Optional[str] = None, blood_group=None) -> InventorySummary:
        records = await self.store.find(blood_bank=blood_bank, blood_group=blood_group)
        return InventorySummary(
            total_stock=sum(record.current_stock for record in records),
            total_capacity=sum(record.capacity for record in records),
            low_stock_count=sum(1 for record in records if _is_low(record)),
        )

    async def by_blood_group(self, blood_bank: Optional[str] = None) -> List[BloodGroupSummary]:
        grouped = OrderedDict((bg, []) for bg in BloodGroup)
        for record in await self.store.find(blood_bank=blood_bank):
            grouped[record.blood_group].append(record)

        result = []
        for blood_group, records in grouped.items():
            if not records:
                continue
            total_stock = sum(record.current_stock for record in records)
            total_capacity = sum(record.capacity for record in records)
            average_utilization = sum(record.utilization for record in records) / len(records)

            if average_utilization <= SYSTEM_CRITICAL_LEVEL:
                status = StockStatus.CRITICAL
            elif average_utilization <= SYSTEM_LOW_LEVEL:
                status = StockStatus.LOW
            else:
                status = StockStatus.ADEQUATE

            result.append(BloodGroupSummary(
                blood_group=blood_group,
                total_stock=total_stock,
                total_capacity=total_capacity,
                average_utilization=average_utilization,
                blood_bank_count=len({record.blood_bank for record in records}),
                status=status,
            ))
        return result

    async def status_counts(self, blood_bank: Optional[str] = None) -> StatusCount:
        counts = StatusCount()
        for record in await self.store.find(blood_bank=blood_bank):
            status = derive_status(
                record.current_stock, record.capacity, record.critical_level, record.low_level
            )
            setattr(counts, status.value, getattr(counts, status.value) + 1)
            counts.total += 1
        return counts

    async def expiring_batches(
        self,
        within_days: int = 7,
        blood_bank: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[ExpiringBatch]:
        now = now or datetime.now(timezone.utc)
        result = []
        for record in await self.store.find(blood_bank=blood_bank):
            for batch in get_expiring_soon(record, within_days, now=now):
                result.append(ExpiringBatch(
                    blood_bank=record.blood_bank,
                    blood_group=record.blood_group,
                    units=batch.units,
                    expiry_date=batch.expiry_date,
                    donation_id=batch.donation_id,
                ))
        return sorted(result, key=lambda batch: batch.expiry_date)
