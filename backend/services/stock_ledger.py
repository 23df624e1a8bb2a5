"""
Stock Ledger
The only write path into stock records.

Each operation reads the record, validates and applies the change to a
copy, then writes it back with a compare-and-set on ``version``. A lost
race re-runs the whole operation against a fresh read.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from models import (
    AlertSeverity, AlertType, ExpiryBatch, InventoryOperation, StockAlert, StockRecord, at_or_below,
)
from services.exceptions import (
    ConcurrentUpdateConflict, InsufficientStock, InvalidExpiryDate, InvalidOperation,
    InvalidQuantity, RecordNotFound,
)
from services.stock_store import StockRecordStore, normalize_blood_group

logger = logging.getLogger(__name__)


def validate_units(units) -> int:
    if isinstance(units, bool) or not isinstance(units, int) or units <= 0:
        raise InvalidQuantity(units)
    return units


def build_low_stock_alert(record: StockRecord) -> Optional[StockAlert]:
    """Low-stock alert for the record's current level, or None when stock is above the low tier."""
    if not at_or_below(record.current_stock, record.capacity, record.low_level):
        return None
    if at_or_below(record.current_stock, record.capacity, record.critical_level):
        severity = AlertSeverity.HIGH
    else:
        severity = AlertSeverity.MEDIUM
    return StockAlert(
        type=AlertType.LOW_STOCK,
        message=f"{record.blood_group.value} stock is low: {record.current_stock} units remaining",
        severity=severity,
    )


class StockLedger:
    def __init__(
        self,
        store: StockRecordStore,
        raise_alert_on_manual_removal: bool = False,
        max_alerts_per_record: Optional[int] = None,
        retry_limit: int = 3,
    ):
        self.store = store
        self.raise_alert_on_manual_removal = raise_alert_on_manual_removal
        self.max_alerts_per_record = max_alerts_per_record
        self.retry_limit = retry_limit

    @classmethod
    def from_settings(cls, store: StockRecordStore, settings) -> "StockLedger":
        return cls(
            store,
            raise_alert_on_manual_removal=settings.raise_alert_on_manual_removal,
            max_alerts_per_record=settings.max_alerts_per_record,
            retry_limit=settings.update_retry_limit,
        )

    async def add_stock_from_donation(
        self,
        blood_bank: str,
        blood_group,
        units: int,
        expiry_date: datetime,
        donation_id: Optional[str] = None,
    ) -> StockRecord:
        """
        Add units collected from a lab-cleared donation.

        Appends one expiry batch. Capacity is not enforced and existing
        alerts are left as they are.
        """
        validate_units(units)
        normalize_blood_group(blood_group)
        if expiry_date.tzinfo is None:
            expiry_date = expiry_date.replace(tzinfo=timezone.utc)
        if expiry_date <= datetime.now(timezone.utc):
            raise InvalidExpiryDate(expiry_date)

        def apply(record: StockRecord, now: datetime):
            record.current_stock += units
            record.expiry_batches.append(
                ExpiryBatch(units=units, expiry_date=expiry_date, donation_id=donation_id)
            )

        record = await self._mutate(blood_bank, blood_group, apply)
        logger.info(
            "Added %d units of %s to bank=%s from donation=%s (stock=%d)",
            units, record.blood_group.value, blood_bank, donation_id, record.current_stock,
        )
        return record

    async def remove_stock(
        self,
        blood_bank: str,
        blood_group,
        units: int,
        request_id: Optional[str] = None,
    ) -> StockRecord:
        """
        Remove units for a fulfilled request.

        Raises InsufficientStock without touching the record when fewer than
        ``units`` are available. A successful removal that leaves the record
        at or below its low level appends a new low-stock alert.
        """
        validate_units(units)
        normalize_blood_group(blood_group)

        def apply(record: StockRecord, now: datetime):
            self._take(record, units)
            self._append_low_stock_alert(record)

        record = await self._mutate(blood_bank, blood_group, apply)
        logger.info(
            "Removed %d units of %s from bank=%s for request=%s (stock=%d)",
            units, record.blood_group.value, blood_bank, request_id, record.current_stock,
        )
        return record

    async def update_inventory(
        self,
        blood_bank: str,
        blood_group,
        units: int,
        operation,
    ) -> StockRecord:
        """Manual stock correction; additions carry no expiry batch."""
        try:
            operation = InventoryOperation(operation)
        except ValueError:
            raise InvalidOperation(operation) from None
        validate_units(units)
        normalize_blood_group(blood_group)

        def apply(record: StockRecord, now: datetime):
            if operation == InventoryOperation.ADD:
                record.current_stock += units
                return
            self._take(record, units)
            if self.raise_alert_on_manual_removal:
                self._append_low_stock_alert(record)

        record = await self._mutate(blood_bank, blood_group, apply)
        logger.info(
            "Manual %s of %d units of %s at bank=%s (stock=%d)",
            operation.value, units, record.blood_group.value, blood_bank, record.current_stock,
        )
        return record

    async def resolve_alert(
        self,
        blood_bank: str,
        blood_group,
        alert_id: str,
        resolved_by: Optional[str] = None,
    ) -> StockRecord:
        normalize_blood_group(blood_group)

        def apply(record: StockRecord, now: datetime):
            for alert in record.alerts:
                if alert.id == alert_id:
                    alert.resolved = True
                    alert.resolved_at = now
                    alert.resolved_by = resolved_by
                    return
            raise RecordNotFound(f"Alert {alert_id} not found")

        record = await self._mutate(blood_bank, blood_group, apply, loader=self.store.get)
        logger.info("Resolved alert %s on bank=%s group=%s", alert_id, blood_bank, record.blood_group.value)
        return record

    @staticmethod
    def _take(record: StockRecord, units: int):
        available = record.available_stock
        if available < units:
            raise InsufficientStock(available=available, requested=units)
        record.current_stock -= units

    def _append_low_stock_alert(self, record: StockRecord):
        alert = build_low_stock_alert(record)
        if alert is None:
            return
        record.alerts.append(alert)
        if self.max_alerts_per_record is not None:
            overflow = max(0, len(record.alerts) - self.max_alerts_per_record)
            record.alerts = record.alerts[overflow:]
        logger.warning(
            "Low stock alert (%s) bank=%s group=%s stock=%d",
            alert.severity.value, record.blood_bank, record.blood_group.value, record.current_stock,
        )

    async def _mutate(
        self,
        blood_bank: str,
        blood_group,
        apply: Callable[[StockRecord, datetime], None],
        loader=None,
    ) -> StockRecord:
        loader = loader or self.store.find_or_create

        for attempt in range(1, self.retry_limit + 1):
            current = await loader(blood_bank, blood_group)
            now = datetime.now(timezone.utc)

            record = current.model_copy(deep=True)
            apply(record, now)
            record.version = current.version + 1
            record.last_updated = now

            if await self.store.replace_if_unchanged(record, expected_version=current.version):
                return record
            logger.debug(
                "Version conflict on bank=%s group=%s (attempt %d/%d)",
                blood_bank, current.blood_group.value, attempt, self.retry_limit,
            )

        raise ConcurrentUpdateConflict(
            f"Stock record for bank {blood_bank} group {normalize_blood_group(blood_group).value} kept changing; "
            f"gave up after {self.retry_limit} attempts"
        )
