from pydantic import BaseModel, Field, ConfigDict, computed_field, field_validator
from typing import List, Optional
from datetime import datetime, timezone
import uuid
from .enums import BloodGroup, StockStatus, AlertType, AlertSeverity, InventoryOperation
from .derivation import available_stock as derive_available_stock, derive_utilization, derive_status

DERIVED_FIELDS = {"available_stock", "utilization", "status"}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExpiryBatch(BaseModel):
    model_config = ConfigDict(extra="ignore")
    units: int
    expiry_date: datetime
    donation_id: Optional[str] = None

    @field_validator("expiry_date")
    @classmethod
    def _expiry_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

class StockAlert(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: AlertType
    message: str = ""
    severity: AlertSeverity = AlertSeverity.MEDIUM
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    resolved: bool = False
    resolved_at: Optional[datetime] = None
    resolved_by: Optional[str] = None

class StockRecord(BaseModel):
    """One ledger entry per (blood bank, blood group) pair."""
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    blood_bank: str
    blood_group: BloodGroup
    current_stock: int = Field(default=0, ge=0)
    reserved_stock: int = Field(default=0, ge=0)
    capacity: int = Field(default=100, ge=0)
    critical_level: int = 10  # percentage
    low_level: int = 20  # percentage
    expiry_batches: List[ExpiryBatch] = []
    alerts: List[StockAlert] = []
    version: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def available_stock(self) -> int:
        return derive_available_stock(self.current_stock, self.reserved_stock)

    @computed_field
    @property
    def utilization(self) -> float:
        return derive_utilization(self.current_stock, self.capacity)

    @computed_field
    @property
    def status(self) -> StockStatus:
        return derive_status(self.current_stock, self.capacity, self.critical_level, self.low_level)

    @property
    def unresolved_alerts(self) -> List[StockAlert]:
        return [alert for alert in self.alerts if not alert.resolved]

    def to_document(self) -> dict:
        """Persisted shape: stored fields only, datetimes as ISO strings."""
        return self.model_dump(mode="json", exclude=DERIVED_FIELDS)

class InventoryUpdate(BaseModel):
    blood_bank_id: str
    blood_group: BloodGroup
    units: int
    operation: InventoryOperation

class AlertResolve(BaseModel):
    blood_bank_id: str
    blood_group: BloodGroup
    resolved_by: Optional[str] = None

class LowStockEntry(BaseModel):
    blood_bank: str
    blood_group: BloodGroup
    current_stock: int
    capacity: int
    utilization: float
    status: StockStatus

class InventorySummary(BaseModel):
    total_stock: int = 0
    total_capacity: int = 0
    low_stock_count: int = 0

class BloodGroupSummary(BaseModel):
    blood_group: BloodGroup
    total_stock: int
    total_capacity: int
    average_utilization: float
    blood_bank_count: int
    status: StockStatus

class StatusCount(BaseModel):
    critical: int = 0
    low: int = 0
    adequate: int = 0
    total: int = 0

class ExpiringBatch(BaseModel):
    blood_bank: str
    blood_group: BloodGroup
    units: int
    expiry_date: datetime
    donation_id: Optional[str] = None
