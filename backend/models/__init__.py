from .enums import (
    BloodGroup, StockStatus, AlertType, AlertSeverity, InventoryOperation,
    DonationStatus, RequestStatus, RequestUrgency
)
from .derivation import available_stock, at_or_below, derive_utilization, derive_status, get_expiring_soon
from .inventory import (
    StockRecord, ExpiryBatch, StockAlert, InventoryUpdate, AlertResolve,
    LowStockEntry, InventorySummary, BloodGroupSummary, StatusCount, ExpiringBatch
)
from .donation import Donation
from .request import BloodRequest, Fulfillment, FulfillRequest
from .audit import AuditLog, AuditAction, AuditModule
