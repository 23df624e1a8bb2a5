from enum import Enum

class BloodGroup(str, Enum):
    A_POSITIVE = "A+"
    A_NEGATIVE = "A-"
    B_POSITIVE = "B+"
    B_NEGATIVE = "B-"
    AB_POSITIVE = "AB+"
    AB_NEGATIVE = "AB-"
    O_POSITIVE = "O+"
    O_NEGATIVE = "O-"

class StockStatus(str, Enum):
    CRITICAL = "critical"
    LOW = "low"
    ADEQUATE = "adequate"

class AlertType(str, Enum):
    LOW_STOCK = "low_stock"
    EXPIRING_SOON = "expiring_soon"
    CRITICAL_STOCK = "critical_stock"

class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class InventoryOperation(str, Enum):
    ADD = "add"
    REMOVE = "remove"

class DonationStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PROCESSED = "processed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"

class RequestUrgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
