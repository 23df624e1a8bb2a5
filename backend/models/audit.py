"""
Audit Log Models
Audit trail for stock-affecting actions.
"""
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional
from enum import Enum
import uuid


class AuditAction(str, Enum):
    # Stock Actions
    STOCK_ADJUST = "stock_adjust"
    ALERT_RESOLVE = "alert_resolve"

    # Workflow Actions
    FULFILL = "fulfill"
    RECORD_DONATION = "record_donation"


class AuditModule(str, Enum):
    INVENTORY = "inventory"
    DONATIONS = "donations"
    REQUESTS = "requests"


class AuditLog(BaseModel):
    """Audit log entry for a stock-affecting action."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))

    # User info
    user_id: Optional[str] = None

    # Action details
    action: AuditAction
    module: AuditModule
    record_id: Optional[str] = None
    record_type: Optional[str] = None  # e.g., "stock_record", "donation", "blood_request"
    description: Optional[str] = None

    # Data changes
    old_values: Optional[dict] = None
    new_values: Optional[dict] = None

    # Request info
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Optional[dict] = None
