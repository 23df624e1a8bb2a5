from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, timezone, timedelta
import uuid
from .enums import BloodGroup, DonationStatus

SHELF_LIFE_DAYS = 42

class Donation(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    donation_id: str = ""
    donor_id: str
    blood_bank: str
    blood_group: BloodGroup
    units: int = 1
    status: DonationStatus = DonationStatus.SCHEDULED
    is_safe: bool = False
    stock_recorded: bool = False
    expiry_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc) + timedelta(days=SHELF_LIFE_DAYS)
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
