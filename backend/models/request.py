from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime, timezone
import uuid
from .enums import BloodGroup, RequestStatus, RequestUrgency

class Fulfillment(BaseModel):
    model_config = ConfigDict(extra="ignore")
    blood_bank: str
    fulfilled_by: Optional[str] = None
    fulfilled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    units_provided: int
    notes: str = ""

class BloodRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    request_id: str = ""
    requester_name: str
    hospital_name: Optional[str] = None
    patient_name: Optional[str] = None
    blood_group: BloodGroup
    units_required: int
    urgency: RequestUrgency = RequestUrgency.MEDIUM
    is_emergency: bool = False
    status: RequestStatus = RequestStatus.PENDING
    fulfillment: Optional[Fulfillment] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class FulfillRequest(BaseModel):
    blood_bank_id: str
    units_provided: int
    fulfilled_by: Optional[str] = None
    notes: str = ""
