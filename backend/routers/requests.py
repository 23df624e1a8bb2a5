from fastapi import APIRouter, HTTPException, Depends, Request
from typing import Optional
from pydantic import BaseModel
import uuid

from database import get_database
from dependencies import get_audit_service, get_fulfillment_service, ledger_http_error
from models import AuditAction, AuditModule, BloodGroup, BloodRequest, FulfillRequest, RequestStatus, RequestUrgency
from services.audit_service import AuditService
from services.exceptions import LedgerError
from services.request_fulfillment import RequestFulfillmentService

router = APIRouter(prefix="/requests", tags=["Blood Requests"])


class BloodRequestCreate(BaseModel):
    requester_name: str
    hospital_name: Optional[str] = None
    patient_name: Optional[str] = None
    blood_group: BloodGroup
    units_required: int
    urgency: RequestUrgency = RequestUrgency.MEDIUM
    is_emergency: bool = False


@router.post("")
async def create_blood_request(request_data: BloodRequestCreate, db=Depends(get_database)):
    request = BloodRequest(**request_data.model_dump())
    request.request_id = f"REQ-{uuid.uuid4().hex[:10].upper()}"

    await db.blood_requests.insert_one(request.model_dump(mode="json"))
    return {"status": "success", "request_id": request.request_id, "id": request.id}


@router.get("/{request_id}")
async def get_blood_request(request_id: str, db=Depends(get_database)):
    request = await db.blood_requests.find_one(
        {"$or": [{"id": request_id}, {"request_id": request_id}]},
        {"_id": 0}
    )
    if not request:
        raise HTTPException(status_code=404, detail="Request not found")
    return request


@router.put("/{request_id}/approve")
async def approve_request(request_id: str, db=Depends(get_database)):
    result = await db.blood_requests.update_one(
        {"$or": [{"id": request_id}, {"request_id": request_id}], "status": RequestStatus.PENDING.value},
        {"$set": {"status": RequestStatus.APPROVED.value}}
    )
    if result.modified_count == 0:
        raise HTTPException(status_code=404, detail="Pending request not found")
    return {"status": "success"}


@router.post("/{request_id}/fulfill")
async def fulfill_request(
    request_id: str,
    body: FulfillRequest,
    request: Request,
    service: RequestFulfillmentService = Depends(get_fulfillment_service),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        blood_request = await service.fulfill_request(
            request_id,
            body.blood_bank_id,
            body.units_provided,
            fulfilled_by=body.fulfilled_by,
            notes=body.notes,
        )
    except LedgerError as exc:
        raise ledger_http_error(exc)

    await audit.log(
        AuditAction.FULFILL, AuditModule.REQUESTS,
        user_id=body.fulfilled_by,
        record_id=blood_request.id,
        record_type="blood_request",
        description=f"Fulfilled request {blood_request.request_id or blood_request.id} "
                    f"with {body.units_provided} units from {body.blood_bank_id}",
        request=request,
    )
    return {
        "status": "success",
        "message": "Request fulfilled successfully",
        "request": blood_request.model_dump(mode="json"),
    }
