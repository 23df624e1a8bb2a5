from fastapi import APIRouter, Depends, Request

from dependencies import get_audit_service, get_donation_stock_service, ledger_http_error
from models import AuditAction, AuditModule
from services.audit_service import AuditService
from services.donation_stock import DonationStockService
from services.exceptions import LedgerError

router = APIRouter(prefix="/donations", tags=["Donations"])


@router.post("/{donation_id}/record-stock")
async def record_donation_stock(
    donation_id: str,
    request: Request,
    service: DonationStockService = Depends(get_donation_stock_service),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        record = await service.record_donation_stock(donation_id)
    except LedgerError as exc:
        raise ledger_http_error(exc)

    await audit.log_stock_change(
        AuditAction.RECORD_DONATION,
        before=None,
        after={
            "id": record.id,
            "blood_bank": record.blood_bank,
            "blood_group": record.blood_group.value,
            "current_stock": record.current_stock,
        },
        request=request,
        module=AuditModule.DONATIONS,
        metadata={"donation_id": donation_id},
    )
    return {"status": "success", "inventory": record.model_dump(mode="json")}
