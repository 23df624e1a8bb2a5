"""
Inventory API
Stock levels, manual corrections, low-stock alerts and analytics.
"""
from fastapi import APIRouter, Depends, Query, Request
from typing import Optional

from dependencies import get_audit_service, get_ledger, get_reports, get_store, ledger_http_error
from models import AlertResolve, AuditAction, AuditModule, BloodGroup, InventoryOperation, InventoryUpdate
from services.audit_service import AuditService
from services.exceptions import LedgerError
from services.stock_ledger import StockLedger
from services.stock_reports import InventoryReports
from services.stock_store import StockRecordStore

router = APIRouter(prefix="/inventory", tags=["Inventory"])


@router.get("")
async def get_inventory(
    blood_bank_id: Optional[str] = None,
    store: StockRecordStore = Depends(get_store),
    reports: InventoryReports = Depends(get_reports),
):
    if blood_bank_id:
        records = await store.list_by_bank(blood_bank_id)
    else:
        records = sorted(await store.list_all(), key=lambda r: r.blood_group.value)
    summary = await reports.summary_by_query(blood_bank=blood_bank_id)
    return {
        "inventory": [r.model_dump(mode="json") for r in records],
        "summary": summary.model_dump(),
    }


@router.get("/record")
async def get_stock_record(
    blood_bank_id: str,
    blood_group: BloodGroup,
    store: StockRecordStore = Depends(get_store),
):
    try:
        record = await store.get(blood_bank_id, blood_group)
    except LedgerError as exc:
        raise ledger_http_error(exc)
    return record.model_dump(mode="json")


@router.put("")
async def update_inventory(
    update: InventoryUpdate,
    request: Request,
    ledger: StockLedger = Depends(get_ledger),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        record = await ledger.update_inventory(
            update.blood_bank_id, update.blood_group, update.units, update.operation
        )
    except LedgerError as exc:
        raise ledger_http_error(exc)

    delta = update.units if update.operation == InventoryOperation.ADD else -update.units
    previous_stock = record.current_stock - delta
    await audit.log_stock_change(
        AuditAction.STOCK_ADJUST,
        before={"current_stock": previous_stock},
        after={
            "id": record.id,
            "blood_bank": record.blood_bank,
            "blood_group": record.blood_group.value,
            "current_stock": record.current_stock,
        },
        request=request,
        metadata={"operation": update.operation.value, "units": update.units},
    )
    return {
        "status": "success",
        "message": "Inventory updated successfully",
        "inventory": record.model_dump(mode="json"),
    }


@router.get("/alerts")
async def get_low_stock_alerts(
    blood_bank_id: Optional[str] = None,
    reports: InventoryReports = Depends(get_reports),
):
    if blood_bank_id:
        low_stock = await reports.low_stock_for_bank(blood_bank_id)
        return {"low_stock": [r.model_dump(mode="json") for r in low_stock], "system_alerts": []}

    system_alerts = await reports.system_wide_low_stock()
    return {"low_stock": [], "system_alerts": [entry.model_dump(mode="json") for entry in system_alerts]}


@router.put("/alerts/{alert_id}/resolve")
async def resolve_alert(
    alert_id: str,
    body: AlertResolve,
    request: Request,
    ledger: StockLedger = Depends(get_ledger),
    audit: AuditService = Depends(get_audit_service),
):
    try:
        record = await ledger.resolve_alert(body.blood_bank_id, body.blood_group, alert_id, body.resolved_by)
    except LedgerError as exc:
        raise ledger_http_error(exc)

    await audit.log(
        AuditAction.ALERT_RESOLVE, module=AuditModule.INVENTORY,
        user_id=body.resolved_by,
        record_id=record.id,
        record_type="stock_record",
        description=f"Resolved alert {alert_id}",
        request=request,
    )
    return {"status": "success"}


@router.get("/analytics")
async def get_inventory_analytics(
    blood_bank_id: Optional[str] = None,
    reports: InventoryReports = Depends(get_reports),
):
    by_blood_group = await reports.by_blood_group(blood_bank=blood_bank_id)
    status_count = await reports.status_counts(blood_bank=blood_bank_id)
    return {
        "by_blood_group": [item.model_dump(mode="json") for item in by_blood_group],
        "status_count": {
            "critical": status_count.critical,
            "low": status_count.low,
            "adequate": status_count.adequate,
        },
        "total_inventory": status_count.total,
    }


@router.get("/system-wide")
async def get_system_wide_inventory(reports: InventoryReports = Depends(get_reports)):
    by_blood_group = await reports.by_blood_group()
    return [item.model_dump(mode="json") for item in by_blood_group]


@router.get("/expiring")
async def get_expiring_batches(
    days: int = Query(7, ge=1, le=365),
    blood_bank_id: Optional[str] = None,
    reports: InventoryReports = Depends(get_reports),
):
    batches = await reports.expiring_batches(within_days=days, blood_bank=blood_bank_id)
    return {
        "within_days": days,
        "total_units": sum(b.units for b in batches),
        "batches": [b.model_dump(mode="json") for b in batches],
    }
