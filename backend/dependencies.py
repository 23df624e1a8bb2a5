"""
FastAPI dependency providers.
Wires the database handle and settings into stores and services per request.
"""
from fastapi import Depends, HTTPException

from config import Settings, get_settings
from database import get_database
from services.audit_service import AuditService
from services.donation_stock import DonationStockService
from services.exceptions import (
    ConcurrentUpdateConflict, DonationNotEligible, InsufficientStock, LedgerError,
    LedgerValidationError, RecordNotFound, RequestNotFulfillable,
)
from services.request_fulfillment import RequestFulfillmentService
from services.stock_ledger import StockLedger
from services.stock_reports import InventoryReports
from services.stock_store import StockRecordStore


def get_store(db=Depends(get_database), settings: Settings = Depends(get_settings)) -> StockRecordStore:
    return StockRecordStore.from_settings(db, settings)


def get_ledger(
    store: StockRecordStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> StockLedger:
    return StockLedger.from_settings(store, settings)


def get_reports(store: StockRecordStore = Depends(get_store)) -> InventoryReports:
    return InventoryReports(store)


def get_donation_stock_service(db=Depends(get_database), ledger: StockLedger = Depends(get_ledger)):
    return DonationStockService(db, ledger)


def get_fulfillment_service(db=Depends(get_database), ledger: StockLedger = Depends(get_ledger)):
    return RequestFulfillmentService(db, ledger)


def get_audit_service(db=Depends(get_database)) -> AuditService:
    return AuditService(db)


def ledger_http_error(exc: LedgerError) -> HTTPException:
    """Translate a ledger failure into the response the client sees."""
    if isinstance(exc, InsufficientStock):
        return HTTPException(
            status_code=400,
            detail={"message": str(exc), "available": exc.available, "requested": exc.requested},
        )
    if isinstance(exc, LedgerValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, RecordNotFound):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (ConcurrentUpdateConflict, DonationNotEligible, RequestNotFulfillable)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
