from fastapi import APIRouter, Depends

from config import Settings, get_settings
from dependencies import get_reports
from services.stock_reports import InventoryReports

router = APIRouter(tags=["Dashboard"])

@router.get("/dashboard/stats")
async def get_dashboard_stats(
    reports: InventoryReports = Depends(get_reports),
    settings: Settings = Depends(get_settings),
):
    summary = await reports.summary_by_query()
    status_count = await reports.status_counts()
    low_stock = await reports.system_wide_low_stock()
    expiring = await reports.expiring_batches(within_days=settings.expiring_soon_days)
    by_blood_group = await reports.by_blood_group()

    return {
        "total_stock": summary.total_stock,
        "total_capacity": summary.total_capacity,
        "low_stock_records": summary.low_stock_count,
        "critical_records": status_count.critical,
        "most_critical": [entry.model_dump(mode="json") for entry in low_stock[:5]],
        f"expiring_within_{settings.expiring_soon_days}_days": sum(b.units for b in expiring),
        "inventory_by_blood_group": {item.blood_group.value: item.total_stock for item in by_blood_group},
    }

@router.get("/")
async def root():
    return {"status": "healthy", "service": "Blood Stock Ledger API"}
