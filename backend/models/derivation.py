"""
Stock derivation helpers.
Pure functions for the values a stock record exposes but never stores.
"""
from datetime import datetime, timezone, timedelta
from typing import Optional

from .enums import StockStatus


def available_stock(current_stock: int, reserved_stock: int) -> int:
    return max(0, current_stock - reserved_stock)


def derive_utilization(current_stock: int, capacity: int) -> float:
    """Current stock as a percentage of capacity; zero capacity reads as 0%."""
    if capacity <= 0:
        return 0.0
    return current_stock / capacity * 100


def at_or_below(current_stock: int, capacity: int, level: int) -> bool:
    """
    Whether utilization is at or below ``level`` percent, compared in integers.

    Zero capacity reads as 0%, which is at or below any non-negative level.
    """
    if capacity <= 0:
        return level >= 0
    return current_stock * 100 <= level * capacity


def derive_status(current_stock: int, capacity: int, critical_level: int, low_level: int) -> StockStatus:
    if at_or_below(current_stock, capacity, critical_level):
        return StockStatus.CRITICAL
    if at_or_below(current_stock, capacity, low_level):
        return StockStatus.LOW
    return StockStatus.ADEQUATE


def get_expiring_soon(record, within_days: int = 7, now: Optional[datetime] = None) -> list:
    """
    Batches of a stock record expiring inside the window.

    Window is ``now < expiry_date <= now + within_days``; batches already
    past their expiry date are left out.
    """
    now = now or datetime.now(timezone.utc)
    threshold = now + timedelta(days=within_days)
    return [
        batch for batch in record.expiry_batches
        if now < batch.expiry_date <= threshold
    ]
