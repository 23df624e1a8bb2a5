from datetime import datetime, timedelta, timezone

import pytest

from models import (
    ExpiryBatch, StockRecord, StockStatus, at_or_below, available_stock, derive_status, derive_utilization,
    get_expiring_soon,
)


def test_available_stock_never_negative():
    assert available_stock(10, 3) == 7
    assert available_stock(3, 10) == 0


def test_zero_capacity_reads_as_zero_utilization():
    assert derive_utilization(5, 0) == 0
    assert derive_status(5, 0, 10, 20) == StockStatus.CRITICAL


@pytest.mark.parametrize("current,expected", [
    (0, StockStatus.CRITICAL),
    (10, StockStatus.CRITICAL),
    (11, StockStatus.LOW),
    (20, StockStatus.LOW),
    (21, StockStatus.ADEQUATE),
    (150, StockStatus.ADEQUATE),
])
def test_status_tiers_are_inclusive(current, expected):
    assert derive_status(current, 100, 10, 20) == expected


@pytest.mark.parametrize("current,capacity,expected", [
    (7, 100, StockStatus.CRITICAL),
    (8, 100, StockStatus.LOW),
    (14, 100, StockStatus.LOW),
    (15, 100, StockStatus.ADEQUATE),
    (21, 300, StockStatus.CRITICAL),
    (42, 300, StockStatus.LOW),
    (43, 300, StockStatus.ADEQUATE),
])
def test_custom_thresholds_hold_at_exact_boundary(current, capacity, expected):
    assert derive_status(current, capacity, 7, 14) == expected


def test_at_or_below_compares_exact_percentages():
    assert at_or_below(14, 100, 14)
    assert not at_or_below(15, 100, 14)
    assert at_or_below(3, 0, 0)


def test_record_exposes_derived_fields_but_does_not_persist_them():
    record = StockRecord(blood_bank="b", blood_group="A+", current_stock=20, reserved_stock=5)

    assert record.available_stock == 15
    assert record.utilization == 20
    assert record.status == StockStatus.LOW

    doc = record.to_document()
    assert "available_stock" not in doc
    assert "utilization" not in doc
    assert "status" not in doc
    assert doc["blood_group"] == "A+"


def test_expiring_soon_excludes_expired_and_far_batches():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    record = StockRecord(
        blood_bank="b",
        blood_group="O-",
        expiry_batches=[
            ExpiryBatch(units=1, expiry_date=now - timedelta(days=1), donation_id="expired"),
            ExpiryBatch(units=2, expiry_date=now, donation_id="now"),
            ExpiryBatch(units=3, expiry_date=now + timedelta(days=3), donation_id="soon"),
            ExpiryBatch(units=4, expiry_date=now + timedelta(days=7), donation_id="edge"),
            ExpiryBatch(units=5, expiry_date=now + timedelta(days=8), donation_id="later"),
        ],
    )

    batches = get_expiring_soon(record, within_days=7, now=now)

    assert [b.donation_id for b in batches] == ["soon", "edge"]


def test_naive_expiry_dates_are_treated_as_utc():
    batch = ExpiryBatch(units=1, expiry_date=datetime(2030, 1, 1))
    assert batch.expiry_date.tzinfo == timezone.utc
