from datetime import datetime, timedelta, timezone

from models import BloodGroup, ExpiryBatch, StockStatus


async def test_system_wide_low_stock_most_critical_first(reports, seed):
    await seed(blood_bank="bank-1", blood_group="A+", current_stock=15)
    await seed(blood_bank="bank-2", blood_group="O-", current_stock=50)
    await seed(blood_bank="bank-2", blood_group="B+", current_stock=4)
    await seed(blood_bank="bank-3", blood_group="AB-", current_stock=8, capacity=40, low_level=25)

    entries = await reports.system_wide_low_stock()

    assert [(e.blood_bank, e.blood_group.value) for e in entries] == [
        ("bank-2", "B+"), ("bank-1", "A+"), ("bank-3", "AB-"),
    ]
    assert [e.status for e in entries] == [StockStatus.CRITICAL, StockStatus.LOW, StockStatus.LOW]
    assert entries[0].utilization == 4


async def test_system_wide_low_stock_ties_keep_insertion_order(reports, seed):
    await seed(blood_bank="bank-2", blood_group="O+", current_stock=10)
    await seed(blood_bank="bank-1", blood_group="A-", current_stock=10)
    await seed(blood_bank="bank-3", blood_group="B-", current_stock=10)

    entries = await reports.system_wide_low_stock()

    assert [e.blood_bank for e in entries] == ["bank-2", "bank-1", "bank-3"]


async def test_summary_uses_each_records_own_low_level(reports, seed):
    await seed(blood_group="A+", current_stock=25, low_level=30)
    await seed(blood_group="B+", current_stock=25, low_level=20)
    await seed(blood_bank="bank-2", blood_group="O+", current_stock=5)

    summary = await reports.summary_by_query(blood_bank="bank-1")

    assert summary.total_stock == 50
    assert summary.total_capacity == 200
    assert summary.low_stock_count == 1

    everything = await reports.summary_by_query()
    assert everything.low_stock_count == 2


async def test_summary_by_blood_group_filter(reports, seed):
    await seed(blood_bank="bank-1", blood_group="O-", current_stock=7)
    await seed(blood_bank="bank-2", blood_group="O-", current_stock=9, capacity=50)
    await seed(blood_bank="bank-2", blood_group="A+", current_stock=70)

    summary = await reports.summary_by_query(blood_group=BloodGroup.O_NEGATIVE)

    assert (summary.total_stock, summary.total_capacity) == (16, 150)


async def test_empty_summary(reports):
    summary = await reports.summary_by_query()
    assert (summary.total_stock, summary.total_capacity, summary.low_stock_count) == (0, 0, 0)


async def test_by_blood_group_aggregates_across_banks(reports, seed):
    await seed(blood_bank="bank-1", blood_group="O+", current_stock=10)
    await seed(blood_bank="bank-2", blood_group="O+", current_stock=30)
    await seed(blood_bank="bank-1", blood_group="A-", current_stock=60)

    groups = await reports.by_blood_group()

    assert [g.blood_group.value for g in groups] == ["A-", "O+"]
    a_neg, o_pos = groups
    assert (o_pos.total_stock, o_pos.total_capacity) == (40, 200)
    assert o_pos.average_utilization == 20
    assert o_pos.blood_bank_count == 2
    assert o_pos.status == StockStatus.LOW
    assert a_neg.status == StockStatus.ADEQUATE


async def test_status_counts(reports, seed):
    await seed(blood_group="A+", current_stock=5)
    await seed(blood_group="A-", current_stock=15)
    await seed(blood_group="B+", current_stock=90)
    await seed(blood_bank="bank-2", blood_group="B-", current_stock=1)

    counts = await reports.status_counts(blood_bank="bank-1")

    assert (counts.critical, counts.low, counts.adequate, counts.total) == (1, 1, 1, 3)


async def test_low_stock_for_bank(reports, seed):
    await seed(blood_group="O-", current_stock=5)
    await seed(blood_group="A+", current_stock=12)
    await seed(blood_group="B+", current_stock=60)

    records = await reports.low_stock_for_bank("bank-1")

    assert [r.blood_group.value for r in records] == ["A+", "O-"]


async def test_expiring_batches_across_records(reports, seed):
    now = datetime.now(timezone.utc)
    await seed(blood_group="A+", expiry_batches=[
        ExpiryBatch(units=2, expiry_date=now + timedelta(days=5), donation_id="late"),
        ExpiryBatch(units=3, expiry_date=now - timedelta(days=1), donation_id="gone"),
    ])
    await seed(blood_bank="bank-2", blood_group="O-", expiry_batches=[
        ExpiryBatch(units=4, expiry_date=now + timedelta(days=2), donation_id="early"),
        ExpiryBatch(units=6, expiry_date=now + timedelta(days=30), donation_id="fresh"),
    ])

    batches = await reports.expiring_batches(within_days=7, now=now)

    assert [b.donation_id for b in batches] == ["early", "late"]
    assert batches[0].blood_bank == "bank-2"

    only_bank_1 = await reports.expiring_batches(within_days=7, blood_bank="bank-1", now=now)
    assert [b.donation_id for b in only_bank_1] == ["late"]


async def test_record_at_exact_custom_low_level_counts_as_low(reports, seed):
    await seed(blood_group="A+", current_stock=14, critical_level=7, low_level=14)
    await seed(blood_group="B+", current_stock=15, critical_level=7, low_level=14)

    summary = await reports.summary_by_query(blood_bank="bank-1")
    entries = await reports.system_wide_low_stock()

    assert summary.low_stock_count == 1
    assert [(e.blood_group.value, e.status) for e in entries] == [("A+", StockStatus.LOW)]
