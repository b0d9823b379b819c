import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from edusphere.api.v1.fees.aggregator import aggregate_school, aggregate_student, month_label, trailing_months


def fee(amount, status, student_id=None, paid_date=None):
    return SimpleNamespace(
        amount=Decimal(str(amount)),
        status=status,
        student_id=student_id or uuid.uuid4(),
        paid_date=paid_date,
    )


def person(name):
    return SimpleNamespace(id=uuid.uuid4(), full_name=name, email=f"{name.lower()}@example.com")


TODAY = date(2026, 10, 17)


def test_empty_input() -> None:
    summary = aggregate_school([], [], today=TODAY)
    assert summary.total_amount == 0
    assert summary.collection_rate == 0
    assert summary.per_student == []
    assert summary.coverage_rate == 0
    assert [m.amount for m in summary.monthly_collection] == [0] * 6


def test_paid_and_pending_example() -> None:
    records = [fee(100, "paid", paid_date=TODAY), fee(200, "pending")]
    summary = aggregate_school(records, [], today=TODAY)
    assert summary.total_amount == Decimal("300")
    assert summary.collected_amount == Decimal("100")
    assert summary.pending_amount == Decimal("200")
    assert summary.overdue_amount == 0
    assert summary.collection_rate == pytest.approx(33.3333, rel=1e-4)


def test_total_is_sum_of_buckets() -> None:
    records = [
        fee("10.10", "paid", paid_date=date(2026, 9, 1)),
        fee("20.20", "pending"),
        fee("30.30", "overdue"),
        fee("0.01", "paid", paid_date=date(2026, 1, 1)),
        fee("99.99", "overdue"),
    ]
    summary = aggregate_school(records, [], today=TODAY)
    assert summary.total_amount == summary.collected_amount + summary.pending_amount + summary.overdue_amount
    assert summary.total_records == summary.paid_records + summary.pending_records + summary.overdue_records == 5


def test_monthly_collection_window() -> None:
    records = [
        fee(50, "paid", paid_date=date(2026, 10, 1)),
        fee(25, "paid", paid_date=date(2026, 10, 31)),
        fee(40, "paid", paid_date=date(2026, 5, 15)),
        # Outside the six-month window
        fee(999, "paid", paid_date=date(2026, 4, 30)),
        # Not paid: never counted
        fee(70, "pending"),
    ]
    summary = aggregate_school(records, [], today=TODAY)
    labels = [m.label for m in summary.monthly_collection]
    assert labels == ["May 2026", "Jun 2026", "Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026"]
    amounts = [m.amount for m in summary.monthly_collection]
    assert amounts == [Decimal("40"), 0, 0, 0, 0, Decimal("75")]


def test_trailing_months_crosses_year() -> None:
    assert trailing_months(date(2026, 2, 10), 4) == [(2025, 11), (2025, 12), (2026, 1), (2026, 2)]
    assert month_label(2025, 12) == "Dec 2025"


def test_per_student_follows_roster_and_skips_students_without_fees() -> None:
    alice, bob, carol = person("Alice"), person("Bob"), person("Carol")
    records = [
        fee(100, "paid", carol.id, paid_date=TODAY),
        fee(300, "pending", alice.id),
        fee(100, "overdue", alice.id),
    ]
    summary = aggregate_school(records, [alice, bob, carol], today=TODAY)

    assert [s.student_name for s in summary.per_student] == ["Alice", "Carol"]
    assert summary.roster_size == 3
    assert summary.students_with_fees == 2
    assert summary.coverage_rate == pytest.approx(66.6667, rel=1e-4)

    alice_row = summary.per_student[0]
    assert alice_row.total_fees == Decimal("400")
    assert alice_row.outstanding_amount == Decimal("400")
    assert alice_row.payment_percentage == 0
    assert alice_row.overdue_records == 1


def test_aggregate_student() -> None:
    breakdown = aggregate_student([fee(150, "paid", paid_date=TODAY), fee(50, "pending")])
    assert breakdown.total_fees == Decimal("200")
    assert breakdown.paid_fees == Decimal("150")
    assert breakdown.payment_percentage == pytest.approx(75.0)
    assert breakdown.paid_records == 1
    assert breakdown.pending_records == 1
    assert breakdown.student_id is None


def test_aggregate_student_zero_total() -> None:
    breakdown = aggregate_student([fee(0, "pending")])
    assert breakdown.payment_percentage == 0
    assert breakdown.total_records == 1


def test_student_paid_and_pending_example() -> None:
    breakdown = aggregate_student([fee(100, "paid", paid_date=TODAY), fee(200, "pending")], person("Bart"))
    assert breakdown.student_name == "Bart"
    assert breakdown.total_fees == Decimal("300")
    assert breakdown.paid_fees == Decimal("100")
    assert breakdown.pending_fees == Decimal("200")
    assert breakdown.outstanding_amount == Decimal("200")
    assert breakdown.payment_percentage == pytest.approx(33.3333, rel=1e-4)


def test_all_paid() -> None:
    records = [fee(50, "paid", paid_date=TODAY), fee("75.25", "paid", paid_date=date(2026, 8, 3))]
    summary = aggregate_school(records, [], today=TODAY)
    assert summary.collection_rate == 100
    assert summary.pending_amount == 0
    assert summary.overdue_amount == 0
    assert summary.collected_amount == summary.total_amount == Decimal("125.25")

    breakdown = aggregate_student(records)
    assert breakdown.payment_percentage == 100
    assert breakdown.outstanding_amount == 0
