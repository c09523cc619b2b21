"""
Unit tests for the ledger engine.

Vouchers are plain objects with the attributes the engine reads.
"""

import pytest
from datetime import date
from types import SimpleNamespace

from goldbook.app.core.exceptions import ValidationError
from goldbook.app.domain.ledger.engine import (
    build_ledger, build_system_ledger, bounded_report, with_balance_rows,
    project_unit, order_vouchers, describe, ZERO_BALANCE
)
from goldbook.app.models.enums import LedgerEntryKind, LedgerUnit, VoucherType
from goldbook.app.schemas.ledger import BalancePair


def make_voucher(voucher_id, voucher_type, day, total_net, total_kwd, customer_id=1, descriptions=("Item",)):
    return SimpleNamespace(
        id=voucher_id,
        customer_id=customer_id,
        voucher_type=voucher_type,
        date=day,
        rows=[{"description": text} for text in descriptions],
        total_net=total_net,
        total_kwd=total_kwd,
        pdf_url=None,
    )


@pytest.fixture
def scenario():
    """Invoice on 2024-01-05 (10 / 50) and Receipt on 2024-01-10 (4 / 20)."""
    return [
        make_voucher(2, "REC", date(2024, 1, 10), 4.0, 20.0),
        make_voucher(1, "INV", date(2024, 1, 5), 10.0, 50.0),
    ]


@pytest.fixture
def mixed_vouchers():
    return [
        make_voucher(1, "INV", date(2024, 3, 1), 12.5, 40.0),
        make_voucher(2, "REC", date(2024, 1, 15), 3.25, 10.0),
        make_voucher(3, "INV", date(2024, 2, 2), 7.0, 0.0),
        make_voucher(4, "REC", date(2024, 2, 20), 20.0, 55.5),
        make_voucher(5, "INV", date(2024, 1, 3), 1.75, 12.0),
        make_voucher(6, "REC", date(2024, 3, 30), 0.5, 1.0),
    ]


def test_scenario_running_balances(scenario):
    entries = build_ledger(scenario)

    assert [entry.voucher_id for entry in entries] == [1, 2]
    assert (entries[0].gold_balance, entries[0].kwd_balance) == (10.0, 50.0)
    assert (entries[1].gold_balance, entries[1].kwd_balance) == (6.0, 30.0)
    assert entries[0].gold_debit == 10.0 and entries[0].gold_credit == 0.0
    assert entries[1].kwd_credit == 20.0 and entries[1].kwd_debit == 0.0


def test_scenario_bounded_report(scenario):
    entries = build_ledger(scenario)

    report = bounded_report(entries, date(2024, 1, 8), date(2024, 1, 31))

    assert report.opening == BalancePair(gold=10.0, kwd=50.0)
    assert [entry.voucher_id for entry in report.entries] == [2]
    assert report.closing == BalancePair(gold=6.0, kwd=30.0)
    assert report.totals.gold_credit == 4.0
    assert report.totals.kwd_credit == 20.0


def test_balance_conservation(mixed_vouchers):
    entries = build_ledger(mixed_vouchers)

    expected_gold = sum(v.total_net for v in mixed_vouchers if v.voucher_type == "INV") - sum(
        v.total_net for v in mixed_vouchers if v.voucher_type == "REC"
    )
    expected_kwd = sum(v.total_kwd for v in mixed_vouchers if v.voucher_type == "INV") - sum(
        v.total_kwd for v in mixed_vouchers if v.voucher_type == "REC"
    )

    assert entries[-1].gold_balance == pytest.approx(expected_gold)
    assert entries[-1].kwd_balance == pytest.approx(expected_kwd)


def test_entries_are_in_date_order(mixed_vouchers):
    entries = build_ledger(mixed_vouchers)

    assert len(entries) == len(mixed_vouchers)
    for earlier, later in zip(entries, entries[1:]):
        assert later.date >= earlier.date


def test_build_ledger_is_idempotent(mixed_vouchers):
    assert build_ledger(mixed_vouchers) == build_ledger(mixed_vouchers)


def test_input_is_not_reordered(mixed_vouchers):
    ids_before = [v.id for v in mixed_vouchers]
    build_ledger(mixed_vouchers)
    assert [v.id for v in mixed_vouchers] == ids_before


@pytest.mark.parametrize("boundary", [
    date(2024, 1, 14), date(2024, 1, 15), date(2024, 2, 2), date(2024, 2, 28), date(2024, 3, 30),
])
def test_adjacent_periods_reconcile(mixed_vouchers, boundary):
    entries = build_ledger(mixed_vouchers)

    first = bounded_report(entries, date(2024, 1, 1), boundary)
    second = bounded_report(entries, date.fromordinal(boundary.toordinal() + 1), date(2024, 12, 31))

    assert first.closing == second.opening
    assert len(first.entries) + len(second.entries) == len(entries)


def test_empty_input():
    assert build_ledger([]) == []

    report = bounded_report([], date(2024, 1, 1), date(2024, 12, 31))

    assert report.opening == ZERO_BALANCE
    assert report.closing == ZERO_BALANCE
    assert report.entries == []


def test_open_range_covers_everything(mixed_vouchers):
    entries = build_ledger(mixed_vouchers)

    report = bounded_report(entries)

    assert report.opening == ZERO_BALANCE
    assert report.entries == entries
    assert report.closing == entries[-1].balance


def test_empty_window_carries_opening_forward(scenario):
    entries = build_ledger(scenario)

    report = bounded_report(entries, date(2024, 2, 1), date(2024, 2, 28))

    assert report.entries == []
    assert report.opening == BalancePair(gold=6.0, kwd=30.0)
    assert report.closing == report.opening


def test_window_bounds_are_inclusive(scenario):
    entries = build_ledger(scenario)

    report = bounded_report(entries, date(2024, 1, 5), date(2024, 1, 10))

    assert [entry.voucher_id for entry in report.entries] == [1, 2]
    assert report.opening == ZERO_BALANCE


def test_inverted_range_is_rejected(scenario):
    with pytest.raises(ValidationError):
        bounded_report(build_ledger(scenario), date(2024, 2, 1), date(2024, 1, 1))


def test_same_date_vouchers_order_by_id():
    day = date(2024, 5, 1)
    vouchers = [
        make_voucher(9, "REC", day, 1.0, 0.0),
        make_voucher(3, "INV", day, 5.0, 0.0),
        make_voucher(7, "INV", day, 2.0, 0.0),
    ]

    entries = build_ledger(vouchers)

    assert [entry.voucher_id for entry in entries] == [3, 7, 9]
    assert [entry.gold_balance for entry in entries] == [5.0, 7.0, 6.0]


def test_same_date_unsaved_vouchers_keep_input_order():
    day = date(2024, 5, 1)
    vouchers = [make_voucher(None, "INV", day, 1.0, 0.0, descriptions=(name,)) for name in "abc"]

    ordered = order_vouchers(vouchers)

    assert [v.rows[0]["description"] for v in ordered] == ["a", "b", "c"]


def test_string_dates_are_accepted():
    vouchers = [
        make_voucher(1, "INV", "2024-01-05T10:00:00", 2.0, 1.0),
        make_voucher(2, "INV", "2024-01-03", 1.0, 1.0),
        make_voucher(3, "REC", "2024-01-04T00:00:00.000Z", 1.0, 1.0),
    ]

    entries = build_ledger(vouchers)

    assert [entry.date for entry in entries] == [date(2024, 1, 3), date(2024, 1, 4), date(2024, 1, 5)]


@pytest.mark.parametrize("value", ["05/01/2024", "2024-13-01", "", None])
def test_invalid_dates_are_rejected(value):
    with pytest.raises(ValidationError):
        build_ledger([make_voucher(1, "INV", value, 1.0, 1.0)])


def test_description():
    voucher = make_voucher(1, VoucherType.RECEIPT, date(2024, 1, 1), 1.0, 1.0, descriptions=("Old ring", "Coins"))
    assert describe(voucher) == "Receipt - Old ring, Coins"


def test_system_ledger_skips_unknown_customers(caplog):
    customers = {
        1: SimpleNamespace(id=1, account_no="1001", name="Ahmad"),
        2: SimpleNamespace(id=2, account_no="1002", name="Mariam"),
    }
    vouchers = [
        make_voucher(1, "INV", date(2024, 1, 1), 5.0, 10.0, customer_id=1),
        make_voucher(2, "INV", date(2024, 1, 2), 99.0, 99.0, customer_id=42),
        make_voucher(3, "REC", date(2024, 1, 3), 2.0, 4.0, customer_id=2),
    ]

    ledger = build_system_ledger(vouchers, customers)

    assert [entry.voucher_id for entry in ledger.entries] == [1, 3]
    assert ledger.skipped_voucher_ids == [2]
    assert ledger.entries[-1].gold_balance == pytest.approx(3.0)
    assert ledger.entries[-1].kwd_balance == pytest.approx(6.0)
    assert ledger.entries[1].customer_name == "Mariam"
    assert ledger.entries[1].account_no == "1002"
    assert "Customer not found for voucher 2" in caplog.text


def test_balance_rows(scenario):
    report = bounded_report(build_ledger(scenario), date(2024, 1, 8), date(2024, 1, 31))

    rows = with_balance_rows(report)

    assert rows[0].kind == LedgerEntryKind.OPENING
    assert rows[0].date == date(2024, 1, 8)
    assert rows[0].description == "Balance brought forward"
    assert rows[0].balance == report.opening
    assert rows[-1].kind == LedgerEntryKind.CLOSING
    assert rows[-1].date == date(2024, 1, 31)
    assert rows[-1].balance == report.closing
    assert rows[1:-1] == report.entries


def test_unit_projection(scenario):
    entries = build_ledger(scenario)

    kwd_rows = project_unit(entries, LedgerUnit.KWD)
    gold_rows = project_unit(entries, "GOLD")

    assert [(row.debit, row.credit, row.balance) for row in kwd_rows] == [(50.0, 0.0, 50.0), (0.0, 20.0, 30.0)]
    assert [row.balance for row in gold_rows] == [10.0, 6.0]
