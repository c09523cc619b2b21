"""
Ledger Engine (Domain Logic).

Turns vouchers into ledger entries with running gold and KWD balances, and
slices the resulting timeline into date-bounded reports.

Running balances are lifetime balances. A bounded report never restarts
them at zero: its opening balance is the balance of the last entry before
the window and its closing balance is the balance of the last entry in it,
so adjacent periods always reconcile.

Vouchers are read through attributes (id, customer_id, voucher_type, date,
rows, total_net, total_kwd, pdf_url), so ORM rows and response schemas can
both be passed in. Stored totals are used as they are.
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from goldbook.app.core.exceptions import ValidationError
from goldbook.app.domain.vouchers.calculator import parse_voucher_type
from goldbook.app.models.enums import VoucherType, LedgerEntryKind, LedgerUnit
from goldbook.app.schemas.ledger import (
    BalancePair, LedgerEntry, BoundedReport, PeriodTotals, SystemLedger, UnitLedgerRow
)

logger = logging.getLogger("goldbook")

ZERO_BALANCE = BalancePair(gold=0.0, kwd=0.0)


def as_date(value: Any) -> date:
    """Calendar date of a voucher date (date, datetime or ISO string)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Timestamps such as 2024-01-05T00:00:00.000Z keep their calendar day
        day = value.strip().replace(" ", "T", 1).partition("T")[0]
        try:
            return date.fromisoformat(day)
        except ValueError:
            raise ValidationError(f"Invalid voucher date: {value!r}") from None
    raise ValidationError(f"Invalid voucher date: {value!r}")


def _ordering_key(position: int, voucher: Any) -> Tuple:
    # Same-date vouchers: voucher id (creation order), then input position
    voucher_id = getattr(voucher, "id", None)
    return (
        as_date(voucher.date),
        voucher_id is None,
        voucher_id if voucher_id is not None else 0,
        position,
    )


def order_vouchers(vouchers: Iterable[Any]) -> List[Any]:
    """Chronological order with a deterministic tiebreak for same-date vouchers."""
    indexed = list(enumerate(vouchers))
    indexed.sort(key=lambda item: _ordering_key(*item))
    return [voucher for _, voucher in indexed]


def describe(voucher: Any) -> str:
    """Human description: voucher type label and the row descriptions."""
    voucher_type = parse_voucher_type(voucher.voucher_type)
    descriptions = []
    for row in voucher.rows or []:
        text = row.get("description") if isinstance(row, Mapping) else getattr(row, "description", None)
        if text:
            descriptions.append(str(text))
    return f"{voucher_type.label} - {', '.join(descriptions)}"


def _traverse(vouchers: Iterable[Any], customers: Optional[Mapping[int, Any]] = None) -> SystemLedger:
    gold_balance = 0.0
    kwd_balance = 0.0
    entries: List[LedgerEntry] = []
    skipped: List[int] = []

    for voucher in order_vouchers(vouchers):
        customer = None
        if customers is not None:
            customer = customers.get(voucher.customer_id)
            if customer is None:
                logger.warning(
                    "Customer not found for voucher %s with customer_id %s; skipping",
                    voucher.id, voucher.customer_id
                )
                skipped.append(voucher.id)
                continue

        voucher_type = parse_voucher_type(voucher.voucher_type)
        net = float(voucher.total_net or 0.0)
        kwd = float(voucher.total_kwd or 0.0)

        if voucher_type is VoucherType.INVOICE:
            gold_balance += net
            kwd_balance += kwd
            gold_debit, gold_credit, kwd_debit, kwd_credit = net, 0.0, kwd, 0.0
        else:
            gold_balance -= net
            kwd_balance -= kwd
            gold_debit, gold_credit, kwd_debit, kwd_credit = 0.0, net, 0.0, kwd

        entries.append(LedgerEntry(
            date=as_date(voucher.date),
            voucher_id=voucher.id,
            customer_id=voucher.customer_id,
            account_no=getattr(customer, "account_no", None),
            customer_name=getattr(customer, "name", None),
            voucher_type=voucher_type,
            description=describe(voucher),
            gold_debit=gold_debit,
            gold_credit=gold_credit,
            gold_balance=gold_balance,
            kwd_debit=kwd_debit,
            kwd_credit=kwd_credit,
            kwd_balance=kwd_balance,
            pdf_url=getattr(voucher, "pdf_url", None),
        ))

    return SystemLedger(entries=entries, skipped_voucher_ids=skipped)


def build_ledger(vouchers: Iterable[Any]) -> List[LedgerEntry]:
    """
    Build a ledger from vouchers of one customer (or any voucher set).

    Invoices add their totals to the running balances (debit), Receipts
    subtract them (credit). Each entry carries the balances after itself.

    Args:
        vouchers: Vouchers in any order

    Returns:
        Entries in ascending date order
    """
    return _traverse(vouchers).entries


def build_system_ledger(vouchers: Iterable[Any], customers: Mapping[int, Any]) -> SystemLedger:
    """
    Build the shop-wide ledger across all customers.

    Vouchers whose customer is not in `customers` are left out with a
    warning and listed in `skipped_voucher_ids`; they do not move the
    running balances.

    Args:
        vouchers: All vouchers, in any order
        customers: Customers by id
    """
    return _traverse(vouchers, customers)


def bounded_report(
    entries: List[LedgerEntry],
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
) -> BoundedReport:
    """
    Slice a ledger to the inclusive window [range_start, range_end].

    Args:
        entries: Output of build_ledger / build_system_ledger (ascending)
        range_start: First day of the window, open when None
        range_end: Last day of the window, open when None

    Raises:
        ValidationError: If range_start is after range_end
    """
    if range_start is not None and range_end is not None and range_start > range_end:
        raise ValidationError(
            "Range start must not be after range end",
            details={"range_start": range_start.isoformat(), "range_end": range_end.isoformat()}
        )

    opening = ZERO_BALANCE
    if range_start is not None:
        for entry in reversed(entries):
            if entry.date < range_start:
                opening = entry.balance
                break

    window = [
        entry for entry in entries
        if (range_start is None or entry.date >= range_start)
        and (range_end is None or entry.date <= range_end)
    ]

    closing = window[-1].balance if window else opening

    totals = PeriodTotals(
        gold_debit=sum(entry.gold_debit for entry in window),
        gold_credit=sum(entry.gold_credit for entry in window),
        kwd_debit=sum(entry.kwd_debit for entry in window),
        kwd_credit=sum(entry.kwd_credit for entry in window),
    )

    return BoundedReport(
        range_start=range_start,
        range_end=range_end,
        opening=opening,
        entries=window,
        closing=closing,
        totals=totals,
    )


def with_balance_rows(report: BoundedReport) -> List[LedgerEntry]:
    """
    Report entries framed by "Balance brought forward" and "Balance carried forward" rows.

    The opening row is dated at the window start (or the first entry), the
    closing row at the window end (or the last entry). Without either, the
    rows are dated today.
    """
    first_date = report.range_start or (report.entries[0].date if report.entries else date.today())
    last_date = report.range_end or (report.entries[-1].date if report.entries else first_date)

    opening_row = LedgerEntry(
        date=first_date,
        description="Balance brought forward",
        gold_balance=report.opening.gold,
        kwd_balance=report.opening.kwd,
        kind=LedgerEntryKind.OPENING,
    )
    closing_row = LedgerEntry(
        date=last_date,
        description="Balance carried forward",
        gold_balance=report.closing.gold,
        kwd_balance=report.closing.kwd,
        kind=LedgerEntryKind.CLOSING,
    )
    return [opening_row, *report.entries, closing_row]


def project_unit(entries: Iterable[LedgerEntry], unit: LedgerUnit) -> List[UnitLedgerRow]:
    """Single-unit (gold or KWD) view of ledger rows."""
    unit = LedgerUnit(unit)
    rows = []
    for entry in entries:
        if unit is LedgerUnit.GOLD:
            debit, credit, balance = entry.gold_debit, entry.gold_credit, entry.gold_balance
        else:
            debit, credit, balance = entry.kwd_debit, entry.kwd_credit, entry.kwd_balance
        rows.append(UnitLedgerRow(
            date=entry.date,
            voucher_id=entry.voucher_id,
            voucher_type=entry.voucher_type,
            description=entry.description,
            debit=debit,
            credit=credit,
            balance=balance,
            kind=entry.kind,
        ))
    return rows
