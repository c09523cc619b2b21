"""
Ledger Service.

Reads customers and vouchers from the stores and hands them to the ledger
engine and the balance aggregator.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from goldbook.app.core.config import settings
from goldbook.app.domain.ledger.balances import (
    aggregate_balances, filter_summaries, sort_summaries, summarize_overview
)
from goldbook.app.domain.ledger.engine import (
    build_ledger, build_system_ledger, bounded_report, with_balance_rows, project_unit, ZERO_BALANCE
)
from goldbook.app.models.enums import LedgerUnit
from goldbook.app.schemas.customer import CustomerResponse
from goldbook.app.schemas.ledger import CustomerLedgerResponse, FullLedgerResponse, BalancesResponse
from goldbook.app.services.customer_store import CustomerStore
from goldbook.app.services.voucher_store import VoucherStore

logger = logging.getLogger("goldbook")


async def customer_ledger(
    db: AsyncSession,
    account_no: str,
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
    unit: Optional[LedgerUnit] = None,
) -> CustomerLedgerResponse:
    """
    Ledger of one customer for a date window.

    Raises:
        NotFoundError: If no customer has the account number
        ValidationError: If range_start is after range_end
    """
    customer = await CustomerStore(db).require_by_account_no(account_no)
    vouchers = await VoucherStore(db).list_by_customer(customer.id)

    entries = build_ledger(vouchers)
    report = bounded_report(entries, range_start, range_end)
    rows = with_balance_rows(report)

    return CustomerLedgerResponse(
        customer=CustomerResponse.model_validate(customer),
        range_start=range_start,
        range_end=range_end,
        opening=report.opening,
        closing=report.closing,
        current=entries[-1].balance if entries else ZERO_BALANCE,
        totals=report.totals,
        entries=rows,
        unit=unit,
        unit_rows=project_unit(rows, unit) if unit else None,
    )


async def full_ledger(
    db: AsyncSession,
    range_start: Optional[date] = None,
    range_end: Optional[date] = None,
) -> FullLedgerResponse:
    """
    Shop-wide ledger for a date window.

    Vouchers of unknown customers are left out and reported in
    skipped_voucher_ids.
    """
    customers = await CustomerStore(db).as_map()
    vouchers = await VoucherStore(db).list_all()

    ledger = build_system_ledger(vouchers, customers)
    report = bounded_report(ledger.entries, range_start, range_end)

    return FullLedgerResponse(
        range_start=range_start,
        range_end=range_end,
        opening=report.opening,
        closing=report.closing,
        totals=report.totals,
        entries=with_balance_rows(report),
        transaction_count=len(report.entries),
        total_transaction_count=len(ledger.entries),
        skipped_voucher_ids=ledger.skipped_voucher_ids,
    )


async def customer_balances(
    db: AsyncSession,
    session_factory: async_sessionmaker,
    search: Optional[str] = None,
    sort_by: str = "name",
    descending: bool = False,
) -> BalancesResponse:
    """
    Balances dashboard: one summary per customer.

    Each customer's vouchers are fetched on a session of its own. A failed
    customer shows as a placeholder row. The overview covers every
    customer; the search only narrows the listed rows.
    """
    customers = await CustomerStore(db).list()

    async def fetch_vouchers(customer):
        async with session_factory() as session:
            return await VoucherStore(session).list_by_customer(customer.id)

    summaries = await aggregate_balances(
        customers, fetch_vouchers, concurrency=settings.balance_fetch_concurrency
    )
    placeholders = sum(1 for s in summaries if s.is_placeholder)
    if placeholders:
        logger.warning("Balances listed with %s placeholder rows", placeholders)

    overview = summarize_overview(summaries)
    listed = sort_summaries(filter_summaries(summaries, search), sort_by, descending)

    return BalancesResponse(overview=overview, balances=listed)
