"""
Balance Aggregator (Domain Logic).

Current balances per customer for the balances dashboard, plus the search
and sort rules of that dashboard.

Aggregation fans out one voucher fetch per customer and waits for all of
them. A customer whose fetch or computation fails is shown as a zero
placeholder row; the other customers are not affected.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Sequence

from goldbook.app.core.exceptions import ValidationError
from goldbook.app.domain.ledger.engine import build_ledger
from goldbook.app.schemas.ledger import CustomerBalanceSummary, BalancesOverview

logger = logging.getLogger("goldbook")

STRING_SORT_FIELDS = {"name", "account_no"}
NUMERIC_SORT_FIELDS = {"gold_balance", "kwd_balance", "voucher_count"}
DATE_SORT_FIELDS = {"last_activity"}
SORT_FIELDS = STRING_SORT_FIELDS | NUMERIC_SORT_FIELDS | DATE_SORT_FIELDS

VoucherFetcher = Callable[[Any], Awaitable[Sequence[Any]]]


def _identity(customer: Any) -> dict:
    return {
        "customer_id": customer.id,
        "account_no": customer.account_no,
        "name": customer.name,
        "phone": getattr(customer, "phone", None) or "",
        "civil_id": getattr(customer, "civil_id", None) or "",
    }


def placeholder_summary(customer: Any) -> CustomerBalanceSummary:
    """Zero row shown for a customer whose balances could not be computed."""
    return CustomerBalanceSummary(**_identity(customer), is_placeholder=True)


def summarize(customer: Any, vouchers: Sequence[Any]) -> CustomerBalanceSummary:
    """
    Current balances of one customer.

    Args:
        customer: Customer record
        vouchers: All vouchers of that customer, in any order

    Returns:
        Final running balances, voucher count and last voucher date;
        zeros and no activity when there are no vouchers
    """
    if not vouchers:
        return CustomerBalanceSummary(**_identity(customer))

    entries = build_ledger(vouchers)
    last = entries[-1]

    return CustomerBalanceSummary(
        **_identity(customer),
        gold_balance=last.gold_balance,
        kwd_balance=last.kwd_balance,
        voucher_count=len(vouchers),
        last_activity=max(entry.date for entry in entries),
    )


async def aggregate_balances(
    customers: Sequence[Any],
    fetch_vouchers: VoucherFetcher,
    concurrency: int = 8,
) -> List[CustomerBalanceSummary]:
    """
    Summaries for every customer, fetching vouchers concurrently.

    Args:
        customers: Customers to summarize
        fetch_vouchers: Coroutine function returning one customer's vouchers
        concurrency: Maximum number of fetches in flight

    Returns:
        One summary per customer, in the order of `customers`
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def summarize_one(customer: Any) -> CustomerBalanceSummary:
        async with semaphore:
            vouchers = await fetch_vouchers(customer)
        return summarize(customer, vouchers)

    results = await asyncio.gather(
        *(summarize_one(customer) for customer in customers),
        return_exceptions=True,
    )

    summaries = []
    for customer, result in zip(customers, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error(
                "Balance computation failed for customer %s (%s): %r",
                customer.id, customer.account_no, result
            )
            summaries.append(placeholder_summary(customer))
        else:
            summaries.append(result)
    return summaries


def summarize_overview(summaries: Iterable[CustomerBalanceSummary]) -> BalancesOverview:
    """Totals across summaries. A customer with both debt and credit counts in both."""
    summaries = list(summaries)
    return BalancesOverview(
        total_gold_balance=sum(s.gold_balance for s in summaries),
        total_kwd_balance=sum(s.kwd_balance for s in summaries),
        total_customers=len(summaries),
        customers_with_debt=sum(1 for s in summaries if s.gold_balance > 0 or s.kwd_balance > 0),
        customers_with_credit=sum(1 for s in summaries if s.gold_balance < 0 or s.kwd_balance < 0),
        customers_with_transactions=sum(1 for s in summaries if s.voucher_count > 0),
    )


def filter_summaries(
    summaries: Iterable[CustomerBalanceSummary], search: Optional[str]
) -> List[CustomerBalanceSummary]:
    """
    Keep summaries matching the search text.

    Name and account number match case-insensitively; phone and civil id
    match as plain substrings.
    """
    summaries = list(summaries)
    if not search:
        return summaries

    needle = search.lower()
    return [
        s for s in summaries
        if needle in s.name.lower()
        or needle in s.account_no.lower()
        or search in s.phone
        or search in s.civil_id
    ]


def sort_summaries(
    summaries: Iterable[CustomerBalanceSummary], field: str = "name", descending: bool = False
) -> List[CustomerBalanceSummary]:
    """
    Sort summaries by one field.

    Strings compare case-insensitively, balances and counts numerically.
    For last_activity, customers without activity always come last,
    whichever the direction. The sort is stable.

    Raises:
        ValidationError: If the field is not sortable
    """
    if field not in SORT_FIELDS:
        raise ValidationError(
            f"Cannot sort balances by {field!r}",
            details={"sort_by": field, "allowed": sorted(SORT_FIELDS)}
        )

    summaries = list(summaries)

    if field in DATE_SORT_FIELDS:
        active = [s for s in summaries if getattr(s, field) is not None]
        inactive = [s for s in summaries if getattr(s, field) is None]
        active.sort(key=lambda s: getattr(s, field), reverse=descending)
        return active + inactive

    if field in STRING_SORT_FIELDS:
        key = lambda s: getattr(s, field).casefold()
    else:
        key = lambda s: getattr(s, field)
    return sorted(summaries, key=key, reverse=descending)
