"""
Ledger and balance schemas.

Shapes produced by the ledger engine and the balance aggregator.
"""

from pydantic import BaseModel
from datetime import date
from typing import Optional, List

from goldbook.app.models.enums import VoucherType, LedgerEntryKind, LedgerUnit
from goldbook.app.schemas.customer import CustomerResponse


class BalancePair(BaseModel):
    """Gold (net grams) and KWD balances at one point of the timeline."""
    gold: float = 0.0
    kwd: float = 0.0

    class Config:
        frozen = True


class LedgerEntry(BaseModel):
    """
    One ledger row.

    Balances are the running balances after this row. OPENING and CLOSING
    rows are synthetic and carry no voucher.
    """
    date: date
    voucher_id: Optional[int] = None
    customer_id: Optional[int] = None
    account_no: Optional[str] = None
    customer_name: Optional[str] = None
    voucher_type: Optional[VoucherType] = None
    description: str
    gold_debit: float = 0.0
    gold_credit: float = 0.0
    gold_balance: float = 0.0
    kwd_debit: float = 0.0
    kwd_credit: float = 0.0
    kwd_balance: float = 0.0
    pdf_url: Optional[str] = None
    kind: LedgerEntryKind = LedgerEntryKind.VOUCHER

    class Config:
        frozen = True

    @property
    def balance(self) -> BalancePair:
        return BalancePair(gold=self.gold_balance, kwd=self.kwd_balance)


class PeriodTotals(BaseModel):
    """Debit and credit sums over the rows of a report window."""
    gold_debit: float = 0.0
    gold_credit: float = 0.0
    kwd_debit: float = 0.0
    kwd_credit: float = 0.0


class BoundedReport(BaseModel):
    """A date-bounded slice of a ledger."""
    range_start: Optional[date] = None
    range_end: Optional[date] = None
    opening: BalancePair
    entries: List[LedgerEntry]
    closing: BalancePair
    totals: PeriodTotals


class SystemLedger(BaseModel):
    """Shop-wide ledger and the vouchers left out of it."""
    entries: List[LedgerEntry]
    skipped_voucher_ids: List[int] = []


class UnitLedgerRow(BaseModel):
    """Single-unit (gold or KWD) view of a ledger row."""
    date: date
    voucher_id: Optional[int]
    voucher_type: Optional[VoucherType]
    description: str
    debit: float
    credit: float
    balance: float
    kind: LedgerEntryKind


class CustomerLedgerResponse(BaseModel):
    """Customer ledger with opening and closing rows."""
    customer: CustomerResponse
    range_start: Optional[date]
    range_end: Optional[date]
    opening: BalancePair
    closing: BalancePair
    current: BalancePair
    totals: PeriodTotals
    entries: List[LedgerEntry]
    unit: Optional[LedgerUnit] = None
    unit_rows: Optional[List[UnitLedgerRow]] = None


class FullLedgerResponse(BaseModel):
    """Shop-wide ledger with opening and closing rows."""
    range_start: Optional[date]
    range_end: Optional[date]
    opening: BalancePair
    closing: BalancePair
    totals: PeriodTotals
    entries: List[LedgerEntry]
    transaction_count: int
    total_transaction_count: int
    skipped_voucher_ids: List[int]


class CustomerBalanceSummary(BaseModel):
    """Current balances of one customer."""
    customer_id: int
    account_no: str
    name: str
    phone: str = ""
    civil_id: str = ""
    gold_balance: float = 0.0
    kwd_balance: float = 0.0
    voucher_count: int = 0
    last_activity: Optional[date] = None
    is_placeholder: bool = False


class BalancesOverview(BaseModel):
    """Totals across all customers, regardless of search."""
    total_gold_balance: float
    total_kwd_balance: float
    total_customers: int
    customers_with_debt: int
    customers_with_credit: int
    customers_with_transactions: int


class BalancesResponse(BaseModel):
    """Balances dashboard."""
    overview: BalancesOverview
    balances: List[CustomerBalanceSummary]
