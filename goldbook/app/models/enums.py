"""
Voucher and ledger enumerations.

Defines the voucher types and ledger row kinds for the accounting system.
"""

import enum


class VoucherType(str, enum.Enum):
    """
    Voucher type enumeration.

    Types:
        INVOICE: Sale to the customer, increases what the customer owes (debit)
        RECEIPT: Payment from the customer, decreases what the customer owes (credit)
    """
    INVOICE = "INV"
    RECEIPT = "REC"

    @property
    def label(self) -> str:
        return "Invoice" if self is VoucherType.INVOICE else "Receipt"


class LedgerEntryKind(str, enum.Enum):
    """Ledger row kind enumeration."""
    VOUCHER = "VOUCHER"  # Backed by a stored voucher
    OPENING = "OPENING"  # Balance brought forward
    CLOSING = "CLOSING"  # Balance carried forward


class LedgerUnit(str, enum.Enum):
    """Unit of a single-unit ledger projection."""
    GOLD = "GOLD"  # Net weight in grams
    KWD = "KWD"  # Currency
