"""
Voucher Calculator (Domain Logic).

Row-level arithmetic of Invoice and Receipt vouchers: purity-adjusted net
weight, Receipt weight discount and Invoice making charges. The same
functions run when a voucher is previewed, when it is issued and when its
stored totals are reconciled, so a voucher's numbers mean the same thing
everywhere.

Invoice KWD is always computed from the making charge. Receipt KWD is
always the amount entered on the row (negotiated cash amounts on receipts
are not captured by the discount percentage) and is passed through as is.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

from goldbook.app.core.exceptions import ValidationError
from goldbook.app.models.enums import VoucherType
from goldbook.app.schemas.voucher import VoucherRow

logger = logging.getLogger("goldbook")

# Fineness of the reference fine gold, in parts per thousand
FINE_GOLD_PURITY = 999

# Stored totals within this distance of the recomputed sums are consistent
TOTALS_TOLERANCE = 1e-6

RowInput = Union[Mapping[str, Any], Any]


class ComputationInconsistency:
    """
    Stored voucher totals disagree with the totals recomputed from its rows.

    Advisory only: reported and logged, never raised.
    """

    def __init__(self, voucher_id: Optional[int], stored: Tuple[float, float], computed: Tuple[float, float]):
        self.voucher_id = voucher_id
        self.stored_net, self.stored_kwd = stored
        self.computed_net, self.computed_kwd = computed

    def as_dict(self) -> dict:
        return {
            "voucher_id": self.voucher_id,
            "stored_net": self.stored_net,
            "computed_net": self.computed_net,
            "stored_kwd": self.stored_kwd,
            "computed_kwd": self.computed_kwd,
        }

    def __repr__(self):
        return (
            f"<ComputationInconsistency(voucher_id={self.voucher_id}, "
            f"net={self.stored_net}!={self.computed_net}, kwd={self.stored_kwd}!={self.computed_kwd})>"
        )


def parse_voucher_type(value: Union[str, VoucherType, None]) -> VoucherType:
    """
    Resolve a voucher type from its code (INV / REC) or name (Invoice / Receipt).

    Raises:
        ValidationError: If the value is not one of the two voucher types
    """
    if isinstance(value, VoucherType):
        return value

    aliases = {
        "INV": VoucherType.INVOICE,
        "INVOICE": VoucherType.INVOICE,
        "REC": VoucherType.RECEIPT,
        "RECEIPT": VoucherType.RECEIPT,
    }
    voucher_type = aliases.get(str(value).strip().upper()) if value is not None else None
    if voucher_type is None:
        raise ValidationError(
            f"Unknown voucher type: {value!r}",
            details={"voucher_type": value, "allowed": ["INV", "REC"]}
        )
    return voucher_type


def _field(row: RowInput, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def _number(row: RowInput, name: str, index: int) -> Optional[float]:
    value = _field(row, name)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Row {index + 1}: {name} must be a number",
            details={"row": index + 1, "field": name, "value": value}
        )


def compute_row(voucher_type: Union[str, VoucherType], row: RowInput, index: int = 0) -> VoucherRow:
    """
    Derive the figures of one voucher row.

    Invoice:
        net_weight = weight * purity / 999      (0 without weight or purity)
        kwd        = weight * making_charges    (0 without either)
    Receipt:
        weight_after_discount = weight * (1 - discount_percent / 100)
        net_weight            = weight_after_discount * purity / 999
        kwd                   = entered amount, unchanged

    Args:
        voucher_type: INV / REC
        row: Mapping or object with the row inputs
        index: Row position, used in error messages

    Raises:
        ValidationError: If description or weight is missing
    """
    voucher_type = parse_voucher_type(voucher_type)

    description = _field(row, "description")
    if description is None or not str(description).strip():
        raise ValidationError(
            f"Row {index + 1}: description is required",
            details={"row": index + 1, "field": "description"}
        )

    weight = _number(row, "weight", index)
    if weight is None:
        raise ValidationError(
            f"Row {index + 1}: weight is required",
            details={"row": index + 1, "field": "weight"}
        )

    purity = _number(row, "purity", index)

    if voucher_type is VoucherType.INVOICE:
        making_charges = _number(row, "making_charges", index)
        net_weight = weight * purity / FINE_GOLD_PURITY if weight and purity else 0.0
        kwd = weight * making_charges if weight and making_charges else 0.0
        return VoucherRow(
            description=str(description).strip(),
            weight=weight,
            purity=purity,
            making_charges=making_charges,
            net_weight=net_weight,
            kwd=kwd,
        )

    discount_percent = _number(row, "discount_percent", index)
    weight_after_discount = weight * (1 - (discount_percent or 0.0) / 100) if weight else 0.0
    net_weight = (
        weight_after_discount * purity / FINE_GOLD_PURITY
        if weight_after_discount and purity else 0.0
    )
    kwd = _number(row, "kwd", index)
    return VoucherRow(
        description=str(description).strip(),
        weight=weight,
        purity=purity,
        discount_percent=discount_percent,
        weight_after_discount=weight_after_discount,
        net_weight=net_weight,
        kwd=kwd or 0.0,
    )


def compute_rows(voucher_type: Union[str, VoucherType], rows: Iterable[RowInput]) -> List[VoucherRow]:
    """Compute every row of a voucher. A voucher needs at least one row."""
    computed = [compute_row(voucher_type, row, index) for index, row in enumerate(rows or [])]
    if not computed:
        raise ValidationError("A voucher needs at least one row")
    return computed


def compute_totals(rows: Iterable[RowInput]) -> Tuple[float, float]:
    """
    Sum the derived figures of computed rows.

    Returns:
        (total_net, total_kwd)
    """
    total_net = 0.0
    total_kwd = 0.0
    for row in rows:
        total_net += float(_field(row, "net_weight") or 0.0)
        total_kwd += float(_field(row, "kwd") or 0.0)
    return total_net, total_kwd


def total_weight_after_discount(rows: Iterable[RowInput]) -> float:
    """Sum of Receipt discounted weights (0 for Invoice rows)."""
    return sum(float(_field(row, "weight_after_discount") or 0.0) for row in rows)


def reconcile_totals(voucher: Any) -> Optional[ComputationInconsistency]:
    """
    Compare a voucher's stored totals with the sums of its stored rows.

    Stored totals are trusted by the ledger; this is an explicit check for
    callers that display rows next to totals.

    Returns:
        ComputationInconsistency if the totals drifted, otherwise None
    """
    computed = compute_totals(voucher.rows or [])
    stored = (float(voucher.total_net), float(voucher.total_kwd))

    if all(math.isclose(s, c, abs_tol=TOTALS_TOLERANCE) for s, c in zip(stored, computed)):
        return None

    inconsistency = ComputationInconsistency(getattr(voucher, "id", None), stored, computed)
    logger.warning("Voucher totals disagree with rows: %s", inconsistency.as_dict())
    return inconsistency
