"""
Voucher Pydantic schemas.

Row inputs, computed rows and voucher request/response models.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List

from goldbook.app.models.enums import VoucherType
from goldbook.app.schemas.customer import CustomerResponse


class VoucherRowInput(BaseModel):
    """
    One line item as entered.

    `making_charges` applies to Invoice rows, `discount_percent` and `kwd`
    to Receipt rows. Invoice `kwd` is always computed and any supplied
    value is ignored.
    """
    description: Optional[str] = Field(None, max_length=500)
    weight: Optional[float] = Field(None, ge=0, description="Gross weight in grams")
    purity: Optional[float] = Field(None, ge=0, description="Parts per thousand, 999 = fine gold")
    making_charges: Optional[float] = Field(None, ge=0, description="KWD per gram (Invoice)")
    discount_percent: Optional[float] = Field(None, ge=0, le=100, description="Weight discount (Receipt)")
    kwd: Optional[float] = Field(None, description="Entered KWD amount (Receipt)")


class VoucherRow(BaseModel):
    """One line item with its derived figures."""
    description: str
    weight: float
    purity: Optional[float] = None
    making_charges: Optional[float] = None
    discount_percent: Optional[float] = None
    weight_after_discount: Optional[float] = None
    net_weight: float
    kwd: float


class VoucherCreate(BaseModel):
    """Schema for issuing a voucher. Totals are computed server-side."""
    customer_id: int
    voucher_type: str = Field(..., description="INV / REC (or Invoice / Receipt)")
    date: date
    rows: List[VoucherRowInput] = Field(..., min_length=1)


class VoucherPreviewRequest(BaseModel):
    """Schema for computing rows without issuing a voucher."""
    voucher_type: str
    rows: List[VoucherRowInput] = Field(..., min_length=1)


class VoucherPreviewResponse(BaseModel):
    """Computed rows and totals for a draft voucher."""
    voucher_type: VoucherType
    rows: List[VoucherRow]
    total_net: float
    total_kwd: float
    total_weight_after_discount: float


class VoucherResponse(BaseModel):
    """Schema for voucher response."""
    id: int
    customer_id: int
    voucher_type: VoucherType
    date: date
    rows: List[VoucherRow]
    total_net: float
    total_kwd: float
    pdf_url: Optional[str]
    finalized_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class VoucherDetailResponse(VoucherResponse):
    """Voucher with its customer and a totals reconciliation flag."""
    customer: Optional[CustomerResponse] = None
    totals_consistent: bool = True


class VoucherListResponse(BaseModel):
    """Schema for voucher list."""
    vouchers: List[VoucherResponse]
    total: int


class VoucherFinalizeRequest(BaseModel):
    """Signatures captured on the signing screen, as data URLs."""
    sales_signature: Optional[str] = None
    customer_signature: Optional[str] = None


class VoucherFinalizeResponse(BaseModel):
    """Result of a voucher finalization."""
    voucher_id: int
    pdf_url: str
    finalized_at: datetime
