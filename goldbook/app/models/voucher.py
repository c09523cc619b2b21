"""
Voucher database model.

A dated Invoice or Receipt against exactly one customer.
"""

from sqlalchemy import Column, Integer, String, Float, ForeignKey, Date, DateTime, Enum, JSON
from sqlalchemy.sql import func
from goldbook.app.db.session import Base
from goldbook.app.models.enums import VoucherType


class Voucher(Base):
    """
    Voucher model.

    `rows` holds the computed line items as a JSON list. `total_net` and
    `total_kwd` are the row sums, computed once at creation and stored.
    Rows and totals are never updated; only `pdf_url` is set, once, when
    the voucher is finalized.
    """
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)
    voucher_type = Column(Enum(VoucherType), nullable=False)
    date = Column(Date, nullable=False, index=True)

    # Line items and denormalized totals
    rows = Column(JSON, nullable=False)
    total_net = Column(Float, nullable=False)
    total_kwd = Column(Float, nullable=False)

    # Exported, signed document
    pdf_url = Column(String(500), nullable=True)
    finalized_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Voucher(id={self.id}, type='{self.voucher_type.value}', date={self.date}, net={self.total_net})>"
