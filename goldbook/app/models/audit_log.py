"""
Audit Log Database Model.

Tracks account openings, voucher issuance and voucher finalization.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from goldbook.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking bookkeeping events.

    Events logged:
    - CUSTOMER_CREATED
    - VOUCHER_CREATED
    - VOUCHER_FINALIZED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which record it was performed on
    entity = Column(String(50), nullable=False)
    entity_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity}:{self.entity_id})>"
