"""
Audit logging service for bookkeeping events.

Records account openings, voucher issuance and voucher finalization.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from goldbook.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    CUSTOMER_CREATED = "CUSTOMER_CREATED"
    VOUCHER_CREATED = "VOUCHER_CREATED"
    VOUCHER_FINALIZED = "VOUCHER_FINALIZED"


async def log_event(
    db: AsyncSession,
    action: str,
    entity: str,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log a bookkeeping event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        entity: Kind of record acted upon ("customer", "voucher")
        entity_id: ID of that record
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        action=action,
        entity=entity,
        entity_id=entity_id,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, newest first.
    """
    query = select(AuditLog)

    if entity:
        query = query.where(AuditLog.entity == entity)
    if entity_id is not None:
        query = query.where(AuditLog.entity_id == entity_id)
    if action:
        query = query.where(AuditLog.action == action)

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
