"""
Audit trail Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List, Dict, Any


class AuditEntryResponse(BaseModel):
    """One recorded bookkeeping event."""
    id: int
    action: str
    entity: str
    entity_id: Optional[int] = None
    meta_data: Optional[Dict[str, Any]] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class AuditTrailResponse(BaseModel):
    """Events of one record, newest first."""
    entries: List[AuditEntryResponse]
    total: int
