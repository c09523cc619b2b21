"""
Ledger API Endpoints.

Customer and shop-wide ledgers for a date window.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from goldbook.app.db.session import get_db
from goldbook.app.models.enums import LedgerUnit
from goldbook.app.schemas.ledger import CustomerLedgerResponse, FullLedgerResponse
from goldbook.app.services import ledger_service

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("/customers/{account_no}", response_model=CustomerLedgerResponse)
async def get_customer_ledger(
    account_no: str,
    start: Optional[date] = Query(None, description="First day of the window"),
    end: Optional[date] = Query(None, description="Last day of the window"),
    unit: Optional[LedgerUnit] = Query(None, description="Also return a single-unit view (GOLD or KWD)"),
    db: AsyncSession = Depends(get_db)
):
    """
    Ledger of one customer.

    Opening balance is the balance before `start`, closing balance the
    balance at the last voucher up to `end`.
    """
    return await ledger_service.customer_ledger(db, account_no, start, end, unit)


@router.get("/full", response_model=FullLedgerResponse)
async def get_full_ledger(
    start: Optional[date] = Query(None, description="First day of the window"),
    end: Optional[date] = Query(None, description="Last day of the window"),
    db: AsyncSession = Depends(get_db)
):
    """Shop-wide ledger across all customers."""
    return await ledger_service.full_ledger(db, start, end)
