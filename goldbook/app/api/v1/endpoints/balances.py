"""
Balances API Endpoints.

Current gold and KWD balance of every customer.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from goldbook.app.db.session import get_db, get_session_factory
from goldbook.app.schemas.ledger import BalancesResponse
from goldbook.app.services import ledger_service

router = APIRouter(prefix="/balances", tags=["Balances"])


@router.get("", response_model=BalancesResponse)
async def list_balances(
    search: Optional[str] = Query(None, description="Name, account number, phone or civil id"),
    sort_by: str = Query("name", description="name, account_no, gold_balance, kwd_balance, voucher_count, last_activity"),
    direction: Literal["asc", "desc"] = Query("asc"),
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """
    Balances dashboard.

    Customers whose balances cannot be computed are listed with zero
    balances and `is_placeholder` set.
    """
    return await ledger_service.customer_balances(
        db,
        session_factory,
        search=search,
        sort_by=sort_by,
        descending=direction == "desc"
    )
