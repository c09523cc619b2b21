"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from goldbook.app.api.v1.endpoints import customers, vouchers, ledger, balances

router = APIRouter()

# Customer accounts
router.include_router(customers.router)

# Invoice and Receipt vouchers
router.include_router(vouchers.router)

# Customer and full ledgers
router.include_router(ledger.router)

# Balances dashboard
router.include_router(balances.router)
