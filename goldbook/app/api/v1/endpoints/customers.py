"""
Customer API Endpoints.

Account opening and customer lookup.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from goldbook.app.db.session import get_db
from goldbook.app.schemas.customer import (
    CustomerCreate, CustomerResponse, CustomerListResponse, NextAccountNoResponse
)
from goldbook.app.services.customer_store import CustomerStore
from goldbook.app.schemas.audit import AuditEntryResponse, AuditTrailResponse
from goldbook.app.services.audit import log_event, get_audit_trail, AuditAction

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Open a customer account.

    The account number is assigned automatically when none is given.
    Returns 409 if the account number is already in use.
    """
    customer = await CustomerStore(db).create(customer_data)

    # Audit log
    await log_event(
        db=db,
        action=AuditAction.CUSTOMER_CREATED,
        entity="customer",
        entity_id=customer.id,
        metadata={
            "account_no": customer.account_no,
            "name": customer.name
        }
    )

    return CustomerResponse.model_validate(customer)


@router.get("", response_model=CustomerListResponse)
async def list_customers(db: AsyncSession = Depends(get_db)):
    """List all customers, most recently opened first."""
    customers = await CustomerStore(db).list()

    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(customer) for customer in customers],
        total=len(customers)
    )


@router.get("/next-account-no", response_model=NextAccountNoResponse)
async def next_account_no(db: AsyncSession = Depends(get_db)):
    """Account number the next account opened without one would receive."""
    return NextAccountNoResponse(account_no=await CustomerStore(db).next_account_no())


@router.get("/account/{account_no}", response_model=CustomerResponse)
async def get_customer_by_account_no(
    account_no: str,
    db: AsyncSession = Depends(get_db)
):
    """Get a customer by account number."""
    customer = await CustomerStore(db).require_by_account_no(account_no)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get a customer by ID."""
    customer = await CustomerStore(db).require(customer_id)
    return CustomerResponse.model_validate(customer)


@router.get("/{customer_id}/audit", response_model=AuditTrailResponse)
async def get_customer_audit(
    customer_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Account events of a customer, newest first."""
    await CustomerStore(db).require(customer_id)
    entries = await get_audit_trail(db, entity="customer", entity_id=customer_id)

    return AuditTrailResponse(
        entries=[AuditEntryResponse.model_validate(entry) for entry in entries],
        total=len(entries)
    )
