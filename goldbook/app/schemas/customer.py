"""
Customer Pydantic schemas.

Defines request and response models for account opening and lookup.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class CustomerCreate(BaseModel):
    """Schema for opening a customer account."""
    account_no: Optional[str] = Field(
        None, min_length=1, max_length=50,
        description="Account number; assigned automatically when omitted"
    )
    name: str = Field(..., min_length=1, max_length=200, description="Customer name")
    phone: str = Field(..., min_length=1, max_length=50)
    civil_id: str = Field(..., min_length=1, max_length=50, description="National or commercial identifier")


class CustomerResponse(BaseModel):
    """Schema for customer response."""
    id: int
    account_no: str
    name: str
    phone: str
    civil_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class CustomerListResponse(BaseModel):
    """Schema for customer list."""
    customers: List[CustomerResponse]
    total: int


class NextAccountNoResponse(BaseModel):
    """Account number the next opened account would receive."""
    account_no: str
