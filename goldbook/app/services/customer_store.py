"""
Customer Store.

Persistence of customer accounts on an injected database session.
"""

from typing import Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, desc

from goldbook.app.core.exceptions import DuplicateAccountError, NotFoundError
from goldbook.app.models.customer import Customer
from goldbook.app.schemas.customer import CustomerCreate

# First account number of a shop without numeric account numbers
FIRST_ACCOUNT_NO = 1001


class CustomerStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, customer_id: int) -> Optional[Customer]:
        return await self.db.get(Customer, customer_id)

    async def get_by_account_no(self, account_no: str) -> Optional[Customer]:
        result = await self.db.execute(
            select(Customer).where(Customer.account_no == account_no)
        )
        return result.scalar_one_or_none()

    async def require(self, customer_id: int) -> Customer:
        """Get a customer or raise NotFoundError."""
        customer = await self.get(customer_id)
        if not customer:
            raise NotFoundError("Customer", customer_id)
        return customer

    async def require_by_account_no(self, account_no: str) -> Customer:
        """Get a customer by account number or raise NotFoundError."""
        customer = await self.get_by_account_no(account_no)
        if not customer:
            raise NotFoundError("Customer", account_no)
        return customer

    async def list(self) -> List[Customer]:
        """All customers, most recently opened first."""
        result = await self.db.execute(
            select(Customer).order_by(desc(Customer.created_at), desc(Customer.id))
        )
        return list(result.scalars().all())

    async def as_map(self) -> Dict[int, Customer]:
        """All customers by id."""
        return {customer.id: customer for customer in await self.list()}

    async def next_account_no(self) -> str:
        """
        Next free account number.

        One more than the highest numeric account number, or 1001 when no
        account number is numeric.
        """
        result = await self.db.execute(select(Customer.account_no))
        numbers = [int(value) for value in result.scalars().all() if value and value.strip().isdecimal()]
        return str(max(numbers) + 1) if numbers else str(FIRST_ACCOUNT_NO)

    async def create(self, fields: CustomerCreate) -> Customer:
        """
        Open a customer account.

        Raises:
            DuplicateAccountError: If the account number is taken
        """
        account_no = (fields.account_no or "").strip() or await self.next_account_no()

        if await self.get_by_account_no(account_no):
            raise DuplicateAccountError(account_no)

        customer = Customer(
            account_no=account_no,
            name=fields.name.strip(),
            phone=fields.phone.strip(),
            civil_id=fields.civil_id.strip(),
        )
        self.db.add(customer)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race for the same account number
            await self.db.rollback()
            raise DuplicateAccountError(account_no)

        await self.db.refresh(customer)
        return customer
