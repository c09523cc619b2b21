"""
Voucher Store.

Persistence of vouchers on an injected database session. Voucher rows and
totals are computed here, once, when the voucher is issued.
"""

from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from goldbook.app.core.exceptions import NotFoundError, VoucherAlreadyFinalizedError
from goldbook.app.domain.vouchers.calculator import parse_voucher_type, compute_rows, compute_totals
from goldbook.app.models.customer import Customer
from goldbook.app.models.voucher import Voucher
from goldbook.app.schemas.voucher import VoucherCreate


class VoucherStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, voucher_id: int) -> Optional[Voucher]:
        return await self.db.get(Voucher, voucher_id)

    async def require(self, voucher_id: int) -> Voucher:
        """Get a voucher or raise NotFoundError."""
        voucher = await self.get(voucher_id)
        if not voucher:
            raise NotFoundError("Voucher", voucher_id)
        return voucher

    async def list_by_customer(self, customer_id: int) -> List[Voucher]:
        """Vouchers of one customer, by date then issue order."""
        result = await self.db.execute(
            select(Voucher)
            .where(Voucher.customer_id == customer_id)
            .order_by(Voucher.date.asc(), Voucher.id.asc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> List[Voucher]:
        """All vouchers, by date then issue order."""
        result = await self.db.execute(
            select(Voucher).order_by(Voucher.date.asc(), Voucher.id.asc())
        )
        return list(result.scalars().all())

    async def create_voucher(self, fields: VoucherCreate) -> Voucher:
        """
        Issue a voucher.

        Rows are computed from their inputs and the totals from the rows;
        both are stored and never recomputed afterwards.

        Raises:
            ValidationError: On an unknown voucher type or incomplete rows
            NotFoundError: If the customer does not exist
        """
        voucher_type = parse_voucher_type(fields.voucher_type)
        rows = compute_rows(voucher_type, fields.rows)
        total_net, total_kwd = compute_totals(rows)

        if not await self.db.get(Customer, fields.customer_id):
            raise NotFoundError("Customer", fields.customer_id)

        voucher = Voucher(
            customer_id=fields.customer_id,
            voucher_type=voucher_type,
            date=fields.date,
            rows=[row.model_dump() for row in rows],
            total_net=total_net,
            total_kwd=total_kwd,
        )
        self.db.add(voucher)
        await self.db.commit()
        await self.db.refresh(voucher)
        return voucher

    async def attach_document_url(self, voucher_id: int, url: str) -> Voucher:
        """
        Record the exported document of a voucher. Allowed once.

        Raises:
            NotFoundError: If the voucher does not exist
            VoucherAlreadyFinalizedError: If a document is already attached
        """
        await self.require(voucher_id)

        # Conditional update so two finalizations cannot both succeed
        result = await self.db.execute(
            update(Voucher)
            .where(Voucher.id == voucher_id, Voucher.pdf_url.is_(None))
            .values(pdf_url=url, finalized_at=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise VoucherAlreadyFinalizedError(voucher_id)

        await self.db.commit()
        voucher = await self.require(voucher_id)
        await self.db.refresh(voucher)
        return voucher
