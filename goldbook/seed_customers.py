"""
Database seeding script for demo customers and vouchers.

Opens three customer accounts and issues a few Invoice and Receipt
vouchers for local development. Run this script after the database is set
up but before first use.
"""

import asyncio
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from goldbook.app.db.session import AsyncSessionLocal, engine, Base
# Import models to ensure they are registered with Base
from goldbook.app.models.customer import Customer
from goldbook.app.models.voucher import Voucher
from goldbook.app.models.audit_log import AuditLog
from goldbook.app.schemas.customer import CustomerCreate
from goldbook.app.schemas.voucher import VoucherCreate
from goldbook.app.services.customer_store import CustomerStore
from goldbook.app.services.voucher_store import VoucherStore
from sqlalchemy import select, func

DEMO_CUSTOMERS = [
    {"name": "Ahmad Al-Sabah", "phone": "99887766", "civil_id": "290010100011"},
    {"name": "Mariam Al-Kandari", "phone": "55123456", "civil_id": "285121200022"},
    {"name": "Yousef Al-Mutairi", "phone": "66554433", "civil_id": "291050500033"},
]


async def seed_customers():
    """
    Seed demo customers with vouchers.

    Creates:
    - 3 customers (account numbers 1001-1003)
    - An Invoice and a Receipt for the first customer
    - An Invoice for the second customer
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting customer seeding...")

        existing = (await db.execute(select(func.count(Customer.id)))).scalar()
        if existing:
            print(f"ℹ️  {existing} customers already exist, skipping seeding")
            return

        customers = CustomerStore(db)
        created = []
        for fields in DEMO_CUSTOMERS:
            customer = await customers.create(CustomerCreate(**fields))
            created.append(customer)
            print(f"✅ Created customer {customer.account_no} ({customer.name})")

        vouchers = VoucherStore(db)
        demo_vouchers = [
            VoucherCreate(
                customer_id=created[0].id, voucher_type="INV", date=date(2024, 1, 5),
                rows=[{"description": "22K bracelet", "weight": 18.4, "purity": 916, "making_charges": 1.25}],
            ),
            VoucherCreate(
                customer_id=created[0].id, voucher_type="REC", date=date(2024, 1, 10),
                rows=[{"description": "Old 21K chain", "weight": 9.6, "purity": 875, "discount_percent": 5, "kwd": 15}],
            ),
            VoucherCreate(
                customer_id=created[1].id, voucher_type="INV", date=date(2024, 2, 2),
                rows=[
                    {"description": "18K ring", "weight": 4.2, "purity": 750, "making_charges": 3},
                    {"description": "24K coin", "weight": 8, "purity": 999},
                ],
            ),
        ]
        for fields in demo_vouchers:
            voucher = await vouchers.create_voucher(fields)
            print(
                f"✅ Issued {voucher.voucher_type.label} #{voucher.id}: "
                f"{voucher.total_net:.3f} g / {voucher.total_kwd:.3f} KWD"
            )

        print("\n🎉 Customer seeding completed successfully!")
        print(f"\nNext account number: {await customers.next_account_no()}")


if __name__ == "__main__":
    asyncio.run(seed_customers())
