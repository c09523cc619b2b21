"""
Customer database model.

Account holders of the shop. Created once by account opening and never
updated or deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from goldbook.app.db.session import Base


class Customer(Base):
    """
    Customer model.

    `account_no` is the human-facing account number. It may look numeric
    but is treated as an opaque, unique and immutable string.
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    account_no = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=False)
    civil_id = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, account_no='{self.account_no}', name='{self.name}')>"
