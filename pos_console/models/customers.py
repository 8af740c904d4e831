# pos_console/models/customers.py

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func

from pos_console.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)

    credit_limit = Column(Numeric(10, 2), nullable=False, default=0)

    # Outstanding balance owed by the customer. Only ledger operations write it.
    current_credit = Column(Numeric(10, 2), nullable=False, default=0)

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # current_credit <= credit_limit is deliberately not a constraint
    __table_args__ = (
        CheckConstraint("current_credit >= 0", name="ck_customer_credit_non_negative"),
        CheckConstraint("credit_limit >= 0", name="ck_customer_credit_limit_non_negative"),
    )
