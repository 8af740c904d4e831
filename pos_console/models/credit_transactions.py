# pos_console/models/credit_transactions.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from pos_console.database import Base


class CreditTransaction(Base):
    """Append-only store-credit ledger row.

    ``amount`` is signed: positive for a credit draw, negative for a payment.
    ``balance_after`` is the customer's balance as computed by the caller.
    """

    __tablename__ = "credit_transactions"

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('credit', 'payment')",
            name="ck_credit_transaction_type",
        ),
        Index("ix_credit_transactions_customer_created", "customer_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    customer_id = Column(
        Integer,
        ForeignKey("customers.id"),
        nullable=False,
        index=True,
    )

    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=True)

    store_id = Column(Integer, ForeignKey("stores.id"), nullable=True, index=True)

    transaction_type = Column(String, nullable=False)

    amount = Column(Numeric(10, 2), nullable=False)
    balance_after = Column(Numeric(10, 2), nullable=False)

    description = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    customer = relationship("Customer")
