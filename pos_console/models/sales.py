# models/sales.py

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from pos_console.database import Base


class Sale(Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)

    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True, index=True)
    user_id = Column(Integer, ForeignKey("users_profile.id"), nullable=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=True, index=True)

    total_amount = Column(Numeric(10, 2), nullable=False)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)

    payment_method = Column(String, nullable=False)
    status = Column(String, nullable=False, default="completed")
    notes = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    customer = relationship("Customer")
    user = relationship("UserProfile")

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
    )

    # Composite index for dashboard day/window filtering
    __table_args__ = (
        Index("ix_sales_store_created", "store_id", "created_at"),
        CheckConstraint(
            "payment_method IN ('cash', 'card', 'credit')",
            name="ck_sales_payment_method",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_sales_status",
        ),
    )
