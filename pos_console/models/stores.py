# pos_console/models/stores.py

from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from pos_console.database import Base


class Store(Base):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)

    tax_rate = Column(Numeric(5, 4), nullable=False, default=0.16)
    currency = Column(String(3), nullable=False, default="USD")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
