"""
Buy-in / buy-out record model for customer cash movements.
"""
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
import enum


class TransactionType(str, enum.Enum):
    """Cash movement direction."""
    BUY_IN = "buy-in"
    BUY_OUT = "buy-out"


class BuyInOutRecord(BaseModel):
    """One cash movement. Amount is always positive, direction is in transaction_type."""
    __tablename__ = "buy_in_out_records"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)
    transaction_type = Column(
        SQLEnum(TransactionType, values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    amount = Column(Numeric(15, 2), nullable=False)
    venue = Column(String(200), nullable=True)
    table_number = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    customer = relationship("Customer", back_populates="buy_in_out_records")
    staff = relationship("Staff", back_populates="buy_in_out_records")
