"""
Rolling record model for recorded gaming sessions.
"""
from datetime import datetime
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Integer, Text, Float
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel


class RollingRecord(BaseModel):
    """One gaming session. Rows are written once and never updated."""
    __tablename__ = "rolling_records"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)
    rolling_amount = Column(Numeric(15, 2), nullable=False)
    win_loss = Column(Numeric(15, 2), nullable=False, default=0)  # Customer perspective
    buy_in_amount = Column(Numeric(15, 2), nullable=True)  # Session annotation only
    buy_out_amount = Column(Numeric(15, 2), nullable=True)  # Session annotation only
    game_type = Column(String(50), nullable=False)
    venue = Column(String(200), nullable=True)
    table_number = Column(String(50), nullable=True)
    session_start_time = Column(DateTime, nullable=True)
    session_end_time = Column(DateTime, nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    ocr_text = Column(Text, nullable=True)
    ocr_confidence = Column(Float, nullable=True)

    # Relationships
    customer = relationship("Customer", back_populates="rolling_records")
    staff = relationship("Staff", back_populates="rolling_records")
