"""
Customer model for junket players.
"""
from sqlalchemy import Column, String, Boolean, Numeric, ForeignKey, Integer
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel


class Customer(BaseModel):
    """Customer model. Lifetime totals are derived from records, never stored."""
    __tablename__ = "customers"

    name = Column(String(200), nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=True, index=True)
    rolling_percentage = Column(Numeric(5, 2), nullable=False, default=1.4)  # Default rolling rebate, percent
    credit_limit = Column(Numeric(15, 2), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    agent = relationship("Agent", back_populates="customers")
    trips = relationship("TripCustomer", back_populates="customer", cascade="all, delete-orphan")
    agent_links = relationship("TripAgentCustomer", back_populates="customer", cascade="all, delete-orphan")
    rolling_records = relationship("RollingRecord", back_populates="customer")
    buy_in_out_records = relationship("BuyInOutRecord", back_populates="customer")
