"""
Expense model for trip costs.
"""
from sqlalchemy import Column, Numeric, Date, ForeignKey, Integer, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
import enum


class ExpenseCategory(str, enum.Enum):
    """Expense category enumeration."""
    FLIGHT = "flight"
    HOTEL = "hotel"
    ENTERTAINMENT = "entertainment"
    MEAL = "meal"
    OTHER = "other"


class TripExpense(BaseModel):
    """A single cost charged against a trip."""
    __tablename__ = "trip_expenses"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    category = Column(SQLEnum(ExpenseCategory), default=ExpenseCategory.OTHER, nullable=False)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=False, index=True)
    recorded_by = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="expenses")
    recorder = relationship("User", back_populates="expenses_recorded")
