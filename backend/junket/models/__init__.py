"""Models package - Import all models for SQLAlchemy registration."""
from junket.models.user import User, UserRole
from junket.models.agent import Agent, AgentStatus
from junket.models.customer import Customer
from junket.models.staff import Staff, StaffShift, ShiftStatus
from junket.models.trip import Trip, TripCustomer, TripAgent, TripAgentCustomer, TripStaff, TripStatus
from junket.models.expense import TripExpense, ExpenseCategory
from junket.models.rolling_record import RollingRecord
from junket.models.buy_in_out import BuyInOutRecord, TransactionType

__all__ = [
    "User",
    "UserRole",
    "Agent",
    "AgentStatus",
    "Customer",
    "Staff",
    "StaffShift",
    "ShiftStatus",
    "Trip",
    "TripCustomer",
    "TripAgent",
    "TripAgentCustomer",
    "TripStaff",
    "TripStatus",
    "TripExpense",
    "ExpenseCategory",
    "RollingRecord",
    "BuyInOutRecord",
    "TransactionType",
]
