"""
User model for authentication and role-based access.
"""
from sqlalchemy import Column, String, Boolean, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
import enum


class UserRole(str, enum.Enum):
    """Login roles. Agents and staff are tied to their profile rows."""
    ADMIN = "admin"
    AGENT = "agent"
    STAFF = "staff"


class User(BaseModel):
    """Login account for admins, agents and staff."""
    __tablename__ = "users"

    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), default=UserRole.STAFF, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=True, index=True)

    # Relationships
    agent = relationship("Agent", foreign_keys=[agent_id])
    staff = relationship("Staff", foreign_keys=[staff_id])
    expenses_recorded = relationship("TripExpense", back_populates="recorder")
