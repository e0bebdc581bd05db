"""
Staff models: floor staff who record sessions and cash movements, and their shifts.
"""
from sqlalchemy import Column, String, Date, DateTime, Text, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
from junket.models.agent import AgentStatus
import enum


class ShiftStatus(str, enum.Enum):
    """Shift status enumeration."""
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"


class Staff(BaseModel):
    """Staff member profile."""
    __tablename__ = "staff"

    name = Column(String(200), nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    position = Column(String(100), nullable=True)
    status = Column(SQLEnum(AgentStatus, name="staffstatus"), default=AgentStatus.ACTIVE, nullable=False)

    # Relationships
    rolling_records = relationship("RollingRecord", back_populates="staff")
    buy_in_out_records = relationship("BuyInOutRecord", back_populates="staff")
    trips = relationship("TripStaff", back_populates="staff", cascade="all, delete-orphan")
    shifts = relationship("StaffShift", back_populates="staff", cascade="all, delete-orphan")


class StaffShift(BaseModel):
    """One working shift. At most one shift per staff member is open at a time."""
    __tablename__ = "staff_shifts"

    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)
    shift_date = Column(Date, nullable=False, index=True)
    check_in_time = Column(DateTime, nullable=False)
    check_out_time = Column(DateTime, nullable=True)
    status = Column(SQLEnum(ShiftStatus), default=ShiftStatus.CHECKED_IN, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    staff = relationship("Staff", back_populates="shifts")
