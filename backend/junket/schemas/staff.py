"""
Pydantic schemas for Staff entity.
"""
from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date, datetime
from junket.models.agent import AgentStatus
from junket.models.staff import ShiftStatus


class StaffBase(BaseModel):
    """Base staff schema."""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None


class StaffCreate(StaffBase):
    """Schema for staff creation."""
    pass


class StaffUpdate(BaseModel):
    """Schema for staff update."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    status: Optional[AgentStatus] = None

    @field_validator("name", "status")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class StaffResponse(StaffBase):
    """Schema for staff response."""
    id: int
    status: AgentStatus
    created_at: datetime

    class Config:
        from_attributes = True


class ShiftCheckIn(BaseModel):
    """Schema for starting a shift."""
    notes: Optional[str] = None


class ShiftCheckOut(BaseModel):
    """Schema for ending the open shift."""
    notes: Optional[str] = None


class StaffShiftResponse(BaseModel):
    """Schema for shift response."""
    id: int
    staff_id: int
    shift_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime] = None
    status: ShiftStatus
    notes: Optional[str] = None

    class Config:
        from_attributes = True
