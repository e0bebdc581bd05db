"""
Pydantic schemas for Trip entity and its participants.
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from junket.models.trip import TripStatus
from junket.models.expense import ExpenseCategory


class TripBase(BaseModel):
    """Base trip schema."""
    name: str
    destination: Optional[str] = None
    start_date: date
    end_date: date
    total_budget: Decimal = Field(default=Decimal(0), ge=0)


class TripCreate(TripBase):
    """Schema for trip creation. Status is derived from the dates when omitted."""
    status: Optional[TripStatus] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class TripUpdate(BaseModel):
    """Schema for trip update."""
    name: Optional[str] = None
    destination: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[TripStatus] = None
    total_budget: Optional[Decimal] = Field(default=None, ge=0)

    @field_validator("name", "start_date", "end_date", "status", "total_budget")
    @classmethod
    def reject_null(cls, v):
        """These columns are required; an explicit null is not a way to clear them."""
        if v is None:
            raise ValueError("may not be null")
        return v


class TripResponse(TripBase):
    """Schema for trip response."""
    id: int
    status: TripStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TripCustomerAdd(BaseModel):
    """Schema for adding a customer to a trip."""
    customer_id: int
    rolling_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)


class TripCustomerResponse(BaseModel):
    """Customer participation with per-trip figures summed from records."""
    customer_id: int
    customer_name: str
    agent_id: Optional[int] = None
    rolling_amount: Decimal
    win_loss: Decimal
    buy_in_amount: Decimal
    buy_out_amount: Decimal
    net_cash_flow: Decimal
    rolling_percentage: Decimal
    rolling_commission: Decimal
    last_activity_at: Optional[datetime] = None


class TripAgentAdd(BaseModel):
    """Schema for adding an agent to a trip. Range and total are checked by the service."""
    agent_id: int
    share_percentage: Decimal


class TripAgentUpdate(BaseModel):
    """Schema for changing an agent's share."""
    share_percentage: Decimal


class TripAgentResponse(BaseModel):
    """Schema for trip agent response."""
    agent_id: int
    agent_name: Optional[str] = None
    share_percentage: Decimal

    class Config:
        from_attributes = True


class TripDetailResponse(TripResponse):
    """Schema for detailed trip response with participants."""
    customers: List[TripCustomerResponse] = []
    agents: List[TripAgentResponse] = []


class TripCustomerStatsResponse(TripCustomerResponse):
    """One customer's standing within a trip."""
    trip_id: int
    net_gaming_result: Decimal  # win_loss - rolling_commission
    total_net_position: Decimal  # Customer perspective
    house_net_result: Decimal  # -win_loss - rolling_commission


class TripStaffAdd(BaseModel):
    """Schema for assigning a staff member to a trip."""
    staff_id: int


class TripStaffResponse(BaseModel):
    """Staff assignment on a trip."""
    trip_id: int
    staff_id: int
    staff_name: Optional[str] = None
    position: Optional[str] = None
    assigned_at: datetime


class ExpenseBase(BaseModel):
    """Base expense schema."""
    category: ExpenseCategory = ExpenseCategory.OTHER
    amount: Decimal = Field(gt=0)
    description: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    """Schema for expense creation. Defaults to today when no date is given."""
    expense_date: Optional[date] = None


class ExpenseUpdate(BaseModel):
    """Schema for expense update."""
    category: Optional[ExpenseCategory] = None
    amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
    expense_date: Optional[date] = None

    @field_validator("category", "amount", "expense_date")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class ExpenseResponse(ExpenseBase):
    """Schema for expense response."""
    id: int
    trip_id: int
    expense_date: date
    recorded_by: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ExpenseListResponse(BaseModel):
    """Expenses of a trip with their total."""
    expenses: List[ExpenseResponse]
    total_expenses: Decimal
    count: int
