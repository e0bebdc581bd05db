"""
Pydantic schemas for Customer entity.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


class CustomerBase(BaseModel):
    """Base customer schema."""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    agent_id: Optional[int] = None
    rolling_percentage: Decimal = Field(default=Decimal("1.4"), ge=0, le=100)
    credit_limit: Decimal = Field(default=Decimal(0), ge=0)


class CustomerCreate(CustomerBase):
    """Schema for customer creation."""
    pass


class CustomerUpdate(BaseModel):
    """Schema for customer update."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    agent_id: Optional[int] = None
    rolling_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    credit_limit: Optional[Decimal] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name", "rolling_percentage", "credit_limit", "is_active")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class CustomerResponse(CustomerBase):
    """Schema for customer response."""
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CustomerLifetimeTotals(BaseModel):
    """Customer figures summed across every recorded session and cash movement."""
    customer_id: int
    total_rolling: Decimal
    total_win_loss: Decimal
    total_buy_in: Decimal
    total_buy_out: Decimal
    net_cash_flow: Decimal
    net_gaming_result: Decimal  # Win/loss after the customer's rolling rebate
    total_net_position: Decimal
