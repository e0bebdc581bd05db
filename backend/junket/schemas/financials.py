"""
Pydantic schemas for computed trip financials.
"""
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal


class FinancialSummaryResponse(BaseModel):
    """Trip totals. Win/loss is customer perspective, house figures are flipped."""
    total_rolling: Decimal
    total_win_loss: Decimal
    total_buy_in: Decimal
    total_buy_out: Decimal
    total_expenses: Decimal
    net_cash_flow: Decimal
    rolling_commission: Decimal
    house_gross_win: Decimal
    house_net_win: Decimal
    net_result: Decimal
    customer_count: int
    expense_count: int

    class Config:
        from_attributes = True


class FinancialCheckResponse(BaseModel):
    """Sanity checks over the totals."""
    is_valid: bool
    errors: List[str] = []
    warnings: List[str] = []

    class Config:
        from_attributes = True


class TripStatisticsResponse(BaseModel):
    """Schema for trip statistics response."""
    trip_id: int
    trip_name: str
    currency: str
    summary: FinancialSummaryResponse
    validation: FinancialCheckResponse
    profit_margin: Decimal  # net_result as a percentage of total buy-in


class ShareBreakdownResponse(BaseModel):
    """One agent's share of the trip net result."""
    agent_id: int
    agent_name: Optional[str] = None
    share_percentage: Decimal
    calculated_share: Decimal

    class Config:
        from_attributes = True


class TripSharingResponse(BaseModel):
    """How the trip net result splits between agents and company."""
    summary: FinancialSummaryResponse
    net_result: Decimal
    total_agent_share: Decimal
    company_share: Decimal
    agent_share_percentage: Decimal
    company_share_percentage: Decimal
    agent_breakdown: List[ShareBreakdownResponse] = []

    class Config:
        from_attributes = True


class CustomerCommissionResponse(BaseModel):
    """Commission an agent earns on one customer."""
    customer_id: int
    customer_name: Optional[str] = None
    commission_rate: Decimal
    rolling_amount: Decimal
    net_result: Decimal
    commission_earned: Decimal  # rolling_amount * commission_rate / 100
    agent_commission: Decimal  # net_result * commission_rate / 100
    buy_in_amount: Decimal
    buy_out_amount: Decimal

    class Config:
        from_attributes = True


class AgentProfitResponse(BaseModel):
    """Schema for agent profit response."""
    agent_id: int
    agent_name: Optional[str] = None
    customers: List[CustomerCommissionResponse] = []
    total_commission: Decimal
    total_agent_commission: Decimal
    total_customer_net: Decimal

    class Config:
        from_attributes = True


class CommissionUpdate(BaseModel):
    """Schema for changing an agent's commission rate on a customer."""
    customer_id: int
    commission_rate: Decimal


class CommissionResponse(BaseModel):
    """Schema for agent-customer commission response."""
    trip_id: int
    agent_id: int
    customer_id: int
    commission_rate: Decimal

    class Config:
        from_attributes = True
