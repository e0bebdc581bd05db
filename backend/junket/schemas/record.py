"""
Pydantic schemas for rolling records and buy-in/out records.
"""
from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime
from decimal import Decimal
from junket.models.buy_in_out import TransactionType


class RollingRecordCreate(BaseModel):
    """Schema for recording a gaming session."""
    trip_id: Optional[int] = None
    customer_id: int
    staff_id: Optional[int] = None
    rolling_amount: Decimal = Field(ge=0)
    win_loss: Decimal = Decimal(0)  # Customer perspective
    buy_in_amount: Optional[Decimal] = Field(default=None, ge=0)
    buy_out_amount: Optional[Decimal] = Field(default=None, ge=0)
    game_type: str
    venue: Optional[str] = None
    table_number: Optional[str] = None
    session_start_time: Optional[datetime] = None
    session_end_time: Optional[datetime] = None
    notes: Optional[str] = None
    ocr_text: Optional[str] = None
    ocr_confidence: Optional[float] = Field(default=None, ge=0, le=1)


class RollingRecordResponse(BaseModel):
    """Schema for rolling record response."""
    id: int
    trip_id: Optional[int] = None
    customer_id: int
    staff_id: Optional[int] = None
    rolling_amount: Decimal
    win_loss: Decimal
    buy_in_amount: Optional[Decimal] = None
    buy_out_amount: Optional[Decimal] = None
    game_type: str
    venue: Optional[str] = None
    table_number: Optional[str] = None
    session_start_time: Optional[datetime] = None
    session_end_time: Optional[datetime] = None
    recorded_at: datetime
    notes: Optional[str] = None
    ocr_confidence: Optional[float] = None

    class Config:
        from_attributes = True


class BuyInOutCreate(BaseModel):
    """Schema for recording a cash movement. Amount is always positive."""
    trip_id: Optional[int] = None
    customer_id: int
    staff_id: Optional[int] = None
    transaction_type: TransactionType
    amount: Decimal = Field(gt=0)
    venue: Optional[str] = None
    table_number: Optional[str] = None
    notes: Optional[str] = None


class BuyInOutResponse(BaseModel):
    """Schema for buy-in/out record response."""
    id: int
    trip_id: Optional[int] = None
    customer_id: int
    staff_id: Optional[int] = None
    transaction_type: TransactionType
    amount: Decimal
    venue: Optional[str] = None
    table_number: Optional[str] = None
    notes: Optional[str] = None
    recorded_at: datetime

    class Config:
        from_attributes = True


class BuyInOutSummary(BaseModel):
    """Cash movements of a trip grouped by direction."""
    trip_id: int
    by_type: Dict[str, Decimal] = {}
    total_amount: Decimal = Decimal(0)
    total_records: int = 0
    unique_customers_count: int = 0
    net_result: Decimal = Decimal(0)  # buy-out minus buy-in


class OCRExtractionResponse(BaseModel):
    """Fields read from an uploaded slip."""
    engine: str
    confidence: float
    text: str
    fields: Dict[str, str] = {}
    rolling_amount: Optional[Decimal] = None
    win_loss: Optional[Decimal] = None
    buy_in_amount: Optional[Decimal] = None
    buy_out_amount: Optional[Decimal] = None


class RollingRecordSummary(BaseModel):
    """Totals over a filtered set of rolling records."""
    total_rolling: Decimal = Decimal(0)
    total_win_loss: Decimal = Decimal(0)  # Customer perspective
    total_records: int = 0
    unique_customers_count: int = 0
