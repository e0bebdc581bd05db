"""
Buy-in / buy-out record routes.
"""
import logging
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from junket.db.session import get_db
from junket.models.user import User, UserRole
from junket.models.customer import Customer
from junket.models.buy_in_out import BuyInOutRecord, TransactionType
from junket.schemas.record import BuyInOutCreate, BuyInOutResponse, BuyInOutSummary
from junket.services.trip_repository import TripRepository
from junket.api.dependencies import get_current_user, require_admin, require_staff_or_admin
from junket.api.routes.rolling_records import check_record_refs
from junket.api.routes.trips import check_trip_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/buy-in-out-records", tags=["buy-in-out-records"])


@router.get("", response_model=List[BuyInOutResponse])
async def list_buy_in_out_records(
    trip_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List cash movements, newest first. Agents only see their own customers' records."""
    query = db.query(BuyInOutRecord)

    if current_user.role == UserRole.AGENT:
        query = query.join(Customer).filter(Customer.agent_id == current_user.agent_id)
    if trip_id is not None:
        query = query.filter(BuyInOutRecord.trip_id == trip_id)
    if customer_id is not None:
        query = query.filter(BuyInOutRecord.customer_id == customer_id)
    if transaction_type is not None:
        query = query.filter(BuyInOutRecord.transaction_type == transaction_type)

    return query.order_by(BuyInOutRecord.recorded_at.desc(), BuyInOutRecord.id.desc()).all()


@router.post("", response_model=BuyInOutResponse, status_code=status.HTTP_201_CREATED)
async def create_buy_in_out_record(
    record_data: BuyInOutCreate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Record a buy-in or buy-out."""
    # Default to the recording staff member
    data = record_data.model_dump()
    if data["staff_id"] is None:
        data["staff_id"] = current_user.staff_id
    check_record_refs(db, data["customer_id"], data["trip_id"], data["staff_id"])

    record = BuyInOutRecord(**data)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(f"{record.transaction_type.value} of {record.amount} recorded for customer {record.customer_id}")
    return record


@router.get("/trip/{trip_id}/summary", response_model=BuyInOutSummary)
async def get_trip_buy_in_out_summary(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cash movements of a trip's customers grouped by direction."""
    trip = check_trip_access(trip_id, current_user, db)

    customer_ids = [tc.customer_id for tc in trip.customers]
    records = TripRepository(db).buy_in_out_records(customer_ids, trip_id, trip.start_date)

    by_type = {t.value: Decimal(0) for t in TransactionType}
    for record in records:
        by_type[record.transaction_type.value] += Decimal(record.amount)

    return BuyInOutSummary(
        trip_id=trip_id,
        by_type=by_type,
        total_amount=sum(by_type.values(), Decimal(0)),
        total_records=len(records),
        unique_customers_count=len({record.customer_id for record in records}),
        net_result=by_type[TransactionType.BUY_OUT.value] - by_type[TransactionType.BUY_IN.value]
    )


@router.get("/{record_id}", response_model=BuyInOutResponse)
async def get_buy_in_out_record(
    record_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a buy-in/out record."""
    record = db.query(BuyInOutRecord).filter(BuyInOutRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Buy-in/out record not found")

    if current_user.role == UserRole.AGENT and record.customer.agent_id != current_user.agent_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this record")
    return record


@router.delete("/{record_id}")
async def delete_buy_in_out_record(
    record_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a buy-in/out record."""
    record = db.query(BuyInOutRecord).filter(BuyInOutRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Buy-in/out record not found")

    db.delete(record)
    db.commit()
    logger.info(f"Buy-in/out record {record_id} deleted by user {current_user.id}")
    return {"message": "Buy-in/out record deleted successfully"}
