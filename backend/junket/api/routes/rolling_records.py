"""
Rolling record routes. Records are append-only; corrections are made by
deleting a record and entering a new one.
"""
import logging
from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from junket.db.session import get_db
from junket.models.user import User, UserRole
from junket.models.customer import Customer
from junket.models.staff import Staff
from junket.models.trip import Trip
from junket.models.rolling_record import RollingRecord
from junket.schemas.record import RollingRecordCreate, RollingRecordResponse, RollingRecordSummary
from junket.api.dependencies import get_current_user, require_admin, require_staff_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rolling-records", tags=["rolling-records"])


def check_record_refs(db: Session, customer_id: int, trip_id: Optional[int], staff_id: Optional[int]):
    """404 when a referenced customer, trip or staff member does not exist."""
    if not db.query(Customer).filter(Customer.id == customer_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found")
    if trip_id is not None and not db.query(Trip).filter(Trip.id == trip_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    if staff_id is not None and not db.query(Staff).filter(Staff.id == staff_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Staff not found")


def scoped_records_query(
    db: Session,
    user: User,
    trip_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    game_type: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None
):
    """Rolling records matching the filters. Agents only see their own customers' records."""
    query = db.query(RollingRecord)

    if user.role == UserRole.AGENT:
        query = query.join(Customer).filter(Customer.agent_id == user.agent_id)
    if trip_id is not None:
        query = query.filter(RollingRecord.trip_id == trip_id)
    if customer_id is not None:
        query = query.filter(RollingRecord.customer_id == customer_id)
    if staff_id is not None:
        query = query.filter(RollingRecord.staff_id == staff_id)
    if game_type is not None:
        query = query.filter(RollingRecord.game_type == game_type)
    if since is not None:
        query = query.filter(RollingRecord.recorded_at >= since)
    if until is not None:
        query = query.filter(RollingRecord.recorded_at < until)
    return query


@router.get("", response_model=List[RollingRecordResponse])
async def list_rolling_records(
    trip_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    game_type: Optional[str] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List rolling records, newest first."""
    query = scoped_records_query(db, current_user, trip_id, customer_id, staff_id, game_type, since, until)
    return query.order_by(RollingRecord.recorded_at.desc(), RollingRecord.id.desc()).all()


@router.post("", response_model=RollingRecordResponse, status_code=status.HTTP_201_CREATED)
async def create_rolling_record(
    record_data: RollingRecordCreate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Record a gaming session."""
    # Default to the recording staff member
    data = record_data.model_dump()
    if data["staff_id"] is None:
        data["staff_id"] = current_user.staff_id
    check_record_refs(db, data["customer_id"], data["trip_id"], data["staff_id"])

    if data["session_start_time"] and data["session_end_time"] and data["session_end_time"] < data["session_start_time"]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="session_end_time must not be before session_start_time"
        )

    record = RollingRecord(**data)
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info(
        f"Rolling record {record.id} for customer {record.customer_id}: "
        f"rolling {record.rolling_amount}, win/loss {record.win_loss}"
    )
    return record


@router.get("/summary", response_model=RollingRecordSummary)
async def get_rolling_records_summary(
    trip_id: Optional[int] = None,
    customer_id: Optional[int] = None,
    staff_id: Optional[int] = None,
    game_type: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Totals over the records matching the filters."""
    records = scoped_records_query(db, current_user, trip_id, customer_id, staff_id, game_type).all()

    return RollingRecordSummary(
        total_rolling=sum((Decimal(r.rolling_amount) for r in records), Decimal(0)),
        total_win_loss=sum((Decimal(r.win_loss) for r in records), Decimal(0)),
        total_records=len(records),
        unique_customers_count=len({r.customer_id for r in records})
    )


@router.get("/{record_id}", response_model=RollingRecordResponse)
async def get_rolling_record(
    record_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a rolling record."""
    record = db.query(RollingRecord).filter(RollingRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rolling record not found")

    if current_user.role == UserRole.AGENT and record.customer.agent_id != current_user.agent_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied to this record")
    return record


@router.delete("/{record_id}")
async def delete_rolling_record(
    record_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a rolling record."""
    record = db.query(RollingRecord).filter(RollingRecord.id == record_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rolling record not found")

    db.delete(record)
    db.commit()
    logger.info(f"Rolling record {record_id} deleted by user {current_user.id}")
    return {"message": "Rolling record deleted successfully"}
