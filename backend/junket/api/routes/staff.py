"""
Staff management routes.
"""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from junket.db.session import get_db
from junket.core.utils import apply_updates
from junket.models.user import User, UserRole
from junket.models.staff import Staff
from junket.models.trip import Trip, TripStaff
from junket.models.rolling_record import RollingRecord
from junket.schemas.staff import (
    StaffCreate, StaffUpdate, StaffResponse, ShiftCheckIn, ShiftCheckOut, StaffShiftResponse
)
from junket.schemas.trip import TripResponse
from junket.schemas.record import RollingRecordResponse
from junket.services import staff_service
from junket.api.dependencies import get_current_user, require_admin

router = APIRouter(prefix="/staff", tags=["staff"])


def get_staff_or_404(staff_id: int, db: Session) -> Staff:
    staff = db.query(Staff).filter(Staff.id == staff_id).first()
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff not found"
        )
    return staff


def check_shift_access(staff_id: int, user: User, db: Session) -> Staff:
    """Admins manage any shift; staff only their own."""
    staff = get_staff_or_404(staff_id, db)
    if user.role != UserRole.ADMIN and user.staff_id != staff_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this staff member's shifts"
        )
    return staff


@router.get("", response_model=List[StaffResponse])
async def list_staff(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all staff."""
    return db.query(Staff).order_by(Staff.name).all()


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(
    staff_data: StaffCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a staff profile."""
    staff = Staff(**staff_data.model_dump())
    db.add(staff)
    db.commit()
    db.refresh(staff)
    return staff


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get staff details."""
    return get_staff_or_404(staff_id, db)


@router.put("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: int,
    staff_data: StaffUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a staff profile."""
    staff = get_staff_or_404(staff_id, db)
    apply_updates(staff, staff_data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(staff)
    return staff


@router.delete("/{staff_id}")
async def delete_staff(
    staff_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a staff profile."""
    staff = get_staff_or_404(staff_id, db)
    db.delete(staff)
    db.commit()
    return {"message": "Staff deleted successfully"}


@router.get("/{staff_id}/rolling-records", response_model=List[RollingRecordResponse])
async def get_staff_rolling_records(
    staff_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Sessions recorded by a staff member, newest first."""
    get_staff_or_404(staff_id, db)
    return db.query(RollingRecord).filter(
        RollingRecord.staff_id == staff_id
    ).order_by(RollingRecord.recorded_at.desc()).all()


@router.get("/{staff_id}/trips", response_model=List[TripResponse])
async def get_staff_trips(
    staff_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Trips a staff member is assigned to."""
    get_staff_or_404(staff_id, db)
    return db.query(Trip).join(TripStaff).filter(
        TripStaff.staff_id == staff_id
    ).order_by(Trip.start_date.desc()).all()


# Shifts

@router.post("/{staff_id}/check-in", response_model=StaffShiftResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    staff_id: int,
    data: ShiftCheckIn = ShiftCheckIn(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Start a shift."""
    staff = check_shift_access(staff_id, current_user, db)

    try:
        return staff_service.check_in(staff, db, notes=data.notes)
    except staff_service.ShiftConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/{staff_id}/check-out", response_model=StaffShiftResponse)
async def check_out(
    staff_id: int,
    data: ShiftCheckOut = ShiftCheckOut(),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """End the open shift."""
    staff = check_shift_access(staff_id, current_user, db)

    try:
        return staff_service.check_out(staff, db, notes=data.notes)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{staff_id}/shifts", response_model=List[StaffShiftResponse])
async def get_staff_shifts(
    staff_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Shift history, most recent first."""
    check_shift_access(staff_id, current_user, db)
    return staff_service.list_shifts(staff_id, db, start_date, end_date, limit=limit, offset=offset)


@router.get("/{staff_id}/shifts/current", response_model=Optional[StaffShiftResponse])
async def get_current_shift(
    staff_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """The open shift, or null when checked out."""
    check_shift_access(staff_id, current_user, db)
    return staff_service.get_open_shift(staff_id, db)
