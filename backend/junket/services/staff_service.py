"""
Staff shift service for check-in and check-out.
"""
import logging
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from junket.models.agent import AgentStatus
from junket.models.staff import Staff, StaffShift, ShiftStatus

logger = logging.getLogger(__name__)


class ShiftConflictError(ValueError):
    """Raised when a staff member checks in while a shift is still open."""


def get_open_shift(staff_id: int, db: Session) -> Optional[StaffShift]:
    return db.query(StaffShift).filter(
        StaffShift.staff_id == staff_id,
        StaffShift.status == ShiftStatus.CHECKED_IN
    ).order_by(StaffShift.check_in_time.desc()).first()


def check_in(staff: Staff, db: Session, notes: Optional[str] = None, now: Optional[datetime] = None) -> StaffShift:
    """Open a shift. Only one shift per staff member may be open."""
    if staff.status != AgentStatus.ACTIVE:
        raise ValueError("Inactive staff cannot check in")
    if get_open_shift(staff.id, db):
        raise ShiftConflictError("Staff member is already checked in")

    now = now or datetime.utcnow()
    shift = StaffShift(
        staff_id=staff.id,
        shift_date=now.date(),
        check_in_time=now,
        status=ShiftStatus.CHECKED_IN,
        notes=notes
    )
    db.add(shift)
    db.commit()
    db.refresh(shift)
    logger.info(f"Staff {staff.id} checked in (shift {shift.id})")
    return shift


def check_out(staff: Staff, db: Session, notes: Optional[str] = None, now: Optional[datetime] = None) -> StaffShift:
    """Close the open shift, whichever day it started on."""
    shift = get_open_shift(staff.id, db)
    if not shift:
        raise LookupError("No active shift to check out from")

    shift.check_out_time = now or datetime.utcnow()
    shift.status = ShiftStatus.CHECKED_OUT
    if notes:
        shift.notes = f"{shift.notes}\n{notes}" if shift.notes else notes
    db.commit()
    db.refresh(shift)
    logger.info(f"Staff {staff.id} checked out (shift {shift.id})")
    return shift


def list_shifts(
    staff_id: int,
    db: Session,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: int = 50,
    offset: int = 0
) -> List[StaffShift]:
    """Shift history, most recent first."""
    query = db.query(StaffShift).filter(StaffShift.staff_id == staff_id)
    if start_date is not None:
        query = query.filter(StaffShift.shift_date >= start_date)
    if end_date is not None:
        query = query.filter(StaffShift.shift_date <= end_date)
    return query.order_by(
        StaffShift.shift_date.desc(), StaffShift.check_in_time.desc()
    ).offset(offset).limit(limit).all()
