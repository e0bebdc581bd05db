"""
Trip management routes, including the trip financial views.
"""
import logging
from datetime import date
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from junket.db.session import get_db
from junket.core.config import settings
from junket.core.utils import apply_updates, money
from junket.models.user import User, UserRole
from junket.models.agent import Agent
from junket.models.customer import Customer
from junket.models.staff import Staff
from junket.models.trip import Trip, TripCustomer, TripAgent, TripStaff
from junket.models.expense import TripExpense
from junket.models.rolling_record import RollingRecord
from junket.models.buy_in_out import BuyInOutRecord
from junket.schemas.trip import (
    TripCreate, TripUpdate, TripResponse, TripDetailResponse,
    TripCustomerAdd, TripCustomerResponse, TripCustomerStatsResponse, TripStaffAdd, TripStaffResponse,
    TripAgentAdd, TripAgentUpdate, TripAgentResponse,
    ExpenseCreate, ExpenseUpdate, ExpenseResponse, ExpenseListResponse
)
from junket.schemas.financials import (
    FinancialSummaryResponse, FinancialCheckResponse, TripStatisticsResponse, TripSharingResponse, AgentProfitResponse,
    CommissionUpdate, CommissionResponse
)
from junket.services import trip_service
from junket.services.financials import FinancialValidationError, rolling_commission_for
from junket.services.snapshot_refresher import snapshot_refresher
from junket.api.dependencies import get_current_user, require_admin, require_staff_or_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/trips", tags=["trips"])


def check_trip_access(trip_id: int, user: User, db: Session) -> Trip:
    """Check if user has access to trip. Agents only see trips they take part in."""
    trip = db.query(Trip).filter(Trip.id == trip_id).first()
    if not trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Trip not found"
        )

    if user.role == UserRole.AGENT:
        participant = db.query(TripAgent).filter(
            TripAgent.trip_id == trip_id,
            TripAgent.agent_id == user.agent_id
        ).first()
        if not participant:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied to this trip"
            )

    return trip


def raise_for_service_error(error: Exception):
    """Translate a service exception into the matching HTTP error."""
    if isinstance(error, trip_service.TripNotFoundError) or isinstance(error, LookupError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    if isinstance(error, FinancialValidationError):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(error))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


def _customer_response(line) -> TripCustomerResponse:
    return TripCustomerResponse(
        customer_id=line.customer_id,
        customer_name=line.customer_name,
        agent_id=line.agent_id,
        rolling_amount=line.rolling_amount,
        win_loss=line.win_loss,
        buy_in_amount=line.buy_in_amount,
        buy_out_amount=line.buy_out_amount,
        net_cash_flow=line.buy_out_amount - line.buy_in_amount,
        rolling_percentage=line.rolling_percentage,
        rolling_commission=rolling_commission_for(line.rolling_amount, line.rolling_percentage),
        last_activity_at=line.last_activity_at
    )


@router.post("", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a new trip."""
    # Create new trip, status defaults to what the dates imply
    new_trip = Trip(
        name=trip_data.name,
        destination=trip_data.destination,
        start_date=trip_data.start_date,
        end_date=trip_data.end_date,
        total_budget=trip_data.total_budget,
        status=trip_data.status or trip_service.derive_trip_status(trip_data.start_date, trip_data.end_date)
    )
    db.add(new_trip)
    db.commit()
    db.refresh(new_trip)
    logger.info(f"Trip {new_trip.id} '{new_trip.name}' created")
    return new_trip


@router.get("", response_model=List[TripResponse])
async def list_trips(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List trips visible to the current user."""
    query = db.query(Trip)
    if current_user.role == UserRole.AGENT:
        query = query.join(TripAgent).filter(TripAgent.agent_id == current_user.agent_id)
    return query.order_by(Trip.start_date.desc()).all()


@router.get("/my-schedule", response_model=List[TripResponse])
async def get_my_schedule(
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Trips still to be worked. Staff see only the trips they are assigned to."""
    query = db.query(Trip).filter(Trip.end_date >= date.today())

    if current_user.role == UserRole.STAFF:
        if not current_user.staff_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Staff ID not found for user"
            )
        query = query.join(TripStaff).filter(TripStaff.staff_id == current_user.staff_id)

    return query.order_by(Trip.start_date).all()


@router.get("/{trip_id}", response_model=TripDetailResponse)
async def get_trip(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get trip details with customers and agents."""
    trip = check_trip_access(trip_id, current_user, db)
    snapshot = trip_service.load_trip_snapshot(trip_id, db)

    return TripDetailResponse(
        id=trip.id,
        name=trip.name,
        destination=trip.destination,
        start_date=trip.start_date,
        end_date=trip.end_date,
        total_budget=trip.total_budget,
        status=trip.status,
        created_at=trip.created_at,
        updated_at=trip.updated_at,
        customers=[_customer_response(line) for line in snapshot.customers],
        agents=[TripAgentResponse.model_validate(share) for share in snapshot.agents]
    )


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip(
    trip_id: int,
    trip_data: TripUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update a trip."""
    trip = check_trip_access(trip_id, current_user, db)
    updates = trip_data.model_dump(exclude_unset=True)

    # Check the resulting date range
    start_date = updates.get("start_date", trip.start_date)
    end_date = updates.get("end_date", trip.end_date)
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date must not be before start_date"
        )

    apply_updates(trip, updates)
    db.commit()
    db.refresh(trip)
    return trip


@router.delete("/{trip_id}")
async def delete_trip(
    trip_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a trip with its participants and expenses. Trips with gaming records are kept."""
    trip = check_trip_access(trip_id, current_user, db)

    # Check if the trip carries gaming records
    has_records = (
        db.query(RollingRecord).filter(RollingRecord.trip_id == trip_id).first()
        or db.query(BuyInOutRecord).filter(BuyInOutRecord.trip_id == trip_id).first()
    )
    if has_records:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete a trip that has rolling or buy-in/out records"
        )

    db.delete(trip)
    db.commit()
    snapshot_refresher.forget(trip_id)
    return {"message": "Trip deleted successfully"}


@router.get("/{trip_id}/status")
async def get_trip_status(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the trip status implied by its dates, updating the stored one."""
    trip = check_trip_access(trip_id, current_user, db)

    trip_status = trip_service.derive_trip_status(trip.start_date, trip.end_date)
    if trip.status != trip_status:
        trip.status = trip_status
        db.commit()

    return {"status": trip_status.value}


# Customers

@router.post("/{trip_id}/customers", response_model=TripCustomerResponse, status_code=status.HTTP_201_CREATED)
async def add_trip_customer(
    trip_id: int,
    data: TripCustomerAdd,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Add a customer to the trip."""
    check_trip_access(trip_id, current_user, db)

    # Check if customer exists
    customer = db.query(Customer).filter(Customer.id == data.customer_id).first()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )

    # Check if customer is already on trip
    existing = db.query(TripCustomer).filter(
        TripCustomer.trip_id == trip_id,
        TripCustomer.customer_id == data.customer_id
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Customer is already on this trip"
        )

    db.add(TripCustomer(
        trip_id=trip_id,
        customer_id=data.customer_id,
        rolling_percentage=data.rolling_percentage
    ))
    db.commit()

    snapshot = trip_service.load_trip_snapshot(trip_id, db)
    return _customer_response(snapshot.customer(data.customer_id))


@router.delete("/{trip_id}/customers/{customer_id}")
async def remove_trip_customer(
    trip_id: int,
    customer_id: int,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Remove a customer from the trip. Their records are kept."""
    check_trip_access(trip_id, current_user, db)

    trip_customer = db.query(TripCustomer).filter(
        TripCustomer.trip_id == trip_id,
        TripCustomer.customer_id == customer_id
    ).first()
    if not trip_customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer is not on this trip"
        )

    db.delete(trip_customer)
    db.commit()
    return {"message": "Customer removed from trip"}


@router.get("/{trip_id}/customers/{customer_id}/stats", response_model=TripCustomerStatsResponse)
async def get_trip_customer_stats(
    trip_id: int,
    customer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """A single customer's figures on the trip and their net position."""
    check_trip_access(trip_id, current_user, db)

    try:
        line, commission, position = trip_service.get_customer_trip_stats(trip_id, customer_id, db)
    except (ValueError, LookupError) as e:
        raise_for_service_error(e)

    return TripCustomerStatsResponse(
        **_customer_response(line).model_dump(),
        trip_id=trip_id,
        net_gaming_result=position.net_gaming_result,
        total_net_position=position.total_net_position,
        house_net_result=-line.win_loss - commission
    )


# Agents and shares

@router.get("/{trip_id}/agents", response_model=List[TripAgentResponse])
async def get_trip_agents(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the trip's agents and their share percentages."""
    check_trip_access(trip_id, current_user, db)
    snapshot = trip_service.load_trip_snapshot(trip_id, db)
    return [TripAgentResponse.model_validate(share) for share in snapshot.agents]


@router.post("/{trip_id}/agents", response_model=TripAgentResponse, status_code=status.HTTP_201_CREATED)
async def add_trip_agent(
    trip_id: int,
    data: TripAgentAdd,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add an agent to the trip with a share of the net result."""
    check_trip_access(trip_id, current_user, db)

    # Check if agent exists
    agent = db.query(Agent).filter(Agent.id == data.agent_id).first()
    if not agent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agent not found"
        )

    try:
        trip_agent = trip_service.add_agent_to_trip(trip_id, data.agent_id, data.share_percentage, db)
    except ValueError as e:
        raise_for_service_error(e)

    return TripAgentResponse(
        agent_id=trip_agent.agent_id,
        agent_name=agent.name,
        share_percentage=trip_agent.share_percentage
    )


@router.put("/{trip_id}/agents/{agent_id}", response_model=TripAgentResponse)
async def update_trip_agent(
    trip_id: int,
    agent_id: int,
    data: TripAgentUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Change an agent's share percentage."""
    check_trip_access(trip_id, current_user, db)

    try:
        trip_agent = trip_service.update_agent_share(trip_id, agent_id, data.share_percentage, db)
    except (ValueError, LookupError) as e:
        raise_for_service_error(e)

    return TripAgentResponse(
        agent_id=trip_agent.agent_id,
        agent_name=trip_agent.agent.name if trip_agent.agent else None,
        share_percentage=trip_agent.share_percentage
    )


@router.delete("/{trip_id}/agents/{agent_id}")
async def remove_trip_agent(
    trip_id: int,
    agent_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove an agent from the trip. Their share returns to the company."""
    check_trip_access(trip_id, current_user, db)

    try:
        trip_service.remove_agent_from_trip(trip_id, agent_id, db)
    except LookupError as e:
        raise_for_service_error(e)

    return {"message": "Agent removed from trip"}


@router.get("/{trip_id}/agents/profits", response_model=List[AgentProfitResponse])
async def get_agent_profits(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Commission each agent earns from their own customers on the trip."""
    check_trip_access(trip_id, current_user, db)
    profits = trip_service.get_agent_profits(trip_id, db)

    if current_user.role == UserRole.AGENT:
        profits = [profit for profit in profits if profit.agent_id == current_user.agent_id]
    return [AgentProfitResponse.model_validate(profit) for profit in profits]


@router.put("/{trip_id}/agents/{agent_id}/commission", response_model=CommissionResponse)
async def update_agent_commission(
    trip_id: int,
    agent_id: int,
    data: CommissionUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Set the commission rate an agent earns on one of the trip's customers."""
    check_trip_access(trip_id, current_user, db)

    # Check if agent exists
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agent not found"
        )

    # Check if customer is on the trip
    on_trip = db.query(TripCustomer).filter(
        TripCustomer.trip_id == trip_id,
        TripCustomer.customer_id == data.customer_id
    ).first()
    if not on_trip:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer is not on this trip"
        )

    try:
        return trip_service.update_agent_commission(trip_id, agent_id, data.customer_id, data.commission_rate, db)
    except (ValueError, LookupError) as e:
        raise_for_service_error(e)


# Staff

def _staff_response(assignment: TripStaff) -> TripStaffResponse:
    return TripStaffResponse(
        trip_id=assignment.trip_id,
        staff_id=assignment.staff_id,
        staff_name=assignment.staff.name if assignment.staff else None,
        position=assignment.staff.position if assignment.staff else None,
        assigned_at=assignment.created_at
    )


@router.get("/{trip_id}/staff", response_model=List[TripStaffResponse])
async def get_trip_staff(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the staff assigned to the trip."""
    check_trip_access(trip_id, current_user, db)
    assignments = db.query(TripStaff).filter(TripStaff.trip_id == trip_id).order_by(TripStaff.id).all()
    return [_staff_response(assignment) for assignment in assignments]


@router.post("/{trip_id}/staff", response_model=TripStaffResponse, status_code=status.HTTP_201_CREATED)
async def assign_trip_staff(
    trip_id: int,
    data: TripStaffAdd,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Assign a staff member to the trip."""
    check_trip_access(trip_id, current_user, db)

    # Check if staff exists
    staff = db.query(Staff).filter(Staff.id == data.staff_id).first()
    if not staff:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff not found"
        )

    # Check if staff is already assigned
    existing = db.query(TripStaff).filter(
        TripStaff.trip_id == trip_id,
        TripStaff.staff_id == data.staff_id
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Staff is already assigned to this trip"
        )

    assignment = TripStaff(trip_id=trip_id, staff_id=data.staff_id)
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    logger.info(f"Staff {data.staff_id} assigned to trip {trip_id}")
    return _staff_response(assignment)


@router.delete("/{trip_id}/staff/{staff_id}")
async def remove_trip_staff(
    trip_id: int,
    staff_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Remove a staff assignment from the trip."""
    check_trip_access(trip_id, current_user, db)

    assignment = db.query(TripStaff).filter(
        TripStaff.trip_id == trip_id,
        TripStaff.staff_id == staff_id
    ).first()
    if not assignment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Staff is not assigned to this trip"
        )

    db.delete(assignment)
    db.commit()
    return {"message": "Staff removed from trip"}


# Expenses

def get_expense_or_404(trip_id: int, expense_id: int, db: Session) -> TripExpense:
    expense = db.query(TripExpense).filter(
        TripExpense.id == expense_id,
        TripExpense.trip_id == trip_id
    ).first()
    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found"
        )
    return expense


@router.get("/{trip_id}/expenses", response_model=ExpenseListResponse)
async def get_trip_expenses(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the trip's expenses, newest first, with their total."""
    check_trip_access(trip_id, current_user, db)
    expenses = db.query(TripExpense).filter(
        TripExpense.trip_id == trip_id
    ).order_by(TripExpense.expense_date.desc(), TripExpense.id.desc()).all()

    return ExpenseListResponse(
        expenses=expenses,
        total_expenses=sum((e.amount for e in expenses), Decimal(0)),
        count=len(expenses)
    )


@router.post("/{trip_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_expense(
    trip_id: int,
    expense_data: ExpenseCreate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Add an expense to the trip."""
    check_trip_access(trip_id, current_user, db)

    expense = TripExpense(
        trip_id=trip_id,
        category=expense_data.category,
        amount=expense_data.amount,
        description=expense_data.description,
        expense_date=expense_data.expense_date or date.today(),
        recorded_by=current_user.id
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.put("/{trip_id}/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_trip_expense(
    trip_id: int,
    expense_id: int,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Update an expense."""
    check_trip_access(trip_id, current_user, db)
    expense = get_expense_or_404(trip_id, expense_id, db)
    apply_updates(expense, expense_data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/{trip_id}/expenses/{expense_id}")
async def delete_trip_expense(
    trip_id: int,
    expense_id: int,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Delete an expense."""
    check_trip_access(trip_id, current_user, db)
    expense = get_expense_or_404(trip_id, expense_id, db)
    db.delete(expense)
    db.commit()
    return {"message": "Expense deleted successfully"}


# Financials

@router.get("/{trip_id}/statistics", response_model=TripStatisticsResponse)
async def get_trip_statistics(
    trip_id: int,
    strict: bool = False,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Trip totals computed from current records, with sanity checks."""
    trip = check_trip_access(trip_id, current_user, db)

    try:
        _, summary, check = trip_service.get_trip_statistics(trip_id, db, strict=strict or None)
    except ValueError as e:
        raise_for_service_error(e)

    profit_margin = (
        money(summary.net_result / summary.total_buy_in * 100)
        if summary.total_buy_in > 0 else Decimal(0)
    )

    return TripStatisticsResponse(
        trip_id=trip.id,
        trip_name=trip.name,
        currency=settings.CURRENCY,
        summary=FinancialSummaryResponse.model_validate(summary),
        validation=FinancialCheckResponse.model_validate(check),
        profit_margin=profit_margin
    )


@router.get("/{trip_id}/sharing", response_model=TripSharingResponse)
async def get_trip_sharing(
    trip_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Split of the trip net result between agents and company."""
    check_trip_access(trip_id, current_user, db)

    try:
        sharing = trip_service.get_trip_sharing(trip_id, db)
    except ValueError as e:
        raise_for_service_error(e)

    return TripSharingResponse.model_validate(sharing)
