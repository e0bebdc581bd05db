"""
Customer management routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from junket.db.session import get_db
from junket.core.utils import apply_updates
from junket.models.user import User, UserRole
from junket.models.agent import Agent
from junket.models.customer import Customer
from junket.models.rolling_record import RollingRecord
from junket.models.buy_in_out import BuyInOutRecord
from junket.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerLifetimeTotals
from junket.services.financials import (
    compute_customer_net_position, rolling_commission_for, summarize_customer_records
)
from junket.api.dependencies import get_current_user, require_staff_or_admin, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])


def get_customer_or_404(customer_id: int, db: Session) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Customer not found"
        )
    return customer


def check_agent_exists(agent_id: Optional[int], db: Session) -> None:
    if agent_id is not None and not db.query(Agent).filter(Agent.id == agent_id).first():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agent not found"
        )


@router.get("", response_model=List[CustomerResponse])
async def list_customers(
    agent_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List customers. Agents only see their own customers."""
    query = db.query(Customer)
    if current_user.role == UserRole.AGENT:
        query = query.filter(Customer.agent_id == current_user.agent_id)
    elif agent_id is not None:
        query = query.filter(Customer.agent_id == agent_id)
    return query.order_by(Customer.name).all()


@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Create a customer."""
    # Check the owning agent exists
    check_agent_exists(customer_data.agent_id, db)

    # Create new customer
    customer = Customer(**customer_data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    logger.info(f"Customer {customer.id} '{customer.name}' created")
    return customer


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get customer details."""
    customer = get_customer_or_404(customer_id, db)
    if current_user.role == UserRole.AGENT and customer.agent_id != current_user.agent_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this customer"
        )
    return customer


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(
    customer_id: int,
    customer_data: CustomerUpdate,
    current_user: User = Depends(require_staff_or_admin),
    db: Session = Depends(get_db)
):
    """Update a customer."""
    customer = get_customer_or_404(customer_id, db)
    updates = customer_data.model_dump(exclude_unset=True)
    # Check the new owning agent exists
    if "agent_id" in updates:
        check_agent_exists(updates["agent_id"], db)
    apply_updates(customer, updates)
    db.commit()
    db.refresh(customer)
    return customer


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a customer. Customers with recorded sessions are deactivated instead."""
    customer = get_customer_or_404(customer_id, db)

    # Check if customer has recorded activity
    has_records = (
        db.query(RollingRecord).filter(RollingRecord.customer_id == customer_id).first()
        or db.query(BuyInOutRecord).filter(BuyInOutRecord.customer_id == customer_id).first()
    )
    if has_records:
        customer.is_active = False
        db.commit()
        return {"message": "Customer has recorded activity and was deactivated"}

    db.delete(customer)
    db.commit()
    return {"message": "Customer deleted successfully"}


@router.get("/{customer_id}/totals", response_model=CustomerLifetimeTotals)
async def get_customer_totals(
    customer_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Lifetime figures summed across all of a customer's trips."""
    customer = await get_customer(customer_id, current_user, db)

    rolling = db.query(RollingRecord).filter(RollingRecord.customer_id == customer_id).all()
    cash = db.query(BuyInOutRecord).filter(BuyInOutRecord.customer_id == customer_id).all()
    totals = summarize_customer_records(customer_id, rolling, cash)

    commission = rolling_commission_for(totals.rolling_amount, customer.rolling_percentage)
    position = compute_customer_net_position(
        totals.win_loss, totals.buy_in_amount, totals.buy_out_amount, commission
    )

    return CustomerLifetimeTotals(
        customer_id=customer_id,
        total_rolling=totals.rolling_amount,
        total_win_loss=totals.win_loss,
        total_buy_in=totals.buy_in_amount,
        total_buy_out=totals.buy_out_amount,
        net_cash_flow=position.net_cash_flow,
        net_gaming_result=position.net_gaming_result,
        total_net_position=position.total_net_position
    )
