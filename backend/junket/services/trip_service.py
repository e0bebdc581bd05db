"""
Trip service for trip financial views and share edits.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from junket.core.config import settings
from junket.models.agent import Agent
from junket.models.customer import Customer
from junket.models.trip import Trip, TripAgent, TripAgentCustomer, TripCustomer, TripStatus
from junket.services.financials import (
    check_trip_financials, compute_customer_net_position, compute_trip_financials, rolling_commission_for
)
from junket.services.sharing import (
    AgentProfit, AgentShare, TripSharing, apply_share_update, compute_agent_profits,
    compute_trip_sharing, validate_share_percentage
)
from junket.services.snapshot_refresher import snapshot_refresher
from junket.services.trip_repository import TripRepository, TripSnapshot

logger = logging.getLogger(__name__)


class TripNotFoundError(ValueError):
    """Raised when a trip id does not exist."""


def derive_trip_status(start_date: date, end_date: date, today: Optional[date] = None) -> TripStatus:
    """Status implied by the trip dates."""
    today = today or date.today()
    if start_date > today:
        return TripStatus.PLANNED
    if end_date < today:
        return TripStatus.COMPLETED
    return TripStatus.ONGOING


def load_trip_snapshot(trip_id: int, db: Session) -> TripSnapshot:
    """Fresh snapshot of a trip through the shared refresher."""
    snapshot = snapshot_refresher.refresh(trip_id, TripRepository(db).load_snapshot)
    if snapshot is None:
        raise TripNotFoundError(f"Trip {trip_id} not found")
    return snapshot


def get_trip_statistics(trip_id: int, db: Session, strict: Optional[bool] = None):
    """Financial summary of a trip plus the sanity check report."""
    snapshot = load_trip_snapshot(trip_id, db)
    strict = (not settings.LENIENT_NUMBERS) if strict is None else strict
    summary = compute_trip_financials(snapshot, strict=strict)
    check = check_trip_financials(summary)
    if check.errors:
        logger.warning(f"Trip {trip_id} financials failed checks: {check.errors}")
    return snapshot, summary, check


def get_trip_sharing(trip_id: int, db: Session) -> TripSharing:
    snapshot = load_trip_snapshot(trip_id, db)
    summary = compute_trip_financials(snapshot, strict=not settings.LENIENT_NUMBERS)
    return compute_trip_sharing(summary, snapshot.agents)


def _current_shares(trip_id: int, db: Session) -> List[AgentShare]:
    rows = db.query(TripAgent).filter(TripAgent.trip_id == trip_id).order_by(TripAgent.id).all()
    return [AgentShare(agent_id=row.agent_id, share_percentage=Decimal(row.share_percentage or 0)) for row in rows]


def add_agent_to_trip(trip_id: int, agent_id: int, share_percentage, db: Session) -> TripAgent:
    """
    Attach an agent to a trip with a share of its net result.

    Raises ShareAllocationError when the share is out of range or would push
    the trip's total agent share above 100, and ValueError when the agent is
    already on the trip.
    """
    existing = db.query(TripAgent).filter(
        TripAgent.trip_id == trip_id,
        TripAgent.agent_id == agent_id
    ).first()
    if existing:
        raise ValueError("Agent is already added to this trip")

    shares = apply_share_update(_current_shares(trip_id, db), agent_id, share_percentage)
    new_share = next(share for share in shares if share.agent_id == agent_id)

    trip_agent = TripAgent(trip_id=trip_id, agent_id=agent_id, share_percentage=new_share.share_percentage)
    db.add(trip_agent)
    db.commit()
    db.refresh(trip_agent)
    logger.info(f"Agent {agent_id} added to trip {trip_id} with {new_share.share_percentage}% share")
    return trip_agent


def update_agent_share(trip_id: int, agent_id: int, share_percentage, db: Session) -> TripAgent:
    """Change an agent's share. The stored share set is left unchanged on rejection."""
    trip_agent = db.query(TripAgent).filter(
        TripAgent.trip_id == trip_id,
        TripAgent.agent_id == agent_id
    ).first()
    if not trip_agent:
        raise LookupError("Agent is not on this trip")

    shares = apply_share_update(_current_shares(trip_id, db), agent_id, share_percentage)
    trip_agent.share_percentage = next(s.share_percentage for s in shares if s.agent_id == agent_id)
    db.commit()
    db.refresh(trip_agent)
    return trip_agent


def remove_agent_from_trip(trip_id: int, agent_id: int, db: Session) -> None:
    trip_agent = db.query(TripAgent).filter(
        TripAgent.trip_id == trip_id,
        TripAgent.agent_id == agent_id
    ).first()
    if not trip_agent:
        raise LookupError("Agent is not on this trip")
    db.delete(trip_agent)
    db.commit()


def ensure_agent_customer_links(trip_id: int, db: Session) -> int:
    """
    Create missing agent/customer commission links for the trip's customers.

    Each customer with an owning agent gets a link at the agent's default
    commission rate. Returns the number of links created.
    """
    trip_customers = db.query(TripCustomer).filter(TripCustomer.trip_id == trip_id).all()
    created = 0
    for tc in trip_customers:
        customer = db.query(Customer).filter(Customer.id == tc.customer_id).first()
        if not customer or not customer.agent_id:
            continue

        existing = db.query(TripAgentCustomer).filter(
            TripAgentCustomer.trip_id == trip_id,
            TripAgentCustomer.agent_id == customer.agent_id,
            TripAgentCustomer.customer_id == customer.id
        ).first()
        if existing:
            continue

        agent = db.query(Agent).filter(Agent.id == customer.agent_id).first()
        db.add(TripAgentCustomer(
            trip_id=trip_id,
            agent_id=customer.agent_id,
            customer_id=customer.id,
            commission_rate=agent.commission_rate if agent and agent.commission_rate is not None else 0
        ))
        created += 1

    if created:
        db.commit()
        logger.info(f"Created {created} agent-customer links for trip {trip_id}")
    return created


def get_agent_profits(trip_id: int, db: Session) -> List[AgentProfit]:
    """Per-agent commission earned from their own customers on the trip."""
    if not db.query(Trip).filter(Trip.id == trip_id).first():
        raise TripNotFoundError(f"Trip {trip_id} not found")
    ensure_agent_customer_links(trip_id, db)
    snapshot = load_trip_snapshot(trip_id, db)

    agent_ids = {link.agent_id for link in snapshot.agent_customer_links}
    agent_names = {
        agent.id: agent.name
        for agent in db.query(Agent).filter(Agent.id.in_(agent_ids)).all()
    } if agent_ids else {}

    return compute_agent_profits(
        snapshot.agent_customer_links,
        {line.customer_id: line for line in snapshot.customers},
        agent_names=agent_names,
        customer_names={line.customer_id: line.customer_name for line in snapshot.customers},
    )


def update_agent_commission(trip_id: int, agent_id: int, customer_id: int, commission_rate, db: Session) -> TripAgentCustomer:
    """Set the commission rate an agent earns on one customer within a trip."""
    if not db.query(Agent).filter(Agent.id == agent_id).first():
        raise LookupError("Agent not found")

    rate = validate_share_percentage(commission_rate) if commission_rate != 0 else Decimal(0)
    link = db.query(TripAgentCustomer).filter(
        TripAgentCustomer.trip_id == trip_id,
        TripAgentCustomer.agent_id == agent_id,
        TripAgentCustomer.customer_id == customer_id
    ).first()
    if not link:
        link = TripAgentCustomer(trip_id=trip_id, agent_id=agent_id, customer_id=customer_id)
        db.add(link)
    link.commission_rate = rate
    db.commit()
    db.refresh(link)
    return link



def get_customer_trip_stats(trip_id: int, customer_id: int, db: Session, strict: Optional[bool] = None):
    """One customer's line on the trip with their commission and net position."""
    snapshot = load_trip_snapshot(trip_id, db)
    line = snapshot.customer(customer_id)
    if line is None:
        raise LookupError("Customer is not on this trip")

    strict = (not settings.LENIENT_NUMBERS) if strict is None else strict
    commission = rolling_commission_for(line.rolling_amount, line.rolling_percentage, strict)
    position = compute_customer_net_position(
        line.win_loss, line.buy_in_amount, line.buy_out_amount, commission, strict
    )
    return line, commission, position
