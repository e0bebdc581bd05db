"""
Read-only access to everything the financial calculations need for a trip.

``TripRepository.load_snapshot`` returns an immutable ``TripSnapshot``; the
aggregator and allocator only ever see snapshots, never ORM rows or sessions.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from junket.core.config import settings
from junket.models.trip import Trip, TripCustomer, TripAgent, TripAgentCustomer
from junket.models.expense import TripExpense
from junket.models.rolling_record import RollingRecord
from junket.models.buy_in_out import BuyInOutRecord
from junket.services.financials import summarize_customer_records
from junket.services.sharing import AgentShare

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomerLine:
    """A customer's participation in a trip with figures summed from records."""
    customer_id: int
    customer_name: str
    agent_id: Optional[int]
    rolling_amount: Decimal
    win_loss: Decimal
    buy_in_amount: Decimal
    buy_out_amount: Decimal
    rolling_percentage: Decimal
    last_activity_at: Optional[datetime] = None


@dataclass(frozen=True)
class ExpenseLine:
    expense_id: int
    amount: Decimal
    category: str
    description: Optional[str]
    expense_date: date
    recorded_by: Optional[int]


@dataclass(frozen=True)
class RollingLine:
    record_id: int
    trip_id: Optional[int]
    customer_id: int
    staff_id: Optional[int]
    rolling_amount: Decimal
    win_loss: Decimal
    game_type: str
    recorded_at: datetime


@dataclass(frozen=True)
class CashLine:
    record_id: int
    trip_id: Optional[int]
    customer_id: int
    staff_id: Optional[int]
    transaction_type: str
    amount: Decimal
    recorded_at: datetime


@dataclass(frozen=True)
class AgentCustomerLink:
    agent_id: int
    customer_id: int
    commission_rate: Decimal


@dataclass(frozen=True)
class TripSnapshot:
    """Everything known about a trip at one point in time."""
    trip_id: int
    name: str
    status: str
    start_date: date
    end_date: date
    customers: Tuple[CustomerLine, ...] = ()
    agents: Tuple[AgentShare, ...] = ()
    expenses: Tuple[ExpenseLine, ...] = ()
    rolling_records: Tuple[RollingLine, ...] = ()
    buy_in_out_records: Tuple[CashLine, ...] = ()
    agent_customer_links: Tuple[AgentCustomerLink, ...] = ()
    fetched_at: Optional[datetime] = None

    def customer(self, customer_id: int) -> Optional[CustomerLine]:
        for line in self.customers:
            if line.customer_id == customer_id:
                return line
        return None


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


class TripRepository:
    """Loads trip snapshots from the database session it is given."""

    def __init__(self, db: Session):
        self.db = db

    def get_trip(self, trip_id: int) -> Optional[Trip]:
        return self.db.query(Trip).filter(Trip.id == trip_id).first()

    def rolling_records(
        self,
        customer_ids: List[int],
        trip_id: Optional[int] = None,
        since: Optional[date] = None
    ) -> List[RollingRecord]:
        """Rolling records for the given customers, tagged with the trip or untagged since a date."""
        if not customer_ids:
            return []
        query = self.db.query(RollingRecord).filter(RollingRecord.customer_id.in_(customer_ids))
        query = query.filter(self._trip_scope(RollingRecord, trip_id, since))
        return query.order_by(RollingRecord.recorded_at).all()

    def buy_in_out_records(
        self,
        customer_ids: List[int],
        trip_id: Optional[int] = None,
        since: Optional[date] = None
    ) -> List[BuyInOutRecord]:
        """Buy-in/out records for the given customers, scoped like rolling_records."""
        if not customer_ids:
            return []
        query = self.db.query(BuyInOutRecord).filter(BuyInOutRecord.customer_id.in_(customer_ids))
        query = query.filter(self._trip_scope(BuyInOutRecord, trip_id, since))
        return query.order_by(BuyInOutRecord.recorded_at).all()

    @staticmethod
    def _trip_scope(model, trip_id: Optional[int], since: Optional[date]):
        untagged = model.trip_id.is_(None)
        if since is not None:
            untagged = and_(untagged, model.recorded_at >= datetime.combine(since, datetime.min.time()))
        if trip_id is None:
            return untagged
        return or_(model.trip_id == trip_id, untagged)

    def load_snapshot(self, trip_id: int) -> Optional[TripSnapshot]:
        """Load an immutable snapshot of a trip, or None when the trip does not exist."""
        trip = self.get_trip(trip_id)
        if not trip:
            return None

        trip_customers = self.db.query(TripCustomer).options(
            joinedload(TripCustomer.customer)
        ).filter(TripCustomer.trip_id == trip_id).order_by(TripCustomer.id).all()
        customer_ids = [tc.customer_id for tc in trip_customers]

        rolling = self.rolling_records(customer_ids, trip_id, trip.start_date)
        cash = self.buy_in_out_records(customer_ids, trip_id, trip.start_date)

        customers = []
        for tc in trip_customers:
            totals = summarize_customer_records(
                tc.customer_id, rolling, cash, trip_id=trip_id, since=trip.start_date
            )
            customer = tc.customer
            customers.append(CustomerLine(
                customer_id=tc.customer_id,
                customer_name=customer.name if customer else "",
                agent_id=customer.agent_id if customer else None,
                rolling_amount=totals.rolling_amount,
                win_loss=totals.win_loss,
                buy_in_amount=totals.buy_in_amount,
                buy_out_amount=totals.buy_out_amount,
                rolling_percentage=Decimal(_first_set(
                    tc.rolling_percentage,
                    customer.rolling_percentage if customer else None,
                    settings.DEFAULT_ROLLING_PERCENTAGE
                )),
                last_activity_at=totals.last_activity_at,
            ))

        trip_agents = self.db.query(TripAgent).options(
            joinedload(TripAgent.agent)
        ).filter(TripAgent.trip_id == trip_id).order_by(TripAgent.id).all()
        agents = tuple(
            AgentShare(
                agent_id=ta.agent_id,
                share_percentage=Decimal(ta.share_percentage or 0),
                agent_name=ta.agent.name if ta.agent else None,
            )
            for ta in trip_agents
        )

        expenses = self.db.query(TripExpense).filter(
            TripExpense.trip_id == trip_id
        ).order_by(TripExpense.expense_date, TripExpense.id).all()

        links = self.db.query(TripAgentCustomer).filter(
            TripAgentCustomer.trip_id == trip_id
        ).order_by(TripAgentCustomer.id).all()

        logger.debug(
            f"Loaded trip {trip_id}: {len(customers)} customers, {len(agents)} agents, "
            f"{len(expenses)} expenses, {len(rolling)} rolling and {len(cash)} cash records"
        )

        return TripSnapshot(
            trip_id=trip.id,
            name=trip.name,
            status=_enum_value(trip.status),
            start_date=trip.start_date,
            end_date=trip.end_date,
            customers=tuple(customers),
            agents=agents,
            expenses=tuple(
                ExpenseLine(
                    expense_id=e.id,
                    amount=e.amount,
                    category=_enum_value(e.category),
                    description=e.description,
                    expense_date=e.expense_date,
                    recorded_by=e.recorded_by,
                )
                for e in expenses
            ),
            rolling_records=tuple(
                RollingLine(
                    record_id=r.id,
                    trip_id=r.trip_id,
                    customer_id=r.customer_id,
                    staff_id=r.staff_id,
                    rolling_amount=r.rolling_amount,
                    win_loss=r.win_loss,
                    game_type=r.game_type,
                    recorded_at=r.recorded_at,
                )
                for r in rolling
            ),
            buy_in_out_records=tuple(
                CashLine(
                    record_id=r.id,
                    trip_id=r.trip_id,
                    customer_id=r.customer_id,
                    staff_id=r.staff_id,
                    transaction_type=_enum_value(r.transaction_type),
                    amount=r.amount,
                    recorded_at=r.recorded_at,
                )
                for r in cash
            ),
            agent_customer_links=tuple(
                AgentCustomerLink(
                    agent_id=link.agent_id,
                    customer_id=link.customer_id,
                    commission_rate=Decimal(link.commission_rate or 0),
                )
                for link in links
            ),
            fetched_at=datetime.utcnow(),
        )
