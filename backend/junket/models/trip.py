"""
Trip model for junket trips and their participants.
"""
from sqlalchemy import Column, String, Date, Numeric, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
import enum


class TripStatus(str, enum.Enum):
    """Trip status enumeration."""
    PLANNED = "planned"
    ONGOING = "ongoing"
    COMPLETED = "completed"


class Trip(BaseModel):
    """Trip model. Financial totals are computed on read, not cached here."""
    __tablename__ = "trips"

    name = Column(String(200), nullable=False)
    destination = Column(String(200), nullable=True)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=False, index=True)
    status = Column(SQLEnum(TripStatus), default=TripStatus.PLANNED, nullable=False)
    total_budget = Column(Numeric(15, 2), nullable=False, default=0)

    # Relationships
    customers = relationship("TripCustomer", back_populates="trip", cascade="all, delete-orphan")
    agents = relationship("TripAgent", back_populates="trip", cascade="all, delete-orphan")
    agent_customers = relationship("TripAgentCustomer", back_populates="trip", cascade="all, delete-orphan")
    expenses = relationship("TripExpense", back_populates="trip", cascade="all, delete-orphan")
    staff = relationship("TripStaff", back_populates="trip", cascade="all, delete-orphan")


class TripCustomer(BaseModel):
    """Junction table for Trip and Customer."""
    __tablename__ = "trip_customers"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    rolling_percentage = Column(Numeric(5, 2), nullable=True)  # Per-trip override of the customer default

    # Relationships
    trip = relationship("Trip", back_populates="customers")
    customer = relationship("Customer", back_populates="trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'customer_id', name='uq_trip_customer'),
    )


class TripAgent(BaseModel):
    """Junction table for Trip and Agent carrying the agent's profit share."""
    __tablename__ = "trip_agents"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)
    share_percentage = Column(Numeric(5, 2), nullable=False, default=0)  # Share of the trip net result, percent

    # Relationships
    trip = relationship("Trip", back_populates="agents")
    agent = relationship("Agent", back_populates="trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'agent_id', name='uq_trip_agent'),
    )


class TripAgentCustomer(BaseModel):
    """Commission rate an agent earns on one customer within one trip."""
    __tablename__ = "trip_agent_customers"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    agent_id = Column(Integer, ForeignKey("agents.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)

    # Relationships
    trip = relationship("Trip", back_populates="agent_customers")
    agent = relationship("Agent", back_populates="customer_links")
    customer = relationship("Customer", back_populates="agent_links")

    __table_args__ = (
        UniqueConstraint('trip_id', 'agent_id', 'customer_id', name='uq_trip_agent_customer'),
    )


class TripStaff(BaseModel):
    """Staff member assigned to work a trip."""
    __tablename__ = "trip_staff"

    trip_id = Column(Integer, ForeignKey("trips.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id"), nullable=False, index=True)

    # Relationships
    trip = relationship("Trip", back_populates="staff")
    staff = relationship("Staff", back_populates="trips")

    __table_args__ = (
        UniqueConstraint('trip_id', 'staff_id', name='uq_trip_staff'),
    )
