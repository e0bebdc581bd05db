"""
Agent model for junket agents who bring customers in.
"""
from sqlalchemy import Column, String, Numeric, Enum as SQLEnum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from junket.db.base import BaseModel
import enum


class AgentStatus(str, enum.Enum):
    """Agent status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class Agent(BaseModel):
    """Agent model. Commission rate is the default used for new trip links."""
    __tablename__ = "agents"

    name = Column(String(200), nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(SQLEnum(AgentStatus), default=AgentStatus.ACTIVE, nullable=False)
    commission_rate = Column(Numeric(5, 2), nullable=False, default=0)  # Percentage, 0-100
    parent_agent_id = Column(Integer, ForeignKey("agents.id"), nullable=True, index=True)  # Upline agent

    # Relationships
    customers = relationship("Customer", back_populates="agent")
    trips = relationship("TripAgent", back_populates="agent", cascade="all, delete-orphan")
    customer_links = relationship("TripAgentCustomer", back_populates="agent", cascade="all, delete-orphan")
    parent = relationship("Agent", remote_side="Agent.id", back_populates="children")
    children = relationship("Agent", back_populates="parent")
