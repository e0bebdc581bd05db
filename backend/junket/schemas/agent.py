"""
Pydantic schemas for Agent entity.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from junket.models.agent import AgentStatus


class AgentBase(BaseModel):
    """Base agent schema."""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    commission_rate: Decimal = Field(default=Decimal(0), ge=0, le=100)  # Default commission, percent


class AgentCreate(AgentBase):
    """Schema for agent creation."""
    parent_agent_id: Optional[int] = None


class AgentUpdate(BaseModel):
    """Schema for agent update."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[AgentStatus] = None
    commission_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)

    @field_validator("name", "status", "commission_rate")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class AgentResponse(AgentBase):
    """Schema for agent response."""
    id: int
    status: AgentStatus
    parent_agent_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AgentParentUpdate(BaseModel):
    """Schema for moving an agent under another agent. Null makes it a root."""
    parent_agent_id: Optional[int] = None


class AgentHierarchyNode(BaseModel):
    """An agent with its downline."""
    id: int
    name: str
    status: AgentStatus
    parent_agent_id: Optional[int] = None
    children: List["AgentHierarchyNode"] = []


class AgentHierarchyResponse(BaseModel):
    """All agents arranged as a forest of upline trees."""
    agents: List[AgentHierarchyNode] = []
    total_agents: int = 0


class AgentChildrenResponse(BaseModel):
    """An agent and its direct downline."""
    parent: AgentResponse
    children: List[AgentResponse] = []
