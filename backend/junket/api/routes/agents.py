"""
Agent management routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from junket.db.session import get_db
from junket.core.utils import apply_updates
from junket.models.user import User
from junket.models.agent import Agent
from junket.models.customer import Customer
from junket.models.trip import Trip, TripAgent
from junket.schemas.agent import (
    AgentCreate, AgentUpdate, AgentResponse, AgentParentUpdate, AgentHierarchyResponse, AgentChildrenResponse
)
from junket.schemas.customer import CustomerResponse
from junket.schemas.trip import TripResponse
from junket.services import agent_service
from junket.api.dependencies import get_current_user, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agents", tags=["agents"])


def get_agent_or_404(agent_id: int, db: Session) -> Agent:
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Agent not found"
        )
    return agent


@router.get("", response_model=List[AgentResponse])
async def list_agents(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List all agents."""
    return db.query(Agent).order_by(Agent.name).all()


@router.post("", response_model=AgentResponse, status_code=status.HTTP_201_CREATED)
async def create_agent(
    agent_data: AgentCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Create a new agent."""
    # Check the upline exists
    if agent_data.parent_agent_id is not None:
        get_agent_or_404(agent_data.parent_agent_id, db)

    # Create new agent
    agent = Agent(**agent_data.model_dump())
    db.add(agent)
    db.commit()
    db.refresh(agent)
    logger.info(f"Agent {agent.id} '{agent.name}' created")
    return agent


@router.get("/hierarchy", response_model=AgentHierarchyResponse)
async def get_agent_hierarchy(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All agents as upline trees."""
    agents = db.query(Agent).all()
    return AgentHierarchyResponse(
        agents=agent_service.build_agent_hierarchy(agents),
        total_agents=len(agents)
    )


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get agent details."""
    return get_agent_or_404(agent_id, db)


@router.put("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: int,
    agent_data: AgentUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Update an agent."""
    agent = get_agent_or_404(agent_id, db)
    apply_updates(agent, agent_data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(agent)
    return agent


@router.delete("/{agent_id}")
async def delete_agent(
    agent_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """
    Delete an agent with its trip shares and commission links.

    Refused while customers still belong to the agent. Downline agents move up
    to the deleted agent's parent and linked agent accounts are deactivated.
    """
    agent = get_agent_or_404(agent_id, db)

    # Check if agent still has customers
    if db.query(Customer).filter(Customer.agent_id == agent_id).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Agent still has customers assigned"
        )

    # Move downline agents up one level
    for child in list(agent.children):
        child.parent = agent.parent

    # Detach login accounts tied to this agent
    for user in db.query(User).filter(User.agent_id == agent_id).all():
        user.agent_id = None
        user.is_active = False

    db.delete(agent)
    db.commit()
    logger.info(f"Agent {agent_id} deleted")
    return {"message": "Agent deleted successfully"}


@router.get("/{agent_id}/customers", response_model=List[CustomerResponse])
async def get_agent_customers(
    agent_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the customers an agent brought in."""
    get_agent_or_404(agent_id, db)
    return db.query(Customer).filter(Customer.agent_id == agent_id).order_by(Customer.name).all()


@router.get("/{agent_id}/trips", response_model=List[TripResponse])
async def get_agent_trips(
    agent_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the trips an agent takes part in."""
    get_agent_or_404(agent_id, db)
    return db.query(Trip).join(TripAgent).filter(
        TripAgent.agent_id == agent_id
    ).order_by(Trip.start_date.desc()).all()


@router.get("/{agent_id}/children", response_model=AgentChildrenResponse)
async def get_agent_children(
    agent_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """An agent and its direct downline."""
    agent = get_agent_or_404(agent_id, db)
    children = db.query(Agent).filter(Agent.parent_agent_id == agent_id).order_by(Agent.name).all()
    return AgentChildrenResponse(
        parent=AgentResponse.model_validate(agent),
        children=[AgentResponse.model_validate(child) for child in children]
    )


@router.put("/{agent_id}/parent", response_model=AgentResponse)
async def update_agent_parent(
    agent_id: int,
    data: AgentParentUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Move an agent under another agent, or to the top level with a null parent."""
    try:
        return agent_service.set_agent_parent(agent_id, data.parent_agent_id, db)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
