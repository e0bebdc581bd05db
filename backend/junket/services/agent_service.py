"""
Agent hierarchy service.

Agents may sit under an upline agent. The hierarchy is a forest: an agent
without a parent, or whose parent no longer exists, is a root.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from junket.models.agent import Agent

logger = logging.getLogger(__name__)


def build_agent_hierarchy(agents: Iterable[Any]) -> List[Dict[str, Any]]:
    """Arrange agents into nested nodes, siblings ordered by name."""
    agents = sorted(agents, key=lambda a: (a.name or "", a.id))
    known_ids = {agent.id for agent in agents}

    children_of: Dict[Optional[int], List[Any]] = {}
    for agent in agents:
        parent_id = agent.parent_agent_id if agent.parent_agent_id in known_ids else None
        children_of.setdefault(parent_id, []).append(agent)

    def _node(agent) -> Dict[str, Any]:
        return {
            "id": agent.id,
            "name": agent.name,
            "status": agent.status,
            "parent_agent_id": agent.parent_agent_id,
            "children": [_node(child) for child in children_of.get(agent.id, [])],
        }

    return [_node(agent) for agent in children_of.get(None, [])]


def set_agent_parent(agent_id: int, parent_agent_id: Optional[int], db: Session) -> Agent:
    """
    Move an agent under a new upline, or make it a root with None.

    Raises LookupError when the agent does not exist, and ValueError when the
    parent is missing, is the agent itself, or sits in the agent's own downline.
    """
    agent = db.query(Agent).filter(Agent.id == agent_id).first()
    if not agent:
        raise LookupError("Agent not found")

    if parent_agent_id is not None:
        if parent_agent_id == agent_id:
            raise ValueError("Agent cannot be its own parent")

        parent = db.query(Agent).filter(Agent.id == parent_agent_id).first()
        if not parent:
            raise ValueError("Parent agent not found")

        # Walk up from the new parent; meeting the agent means a cycle
        seen = set()
        ancestor = parent
        while ancestor is not None and ancestor.id not in seen:
            if ancestor.id == agent_id:
                raise ValueError("Parent agent is in this agent's downline")
            seen.add(ancestor.id)
            ancestor = ancestor.parent

    agent.parent_agent_id = parent_agent_id
    db.commit()
    db.refresh(agent)
    logger.info(f"Agent {agent_id} parent set to {parent_agent_id}")
    return agent
