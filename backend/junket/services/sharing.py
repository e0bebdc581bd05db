"""
Agent profit sharing.

A trip's net result is split between the agents attached to the trip, each
taking its own share percentage, and the company, which keeps whatever
percentage is left. Shares are always recomputed from the current net result.

The allocator itself trusts its input. Percentages are validated at the edit
boundary by ``validate_share_percentage`` and ``apply_share_update``.
"""
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from junket.services.financials import (
    FinancialSummary, ZERO, HUNDRED, read_field, safe_number, to_number, to_percentage
)

logger = logging.getLogger(__name__)


class ShareAllocationError(ValueError):
    """Raised when a share edit would break the percentage rules."""


@dataclass(frozen=True)
class AgentShare:
    """An agent's share setting on a trip."""
    agent_id: Any
    share_percentage: Decimal
    agent_name: Optional[str] = None


@dataclass(frozen=True)
class ShareBreakdown:
    agent_id: Any
    share_percentage: Decimal
    calculated_share: Decimal
    agent_name: Optional[str] = None


@dataclass(frozen=True)
class TripSharing:
    """A financial summary together with how its net result is split."""
    summary: FinancialSummary
    total_agent_share: Decimal
    company_share: Decimal
    agent_share_percentage: Decimal
    company_share_percentage: Decimal
    agent_breakdown: Tuple[ShareBreakdown, ...] = ()

    @property
    def net_result(self) -> Decimal:
        return self.summary.net_result


@dataclass(frozen=True)
class CustomerCommission:
    customer_id: Any
    commission_rate: Decimal
    rolling_amount: Decimal
    net_result: Decimal
    commission_earned: Decimal
    agent_commission: Decimal
    customer_name: Optional[str] = None
    buy_in_amount: Decimal = ZERO
    buy_out_amount: Decimal = ZERO


@dataclass
class AgentProfit:
    """Commission an agent earns from their own customers within one trip."""
    agent_id: Any
    agent_name: Optional[str] = None
    customers: List[CustomerCommission] = field(default_factory=list)
    total_commission: Decimal = ZERO
    total_agent_commission: Decimal = ZERO
    total_customer_net: Decimal = ZERO


def _percentage_of(share: Any) -> Decimal:
    return safe_number(read_field(share, "share_percentage"))


def total_share_percentage(agents: Optional[Iterable]) -> Decimal:
    return sum((_percentage_of(agent) for agent in (agents or []) if agent is not None), ZERO)


def compute_agent_shares(net_result: Any, agents: Optional[Iterable]) -> List[ShareBreakdown]:
    """Each agent receives net_result * share_percentage / 100."""
    result = safe_number(net_result)
    breakdown = []
    for agent in agents or []:
        if agent is None:
            continue
        percentage = _percentage_of(agent)
        breakdown.append(ShareBreakdown(
            agent_id=read_field(agent, "agent_id"),
            agent_name=read_field(agent, "agent_name"),
            share_percentage=percentage,
            calculated_share=result * percentage / HUNDRED,
        ))
    return breakdown


def compute_company_share(net_result: Any, agents: Optional[Iterable]) -> Decimal:
    """The company keeps net_result * (100 - sum of agent percentages) / 100."""
    return safe_number(net_result) * (HUNDRED - total_share_percentage(agents)) / HUNDRED


def compute_trip_sharing(summary: FinancialSummary, agents: Optional[Iterable]) -> TripSharing:
    agents = [agent for agent in (agents or []) if agent is not None]
    breakdown = compute_agent_shares(summary.net_result, agents)
    agent_percentage = total_share_percentage(agents)
    return TripSharing(
        summary=summary,
        total_agent_share=sum((share.calculated_share for share in breakdown), ZERO),
        company_share=compute_company_share(summary.net_result, agents),
        agent_share_percentage=agent_percentage,
        company_share_percentage=HUNDRED - agent_percentage,
        agent_breakdown=tuple(breakdown),
    )


def validate_share_percentage(value: Any) -> Decimal:
    """A single agent share must be greater than 0 and at most 100."""
    percentage = to_number(value, "share_percentage", strict=True)
    if percentage <= 0 or percentage > HUNDRED:
        raise ShareAllocationError(
            f"Share percentage must be greater than 0 and at most 100, got {value}"
        )
    return percentage


def apply_share_update(
    agents: Sequence[AgentShare],
    agent_id: Any,
    percentage: Any,
    agent_name: Optional[str] = None
) -> List[AgentShare]:
    """
    Return a new share set with ``agent_id`` set to ``percentage``.

    Adds the agent when it is not in the set yet. Raises ShareAllocationError,
    leaving ``agents`` untouched, when the percentage is out of range or the
    aggregate across agents would exceed 100.
    """
    new_percentage = validate_share_percentage(percentage)

    others = [share for share in agents if share.agent_id != agent_id]
    allocated = sum((share.share_percentage for share in others), ZERO)
    if allocated + new_percentage > HUNDRED:
        logger.info(f"Rejected share {new_percentage}% for agent {agent_id}: {allocated}% already allocated")
        raise ShareAllocationError(
            f"Total agent share would be {allocated + new_percentage}%, "
            f"only {HUNDRED - allocated}% is unallocated"
        )

    updated = []
    found = False
    for share in agents:
        if share.agent_id == agent_id:
            updated.append(replace(share, share_percentage=new_percentage))
            found = True
        else:
            updated.append(share)
    if not found:
        updated.append(AgentShare(agent_id=agent_id, share_percentage=new_percentage, agent_name=agent_name))
    return updated


def remove_agent_share(agents: Sequence[AgentShare], agent_id: Any) -> List[AgentShare]:
    """Dropping an agent is always allowed, including the last one."""
    return [share for share in agents if share.agent_id != agent_id]


def compute_agent_profits(
    links: Iterable,
    customer_totals: Dict[Any, Any],
    agent_names: Optional[Dict[Any, str]] = None,
    customer_names: Optional[Dict[Any, str]] = None,
    strict: bool = False
) -> List[AgentProfit]:
    """
    Per-customer commission breakdown grouped by agent.

    ``links`` carry agent_id, customer_id and commission_rate.
    ``customer_totals`` maps customer id to that customer's trip figures
    (rolling_amount, win_loss, buy_in_amount, buy_out_amount). For each link:

    - commission_earned = rolling_amount * commission_rate / 100
    - agent_commission = net_result * commission_rate / 100, where net_result
      is the customer's win/loss; it is negative when the customer lost.
    """
    agent_names = agent_names or {}
    customer_names = customer_names or {}
    profits: Dict[Any, AgentProfit] = {}

    for link in links or []:
        agent_id = read_field(link, "agent_id")
        customer_id = read_field(link, "customer_id")
        rate = to_percentage(read_field(link, "commission_rate"), "commission_rate", strict)
        totals = customer_totals.get(customer_id)

        rolling = to_number(read_field(totals, "rolling_amount"), "rolling_amount", strict) if totals else ZERO
        net_result = to_number(read_field(totals, "win_loss"), "win_loss", strict) if totals else ZERO

        line = CustomerCommission(
            customer_id=customer_id,
            customer_name=customer_names.get(customer_id),
            commission_rate=rate,
            rolling_amount=rolling,
            net_result=net_result,
            commission_earned=rolling * rate / HUNDRED,
            agent_commission=net_result * rate / HUNDRED,
            buy_in_amount=safe_number(read_field(totals, "buy_in_amount")),
            buy_out_amount=safe_number(read_field(totals, "buy_out_amount")),
        )

        profit = profits.get(agent_id)
        if profit is None:
            profit = profits[agent_id] = AgentProfit(agent_id=agent_id, agent_name=agent_names.get(agent_id))
        profit.customers.append(line)
        profit.total_commission += line.commission_earned
        profit.total_agent_commission += line.agent_commission
        profit.total_customer_net += line.net_result

    return list(profits.values())
