"""
Tests for agent profit sharing.
"""
from decimal import Decimal

import pytest

from junket.services.financials import FinancialSummary
from junket.services.sharing import (
    AgentShare, ShareAllocationError, apply_share_update, compute_agent_profits,
    compute_company_share, compute_trip_sharing, remove_agent_share, validate_share_percentage
)


def shares(*percentages):
    return [AgentShare(agent_id=i + 1, share_percentage=Decimal(p)) for i, p in enumerate(percentages)]


def test_two_agents_split():
    sharing = compute_trip_sharing(FinancialSummary(net_result=Decimal(1600)), shares(30, 20))

    assert [s.calculated_share for s in sharing.agent_breakdown] == [480, 320]
    assert sharing.total_agent_share == 800
    assert sharing.company_share == 800
    assert sharing.company_share_percentage == 50
    assert sharing.total_agent_share + sharing.company_share == sharing.net_result



@pytest.mark.parametrize("net_result, percentages", [
    (Decimal("1600"), ["33.33", "33.33", "33.34"]),
    (Decimal("-987.65"), ["33.33", "33.33", "33.34"]),
    (Decimal("-1000"), ["25", "10"]),
    (Decimal("1234.56"), ["12.5"]),
    (Decimal("1000.01"), ["33.33", "33.33", "33.33"]),
    (Decimal("-0.03"), ["14.29", "14.29", "14.29", "14.29", "14.29", "14.29", "14.26"]),
])
def test_agent_and_company_shares_add_up_to_net_result(net_result, percentages):
    sharing = compute_trip_sharing(FinancialSummary(net_result=net_result), shares(*percentages))

    assert sharing.total_agent_share + sharing.company_share == net_result
    assert sum(s.calculated_share for s in sharing.agent_breakdown) == sharing.total_agent_share
    assert sharing.agent_share_percentage + sharing.company_share_percentage == 100

def test_no_agents_company_keeps_everything():
    sharing = compute_trip_sharing(FinancialSummary(net_result=Decimal(1600)), [])

    assert sharing.total_agent_share == 0
    assert sharing.company_share == 1600
    assert sharing.agent_breakdown == ()


def test_loss_is_shared_too():
    sharing = compute_trip_sharing(FinancialSummary(net_result=Decimal(-1000)), shares(25))

    assert sharing.agent_breakdown[0].calculated_share == -250
    assert sharing.company_share == -750


def test_company_share_accepts_mappings():
    assert compute_company_share(1000, [{"share_percentage": "10"}, None]) == 900


@pytest.mark.parametrize("value", [0, -5, 100.01, "abc", None])
def test_invalid_single_share(value):
    with pytest.raises(ValueError):
        validate_share_percentage(value)


def test_share_of_exactly_100_is_allowed():
    assert validate_share_percentage(100) == 100


def test_update_over_aggregate_is_rejected_and_input_kept():
    current = shares(60, 30)

    with pytest.raises(ShareAllocationError):
        apply_share_update(current, 3, 20)
    assert [s.share_percentage for s in current] == [60, 30]


def test_update_replaces_existing_agent_share():
    updated = apply_share_update(shares(60, 30), 1, 70)

    assert [s.share_percentage for s in updated] == [70, 30]


def test_update_adds_new_agent():
    updated = apply_share_update(shares(60), 9, "15.5", agent_name="Lee")

    assert updated[-1] == AgentShare(agent_id=9, share_percentage=Decimal("15.5"), agent_name="Lee")


def test_remove_last_agent():
    assert remove_agent_share(shares(40), 1) == []


def test_agent_profits():
    links = [
        {"agent_id": 1, "customer_id": 10, "commission_rate": 2},
        {"agent_id": 1, "customer_id": 11, "commission_rate": 1},
        {"agent_id": 2, "customer_id": 12, "commission_rate": 5},
    ]
    totals = {
        10: {"rolling_amount": 100000, "win_loss": -5000, "buy_in_amount": 50000, "buy_out_amount": 45000},
        11: {"rolling_amount": 20000, "win_loss": 3000},
    }

    profits = {profit.agent_id: profit for profit in compute_agent_profits(links, totals, agent_names={1: "Chan"})}

    assert profits[1].agent_name == "Chan"
    assert profits[1].total_commission == 2200
    assert profits[1].total_agent_commission == -70
    assert profits[1].total_customer_net == -2000
    assert profits[2].customers[0].rolling_amount == 0
