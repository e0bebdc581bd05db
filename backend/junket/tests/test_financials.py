"""
Tests for trip financial aggregation.
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from junket.services.financials import (
    FinancialSummary, FinancialValidationError, check_trip_financials, compute_customer_net_position,
    compute_trip_financials, record_belongs_to_trip, rolling_commission_for, safe_number,
    summarize_customer_records, to_percentage
)


def sample_trip():
    return {
        "customers": [{
            "rolling_amount": 100000,
            "win_loss": -5000,
            "rolling_percentage": 1.4,
            "buy_in_amount": 50000,
            "buy_out_amount": 45000,
        }],
        "expenses": [{"amount": 2000}],
    }


def test_single_customer_trip():
    summary = compute_trip_financials(sample_trip())

    assert summary.total_rolling == 100000
    assert summary.total_win_loss == -5000
    assert summary.rolling_commission == 1400
    assert summary.house_gross_win == 5000
    assert summary.house_net_win == 3600
    assert summary.net_result == 1600
    assert summary.net_cash_flow == -5000
    assert summary.total_expenses == 2000
    assert summary.customer_count == 1
    assert summary.expense_count == 1


def test_net_result_identity_holds():
    trip = sample_trip()
    trip["customers"].append({
        "rolling_amount": "250,000",
        "win_loss": "12000.50",
        "rolling_percentage": "0.8",
        "buy_in_amount": 30000,
        "buy_out_amount": 42000.5,
    })
    summary = compute_trip_financials(trip)

    assert summary.net_result == -summary.total_win_loss - summary.rolling_commission - summary.total_expenses
    assert summary.net_cash_flow == summary.total_buy_out - summary.total_buy_in


def test_empty_trip_is_all_zero():
    assert compute_trip_financials({}) == FinancialSummary()
    assert compute_trip_financials({"customers": None, "expenses": []}) == FinancialSummary()


def test_works_with_objects():
    class Line:
        rolling_amount = Decimal("100000")
        win_loss = Decimal("-5000")
        rolling_percentage = Decimal("1.4")
        buy_in_amount = Decimal("50000")
        buy_out_amount = Decimal("45000")

    class Trip:
        customers = (Line(),)
        expenses = ()

    assert compute_trip_financials(Trip()).net_result == 3600


def test_is_idempotent():
    trip = sample_trip()
    assert compute_trip_financials(trip) == compute_trip_financials(trip)


@pytest.mark.parametrize("value", [None, float("nan"), "abc", "", True])
def test_lenient_mode_treats_unusable_amounts_as_zero(value):
    trip = {"customers": [{"rolling_amount": value, "win_loss": value, "rolling_percentage": 1.4}], "expenses": []}
    summary = compute_trip_financials(trip)

    assert summary.total_rolling == 0
    assert summary.total_win_loss == 0
    assert summary.net_result == 0
    assert safe_number(value) == 0


def test_strict_mode_rejects_malformed_amounts():
    trip = {"customers": [{"rolling_amount": "abc", "win_loss": 0, "rolling_percentage": 1}], "expenses": []}

    with pytest.raises(FinancialValidationError) as exc_info:
        compute_trip_financials(trip, strict=True)
    assert exc_info.value.field_name == "rolling_amount"


def test_percentage_clamped_in_lenient_mode():
    assert to_percentage(150, "rolling_percentage") == 100
    assert to_percentage(-3, "rolling_percentage") == 0
    assert rolling_commission_for(1000, 250) == 1000


def test_percentage_rejected_in_strict_mode():
    with pytest.raises(FinancialValidationError):
        to_percentage(150, "rolling_percentage", strict=True)


def test_customer_net_position():
    position = compute_customer_net_position(-5000, 50000, 45000, 1400)

    assert position.net_cash_flow == -5000
    assert position.net_gaming_result == -6400
    assert position.total_net_position == -11400


def test_check_flags_negative_buy_in():
    check = check_trip_financials(FinancialSummary(total_buy_in=Decimal(-1)))

    assert not check.is_valid
    assert "Total buy-in cannot be negative" in check.errors


def test_check_warns_on_rolling_without_buy_in():
    check = check_trip_financials(FinancialSummary(total_rolling=Decimal(1000)))

    assert check.is_valid
    assert "Rolling activity recorded but no buy-in amounts" in check.warnings


def test_check_passes_sample_trip():
    check = check_trip_financials(compute_trip_financials(sample_trip()))
    assert check.is_valid
    assert check.warnings == []


def test_record_scope():
    start = date(2026, 3, 1)

    assert record_belongs_to_trip({"trip_id": 7}, 7, start)
    assert not record_belongs_to_trip({"trip_id": 8, "recorded_at": datetime(2026, 3, 5)}, 7, start)
    assert record_belongs_to_trip({"trip_id": None, "recorded_at": datetime(2026, 3, 1, 9)}, 7, start)
    assert not record_belongs_to_trip({"trip_id": None, "recorded_at": datetime(2026, 2, 28)}, 7, start)


def test_summarize_customer_records():
    rolling = [
        {"customer_id": 1, "trip_id": 7, "rolling_amount": 60000, "win_loss": -3000,
         "buy_in_amount": 99999, "recorded_at": datetime(2026, 3, 2, 20)},
        {"customer_id": 1, "trip_id": None, "rolling_amount": 40000, "win_loss": -2000,
         "recorded_at": datetime(2026, 3, 3, 1)},
        {"customer_id": 2, "trip_id": 7, "rolling_amount": 5000, "win_loss": 100,
         "recorded_at": datetime(2026, 3, 2)},
        {"customer_id": 1, "trip_id": 3, "rolling_amount": 1, "win_loss": 1,
         "recorded_at": datetime(2026, 3, 2)},
    ]
    cash = [
        {"customer_id": 1, "trip_id": 7, "transaction_type": "buy-in", "amount": 50000,
         "recorded_at": datetime(2026, 3, 2, 19)},
        {"customer_id": 1, "trip_id": 7, "transaction_type": "buy-out", "amount": 45000,
         "recorded_at": datetime(2026, 3, 3, 2)},
    ]

    totals = summarize_customer_records(1, rolling, cash, trip_id=7, since=date(2026, 3, 1))

    assert totals.rolling_amount == 100000
    assert totals.win_loss == -5000
    assert totals.buy_in_amount == 50000
    assert totals.buy_out_amount == 45000
    assert totals.rolling_record_count == 2
    assert totals.buy_in_out_record_count == 2
    assert totals.last_activity_at == datetime(2026, 3, 3, 2)


def test_unknown_transaction_type():
    cash = [{"customer_id": 1, "transaction_type": "refund", "amount": 10}]

    assert summarize_customer_records(1, [], cash).buy_in_out_record_count == 0
    with pytest.raises(FinancialValidationError):
        summarize_customer_records(1, [], cash, strict=True)
