"""
Trip financial aggregation.

All amounts are from the customer's perspective on input (a positive win/loss
means the customer won) and are flipped to the house perspective for the
gross/net win figures. Every function here is pure: it reads the records it is
given and returns new values without touching the database.

Two parsing modes are supported. Lenient mode (the default, controlled by
``settings.LENIENT_NUMBERS``) treats missing, NaN or non-numeric amounts as 0
and clamps percentages to [0, 100]. Strict mode raises
``FinancialValidationError`` for the same inputs.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Optional

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
HUNDRED = Decimal(100)


class FinancialValidationError(ValueError):
    """Raised in strict mode when an amount or percentage cannot be used."""

    def __init__(self, field_name: str, value: Any, reason: str = "is not a valid number"):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name} {reason}: {value!r}")


def _parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a value into a finite Decimal, or None when it cannot be parsed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
        return parsed if parsed.is_finite() else None
    return None


def safe_number(value: Any) -> Decimal:
    """Lenient conversion: anything unusable becomes 0."""
    parsed = _parse_decimal(value)
    return ZERO if parsed is None else parsed


def strict_number(value: Any, field_name: str = "value") -> Decimal:
    """Strict conversion: anything unusable raises FinancialValidationError."""
    parsed = _parse_decimal(value)
    if parsed is None:
        raise FinancialValidationError(field_name, value)
    return parsed


def to_number(value: Any, field_name: str, strict: bool = False) -> Decimal:
    if strict:
        return strict_number(value, field_name)
    return safe_number(value)


def to_percentage(value: Any, field_name: str, strict: bool = False) -> Decimal:
    """Parse a percentage. Lenient mode clamps to [0, 100], strict mode rejects."""
    number = to_number(value, field_name, strict)
    if ZERO <= number <= HUNDRED:
        return number
    if strict:
        raise FinancialValidationError(field_name, value, "must be between 0 and 100")
    logger.warning(f"Clamping out of range {field_name} {value!r} to [0, 100]")
    return min(max(number, ZERO), HUNDRED)


def read_field(record: Any, name: str, default: Any = None) -> Any:
    """Read a field from either a mapping or an object."""
    if record is None:
        return default
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _items(collection: Optional[Iterable]) -> list:
    return [item for item in (collection or []) if item is not None]


@dataclass(frozen=True)
class FinancialSummary:
    """Aggregated figures for one trip."""
    total_rolling: Decimal = ZERO
    total_win_loss: Decimal = ZERO
    total_buy_in: Decimal = ZERO
    total_buy_out: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_cash_flow: Decimal = ZERO
    rolling_commission: Decimal = ZERO
    house_gross_win: Decimal = ZERO
    house_net_win: Decimal = ZERO
    net_result: Decimal = ZERO
    customer_count: int = 0
    expense_count: int = 0


@dataclass(frozen=True)
class CustomerTotals:
    """A customer's figures within one trip, summed from recorded events."""
    customer_id: Any
    rolling_amount: Decimal = ZERO
    win_loss: Decimal = ZERO
    buy_in_amount: Decimal = ZERO
    buy_out_amount: Decimal = ZERO
    rolling_record_count: int = 0
    buy_in_out_record_count: int = 0
    last_activity_at: Optional[datetime] = None


@dataclass(frozen=True)
class CustomerNetPosition:
    net_cash_flow: Decimal
    net_gaming_result: Decimal
    total_net_position: Decimal


@dataclass
class FinancialCheck:
    """Outcome of sanity checks over a trip summary."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def rolling_commission_for(rolling_amount: Any, percentage: Any, strict: bool = False) -> Decimal:
    """Rebate owed on a rolling volume: rolling_amount * percentage / 100."""
    amount = to_number(rolling_amount, "rolling_amount", strict)
    rate = to_percentage(percentage, "rolling_percentage", strict)
    return amount * rate / HUNDRED


def compute_trip_financials(trip: Any, strict: bool = False) -> FinancialSummary:
    """
    Compute the financial summary of a trip.

    ``trip`` must expose ``customers`` (each with rolling_amount, win_loss,
    buy_in_amount, buy_out_amount and rolling_percentage) and ``expenses``
    (each with amount), as attributes or mapping keys. Missing collections
    count as empty.
    """
    customers = _items(read_field(trip, "customers"))
    expenses = _items(read_field(trip, "expenses"))

    total_rolling = ZERO
    total_win_loss = ZERO
    total_buy_in = ZERO
    total_buy_out = ZERO
    rolling_commission = ZERO

    for customer in customers:
        rolling = to_number(read_field(customer, "rolling_amount"), "rolling_amount", strict)
        total_rolling += rolling
        total_win_loss += to_number(read_field(customer, "win_loss"), "win_loss", strict)
        total_buy_in += to_number(read_field(customer, "buy_in_amount"), "buy_in_amount", strict)
        total_buy_out += to_number(read_field(customer, "buy_out_amount"), "buy_out_amount", strict)
        rolling_commission += rolling_commission_for(
            rolling, read_field(customer, "rolling_percentage"), strict
        )

    total_expenses = sum(
        (to_number(read_field(expense, "amount"), "amount", strict) for expense in expenses),
        ZERO
    )

    house_gross_win = -total_win_loss
    house_net_win = house_gross_win - rolling_commission

    return FinancialSummary(
        total_rolling=total_rolling,
        total_win_loss=total_win_loss,
        total_buy_in=total_buy_in,
        total_buy_out=total_buy_out,
        total_expenses=total_expenses,
        net_cash_flow=total_buy_out - total_buy_in,
        rolling_commission=rolling_commission,
        house_gross_win=house_gross_win,
        house_net_win=house_net_win,
        net_result=house_net_win - total_expenses,
        customer_count=len(customers),
        expense_count=len(expenses),
    )


def compute_customer_net_position(
    win_loss: Any,
    buy_in: Any,
    buy_out: Any,
    rolling_commission: Any,
    strict: bool = False
) -> CustomerNetPosition:
    """Customer's own view: cash moved plus gaming result after commission."""
    net_cash_flow = to_number(buy_out, "buy_out_amount", strict) - to_number(buy_in, "buy_in_amount", strict)
    net_gaming_result = to_number(win_loss, "win_loss", strict) - to_number(
        rolling_commission, "rolling_commission", strict
    )
    return CustomerNetPosition(
        net_cash_flow=net_cash_flow,
        net_gaming_result=net_gaming_result,
        total_net_position=net_cash_flow + net_gaming_result,
    )


def check_trip_financials(summary: FinancialSummary) -> FinancialCheck:
    """Flag impossible totals as errors and unusual ones as warnings."""
    check = FinancialCheck()

    if summary.total_buy_in < 0:
        check.errors.append("Total buy-in cannot be negative")
    if summary.total_buy_out < 0:
        check.errors.append("Total buy-out cannot be negative")
    if summary.total_rolling < 0:
        check.warnings.append("Total rolling amount is negative - this is unusual")

    if abs(summary.net_cash_flow) > abs(summary.total_win_loss) * 2:
        check.warnings.append("Net cash flow seems disproportionate to win/loss amounts")
    if summary.total_buy_in > 0 and summary.total_rolling == 0:
        check.warnings.append("Customers bought in but no rolling activity recorded")
    if summary.total_rolling > 0 and summary.total_buy_in == 0:
        check.warnings.append("Rolling activity recorded but no buy-in amounts")

    return check


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            return None
    return None


def record_belongs_to_trip(record: Any, trip_id: Any = None, since: Optional[date] = None) -> bool:
    """
    A record counts toward a trip when it carries the trip's id, or, when it
    carries no trip id at all, when it was recorded on or after ``since``.
    """
    record_trip_id = read_field(record, "trip_id")
    if record_trip_id is not None and trip_id is not None:
        return record_trip_id == trip_id
    if since is None:
        return True
    recorded_on = _as_date(read_field(record, "recorded_at"))
    return recorded_on is not None and recorded_on >= since


def summarize_customer_records(
    customer_id: Any,
    rolling_records: Optional[Iterable] = None,
    buy_in_out_records: Optional[Iterable] = None,
    trip_id: Any = None,
    since: Optional[date] = None,
    strict: bool = False
) -> CustomerTotals:
    """
    Sum one customer's rolling and buy-in/out records for a trip.

    Rolling amount and win/loss come from rolling records. Buy-in and buy-out
    come from buy-in/out records only; the buy-in/out annotations on rolling
    records describe the session and are not counted again.
    """
    rolling = ZERO
    win_loss = ZERO
    buy_in = ZERO
    buy_out = ZERO
    rolling_count = 0
    cash_count = 0
    last_activity = None

    def _touch(record):
        nonlocal last_activity
        recorded_at = read_field(record, "recorded_at")
        if isinstance(recorded_at, datetime) and (last_activity is None or recorded_at > last_activity):
            last_activity = recorded_at

    for record in _items(rolling_records):
        if read_field(record, "customer_id") != customer_id:
            continue
        if not record_belongs_to_trip(record, trip_id, since):
            continue
        rolling += to_number(read_field(record, "rolling_amount"), "rolling_amount", strict)
        win_loss += to_number(read_field(record, "win_loss"), "win_loss", strict)
        rolling_count += 1
        _touch(record)

    for record in _items(buy_in_out_records):
        if read_field(record, "customer_id") != customer_id:
            continue
        if not record_belongs_to_trip(record, trip_id, since):
            continue
        amount = to_number(read_field(record, "amount"), "amount", strict)
        transaction_type = read_field(record, "transaction_type")
        transaction_type = getattr(transaction_type, "value", transaction_type)
        if transaction_type == "buy-in":
            buy_in += amount
        elif transaction_type == "buy-out":
            buy_out += amount
        else:
            if strict:
                raise FinancialValidationError("transaction_type", transaction_type, "is not buy-in or buy-out")
            logger.warning(f"Ignoring record with unsupported transaction type: {transaction_type!r}")
            continue
        cash_count += 1
        _touch(record)

    return CustomerTotals(
        customer_id=customer_id,
        rolling_amount=rolling,
        win_loss=win_loss,
        buy_in_amount=buy_in,
        buy_out_amount=buy_out,
        rolling_record_count=rolling_count,
        buy_in_out_record_count=cash_count,
        last_activity_at=last_activity,
    )
