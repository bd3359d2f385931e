"""
Deterministic financial metrics for the health and dashboard screens.

Everything here is plain arithmetic on ``Decimal``:
- burn rate and daily income over a lookback window ending today
- linear end-of-month balance projection
- runway, savings rate and debt-to-income ratio
- how close a spending distribution is to a target split (e.g. 50/30/20)

Ratios with a zero or negative denominator are 0, except runway, which
reports ``UNLIMITED_RUNWAY_MONTHS`` when nothing is being spent.
"""

from __future__ import annotations

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from budget_core.budget_engine import HUNDRED, ZERO, Transaction, coerce_amount
from budget_core.date_utils import parse_local_date

DEFAULT_LOOKBACK_DAYS = 30
DAYS_PER_MONTH = Decimal("30")
UNLIMITED_RUNWAY_MONTHS = Decimal("999")
WARNING_BUFFER = Decimal("0.1")
DEBT_CATEGORY_MARKERS = ("debt", "loan", "credit card")


@dataclass(frozen=True)
class BalanceProjection:
    projected_balance: Decimal
    burn_rate: Decimal
    days_remaining: int
    status: str


@dataclass(frozen=True)
class FinancialHealthMetrics:
    burn_rate: Decimal
    runway_months: Decimal
    debt_to_income_ratio: Decimal
    savings_rate: Decimal
    discretionary_income: Decimal


def calculate_burn_rate(
    transactions: Iterable[Transaction],
    days_lookback: int = DEFAULT_LOOKBACK_DAYS,
    today: date | None = None,
) -> Decimal:
    """Average daily expense over the last ``days_lookback`` days."""
    return _daily_average(transactions, "expense", days_lookback, today)


def calculate_daily_income(
    transactions: Iterable[Transaction],
    days_lookback: int = DEFAULT_LOOKBACK_DAYS,
    today: date | None = None,
) -> Decimal:
    return _daily_average(transactions, "income", days_lookback, today)


def project_end_of_month_balance(
    current_balance: Decimal | int | float | str,
    burn_rate: Decimal | int | float | str,
    today: date | None = None,
) -> BalanceProjection:
    """
    Spend ``burn_rate`` per day for the rest of the month.

    ``danger`` when the projection goes negative, ``warning`` when less
    than 10% of the current balance would be left, ``safe`` otherwise.
    """
    current = today or date.today()
    balance = coerce_amount(current_balance)
    rate = coerce_amount(burn_rate)
    days_remaining = max(0, monthrange(current.year, current.month)[1] - current.day)

    projected = balance - rate * days_remaining
    if projected < ZERO:
        status = "danger"
    elif projected < balance * WARNING_BUFFER:
        status = "warning"
    else:
        status = "safe"
    return BalanceProjection(
        projected_balance=projected,
        burn_rate=rate,
        days_remaining=days_remaining,
        status=status,
    )


def calculate_runway(
    total_assets: Decimal | int | float | str,
    monthly_burn_rate: Decimal | int | float | str,
) -> Decimal:
    """Months the liquid assets last at the current monthly burn."""
    burn = coerce_amount(monthly_burn_rate)
    if burn <= ZERO:
        return UNLIMITED_RUNWAY_MONTHS
    return coerce_amount(total_assets) / burn


def calculate_savings_rate(
    total_income: Decimal | int | float | str,
    total_expense: Decimal | int | float | str,
) -> Decimal:
    income = coerce_amount(total_income)
    if income <= ZERO:
        return ZERO
    return (income - coerce_amount(total_expense)) / income * HUNDRED


def calculate_dti(
    monthly_debt_payments: Decimal | int | float | str,
    monthly_income: Decimal | int | float | str,
) -> Decimal:
    income = coerce_amount(monthly_income)
    if income <= ZERO:
        return ZERO
    return coerce_amount(monthly_debt_payments) / income * HUNDRED


def calculate_financial_health_metrics(
    transactions: Iterable[Transaction],
    current_balance: Decimal | int | float | str,
    total_income_month: Decimal | int | float | str,
    total_expense_month: Decimal | int | float | str,
    today: date | None = None,
) -> FinancialHealthMetrics:
    transactions = list(transactions)
    income = coerce_amount(total_income_month)
    expense = coerce_amount(total_expense_month)

    monthly_burn_rate = (
        calculate_burn_rate(transactions, DEFAULT_LOOKBACK_DAYS, today) * DAYS_PER_MONTH
    )
    debt_payments = sum(
        (
            txn.amount
            for txn in transactions
            if txn.type == "expense" and _is_debt_category(txn.category)
        ),
        ZERO,
    )

    return FinancialHealthMetrics(
        burn_rate=monthly_burn_rate,
        runway_months=calculate_runway(current_balance, monthly_burn_rate),
        debt_to_income_ratio=calculate_dti(debt_payments, income),
        savings_rate=calculate_savings_rate(income, expense),
        discretionary_income=max(ZERO, income - expense),
    )


def calculate_distribution_compatibility(
    current: Sequence[Decimal | int | float | str],
    target: Sequence[Decimal | int | float | str],
) -> int:
    """
    Score 0-100 for how close ``current`` percentages are to ``target``.

    Missing target entries count as 0. The score is 100 minus the mean
    absolute difference, rounded half up.
    """
    if not current or not target:
        return 0
    diffs = [
        abs(coerce_amount(value) - (coerce_amount(target[index]) if index < len(target) else ZERO))
        for index, value in enumerate(current)
    ]
    average_diff = sum(diffs, ZERO) / len(diffs)
    score = (HUNDRED - average_diff).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return max(0, int(score))


def _daily_average(
    transactions: Iterable[Transaction],
    txn_type: str,
    days_lookback: int,
    today: date | None,
) -> Decimal:
    current = today or date.today()
    cutoff = current - timedelta(days=days_lookback)
    total = ZERO
    for txn in transactions:
        if txn.type != txn_type:
            continue
        txn_date = parse_local_date(txn.date, today=current)
        if txn_date is None or txn_date < cutoff:
            continue
        total += txn.amount
    return total / (days_lookback or 1)


def _is_debt_category(category: str) -> bool:
    normalized = category.lower()
    return any(marker in normalized for marker in DEBT_CATEGORY_MARKERS)
