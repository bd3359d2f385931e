from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from budget_core.budget_engine import ZERO
from budget_core.period_reconciler import BudgetPeriodData

BALANCED_EPSILON = Decimal("500")
CRITICAL_RATIO = Decimal("0.8")
DEFICIT_RATIO = Decimal("0.99")
HEALTHY_RATIO = Decimal("1.2")


@dataclass(frozen=True)
class FinancialHealthInfo:
    status: str
    coverage_ratio: Decimal


def get_coverage_ratio(period_data: BudgetPeriodData) -> Decimal:
    if period_data.budget_total == ZERO:
        return ZERO
    return period_data.income_total / period_data.budget_total


def get_financial_status(
    period_data: BudgetPeriodData,
    *,
    balanced_epsilon: Decimal = BALANCED_EPSILON,
) -> str:
    """
    Classify how well period income covers the period's budgets.

    The deficit thresholds are checked before the absolute epsilon, so a
    near-balanced period with ratio >= 0.99 reads as balanced rather than
    as a surplus.
    """
    if period_data.budget_total == ZERO:
        return "no_budget"

    delta = period_data.income_total - period_data.budget_total
    ratio = get_coverage_ratio(period_data)

    if ratio < CRITICAL_RATIO:
        return "critical_deficit"
    if ratio < DEFICIT_RATIO:
        return "deficit"
    if abs(delta) <= balanced_epsilon:
        return "balanced"
    if ratio <= HEALTHY_RATIO:
        return "healthy_surplus"
    return "strong_surplus"


def get_financial_health(
    period_data: BudgetPeriodData,
    *,
    balanced_epsilon: Decimal = BALANCED_EPSILON,
) -> FinancialHealthInfo:
    return FinancialHealthInfo(
        status=get_financial_status(period_data, balanced_epsilon=balanced_epsilon),
        coverage_ratio=get_coverage_ratio(period_data),
    )
