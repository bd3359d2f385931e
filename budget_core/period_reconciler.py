from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Sequence

from budget_core.budget_engine import (
    HUNDRED,
    ZERO,
    Budget,
    Transaction,
    coerce_amount,
    find_matching_budget,
    usage_percentage,
)
from budget_core.date_utils import is_in_period, parse_local_date, period_id, validate_period


@dataclass(frozen=True)
class BudgetSpending:
    budget_id: str
    name: str
    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    usage_percentage: Decimal


@dataclass(frozen=True)
class BudgetPeriodData:
    period: str
    budget_total: Decimal
    budget_items_count: int
    spent_budgeted: Decimal
    spent_unbudgeted: Decimal
    total_spent: Decimal
    remaining: Decimal
    remaining_percentage: Decimal
    income_total: Decimal
    income_surplus: Decimal
    has_income_budget_gap: bool
    budgeted_expenses: tuple[Transaction, ...]
    unbudgeted_expenses: tuple[Transaction, ...]
    budget_spending: tuple[BudgetSpending, ...] = ()


def reconcile_period(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    *,
    year: int | None = None,
    month: int | None = None,
    period: str = "monthly",
    income_total: Decimal | int | float | str | None = None,
    today: date | None = None,
) -> BudgetPeriodData:
    """
    Build the single authoritative summary of one budget period.

    ``month`` is 1-12 (January is 1), not zero-based; anything else raises
    ``ValueError``. Both ``year`` and ``month`` default to ``today``'s.

    Only active budgets of the requested period type take part. Period
    expenses are split into budgeted/unbudgeted by ``find_matching_budget``
    against those budgets, in their given order. ``income_total``, when
    given, replaces the sum of period income transactions.
    """
    current = today or date.today()
    normalized_period = validate_period(period)
    target_year = year if year is not None else current.year
    target_month = month if month is not None else current.month
    if normalized_period == "monthly" and not 1 <= target_month <= 12:
        raise ValueError("month must be between 1 and 12.")

    period_budgets = [
        budget
        for budget in budgets
        if budget.is_active and budget.period == normalized_period
    ]
    budget_total = sum((budget.limit for budget in period_budgets), ZERO)

    period_transactions = _transactions_in_period(
        transactions, target_year, target_month, normalized_period, current
    )

    budgeted: list[Transaction] = []
    unbudgeted: list[Transaction] = []
    spent_by_budget: dict[str, Decimal] = {}
    for txn in period_transactions:
        if txn.type != "expense":
            continue
        matched = find_matching_budget(txn, period_budgets)
        if matched is None:
            unbudgeted.append(txn)
            continue
        budgeted.append(txn)
        spent_by_budget[matched.id] = spent_by_budget.get(matched.id, ZERO) + txn.amount

    spent_budgeted = _sum_amounts(budgeted)
    spent_unbudgeted = _sum_amounts(unbudgeted)
    remaining = budget_total - spent_budgeted
    remaining_percentage = (
        spent_budgeted / budget_total * HUNDRED if budget_total > ZERO else ZERO
    )

    if income_total is not None:
        resolved_income = coerce_amount(income_total)
    else:
        resolved_income = _sum_amounts(
            txn for txn in period_transactions if txn.type == "income"
        )

    return BudgetPeriodData(
        period=period_id(target_year, target_month, normalized_period),
        budget_total=budget_total,
        budget_items_count=len(period_budgets),
        spent_budgeted=spent_budgeted,
        spent_unbudgeted=spent_unbudgeted,
        total_spent=spent_budgeted + spent_unbudgeted,
        remaining=remaining,
        remaining_percentage=remaining_percentage,
        income_total=resolved_income,
        income_surplus=resolved_income - budget_total,
        has_income_budget_gap=budget_total > resolved_income,
        budgeted_expenses=tuple(budgeted),
        unbudgeted_expenses=tuple(unbudgeted),
        budget_spending=_budget_spending(period_budgets, spent_by_budget),
    )


def _transactions_in_period(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
    period: str,
    today: date,
) -> list[Transaction]:
    selected: list[Transaction] = []
    for txn in transactions:
        txn_date = parse_local_date(txn.date, today=today)
        if txn_date is None:
            continue
        if is_in_period(txn_date, year, month, period):
            selected.append(txn)
    return selected


def _budget_spending(
    budgets: Sequence[Budget], spent_by_budget: dict[str, Decimal]
) -> tuple[BudgetSpending, ...]:
    rows = []
    for budget in budgets:
        spent = spent_by_budget.get(budget.id, ZERO)
        rows.append(
            BudgetSpending(
                budget_id=budget.id,
                name=budget.name,
                category=budget.category,
                limit=budget.limit,
                spent=spent,
                remaining=budget.limit - spent,
                usage_percentage=usage_percentage(spent, budget.limit),
            )
        )
    return tuple(rows)


def _sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    total = ZERO
    for txn in transactions:
        total += txn.amount
    return total
