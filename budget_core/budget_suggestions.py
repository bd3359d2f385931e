"""
Budget adjustment suggestions from recent spending patterns.

Looks at the trailing three months of expenses and proposes, per active
budget, lowering or raising its limit or moving this period's leftover to
goals; then proposes new budgets for material spending nobody budgets for.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, Decimal
from typing import Iterable, Mapping, Optional, Sequence

from budget_core.budget_engine import ZERO, Budget, Transaction
from budget_core.category_keywords import categories_related
from budget_core.date_utils import (
    add_months,
    end_of_month,
    parse_local_date,
    period_bounds,
    start_of_month,
)

HISTORY_MONTHS = 3
MIN_MONTHS_WITH_SPENDING = 2
REDUCE_MARGIN = Decimal("0.15")
INCREASE_THRESHOLD = Decimal("0.95")
LEFTOVER_THRESHOLD = Decimal("0.85")
SUGGESTION_HEADROOM = Decimal("1.1")
ROUNDING_STEP = Decimal("100")
MATERIALITY_THRESHOLD = Decimal("1000")
MAX_SUGGESTIONS = 5


@dataclass(frozen=True)
class BudgetSuggestion:
    budget_id: str
    budget_name: str
    type: str
    current_amount: Optional[Decimal] = None
    suggested_amount: Optional[Decimal] = None
    average_spent: Optional[Decimal] = None


def generate_budget_suggestions(
    budgets: Sequence[Budget],
    transactions: Iterable[Transaction],
    today: date | None = None,
    category_names: Mapping[str, str] | None = None,
    *,
    materiality_threshold: Decimal = MATERIALITY_THRESHOLD,
    limit: int = MAX_SUGGESTIONS,
) -> list[BudgetSuggestion]:
    current = today or date.today()
    window_start = add_months(current, -HISTORY_MONTHS)
    expenses = _dated_expenses(transactions, current)
    recent = [(txn, txn_date) for txn, txn_date in expenses if txn_date >= window_start]

    suggestions: list[BudgetSuggestion] = []
    active_budgets = [budget for budget in budgets if budget.is_active]

    for budget in active_budgets:
        history = monthly_spending_history(budget.category, recent, current, HISTORY_MONTHS)
        if len(history) < MIN_MONTHS_WITH_SPENDING:
            continue

        average = sum(history, ZERO) / len(history)
        current_spent = _current_period_spent(budget, expenses, current)

        if budget.limit - average > budget.limit * REDUCE_MARGIN and average > ZERO:
            suggestions.append(
                BudgetSuggestion(
                    budget_id=budget.id,
                    budget_name=budget.name,
                    type="reduce",
                    current_amount=budget.limit,
                    suggested_amount=round_up_suggestion(average),
                    average_spent=average,
                )
            )
        if average >= budget.limit * INCREASE_THRESHOLD:
            suggestions.append(
                BudgetSuggestion(
                    budget_id=budget.id,
                    budget_name=budget.name,
                    type="increase",
                    current_amount=budget.limit,
                    suggested_amount=round_up_suggestion(average),
                    average_spent=average,
                )
            )
        if ZERO < current_spent < budget.limit * LEFTOVER_THRESHOLD:
            suggestions.append(
                BudgetSuggestion(
                    budget_id=budget.id,
                    budget_name=budget.name,
                    type="savings",
                    current_amount=budget.limit - current_spent,
                )
            )

    totals_by_category: dict[str, Decimal] = {}
    for txn, _ in recent:
        totals_by_category[txn.category] = totals_by_category.get(txn.category, ZERO) + txn.amount

    for category, total in totals_by_category.items():
        if _has_budget(category, active_budgets) or total <= materiality_threshold:
            continue
        monthly_average = total / HISTORY_MONTHS
        suggestions.append(
            BudgetSuggestion(
                budget_id="",
                budget_name=category_display_name(category, category_names),
                type="create",
                suggested_amount=round_up_suggestion(monthly_average),
                average_spent=monthly_average,
            )
        )

    return suggestions[:limit]


def monthly_spending_history(
    category: str,
    expenses: Iterable[tuple[Transaction, date]],
    today: date,
    months: int = HISTORY_MONTHS,
) -> list[Decimal]:
    """Totals for the current and previous calendar months, months without spending dropped."""
    wanted = category.strip().lower()
    items = [
        (txn, txn_date)
        for txn, txn_date in expenses
        if txn.category.strip().lower() == wanted
    ]
    totals: list[Decimal] = []
    for offset in range(months):
        month_start = start_of_month(add_months(start_of_month(today), -offset))
        month_end = end_of_month(month_start)
        month_total = sum(
            (txn.amount for txn, txn_date in items if month_start <= txn_date <= month_end),
            ZERO,
        )
        totals.append(month_total)
    return [total for total in totals if total > ZERO]


def round_up_suggestion(average: Decimal) -> Decimal:
    """Average plus 10% headroom, rounded up to the next hundred."""
    steps = (average * SUGGESTION_HEADROOM / ROUNDING_STEP).to_integral_value(rounding=ROUND_CEILING)
    return steps * ROUNDING_STEP


def category_display_name(category: str, category_names: Mapping[str, str] | None = None) -> str:
    if category_names and category in category_names:
        return category_names[category]
    # Opaque ids (long, or with runs of uppercase/digits) are left untouched.
    if category and len(category) < 20 and not _looks_like_id(category):
        return category[0].upper() + category[1:]
    return category


def _dated_expenses(
    transactions: Iterable[Transaction], today: date
) -> list[tuple[Transaction, date]]:
    expenses: list[tuple[Transaction, date]] = []
    for txn in transactions:
        if txn.type != "expense":
            continue
        txn_date = parse_local_date(txn.date, today=today)
        if txn_date is None:
            continue
        expenses.append((txn, txn_date))
    return expenses


def _current_period_spent(
    budget: Budget, expenses: Iterable[tuple[Transaction, date]], today: date
) -> Decimal:
    wanted = budget.category.strip().lower()
    period_start, _ = period_bounds(today.year, today.month, budget.period)
    return sum(
        (
            txn.amount
            for txn, txn_date in expenses
            if txn.category.strip().lower() == wanted and period_start <= txn_date <= today
        ),
        ZERO,
    )


def _has_budget(category: str, budgets: Iterable[Budget]) -> bool:
    wanted = category.strip().lower()
    return any(
        budget.category.strip().lower() == wanted or categories_related(category, budget.category)
        for budget in budgets
    )


def _looks_like_id(value: str) -> bool:
    run = 0
    for ch in value:
        if ch.isdigit() or ch.isupper():
            run += 1
            if run >= 10:
                return True
        else:
            run = 0
    return False
