from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from budget_core.category_keywords import budget_keywords, categories_related
from budget_core.date_utils import (
    is_last_day_of_period,
    parse_local_date,
    period_bounds,
)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
WARNING_PERCENTAGE = Decimal("80")


@dataclass(frozen=True)
class Transaction:
    id: str
    type: str
    amount: Decimal
    date: date | str
    category: str = ""
    description: str = ""
    is_recurring: bool = False
    frequency: Optional[str] = None
    is_included_in_account_balance: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.type.strip().lower())
        object.__setattr__(self, "amount", coerce_amount(self.amount))
        object.__setattr__(self, "category", self.category or "")
        object.__setattr__(self, "description", self.description or "")


@dataclass(frozen=True)
class Budget:
    id: str
    name: str
    category: str
    limit: Decimal
    period: str = "monthly"
    is_active: bool = True
    spent: Optional[Decimal] = None
    reset_day: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "limit", coerce_amount(self.limit))
        object.__setattr__(self, "period", self.period.strip().lower())
        if self.spent is not None:
            object.__setattr__(self, "spent", coerce_amount(self.spent))


@dataclass(frozen=True)
class BudgetAlert:
    budget_id: str
    type: str
    amount: Decimal
    percentage: Decimal


def find_matching_budget(
    transaction: Transaction,
    budgets: Sequence[Budget],
) -> Optional[Budget]:
    """
    Return the budget an expense counts against, or None.

    Tiers are tried in order and the first hit wins:
    1. exact category (case-insensitive)
    2. keywords of the budget name/category found in the description or
       category, or the budget name/category named in the description
    3. categories related through a shared keyword group

    Budgets are scanned in the order given.
    """
    if transaction.type != "expense":
        return None

    active_budgets = [budget for budget in budgets if budget.is_active]
    if not active_budgets:
        return None

    category = transaction.category.strip().lower()
    description = transaction.description.strip().lower()

    for budget in active_budgets:
        if budget.category.strip().lower() == category:
            return budget

    for budget in active_budgets:
        budget_name = budget.name.strip().lower()
        budget_category = budget.category.strip().lower()
        for keyword in budget_keywords(budget_name, budget_category):
            if keyword in description or keyword in category:
                return budget
        if _mentions(description, budget_name) or _mentions(description, budget_category):
            return budget

    for budget in active_budgets:
        if categories_related(transaction.category, budget.category):
            return budget

    return None


def spent_for_category(
    category: str,
    transactions: Iterable[Transaction],
    period: str = "monthly",
    today: date | None = None,
) -> Decimal:
    """Sum of exact-category expenses from the start of the current period to today."""
    current = today or date.today()
    period_start, _ = period_bounds(current.year, current.month, period)

    total = ZERO
    for txn in transactions:
        if txn.type != "expense" or txn.category != category:
            continue
        txn_date = parse_local_date(txn.date, today=current)
        if txn_date is None or not period_start <= txn_date <= current:
            continue
        total += txn.amount
    return total


def usage_percentage(spent: Decimal, limit: Decimal) -> Decimal:
    if limit == ZERO:
        return ZERO
    return min(spent / limit * HUNDRED, HUNDRED)


def check_budget_after_expense(
    expense: Transaction,
    budget: Optional[Budget],
    transactions: Iterable[Transaction],
    today: date | None = None,
) -> Optional[BudgetAlert]:
    if budget is None or not budget.is_active or budget.limit <= ZERO:
        return None
    current = today or date.today()

    total_spent = spent_for_category(expense.category, transactions, budget.period, current)
    difference = budget.limit - total_spent
    percentage = total_spent / budget.limit * HUNDRED

    if difference > ZERO and is_last_day_of_period(current, budget.period):
        return BudgetAlert(budget.id, "saving", difference, percentage)
    if difference < ZERO:
        return BudgetAlert(budget.id, "overspending", difference, percentage)
    if WARNING_PERCENTAGE <= percentage < HUNDRED:
        return BudgetAlert(budget.id, "warning", difference, percentage)
    return None


def generate_budget_report(
    budgets: Iterable[Budget],
    transactions: Sequence[Transaction],
    today: date | None = None,
) -> tuple[BudgetAlert, ...]:
    current = today or date.today()
    alerts: list[BudgetAlert] = []
    for budget in budgets:
        if not budget.is_active or budget.limit <= ZERO:
            continue
        spent = spent_for_category(budget.category, transactions, budget.period, current)
        difference = budget.limit - spent
        percentage = spent / budget.limit * HUNDRED

        if difference > ZERO and spent > ZERO:
            alerts.append(BudgetAlert(budget.id, "saving", difference, percentage))
        if difference < ZERO:
            alerts.append(BudgetAlert(budget.id, "overspending", difference, percentage))
        if WARNING_PERCENTAGE <= percentage < HUNDRED and difference > ZERO:
            alerts.append(BudgetAlert(budget.id, "warning", difference, percentage))
    return tuple(alerts)


def should_reset_budget(budget: Budget, today: date | None = None) -> bool:
    current = today or date.today()
    reset_day = budget.reset_day or 1
    if budget.period == "monthly":
        return current.day == reset_day
    return current.month == 1 and current.day == reset_day


def budgets_to_reset(budgets: Iterable[Budget], today: date | None = None) -> list[Budget]:
    current = today or date.today()
    return [budget for budget in budgets if should_reset_budget(budget, current)]


def coerce_amount(amount: Decimal | int | float | str | None) -> Decimal:
    if amount is None:
        return ZERO
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def _mentions(text: str, needle: str) -> bool:
    return bool(needle) and needle in text
