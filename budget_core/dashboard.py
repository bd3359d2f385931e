"""
Dashboard figures derived from accounts, goals and the reconciled period.

Every figure shown on the home screen comes from here so that the
dashboard, the budgets screen and the surplus planner agree on the numbers.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Sequence

from budget_core.budget_engine import ZERO, Transaction, coerce_amount
from budget_core.period_reconciler import BudgetPeriodData


@dataclass(frozen=True)
class Account:
    id: str
    name: str
    balance: Decimal
    currency: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "balance", coerce_amount(self.balance))


@dataclass(frozen=True)
class Goal:
    id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_amount", coerce_amount(self.target_amount))
        object.__setattr__(self, "current_amount", coerce_amount(self.current_amount))


@dataclass(frozen=True)
class DashboardStats:
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    real_balance: Decimal
    available_balance: Decimal
    committed_savings: Decimal


@dataclass(frozen=True)
class BudgetStatus:
    type: str
    amount: Decimal


@dataclass(frozen=True)
class ProjectionLine:
    label: str
    amount: Decimal
    type: str


@dataclass(frozen=True)
class EndOfMonthProjection:
    projected: Decimal
    current_balance: Decimal
    pending_recurring: Decimal
    breakdown: tuple[ProjectionLine, ...]


@dataclass(frozen=True)
class DashboardInfo:
    available_cash: Decimal
    available_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_balance: Decimal
    budget_total: Decimal
    budget_status: BudgetStatus
    monthly_surplus: Decimal
    has_surplus: bool
    end_of_month_projection: EndOfMonthProjection


def calculate_stats(
    transactions: Iterable[Transaction],
    accounts: Sequence[Account],
    goals: Iterable[Goal],
) -> DashboardStats:
    """
    Aggregate income, expenses and the balance actually free to spend.

    Income flagged ``is_included_in_account_balance`` is already part of
    the account balances and is not added again. Without accounts the
    balance falls back to income minus expenses.
    """
    total_income = ZERO
    new_income = ZERO
    expense = ZERO
    for txn in transactions:
        if txn.type == "income":
            total_income += txn.amount
            if not txn.is_included_in_account_balance:
                new_income += txn.amount
        elif txn.type == "expense":
            expense += txn.amount

    real_balance = calculate_available_cash(accounts)
    committed_savings = sum((goal.current_amount for goal in goals), ZERO)

    if accounts:
        available_balance = real_balance + new_income - expense - committed_savings
    else:
        available_balance = total_income - expense - committed_savings

    return DashboardStats(
        total_income=total_income,
        total_expense=expense,
        balance=total_income - expense,
        real_balance=real_balance,
        available_balance=available_balance,
        committed_savings=committed_savings,
    )


def calculate_available_cash(accounts: Iterable[Account]) -> Decimal:
    # Credit lines carry negative balances; the total is never clamped.
    return sum((account.balance for account in accounts), ZERO)


def calculate_budget_status(budget_total: Decimal, spent_amount: Decimal) -> BudgetStatus:
    difference = budget_total - spent_amount
    if difference > ZERO:
        return BudgetStatus(type="restante", amount=difference)
    if difference < ZERO:
        return BudgetStatus(type="excedente", amount=abs(difference))
    return BudgetStatus(type="neutral", amount=ZERO)


def calculate_monthly_surplus(monthly_income: Decimal, budget_total: Decimal) -> Decimal:
    return max(ZERO, monthly_income - budget_total)


def calculate_end_of_month_projection(
    monthly_balance: Decimal,
    pending_recurring_amount: Decimal,
) -> EndOfMonthProjection:
    pending = coerce_amount(pending_recurring_amount)
    projected = monthly_balance - pending
    return EndOfMonthProjection(
        projected=projected,
        current_balance=monthly_balance,
        pending_recurring=pending,
        breakdown=(
            ProjectionLine(label="Monthly balance", amount=monthly_balance, type="base"),
            ProjectionLine(label="Pending recurring", amount=pending, type="pending"),
            ProjectionLine(label="End-of-month projection", amount=projected, type="result"),
        ),
    )


def calculate_dashboard_info(
    stats: DashboardStats,
    period_data: BudgetPeriodData,
    accounts: Sequence[Account],
    pending_recurring_amount: Decimal | int | float | str,
) -> DashboardInfo:
    monthly_income = period_data.income_total
    monthly_expenses = period_data.total_spent
    monthly_balance = monthly_income - monthly_expenses
    monthly_surplus = calculate_monthly_surplus(monthly_income, period_data.budget_total)

    return DashboardInfo(
        available_cash=calculate_available_cash(accounts),
        available_balance=stats.available_balance,
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        monthly_balance=monthly_balance,
        budget_total=period_data.budget_total,
        budget_status=calculate_budget_status(period_data.budget_total, monthly_expenses),
        monthly_surplus=monthly_surplus,
        has_surplus=monthly_surplus > ZERO,
        end_of_month_projection=calculate_end_of_month_projection(
            monthly_balance, pending_recurring_amount
        ),
    )
