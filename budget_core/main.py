import logging
import os
from datetime import date
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Header
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from sqlalchemy import create_engine

from budget_core.budget_engine import (
    Budget,
    Transaction,
    find_matching_budget,
    generate_budget_report,
)
from budget_core.budget_suggestions import generate_budget_suggestions
from budget_core.dashboard import Account, Goal, calculate_dashboard_info, calculate_stats
from budget_core.date_utils import period_id
from budget_core.financial_health import get_financial_health
from budget_core.financial_metrics import (
    calculate_burn_rate,
    calculate_daily_income,
    calculate_financial_health_metrics,
    project_end_of_month_balance,
)
from budget_core.goal_store import (
    NO_SURPLUS_ERROR,
    PLAN_EXISTS_ERROR,
    apply_surplus_plan,
    list_goals,
    metadata,
)
from budget_core.period_reconciler import BudgetPeriodData, reconcile_period
from budget_core.recurring_projection import pending_recurring_amount, validate_frequency
from budget_core.surplus_plan import PLAN_DEFINITIONS, calculate_plan_allocations

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

app = FastAPI()

frontend_origin = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[frontend_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

database_url = os.getenv("DATABASE_URL", "sqlite:///./budget_core.db")
connect_args = {}
if database_url.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(database_url, connect_args=connect_args)

DEFAULT_LANGUAGE = os.getenv("DEFAULT_LANGUAGE", "es").strip().lower()


@app.on_event("startup")
def init_db() -> None:
    metadata.create_all(engine)


class TransactionType:
    values = {"income", "expense"}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid transaction type.")
        return normalized


class BudgetPeriodType:
    values = {"monthly", "yearly"}

    @classmethod
    def validate(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in cls.values:
            raise ValueError("Invalid budget period.")
        return normalized


class TransactionPayload(BaseModel):
    id: str
    type: str
    amount: Decimal
    date: str
    category: str = ""
    description: str = ""
    is_recurring: bool = False
    frequency: str | None = None
    is_included_in_account_balance: bool = False

    @classmethod
    def validate_payload(cls, payload: "TransactionPayload") -> "TransactionPayload":
        payload.type = TransactionType.validate(payload.type)
        payload.category = payload.category.strip()
        payload.description = payload.description.strip()
        if payload.amount < 0:
            raise ValueError("Amount must not be negative.")
        if payload.frequency:
            payload.frequency = validate_frequency(payload.frequency)
        return payload

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            type=self.type,
            amount=self.amount,
            date=self.date,
            category=self.category,
            description=self.description,
            is_recurring=self.is_recurring,
            frequency=self.frequency,
            is_included_in_account_balance=self.is_included_in_account_balance,
        )


class BudgetPayload(BaseModel):
    id: str
    name: str
    category: str
    limit: Decimal
    period: str = "monthly"
    is_active: bool = True
    spent: Decimal | None = None
    reset_day: int | None = None

    @classmethod
    def validate_payload(cls, payload: "BudgetPayload") -> "BudgetPayload":
        payload.period = BudgetPeriodType.validate(payload.period)
        payload.name = payload.name.strip()
        payload.category = payload.category.strip()
        if not payload.name:
            raise ValueError("Budget name required.")
        if payload.limit <= 0:
            raise ValueError("Budget limit must be greater than zero.")
        if payload.reset_day is not None and not 1 <= payload.reset_day <= 31:
            raise ValueError("Reset day must be between 1 and 31.")
        return payload

    def to_budget(self) -> Budget:
        return Budget(
            id=self.id,
            name=self.name,
            category=self.category,
            limit=self.limit,
            period=self.period,
            is_active=self.is_active,
            spent=self.spent,
            reset_day=self.reset_day,
        )


class AccountPayload(BaseModel):
    id: str
    name: str
    balance: Decimal
    currency: str = ""


class GoalPayload(BaseModel):
    id: str
    name: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0")


class MatchPayload(BaseModel):
    transaction: TransactionPayload
    budgets: list[BudgetPayload]


class MatchResponse(BaseModel):
    budget_id: str | None = None
    budget_name: str | None = None


class PeriodPayload(BaseModel):
    budgets: list[BudgetPayload]
    transactions: list[TransactionPayload]
    year: int | None = None
    month: int | None = None
    period: str = "monthly"
    income_total: Decimal | None = None
    today: date | None = None


class BudgetSpendingResponse(BaseModel):
    budget_id: str
    name: str
    category: str
    limit: Decimal
    spent: Decimal
    remaining: Decimal
    usage_percentage: Decimal


class BudgetPeriodResponse(BaseModel):
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
    budgeted_expense_ids: list[str]
    unbudgeted_expense_ids: list[str]
    budget_spending: list[BudgetSpendingResponse]


class FinancialHealthResponse(BaseModel):
    period: str
    status: str
    coverage_ratio: Decimal
    income_total: Decimal
    budget_total: Decimal


class SuggestionsPayload(BaseModel):
    budgets: list[BudgetPayload]
    transactions: list[TransactionPayload]
    today: date | None = None
    category_names: dict[str, str] | None = None


class SuggestionResponse(BaseModel):
    budget_id: str
    budget_name: str
    type: str
    current_amount: Decimal | None = None
    suggested_amount: Decimal | None = None
    average_spent: Decimal | None = None


class ReportPayload(BaseModel):
    budgets: list[BudgetPayload]
    transactions: list[TransactionPayload]
    today: date | None = None


class BudgetAlertResponse(BaseModel):
    budget_id: str
    type: str
    amount: Decimal
    percentage: Decimal


class AllocatePayload(BaseModel):
    available: Decimal
    plan_id: str


class AllocationResponse(BaseModel):
    plan_id: str
    available: Decimal
    savings: Decimal
    goals: Decimal
    personal: Decimal


class PlanResponse(BaseModel):
    id: str
    savings: Decimal
    goals: Decimal
    personal: Decimal


class FinancialMetricsPayload(BaseModel):
    transactions: list[TransactionPayload]
    current_balance: Decimal
    total_income_month: Decimal
    total_expense_month: Decimal
    today: date | None = None


class FinancialMetricsResponse(BaseModel):
    burn_rate: Decimal
    runway_months: Decimal
    debt_to_income_ratio: Decimal
    savings_rate: Decimal
    discretionary_income: Decimal
    daily_income: Decimal
    projected_balance: Decimal
    days_remaining: int
    projection_status: str


class DashboardPayload(PeriodPayload):
    accounts: list[AccountPayload] = []
    goals: list[GoalPayload] = []
    pending_recurring_amount: Decimal | None = None


class ProjectionLineResponse(BaseModel):
    label: str
    amount: Decimal
    type: str


class DashboardResponse(BaseModel):
    period: str
    available_cash: Decimal
    available_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    monthly_balance: Decimal
    budget_total: Decimal
    budget_status: str
    budget_status_amount: Decimal
    monthly_surplus: Decimal
    has_surplus: bool
    pending_recurring: Decimal
    end_of_month_projection: Decimal
    projection_breakdown: list[ProjectionLineResponse]


class SurplusPlanPayload(BaseModel):
    plan_id: str
    available: Decimal
    period_key: str | None = None
    language: str | None = None
    replace_existing: bool = True


class SurplusPlanResponse(BaseModel):
    plan_id: str
    period_key: str
    savings: Decimal
    goals: Decimal
    personal: Decimal
    goals_created: list[int]
    goals_retired: int


class GoalResponse(BaseModel):
    id: int
    name: str
    target_amount: Decimal
    current_amount: Decimal
    period_key: str | None = None
    plan_id: str | None = None
    category: str | None = None
    source: str
    status: str | None = None


def get_user_id(x_user_id: str | None) -> int:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing user identity.")
    try:
        return int(x_user_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid user identity.") from exc


def parse_transactions(payloads: list[TransactionPayload]) -> list[Transaction]:
    try:
        return [
            TransactionPayload.validate_payload(payload).to_transaction()
            for payload in payloads
        ]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def parse_budgets(payloads: list[BudgetPayload]) -> list[Budget]:
    try:
        return [BudgetPayload.validate_payload(payload).to_budget() for payload in payloads]
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def reconcile_payload(payload: PeriodPayload) -> BudgetPeriodData:
    budgets = parse_budgets(payload.budgets)
    transactions = parse_transactions(payload.transactions)
    try:
        return reconcile_period(
            budgets,
            transactions,
            year=payload.year,
            month=payload.month,
            period=payload.period,
            income_total=payload.income_total,
            today=payload.today,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def to_period_response(data: BudgetPeriodData) -> BudgetPeriodResponse:
    return BudgetPeriodResponse(
        period=data.period,
        budget_total=data.budget_total,
        budget_items_count=data.budget_items_count,
        spent_budgeted=data.spent_budgeted,
        spent_unbudgeted=data.spent_unbudgeted,
        total_spent=data.total_spent,
        remaining=data.remaining,
        remaining_percentage=data.remaining_percentage,
        income_total=data.income_total,
        income_surplus=data.income_surplus,
        has_income_budget_gap=data.has_income_budget_gap,
        budgeted_expense_ids=[txn.id for txn in data.budgeted_expenses],
        unbudgeted_expense_ids=[txn.id for txn in data.unbudgeted_expenses],
        budget_spending=[
            BudgetSpendingResponse(
                budget_id=row.budget_id,
                name=row.name,
                category=row.category,
                limit=row.limit,
                spent=row.spent,
                remaining=row.remaining,
                usage_percentage=row.usage_percentage,
            )
            for row in data.budget_spending
        ],
    )


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/budgets/match", response_model=MatchResponse)
def match_budget(payload: MatchPayload) -> MatchResponse:
    transaction = parse_transactions([payload.transaction])[0]
    matched = find_matching_budget(transaction, parse_budgets(payload.budgets))
    if matched is None:
        return MatchResponse()
    return MatchResponse(budget_id=matched.id, budget_name=matched.name)


@app.post("/budgets/period", response_model=BudgetPeriodResponse)
def budget_period(payload: PeriodPayload) -> BudgetPeriodResponse:
    return to_period_response(reconcile_payload(payload))


@app.post("/budgets/suggestions", response_model=list[SuggestionResponse])
def budget_suggestions(payload: SuggestionsPayload) -> list[SuggestionResponse]:
    suggestions = generate_budget_suggestions(
        parse_budgets(payload.budgets),
        parse_transactions(payload.transactions),
        today=payload.today,
        category_names=payload.category_names,
    )
    return [
        SuggestionResponse(
            budget_id=item.budget_id,
            budget_name=item.budget_name,
            type=item.type,
            current_amount=item.current_amount,
            suggested_amount=item.suggested_amount,
            average_spent=item.average_spent,
        )
        for item in suggestions
    ]


@app.post("/budgets/report", response_model=list[BudgetAlertResponse])
def budget_report(payload: ReportPayload) -> list[BudgetAlertResponse]:
    alerts = generate_budget_report(
        parse_budgets(payload.budgets),
        parse_transactions(payload.transactions),
        today=payload.today,
    )
    return [
        BudgetAlertResponse(
            budget_id=alert.budget_id,
            type=alert.type,
            amount=alert.amount,
            percentage=alert.percentage,
        )
        for alert in alerts
    ]


@app.post("/financial-health", response_model=FinancialHealthResponse)
def financial_health(payload: PeriodPayload) -> FinancialHealthResponse:
    data = reconcile_payload(payload)
    info = get_financial_health(data)
    return FinancialHealthResponse(
        period=data.period,
        status=info.status,
        coverage_ratio=info.coverage_ratio,
        income_total=data.income_total,
        budget_total=data.budget_total,
    )


@app.post("/financial-health/metrics", response_model=FinancialMetricsResponse)
def financial_metrics(payload: FinancialMetricsPayload) -> FinancialMetricsResponse:
    transactions = parse_transactions(payload.transactions)
    metrics = calculate_financial_health_metrics(
        transactions,
        payload.current_balance,
        payload.total_income_month,
        payload.total_expense_month,
        today=payload.today,
    )
    daily_burn = calculate_burn_rate(transactions, today=payload.today)
    projection = project_end_of_month_balance(
        payload.current_balance, daily_burn, today=payload.today
    )
    return FinancialMetricsResponse(
        burn_rate=metrics.burn_rate,
        runway_months=metrics.runway_months,
        debt_to_income_ratio=metrics.debt_to_income_ratio,
        savings_rate=metrics.savings_rate,
        discretionary_income=metrics.discretionary_income,
        daily_income=calculate_daily_income(transactions, today=payload.today),
        projected_balance=projection.projected_balance,
        days_remaining=projection.days_remaining,
        projection_status=projection.status,
    )


@app.get("/surplus/plans", response_model=list[PlanResponse])
def surplus_plans() -> list[PlanResponse]:
    return [
        PlanResponse(id=plan.id, savings=plan.savings, goals=plan.goals, personal=plan.personal)
        for plan in PLAN_DEFINITIONS.values()
    ]


@app.post("/surplus/allocate", response_model=AllocationResponse)
def allocate_surplus(payload: AllocatePayload) -> AllocationResponse:
    try:
        allocation = calculate_plan_allocations(payload.available, payload.plan_id)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return AllocationResponse(
        plan_id=payload.plan_id,
        available=payload.available,
        savings=allocation.savings,
        goals=allocation.goals,
        personal=allocation.personal,
    )


@app.post("/dashboard", response_model=DashboardResponse)
def dashboard(payload: DashboardPayload) -> DashboardResponse:
    data = reconcile_payload(payload)
    transactions = parse_transactions(payload.transactions)
    accounts = [
        Account(id=item.id, name=item.name, balance=item.balance, currency=item.currency)
        for item in payload.accounts
    ]
    goals = [
        Goal(
            id=item.id,
            name=item.name,
            target_amount=item.target_amount,
            current_amount=item.current_amount,
        )
        for item in payload.goals
    ]
    pending = payload.pending_recurring_amount
    if pending is None:
        pending = pending_recurring_amount(transactions, today=payload.today)

    info = calculate_dashboard_info(
        calculate_stats(transactions, accounts, goals),
        data,
        accounts,
        pending,
    )
    projection = info.end_of_month_projection
    return DashboardResponse(
        period=data.period,
        available_cash=info.available_cash,
        available_balance=info.available_balance,
        monthly_income=info.monthly_income,
        monthly_expenses=info.monthly_expenses,
        monthly_balance=info.monthly_balance,
        budget_total=info.budget_total,
        budget_status=info.budget_status.type,
        budget_status_amount=info.budget_status.amount,
        monthly_surplus=info.monthly_surplus,
        has_surplus=info.has_surplus,
        pending_recurring=projection.pending_recurring,
        end_of_month_projection=projection.projected,
        projection_breakdown=[
            ProjectionLineResponse(label=line.label, amount=line.amount, type=line.type)
            for line in projection.breakdown
        ],
    )


@app.get("/goals", response_model=list[GoalResponse])
def get_goals(x_user_id: str | None = Header(None, alias="x-user-id")) -> list[GoalResponse]:
    user_id = get_user_id(x_user_id)
    with engine.begin() as conn:
        rows = list_goals(conn, user_id)
    return [
        GoalResponse(
            id=row["id"],
            name=row["name"],
            target_amount=row["target_amount"],
            current_amount=row["current_amount"],
            period_key=row["period_key"],
            plan_id=row["plan_id"],
            category=row["category"],
            source=row["source"],
            status=row["status"],
        )
        for row in rows
    ]


@app.post("/goals/surplus-plan", response_model=SurplusPlanResponse)
def create_surplus_plan_goals(
    payload: SurplusPlanPayload,
    x_user_id: str | None = Header(None, alias="x-user-id"),
) -> SurplusPlanResponse:
    user_id = get_user_id(x_user_id)
    today = date.today()
    period_key = payload.period_key or period_id(today.year, today.month)
    language = payload.language or DEFAULT_LANGUAGE
    try:
        result = apply_surplus_plan(
            engine,
            user_id,
            period_key,
            payload.plan_id,
            payload.available,
            language=language,
            replace_existing=payload.replace_existing,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    if not result.success:
        status_code = 500
        if result.error == NO_SURPLUS_ERROR:
            status_code = 400
        elif result.error == PLAN_EXISTS_ERROR:
            status_code = 409
        raise HTTPException(status_code=status_code, detail=result.error)

    allocation = result.allocation
    return SurplusPlanResponse(
        plan_id=payload.plan_id,
        period_key=period_key,
        savings=allocation.savings,
        goals=allocation.goals,
        personal=allocation.personal,
        goals_created=list(result.goals_created),
        goals_retired=result.goals_retired,
    )
