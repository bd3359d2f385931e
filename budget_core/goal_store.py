"""
Goal storage and surplus-plan goal creation.

Rules:
- Only one set of ``surplus_plan`` goals may be active per user and period.
  Applying a plan again in the same period soft-deletes the previous set.
- Manual goals (any other source) are never touched by plan application.
- Goals written before the ``status`` column existed have a NULL status
  and are treated as active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Mapping, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    and_,
    func,
    insert,
    or_,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from budget_core.budget_engine import ZERO
from budget_core.surplus_plan import (
    ALLOCATION_CATEGORIES,
    PLAN_DEFINITIONS,
    PlanAllocation,
    PlanDefinition,
    allocation_category_name,
    calculate_plan_allocations,
    get_plan,
)

logger = logging.getLogger(__name__)

SURPLUS_PLAN_SOURCE = "surplus_plan"
MANUAL_SOURCE = "manual"

NO_SURPLUS_ERROR = "No surplus available to create goals."
PLAN_EXISTS_ERROR = "Surplus plan goals already exist for this period."
STORAGE_ERROR = "Error creating goals. Please try again."

metadata = MetaData()

goals = Table(
    "goals",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("name", String(255), nullable=False),
    Column("target_amount", Numeric(12, 2), nullable=False),
    Column("current_amount", Numeric(12, 2), nullable=False, default=0),
    Column("period_key", String(7)),
    Column("plan_id", String(50)),
    Column("category", String(20)),
    Column("source", String(20), nullable=False, default=MANUAL_SOURCE),
    Column("status", String(20)),
    Column("created_at", DateTime, nullable=False, server_default=func.now()),
    Column("deleted_at", DateTime),
)


@dataclass(frozen=True)
class GoalCreationResult:
    success: bool
    allocation: Optional[PlanAllocation] = None
    goals_created: tuple[int, ...] = field(default_factory=tuple)
    goals_retired: int = 0
    error: Optional[str] = None


def _active_plan_goals(user_id: int, period_key: str):
    return and_(
        goals.c.user_id == user_id,
        goals.c.period_key == period_key,
        goals.c.source == SURPLUS_PLAN_SOURCE,
        or_(goals.c.status == "active", goals.c.status.is_(None)),
    )


def has_plan_goals_for_period(conn: Connection, user_id: int, period_key: str) -> bool:
    row = conn.execute(
        select(goals.c.id).where(_active_plan_goals(user_id, period_key)).limit(1)
    ).first()
    return row is not None


def retire_plan_goals_for_period(conn: Connection, user_id: int, period_key: str) -> int:
    """Soft-delete the active surplus-plan goals of a period; returns how many."""
    result = conn.execute(
        update(goals)
        .where(_active_plan_goals(user_id, period_key))
        .values(status="deleted", deleted_at=func.now())
    )
    return result.rowcount or 0


def create_goals_from_plan(
    conn: Connection,
    user_id: int,
    period_key: str,
    plan_id: str,
    allocation: PlanAllocation,
    language: str = "es",
) -> list[int]:
    created: list[int] = []
    for category in ALLOCATION_CATEGORIES:
        amount: Decimal = getattr(allocation, category)
        if amount <= ZERO:
            continue
        result = conn.execute(
            insert(goals).values(
                user_id=user_id,
                name=allocation_category_name(category, plan_id, language),
                target_amount=amount,
                current_amount=ZERO,
                period_key=period_key,
                plan_id=plan_id,
                category=category,
                source=SURPLUS_PLAN_SOURCE,
                status="active",
            )
        )
        created.append(result.inserted_primary_key[0])
    return created


def list_goals(conn: Connection, user_id: int, include_deleted: bool = False) -> list[dict]:
    stmt = select(goals).where(goals.c.user_id == user_id)
    if not include_deleted:
        stmt = stmt.where(or_(goals.c.status != "deleted", goals.c.status.is_(None)))
    rows = conn.execute(stmt.order_by(goals.c.id.asc())).mappings().all()
    return [dict(row) for row in rows]


def apply_surplus_plan(
    engine: Engine,
    user_id: int,
    period_key: str,
    plan_id: str,
    available: Decimal | int | float | str,
    *,
    language: str = "es",
    replace_existing: bool = True,
    on_goals_changed: Callable[[tuple[int, ...]], None] | None = None,
    plans: Mapping[str, PlanDefinition] = PLAN_DEFINITIONS,
) -> GoalCreationResult:
    """
    Turn a surplus into goals in two phases.

    The allocation is computed first without touching storage. Retiring the
    period's previous plan goals and creating the new ones then happen in a
    single transaction, so a storage failure leaves the prior goals exactly
    as they were. ``on_goals_changed`` is called with the new ids only after
    a successful commit.
    """
    plan_id = get_plan(plan_id, plans).id
    allocation = calculate_plan_allocations(available, plan_id, plans)
    if allocation.total <= ZERO:
        return GoalCreationResult(
            success=False,
            allocation=allocation,
            error=NO_SURPLUS_ERROR,
        )

    try:
        with engine.begin() as conn:
            retired = 0
            if has_plan_goals_for_period(conn, user_id, period_key):
                if not replace_existing:
                    return GoalCreationResult(
                        success=False,
                        allocation=allocation,
                        error=PLAN_EXISTS_ERROR,
                    )
                retired = retire_plan_goals_for_period(conn, user_id, period_key)
            created = create_goals_from_plan(
                conn, user_id, period_key, plan_id, allocation, language
            )
    except SQLAlchemyError:
        logger.exception(
            "Failed to apply surplus plan %s for user %s in %s; changes rolled back",
            plan_id,
            user_id,
            period_key,
        )
        return GoalCreationResult(
            success=False,
            allocation=allocation,
            error=STORAGE_ERROR,
        )

    created_ids = tuple(created)
    logger.info(
        "Applied surplus plan %s for user %s in %s: created %d goals, retired %d",
        plan_id,
        user_id,
        period_key,
        len(created_ids),
        retired,
    )
    if on_goals_changed is not None:
        on_goals_changed(created_ids)
    return GoalCreationResult(
        success=True,
        allocation=allocation,
        goals_created=created_ids,
        goals_retired=retired,
    )
