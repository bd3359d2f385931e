from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

from budget_core.budget_engine import ZERO, coerce_amount

CENT = Decimal("0.01")
ONE = Decimal("1")
ALLOCATION_CATEGORIES = ("savings", "goals", "personal")
SUPPORTED_LANGUAGES = {"es", "en"}


@dataclass(frozen=True)
class PlanDefinition:
    id: str
    savings: Decimal
    goals: Decimal
    personal: Decimal

    def __post_init__(self) -> None:
        for name in ALLOCATION_CATEGORIES:
            value = coerce_amount(getattr(self, name))
            if value < ZERO:
                raise ValueError(f"Plan {self.id} has a negative {name} share.")
            object.__setattr__(self, name, value)
        if self.savings + self.goals + self.personal != ONE:
            raise ValueError(f"Plan {self.id} percentages must sum to 1.")


@dataclass(frozen=True)
class PlanAllocation:
    savings: Decimal
    goals: Decimal
    personal: Decimal

    @property
    def total(self) -> Decimal:
        return self.savings + self.goals + self.personal


PLAN_DEFINITIONS: Mapping[str, PlanDefinition] = {
    plan.id: plan
    for plan in (
        PlanDefinition("conservative", Decimal("0.7"), Decimal("0.2"), Decimal("0.1")),
        PlanDefinition("balanced", Decimal("0.5"), Decimal("0.3"), Decimal("0.2")),
        PlanDefinition("aggressive", Decimal("0.3"), Decimal("0.4"), Decimal("0.3")),
        PlanDefinition("growth", Decimal("0.4"), Decimal("0.35"), Decimal("0.25")),
        PlanDefinition("secure", Decimal("0.6"), Decimal("0.25"), Decimal("0.15")),
    )
}

ALLOCATION_CATEGORY_NAMES: Mapping[str, Mapping[str, Mapping[str, str]]] = {
    "savings": {
        "conservative": {"es": "Ahorro de Emergencia", "en": "Emergency Savings"},
        "balanced": {"es": "Fondo de Ahorro", "en": "Savings Fund"},
        "aggressive": {"es": "Reserva Financiera", "en": "Financial Reserve"},
        "growth": {"es": "Fondo de Estabilidad", "en": "Stability Fund"},
        "secure": {"es": "Blindaje Financiero", "en": "Financial Shield"},
    },
    "goals": {
        "conservative": {"es": "Metas a Corto Plazo", "en": "Short-term Goals"},
        "balanced": {"es": "Objetivos Financieros", "en": "Financial Objectives"},
        "aggressive": {"es": "Metas Prioritarias", "en": "Priority Goals"},
        "growth": {"es": "Metas de Expansión", "en": "Expansion Goals"},
        "secure": {"es": "Metas Seguras", "en": "Safe Goals"},
    },
    "personal": {
        "conservative": {"es": "Desarrollo Personal", "en": "Personal Development"},
        "balanced": {"es": "Inversión Personal", "en": "Personal Investment"},
        "aggressive": {"es": "Inversión y Crecimiento", "en": "Investment & Growth"},
        "growth": {"es": "Estilo de Vida", "en": "Lifestyle"},
        "secure": {"es": "Ocio Controlado", "en": "Controlled Leisure"},
    },
}

GENERIC_CATEGORY_NAMES: Mapping[str, Mapping[str, str]] = {
    "savings": {"es": "Ahorro", "en": "Savings"},
    "goals": {"es": "Metas", "en": "Goals"},
    "personal": {"es": "Personal", "en": "Personal"},
}


def calculate_plan_allocations(
    available: Decimal | int | float | str,
    plan_id: str,
    plans: Mapping[str, PlanDefinition] = PLAN_DEFINITIONS,
) -> PlanAllocation:
    """
    Split a surplus into savings/goals/personal buckets.

    ``savings`` and ``goals`` are rounded to the cent on their own and
    ``personal`` takes the residual, so the three always add up to
    ``available`` exactly. Non-positive input gives an all-zero allocation.
    """
    plan = get_plan(plan_id, plans)
    amount = coerce_amount(available)
    if amount <= ZERO:
        return PlanAllocation(savings=ZERO, goals=ZERO, personal=ZERO)

    amount = _to_cents(amount)
    savings = _to_cents(amount * plan.savings)
    goals = _to_cents(amount * plan.goals)
    personal = amount - savings - goals

    # Both rounded buckets can round up on tiny amounts; give the cent back.
    if personal < ZERO:
        shortfall = -personal
        taken = min(goals, shortfall)
        goals -= taken
        savings -= shortfall - taken
        personal = ZERO

    return PlanAllocation(savings=savings, goals=goals, personal=personal)


def get_plan(plan_id: str, plans: Mapping[str, PlanDefinition] = PLAN_DEFINITIONS) -> PlanDefinition:
    normalized = plan_id.strip().lower()
    try:
        return plans[normalized]
    except KeyError as exc:
        raise ValueError(f"Unsupported plan: {plan_id}") from exc


def allocation_category_name(category: str, plan_id: str, language: str = "es") -> str:
    if category not in ALLOCATION_CATEGORIES:
        raise ValueError(f"Unsupported allocation category: {category}")
    normalized_language = language.strip().lower()
    if normalized_language not in SUPPORTED_LANGUAGES:
        normalized_language = "en"
    names = ALLOCATION_CATEGORY_NAMES[category].get(plan_id, GENERIC_CATEGORY_NAMES[category])
    return names[normalized_language]


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
