from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Set, Tuple

from budget_core.budget_engine import ZERO, Transaction
from budget_core.date_utils import add_months, end_of_month, parse_local_date

WEEKLY_DAYS = 7
BIWEEKLY_DAYS = 14
SUPPORTED_FREQUENCIES = {"weekly", "biweekly", "monthly", "yearly"}


@dataclass(frozen=True)
class ProjectedEntry:
    date: date
    amount: Decimal
    transaction_id: str
    category: str
    description: str = ""


def project_recurring_expenses(
    transactions: Iterable[Transaction],
    range_start: date,
    range_end: date,
    existing_transactions: Iterable[Transaction] | None = None,
) -> List[ProjectedEntry]:
    """
    Occurrences of every recurring expense inside the range, ordered by date.

    A date that already has a recorded expense from the same template (same
    category and description) is not projected again, and neither is the
    template's own date. ``existing_transactions`` defaults to
    ``transactions``.
    """
    if range_start > range_end:
        raise ValueError("range_start must be on or before range_end.")

    transactions = list(transactions)
    existing_index = _index_existing_transactions(
        transactions if existing_transactions is None else existing_transactions,
        range_start,
    )

    projections: List[ProjectedEntry] = []
    for txn in transactions:
        if txn.type != "expense" or not txn.is_recurring or not txn.frequency:
            continue
        start_date = parse_local_date(txn.date, today=range_start)
        if start_date is None:
            continue
        excluded_dates = existing_index.get(_template_key(txn), set()) | {start_date}
        projections.extend(
            ProjectedEntry(
                date=occurrence,
                amount=txn.amount,
                transaction_id=txn.id,
                category=txn.category,
                description=txn.description,
            )
            for occurrence in occurrences_between(start_date, txn.frequency, range_start, range_end)
            if occurrence not in excluded_dates
        )
    projections.sort(key=lambda entry: entry.date)
    return projections


def pending_recurring_amount(
    transactions: Iterable[Transaction],
    today: date | None = None,
) -> Decimal:
    """Total of unrecorded recurring expenses due between today and the end of its month."""
    current = today or date.today()
    entries = project_recurring_expenses(transactions, current, end_of_month(current))
    return sum((entry.amount for entry in entries), ZERO)


def occurrences_between(
    start_date: date,
    frequency: str,
    range_start: date,
    range_end: date,
) -> List[date]:
    normalized_frequency = validate_frequency(frequency)
    occurrences: List[date] = []

    if normalized_frequency in {"monthly", "yearly"}:
        month_increment = 1 if normalized_frequency == "monthly" else 12
        current_date, month_offset = _first_by_months_on_or_after(
            start_date, range_start, month_increment
        )
        while current_date <= range_end:
            occurrences.append(current_date)
            month_offset += month_increment
            current_date = add_months(start_date, month_offset, start_date.day)
    else:
        interval = WEEKLY_DAYS if normalized_frequency == "weekly" else BIWEEKLY_DAYS
        current_date = _first_occurrence_on_or_after(start_date, range_start, interval)
        while current_date <= range_end:
            occurrences.append(current_date)
            current_date += timedelta(days=interval)

    return occurrences


def validate_frequency(frequency: str) -> str:
    normalized = _normalize_frequency(frequency)
    if normalized == "byweekly":
        normalized = "biweekly"
    if normalized not in SUPPORTED_FREQUENCIES:
        raise ValueError("Only weekly, biweekly, monthly, or yearly schedules are supported.")
    return normalized


def _normalize_frequency(value: str) -> str:
    return "".join(ch for ch in value.strip().lower() if ch.isalnum())


def _first_occurrence_on_or_after(
    start_date: date, minimum_date: date, interval_days: int
) -> date:
    if start_date >= minimum_date:
        return start_date
    days_between = (minimum_date - start_date).days
    intervals = (days_between + interval_days - 1) // interval_days
    return start_date + timedelta(days=interval_days * intervals)


def _first_by_months_on_or_after(
    start_date: date, minimum_date: date, month_increment: int
) -> tuple[date, int]:
    if start_date >= minimum_date:
        return start_date, 0
    months_between = (minimum_date.year - start_date.year) * 12 + (
        minimum_date.month - start_date.month
    )
    months_between -= months_between % month_increment
    candidate = add_months(start_date, months_between, start_date.day)
    if candidate < minimum_date:
        months_between += month_increment
        candidate = add_months(start_date, months_between, start_date.day)
    return candidate, months_between


def _template_key(txn: Transaction) -> Tuple[str, str]:
    return txn.category.strip().lower(), txn.description.strip().lower()


def _index_existing_transactions(
    existing_transactions: Iterable[Transaction], today: date
) -> Dict[Tuple[str, str], Set[date]]:
    index: Dict[Tuple[str, str], Set[date]] = {}
    for txn in existing_transactions:
        if txn.type != "expense":
            continue
        txn_date = parse_local_date(txn.date, today=today)
        if txn_date is None:
            continue
        index.setdefault(_template_key(txn), set()).add(txn_date)
    return index
