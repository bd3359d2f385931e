import unittest
from datetime import date
from decimal import Decimal

from budget_core.budget_engine import Budget, Transaction
from budget_core.budget_suggestions import (
    category_display_name,
    generate_budget_suggestions,
    monthly_spending_history,
    round_up_suggestion,
)

TODAY = date(2024, 5, 20)


def expense(txn_id, amount, category, txn_date):
    return Transaction(id=txn_id, type="expense", amount=amount, date=txn_date, category=category)


def monthly_spending(category, amount, prefix="t"):
    return [
        expense(f"{prefix}1", amount, category, "2024-03-10"),
        expense(f"{prefix}2", amount, category, "2024-04-10"),
        expense(f"{prefix}3", amount, category, "2024-05-05"),
    ]


class BudgetSuggestionTests(unittest.TestCase):
    def test_reduce_and_savings_for_underused_budget(self) -> None:
        budget = Budget(id="b1", name="Comida", category="Food", limit=Decimal("1000"))

        suggestions = generate_budget_suggestions([budget], monthly_spending("Food", "400"), today=TODAY)

        self.assertEqual([item.type for item in suggestions], ["reduce", "savings"])
        reduce, savings = suggestions
        self.assertEqual(reduce.average_spent, Decimal("400"))
        self.assertEqual(reduce.suggested_amount, Decimal("500"))
        self.assertEqual(reduce.current_amount, Decimal("1000"))
        self.assertEqual(savings.current_amount, Decimal("600"))

    def test_yearly_budget_leftover_counts_whole_year(self) -> None:
        budget = Budget(id="b1", name="Comida", category="Food", limit="12000", period="yearly")

        suggestions = generate_budget_suggestions([budget], monthly_spending("Food", "400"), today=TODAY)

        savings = [item for item in suggestions if item.type == "savings"]
        self.assertEqual(savings[0].current_amount, Decimal("10800"))

    def test_increase_when_average_reaches_limit(self) -> None:
        budget = Budget(id="b1", name="Comida", category="Food", limit=Decimal("400"))

        suggestions = generate_budget_suggestions([budget], monthly_spending("Food", "400"), today=TODAY)

        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].type, "increase")
        self.assertEqual(suggestions[0].suggested_amount, Decimal("500"))

    def test_needs_two_months_of_history(self) -> None:
        budget = Budget(id="b1", name="Comida", category="Food", limit=Decimal("1000"))
        transactions = [expense("t1", "100", "Food", "2024-05-05")]

        self.assertEqual(generate_budget_suggestions([budget], transactions, today=TODAY), [])

    def test_create_for_material_unbudgeted_category(self) -> None:
        budget = Budget(id="b1", name="Comida", category="Food", limit=Decimal("400"))
        transactions = monthly_spending("Food", "400") + monthly_spending("travel", "500", "v")

        suggestions = generate_budget_suggestions(
            [budget], transactions, today=TODAY, category_names={"travel": "Viajes"}
        )

        create = [item for item in suggestions if item.type == "create"]
        self.assertEqual(len(create), 1)
        self.assertEqual(create[0].budget_id, "")
        self.assertEqual(create[0].budget_name, "Viajes")
        self.assertEqual(create[0].average_spent, Decimal("500"))
        self.assertEqual(create[0].suggested_amount, Decimal("600"))

    def test_ignores_spending_outside_window_and_caps_results(self) -> None:
        transactions = [expense("old", "5000", "Travel", "2024-01-10")]
        self.assertEqual(generate_budget_suggestions([], transactions, today=TODAY), [])

        budgets = [
            Budget(id=f"b{index}", name=f"Budget {index}", category=f"Cat{index}", limit=Decimal("1000"))
            for index in range(4)
        ]
        spending = []
        for index in range(4):
            spending.extend(monthly_spending(f"Cat{index}", "400", f"c{index}-"))

        suggestions = generate_budget_suggestions(budgets, spending, today=TODAY, limit=5)

        self.assertEqual(len(suggestions), 5)

    def test_history_drops_empty_months(self) -> None:
        items = [
            (txn, date.fromisoformat(txn.date))
            for txn in [expense("t1", "200", "Food", "2024-05-02"), expense("t2", "100", "Food", "2024-03-30")]
        ]

        self.assertEqual(
            monthly_spending_history("food", items, TODAY),
            [Decimal("200"), Decimal("100")],
        )

    def test_rounding_and_display_names(self) -> None:
        self.assertEqual(round_up_suggestion(Decimal("400")), Decimal("500"))
        self.assertEqual(round_up_suggestion(Decimal("1000")), Decimal("1100"))
        self.assertEqual(category_display_name("comida"), "Comida")
        self.assertEqual(category_display_name("cat-ABCDEFGHIJK1"), "cat-ABCDEFGHIJK1")


if __name__ == "__main__":
    unittest.main()
