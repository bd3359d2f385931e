import unittest
from datetime import date
from decimal import Decimal

from budget_core.budget_engine import Budget, Transaction
from budget_core.period_reconciler import reconcile_period

TODAY = date(2024, 5, 20)


def sample_transactions():
    return [
        Transaction(id="t1", type="expense", amount="2500", date="2024-05-03", category="Food", description="Supermarket"),
        Transaction(id="t2", type="expense", amount="800", date="2024-05-10", category="Restaurant", description="Dinner"),
        Transaction(id="t3", type="expense", amount="300", date="2024-05-12", category="Entertainment", description="Netflix"),
        Transaction(id="t4", type="income", amount="42000", date="2024-05-01", category="Salary"),
        Transaction(id="t5", type="expense", amount="1000", date="2024-04-30", category="Food"),
    ]


class ReconcilePeriodTests(unittest.TestCase):
    def test_splits_period_expenses_into_budgeted_and_unbudgeted(self) -> None:
        budgets = [Budget(id="b1", name="Comida", category="Food", limit=Decimal("10000"))]

        data = reconcile_period(budgets, sample_transactions(), year=2024, month=5, today=TODAY)

        self.assertEqual(data.period, "2024-05")
        self.assertEqual(data.budget_total, Decimal("10000"))
        self.assertEqual(data.budget_items_count, 1)
        self.assertEqual([txn.id for txn in data.budgeted_expenses], ["t1", "t2"])
        self.assertEqual([txn.id for txn in data.unbudgeted_expenses], ["t3"])
        self.assertEqual(data.spent_budgeted, Decimal("3300"))
        self.assertEqual(data.spent_unbudgeted, Decimal("300"))
        self.assertEqual(data.total_spent, Decimal("3600"))
        self.assertEqual(data.remaining, Decimal("6700"))
        self.assertEqual(data.remaining_percentage, Decimal("33"))
        self.assertEqual(data.income_total, Decimal("42000"))
        self.assertEqual(data.income_surplus, Decimal("32000"))
        self.assertFalse(data.has_income_budget_gap)

        spending = data.budget_spending[0]
        self.assertEqual(spending.spent, Decimal("3300"))
        self.assertEqual(spending.remaining, Decimal("6700"))
        self.assertEqual(spending.usage_percentage, Decimal("33"))

    def test_every_period_expense_lands_in_exactly_one_bucket(self) -> None:
        budgets = [
            Budget(id="b1", name="Comida", category="Food", limit="10000"),
            Budget(id="b2", name="Ocio", category="Entertainment", limit="1500"),
        ]

        data = reconcile_period(budgets, sample_transactions(), year=2024, month=5, today=TODAY)

        budgeted_ids = {txn.id for txn in data.budgeted_expenses}
        unbudgeted_ids = {txn.id for txn in data.unbudgeted_expenses}
        self.assertEqual(budgeted_ids | unbudgeted_ids, {"t1", "t2", "t3"})
        self.assertFalse(budgeted_ids & unbudgeted_ids)
        self.assertEqual(data.spent_budgeted + data.spent_unbudgeted, data.total_spent)
        self.assertEqual(data.spent_unbudgeted, Decimal("0"))

    def test_inactive_and_other_period_budgets_are_excluded(self) -> None:
        budgets = [
            Budget(id="b1", name="Transporte", category="Transport", limit="3000", is_active=False),
            Budget(id="b2", name="Seguro", category="Insurance", limit="12000", period="yearly"),
            Budget(id="b3", name="Comida", category="Food", limit="5000"),
        ]
        transactions = [
            Transaction(id="t1", type="expense", amount="600", date="2024-05-04", category="Transport", description="Uber"),
        ]

        data = reconcile_period(budgets, transactions, year=2024, month=5, today=TODAY)

        self.assertEqual(data.budget_total, Decimal("5000"))
        self.assertEqual(data.budget_items_count, 1)
        self.assertEqual([txn.id for txn in data.unbudgeted_expenses], ["t1"])

    def test_yearly_period_uses_whole_year(self) -> None:
        budgets = [Budget(id="b1", name="Comida", category="Food", limit="60000", period="yearly")]

        data = reconcile_period(budgets, sample_transactions(), year=2024, period="yearly", today=TODAY)

        self.assertEqual(data.period, "2024")
        self.assertEqual(data.spent_budgeted, Decimal("4300"))

    def test_income_override_and_budget_gap(self) -> None:
        budgets = [Budget(id="b1", name="Comida", category="Food", limit="10000")]

        data = reconcile_period(
            budgets, sample_transactions(), year=2024, month=5, income_total="8000", today=TODAY
        )

        self.assertEqual(data.income_total, Decimal("8000"))
        self.assertEqual(data.income_surplus, Decimal("-2000"))
        self.assertTrue(data.has_income_budget_gap)

    def test_without_budgets_everything_is_unbudgeted(self) -> None:
        data = reconcile_period([], sample_transactions(), year=2024, month=5, today=TODAY)

        self.assertEqual(data.budget_total, Decimal("0"))
        self.assertEqual(data.remaining_percentage, Decimal("0"))
        self.assertEqual(data.spent_unbudgeted, Decimal("3600"))
        self.assertEqual(data.budget_spending, ())

    def test_defaults_to_current_month_and_skips_bad_dates(self) -> None:
        transactions = sample_transactions() + [
            Transaction(id="bad", type="expense", amount="99", date="someday", category="Food"),
        ]

        with self.assertLogs("budget_core.date_utils", level="WARNING"):
            data = reconcile_period([], transactions, today=TODAY)

        self.assertEqual(data.period, "2024-05")
        self.assertEqual(data.total_spent, Decimal("3600"))

    def test_uncovered_category_stays_unbudgeted(self) -> None:
        budgets = [
            Budget(id="b1", name="Food", category="Food", limit="5000"),
            Budget(id="b2", name="Transport", category="Transport", limit="2000"),
        ]
        transactions = [
            Transaction(id="t1", type="expense", amount="1000", date="2024-05-02", category="Food"),
            Transaction(id="t2", type="expense", amount="500", date="2024-05-03", category="Transport"),
            Transaction(id="t3", type="expense", amount="800", date="2024-05-04", category="Entertainment"),
            Transaction(id="t4", type="income", amount="10000", date="2024-05-01", category="Salary"),
        ]

        data = reconcile_period(budgets, transactions, year=2024, month=5, today=TODAY)

        self.assertEqual(data.budget_total, Decimal("7000"))
        self.assertEqual(data.spent_budgeted, Decimal("1500"))
        self.assertEqual(data.spent_unbudgeted, Decimal("800"))
        self.assertEqual(data.remaining, Decimal("5500"))
        self.assertEqual(data.income_total, Decimal("10000"))

    def test_keywords_of_budget_name_cover_other_categories(self) -> None:
        budgets = [Budget(id="b1", name="comida", category="Comida", limit="3000")]
        transactions = [
            Transaction(
                id="t1",
                type="expense",
                amount="500",
                date="2024-05-02",
                category="Dining",
                description="Restaurant dinner",
            ),
            Transaction(id="t2", type="expense", amount="300", date="2024-05-03", category="Food"),
        ]

        data = reconcile_period(budgets, transactions, year=2024, month=5, today=TODAY)

        self.assertEqual(data.spent_budgeted, Decimal("800"))
        self.assertEqual(data.spent_unbudgeted, Decimal("0"))

    def test_inactive_budget_leaves_its_category_uncovered(self) -> None:
        budgets = [
            Budget(id="b1", name="Food", category="Food", limit="2000"),
            Budget(id="b2", name="Transport", category="Transport", limit="1000", is_active=False),
        ]
        transactions = [
            Transaction(id="t1", type="expense", amount="500", date="2024-05-02", category="Food"),
            Transaction(id="t2", type="expense", amount="300", date="2024-05-03", category="Transport"),
        ]

        data = reconcile_period(budgets, transactions, year=2024, month=5, today=TODAY)

        self.assertEqual(data.budget_total, Decimal("2000"))
        self.assertEqual(data.spent_budgeted, Decimal("500"))
        self.assertEqual(data.spent_unbudgeted, Decimal("300"))

    def test_rejects_invalid_month(self) -> None:
        with self.assertRaises(ValueError):
            reconcile_period([], [], year=2024, month=13, today=TODAY)
        with self.assertRaises(ValueError):
            reconcile_period([], [], year=2024, month=0, today=TODAY)

    def test_months_are_one_based(self) -> None:
        data = reconcile_period([], sample_transactions(), year=2024, month=4, today=TODAY)

        self.assertEqual(data.period, "2024-04")
        self.assertEqual(data.total_spent, Decimal("1000"))


if __name__ == "__main__":
    unittest.main()
