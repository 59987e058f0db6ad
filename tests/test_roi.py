import unittest

from models import CostSource
from roi import (
    INSTALLATION_COST_PER_KWP,
    PROJECTION_YEARS,
    market_cost_per_kwp,
    project_cash_flow,
    resolve_cost_per_kwp,
    simulate_financing,
    simulate_loss_scenario,
)


class TestCostResolution(unittest.TestCase):
    def test_default_cost(self):
        self.assertEqual(resolve_cost_per_kwp(None), (INSTALLATION_COST_PER_KWP, CostSource.default))
        self.assertEqual(resolve_cost_per_kwp(0), (INSTALLATION_COST_PER_KWP, CostSource.default))

    def test_market_override(self):
        self.assertEqual(resolve_cost_per_kwp(4060), (4060.0, CostSource.market))

    def test_market_markup(self):
        self.assertAlmostEqual(market_cost_per_kwp(2800), 4060.0)
        self.assertIsNone(market_cost_per_kwp(0))


class TestCashFlow(unittest.TestCase):
    def setUp(self):
        self.projection = project_cash_flow(
            system_size_kwp=4.95, hsp=4.5, pr=0.75,
            energy_tariff=0.90, total_investment=4.95 * 3500,
        )

    def test_thirty_entries(self):
        entries = self.projection.entries
        self.assertEqual(len(entries), PROJECTION_YEARS)
        self.assertEqual([e.year for e in entries], list(range(1, 31)))

    def test_first_year(self):
        first = self.projection.entries[0]
        self.assertAlmostEqual(first.generation_kwh, 4.95 * 4.5 * 0.75 * 365)
        self.assertAlmostEqual(first.tariff, 0.90)
        self.assertAlmostEqual(first.yearly_savings, first.generation_kwh * 0.90)

    def test_inflation_and_degradation(self):
        e1, e2 = self.projection.entries[0], self.projection.entries[1]
        self.assertAlmostEqual(e2.tariff, e1.tariff * 1.06)
        self.assertAlmostEqual(e2.generation_kwh, e1.generation_kwh * 0.993)

    def test_accumulated_is_monotonic(self):
        accumulated = [e.accumulated_savings for e in self.projection.entries]
        self.assertEqual(accumulated, sorted(accumulated))
        self.assertAlmostEqual(
            accumulated[-1], sum(e.yearly_savings for e in self.projection.entries), places=6,
        )

    def test_payback_interpolated_in_third_year(self):
        self.assertGreater(self.projection.payback_months, 35.5)
        self.assertLess(self.projection.payback_months, 36.0)

    def test_never_paid_back_reports_horizon(self):
        projection = project_cash_flow(4.95, 4.5, 0.75, energy_tariff=0, total_investment=17325)
        self.assertEqual(projection.payback_months, 360.0)

    def test_zero_size_never_pays_back(self):
        projection = project_cash_flow(0, 4.5, 0.75, energy_tariff=0.9, total_investment=0)
        self.assertEqual(projection.payback_months, 360.0)

    def test_free_system_pays_back_immediately(self):
        projection = project_cash_flow(4.95, 4.5, 0.75, energy_tariff=0.9, total_investment=0)
        self.assertLess(projection.payback_months, 12)


class TestFinancing(unittest.TestCase):
    def test_price_table_payment(self):
        result = simulate_financing(17325, monthly_savings=450)
        i, n = 0.0149, 60
        expected = 17325 * i * (1 + i) ** n / ((1 + i) ** n - 1)
        self.assertAlmostEqual(result.monthly_payment, expected)
        self.assertAlmostEqual(result.total_financed, expected * n)
        self.assertGreater(result.total_interest, 0)
        self.assertAlmostEqual(result.monthly_cash_flow, 450 - expected)
        self.assertEqual(result.term_months, 60)

    def test_zero_interest(self):
        result = simulate_financing(12000, monthly_savings=100, monthly_interest_rate_pct=0, term_months=48)
        self.assertAlmostEqual(result.monthly_payment, 250.0)
        self.assertAlmostEqual(result.total_interest, 0.0)

    def test_non_positive_term_is_one_month(self):
        result = simulate_financing(1000, monthly_savings=0, monthly_interest_rate_pct=0, term_months=0)
        self.assertEqual(result.term_months, 1)
        self.assertAlmostEqual(result.monthly_payment, 1000.0)


class TestLossScenario(unittest.TestCase):
    def test_lower_losses_raise_generation(self):
        scenario = simulate_loss_scenario(501.1875, current_pr=0.75, losses_pct=15)
        self.assertAlmostEqual(scenario.performance_ratio, 0.85)
        self.assertAlmostEqual(scenario.monthly_generation_kwh, 568.0125)
        self.assertAlmostEqual(scenario.difference_kwh, 66.825)

    def test_same_losses_no_difference(self):
        scenario = simulate_loss_scenario(501.1875, current_pr=0.75, losses_pct=25)
        self.assertAlmostEqual(scenario.difference_kwh, 0.0)

    def test_losses_clamped(self):
        scenario = simulate_loss_scenario(100, current_pr=0.75, losses_pct=150)
        self.assertEqual(scenario.system_losses_pct, 90.0)

    def test_zero_pr_gives_zero(self):
        scenario = simulate_loss_scenario(100, current_pr=0, losses_pct=20)
        self.assertEqual(scenario.monthly_generation_kwh, 0.0)
        self.assertEqual(scenario.difference_kwh, 0.0)


if __name__ == "__main__":
    unittest.main()
