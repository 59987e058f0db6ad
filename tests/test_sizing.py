import math
import unittest

from models import CalculationBasis
from panel_catalog import get_panel
from sizing import (
    clamp_losses,
    panels_fitting,
    performance_ratio,
    required_kwp,
    resolve_hsp,
    size_system,
)

P550 = get_panel("p550")


class TestSizingHelpers(unittest.TestCase):
    def test_losses_clamped(self):
        self.assertEqual(clamp_losses(-5), 0.0)
        self.assertEqual(clamp_losses(95), 90.0)
        self.assertEqual(clamp_losses(25), 25.0)

    def test_performance_ratio(self):
        self.assertAlmostEqual(performance_ratio(25), 0.75)
        self.assertAlmostEqual(performance_ratio(100), 0.10)
        self.assertAlmostEqual(performance_ratio(0), 1.0)

    def test_hsp_default(self):
        self.assertEqual(resolve_hsp(0), 4.5)
        self.assertEqual(resolve_hsp(5.3), 5.3)

    def test_required_kwp(self):
        self.assertAlmostEqual(required_kwp(450, 4.5, 0.75), 4.4444, places=4)

    def test_panels_fitting(self):
        self.assertEqual(panels_fitting(10, P550), 3)
        self.assertEqual(panels_fitting(0, P550), 0)
        self.assertEqual(panels_fitting(2.5, P550), 0)


class TestSizeSystem(unittest.TestCase):
    def test_consumption_mode_unconstrained(self):
        sizing = size_system(450, 0, 4.5, 0.75, P550)
        self.assertEqual(sizing.ideal_panel_count, 9)
        self.assertEqual(sizing.panel_count, 9)
        self.assertAlmostEqual(sizing.system_size_kwp, 4.95)
        self.assertAlmostEqual(sizing.area_occupied_m2, 23.4)
        self.assertFalse(sizing.is_partial_system)

    def test_consumption_mode_truncated_by_roof(self):
        sizing = size_system(450, 10, 4.5, 0.75, P550)
        self.assertEqual(sizing.ideal_panel_count, 9)
        self.assertEqual(sizing.panel_count, 3)
        self.assertAlmostEqual(sizing.system_size_kwp, 1.65)
        self.assertTrue(sizing.is_partial_system)

    def test_roof_large_enough_is_not_partial(self):
        sizing = size_system(450, 30, 4.5, 0.75, P550)
        self.assertEqual(sizing.panel_count, 9)
        self.assertFalse(sizing.is_partial_system)

    def test_area_mode_fills_roof(self):
        sizing = size_system(450, 50, 4.5, 0.75, P550, CalculationBasis.area)
        self.assertEqual(sizing.panel_count, 19)
        self.assertAlmostEqual(sizing.system_size_kwp, 10.45)
        self.assertLessEqual(sizing.area_occupied_m2, 50)
        self.assertFalse(sizing.is_partial_system)

    def test_area_mode_ignores_consumption(self):
        a = size_system(0, 50, 4.5, 0.75, P550, CalculationBasis.area)
        b = size_system(2000, 50, 4.5, 0.75, P550, CalculationBasis.area)
        self.assertEqual(a.panel_count, b.panel_count)

    def test_zero_consumption_gives_empty_system(self):
        sizing = size_system(0, 0, 4.5, 0.75, P550)
        self.assertEqual(sizing.panel_count, 0)
        self.assertEqual(sizing.system_size_kwp, 0)

    def test_growing_roof_never_loses_panels(self):
        areas = (5, 10, 15, 20, 23.3, 23.4, 30)
        for basis in (CalculationBasis.consumption, CalculationBasis.area):
            previous = None
            for area in areas:
                sizing = size_system(450, area, 4.5, 0.75, P550, basis)
                if previous is not None:
                    self.assertGreaterEqual(sizing.panel_count, previous.panel_count, (basis, area))
                if basis == CalculationBasis.consumption:
                    still_too_small = sizing.ideal_panel_count * P550.area_m2 > area
                    self.assertEqual(sizing.is_partial_system, still_too_small, area)
                previous = sizing

    def test_required_panels_formula(self):
        cases = [
            (100, 4.5, 25, "p450"),
            (300, 5.2, 20, "p550"),
            (450, 4.5, 25, "p550"),
            (780, 3.8, 15, "p575"),
            (1200, 6.1, 30, "p660"),
            (2500, 2.0, 90, "p450"),
        ]
        for consumption, hsp, losses, panel_id in cases:
            panel = get_panel(panel_id)
            pr = performance_ratio(losses)
            expected_kwp = (consumption / 30) / (hsp * pr)
            sizing = size_system(consumption, 0, hsp, pr, panel)
            self.assertAlmostEqual(sizing.required_kwp, expected_kwp)
            self.assertEqual(sizing.ideal_panel_count, math.ceil(expected_kwp / panel.power_kwp))
            self.assertEqual(sizing.panel_count, sizing.ideal_panel_count)
            self.assertGreaterEqual(sizing.system_size_kwp, expected_kwp - 1e-9)

    def test_zero_yield_is_unreachable(self):
        self.assertEqual(required_kwp(450, 0, 0.75), math.inf)
        sizing = size_system(450, 0, 5e-324, 0.1, P550)
        self.assertEqual(sizing.panel_count, 0)
        self.assertFalse(sizing.is_partial_system)

    def test_unreachable_consumption_fills_roof(self):
        sizing = size_system(1e308, 10, 0.1, 0.1, get_panel("p450"))
        self.assertEqual(sizing.panel_count, 4)
        self.assertTrue(sizing.is_partial_system)


if __name__ == "__main__":
    unittest.main()
