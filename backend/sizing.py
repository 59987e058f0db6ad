"""
SolarExpert — Sizing Engine
===========================
Closed-form PV sizing under two objectives:

  consumption  PFV (kWp) = C / (HSP × PR), rounded up to whole panels,
               then truncated to the roof when an area limit is given.
  area         as many whole panels as fit in the available area.

Reported capacity is always panel_count × panel kWp.
"""

import math

from models import CalculationBasis, PanelSpec, SystemSizing

DEFAULT_HSP        = 4.5     # kWh/m²/day, conservative Brazil average
MAX_LOSSES_PCT     = 90.0
DAYS_PER_MONTH     = 30


def clamp_losses(losses_pct: float) -> float:
    return min(max(float(losses_pct), 0.0), MAX_LOSSES_PCT)


def performance_ratio(losses_pct: float) -> float:
    """PR = (100 − loss%) / 100, loss clamped to [0, 90]."""
    return (100.0 - clamp_losses(losses_pct)) / 100.0


def resolve_hsp(hsp: float) -> float:
    return hsp if hsp > 0 else DEFAULT_HSP


def daily_consumption(monthly_consumption_kwh: float) -> float:
    return monthly_consumption_kwh / DAYS_PER_MONTH


def required_kwp(monthly_consumption_kwh: float, hsp: float, pr: float) -> float:
    yield_per_kwp = hsp * pr
    if yield_per_kwp <= 0:
        return math.inf
    return daily_consumption(monthly_consumption_kwh) / yield_per_kwp


def panels_fitting(available_area_m2: float, panel: PanelSpec) -> int:
    if available_area_m2 <= 0:
        return 0
    return max(0, math.floor(available_area_m2 / panel.area_m2))


def size_system(
    monthly_consumption_kwh: float,
    available_area_m2: float,
    hsp: float,
    pr: float,
    panel: PanelSpec,
    basis: CalculationBasis = CalculationBasis.consumption,
) -> SystemSizing:
    """
    Size the array for the given objective. `hsp` and `pr` must already be
    resolved (positive HSP, PR in [0.1, 1]).
    """
    kwp_needed = required_kwp(monthly_consumption_kwh, hsp, pr)
    panels_needed = kwp_needed / panel.power_kwp
    partial = False

    if basis == CalculationBasis.area:
        # The goal is to fill the roof, so the result is never "partial".
        final_count = panels_fitting(available_area_m2, panel)
        ideal_count = math.ceil(panels_needed) if math.isfinite(panels_needed) else final_count
    elif not math.isfinite(panels_needed):
        # Consumption unreachable at this yield: fill whatever roof there is.
        final_count = panels_fitting(available_area_m2, panel)
        ideal_count = final_count
        partial = available_area_m2 > 0
    else:
        ideal_count = math.ceil(panels_needed)
        final_count = ideal_count
        ideal_area = ideal_count * panel.area_m2
        if available_area_m2 > 0 and ideal_area > available_area_m2:
            final_count = panels_fitting(available_area_m2, panel)
            partial = True

    return SystemSizing(
        required_kwp=kwp_needed,
        ideal_panel_count=ideal_count,
        panel_count=final_count,
        system_size_kwp=final_count * panel.power_kwp,
        area_occupied_m2=final_count * panel.area_m2,
        is_partial_system=partial,
    )
