"""
SolarExpert — Solar System Calculator
Pure entry point: SizingInputs → SizingResult. No I/O, no shared state;
identical inputs always give identical results.
"""

import logging

from models import SizingInputs, SizingResult
from roi import project_cash_flow, resolve_cost_per_kwp
from sizing import (
    clamp_losses,
    daily_consumption,
    performance_ratio,
    resolve_hsp,
    size_system,
    DAYS_PER_MONTH,
)

logger = logging.getLogger(__name__)


def calculate_solar_system(inputs: SizingInputs) -> SizingResult:
    """
    Size the array, project 30 years of savings and assemble the result.

    Degenerate inputs (zero consumption, area or tariff) give a zero-sized
    or zero-savings result rather than an error.
    """
    panel = inputs.panel
    hsp = resolve_hsp(inputs.hsp)
    losses = clamp_losses(inputs.system_losses_pct)
    pr = performance_ratio(losses)

    sizing = size_system(
        monthly_consumption_kwh=inputs.monthly_consumption_kwh,
        available_area_m2=inputs.available_area_m2,
        hsp=hsp,
        pr=pr,
        panel=panel,
        basis=inputs.calculation_basis,
    )

    daily_generation = sizing.system_size_kwp * hsp * pr
    monthly_generation = daily_generation * DAYS_PER_MONTH
    consumption = inputs.monthly_consumption_kwh
    coverage = monthly_generation / consumption * 100 if consumption > 0 else 0.0

    cost_per_kwp, cost_source = resolve_cost_per_kwp(inputs.custom_installation_cost_per_kwp)
    total_investment = sizing.system_size_kwp * cost_per_kwp

    projection = project_cash_flow(
        system_size_kwp=sizing.system_size_kwp,
        hsp=hsp,
        pr=pr,
        energy_tariff=inputs.energy_tariff,
        total_investment=total_investment,
    )

    monthly_savings = monthly_generation * inputs.energy_tariff

    logger.debug(
        f"Sized {sizing.panel_count}×{panel.power_w:.0f}W = {sizing.system_size_kwp:.2f}kWp "
        f"basis={inputs.calculation_basis.value} partial={sizing.is_partial_system} "
        f"payback={projection.payback_months:.1f}mo"
    )

    return SizingResult(
        system_size_kwp=sizing.system_size_kwp,
        panel_count=sizing.panel_count,
        panel_power_used_w=panel.power_w,
        area_occupied_m2=sizing.area_occupied_m2,
        is_partial_system=sizing.is_partial_system,
        daily_generation_kwh=daily_generation,
        monthly_generation_kwh=monthly_generation,
        daily_consumption_kwh=daily_consumption(consumption),
        coverage_percentage=coverage,
        monthly_savings=monthly_savings,
        annual_savings=monthly_savings * 12,
        total_investment=total_investment,
        cost_per_kwp_used=cost_per_kwp,
        cost_source=cost_source,
        payback_months=projection.payback_months,
        hsp_used=hsp,
        system_losses_percentage=losses,
        performance_ratio=pr,
        financial_projection=projection.entries,
    )
