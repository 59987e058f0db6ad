"""
SolarExpert — ROI Calculation Engine
====================================
30-year ownership cash flow for a sized PV system.

  • Tariff grows with energy inflation (6 % a year).
  • Generation shrinks with silicon degradation (0.7 % a year).
  • All generation is monetised at that year's tariff (net-metering credits
    are assumed to be fully used).
  • Payback is interpolated inside the year the capital is recovered; a
    system that never pays back reports the full horizon (360 months).

Also hosts the loan simulator and the loss-scenario estimate used by the
results dashboard.
"""

from typing import Optional, Tuple

from models import (
    CostSource,
    FinancialProjection,
    FinancingResult,
    LossScenario,
    YearlyProjectionEntry,
)
from sizing import clamp_losses, performance_ratio

PROJECTION_YEARS          = 30
DAYS_PER_YEAR             = 365
INSTALLATION_COST_PER_KWP = 3500.00   # R$/kWp installed, market average
ENERGY_INFLATION_RATE     = 0.06      # 6 % a year
PANEL_DEGRADATION_RATE    = 0.007     # 0.7 % a year
KIT_MARKUP_FACTOR         = 1.45      # hardware kit → installed cost

DEFAULT_MONTHLY_INTEREST_PCT = 1.49
DEFAULT_LOAN_TERM_MONTHS     = 60


# ── Capital cost ──────────────────────────────────────────────────────────────

def resolve_cost_per_kwp(custom_cost_per_kwp: Optional[float]) -> Tuple[float, CostSource]:
    """A positive market override wins over the platform default."""
    if custom_cost_per_kwp is not None and custom_cost_per_kwp > 0:
        return float(custom_cost_per_kwp), CostSource.market
    return INSTALLATION_COST_PER_KWP, CostSource.default


def market_cost_per_kwp(kit_price_per_kwp: float, markup: float = KIT_MARKUP_FACTOR) -> Optional[float]:
    """Installed cost per kWp derived from a hardware kit price, or None."""
    if kit_price_per_kwp is None or kit_price_per_kwp <= 0:
        return None
    return kit_price_per_kwp * markup


# ── Cash-flow projection ──────────────────────────────────────────────────────

def project_cash_flow(
    system_size_kwp: float,
    hsp: float,
    pr: float,
    energy_tariff: float,
    total_investment: float,
    inflation_rate: float = ENERGY_INFLATION_RATE,
    degradation_rate: float = PANEL_DEGRADATION_RATE,
    years: int = PROJECTION_YEARS,
) -> FinancialProjection:
    """
    Year-by-year savings with payback detection.

    Payback month = ((Y − 1) + remaining_at_year_start / savings_Y) × 12 for
    the first year Y whose accumulated savings reach the investment. Years
    with zero savings never trigger payback.
    """
    current_tariff = energy_tariff
    current_generation = system_size_kwp * hsp * pr * DAYS_PER_YEAR

    entries = []
    accumulated = 0.0
    payback_months = None

    for year in range(1, years + 1):
        year_savings = current_generation * current_tariff
        previous_accumulated = accumulated
        accumulated += year_savings

        entries.append(YearlyProjectionEntry(
            year=year,
            generation_kwh=current_generation,
            tariff=current_tariff,
            yearly_savings=year_savings,
            accumulated_savings=accumulated,
        ))

        if payback_months is None and year_savings > 0 and accumulated >= total_investment:
            remaining = total_investment - previous_accumulated
            payback_months = ((year - 1) + remaining / year_savings) * 12

        current_tariff *= 1 + inflation_rate
        current_generation *= 1 - degradation_rate

    if payback_months is None:
        payback_months = float(years * 12)

    return FinancialProjection(entries=tuple(entries), payback_months=payback_months)


# ── Financing simulator ───────────────────────────────────────────────────────

def simulate_financing(
    total_investment: float,
    monthly_savings: float,
    monthly_interest_rate_pct: float = DEFAULT_MONTHLY_INTEREST_PCT,
    term_months: int = DEFAULT_LOAN_TERM_MONTHS,
) -> FinancingResult:
    """
    Fixed-payment (Price table) loan over the full investment:
    PMT = PV · i(1+i)ⁿ / ((1+i)ⁿ − 1), or PV / n without interest.
    """
    n = max(int(term_months), 1)
    i = monthly_interest_rate_pct / 100

    if i == 0:
        payment = total_investment / n
    else:
        growth = (1 + i) ** n
        payment = total_investment * (i * growth) / (growth - 1)

    total_financed = payment * n
    return FinancingResult(
        monthly_payment=payment,
        total_financed=total_financed,
        total_interest=total_financed - total_investment,
        monthly_cash_flow=monthly_savings - payment,
        monthly_interest_rate_pct=monthly_interest_rate_pct,
        term_months=n,
    )


# ── Generation scenario ───────────────────────────────────────────────────────

def simulate_loss_scenario(
    monthly_generation_kwh: float,
    current_pr: float,
    losses_pct: float,
) -> LossScenario:
    """Re-estimate monthly generation of a sized system for another loss %."""
    losses = clamp_losses(losses_pct)
    scenario_pr = performance_ratio(losses)
    if current_pr <= 0:
        return LossScenario(system_losses_pct=losses, performance_ratio=scenario_pr,
                            monthly_generation_kwh=0.0, difference_kwh=0.0)

    scenario_generation = monthly_generation_kwh / current_pr * scenario_pr
    return LossScenario(
        system_losses_pct=losses,
        performance_ratio=scenario_pr,
        monthly_generation_kwh=scenario_generation,
        difference_kwh=scenario_generation - monthly_generation_kwh,
    )
