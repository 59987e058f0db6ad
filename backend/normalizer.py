"""
SolarExpert — Input Normalizer
Coerces form values typed by the user into non-negative numbers and
resolves the three consumption entry modes to one monthly figure.

Invalid input never raises: it degrades to 0 so that half-typed forms
still produce a (zero-sized) result.
"""
import math
from typing import Iterable, Optional

from models import (
    AverageConsumption,
    CalculationRequest,
    DailyConsumption,
    HistoryConsumption,
    RawNumber,
    SizingInputs,
)
from panel_catalog import get_panel

AVERAGE_DAYS_PER_MONTH = 30.42


def parse_input(value: RawNumber) -> float:
    """'4,5' → 4.5, '' → 0.0, None → 0.0, 'abc' → 0.0, -3 → 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        text = value.strip().replace(",", ".", 1)
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def average_history(months: Iterable[RawNumber]) -> float:
    valid = [v for v in (parse_input(m) for m in months) if v > 0]
    if not valid:
        return 0.0
    return round(sum(valid) / len(valid), 2)


def project_daily(daily_kwh: RawNumber) -> float:
    return round(parse_input(daily_kwh) * AVERAGE_DAYS_PER_MONTH, 2)


def resolve_monthly_consumption(entry) -> float:
    """Collapse an average / history / daily entry into monthly kWh."""
    if isinstance(entry, HistoryConsumption):
        return average_history(entry.months)
    if isinstance(entry, DailyConsumption):
        return project_daily(entry.daily_kwh)
    if isinstance(entry, AverageConsumption):
        return parse_input(entry.monthly_kwh)
    return 0.0


def _optional_positive(value: RawNumber) -> Optional[float]:
    number = parse_input(value)
    return number if number > 0 else None


def build_sizing_inputs(request: CalculationRequest) -> SizingInputs:
    return SizingInputs(
        monthly_consumption_kwh=resolve_monthly_consumption(request.consumption),
        energy_tariff=parse_input(request.energy_tariff),
        available_area_m2=parse_input(request.available_area),
        hsp=parse_input(request.hsp),
        system_losses_pct=parse_input(request.system_losses),
        panel=get_panel(request.selected_panel_id),
        calculation_basis=request.calculation_basis,
        custom_installation_cost_per_kwp=_optional_positive(request.custom_installation_cost),
    )
