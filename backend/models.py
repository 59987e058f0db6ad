"""
SolarExpert — Pydantic Data Models
Core calculation records (frozen) plus the HTTP request/response bodies.
"""
import enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Raw form values: numbers, "4,5"-style strings, empty strings or null.
RawNumber = Union[float, str, None]

# Relative tolerance between a panel's stated footprint and width × height.
PANEL_AREA_TOLERANCE = 0.05


class CalculationBasis(str, enum.Enum):
    consumption = "consumption"   # cover the monthly consumption
    area        = "area"          # fill the available roof area


class CostSource(str, enum.Enum):
    default = "DEFAULT"
    market  = "MARKET"


# ── Panel catalog ─────────────────────────────────────────────────────────────

class PanelSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str = ""
    power_w: float = Field(..., gt=0)
    width_m: float = Field(..., gt=0)
    height_m: float = Field(..., gt=0)
    area_m2: float = Field(..., gt=0)

    @model_validator(mode="before")
    @classmethod
    def _derive_area(cls, data):
        if isinstance(data, dict) and data.get("area_m2") is None:
            try:
                data = {**data, "area_m2": round(float(data["width_m"]) * float(data["height_m"]), 2)}
            except (KeyError, TypeError, ValueError):
                pass
        return data

    @model_validator(mode="after")
    def _check_area(self):
        nominal = self.width_m * self.height_m
        if abs(self.area_m2 - nominal) > PANEL_AREA_TOLERANCE * nominal:
            raise ValueError(
                f"Panel {self.id}: area {self.area_m2} m² is inconsistent with "
                f"{self.width_m} m × {self.height_m} m"
            )
        return self

    @property
    def power_kwp(self) -> float:
        return self.power_w / 1000


# ── Consumption entry (tagged union) ──────────────────────────────────────────

class AverageConsumption(BaseModel):
    mode: Literal["average"] = "average"
    monthly_kwh: RawNumber = 0


class HistoryConsumption(BaseModel):
    mode: Literal["history"] = "history"
    months: List[RawNumber] = Field(default_factory=lambda: [""] * 12, max_length=12)


class DailyConsumption(BaseModel):
    mode: Literal["daily"] = "daily"
    daily_kwh: RawNumber = 0


ConsumptionEntry = Annotated[
    Union[AverageConsumption, HistoryConsumption, DailyConsumption],
    Field(discriminator="mode"),
]


# ── Core calculation records ──────────────────────────────────────────────────

class SizingInputs(BaseModel):
    """Normalized, immutable input snapshot of one calculation."""
    model_config = ConfigDict(frozen=True)

    monthly_consumption_kwh: float = Field(default=0.0, ge=0)
    energy_tariff: float = Field(default=0.0, ge=0)
    available_area_m2: float = Field(default=0.0, ge=0)     # 0 = unconstrained
    hsp: float = Field(default=4.5, ge=0)
    system_losses_pct: float = Field(default=25.0, ge=0)
    panel: PanelSpec
    calculation_basis: CalculationBasis = CalculationBasis.consumption
    custom_installation_cost_per_kwp: Optional[float] = Field(default=None, ge=0)


class SystemSizing(BaseModel):
    model_config = ConfigDict(frozen=True)

    required_kwp: float
    ideal_panel_count: int
    panel_count: int
    system_size_kwp: float
    area_occupied_m2: float
    is_partial_system: bool


class YearlyProjectionEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    generation_kwh: float
    tariff: float
    yearly_savings: float
    accumulated_savings: float


class FinancialProjection(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: Tuple[YearlyProjectionEntry, ...]
    payback_months: float


class SizingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Sizing
    system_size_kwp: float
    panel_count: int
    panel_power_used_w: float
    area_occupied_m2: float
    is_partial_system: bool

    # Generation
    daily_generation_kwh: float
    monthly_generation_kwh: float
    daily_consumption_kwh: float
    coverage_percentage: float

    # First-year finance
    monthly_savings: float
    annual_savings: float
    total_investment: float
    cost_per_kwp_used: float
    cost_source: CostSource
    payback_months: float

    # Echoes
    hsp_used: float
    system_losses_percentage: float
    performance_ratio: float

    financial_projection: Tuple[YearlyProjectionEntry, ...]


# ── Enrichment lookups ────────────────────────────────────────────────────────

class GroundingSource(BaseModel):
    title: str
    uri: str


class GeoSolarData(BaseModel):
    hsp: float
    address: str
    lat: float
    lng: float
    shade_analysis: str
    map_uri: Optional[str] = None


class MarketSolarData(BaseModel):
    average_panel_price: float
    average_kit_price_per_kwp: float
    analysis: str
    sources: List[GroundingSource] = Field(default_factory=list)


class PanelRecommendation(BaseModel):
    brand: str
    model: str
    power: float
    width: float
    height: float
    technology: str = ""


# ── Financing / scenarios ─────────────────────────────────────────────────────

class FinancingResult(BaseModel):
    monthly_payment: float
    total_financed: float
    total_interest: float
    monthly_cash_flow: float
    monthly_interest_rate_pct: float
    term_months: int


class LossScenario(BaseModel):
    system_losses_pct: float
    performance_ratio: float
    monthly_generation_kwh: float
    difference_kwh: float


# ── HTTP request / response bodies ────────────────────────────────────────────

class CalculationRequest(BaseModel):
    """
    Raw form state as typed by the user. Every numeric field tolerates
    comma decimals and empty values; coercion happens in `normalizer`.
    """
    consumption: ConsumptionEntry = Field(default_factory=AverageConsumption)
    calculation_basis: CalculationBasis = CalculationBasis.consumption
    energy_tariff: RawNumber = 0
    available_area: RawNumber = 0
    hsp: RawNumber = 4.5
    system_losses: RawNumber = 25
    selected_panel_id: str = "p550"
    custom_installation_cost: RawNumber = None


class ConsumptionRequest(BaseModel):
    consumption: ConsumptionEntry = Field(default_factory=AverageConsumption)


class ConsumptionResponse(BaseModel):
    monthly_consumption_kwh: float


class FinancingRequest(BaseModel):
    total_investment: float = Field(..., ge=0)
    monthly_savings: float = Field(default=0.0)
    monthly_interest_rate_pct: float = Field(default=1.49, ge=0, le=100)
    term_months: int = Field(default=60, ge=1, le=600)


class LossScenarioRequest(BaseModel):
    monthly_generation_kwh: float = Field(..., ge=0)
    performance_ratio: float = Field(..., ge=0, le=1)
    system_losses_pct: float = Field(default=25.0)


class ReportRequest(BaseModel):
    calculation: CalculationRequest = Field(default_factory=CalculationRequest)
    location: Optional[GeoSolarData] = None


class LocationLookupRequest(BaseModel):
    address: str


class LocationLookupResponse(GeoSolarData):
    shade_risk: Literal["HIGH", "MEDIUM", "LOW"]


class MarketLookupRequest(BaseModel):
    panel_power_w: float = Field(default=550.0, gt=0)


class MarketLookupResponse(MarketSolarData):
    found_price: bool
    installation_cost_per_kwp: Optional[float] = None


class IrradianceResponse(BaseModel):
    hsp: float
    lat: float
    lng: float
    source: str


class HealthResponse(BaseModel):
    status: str
    version: str
    services: dict
