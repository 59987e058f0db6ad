"""
SolarExpert — FastAPI Main Application
Residential PV sizing calculator with 30-year financial projection and
optional Gemini-powered location / market lookups.
"""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

import config
from calculator import calculate_solar_system
from llm_service import (
    EnrichmentError,
    SolarAIClient,
    classify_shade_risk,
    fetch_market_prices,
    fetch_recommended_panels,
    fetch_solar_data_by_location,
)
from models import (
    CalculationRequest,
    ConsumptionRequest,
    ConsumptionResponse,
    FinancingRequest,
    FinancingResult,
    HealthResponse,
    IrradianceResponse,
    LocationLookupRequest,
    LocationLookupResponse,
    LossScenario,
    LossScenarioRequest,
    MarketLookupRequest,
    MarketLookupResponse,
    PanelRecommendation,
    PanelSpec,
    ReportRequest,
    SizingResult,
)
from normalizer import build_sizing_inputs, resolve_monthly_consumption
from panel_catalog import PANEL_OPTIONS
from report_service import build_report_pdf
from roi import market_cost_per_kwp, simulate_financing, simulate_loss_scenario
from solar_service import fetch_irradiance_with_source

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)

VERSION = "1.0.0"
MIN_ADDRESS_LENGTH = 3

# ── Rate Limiter ──────────────────────────────────────────────────────────────
limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("✅ SolarExpert Backend starting up...")
    app.state.ai_client = SolarAIClient.from_settings()
    yield
    app.state.ai_client = None
    logger.info("🛑 SolarExpert Backend shutting down...")


# ── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="SolarExpert API",
    description="Residential photovoltaic sizing and financial projection",
    version=VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Dependencies ──────────────────────────────────────────────────────────────
def get_ai_client(request: Request) -> Optional[SolarAIClient]:
    return getattr(request.app.state, "ai_client", None)


def require_ai_client(ai: Optional[SolarAIClient] = Depends(get_ai_client)) -> SolarAIClient:
    if ai is None:
        raise HTTPException(
            status_code=503,
            detail="AI lookups are not configured. Enter the values manually.",
        )
    return ai


# ── Health Check ──────────────────────────────────────────────────────────────
@app.get("/api/health", response_model=HealthResponse, tags=["System"])
async def health_check(ai: Optional[SolarAIClient] = Depends(get_ai_client)):
    """Health check endpoint for load balancer / container probes."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        services={
            "calculator": "ready",
            "gemini": "configured" if ai is not None else "not_configured",
            "irradiance": "nasa_power",
        },
    )


# ── Catalogue ─────────────────────────────────────────────────────────────────
@app.get("/api/panels", response_model=List[PanelSpec], tags=["Calculator"])
async def list_panels():
    return list(PANEL_OPTIONS)


# ── Calculator ────────────────────────────────────────────────────────────────
@app.post("/api/consumption", response_model=ConsumptionResponse, tags=["Calculator"])
@limiter.limit(config.CALCULATE_RATE_LIMIT)
async def normalize_consumption(request: Request, body: ConsumptionRequest):
    """Resolve an average / 12-month history / daily entry to kWh per month."""
    return ConsumptionResponse(monthly_consumption_kwh=resolve_monthly_consumption(body.consumption))


@app.post("/api/calculate", response_model=SizingResult, tags=["Calculator"])
@limiter.limit(config.CALCULATE_RATE_LIMIT)
async def calculate(request: Request, body: CalculationRequest):
    """
    Size the PV system and project 30 years of savings.
    Never fails on numeric input: unparseable values count as zero.
    """
    inputs = build_sizing_inputs(body)
    logger.info(
        f"Calculating: consumption={inputs.monthly_consumption_kwh}kWh "
        f"basis={inputs.calculation_basis.value} panel={inputs.panel.id}"
    )
    return calculate_solar_system(inputs)


@app.post("/api/financing", response_model=FinancingResult, tags=["Calculator"])
@limiter.limit(config.CALCULATE_RATE_LIMIT)
async def financing(request: Request, body: FinancingRequest):
    return simulate_financing(
        total_investment=body.total_investment,
        monthly_savings=body.monthly_savings,
        monthly_interest_rate_pct=body.monthly_interest_rate_pct,
        term_months=body.term_months,
    )


@app.post("/api/scenario/losses", response_model=LossScenario, tags=["Calculator"])
@limiter.limit(config.CALCULATE_RATE_LIMIT)
async def loss_scenario(request: Request, body: LossScenarioRequest):
    return simulate_loss_scenario(
        monthly_generation_kwh=body.monthly_generation_kwh,
        current_pr=body.performance_ratio,
        losses_pct=body.system_losses_pct,
    )


@app.post("/api/report", tags=["Calculator"])
@limiter.limit(config.CALCULATE_RATE_LIMIT)
async def report(request: Request, body: ReportRequest):
    """Run the calculation and return it as a one-page PDF."""
    inputs = build_sizing_inputs(body.calculation)
    result = calculate_solar_system(inputs)
    pdf = build_report_pdf(inputs, result, body.location)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="solar-sizing-report.pdf"'},
    )


# ── Irradiance ────────────────────────────────────────────────────────────────
@app.get("/api/irradiance", response_model=IrradianceResponse, tags=["Data"])
@limiter.limit(config.LOOKUP_RATE_LIMIT)
async def irradiance(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
):
    """Annual average HSP at a coordinate from NASA POWER (latitude estimate on failure)."""
    hsp, source = await fetch_irradiance_with_source(lat, lng)
    return IrradianceResponse(hsp=hsp, lat=lat, lng=lng, source=source)


# ── AI Lookups ────────────────────────────────────────────────────────────────
@app.post("/api/lookup/location", response_model=LocationLookupResponse, tags=["AI"])
@limiter.limit(config.LOOKUP_RATE_LIMIT)
async def lookup_location(
    request: Request,
    body: LocationLookupRequest,
    ai: Optional[SolarAIClient] = Depends(get_ai_client),
):
    """Geocode an address and estimate HSP and shading with Gemini + Google Maps."""
    address = body.address.strip()
    if len(address) < MIN_ADDRESS_LENGTH:
        raise HTTPException(status_code=422, detail="Enter a valid address.")
    ai = require_ai_client(ai)

    logger.info(f"Location lookup for {address!r}")
    data = await fetch_solar_data_by_location(ai, address)
    return LocationLookupResponse(**data.model_dump(), shade_risk=classify_shade_risk(data.shade_analysis))


@app.post("/api/lookup/market", response_model=MarketLookupResponse, tags=["AI"])
@limiter.limit(config.LOOKUP_RATE_LIMIT)
async def lookup_market(
    request: Request,
    body: MarketLookupRequest,
    ai: SolarAIClient = Depends(require_ai_client),
):
    """
    Current kit prices via Gemini + Google Search. `installation_cost_per_kwp`
    (kit price × markup) is what the client sends back as `custom_installation_cost`.
    """
    data = await fetch_market_prices(ai, body.panel_power_w)
    cost = market_cost_per_kwp(data.average_kit_price_per_kwp)
    return MarketLookupResponse(
        **data.model_dump(),
        found_price=cost is not None,
        installation_cost_per_kwp=cost,
    )


@app.get("/api/lookup/panels", response_model=List[PanelRecommendation], tags=["AI"])
@limiter.limit(config.LOOKUP_RATE_LIMIT)
async def lookup_panels(request: Request, ai: SolarAIClient = Depends(require_ai_client)):
    return await fetch_recommended_panels(ai)


# ── Error Handlers ────────────────────────────────────────────────────────────
@app.exception_handler(EnrichmentError)
async def enrichment_exception_handler(request: Request, exc: EnrichmentError):
    return JSONResponse(
        status_code=502,
        content={"error": f"{exc} Enter the values manually.", "status_code": 502},
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error. Please try again.", "status_code": 500},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
