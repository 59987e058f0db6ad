"""
SolarExpert — Gemini Enrichment Lookups
Optional AI-driven lookups that pre-fill the sizing form:

  • location  → HSP, coordinates and a shade-risk note (Google Maps grounding)
  • market    → kit price per kWp and panel price (Google Search grounding)
  • panels    → three current panel models (Google Search grounding)

The Gemini client is built explicitly (`SolarAIClient.from_settings`) and
passed in by the caller; nothing here holds a module-level client. The
calculator never depends on these lookups succeeding.
"""

import json
import logging
import re
from typing import Any, List, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from config import GEMINI_API_KEY, GEMINI_MODEL
from models import GeoSolarData, GroundingSource, MarketSolarData, PanelRecommendation
from sizing import DEFAULT_HSP
from solar_service import fetch_solar_irradiance

logger = logging.getLogger(__name__)

MAX_MARKET_SOURCES = 3
DEFAULT_SHADE_ANALYSIS = "Verify on site."
DEFAULT_MARKET_ANALYSIS = "Market analysis completed."

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class EnrichmentError(Exception):
    """An enrichment lookup failed; the message is safe to show to users."""


class SolarAIClient:
    """Thin wrapper around a `google.genai.Client` bound to one model."""

    def __init__(self, client: Any, model: str = GEMINI_MODEL):
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, api_key: str = GEMINI_API_KEY, model: str = GEMINI_MODEL) -> Optional["SolarAIClient"]:
        if not api_key:
            logger.info("GEMINI_API_KEY not set, AI lookups disabled.")
            return None
        return cls(genai.Client(api_key=api_key), model=model)

    async def generate(self, prompt: str, tool: types.Tool):
        return await self._client.aio.models.generate_content(
            model=self.model,
            contents=prompt,
            config=types.GenerateContentConfig(tools=[tool]),
        )


# ── Response parsing ──────────────────────────────────────────────────────────

def _strip_fences(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


def extract_json(text: str) -> dict:
    """First JSON object in a model reply, tolerating prose and fences."""
    match = _JSON_OBJECT.search(text or "")
    raw = match.group(0) if match else _strip_fences(text or "")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON from Gemini reply: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def extract_json_array(text: str) -> list:
    match = _JSON_ARRAY.search(text or "")
    raw = match.group(0) if match else _strip_fences(text or "")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse JSON array from Gemini reply: {e}")
        return []
    return data if isinstance(data, list) else []


def _number(value: Any, default: float = 0.0) -> float:
    """JS-style `Number(x) || default`: non-numeric, NaN and 0 give default."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number == 0:
        return default
    return number


def _grounding_chunks(response) -> list:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    metadata = getattr(candidates[0], "grounding_metadata", None)
    return list(getattr(metadata, "grounding_chunks", None) or [])


def _find_map_uri(chunks: list) -> str:
    for chunk in chunks:
        maps = getattr(chunk, "maps", None)
        if maps is not None and getattr(maps, "uri", None):
            return maps.uri
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web is not None else None
        if uri and "google.com/maps" in uri:
            return uri
    return ""


def _web_sources(chunks: list) -> List[GroundingSource]:
    sources: List[GroundingSource] = []
    seen = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None) if web is not None else None
        title = getattr(web, "title", None) if web is not None else None
        if not uri or not title or uri in seen:
            continue
        seen.add(uri)
        sources.append(GroundingSource(title=title, uri=uri))
    return sources[:MAX_MARKET_SOURCES]


# ── Location / irradiance ─────────────────────────────────────────────────────

def _location_prompt(address: str) -> str:
    return f"""I need to size a grid-tied photovoltaic system for the address: "{address}".

Step 1: Use Google Maps to find the exact latitude and longitude.
Step 2: For those coordinates, use your meteorological knowledge (reference: CRESESB
solar atlas for Brazil, or NASA POWER elsewhere) to give the annual average daily
global horizontal irradiation, expressed as peak-sun-hours (HSP).

Requirements:
- Be precise with the annual average (use conservative values when sources vary).
- Give a short shading-risk analysis based on the urban density of the area.

Reply STRICTLY with one JSON object (no markdown) in this format:
{{
  "hsp": number,
  "address": "full address found",
  "lat": number,
  "lng": number,
  "shade_analysis": "short text (e.g. 'Low risk, open area' or 'High risk, many buildings')"
}}"""


async def fetch_solar_data_by_location(ai: SolarAIClient, address: str) -> GeoSolarData:
    """
    Geocode `address` and estimate its HSP. Raises EnrichmentError on failure.

    When Gemini returns coordinates without a usable HSP, the NASA POWER
    climatology for those coordinates is used before the 4.5 default.
    """
    try:
        response = await ai.generate(_location_prompt(address), types.Tool(google_maps=types.GoogleMaps()))
        data = extract_json(getattr(response, "text", None) or "{}")

        lat = _number(data.get("lat"))
        lng = _number(data.get("lng"))

        map_uri = _find_map_uri(_grounding_chunks(response))
        if not map_uri and lat and lng:
            map_uri = f"https://www.google.com/maps/search/?api=1&query={lat},{lng}"

        hsp = _number(data.get("hsp"), default=0.0)
        if hsp <= 0 and lat and lng:
            hsp = await fetch_solar_irradiance(lat, lng)
        if hsp <= 0:
            hsp = DEFAULT_HSP

        result = GeoSolarData(
            hsp=hsp,
            address=data.get("address") or address,
            lat=lat,
            lng=lng,
            shade_analysis=data.get("shade_analysis") or DEFAULT_SHADE_ANALYSIS,
            map_uri=map_uri or None,
        )
        logger.info(f"Location lookup: hsp={result.hsp:.2f} lat={result.lat:.4f} lng={result.lng:.4f}")
        return result

    except Exception as e:
        logger.error(f"Solar location lookup failed for {address!r}: {e}")
        raise EnrichmentError("Could not obtain solar data for this location.") from e


_HIGH_RISK_WORDS = ("alto", "crítico", "muit", "edifícios", "high", "critical", "many", "buildings")
_MEDIUM_RISK_WORDS = ("médio", "moderado", "parcial", "algum", "medium", "moderate", "partial", "some")


def classify_shade_risk(analysis: str) -> str:
    lower = (analysis or "").lower()
    if any(word in lower for word in _HIGH_RISK_WORDS):
        return "HIGH"
    if any(word in lower for word in _MEDIUM_RISK_WORDS):
        return "MEDIUM"
    return "LOW"


# ── Market prices ─────────────────────────────────────────────────────────────

def _market_prompt(panel_power_w: float) -> str:
    return f"""Act as a solar energy estimator. Actively search for real retail prices of
"On-Grid Photovoltaic Solar Generator Kits" in Brazil, focusing on Intelbras and
similar brands (WEG, Canadian Solar).

Steps:
1. Search online stores (e.g. Loja Intelbras, official Mercado Livre stores, Aldo Solar,
   Neosolar) for complete kits (inverter + panels + mounting) between 3 kWp and 6 kWp.
2. Find the unit price of a ~{panel_power_w:.0f}W solar panel.
3. Compute the average HARDWARE kit price per kWp: kit price / kit power.
   Example: a R$ 10,000 kit of 4 kWp = R$ 2,500/kWp.

Reply STRICTLY with one JSON object:
{{
  "average_panel_price": number (module unit price in BRL),
  "kit_price_per_kwp": number (average hardware price per kWp found, BRL),
  "market_analysis": "Name the specific kit found and its total price."
}}"""


async def fetch_market_prices(ai: SolarAIClient, panel_power_w: float) -> MarketSolarData:
    """Search current kit prices. Raises EnrichmentError on failure."""
    try:
        response = await ai.generate(_market_prompt(panel_power_w), types.Tool(google_search=types.GoogleSearch()))
        data = extract_json(getattr(response, "text", None) or "{}")

        result = MarketSolarData(
            average_panel_price=_number(data.get("average_panel_price")),
            average_kit_price_per_kwp=_number(data.get("kit_price_per_kwp")),
            analysis=data.get("market_analysis") or DEFAULT_MARKET_ANALYSIS,
            sources=_web_sources(_grounding_chunks(response)),
        )
        logger.info(
            f"Market lookup: kit={result.average_kit_price_per_kwp:.2f}/kWp "
            f"panel={result.average_panel_price:.2f} sources={len(result.sources)}"
        )
        return result

    except Exception as e:
        logger.error(f"Market price lookup failed: {e}")
        raise EnrichmentError("Could not fetch up-to-date prices.") from e


# ── Panel recommendations ─────────────────────────────────────────────────────

_PANELS_PROMPT = """Search the web for the most recent (2024/2025) photovoltaic panel models
available in Brazil, prioritising Intelbras (On Grid line) and Tier 1 brands
(Canadian Solar, Jinko, Trina). Only modules above 500W.

Return a JSON ARRAY with exactly 3 distinct recommendations:
1. One Intelbras module (mandatory).
2. One high-power module (>550W) from another Tier 1 brand.
3. One cost-effective module from another Tier 1 brand.

Array format:
[
  {
    "brand": "Brand",
    "model": "Technical model (e.g. EMS 550 MB)",
    "power": number (watts only, e.g. 550),
    "width": number (metres, e.g. 1.13),
    "height": number (metres, e.g. 2.27),
    "technology": "e.g. Monocrystalline Half-Cell"
  }
]"""


async def fetch_recommended_panels(ai: SolarAIClient) -> List[PanelRecommendation]:
    """Informational only: any failure yields an empty list."""
    try:
        response = await ai.generate(_PANELS_PROMPT, types.Tool(google_search=types.GoogleSearch()))
        items = extract_json_array(getattr(response, "text", None) or "[]")
    except Exception as e:
        logger.warning(f"Panel recommendation lookup failed: {e}")
        return []

    panels: List[PanelRecommendation] = []
    for item in items:
        try:
            panels.append(PanelRecommendation.model_validate(item))
        except ValidationError:
            logger.debug(f"Skipping malformed panel recommendation: {item!r}")
    return panels
