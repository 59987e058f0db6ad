"""
SolarExpert — Solar Irradiance Service
Fetches long-term average daily irradiance (≈ peak-sun-hours, HSP) for a
coordinate from the NASA POWER climatology endpoint.
Falls back to a latitude-band estimate when the API is unreachable.
"""

import logging
from typing import Optional, Tuple

import httpx

from config import NASA_POWER_TIMEOUT

logger = logging.getLogger(__name__)

POWER_CLIMATOLOGY_URL = "https://power.larc.nasa.gov/api/temporal/climatology/point"
POWER_PARAMETER = "ALLSKY_SFC_SW_DWN"
POWER_FILL_VALUE = -999.0

SOURCE_NASA_POWER = "nasa_power"
SOURCE_ESTIMATE   = "latitude_estimate"


async def fetch_irradiance_with_source(
    lat: float,
    lng: float,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[float, str]:
    """
    Annual average daily irradiance (kWh/m²/day) at (lat, lng) and where it
    came from.

    Primary: NASA POWER climatology, parameter ALLSKY_SFC_SW_DWN, key "ANN".
    Fallback: latitude-based estimate.
    """
    try:
        hsp = await _fetch_climatology(lat, lng, client)
        logger.info(f"NASA POWER climatology: {hsp:.3f} kWh/m²/d (lat={lat}, lng={lng})")
        return hsp, SOURCE_NASA_POWER
    except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"NASA POWER climatology failed ({e}), using estimate.")

    estimate = estimate_solar_irradiance(lat)
    logger.warning(f"Using latitude estimate: {estimate} kWh/m²/d")
    return estimate, SOURCE_ESTIMATE


async def fetch_solar_irradiance(
    lat: float,
    lng: float,
    client: Optional[httpx.AsyncClient] = None,
) -> float:
    hsp, _ = await fetch_irradiance_with_source(lat, lng, client)
    return hsp


async def _fetch_climatology(lat: float, lng: float, client: Optional[httpx.AsyncClient]) -> float:
    params = {
        "parameters": POWER_PARAMETER,
        "community": "RE",
        "longitude": round(lng, 4),
        "latitude": round(lat, 4),
        "format": "JSON",
    }
    if client is None:
        async with httpx.AsyncClient(timeout=NASA_POWER_TIMEOUT) as owned:
            resp = await owned.get(POWER_CLIMATOLOGY_URL, params=params)
    else:
        resp = await client.get(POWER_CLIMATOLOGY_URL, params=params)
    resp.raise_for_status()

    value = float(resp.json()["properties"]["parameter"][POWER_PARAMETER]["ANN"])
    if value <= 0 or value == POWER_FILL_VALUE:
        raise ValueError(f"no irradiance data (value={value})")
    return round(value, 3)


def estimate_solar_irradiance(lat: float) -> float:
    abs_lat = abs(lat)
    if abs_lat <= 15:   return 5.5    # Equatorial / tropical
    elif abs_lat <= 30: return 5.0    # Subtropical (most of Brazil)
    elif abs_lat <= 45: return 4.0    # Temperate
    elif abs_lat <= 60: return 2.5    # Subarctic
    else:               return 1.5    # Arctic
