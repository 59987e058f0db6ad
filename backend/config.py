"""
SolarExpert — Runtime Configuration
Environment-driven settings, loaded once from `.env` when present.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


# ── Gemini ────────────────────────────────────────────────────────────────────
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL   = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

# ── HTTP surface ──────────────────────────────────────────────────────────────
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]

RATE_LIMIT_ENABLED   = _env_bool("RATE_LIMIT_ENABLED", True)
CALCULATE_RATE_LIMIT = os.getenv("CALCULATE_RATE_LIMIT", "120/minute")
LOOKUP_RATE_LIMIT    = os.getenv("LOOKUP_RATE_LIMIT", "10/minute")

# ── NASA POWER ────────────────────────────────────────────────────────────────
NASA_POWER_TIMEOUT = _env_float("NASA_POWER_TIMEOUT", 15.0)
