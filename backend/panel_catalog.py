"""
SolarExpert — Panel Catalog
Static panel models offered by the sizing form. Loaded once at import.
"""
from typing import Dict, List

from models import PanelSpec

DEFAULT_PANEL_ID = "p550"

PANEL_OPTIONS: List[PanelSpec] = [
    PanelSpec(id="p450", power_w=450, width_m=2.10, height_m=1.05, area_m2=2.2,
              label="450W - Standard (2.2m²)"),
    PanelSpec(id="p550", power_w=550, width_m=2.27, height_m=1.13, area_m2=2.6,
              label="550W - High Power (2.6m²)"),
    PanelSpec(id="p575", power_w=575, width_m=2.28, height_m=1.13, area_m2=2.65,
              label="575W - Bifacial TopCon (2.65m²)"),
    PanelSpec(id="p660", power_w=660, width_m=2.38, height_m=1.30, area_m2=3.1,
              label="660W - Ultra Large (3.1m²)"),
]

_BY_ID: Dict[str, PanelSpec] = {p.id: p for p in PANEL_OPTIONS}


def get_panel(panel_id: str) -> PanelSpec:
    """Return the panel for `panel_id`, falling back to the default model."""
    return _BY_ID.get(panel_id) or _BY_ID[DEFAULT_PANEL_ID]


def panel_ids() -> List[str]:
    return [p.id for p in PANEL_OPTIONS]
