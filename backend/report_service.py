"""
SolarExpert — PDF Report
One-page sizing report rendered with reportlab platypus:
project parameters, technical sizing, financial viability and a
condensed 30-year projection.
"""

import logging
from datetime import date
from io import BytesIO
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models import CalculationBasis, CostSource, GeoSolarData, SizingInputs, SizingResult
from roi import ENERGY_INFLATION_RATE, PANEL_DEGRADATION_RATE

logger = logging.getLogger(__name__)

PRIMARY = colors.HexColor("#0B2E4A")
BORDER  = colors.HexColor("#D7DCE3")
SOFT    = colors.HexColor("#F5F7FA")
OK      = colors.HexColor("#1B7F3A")

PROJECTION_YEARS_SHOWN = (1, 5, 10, 15, 20, 25, 30)


def _money(value: float) -> str:
    return f"R$ {value:,.2f}"


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="ReportTitle", parent=styles["Title"],
        fontName="Helvetica-Bold", fontSize=16, textColor=PRIMARY, spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        name="Section", parent=styles["Heading2"],
        fontName="Helvetica-Bold", fontSize=11, leading=13,
        textColor=PRIMARY, spaceBefore=8, spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        name="Small", parent=styles["BodyText"],
        fontSize=8, leading=10, textColor=colors.grey,
    ))
    return styles


def _key_value_table(rows):
    table = Table(rows, colWidths=[70 * mm, 100 * mm])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("BACKGROUND", (0, 0), (-1, -1), SOFT),
        ("BOX", (0, 0), (-1, -1), 0.5, BORDER),
        ("INNERGRID", (0, 0), (-1, -1), 0.25, BORDER),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return table


def _projection_table(result: SizingResult):
    rows = [["Year", "Generation (kWh)", "Tariff (R$/kWh)", "Savings", "Accumulated"]]
    for entry in result.financial_projection:
        if entry.year not in PROJECTION_YEARS_SHOWN:
            continue
        rows.append([
            str(entry.year),
            f"{entry.generation_kwh:,.0f}",
            f"{entry.tariff:.2f}",
            _money(entry.yearly_savings),
            _money(entry.accumulated_savings),
        ])

    table = Table(rows, colWidths=[18 * mm, 36 * mm, 32 * mm, 40 * mm, 44 * mm])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, SOFT]),
        ("BOX", (0, 0), (-1, -1), 0.5, BORDER),
        ("INNERGRID", (0, 0), (-1, -1), 0.25, BORDER),
    ]))
    return table


def financial_rows(result: SizingResult):
    """First-year savings match `annual_savings` (monthly savings × 12)."""
    accumulated = result.financial_projection[-1].accumulated_savings if result.financial_projection else 0.0
    cost_note = "market price" if result.cost_source == CostSource.market else "platform default"
    return [
        ["Total investment", f"{_money(result.total_investment)} ({_money(result.cost_per_kwp_used)}/kWp, {cost_note})"],
        ["First-year savings", _money(result.annual_savings)],
        ["Payback", f"{result.payback_months / 12:.1f} years"],
        ["30-year accumulated savings", _money(accumulated)],
    ]


def build_report_pdf(
    inputs: SizingInputs,
    result: SizingResult,
    location: Optional[GeoSolarData] = None,
) -> bytes:
    """Render the sizing report and return the PDF bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title="Solar Sizing Report",
    )
    styles = _styles()
    elements = []

    elements.append(Paragraph("Photovoltaic Sizing Report", styles["ReportTitle"]))
    elements.append(Paragraph(f"Generated on {date.today().isoformat()}", styles["Small"]))
    elements.append(Spacer(1, 4 * mm))

    # ── Project parameters ────────────────────────────────────────────────────
    basis = "Available area" if inputs.calculation_basis == CalculationBasis.area else "Consumption"
    params = [
        ["Sizing objective", basis],
        ["Monthly consumption", f"{inputs.monthly_consumption_kwh:,.2f} kWh"],
        ["Energy tariff", f"R$ {inputs.energy_tariff:.2f} / kWh"],
        ["Available area", f"{inputs.available_area_m2:,.2f} m²" if inputs.available_area_m2 > 0 else "Not limited"],
        ["Peak sun hours (HSP)", f"{result.hsp_used:.2f} h/day"],
        ["System losses", f"{result.system_losses_percentage:.0f} % (PR {result.performance_ratio:.2f})"],
        ["Panel model", inputs.panel.label or inputs.panel.id],
    ]
    if location is not None:
        params.insert(0, ["Address", Paragraph(escape(location.address), styles["BodyText"])])
        params.append(["Shading", Paragraph(escape(location.shade_analysis), styles["BodyText"])])
    elements.append(Paragraph("Project parameters", styles["Section"]))
    elements.append(_key_value_table(params))

    # ── Technical sizing ──────────────────────────────────────────────────────
    sizing = [
        ["System size", f"{result.system_size_kwp:.2f} kWp"],
        ["Panels", f"{result.panel_count} × {result.panel_power_used_w:.0f} W"],
        ["Area occupied", f"{result.area_occupied_m2:.2f} m²"],
        ["Monthly generation", f"{result.monthly_generation_kwh:,.2f} kWh"],
        ["Consumption coverage", f"{result.coverage_percentage:.1f} %"],
    ]
    elements.append(Paragraph("Technical sizing", styles["Section"]))
    elements.append(_key_value_table(sizing))
    if result.is_partial_system:
        elements.append(Spacer(1, 2 * mm))
        elements.append(Paragraph(
            '<font color="#F9A825">Partial system: the available area limits '
            "the array below the consumption target.</font>",
            styles["BodyText"],
        ))

    # ── Financial viability ───────────────────────────────────────────────────
    elements.append(Paragraph("Financial viability", styles["Section"]))
    table = _key_value_table(financial_rows(result))
    table.setStyle(TableStyle([("TEXTCOLOR", (1, 3), (1, 3), OK)]))
    elements.append(table)

    elements.append(Paragraph("30-year projection", styles["Section"]))
    elements.append(_projection_table(result))

    elements.append(Spacer(1, 6 * mm))
    elements.append(Paragraph(
        f"Assumes energy inflation of {ENERGY_INFLATION_RATE * 100:.0f} % a year and panel "
        f"degradation of {PANEL_DEGRADATION_RATE * 100:.1f} % a year. Estimates only; "
        f"confirm with an on-site survey.",
        styles["Small"],
    ))

    doc.build(elements)
    logger.info(f"Report rendered: {result.system_size_kwp:.2f} kWp, {len(buffer.getvalue())} bytes")
    return buffer.getvalue()
