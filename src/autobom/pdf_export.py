"""Paginated PDF rendering of a BOM with reportlab."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import KeepTogether, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import BOMResult
from .presenter import total_cost
from .settings import ProviderSettings

LOGGER = logging.getLogger(__name__)

HEADER_BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)
MARGIN = 14 * mm
COLUMN_WIDTHS = [25 * mm, 30 * mm, None, 15 * mm, 15 * mm, 20 * mm, 25 * mm]


def _styles() -> dict:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("BomTitle", parent=base["Title"], fontSize=18, textColor=HEADER_BLUE, alignment=0),
        "meta": ParagraphStyle("BomMeta", parent=base["Normal"], fontSize=11, leading=15),
        "cell": ParagraphStyle("BomCell", parent=base["Normal"], fontSize=8, leading=10),
        "total": ParagraphStyle("BomTotal", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=12),
        "footer": ParagraphStyle("BomFooter", parent=base["Normal"], fontSize=9, textColor=colors.Color(0.2, 0.2, 0.2)),
    }


def _draw_page_number(canv, doc) -> None:
    canv.saveState()
    canv.setFont("Helvetica", 8)
    canv.setFillColor(colors.Color(150 / 255, 150 / 255, 150 / 255))
    canv.drawString(MARGIN, 10 * mm, f"Page {doc.page}")
    canv.restoreState()


def _item_table(result: BOMResult, styles: dict, available_width: float) -> Table:
    currency = result.currency
    header = ["Category", "Item", "Description", "Qty", "Unit", f"Rate ({currency})", f"Amount ({currency})"]
    rows: List[list] = [header]
    for item in result.items:
        rows.append(
            [
                Paragraph(escape(item.category), styles["cell"]),
                Paragraph(escape(item.item), styles["cell"]),
                Paragraph(escape(item.description), styles["cell"]),
                f"{item.quantity:g}",
                item.unit,
                f"{item.rate:,.2f}",
                f"{item.amount:,.2f}",
            ]
        )

    fixed = sum(width for width in COLUMN_WIDTHS if width is not None)
    widths = [width if width is not None else max(20 * mm, available_width - fixed) for width in COLUMN_WIDTHS]
    table = Table(rows, colWidths=widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("ALIGN", (3, 1), (3, -1), "RIGHT"),
                ("ALIGN", (5, 1), (6, -1), "RIGHT"),
            ]
        )
    )
    return table


def _prepared_by(settings: ProviderSettings, styles: dict) -> KeepTogether:
    lines = [
        Spacer(1, 10 * mm),
        Table([[""]], colWidths=[182 * mm], style=[("LINEABOVE", (0, 0), (-1, 0), 0.5, colors.lightgrey)]),
        Paragraph("Prepared By:", styles["footer"]),
        Paragraph(f"<b>{escape(settings.business_name)}</b>", styles["footer"]),
    ]
    if settings.business_address:
        lines.append(Paragraph(escape(settings.business_address), styles["footer"]))
    if settings.business_contact:
        lines.append(Paragraph(f"Contact: {escape(settings.business_contact)}", styles["footer"]))
    return KeepTogether(lines)


def write_pdf(
    result: BOMResult,
    path: str | Path,
    settings: Optional[ProviderSettings] = None,
) -> Path:
    """Render ``result`` as a paginated PDF document at ``path``.

    An empty item list still produces a document with an empty table.
    """

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    styles = _styles()
    doc = SimpleDocTemplate(
        str(target),
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=20 * mm,
        title="Bill of Materials",
    )

    story: list = [Paragraph("BILL OF MATERIALS", styles["title"])]
    for label, value in result.metadata.fields():
        story.append(Paragraph(f"<b>{escape(label)}:</b> {escape(value)}", styles["meta"]))
    story.append(Spacer(1, 5 * mm))
    story.append(_item_table(result, styles, doc.width))
    story.append(Spacer(1, 8 * mm))
    story.append(Paragraph(f"Total Amount: {escape(result.currency)} {total_cost(result.items):,.2f}", styles["total"]))

    if settings is not None and settings.has_business_details():
        story.append(_prepared_by(settings, styles))

    doc.build(story, onFirstPage=_draw_page_number, onLaterPages=_draw_page_number)
    LOGGER.debug("Wrote BOM PDF with %d row(s) to %s", len(result.items), target)
    return target


__all__ = ["write_pdf"]
