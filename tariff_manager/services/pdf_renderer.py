"""
Rendu PDF des fiches tarifaires / Rate sheet PDF rendering (reportlab).
Dessine les pages déjà calculées par rate_sheet.paginate.
Draws the pages already laid out by rate_sheet.paginate.
"""

import io

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from tariff_manager.services.rate_sheet import FIRST_PAGE_HEADER_LINES, PageItem, RateSheet

MARGIN_X = 40
MARGIN_TOP = 40
MARGIN_BOTTOM = 60  # pied de page / footer band

# Abscisses des colonnes / Column x positions
COLUMN_X = (MARGIN_X, 120, 250, 380, 460)
CELL_PADDING = 6
MIN_CELL_FONT_SIZE = 6


def fit_cell(text: str, font: str, size: float, max_width: float) -> tuple[str, float]:
    """
    Adapter une cellule à sa colonne / Fit a cell into its column.
    Réduit la police jusqu'à MIN_CELL_FONT_SIZE puis tronque avec "..." en dernier recours.
    Shrinks the font down to MIN_CELL_FONT_SIZE, then truncates with "..." as a last resort.
    """
    while size > MIN_CELL_FONT_SIZE and stringWidth(text, font, size) > max_width:
        size -= 0.5
    if stringWidth(text, font, size) <= max_width:
        return text, size
    while text and stringWidth(text + "...", font, size) > max_width:
        text = text[:-1]
    return text.rstrip() + "...", size


class PdfRenderer:
    """Rendu A4 / A4 renderer."""

    def __init__(self, pagesize=A4):
        self.width, self.height = pagesize
        self.pagesize = pagesize

    def render(self, sheet: RateSheet) -> bytes:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=self.pagesize)
        c.setTitle(f"{sheet.title} {sheet.reference}")
        c.setAuthor(sheet.branding.company_name)
        step = (self.height - MARGIN_TOP - MARGIN_BOTTOM) / sheet.lines_per_page

        for number, items in enumerate(sheet.pages, 1):
            y = self.height - MARGIN_TOP
            if number == 1:
                self._draw_header(c, sheet, y, step)
                y -= FIRST_PAGE_HEADER_LINES * step
            for item in items:
                self._draw_item(c, item, y)
                y -= step
            self._draw_footer(c, sheet, number)
            c.showPage()

        c.save()
        return buf.getvalue()

    def _draw_header(self, c: canvas.Canvas, sheet: RateSheet, y: float, step: float) -> None:
        brand = sheet.branding
        c.setFont("Helvetica-Bold", 16)
        c.drawString(MARGIN_X, y, brand.company_name)
        c.setFont("Helvetica", 9)
        c.drawString(MARGIN_X, y - step, brand.tagline)
        c.drawRightString(self.width - MARGIN_X, y, brand.phone)
        c.drawRightString(self.width - MARGIN_X, y - step, brand.email)
        c.drawRightString(self.width - MARGIN_X, y - 2 * step, brand.website)
        c.drawString(MARGIN_X, y - 2 * step, brand.address)
        c.line(MARGIN_X, y - 3 * step, self.width - MARGIN_X, y - 3 * step)

        c.setFont("Helvetica-Bold", 14)
        c.drawCentredString(self.width / 2, y - 5 * step, sheet.title)
        c.setFont("Helvetica", 9)
        c.drawCentredString(self.width / 2, y - 6 * step, f"Reference: {sheet.reference}")

        client = sheet.client
        c.setFont("Helvetica-Bold", 10)
        c.drawString(MARGIN_X, y - 8 * step, "CLIENT DETAILS")
        c.setFont("Helvetica", 9)
        rows = [
            f"{client['company_name']} ({client['client_code']})",
            client.get("contact_person") or "",
            client.get("address") or "",
            " | ".join(v for v in (client.get("email"), client.get("phone")) if v),
        ]
        for offset, text in enumerate(rows, 9):
            c.drawString(MARGIN_X, y - offset * step, text)

        c.setFont("Helvetica-Bold", 10)
        c.drawString(
            MARGIN_X, y - 14 * step,
            f"Valid from {sheet.effective_date} to {sheet.valid_until}",
        )

    def _draw_item(self, c: canvas.Canvas, item: PageItem, y: float) -> None:
        if item.kind in ("section", "continued"):
            c.setFont("Helvetica-Bold", 10)
            c.drawString(MARGIN_X, y, item.text)
        elif item.kind in ("table_header", "row"):
            font = "Helvetica-Bold" if item.kind == "table_header" else "Helvetica"
            edges = COLUMN_X[1:] + (self.width - MARGIN_X + CELL_PADDING,)
            for x, right, cell in zip(COLUMN_X, edges, item.cells):
                text, size = fit_cell(str(cell), font, 9, right - x - CELL_PADDING)
                c.setFont(font, size)
                c.drawString(x, y, text)
        else:
            c.setFont("Helvetica", 8)
            c.drawString(MARGIN_X, y, item.text)

    def _draw_footer(self, c: canvas.Canvas, sheet: RateSheet, number: int) -> None:
        brand = sheet.branding
        c.line(MARGIN_X, MARGIN_BOTTOM - 10, self.width - MARGIN_X, MARGIN_BOTTOM - 10)
        c.setFont("Helvetica", 7)
        c.drawString(MARGIN_X, MARGIN_BOTTOM - 22, f"Generated: {sheet.generated_at}")
        if sheet.prepared_by:
            c.drawString(MARGIN_X, MARGIN_BOTTOM - 32, f"Prepared by: {sheet.prepared_by}")
        c.drawCentredString(
            self.width / 2, MARGIN_BOTTOM - 22,
            f"Reg: {brand.registration_number} | VAT: {brand.vat_number}",
        )
        c.drawRightString(self.width - MARGIN_X, MARGIN_BOTTOM - 22, f"Page {number} of {sheet.total_pages}")
