# services/pdf_builder.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from services.errors import RenderError
from services.line_items import LineItem

MARGIN = 50
ROW_HEIGHT = 20
FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

# column x positions / widths (points), mirrors the web form layout
DESC_X, DESC_W = MARGIN, 240
QTY_X, QTY_W = 300, 50
PRICE_X, PRICE_W = 380, 70
TOTAL_X, TOTAL_W = 460, 85


@dataclass(frozen=True)
class InvoiceDocument:
    client_name: str
    invoice_date: date
    line_items: List[LineItem] = field(default_factory=list)
    grand_total: Decimal = Decimal("0.00")


def _fmt(v: Decimal) -> str:
    return f"{Decimal(v):.2f}"


def _fit(text: str, font: str, size: float, width: float) -> str:
    if stringWidth(text, font, size) <= width:
        return text
    ell = "..."
    while text and stringWidth(text + ell, font, size) > width:
        text = text[:-1]
    return text + ell


class _InvoiceCanvas:
    def __init__(self, buf: BytesIO, currency: str):
        self.c = canvas.Canvas(buf, pagesize=A4)
        self.width, self.height = A4
        self.currency = currency
        self.y = self.height - MARGIN

    def rule(self, y: float):
        self.c.line(MARGIN, y, self.width - MARGIN, y)

    def title(self, doc: InvoiceDocument):
        self.c.setFont(FONT_BOLD, 25)
        self.y -= 25
        self.c.drawCentredString(self.width / 2, self.y, "Invoice")
        self.y -= 35
        self.c.setFont(FONT, 12)
        self.c.drawString(MARGIN, self.y, _fit(f"Client Name: {doc.client_name}", FONT, 12, self.width - 2 * MARGIN))
        self.y -= 18
        self.c.drawString(MARGIN, self.y, f"Invoice Date: {doc.invoice_date.strftime('%a %b %d %Y')}")
        self.y -= 30

    def table_header(self):
        self.c.setFont(FONT_BOLD, 10)
        self.c.drawString(DESC_X, self.y, "Description")
        self.c.drawCentredString(QTY_X + QTY_W / 2, self.y, "Qty")
        self.c.drawRightString(PRICE_X + PRICE_W, self.y, f"Price ({self.currency})")
        self.c.drawRightString(TOTAL_X + TOTAL_W, self.y, f"Total ({self.currency})")
        self.rule(self.y - 8)
        self.y -= ROW_HEIGHT + 5

    def row(self, item: LineItem):
        if self.y < MARGIN + ROW_HEIGHT:
            self.c.showPage()
            self.y = self.height - MARGIN
            self.table_header()
        self.c.setFont(FONT, 10)
        self.c.drawString(DESC_X, self.y, _fit(item.description, FONT, 10, DESC_W))
        self.c.drawCentredString(QTY_X + QTY_W / 2, self.y, str(item.qty))
        self.c.drawRightString(PRICE_X + PRICE_W, self.y, _fmt(item.price))
        self.c.drawRightString(TOTAL_X + TOTAL_W, self.y, _fmt(item.total))
        self.y -= ROW_HEIGHT

    def grand_total(self, total: Decimal):
        if self.y < MARGIN + 2 * ROW_HEIGHT:
            self.c.showPage()
            self.y = self.height - MARGIN
        self.rule(self.y + ROW_HEIGHT / 2)
        self.y -= ROW_HEIGHT
        self.c.setFont(FONT_BOLD, 12)
        self.c.drawRightString(TOTAL_X + TOTAL_W, self.y, f"Grand Total: {self.currency}{_fmt(total)}")

    def save(self):
        self.c.showPage()
        self.c.save()


def render_invoice_pdf(doc: InvoiceDocument, currency: str = "Rs.") -> bytes:
    """
    Draw the invoice: title, client/date lines, the line-item table in the
    given order and a right-aligned grand total. Long tables continue on a
    new page with the header repeated.

    Any drawing failure is raised as RenderError.
    """
    buf = BytesIO()
    try:
        pdf = _InvoiceCanvas(buf, currency)
        pdf.title(doc)
        pdf.table_header()
        for item in doc.line_items:
            pdf.row(item)
        pdf.grand_total(doc.grand_total)
        pdf.save()
    except RenderError:
        raise
    except Exception as e:
        raise RenderError(f"Could not render invoice PDF: {e}") from e
    return buf.getvalue()
