"""PDF invoices for paid checkout sessions and manual admin requests.

Layout coordinates below are expressed from the top-left corner of an A4
page (the way the invoice was designed) and flipped to reportlab's
bottom-left origin by ``_Page``.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import Any

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.core.config import Settings
from app.core.errors import InvalidInvoiceRequest, RenderIOError

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# item rows that fit above the totals block and the legal footer
ROWS_PER_PAGE = 8
ADDRESS_LINES = 3

GOLD = HexColor("#ca8a04")
ORANGE = HexColor("#ea580c")
CREAM = HexColor("#fffbeb")
PALE_YELLOW = HexColor("#fefce8")
GREY_BG = HexColor("#f9fafb")
GREY_BORDER = HexColor("#d1d5db")
TABLE_BORDER = HexColor("#e5e7eb")
TEXT = HexColor("#4b5563")
TEXT_DARK = HexColor("#374151")
BROWN = HexColor("#92400e")
LIGHT_GOLD = HexColor("#eab308")
FOOTER_TEXT = HexColor("#fef3c7")
WHITE = HexColor("#ffffff")


def money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"{value:.2f} €"


def _amount(value: Any, name: str) -> Decimal:
    try:
        parsed = Decimal(str(value))
    except ArithmeticError:
        parsed = Decimal("NaN")
    if not parsed.is_finite() or parsed < 0:
        raise InvalidInvoiceRequest(f"Invalid amount for {name}", field=name)
    return money(parsed)


@dataclass(frozen=True)
class InvoiceItem:
    description: str
    quantity: int
    unit_price: Decimal
    total: Decimal


@dataclass(frozen=True)
class InvoiceData:
    invoice_number: str
    customer_name: str
    customer_email: str
    customer_address: str
    items: list[InvoiceItem] = field(default_factory=list)
    date: str = ""

    @property
    def total_ht(self) -> Decimal:
        return money(sum((item.total for item in self.items), Decimal("0")))


@dataclass(frozen=True)
class RenderedInvoice:
    file_path: Path
    file_name: str
    invoice_number: str
    pages: int = 1


def generate_invoice_number(now: datetime | None = None) -> str:
    """``FAC-YYYYMM-<last 6 digits of the epoch in ms>``: time ordered, not globally unique."""
    now = now or datetime.now()
    millis = str(int(now.timestamp() * 1000))
    return f"FAC-{now:%Y%m}-{millis[-6:]}"


def format_date(now: datetime) -> str:
    return now.strftime("%d/%m/%Y")


def _format_address(address: dict[str, Any] | None) -> str:
    if not address:
        return ""
    city_line = f"{address.get('postal_code') or ''} {address.get('city') or ''}".strip()
    lines = [address.get("line1") or "", address.get("line2") or "", city_line, address.get("country") or ""]
    return "\n".join(line for line in lines if line)


def _address_lines(address: str) -> list[str]:
    """Fit a free-form address into the recipient box; overflow is joined onto the last line."""
    lines = [line.strip() for line in address.split("\n") if line.strip()] if address else []
    if len(lines) <= ADDRESS_LINES:
        return lines
    return lines[:ADDRESS_LINES - 1] + [", ".join(lines[ADDRESS_LINES - 1:])]


def invoice_from_session(session: dict[str, Any], now: datetime | None = None) -> InvoiceData:
    """Build invoice data from a paid checkout session; purchase intent comes from its metadata."""
    now = now or datetime.now()
    metadata = session.get("metadata") or {}
    details = session.get("customer_details") or {}
    total = money(Decimal(session.get("amount_total") or 0) / 100)

    if metadata.get("type") == "hourly":
        try:
            hours = int(metadata.get("hours") or 1)
        except (TypeError, ValueError):
            hours = 1
        hours = max(hours, 1)
        item = InvoiceItem(
            description=metadata.get("serviceName") or "Prestation horaire",
            quantity=hours,
            unit_price=money(total / hours),
            total=total,
        )
    else:
        item = InvoiceItem(
            description=metadata.get("planName") or "Abonnement",
            quantity=1,
            unit_price=total,
            total=total,
        )

    return InvoiceData(
        invoice_number=generate_invoice_number(now),
        customer_name=details.get("name") or "Client",
        customer_email=details.get("email") or session.get("customer_email") or "",
        customer_address=_format_address(details.get("address")),
        items=[item],
        date=format_date(now),
    )


def invoice_from_request(
    customer_email: str | None,
    items: list[dict[str, Any]],
    customer_name: str | None = None,
    customer_address: str | None = None,
    date: str | None = None,
    now: datetime | None = None,
) -> InvoiceData:
    if not customer_email or not items:
        raise InvalidInvoiceRequest("Missing invoice data", required=["customerEmail", "items"])

    now = now or datetime.now()
    lines = []
    for raw in items:
        try:
            quantity = int(raw["quantity"]) if raw.get("quantity") is not None else 1
        except (TypeError, ValueError):
            quantity = 0
        if quantity < 1:
            raise InvalidInvoiceRequest("Invalid quantity", field="quantity")
        unit_price = _amount(raw.get("unitPrice") or 0, "unitPrice")
        total = raw.get("total")
        lines.append(InvoiceItem(
            description=raw.get("description") or "",
            quantity=quantity,
            unit_price=unit_price,
            total=_amount(total, "total") if total else money(unit_price * quantity),
        ))

    return InvoiceData(
        invoice_number=generate_invoice_number(now),
        customer_name=customer_name or "Client",
        customer_email=customer_email,
        customer_address=customer_address or "",
        items=lines,
        date=date or format_date(now),
    )


class _Page:
    """Top-left-origin drawing helpers over a reportlab canvas."""

    def __init__(self, c: canvas.Canvas) -> None:
        self.c = c
        self.height = A4[1]

    def rect(self, x, top, w, h, fill=None, stroke=None, radius=0):
        c = self.c
        if fill is not None:
            c.setFillColor(fill)
        if stroke is not None:
            c.setStrokeColor(stroke)
        y = self.height - top - h
        if radius:
            c.roundRect(x, y, w, h, radius, stroke=int(stroke is not None), fill=int(fill is not None))
        else:
            c.rect(x, y, w, h, stroke=int(stroke is not None), fill=int(fill is not None))

    def text(self, x, top, value, font="Helvetica", size=9, color=TEXT, align="left", width=0):
        c = self.c
        c.setFont(font, size)
        c.setFillColor(color)
        y = self.height - top - size
        if align == "center":
            c.drawCentredString(x + width / 2, y, value)
        elif align == "right":
            c.drawRightString(x + width, y, value)
        else:
            c.drawString(x, y, value)

    def line(self, x1, top1, x2, top2, color):
        self.c.setStrokeColor(color)
        self.c.line(x1, self.height - top1, x2, self.height - top2)


class InvoiceRenderer:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.output_dir = Path(settings.invoice_dir)

    def render(self, data: InvoiceData) -> RenderedInvoice:
        file_name = f"facture_{data.invoice_number}.pdf"
        file_path = self.output_dir / file_name

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            c = canvas.Canvas(str(file_path), pagesize=A4, pageCompression=0)
            c.setTitle(f"Facture {data.invoice_number}")
            c.setAuthor(self.settings.issuer_name)
            pages = self._draw(c, data)
            c.save()
        except OSError as e:
            logger.error("Could not write invoice %s: %s", file_path, e)
            _remove(file_path)
            raise RenderIOError("Invoice generation failed", details=str(e)) from e

        logger.info("Rendered invoice %s (%d page(s))", data.invoice_number, pages,
                    extra={"invoice_number": data.invoice_number})
        return RenderedInvoice(file_path=file_path, file_name=file_name, invoice_number=data.invoice_number, pages=pages)

    # ---------------------------
    # layout
    # ---------------------------

    def _draw(self, c: canvas.Canvas, data: InvoiceData) -> int:
        chunks = [data.items[i:i + ROWS_PER_PAGE] for i in range(0, len(data.items), ROWS_PER_PAGE)] or [[]]
        for number, chunk in enumerate(chunks, start=1):
            page = _Page(c)
            self._draw_header(page, data)
            self._draw_parties(page, data)
            y = self._draw_items(page, chunk, (number - 1) * ROWS_PER_PAGE)
            if number == len(chunks):
                self._draw_totals(page, data, y)
            else:
                page.text(350, y, "Suite page suivante", font="Helvetica-Oblique", size=10,
                          align="right", width=195)
            self._draw_footer(page, number, len(chunks))
            c.showPage()
        return len(chunks)

    def _draw_header(self, page: _Page, data: InvoiceData) -> None:
        page.rect(0, 0, 595, 140, fill=CREAM)
        page.rect(0, 0, 595, 4, fill=GOLD)
        page.rect(0, 130, 595, 10, fill=GOLD)

        logo = self.settings.issuer_logo_path
        if logo and Path(logo).is_file():
            try:
                page.c.drawImage(logo, 150, page.height - 30 - 80, width=180, height=80,
                                 preserveAspectRatio=True, mask="auto")
            except (OSError, ValueError) as e:
                logger.warning("Could not load invoice logo %s: %s", logo, e)
        else:
            page.text(65, 55, self.settings.issuer_name, font="Helvetica-Bold", size=16, color=GOLD)

        page.rect(430, 35, 120, 60, fill=ORANGE, radius=6)
        page.text(435, 48, "FACTURE", font="Helvetica-Bold", size=18, color=WHITE, align="center", width=110)
        page.text(435, 72, f"N° {data.invoice_number}", size=9, color=WHITE, align="center", width=110)

    def _draw_parties(self, page: _Page, data: InvoiceData) -> None:
        s = self.settings

        page.rect(50, 160, 240, 115, fill=WHITE, stroke=GOLD, radius=6)
        page.text(65, 172, "ÉMETTEUR", font="Helvetica-Bold", size=11, color=GOLD)
        issuer_lines = [
            s.issuer_name,
            s.issuer_address,
            f"{s.issuer_postal_code} {s.issuer_city}",
            f"SIRET: {s.issuer_siret}",
            f"Email: {s.issuer_email or s.email_user}",
            f"Tél: {s.issuer_phone}",
        ]
        for i, line in enumerate(issuer_lines):
            page.text(65, 190 + i * 14, line)

        page.rect(310, 160, 235, 115, fill=GREY_BG, stroke=GREY_BORDER, radius=6)
        page.text(325, 172, "DESTINATAIRE", font="Helvetica-Bold", size=11, color=TEXT_DARK)
        page.text(325, 190, data.customer_name or "Client")
        page.text(325, 204, data.customer_email)
        for i, line in enumerate(_address_lines(data.customer_address)):
            page.text(325, 218 + i * 14, line)

        page.text(325, 260, "Date:", font="Helvetica-Bold", color=GOLD)
        page.text(360, 260, data.date)

    def _draw_items(self, page: _Page, items: list[InvoiceItem], first_index: int) -> float:
        table_top = 295
        page.rect(50, table_top, 495, 32, fill=GOLD)
        head = table_top + 11
        page.text(60, head, "DESCRIPTION", font="Helvetica-Bold", size=10, color=WHITE)
        page.text(320, head, "QTÉ", font="Helvetica-Bold", size=10, color=WHITE, align="center", width=50)
        page.text(370, head, "PRIX UNIT.", font="Helvetica-Bold", size=10, color=WHITE, align="center", width=70)
        page.text(450, head, "TOTAL", font="Helvetica-Bold", size=10, color=WHITE, align="right", width=85)

        y = table_top + 44
        for index, item in enumerate(items, start=first_index):
            page.rect(50, y - 6, 495, 28, fill=PALE_YELLOW if index % 2 == 0 else WHITE)
            page.text(60, y, item.description[:60], size=10, color=TEXT_DARK)
            page.text(320, y, str(item.quantity), size=10, color=TEXT_DARK, align="center", width=50)
            page.text(370, y, format_money(item.unit_price), size=10, color=TEXT_DARK, align="center", width=70)
            page.text(450, y, format_money(item.total), font="Helvetica-Bold", size=10, color=BROWN,
                      align="right", width=85)
            y += 28

        page.rect(50, table_top, 495, y - table_top + 5, stroke=TABLE_BORDER)
        return y + 25

    def _draw_totals(self, page: _Page, data: InvoiceData, y: float) -> None:
        total = format_money(data.total_ht)

        page.rect(350, y - 5, 195, 100, fill=PALE_YELLOW, stroke=GOLD, radius=6)
        page.text(365, y + 12, "Total HT", size=11)
        page.text(365, y + 12, total, size=11, align="right", width=165)
        page.text(365, y + 35, "TVA", size=11)
        page.text(365, y + 35, "Non applicable", size=11, align="right", width=165)
        page.line(360, y + 55, 535, y + 55, GOLD)

        page.rect(355, y + 62, 185, 30, fill=GOLD, radius=4)
        page.text(365, y + 70, "TOTAL TTC", font="Helvetica-Bold", size=14, color=WHITE)
        page.text(365, y + 70, total, font="Helvetica-Bold", size=14, color=WHITE, align="right", width=165)

    def _draw_footer(self, page: _Page, number: int = 1, total_pages: int = 1) -> None:
        s = self.settings
        footer_top = 700

        page.rect(50, footer_top, 495, 75, fill=PALE_YELLOW, stroke=LIGHT_GOLD, radius=4)
        page.text(65, footer_top + 12, "MENTIONS LÉGALES", font="Helvetica-Bold", size=9, color=BROWN)
        notices = [
            s.issuer_vat_notice,
            "Conditions de paiement : Paiement à réception",
            "En cas de retard de paiement, une pénalité de 3 fois le taux d'intérêt légal sera appliquée,",
            "ainsi qu'une indemnité forfaitaire de 40€ pour frais de recouvrement.",
        ]
        for top, line in zip((28, 42, 54, 64), notices):
            page.text(65, footer_top + top, line, size=8)

        page.rect(0, 790, 595, 52, fill=GOLD)
        page.text(50, 800, "Merci pour votre confiance !", font="Helvetica-Bold", size=9, color=WHITE,
                  align="center", width=495)
        page.text(50, 815, f"{s.issuer_name} • Micro-entreprise (EI) • SIRET: {s.issuer_siret}", size=8,
                  color=FOOTER_TEXT, align="center", width=495)
        if total_pages > 1:
            page.text(50, 828, f"Page {number}/{total_pages}", size=7, color=FOOTER_TEXT, align="right", width=495)


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error("Could not delete invoice %s: %s", path, e)


async def discard_invoice(path: Path, delay_seconds: float = 0) -> None:
    """Delete a streamed invoice once the response has had time to close the file."""
    if delay_seconds > 0:
        await asyncio.sleep(delay_seconds)
    _remove(path)
    logger.debug("Discarded invoice %s", path.name)
