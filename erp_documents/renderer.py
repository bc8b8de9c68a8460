"""
Commercial document PDF renderer built on the reportlab canvas.

Sales documents (quotes, invoices, credit notes, delivery notes) and
purchase documents (orders, receptions, supplier invoices, returns) share
one layout; the kind only changes labels, the info blocks and the table
columns.
"""

import base64
import logging
import os
from io import BytesIO

from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from . import layout
from .amounts import amount_to_words_fr, currency_name, format_amount, format_percent
from .config import get_settings
from .exceptions import RenderError
from .kinds import DocumentKind, classify, status_label
from .layout import (CELL_PADDING, CLIENT_BOX_W, CLIENT_BOX_X, CONTENT_W, FOOTER_Y,
                     HEADER_HEIGHT, LINE_HEIGHT, MARGIN_X, MAX_CONTENT_Y, NOTE_LINE_H,
                     PAGE_W, TOTALS_LINE_H, TOTALS_W, TOTALS_X, WORDS_LINE_H)
from .text import clean_notes, product_text, wrap_text
from .totals import line_amounts, resolve_totals, totals_rows

logger = logging.getLogger(__name__)

# ─── FONTS ───
FONT_REGULAR = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
MIN_FONT_SIZE = 6


def register_fonts(font_dir):
    """Register DejaVuSans from ``font_dir``; fall back to Helvetica."""
    if not font_dir:
        return FONT_REGULAR, FONT_BOLD
    regular = os.path.join(font_dir, "DejaVuSans.ttf")
    bold = os.path.join(font_dir, "DejaVuSans-Bold.ttf")
    try:
        pdfmetrics.getFont("DejaVuSans")
        return "DejaVuSans", "DejaVuSans-Bold"
    except KeyError:
        pass
    if not (os.path.exists(regular) and os.path.exists(bold)):
        logger.warning("DejaVuSans fonts not found in %s, using Helvetica", font_dir)
        return FONT_REGULAR, FONT_BOLD
    pdfmetrics.registerFont(TTFont("DejaVuSans", regular))
    pdfmetrics.registerFont(TTFont("DejaVuSans-Bold", bold))
    return "DejaVuSans", "DejaVuSans-Bold"


# ─── COLOR PALETTE ───
BLACK = HexColor("#000000")
WHITE = HexColor("#FFFFFF")
BLUE = HexColor("#2F5FFF")
RED = HexColor("#FF0000")
HEADER_BG = HexColor("#F4F6FB")
CLIENT_BG = HexColor("#EEF4FF")
TABLE_HEAD_BG = HexColor("#E8F1FF")
ALT_ROW_BG = HexColor("#FCFCFC")
TOTALS_BG = HexColor("#F5F6FB")
RULE = HexColor("#DCDCDC")
MUTED = HexColor("#666666")
PAGE_NUMBER = HexColor("#646464")
WATERMARK = HexColor("#B4B4B4")
ALERT_BG = HexColor("#FFF7ED")
ALERT_BORDER = HexColor("#F97316")
ALERT_TEXT = HexColor("#C2410C")

W, H = A4  # 595.27 x 841.89

WATERMARK_STATUSES = ("BROUILLON", "ANNULEE")


def format_date(value, default=""):
    return value.strftime("%d/%m/%Y") if value else default


def format_quantity(value):
    return f"{value.normalize():f}"


def load_image(source):
    """Open a base64 data URI or a file path; ``None`` if it cannot be read."""
    if not source:
        return None
    try:
        if source.startswith("data:"):
            _, _, payload = source.partition(",")
            return ImageReader(BytesIO(base64.b64decode(payload)))
        return ImageReader(source)
    except Exception as e:
        logger.error("Error loading image %s: %s", source[:40], e)
        return None


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page decoration until the page count is known."""

    def __init__(self, *args, decorate=None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self._decorate = decorate

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for number, state in enumerate(self._saved_page_states, 1):
            self.__dict__.update(state)
            if self._decorate:
                self._decorate(self, number, page_count)
            super().showPage()
        super().save()


class CommercialDocumentPdf:
    def __init__(self, document, company, kind=None, settings=None, with_stamp=True):
        self.settings = settings or get_settings()
        self.kind = kind or classify(document.document_type)
        if "currency" not in document.model_fields_set:
            document = document.model_copy(
                update={"currency": self.settings.document.default_currency})
        self.document = resolve_totals(document, self.kind, self.settings.tax)
        self.company = company
        self.with_stamp = with_stamp
        self.title = document.document_type or self.kind.heading
        self.columns = layout.columns_for(self.kind)
        self.font, self.font_bold = register_fonts(self.settings.render.font_dir)
        self.c = None
        self.page_num = 1

    # ─── DRAWING PRIMITIVES (mm, from the top of the page) ───

    def draw_rect(self, x, y, w, h, fill=None, stroke=None, stroke_w=0.3, radius=0):
        self.c.saveState()
        if fill:
            self.c.setFillColor(fill)
        if stroke:
            self.c.setStrokeColor(stroke)
            self.c.setLineWidth(stroke_w)
        bottom = H - (y + h) * mm
        if radius > 0:
            self.c.roundRect(x * mm, bottom, w * mm, h * mm, radius * mm,
                             fill=1 if fill else 0, stroke=1 if stroke else 0)
        else:
            self.c.rect(x * mm, bottom, w * mm, h * mm,
                        fill=1 if fill else 0, stroke=1 if stroke else 0)
        self.c.restoreState()

    def draw_line(self, x1, y1, x2, y2, color=RULE, width=0.5):
        self.c.saveState()
        self.c.setStrokeColor(color)
        self.c.setLineWidth(width)
        self.c.line(x1 * mm, H - y1 * mm, x2 * mm, H - y2 * mm)
        self.c.restoreState()

    def draw_circle(self, x, y, r, fill=None):
        self.c.saveState()
        if fill:
            self.c.setFillColor(fill)
        self.c.circle(x * mm, H - y * mm, r * mm, fill=1 if fill else 0, stroke=0)
        self.c.restoreState()

    def draw_text(self, text, x, y, font=None, size=9, color=BLACK, align="left"):
        self.c.saveState()
        self.c.setFont(font or self.font, size)
        self.c.setFillColor(color)
        if align == "center":
            self.c.drawCentredString(x * mm, H - y * mm, text)
        elif align == "right":
            self.c.drawRightString(x * mm, H - y * mm, text)
        else:
            self.c.drawString(x * mm, H - y * mm, text)
        self.c.restoreState()

    def text_width(self, text, font=None, size=9):
        """Width in mm."""
        return pdfmetrics.stringWidth(text, font or self.font, size) / mm

    def fit_size(self, text, width, font=None, size=9):
        """Largest font size, down to 6, at which ``text`` fits ``width`` mm."""
        while size > MIN_FONT_SIZE and self.text_width(text, font, size) > width:
            size -= 0.5
        return size

    def wrap(self, text, width, font=None, size=9):
        return wrap_text(text, width * mm, font or self.font, size)

    def draw_image(self, source, x, y, max_w, max_h):
        """Draw an image scaled into the box; returns the bottom y, or None."""
        image = load_image(source)
        if image is None:
            return None
        try:
            img_w, img_h = image.getSize()
            w, h = layout.fit_within(img_w, img_h, max_w, max_h)
            self.c.drawImage(image, x * mm, H - (y + h) * mm, w * mm, h * mm, mask="auto")
        except Exception as e:
            logger.error("Error drawing image on %s: %s", self.document.numero, e)
            return None
        return y + h

    # ─── PAGE SECTIONS ───

    def draw_header(self):
        """Company band: logo left, identity right."""
        self.draw_rect(10, 10, 190, 32, fill=HEADER_BG, radius=4)
        self.draw_image(self.company.logo, 15, 13, 45, 22)

        right_x = 70
        top_y = 15
        header = self.company.header
        self.draw_text(self.company.name, right_x, top_y, self.font_bold, 11)
        if self.company.address.street:
            self.draw_text(self.company.address.street, right_x, top_y + 5)

        if header and (header.phone or header.email):
            contact = [
                f"Tél : {header.phone}" if header.phone else "",
                f"Email : {header.email}" if header.email else "",
                f"Web : {header.website}" if header.website else "",
            ]
            self.draw_text("  |  ".join(p for p in contact if p), right_x, top_y + 10)

        if header and header.tax_id:
            self.draw_text(f"Matricule : {header.tax_id}", right_x, top_y + 15)

        return 10 + 32 + 4

    def draw_title(self):
        y = 10 + 32 + 8
        self.draw_text(self.title, MARGIN_X, y, self.font_bold, 16, BLUE)
        return y + 8

    def draw_field(self, label, value, x, y, bold=False):
        """A label with its value printed 6 mm below."""
        self.draw_text(label, x, y)
        self.draw_text(value, x, y + 6, self.font_bold if bold else None)

    def draw_info_blocks(self, start_y):
        """Number, kind-specific dates/places, and the client/supplier box."""
        doc = self.document
        kind = self.kind
        col1_x = 12
        col2_x = 75
        status = status_label(doc.status)

        self.draw_text(kind.number_label, col1_x, start_y + 4)
        self.draw_text(doc.numero, col1_x, start_y + 10, self.font_bold, 9, BLUE)

        if kind is DocumentKind.INVOICE:
            if doc.date_validite:
                self.draw_field("Date échéance", format_date(doc.date_validite),
                                col1_x, start_y + 17)
        elif kind is DocumentKind.CREDIT_NOTE:
            self.draw_field("Date avoir", format_date(doc.date_doc), col1_x, start_y + 17)
            if doc.external_reference:
                label = "Facture d'origine : "
                self.draw_text(label, col1_x, start_y + 30)
                self.draw_text(doc.external_reference, col1_x + self.text_width(label),
                               start_y + 30, self.font_bold)
        elif kind is DocumentKind.DELIVERY_NOTE:
            if doc.planned_delivery_date:
                self.draw_field("Date livraison prévue", format_date(doc.planned_delivery_date),
                                col1_x, start_y + 17)
            elif doc.delivery_place:
                self.draw_field("Lieu de livraison", doc.delivery_place, col1_x, start_y + 17)
        elif kind is DocumentKind.PURCHASE_ORDER:
            if doc.delivery_address:
                self.draw_field("Adresse livraison", doc.delivery_address, col1_x, start_y + 17)
        elif kind is DocumentKind.RECEPTION:
            self.draw_field("Statut", status, col1_x, start_y + 17, bold=True)
        elif kind is DocumentKind.PURCHASE_INVOICE:
            self.draw_field("N° facture fournisseur", doc.external_reference or "—",
                            col1_x, start_y + 17, bold=True)
        elif kind is DocumentKind.PURCHASE_RETURN:
            reception = doc.external_reference or "—"
            if doc.external_reference and doc.external_reference_date:
                reception += f" ({format_date(doc.external_reference_date)})"
            self.draw_field("Bon de réception lié", reception, col1_x, start_y + 17, bold=True)
        else:
            self.draw_field("Validité", format_date(doc.date_validite, "N/A"),
                            col1_x, start_y + 17)

        self.draw_text("Date", col2_x, start_y + 4)
        self.draw_text(format_date(doc.date_doc), col2_x, start_y + 10, self.font_bold)

        if kind in (DocumentKind.PURCHASE_INVOICE, DocumentKind.PURCHASE_RETURN):
            self.draw_field("Statut", status, col2_x, start_y + 17, bold=True)
        elif kind is DocumentKind.DELIVERY_NOTE:
            delivery_y = start_y + 16
            for label, value in (("Transport :", doc.transport_mode),
                                 ("Matricule :", doc.transport_plate),
                                 ("Livraison :", format_date(doc.planned_delivery_date))):
                if value:
                    self.draw_text(label, col2_x, delivery_y, size=8)
                    self.draw_text(value, col2_x + 18, delivery_y, self.font_bold, 8)
                    delivery_y += 4

        return self.draw_party_box(start_y)

    def party_extra_lines(self):
        doc = self.document
        extra = []
        if doc.customer_phone:
            extra.append(f"Tél: {doc.customer_phone}")
        if self.kind is DocumentKind.PURCHASE_INVOICE and doc.customer_tax_id:
            extra.append(f"Matricule: {doc.customer_tax_id}")
        if self.kind is DocumentKind.PURCHASE_RETURN and doc.customer_email:
            extra.append(f"Email: {doc.customer_email}")
        return extra

    def draw_party_box(self, start_y):
        doc = self.document
        x = CLIENT_BOX_X
        address_lines = []
        if doc.customer_address:
            address_lines = self.wrap(f"Adresse: {doc.customer_address}", CLIENT_BOX_W - 8)
        extra = self.party_extra_lines()
        height = layout.client_box_height(len(address_lines), len(extra))

        self.draw_rect(x, start_y, CLIENT_BOX_W, height, fill=CLIENT_BG, radius=3)
        self.draw_text(self.kind.party_label, x + 4, start_y + 6, self.font_bold)
        text_y = start_y + 12
        self.draw_text(doc.customer_name or "—", x + 4, text_y)
        text_y += 5
        for i, line in enumerate(address_lines):
            self.draw_text(line, x + 4, text_y + i * 4)
        text_y += len(address_lines) * 4
        for line in extra:
            self.draw_text(line, x + 4, text_y)
            text_y += 5

        return start_y + height + 6

    def draw_notes(self, start_y):
        """Plain notes or an alert box, continued on the next pages when long."""
        notes, is_alert = clean_notes(self.document.notes)
        if not notes:
            return start_y

        if is_alert:
            lines = self.wrap(notes, 170, self.font_bold)
        else:
            lines = self.wrap(notes, CONTENT_W)
        chunks, end_y = layout.plan_notes(len(lines), start_y, is_alert)
        if len(chunks) > 1 or (chunks and chunks[0].page):
            logger.debug("Notes of %s continue over %d page(s)",
                         self.document.numero, chunks[-1].page + 1)

        page = 0
        for chunk in chunks:
            while page < chunk.page:
                self.new_page()
                page += 1
            text = lines[chunk.first:chunk.last]
            if is_alert:
                self.draw_alert_chunk(text, chunk.y, chunk.height)
                continue
            lead = layout.NOTE_CONTINUED_H
            if chunk.first == 0:
                self.draw_text("Notes :", MARGIN_X, chunk.y + 4, self.font_bold)
                lead = layout.NOTE_LABEL_H
            for i, line in enumerate(text):
                self.draw_text(line, MARGIN_X, chunk.y + lead + i * NOTE_LINE_H)
        return end_y

    def draw_alert_chunk(self, lines, y, height):
        padding = layout.NOTE_ALERT_PADDING
        self.draw_rect(MARGIN_X, y, CONTENT_W, height, fill=ALERT_BG,
                       stroke=ALERT_BORDER, radius=2)
        self.draw_circle(16, y + height / 2, 2.5, fill=ALERT_BORDER)
        self.draw_text("!", 16, y + height / 2 + 1, self.font_bold, 8, WHITE, align="center")
        for i, line in enumerate(lines):
            self.draw_text(line, 22, y + padding + 3.5 + i * NOTE_LINE_H,
                           self.font_bold, 9, ALERT_TEXT)

    # ─── TABLE ───

    def cell_value(self, key, line, index, amounts):
        if key == "product":
            return product_text(line, index)
        if key == "reference":
            return line.reference or ""
        if key == "quantity":
            return format_quantity(amounts.quantity)
        if key == "ordered":
            if line.ordered_quantity is None:
                return "-"
            return format_quantity(line.ordered_quantity)
        if key == "unit":
            return line.unit or line.uom_code or "PCE"
        if key == "unit_price":
            return format_amount(amounts.unit_price)
        if key == "discount":
            return format_percent(line.discount_pct)
        if key == "tva":
            return format_percent(line.tva_pct)
        if key == "ht":
            return format_amount(amounts.ht)
        if key == "ttc":
            return format_amount(amounts.ttc)
        raise KeyError(key)

    def table_cells(self):
        """
        Text lines of every cell, row by row.

        Left-aligned columns wrap to their width; figures stay on one line.
        """
        rows = []
        for index, line in enumerate(self.document.lines):
            amounts = line_amounts(line)
            cells = []
            for column in self.columns:
                value = self.cell_value(column.key, line, index, amounts)
                if column.align == "left":
                    cells.append(self.wrap(value, column.width - 2 * CELL_PADDING) or [""])
                else:
                    cells.append([value])
            rows.append(cells)
        return rows

    def draw_table_header(self, y):
        self.draw_rect(MARGIN_X, y, CONTENT_W, HEADER_HEIGHT, fill=TABLE_HEAD_BG)
        cx = MARGIN_X
        for column in self.columns:
            size = self.fit_size(column.title, column.width - 2 * CELL_PADDING, self.font_bold)
            self.draw_text(column.title, cx + CELL_PADDING, y + 5.3, self.font_bold, size)
            cx += column.width

    def draw_cell_line(self, text, column, x, y):
        inner = column.width - 2 * CELL_PADDING
        if column.align == "left":
            self.draw_text(text, x + CELL_PADDING, y)
            return
        size = self.fit_size(text, inner)
        if column.align == "center":
            self.draw_text(text, x + column.width / 2, y, size=size, align="center")
        else:
            self.draw_text(text, x + column.width - CELL_PADDING, y, size=size, align="right")

    def draw_row_slice(self, row_slice, cells):
        if row_slice.row % 2 == 1:
            self.draw_rect(MARGIN_X, row_slice.y, CONTENT_W, row_slice.height, fill=ALT_ROW_BG)
        baseline = row_slice.y + CELL_PADDING + 3
        cx = MARGIN_X
        for column, lines in zip(self.columns, cells):
            for i, text in enumerate(lines[row_slice.first:row_slice.last]):
                self.draw_cell_line(text, column, cx, baseline + i * LINE_HEIGHT)
            cx += column.width

    def draw_lines_table(self, start_y):
        rows = self.table_cells()
        plan = layout.plan_table([max(len(lines) for lines in cells) for cells in rows],
                                 start_y)
        logger.debug("Table of %d rows spans %d page(s)", len(rows), plan.page_count)
        for page_index, slices in enumerate(plan.pages):
            if page_index > 0:
                self.new_page()
            header_y = plan.header_ys[page_index]
            if header_y is not None:
                self.draw_table_header(header_y)
            for row_slice in slices:
                self.draw_row_slice(row_slice, rows[row_slice.row])
        return plan.final_y

    # ─── TOTALS ───

    def words_lines(self):
        words = amount_to_words_fr(self.document.total_ttc, currency_name(self.document.currency))
        return self.wrap(f"Arrêté à la somme de : {words}", CONTENT_W, size=8)

    def draw_totals(self, start_y):
        """Totals box, amount in words and payment mode; returns the bottom y."""
        doc = self.document
        rows = totals_rows(doc, self.kind)
        box_h = layout.totals_box_height(len(rows))
        box_y = layout.totals_box_y(start_y, box_h)
        x = TOTALS_X
        w = TOTALS_W

        self.draw_rect(x, box_y, w, box_h, fill=TOTALS_BG, radius=3)
        y = box_y + 6
        for row in rows:
            self.draw_text(row.label, x + 4, y)
            color = RED if row.is_discount and row.amount < 0 else BLACK
            self.draw_text(format_amount(abs(row.amount), doc.currency), x + w - 4, y,
                           self.font_bold, 9, color, align="right")
            y += TOTALS_LINE_H

        self.draw_line(x + 4, y + 1, x + w - 4, y + 1)
        self.draw_text("Total TTC", x + 4, y + 7, self.font_bold, 9, BLUE)
        self.draw_text(format_amount(doc.total_ttc, doc.currency), x + w - 4, y + 7,
                       self.font_bold, 9, BLUE, align="right")

        box_bottom = box_y + box_h
        lines = self.words_lines()
        words_y = box_bottom + 5
        if words_y + len(lines) * WORDS_LINE_H < MAX_CONTENT_Y - 10:
            for i, line in enumerate(lines):
                self.draw_text(line, MARGIN_X, words_y + i * WORDS_LINE_H, size=8, color=MUTED)

        payment_y = words_y + len(lines) * WORDS_LINE_H + 3
        if doc.payment_mode and payment_y < MAX_CONTENT_Y - 5:
            self.draw_text(f"Mode de paiement : {doc.payment_mode}", MARGIN_X, payment_y,
                           size=8, color=MUTED)
        return max(box_bottom, payment_y + 5)

    def draw_stamp(self, final_y):
        if self.with_stamp and self.company.stamp:
            self.draw_image(self.company.stamp, 80, final_y - 40, 40, 40)

    # ─── PAGE DECORATION ───

    def footer_text(self):
        company = self.company
        address = company.address
        items = []
        parts = [address.street, address.city, address.postal_code, address.country]
        if any(parts):
            items.append(", ".join(p for p in parts if p))
        header = company.header
        if header and header.phone:
            items.append(f"Tél : {header.phone}")
        if header and header.share_capital:
            items.append(f"Capital social : {header.share_capital}")
        bank = company.footer.bank_details if company.footer else None
        if bank and (bank.bank or bank.rib):
            items.append(", ".join(p for p in (bank.bank, f"RIB : {bank.rib}" if bank.rib else "") if p))
        return " - ".join(items)

    def decorate_page(self, c, number, page_count):
        """Footer, page number and status watermark, drawn once all pages exist."""
        self.draw_line(MARGIN_X, FOOTER_Y, PAGE_W - MARGIN_X, FOOTER_Y)
        text = self.footer_text()
        if text:
            size = self.fit_size(text, CONTENT_W)
            self.draw_text(text, PAGE_W / 2, FOOTER_Y + 6, size=size, align="center")
        self.draw_text(f"{number} / {page_count}", PAGE_W - MARGIN_X, FOOTER_Y - 3,
                       color=PAGE_NUMBER, align="right")

        status = (self.document.status or "").upper()
        if status in WATERMARK_STATUSES:
            if number == 1:
                logger.info("Adding %s watermark to %s", status, self.document.numero)
            self.draw_text(status, PAGE_W / 2, layout.PAGE_H / 2 + 9, self.font_bold, 72,
                           WATERMARK, align="center")

    # ─── DOCUMENT ───

    def new_page(self):
        self.c.showPage()
        self.page_num += 1

    def render(self, compress=None):
        """Lay out the whole document and return the PDF bytes."""
        if compress is None:
            compress = self.settings.render.compress
        buffer = BytesIO()
        self.c = NumberedCanvas(buffer, pagesize=A4, pageCompression=1 if compress else 0,
                                decorate=self.decorate_page)
        self.c.setTitle(f"{self.title} {self.document.numero}")
        self.c.setAuthor(self.company.name)
        self.page_num = 1

        self.draw_header()
        y = self.draw_title()
        y = self.draw_info_blocks(y)
        y = self.draw_notes(y)
        table_end = self.draw_lines_table(y)

        needed = layout.totals_needed_height(
            len(totals_rows(self.document, self.kind)),
            len(self.words_lines()),
            bool(self.document.payment_mode),
        )
        new_page, totals_y = layout.place_totals(table_end, needed)
        if new_page:
            logger.debug("Totals of %s moved to a new page", self.document.numero)
            self.new_page()
        final_y = self.draw_totals(totals_y)
        self.draw_stamp(final_y)

        self.c.showPage()
        try:
            self.c.save()
        except (OSError, ValueError) as e:
            raise RenderError(self.document.numero, str(e)) from e

        logger.info("Rendered %s %s: %d page(s)", self.title, self.document.numero, self.page_num)
        return buffer.getvalue()

    def save(self, path):
        data = self.render()
        try:
            with open(path, "wb") as f:
                f.write(data)
        except OSError as e:
            raise RenderError(self.document.numero, f"cannot write {path}: {e.strerror}") from e
        return path
