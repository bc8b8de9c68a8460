"""
Page geometry and pagination.

Every coordinate here is in millimetres measured from the TOP of an A4
page, the way the documents are designed; the renderer converts to
reportlab points.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .kinds import DocumentKind

PAGE_W = 210
PAGE_H = 297
MARGIN_X = 10
CONTENT_W = PAGE_W - 2 * MARGIN_X  # 190

TOP_MARGIN = 10          # continuation pages start here
FOOTER_Y = 280           # footer rule
FOOTER_HEIGHT = 20
MAX_CONTENT_Y = FOOTER_Y - FOOTER_HEIGHT  # 260


@dataclass(frozen=True)
class Column:
    title: str
    width: float
    align: str
    key: str


# Sales documents and purchase orders
COLUMNS = [
    Column("Produit", 80, "left", "product"),
    Column("Qté", 16, "center", "quantity"),
    Column("Prix HT", 22, "right", "unit_price"),
    Column("Remise %", 20, "right", "discount"),
    Column("TVA", 14, "right", "tva"),
    Column("Total HT", 19, "right", "ht"),
    Column("Total TTC", 19, "right", "ttc"),
]

RECEPTION_COLUMNS = [
    Column("Réf", 16, "left", "reference"),
    Column("Désignation", 56, "left", "product"),
    Column("Qté cmd.", 20, "right", "ordered"),
    Column("Qté reçue", 18, "right", "quantity"),
    Column("Unité", 14, "center", "unit"),
    Column("Prix HT", 18, "right", "unit_price"),
    Column("Remise %", 16, "right", "discount"),
    Column("TVA %", 14, "right", "tva"),
    Column("Total HT", 18, "right", "ht"),
]

PURCHASE_INVOICE_COLUMNS = [
    Column("Désignation", 80, "left", "product"),
    Column("Quantité", 22, "right", "quantity"),
    Column("Prix HT", 26, "right", "unit_price"),
    Column("Remise %", 22, "right", "discount"),
    Column("TVA %", 20, "right", "tva"),
    Column("Total HT", 20, "right", "ht"),
]

PURCHASE_RETURN_COLUMNS = [
    Column("Réf", 20, "left", "reference"),
    Column("Désignation", 68, "left", "product"),
    Column("Qté", 16, "right", "quantity"),
    Column("Unité", 14, "center", "unit"),
    Column("Prix HT", 20, "right", "unit_price"),
    Column("Remise %", 16, "right", "discount"),
    Column("TVA %", 16, "right", "tva"),
    Column("Total HT", 20, "right", "ht"),
]

TABLE_COLUMNS = {
    DocumentKind.RECEPTION: RECEPTION_COLUMNS,
    DocumentKind.PURCHASE_INVOICE: PURCHASE_INVOICE_COLUMNS,
    DocumentKind.PURCHASE_RETURN: PURCHASE_RETURN_COLUMNS,
}


def columns_for(kind: DocumentKind) -> List[Column]:
    return TABLE_COLUMNS.get(kind, COLUMNS)


HEADER_HEIGHT = 8
CELL_PADDING = 2
LINE_HEIGHT = 4
MIN_ROW_HEIGHT = 8

NOTE_LINE_H = 5
NOTE_LABEL_H = 9         # "Notes :" label above the first line
NOTE_CONTINUED_H = 4     # top of a continuation chunk
NOTE_ALERT_PADDING = 4

TOTALS_X = 125
TOTALS_W = 75
TOTALS_LINE_H = 6
WORDS_LINE_H = 4

CLIENT_BOX_X = 120
CLIENT_BOX_W = 80
CLIENT_BOX_MIN_H = 28


def row_height(line_count: int) -> float:
    return max(MIN_ROW_HEIGHT, line_count * LINE_HEIGHT + 2 * CELL_PADDING)


@dataclass(frozen=True)
class RowSlice:
    """Part of a table row drawn on one page: lines [first, last)."""

    row: int
    first: int
    last: int
    y: float
    height: float


@dataclass
class TablePlan:
    pages: List[List[RowSlice]] = field(default_factory=list)
    # Where the column header goes on each page; None when the page has none
    header_ys: List[Optional[float]] = field(default_factory=list)
    final_y: float = 0

    @property
    def page_count(self) -> int:
        return len(self.pages)


def plan_table(line_counts: Sequence[int], start_y: float,
               page_top: float = TOP_MARGIN, bottom: float = MAX_CONTENT_Y) -> TablePlan:
    """
    Place table rows on pages.

    The header is repeated at the top of every page. A row that does not
    fit on the current page moves to the next one whole; a row taller than
    an empty page is split between pages line by line. When the header and
    one row do not fit under ``start_y`` the table starts on a new page.
    """
    fresh_top = page_top + HEADER_HEIGHT
    plan = TablePlan(pages=[[]])

    def new_page():
        plan.pages.append([])
        plan.header_ys.append(page_top)
        return fresh_top

    if start_y + HEADER_HEIGHT + MIN_ROW_HEIGHT > bottom:
        plan.header_ys.append(None)
        y = new_page()
    else:
        plan.header_ys.append(start_y)
        y = start_y + HEADER_HEIGHT

    for row, count in enumerate(line_counts):
        count = max(count, 1)
        first = 0
        while first < count:
            h = row_height(count - first)
            if y + h <= bottom:
                plan.pages[-1].append(RowSlice(row, first, count, y, h))
                y += h
                break
            at_top = y <= fresh_top
            if not at_top and h <= bottom - fresh_top:
                y = new_page()
                continue
            fit = int((bottom - y - 2 * CELL_PADDING) // LINE_HEIGHT)
            if fit < 1:
                y = new_page()
                continue
            h = row_height(fit)
            plan.pages[-1].append(RowSlice(row, first, first + fit, y, h))
            first += fit
            y = new_page()

    # No lone header above a row that moved on
    for index, slices in enumerate(plan.pages[:-1]):
        if not slices:
            plan.header_ys[index] = None

    plan.final_y = y
    return plan


@dataclass(frozen=True)
class NoteChunk:
    """Note lines [first, last) drawn from ``y`` on page ``page`` (0 = current)."""

    page: int
    first: int
    last: int
    y: float
    height: float


def _note_chunk_height(count: int, first: int, is_alert: bool) -> float:
    if is_alert:
        return count * NOTE_LINE_H + 2 * NOTE_ALERT_PADDING
    lead = NOTE_LABEL_H if first == 0 else NOTE_CONTINUED_H
    return lead + count * NOTE_LINE_H


def plan_notes(line_count: int, start_y: float, is_alert: bool,
               page_top: float = TOP_MARGIN,
               bottom: float = MAX_CONTENT_Y) -> Tuple[List[NoteChunk], float]:
    """
    Flow the notes block over as many pages as it needs.

    Returns the chunks and the y below the block (spacing included) on the
    last page used.
    """
    chunks = []
    page = 0
    y = start_y
    first = 0
    while first < line_count:
        fixed = _note_chunk_height(0, first, is_alert)
        fit = int((bottom - y - fixed) // NOTE_LINE_H)
        if fit < 1:
            page += 1
            y = page_top
            continue
        count = min(fit, line_count - first)
        height = _note_chunk_height(count, first, is_alert)
        chunks.append(NoteChunk(page, first, first + count, y, height))
        first += count
        y += height
        if first < line_count:
            page += 1
            y = page_top
    if chunks:
        y += 6 if is_alert else 4
    return chunks, y


def totals_box_height(row_count: int) -> float:
    return 6 + row_count * TOTALS_LINE_H + 6 + 7


def totals_needed_height(row_count: int, words_lines: int, has_payment_mode: bool) -> float:
    """Room the totals box, the amount in words and the payment mode need."""
    words_h = words_lines * WORDS_LINE_H + 5
    payment_h = 7 if has_payment_mode else 0
    return totals_box_height(row_count) + words_h + payment_h + 5


def place_totals(table_end_y: float, needed: float,
                 bottom: float = MAX_CONTENT_Y) -> Tuple[bool, float]:
    """
    Decide where the totals go.

    Returns ``(new_page, start_y)``: the totals follow the table when they
    fit above the footer zone, otherwise they open a new page.
    """
    current = min(table_end_y, bottom)
    if bottom - current >= needed:
        return False, current + 5
    return True, TOP_MARGIN


def totals_box_y(start_y: float, box_height: float, bottom: float = MAX_CONTENT_Y) -> float:
    """The box never runs into the footer zone."""
    return min(start_y, bottom - box_height)


def fit_within(width: float, height: float, max_w: float, max_h: float) -> Tuple[float, float]:
    """Scale an image to ``max_w`` wide, or ``max_h`` high if that is tighter."""
    ratio = width / height
    w = max_w
    h = w / ratio
    if h > max_h:
        h = max_h
        w = h * ratio
    return w, h


def client_box_height(address_lines: int, extra_lines: int) -> float:
    """``extra_lines``: phone, tax id or email lines under the address."""
    height = 6 + 5
    if address_lines:
        height += address_lines * 4
    height += int(extra_lines) * 5
    return max(height, CLIENT_BOX_MIN_H)

