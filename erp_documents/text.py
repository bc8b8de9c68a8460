"""Text preparation: rich-text product descriptions, notes, word wrapping."""

import html
import re

from reportlab.pdfbase.pdfmetrics import stringWidth

_BLOCK_BREAKS = re.compile(r"<br\s*/?>|</?p[^>]*>|</?div[^>]*>", re.IGNORECASE)
_LI_OPEN = re.compile(r"<li[^>]*>", re.IGNORECASE)
_LI_CLOSE = re.compile(r"</li>", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")
_BLANK_RUNS = re.compile(r"\n\s*\n\s*\n")

_WARNING_SIGN = re.compile("\u26a0\ufe0f?")
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\xA0-\xFF\u0100-\u017F\u20AC]")


def html_to_plain(content) -> str:
    """Flatten rich-text HTML from the product editor into plain lines."""
    if not content:
        return ""
    text = _BLOCK_BREAKS.sub("\n", content)
    text = _LI_OPEN.sub("", text)
    text = _LI_CLOSE.sub("\n", text)
    text = _TAG.sub("", text)
    text = html.unescape(text).replace("\xa0", " ")
    text = _BLANK_RUNS.sub("\n\n", text)
    return text.strip()


def product_text(line, index: int) -> str:
    """Text of the Produit cell for the ``index``-th (0-based) line."""
    if line.stocked is False and line.product_description:
        content = line.product_description
    else:
        content = line.designation or line.product or line.description or ""
    text = html_to_plain(content)
    return text or f"Produit {index + 1}"


def clean_notes(notes):
    """
    Prepare document notes for printing.

    Returns ``(text, is_alert)``. Notes written as ``[...]`` are warnings
    (typically added when goods were returned); they lose their brackets and
    any glyph the standard PDF fonts cannot draw.
    """
    text = (notes or "").strip()
    if not text.startswith("["):
        return text, False
    text = _WARNING_SIGN.sub("ATTENTION :", text)
    text = _NON_PRINTABLE.sub("", text)
    text = re.sub(r"^\[\s*", "", text)
    text = re.sub(r"\s*\]$", "", text)
    return text, True


def _split_long_word(word, max_width, font, size):
    pieces = []
    while word:
        for cut in range(len(word), 0, -1):
            if stringWidth(word[:cut], font, size) <= max_width:
                break
        else:
            cut = 1
        pieces.append(word[:cut])
        word = word[cut:]
    return pieces


def wrap_text(text, max_width, font="Helvetica", size=9):
    """Break text into lines no wider than ``max_width`` points."""
    lines = []
    for paragraph in (text or "").split("\n"):
        current = ""
        for word in paragraph.split():
            test = current + (" " if current else "") + word
            if stringWidth(test, font, size) <= max_width:
                current = test
                continue
            if current:
                lines.append(current)
            if stringWidth(word, font, size) > max_width:
                *full, current = _split_long_word(word, max_width, font, size)
                lines.extend(full)
            else:
                current = word
        lines.append(current)
    return lines if lines else [""]
