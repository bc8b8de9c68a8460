"""PDF generation for Tunisian commercial documents."""

from .amounts import amount_to_words_fr, format_amount, number_to_words_fr
from .config import Settings, get_settings
from .exceptions import DocumentError, InvalidDocumentError, RenderError
from .kinds import DocumentKind, classify
from .models import CompanyInfo, DocumentData, DocumentLine
from .renderer import CommercialDocumentPdf
from .templates import (generate_credit_note_pdf, generate_delivery_pdf, generate_devis_pdf,
                        generate_invoice_pdf, generate_purchase_invoice_pdf,
                        generate_purchase_order_pdf, generate_purchase_return_pdf,
                        generate_quote_pdf, generate_reception_pdf, pdf_filename)
from .totals import compute_totals, resolve_totals

__version__ = "1.0.0"

__all__ = [
    "CommercialDocumentPdf",
    "CompanyInfo",
    "DocumentData",
    "DocumentError",
    "DocumentKind",
    "DocumentLine",
    "InvalidDocumentError",
    "RenderError",
    "Settings",
    "amount_to_words_fr",
    "classify",
    "compute_totals",
    "format_amount",
    "generate_credit_note_pdf",
    "generate_delivery_pdf",
    "generate_devis_pdf",
    "generate_invoice_pdf",
    "generate_purchase_invoice_pdf",
    "generate_purchase_order_pdf",
    "generate_purchase_return_pdf",
    "generate_quote_pdf",
    "generate_reception_pdf",
    "get_settings",
    "number_to_words_fr",
    "pdf_filename",
    "resolve_totals",
]
