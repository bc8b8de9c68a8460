"""One entry point per document type, plus data loading and file naming."""

import logging
import re

from pydantic import ValidationError

from .exceptions import InvalidDocumentError
from .kinds import DocumentKind
from .models import CompanyInfo, DocumentData
from .renderer import CommercialDocumentPdf

logger = logging.getLogger(__name__)

FILENAME_PREFIXES = {
    DocumentKind.QUOTE: "Devis",
    DocumentKind.INVOICE: "Facture",
    DocumentKind.CREDIT_NOTE: "Avoir",
    DocumentKind.DELIVERY_NOTE: "BonLivraison",
    DocumentKind.PURCHASE_ORDER: "BonCommande",
    DocumentKind.RECEPTION: "BonReception",
    DocumentKind.PURCHASE_INVOICE: "FactureAchat",
    DocumentKind.PURCHASE_RETURN: "RetourAchat",
}


def load_document(data) -> DocumentData:
    if isinstance(data, DocumentData):
        return data
    try:
        return DocumentData.model_validate(data)
    except ValidationError as e:
        raise InvalidDocumentError(f"Invalid document: {e}", e.errors()) from e


def load_company(data) -> CompanyInfo:
    if isinstance(data, CompanyInfo):
        return data
    try:
        return CompanyInfo.model_validate(data)
    except ValidationError as e:
        raise InvalidDocumentError(f"Invalid company information: {e}", e.errors()) from e


def generate_devis_pdf(document, company, kind=None, settings=None, with_stamp=True) -> bytes:
    """
    Render any commercial document.

    The kind is taken from ``kind`` when given (and then also sets the
    printed title), otherwise inferred from the document's ``documentType``.
    """
    document = load_document(document)
    company = load_company(company)
    if kind is not None:
        document = document.model_copy(update={"document_type": kind.heading})
    logger.debug("Generating %s %s", document.document_type or "DEVIS", document.numero)
    pdf = CommercialDocumentPdf(document, company, kind=kind, settings=settings,
                                with_stamp=with_stamp)
    return pdf.render()


def generate_quote_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.QUOTE, **kwargs)


def generate_invoice_pdf(document, company, **kwargs) -> bytes:
    """Invoices show the due date and a watermark for draft/cancelled status."""
    return generate_devis_pdf(document, company, kind=DocumentKind.INVOICE, **kwargs)


def generate_credit_note_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.CREDIT_NOTE, **kwargs)


def generate_delivery_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.DELIVERY_NOTE, **kwargs)


def generate_purchase_order_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.PURCHASE_ORDER, **kwargs)


def generate_reception_pdf(document, company, **kwargs) -> bytes:
    """Goods received against a purchase order, with ordered and received quantities."""
    return generate_devis_pdf(document, company, kind=DocumentKind.RECEPTION, **kwargs)


def generate_purchase_invoice_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.PURCHASE_INVOICE, **kwargs)


def generate_purchase_return_pdf(document, company, **kwargs) -> bytes:
    return generate_devis_pdf(document, company, kind=DocumentKind.PURCHASE_RETURN, **kwargs)


GENERATORS = {
    DocumentKind.QUOTE: generate_quote_pdf,
    DocumentKind.INVOICE: generate_invoice_pdf,
    DocumentKind.CREDIT_NOTE: generate_credit_note_pdf,
    DocumentKind.DELIVERY_NOTE: generate_delivery_pdf,
    DocumentKind.PURCHASE_ORDER: generate_purchase_order_pdf,
    DocumentKind.RECEPTION: generate_reception_pdf,
    DocumentKind.PURCHASE_INVOICE: generate_purchase_invoice_pdf,
    DocumentKind.PURCHASE_RETURN: generate_purchase_return_pdf,
}


def pdf_filename(prefix, document) -> str:
    """``Devis-DV-2024-001-Societe_ABC.pdf``"""
    document = load_document(document)
    name = re.sub(r"[^a-zA-Z0-9 ]", "", document.customer_name or "").strip()
    name = re.sub(r"\s+", "_", name)
    return f"{prefix}-{document.numero}{'-' + name if name else ''}.pdf"
