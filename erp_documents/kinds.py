"""Document kinds and the labels that change with them."""

from enum import Enum


class DocumentKind(str, Enum):
    QUOTE = "DEVIS"
    INVOICE = "FACTURE"
    CREDIT_NOTE = "AVOIR"
    DELIVERY_NOTE = "BON DE LIVRAISON"
    PURCHASE_ORDER = "BON DE COMMANDE ACHAT"
    RECEPTION = "BON DE RÉCEPTION"
    PURCHASE_INVOICE = "FACTURE D'ACHAT"
    PURCHASE_RETURN = "BON DE RETOUR ACHAT"

    @property
    def heading(self) -> str:
        return self.value

    @property
    def number_label(self) -> str:
        return NUMBER_LABELS[self]

    @property
    def is_purchase(self) -> bool:
        return self in PURCHASE_KINDS

    @property
    def party_label(self) -> str:
        return "Fournisseur" if self.is_purchase else "Client"

    @property
    def shows_fiscal_stamp(self) -> bool:
        return self not in (DocumentKind.DELIVERY_NOTE, DocumentKind.PURCHASE_RETURN)

    @property
    def applies_fodec(self) -> bool:
        return self is not DocumentKind.PURCHASE_RETURN

    @property
    def itemises_discounts(self) -> bool:
        """Returns only print Total HT, Total TVA and Total TTC."""
        return self is not DocumentKind.PURCHASE_RETURN

    @property
    def shows_status(self) -> bool:
        return self in (DocumentKind.RECEPTION, DocumentKind.PURCHASE_INVOICE,
                        DocumentKind.PURCHASE_RETURN)


PURCHASE_KINDS = frozenset({
    DocumentKind.PURCHASE_ORDER,
    DocumentKind.RECEPTION,
    DocumentKind.PURCHASE_INVOICE,
    DocumentKind.PURCHASE_RETURN,
})

NUMBER_LABELS = {
    DocumentKind.QUOTE: "Numéro de devis",
    DocumentKind.INVOICE: "Numéro de facture",
    DocumentKind.CREDIT_NOTE: "Numéro d'avoir",
    DocumentKind.DELIVERY_NOTE: "Numéro de bon de livraison",
    DocumentKind.PURCHASE_ORDER: "Numéro de commande",
    DocumentKind.RECEPTION: "Numéro de réception",
    DocumentKind.PURCHASE_INVOICE: "Numéro de facture",
    DocumentKind.PURCHASE_RETURN: "Numéro de retour",
}

STATUS_LABELS = {
    "VALIDE": "Validé",
    "VALIDEE": "Validée",
    "ANNULE": "Annulé",
    "ANNULEE": "Annulée",
    "PARTIELLEMENT_PAYEE": "Partiellement payée",
    "PAYEE": "Payée",
}


def status_label(status) -> str:
    return STATUS_LABELS.get((status or "").upper(), "Brouillon")


def classify(title) -> DocumentKind:
    """Infer the kind from a free-form document title."""
    t = (title or "").lower()
    if "retour" in t:
        return DocumentKind.PURCHASE_RETURN
    if "facture" in t:
        return DocumentKind.PURCHASE_INVOICE if "achat" in t else DocumentKind.INVOICE
    if "avoir" in t:
        return DocumentKind.CREDIT_NOTE
    if "livraison" in t:
        return DocumentKind.DELIVERY_NOTE
    reception = "réception" in t or "reception" in t
    if "commande" in t and ("achat" in t or reception):
        return DocumentKind.PURCHASE_ORDER
    if reception:
        return DocumentKind.RECEPTION
    return DocumentKind.QUOTE
