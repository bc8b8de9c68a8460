"""
Document totals: line discounts, global discount, FODEC, TVA, fiscal stamp
and withholding at source.

All amounts are Decimals in the document currency and end up rounded to
millimes (3 decimals).
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from .amounts import to_millimes
from .config import TaxSettings
from .kinds import DocumentKind
from .models import ZERO, DocumentData, DocumentLine

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
DEFAULT_TAX_CODE = "DEFAULT"


@dataclass(frozen=True)
class LineAmounts:
    """Per-line figures printed in the table."""

    quantity: Decimal
    unit_price: Decimal
    gross_ht: Decimal
    discount: Decimal
    ht: Decimal
    ttc: Decimal


@dataclass
class DocumentTotals:
    base_ht: Decimal = ZERO
    line_discounts: Decimal = ZERO
    global_discount: Decimal = ZERO
    global_discount_pct: Decimal = ZERO
    net_ht: Decimal = ZERO
    fodec: Decimal = ZERO
    fodec_rate: Decimal = ZERO
    total_tva: Decimal = ZERO
    timbre_fiscal: Decimal = ZERO
    total_ttc: Decimal = ZERO
    withholding: Decimal = ZERO
    net_payable: Decimal = ZERO
    tax_groups: Dict[str, Decimal] = field(default_factory=dict)

    def apply_to(self, document: DocumentData) -> DocumentData:
        """Return a copy of ``document`` carrying these totals."""
        return document.model_copy(update={
            "total_base_ht": self.base_ht,
            "line_discounts": self.line_discounts,
            "global_discount": self.global_discount,
            "global_discount_pct": self.global_discount_pct,
            "total_discount": self.line_discounts + self.global_discount,
            "total_ht": self.net_ht,
            "fodec": self.fodec,
            "fodec_rate": self.fodec_rate,
            "total_tva": self.total_tva,
            "timbre_fiscal": self.timbre_fiscal,
            "total_ttc": self.total_ttc,
        })

    def as_dict(self) -> dict:
        data = {k: str(v) for k, v in self.__dict__.items() if k != "tax_groups"}
        data["tax_groups"] = {k: str(v) for k, v in self.tax_groups.items()}
        return data


@dataclass(frozen=True)
class TotalsRow:
    label: str
    amount: Decimal
    is_discount: bool = False


def line_amounts(line: DocumentLine) -> LineAmounts:
    quantity = abs(line.quantity)
    gross = line.unit_price * quantity
    ht = line.unit_price * (1 - line.discount_pct / HUNDRED) * quantity
    ttc = ht * (1 + line.tva_pct / HUNDRED)
    return LineAmounts(
        quantity=quantity,
        unit_price=line.unit_price,
        gross_ht=gross,
        discount=gross - ht,
        ht=ht,
        ttc=ttc,
    )


def _is_service_only(lines: List[DocumentLine]) -> bool:
    return bool(lines) and all(line.stocked is False for line in lines)


def compute_totals(document: DocumentData, kind: DocumentKind,
                   tax: Optional[TaxSettings] = None) -> DocumentTotals:
    """Compute every total of ``document`` from its lines."""
    tax = tax or TaxSettings()
    per_line = tax.rounding == "line"

    def r(value):
        return to_millimes(value) if per_line else value

    global_pct = document.global_discount_pct or ZERO
    if not kind.applies_fodec:
        fodec_rate = ZERO
    elif document.fodec_rate is not None:
        fodec_rate = document.fodec_rate
    elif document.fodec_enabled:
        fodec_rate = tax.fodec_rate
    else:
        fodec_rate = ZERO

    base_ht = ZERO
    ht_after_lines = ZERO
    fodec = ZERO
    total_tva = ZERO
    groups: Dict[str, Decimal] = {}

    for line in document.lines:
        amounts = line_amounts(line)
        line_ht = r(amounts.ht)
        base_ht += r(amounts.gross_ht)
        ht_after_lines += line_ht

        line_net = line_ht * (1 - global_pct / HUNDRED)
        line_fodec = r(line_net * fodec_rate / HUNDRED)
        fodec += line_fodec
        if line.tva_pct:
            tva = r((line_net + line_fodec) * line.tva_pct / HUNDRED)
            total_tva += tva
            code = line.tax_code or DEFAULT_TAX_CODE
            groups[code] = groups.get(code, ZERO) + tva

    global_discount = to_millimes(ht_after_lines * global_pct / HUNDRED)
    line_discounts = to_millimes(base_ht - ht_after_lines)
    net_ht = to_millimes(ht_after_lines) - global_discount
    fodec = to_millimes(fodec)
    total_tva = to_millimes(total_tva)

    if not kind.shows_fiscal_stamp or document.timbre_enabled is False:
        timbre = ZERO
    elif document.timbre_fiscal is not None:
        timbre = to_millimes(document.timbre_fiscal)
    elif tax.timbre_enabled:
        timbre = to_millimes(tax.timbre_fiscal)
    else:
        timbre = ZERO

    total_ttc = net_ht + fodec + total_tva + timbre

    withholding = ZERO
    if tax.withholding_rate and (
        tax.withholding_scope == "all"
        or (tax.withholding_scope == "services" and _is_service_only(document.lines))
    ):
        withholding = to_millimes(net_ht * tax.withholding_rate / HUNDRED)

    totals = DocumentTotals(
        base_ht=to_millimes(base_ht),
        line_discounts=line_discounts,
        global_discount=global_discount,
        global_discount_pct=global_pct,
        net_ht=net_ht,
        fodec=fodec,
        fodec_rate=fodec_rate,
        total_tva=total_tva,
        timbre_fiscal=timbre,
        total_ttc=total_ttc,
        withholding=withholding,
        net_payable=total_ttc - withholding,
        tax_groups={code: to_millimes(v) for code, v in groups.items()},
    )
    logger.debug("Totals for %s: HT=%s TVA=%s TTC=%s",
                 document.numero, totals.net_ht, totals.total_tva, totals.total_ttc)
    return totals


def resolve_totals(document: DocumentData, kind: DocumentKind,
                   tax: Optional[TaxSettings] = None) -> DocumentData:
    """Keep stored totals when present, otherwise compute them from the lines."""
    if document.has_stored_totals:
        return document
    logger.info("Document %s has no stored totals, computing them", document.numero)
    return compute_totals(document, kind, tax).apply_to(document)


def totals_rows(document: DocumentData, kind: DocumentKind) -> List[TotalsRow]:
    """
    Rows of the totals box, in print order, without Total TTC.

    Purchase returns print Total HT and Total TVA only. A stored Total HT
    wins over the one derived from the sub-total and discounts.
    """
    base = document.total_base_ht
    line_discounts = document.line_discounts or ZERO
    global_discount = document.global_discount or ZERO
    legacy_discount = ZERO
    if document.total_discount and not line_discounts and not global_discount:
        legacy_discount = document.total_discount

    rows = []
    if kind.itemises_discounts:
        if base is not None:
            rows.append(TotalsRow("Sous-total HT", base))
        if line_discounts > 0:
            rows.append(TotalsRow("Remise lignes", -line_discounts, True))
        if global_discount > 0:
            label = "Remise globale"
            if document.global_discount_pct:
                label += f" ({document.global_discount_pct.normalize():f}%)"
            rows.append(TotalsRow(label, -global_discount, True))
        if legacy_discount > 0:
            rows.append(TotalsRow("Total Remise", -legacy_discount, True))

    if document.total_ht is not None:
        total_ht = document.total_ht
    else:
        total_ht = (base or ZERO) - line_discounts - global_discount - legacy_discount
    rows.append(TotalsRow("Total HT", total_ht))

    if kind.applies_fodec and document.fodec and document.fodec > 0:
        label = "FODEC"
        if kind.is_purchase and document.fodec_rate:
            label += f" ({document.fodec_rate.normalize():f}%)"
        rows.append(TotalsRow(label, document.fodec))
    if document.total_tva or not kind.itemises_discounts:
        rows.append(TotalsRow("Total TVA", document.total_tva or ZERO))
    if kind.shows_fiscal_stamp:
        if document.timbre_enabled is False:
            rows.append(TotalsRow("Timbre fiscal - Non activé", ZERO))
        elif document.timbre_fiscal is not None:
            rows.append(TotalsRow("Timbre fiscal", document.timbre_fiscal))
    return rows
