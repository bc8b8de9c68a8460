"""
Tests for document totals.

The conftest quote has two lines:
  2 x 100 at 10 % discount, TVA 19 %  -> HT 180
  1 x 50, TVA 7 %, service           -> HT 50
with FODEC at 1 %.
"""

from decimal import Decimal

import pytest

from erp_documents.config import TaxSettings
from erp_documents.kinds import DocumentKind
from erp_documents.models import DocumentData, DocumentLine
from erp_documents.totals import compute_totals, line_amounts, resolve_totals, totals_rows


@pytest.fixture
def document(document_data):
    return DocumentData.model_validate(document_data)


# =============================================================================
# Line amounts
# =============================================================================


class TestLineAmounts:

    def test_discounted_line(self):
        line = DocumentLine(quantite=2, prixUnitaireHT=100, remisePct=10, tvaPct=19)
        amounts = line_amounts(line)
        assert amounts.gross_ht == Decimal("200")
        assert amounts.ht == Decimal("180")
        assert amounts.discount == Decimal("20")
        assert amounts.ttc == Decimal("214.2")

    def test_negative_quantity_uses_absolute_value(self):
        line = DocumentLine(quantite=-3, prixUnitaireHT=10)
        amounts = line_amounts(line)
        assert amounts.quantity == Decimal("3")
        assert amounts.ht == Decimal("30")


# =============================================================================
# Document totals
# =============================================================================


class TestComputeTotals:

    def test_quote_totals(self, document):
        totals = compute_totals(document, DocumentKind.QUOTE)
        assert totals.base_ht == Decimal("250.000")
        assert totals.line_discounts == Decimal("20.000")
        assert totals.global_discount == Decimal("0.000")
        assert totals.net_ht == Decimal("230.000")
        assert totals.fodec == Decimal("2.300")
        assert totals.total_tva == Decimal("38.077")
        assert totals.timbre_fiscal == Decimal("1.000")
        assert totals.total_ttc == Decimal("271.377")
        assert totals.net_payable == totals.total_ttc

    def test_delivery_note_has_no_fiscal_stamp(self, document):
        totals = compute_totals(document, DocumentKind.DELIVERY_NOTE)
        assert totals.timbre_fiscal == Decimal("0")
        assert totals.total_ttc == Decimal("270.377")

    def test_stamp_disabled(self, document):
        totals = compute_totals(document, DocumentKind.INVOICE, TaxSettings(timbre_enabled=False))
        assert totals.timbre_fiscal == Decimal("0")

    def test_global_discount_applies_before_fodec(self, document):
        document = document.model_copy(update={"global_discount_pct": Decimal("10")})
        totals = compute_totals(document, DocumentKind.QUOTE)
        assert totals.global_discount == Decimal("23.000")
        assert totals.net_ht == Decimal("207.000")
        assert totals.fodec == Decimal("2.070")
        assert totals.total_tva == Decimal("34.270")
        assert totals.total_ttc == Decimal("244.340")

    def test_document_level_rounding(self, document):
        document = document.model_copy(update={"global_discount_pct": Decimal("10")})
        totals = compute_totals(document, DocumentKind.QUOTE, TaxSettings(rounding="document"))
        assert totals.total_tva == Decimal("34.269")

    def test_tva_grouped_by_tax_code(self, document_data):
        document_data["lignes"][0]["taxCode"] = "TVA19"
        document_data["lignes"][1]["taxCode"] = "TVA7"
        totals = compute_totals(DocumentData.model_validate(document_data), DocumentKind.QUOTE)
        assert totals.tax_groups == {"TVA19": Decimal("34.542"), "TVA7": Decimal("3.535")}

    def test_default_tax_group(self, document):
        totals = compute_totals(document, DocumentKind.QUOTE)
        assert totals.tax_groups == {"DEFAULT": Decimal("38.077")}

    def test_fodec_disabled(self, document_data):
        document_data["fodec"] = {"enabled": False}
        totals = compute_totals(DocumentData.model_validate(document_data), DocumentKind.QUOTE)
        assert totals.fodec == Decimal("0")
        assert totals.total_tva == Decimal("37.700")

    def test_fodec_enabled_without_rate_uses_configured_rate(self, document_data):
        document_data["fodec"] = {"enabled": True}
        document = DocumentData.model_validate(document_data)
        totals = compute_totals(document, DocumentKind.QUOTE, TaxSettings(fodec_rate=Decimal("2")))
        assert totals.fodec_rate == Decimal("2")
        assert totals.fodec == Decimal("4.600")

    def test_no_lines(self):
        document = DocumentData(numero="X", dateDoc="2024-01-01")
        totals = compute_totals(document, DocumentKind.QUOTE)
        assert totals.net_ht == Decimal("0.000")
        assert totals.total_ttc == Decimal("1.000")


class TestWithholding:

    def test_applies_to_all(self, document):
        tax = TaxSettings(withholding_rate=Decimal("1.5"), withholding_scope="all")
        totals = compute_totals(document, DocumentKind.INVOICE, tax)
        assert totals.withholding == Decimal("3.450")
        assert totals.net_payable == Decimal("267.927")

    def test_services_scope_skips_goods(self, document):
        tax = TaxSettings(withholding_rate=Decimal("1.5"), withholding_scope="services")
        totals = compute_totals(document, DocumentKind.INVOICE, tax)
        assert totals.withholding == Decimal("0")

    def test_services_scope_on_service_only_document(self, document_data):
        document_data["lignes"] = document_data["lignes"][1:]
        document = DocumentData.model_validate(document_data)
        tax = TaxSettings(withholding_rate=Decimal("1.5"), withholding_scope="services")
        totals = compute_totals(document, DocumentKind.INVOICE, tax)
        assert totals.withholding == Decimal("0.750")

    def test_scope_none(self, document):
        tax = TaxSettings(withholding_rate=Decimal("1.5"))
        assert compute_totals(document, DocumentKind.INVOICE, tax).withholding == Decimal("0")


# =============================================================================
# Stored totals and the totals box
# =============================================================================


class TestResolveTotals:

    def test_stored_totals_are_kept(self, document_data):
        document_data.update({"totalBaseHT": 999, "totalTTC": 1000})
        document = DocumentData.model_validate(document_data)
        assert resolve_totals(document, DocumentKind.QUOTE) is document

    def test_missing_totals_are_computed(self, document):
        resolved = resolve_totals(document, DocumentKind.QUOTE)
        assert resolved.total_ttc == Decimal("271.377")
        assert resolved.total_discount == Decimal("20.000")
        assert document.total_ttc is None


class TestTotalsRows:

    def test_computed_rows(self, document):
        resolved = resolve_totals(document, DocumentKind.QUOTE)
        rows = totals_rows(resolved, DocumentKind.QUOTE)
        assert [r.label for r in rows] == [
            "Sous-total HT", "Remise lignes", "Total HT", "FODEC", "Total TVA", "Timbre fiscal"]
        assert rows[1].amount == Decimal("-20.000")
        assert rows[1].is_discount
        assert rows[2].amount == Decimal("230.000")

    def test_global_discount_row_shows_percent(self, document):
        document = document.model_copy(update={"global_discount_pct": Decimal("10")})
        resolved = resolve_totals(document, DocumentKind.QUOTE)
        labels = [r.label for r in totals_rows(resolved, DocumentKind.QUOTE)]
        assert "Remise globale (10%)" in labels

    def test_delivery_note_has_no_stamp_row(self, document):
        resolved = resolve_totals(document, DocumentKind.DELIVERY_NOTE)
        labels = [r.label for r in totals_rows(resolved, DocumentKind.DELIVERY_NOTE)]
        assert "Timbre fiscal" not in labels

    def test_legacy_total_discount(self):
        document = DocumentData.model_validate({
            "numero": "F-1", "dateDoc": "2024-01-01",
            "totalBaseHT": 100, "totalRemise": 10, "totalTTC": 90,
        })
        rows = totals_rows(document, DocumentKind.INVOICE)
        assert [(r.label, r.amount) for r in rows] == [
            ("Sous-total HT", Decimal("100")),
            ("Total Remise", Decimal("-10")),
            ("Total HT", Decimal("90")),
        ]

    def test_stored_total_ht_is_printed(self):
        document = DocumentData.model_validate({
            "numero": "FA-1", "dateDoc": "2024-01-01",
            "totalBaseHT": 100, "remiseLignes": 10, "totalHT": 95, "totalTTC": 95,
        })
        rows = totals_rows(document, DocumentKind.PURCHASE_INVOICE)
        assert ("Total HT", Decimal("95")) in [(r.label, r.amount) for r in rows]


# =============================================================================
# Purchase documents
# =============================================================================


class TestPurchaseTotals:

    def test_return_has_no_fodec_nor_stamp(self, document):
        totals = compute_totals(document, DocumentKind.PURCHASE_RETURN)
        assert totals.fodec == Decimal("0.000")
        assert totals.fodec_rate == Decimal("0")
        assert totals.timbre_fiscal == Decimal("0")
        assert totals.total_tva == Decimal("37.700")
        assert totals.total_ttc == Decimal("267.700")

    def test_return_rows(self, document):
        resolved = resolve_totals(document, DocumentKind.PURCHASE_RETURN)
        rows = totals_rows(resolved, DocumentKind.PURCHASE_RETURN)
        assert [(r.label, r.amount) for r in rows] == [
            ("Total HT", Decimal("230.000")),
            ("Total TVA", Decimal("37.700")),
        ]

    def test_reception_fodec_label_shows_rate(self, document):
        resolved = resolve_totals(document, DocumentKind.RECEPTION)
        labels = [r.label for r in totals_rows(resolved, DocumentKind.RECEPTION)]
        assert "FODEC (1%)" in labels
        assert "FODEC" not in labels

    def test_stamp_switched_off_on_document(self, document):
        document = document.model_copy(update={"timbre_enabled": False})
        totals = compute_totals(document, DocumentKind.PURCHASE_INVOICE)
        assert totals.timbre_fiscal == 0
        assert totals.total_ttc == Decimal("270.377")
        rows = totals_rows(totals.apply_to(document), DocumentKind.PURCHASE_INVOICE)
        assert rows[-1].label == "Timbre fiscal - Non activé"
        assert rows[-1].amount == 0
