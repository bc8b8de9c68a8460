"""Tests for product text, notes cleanup and word wrapping."""

from reportlab.pdfbase.pdfmetrics import stringWidth

from erp_documents.models import DocumentLine
from erp_documents.text import clean_notes, html_to_plain, product_text, wrap_text


class TestHtmlToPlain:

    def test_paragraphs_and_list_items(self):
        html = "<p>Chaise</p><ul><li>Bois</li><li>Noir</li></ul>"
        assert html_to_plain(html) == "Chaise\nBois\nNoir"

    def test_entities(self):
        assert html_to_plain("A&amp;B&nbsp;C &lt;1m&gt;") == "A&B C <1m>"

    def test_blank_runs_collapse(self):
        assert html_to_plain("a<br><br><br><br>b") == "a\n\nb"

    def test_empty(self):
        assert html_to_plain(None) == ""
        assert html_to_plain("<p> </p>") == ""


class TestProductText:

    def test_service_uses_product_description(self):
        line = DocumentLine(produit="Service", estStocke=False,
                            descriptionProduit="<b>Maintenance</b> annuelle")
        assert product_text(line, 0) == "Maintenance annuelle"

    def test_stocked_prefers_designation(self):
        line = DocumentLine(produit="P", designation="Bureau chêne", estStocke=True,
                            descriptionProduit="ignored")
        assert product_text(line, 0) == "Bureau chêne"

    def test_fallback_order(self):
        assert product_text(DocumentLine(description="Desc"), 0) == "Desc"
        assert product_text(DocumentLine(), 2) == "Produit 3"


class TestCleanNotes:

    def test_plain_note(self):
        assert clean_notes("  Merci pour votre confiance  ") == ("Merci pour votre confiance", False)

    def test_missing(self):
        assert clean_notes(None) == ("", False)

    def test_alert_note(self):
        text, is_alert = clean_notes("[⚠️ Retour de 2 articles \U0001F4E6]")
        assert is_alert
        assert text == "ATTENTION : Retour de 2 articles"

    def test_alert_keeps_accents_and_euro(self):
        text, _ = clean_notes("[Échange prévu: 10 €]")
        assert text == "Échange prévu: 10 €"


class TestWrapText:

    def test_short_text_single_line(self):
        assert wrap_text("a b c", 200) == ["a b c"]

    def test_lines_fit_width(self):
        text = "Chaise de bureau ergonomique avec accoudoirs réglables et roulettes"
        lines = wrap_text(text, 100)
        assert len(lines) > 1
        assert all(stringWidth(line, "Helvetica", 9) <= 100 for line in lines)
        assert " ".join(lines) == text

    def test_keeps_newlines(self):
        assert wrap_text("un\n\ndeux", 200) == ["un", "", "deux"]

    def test_long_word_is_split(self):
        word = "x" * 200
        lines = wrap_text(word, 50)
        assert "".join(lines) == word
        assert all(stringWidth(line, "Helvetica", 9) <= 50 for line in lines)

    def test_empty(self):
        assert wrap_text("", 100) == [""]
