import json

import pytest

from erp_documents.cli import main


@pytest.fixture
def files(tmp_path, document_data, company_data, monkeypatch):
    monkeypatch.setenv("ERP_DOCS_COMPRESS", "false")
    document = tmp_path / "devis.json"
    company = tmp_path / "company.json"
    document.write_text(json.dumps(document_data), encoding="utf-8")
    company.write_text(json.dumps(company_data), encoding="utf-8")
    return document, company


class TestRender:

    def test_render_to_output(self, files, tmp_path, capsys):
        document, company = files
        out = tmp_path / "out.pdf"
        assert main(["render", str(document), "--company", str(company), "-o", str(out)]) == 0
        assert out.read_bytes().startswith(b"%PDF")
        assert str(out) in capsys.readouterr().out

    def test_default_filename(self, files, tmp_path, monkeypatch):
        document, company = files
        monkeypatch.chdir(tmp_path)
        assert main(["render", str(document), "--company", str(company)]) == 0
        assert (tmp_path / "Devis-DV-2024-001-Societe_ABC.pdf").exists()

    def test_kind_option(self, files, tmp_path, monkeypatch):
        document, company = files
        monkeypatch.chdir(tmp_path)
        assert main(["render", str(document), "--company", str(company),
                     "--kind", "delivery", "--no-stamp"]) == 0
        pdf = (tmp_path / "BonLivraison-DV-2024-001-Societe_ABC.pdf").read_bytes()
        assert b"BON DE LIVRAISON" in pdf

    def test_invalid_json(self, files, tmp_path, capsys):
        _, company = files
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        assert main(["render", str(bad), "--company", str(company)]) == 1
        assert "not valid JSON" in capsys.readouterr().err

    def test_missing_company_file(self, files, tmp_path, capsys):
        document, _ = files
        assert main(["render", str(document), "--company", str(tmp_path / "absent.json")]) == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_invalid_document(self, files, tmp_path, capsys):
        _, company = files
        doc = tmp_path / "empty.json"
        doc.write_text("{}", encoding="utf-8")
        assert main(["render", str(doc), "--company", str(company)]) == 1
        assert "Invalid document" in capsys.readouterr().err

    def test_unwritable_output(self, files, tmp_path, capsys):
        document, company = files
        out = tmp_path / "missing" / "out.pdf"
        assert main(["render", str(document), "--company", str(company), "-o", str(out)]) == 1
        err = capsys.readouterr().err
        assert "Cannot render document DV-2024-001" in err
        assert str(out) in err
        assert not out.exists()

    @pytest.mark.parametrize("kind, filename", [
        ("reception", "BonReception-DV-2024-001-Societe_ABC.pdf"),
        ("purchase-invoice", "FactureAchat-DV-2024-001-Societe_ABC.pdf"),
        ("purchase-return", "RetourAchat-DV-2024-001-Societe_ABC.pdf"),
    ])
    def test_purchase_kinds(self, files, tmp_path, monkeypatch, kind, filename):
        document, company = files
        monkeypatch.chdir(tmp_path)
        assert main(["render", str(document), "--company", str(company), "--kind", kind]) == 0
        assert (tmp_path / filename).read_bytes().startswith(b"%PDF")


class TestWords:

    def test_words(self, capsys):
        assert main(["words", "120.5"]) == 0
        assert capsys.readouterr().out.strip() == \
            "cent vingt Dinars tunisiens et cinq cents millimes"

    def test_words_currency(self, capsys):
        assert main(["words", "1", "--currency", "EUR"]) == 0
        assert capsys.readouterr().out.strip() == "un EUR"

    @pytest.mark.parametrize("amount", ["abc", "", "nan", "1.2.3"])
    def test_not_an_amount(self, capsys, amount):
        assert main(["words", amount]) == 1
        captured = capsys.readouterr()
        assert "Not an amount" in captured.err
        assert captured.out == ""


class TestTotals:

    def test_totals_json(self, files, capsys):
        document, _ = files
        assert main(["totals", str(document)]) == 0
        totals = json.loads(capsys.readouterr().out)
        assert totals["total_ttc"] == "271.377"
        assert totals["tax_groups"] == {"DEFAULT": "38.077"}

    def test_totals_delivery(self, files, capsys):
        document, _ = files
        assert main(["totals", str(document), "--kind", "delivery"]) == 0
        assert json.loads(capsys.readouterr().out)["timbre_fiscal"] == "0"

    def test_totals_purchase_return(self, files, capsys):
        document, _ = files
        assert main(["totals", str(document), "--kind", "purchase-return"]) == 0
        totals = json.loads(capsys.readouterr().out)
        assert totals["fodec"] == "0.000"
        assert totals["total_ttc"] == "267.700"

    def test_withholding_from_env(self, files, capsys, monkeypatch):
        document, _ = files
        monkeypatch.setenv("ERP_DOCS_WITHHOLDING_RATE", "1.5")
        monkeypatch.setenv("ERP_DOCS_WITHHOLDING_SCOPE", "all")
        assert main(["totals", str(document)]) == 0
        totals = json.loads(capsys.readouterr().out)
        assert totals["withholding"] == "3.450"
        assert totals["net_payable"] == "267.927"


def test_command_required():
    with pytest.raises(SystemExit):
        main([])
