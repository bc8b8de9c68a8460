"""Shared fixtures: a company, a two-line quote and render settings."""

import copy

import pytest

from erp_documents.config import RenderSettings, Settings, reset_settings
from erp_documents.logging_utils import reset_logger

COMPANY = {
    "nom": "Atlas Equipements",
    "adresse": {"rue": "12 Rue de Marseille", "ville": "Tunis", "codePostal": "1000",
                "pays": "Tunisie"},
    "enTete": {"telephone": "+216 71 000 000", "email": "contact@atlas.tn",
               "matriculeFiscal": "1234567/A/M/000", "capitalSocial": "50 000 DT"},
    "piedPage": {"coordonneesBancaires": {"banque": "BIAT", "rib": "08 000 0000000000000 00"}},
}

DOCUMENT = {
    "numero": "DV-2024-001",
    "dateDoc": "2024-03-15",
    "dateValidite": "2024-04-15",
    "customerName": "Societe ABC",
    "customerAddress": "Avenue Habib Bourguiba, Sfax",
    "customerPhone": "74 000 000",
    "devise": "TND",
    "fodec": {"enabled": True, "tauxPct": 1},
    "lignes": [
        {"produit": "Chaise bureau", "quantite": 2, "prixUnitaireHT": 100,
         "remisePct": 10, "tvaPct": 19, "estStocke": True},
        {"produit": "Installation", "quantite": 1, "prixUnitaireHT": "50",
         "remisePct": 0, "tvaPct": 7, "estStocke": False},
    ],
    "modePaiement": "Virement",
}


@pytest.fixture(autouse=True)
def clean_state():
    reset_settings()
    yield
    reset_settings()
    reset_logger()


@pytest.fixture
def company_data():
    return copy.deepcopy(COMPANY)


@pytest.fixture
def document_data():
    return copy.deepcopy(DOCUMENT)


@pytest.fixture
def settings():
    """Uncompressed output so page text can be searched in the bytes."""
    return Settings(render=RenderSettings(compress=False))
