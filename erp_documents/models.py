"""
Input data for commercial documents.

Field names are English; every field also accepts the French key used by
the stored documents (``numero``, ``lignes``, ``prixUnitaireHT``...), so a
document exported from the database validates as-is.
"""

import math
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

ZERO = Decimal("0")


def parse_decimal(value, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """Read a number the forgiving way forms send them; garbage becomes ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    if isinstance(value, float) and not math.isfinite(value):
        return default
    text = str(value).strip().replace(",", ".")
    if not text:
        return default
    try:
        result = Decimal(text)
    except InvalidOperation:
        return default
    return result if result.is_finite() else default


def parse_datetime(value):
    if value is None or value == "":
        return None
    if isinstance(value, str) and len(value) == 10:
        value = date.fromisoformat(value)
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Address(_Model):
    street: str = Field(default="", alias="rue")
    city: str = Field(default="", alias="ville")
    postal_code: str = Field(default="", alias="codePostal")
    country: str = Field(default="", alias="pays")

    @field_validator("street", "city", "postal_code", "country", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else str(v)


class BankDetails(_Model):
    bank: Optional[str] = Field(default=None, alias="banque")
    rib: Optional[str] = None
    swift: Optional[str] = None


class CompanyHeader(_Model):
    slogan: Optional[str] = None
    phone: Optional[str] = Field(default=None, alias="telephone")
    email: Optional[str] = None
    website: Optional[str] = Field(default=None, alias="siteWeb")
    tax_id: Optional[str] = Field(default=None, alias="matriculeFiscal")
    trade_register: Optional[str] = Field(default=None, alias="registreCommerce")
    share_capital: Optional[str] = Field(default=None, alias="capitalSocial")


class CompanyFooter(_Model):
    text: Optional[str] = Field(default=None, alias="texte")
    general_conditions: Optional[str] = Field(default=None, alias="conditionsGenerales")
    legal_mentions: Optional[str] = Field(default=None, alias="mentionsLegales")
    bank_details: Optional[BankDetails] = Field(default=None, alias="coordonneesBancaires")


class CompanyInfo(_Model):
    """The issuing company, as printed in the header and footer."""

    name: str = Field(alias="nom")
    address: Address = Field(default_factory=Address, alias="adresse")
    logo: Optional[str] = Field(default=None, alias="logoUrl")
    stamp: Optional[str] = Field(default=None, alias="cachetUrl")
    header: Optional[CompanyHeader] = Field(default=None, alias="enTete")
    footer: Optional[CompanyFooter] = Field(default=None, alias="piedPage")

    @field_validator("address", mode="before")
    @classmethod
    def none_address(cls, v):
        return {} if v is None else v


def _aliases(name, *keys):
    """Accept every stored spelling of a field, plus its Python name."""
    return AliasChoices(*keys, name)


class DocumentLine(_Model):
    product_id: Optional[str] = Field(default=None, alias="productId")
    category_code: Optional[str] = Field(default=None, alias="categorieCode")
    reference: Optional[str] = None
    product: Optional[str] = Field(default=None, alias="produit")
    designation: Optional[str] = None
    description: Optional[str] = None
    product_description: Optional[str] = Field(default=None, alias="descriptionProduit")
    # Receptions record the received quantity next to the ordered one
    quantity: Decimal = Field(
        default=ZERO, validation_alias=_aliases("quantity", "quantite", "qteRecue"))
    ordered_quantity: Optional[Decimal] = Field(default=None, alias="qteCommandee")
    unit: Optional[str] = Field(default=None, alias="unite")
    uom_code: Optional[str] = Field(default=None, alias="uomCode")
    unit_price: Decimal = Field(default=ZERO, alias="prixUnitaireHT")
    discount_pct: Decimal = Field(default=ZERO, alias="remisePct")
    tva_pct: Decimal = Field(default=ZERO, alias="tvaPct")
    tax_code: Optional[str] = Field(default=None, alias="taxCode")
    stocked: Optional[bool] = Field(default=None, alias="estStocke")

    @field_validator("quantity", "unit_price", "discount_pct", "tva_pct", mode="before")
    @classmethod
    def lenient_number(cls, v):
        return parse_decimal(v)

    @field_validator("ordered_quantity", mode="before")
    @classmethod
    def lenient_optional_number(cls, v):
        return parse_decimal(v, default=None)

    @field_validator("product_id", "reference", mode="before")
    @classmethod
    def id_to_str(cls, v):
        return None if v is None else str(v)


class DocumentData(_Model):
    """
    A commercial document: sales side (quote, invoice, credit note, delivery
    note) or purchase side (order, reception, supplier invoice, return).

    Purchase documents name the counterparty ``supplier*``; it is stored in
    the same ``customer_*`` fields and printed under the "Fournisseur" label.
    """

    numero: str
    date_doc: datetime = Field(validation_alias=_aliases("date_doc", "dateDoc", "dateFacture"))
    # Invoices call it the due date (dateEcheance)
    date_validite: Optional[datetime] = Field(
        default=None,
        validation_alias=_aliases("date_validite", "dateValidite", "dateEcheance"),
    )

    customer_name: Optional[str] = Field(
        default=None, validation_alias=_aliases("customer_name", "customerName", "supplierName"))
    customer_address: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("customer_address", "customerAddress", "supplierAddress"))
    customer_tax_id: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("customer_tax_id", "customerMatricule", "supplierMatricule"))
    customer_code: Optional[str] = Field(default=None, alias="customerCode")
    customer_phone: Optional[str] = Field(
        default=None, validation_alias=_aliases("customer_phone", "customerPhone", "supplierPhone"))
    customer_email: Optional[str] = Field(
        default=None, validation_alias=_aliases("customer_email", "customerEmail", "supplierEmail"))
    # Original invoice of a credit note, supplier's invoice number, or the
    # reception a purchase return comes from
    external_reference: Optional[str] = Field(
        default=None,
        validation_alias=_aliases("external_reference", "referenceExterne",
                                  "referenceFournisseur", "brNumero"))
    external_reference_date: Optional[datetime] = Field(default=None, alias="brDate")

    currency: str = Field(default="TND", alias="devise")
    lines: List[DocumentLine] = Field(default_factory=list, alias="lignes")

    total_base_ht: Optional[Decimal] = Field(default=None, alias="totalBaseHT")
    line_discounts: Optional[Decimal] = Field(default=None, alias="remiseLignes")
    global_discount: Optional[Decimal] = Field(default=None, alias="remiseGlobale")
    global_discount_pct: Optional[Decimal] = Field(default=None, alias="remiseGlobalePct")
    total_discount: Optional[Decimal] = Field(default=None, alias="totalRemise")
    total_ht: Optional[Decimal] = Field(default=None, alias="totalHT")
    fodec: Optional[Decimal] = None
    fodec_rate: Optional[Decimal] = Field(
        default=None, validation_alias=_aliases("fodec_rate", "fodecTauxPct", "tauxFodec"))
    fodec_enabled: Optional[bool] = Field(
        default=None, validation_alias=_aliases("fodec_enabled", "fodecEnabled", "fodecActif"))
    total_tva: Optional[Decimal] = Field(default=None, alias="totalTVA")
    timbre_fiscal: Optional[Decimal] = Field(
        default=None, validation_alias=_aliases("timbre_fiscal", "timbreFiscal", "timbre"))
    timbre_enabled: Optional[bool] = Field(
        default=None, validation_alias=_aliases("timbre_enabled", "timbreActif"))
    total_ttc: Optional[Decimal] = Field(default=None, alias="totalTTC")

    payment_mode: Optional[str] = Field(default=None, alias="modePaiement")
    notes: Optional[str] = None
    document_type: Optional[str] = Field(default=None, alias="documentType")

    delivery_address: Optional[str] = Field(default=None, alias="adresseLivraison")
    planned_delivery_date: Optional[datetime] = Field(default=None, alias="dateLivraisonPrevue")
    actual_delivery_date: Optional[datetime] = Field(default=None, alias="dateLivraisonReelle")
    delivery_place: Optional[str] = Field(default=None, alias="lieuLivraison")
    transport_mode: Optional[str] = Field(default=None, alias="moyenTransport")
    transport_plate: Optional[str] = Field(default=None, alias="matriculeTransport")
    status: Optional[str] = Field(default=None, alias="statut")

    @model_validator(mode="before")
    @classmethod
    def unpack_fodec(cls, data):
        # Stored documents keep FODEC as {enabled, tauxPct, montant}
        if isinstance(data, dict) and isinstance(data.get("fodec"), dict):
            data = dict(data)
            fodec = data["fodec"]
            enabled = bool(fodec.get("enabled", True))
            data["fodecEnabled"] = enabled
            if all(data.get(k) is None for k in ("fodecTauxPct", "tauxFodec", "fodec_rate")):
                data["fodecTauxPct"] = fodec.get("tauxPct") if enabled else 0
            data["fodec"] = fodec.get("montant") if enabled else 0
        return data

    @field_validator("numero", mode="before")
    @classmethod
    def numero_to_str(cls, v):
        return v if v is None else str(v)

    @field_validator("external_reference", mode="before")
    @classmethod
    def reference_to_str(cls, v):
        return None if v is None else str(v)

    @field_validator("currency", mode="before")
    @classmethod
    def default_currency(cls, v):
        if v is None or v == "":
            return "TND"
        if not isinstance(v, str):
            raise ValueError("currency must be a code such as 'TND'")
        return v.strip().upper() or "TND"

    @field_validator("date_doc", "date_validite", "external_reference_date",
                     "planned_delivery_date", "actual_delivery_date", mode="before")
    @classmethod
    def dates(cls, v):
        return parse_datetime(v)

    @field_validator("total_base_ht", "line_discounts", "global_discount",
                     "global_discount_pct", "total_discount", "total_ht", "fodec",
                     "fodec_rate", "total_tva", "timbre_fiscal", "total_ttc", mode="before")
    @classmethod
    def lenient_total(cls, v):
        return parse_decimal(v, default=None)

    @property
    def has_stored_totals(self) -> bool:
        return self.total_ttc is not None
