"""
Document generator settings.

Settings are loaded from environment variables (prefixed ``ERP_DOCS_``),
optionally read from a ``.env`` file, and fall back to Tunisian defaults.
"""

import os
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

ENV_PREFIX = "ERP_DOCS_"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(ENV_PREFIX + name, default)


def _parse_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")


class DocumentSettings(BaseModel):
    """Defaults applied to documents that leave a field out."""

    default_currency: str = Field(
        default="TND",
        description="Currency used when a document has no devise"
    )

    @field_validator("default_currency")
    @classmethod
    def upper_currency(cls, v):
        return v.strip().upper()


class TaxSettings(BaseModel):
    """TVA, FODEC, fiscal stamp and withholding configuration."""

    fodec_rate: Decimal = Field(
        default=Decimal("1"),
        description="FODEC rate in percent, applied on net HT"
    )

    timbre_enabled: bool = Field(
        default=True,
        description="Add the fiscal stamp to computed totals"
    )

    timbre_fiscal: Decimal = Field(
        default=Decimal("1.000"),
        description="Fixed fiscal stamp amount per document"
    )

    rounding: str = Field(
        default="line",
        description="Round to millimes per line or once per document"
    )

    withholding_rate: Decimal = Field(
        default=Decimal("0"),
        description="Withholding at source rate in percent"
    )

    withholding_scope: str = Field(
        default="none",
        description="none, all, or services (only documents made of services)"
    )

    @field_validator("fodec_rate", "timbre_fiscal", "withholding_rate")
    @classmethod
    def not_negative(cls, v):
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("rounding")
    @classmethod
    def validate_rounding(cls, v):
        v = v.strip().lower()
        if v not in ("line", "document"):
            raise ValueError("rounding must be 'line' or 'document'")
        return v

    @field_validator("withholding_scope")
    @classmethod
    def validate_scope(cls, v):
        v = v.strip().lower()
        if v not in ("none", "all", "services"):
            raise ValueError("withholding scope must be 'none', 'all' or 'services'")
        return v


class RenderSettings(BaseModel):
    """PDF output options."""

    font_dir: Optional[Path] = Field(
        default=None,
        description="Directory holding DejaVuSans TTF files; Helvetica otherwise"
    )

    compress: bool = Field(
        default=True,
        description="Compress PDF page streams"
    )


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = Field(default="INFO")

    file: Optional[Path] = Field(
        default=None,
        description="Optional log file, rotated at 10MB"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()


class Settings(BaseModel):
    """Main settings."""

    document: DocumentSettings = Field(default_factory=DocumentSettings)
    tax: TaxSettings = Field(default_factory=TaxSettings)
    render: RenderSettings = Field(default_factory=RenderSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``ERP_DOCS_*`` environment variables."""
        font_dir = _env("FONT_DIR")
        log_file = _env("LOG_FILE")
        return cls(
            document=DocumentSettings(
                default_currency=_env("DEFAULT_CURRENCY", "TND"),
            ),
            tax=TaxSettings(
                fodec_rate=_env("FODEC_RATE", "1"),
                timbre_enabled=_parse_bool(_env("TIMBRE_ENABLED", "true")),
                timbre_fiscal=_env("TIMBRE_FISCAL", "1.000"),
                rounding=_env("ROUNDING", "line"),
                withholding_rate=_env("WITHHOLDING_RATE", "0"),
                withholding_scope=_env("WITHHOLDING_SCOPE", "none"),
            ),
            render=RenderSettings(
                font_dir=Path(font_dir) if font_dir else None,
                compress=_parse_bool(_env("COMPRESS", "true")),
            ),
            logging=LoggingSettings(
                level=_env("LOG_LEVEL", "INFO"),
                file=Path(log_file) if log_file else None,
            ),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    global _settings
    _settings = None
