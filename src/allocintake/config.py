"""Configuration models and YAML loading."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .loader import DEFAULT_MAX_TEXT_CHARS
from .models import ColumnRole


class PipelineConfig(BaseModel):
    """Options controlling column detection and reconciliation."""

    model_config = ConfigDict(frozen=True)

    use_content_detection: bool = Field(
        True,
        description="Use dictionary and numeric content to detect columns when catalogs are supplied",
    )
    sample_size: int = Field(500, ge=1, description="Rows sampled for content-based detection")
    header_mappings: Dict[ColumnRole, str] = Field(
        default_factory=dict,
        description="Explicit role -> header name mapping; overrides detection",
    )
    detect_pivot: bool = Field(True, description="Recognise and unpivot store-per-column exports")
    max_text_chars: int = Field(DEFAULT_MAX_TEXT_CHARS, ge=1, description="Size limit for pasted text")

    @field_validator("header_mappings", mode="before")
    @classmethod
    def normalize_mapping_keys(cls, v):
        """Accept role names in any case, e.g. ``Quantity`` or ``qty``."""
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("header_mappings must be a mapping of role -> header name")
        aliases = {"qty": "quantity", "desc": "description", "location": "store"}
        out = {}
        for key, header in v.items():
            k = str(key.value if isinstance(key, ColumnRole) else key).strip().lower()
            k = aliases.get(k, k)
            if header is None or not str(header).strip():
                raise ValueError(f"header_mappings[{key!r}] must name a header")
            out[k] = str(header).strip()
        return out


class CatalogPaths(BaseModel):
    items: Optional[str] = Field(None, description="Item catalog file (csv, xlsx or json)")
    stores: Optional[str] = Field(None, description="Store catalog file (csv, xlsx or json)")


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field("INFO", description="Log level")
    logs_dir: Optional[str] = Field(None, description="Directory for the log file; console only when unset")
    file_name: str = Field("allocintake.log", description="Log file name inside logs_dir")

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        return str(v).strip().upper() if v is not None else "INFO"


class AppConfig(BaseModel):
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    catalogs: CatalogPaths = Field(default_factory=CatalogPaths)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: str | Path | None) -> AppConfig:
    """Load and validate a YAML config. A missing path gives the defaults.

    Raises ``FileNotFoundError`` for a named file that does not exist and
    ``pydantic.ValidationError`` for invalid values.
    """

    if path is None:
        return AppConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")
    return AppConfig.model_validate(raw)
