"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP/DNS/persistencia) lean config de forma consistente.

Hay dos capas:
- `AppSettings`: entorno de ejecución (URLs, timeouts, rutas). Viene de env/.env.
- `ScanConfig`: qué explorar (zonas, keywords, precios). Viene de `config.json`.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.pricing import DEFAULT_PRICE, DEFAULT_ZONE_PRICES, normalize_zone
from core.exceptions import ConfigurationError


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "domain-radar"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "domain-radar"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "domain-radar"
    return Path.home() / ".config" / "domain-radar"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración de entorno de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOMAIN_RADAR_",
        extra="ignore",
        case_sensitive=False,
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    user_agent: str = Field(
        default="Mozilla/5.0",
        min_length=1,
        description="User-Agent para todas las peticiones HTTP.",
    )
    bulk_status_url: str = Field(
        default="https://domains.revved.com/v1/domainStatus",
        min_length=8,
        description="Endpoint de estado bulk (tier 1).",
    )
    bulk_referer: str = Field(
        default="https://www.namecheap.com/",
        description="Referer/Origin que espera el endpoint bulk.",
    )
    rdap_bootstrap_url: str = Field(
        default="https://data.iana.org/rdap/dns.json",
        min_length=8,
        description="Documento bootstrap IANA (zona -> servidor RDAP).",
    )

    bulk_batch_timeout_seconds: float = Field(default=15.0, gt=0)
    bulk_single_timeout_seconds: float = Field(default=10.0, gt=0)
    bootstrap_timeout_seconds: float = Field(default=20.0, gt=0)
    rdap_timeout_seconds: float = Field(default=8.0, gt=0)
    dns_timeout_seconds: float = Field(default=5.0, gt=0)

    data_dir: Path | None = Field(
        default=None,
        description="Directorio para checked.json/found.json/status.json/words.json.",
    )
    config_path: Path = Field(
        default=Path("config.json"),
        description="Ruta al config.json de exploración.",
    )
    log_level: str = Field(default="INFO", description="Nivel de logging (DEBUG/INFO/...).")


class ScanConfig(BaseModel):
    """Qué explorar y con qué límites.

    Acepta las claves camelCase de `config.json` (`tlds`, `maxPricePerYear`,
    `requestDelayMs`...) además de los nombres Python.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    zones: list[str] = Field(..., min_length=1, alias="tlds")
    keywords: list[str] = Field(default_factory=list)
    personal_names: list[str] = Field(default_factory=list)
    strategies: list[str] = Field(
        default_factory=lambda: ["short", "keyword", "personal", "word-combos", "word-numbers"],
        description="Estrategias opcionales activas (two-letter siempre lo está).",
    )

    max_price_per_year: float = Field(..., gt=0)
    prices: dict[str, float] = Field(
        default_factory=dict,
        description="Overrides de precio por zona sobre la tabla por defecto.",
    )
    default_price: float = Field(default=DEFAULT_PRICE, gt=0)
    four_letter_zones: list[str] = Field(
        default_factory=lambda: [".dev", ".xyz", ".cool", ".lol", ".sh"],
        description="Zonas baratas donde se exploran combos de 4 letras.",
    )

    batch_size: int = Field(default=10, ge=1, le=100)
    max_concurrent_batches: int = Field(default=3, ge=1, le=64)
    request_delay_ms: int = Field(default=1000, ge=0)
    round_size: int | None = Field(
        default=None,
        ge=1,
        description="Candidatos por ronda; por defecto batch_size * max_concurrent_batches.",
    )
    save_every: int = Field(default=50, ge=1, description="Checkpoint cada N dominios procesados.")

    @field_validator("zones", "four_letter_zones")
    @classmethod
    def _normalize_zones(cls, value: list[str]) -> list[str]:
        zones = [normalize_zone(z) for z in value if z.strip()]
        return list(dict.fromkeys(zones))

    @field_validator("keywords", "personal_names")
    @classmethod
    def _normalize_labels(cls, value: list[str]) -> list[str]:
        labels = [v.strip().lower() for v in value if v.strip()]
        return list(dict.fromkeys(labels))

    @field_validator("prices")
    @classmethod
    def _normalize_prices(cls, value: dict[str, float]) -> dict[str, float]:
        return {normalize_zone(k): float(v) for k, v in value.items()}

    @model_validator(mode="after")
    def _fill_round_size(self) -> "ScanConfig":
        if self.round_size is None:
            self.round_size = self.batch_size * self.max_concurrent_batches
        return self

    @property
    def price_table(self) -> dict[str, float]:
        return {**DEFAULT_ZONE_PRICES, **self.prices}

    @property
    def request_delay_seconds(self) -> float:
        return self.request_delay_ms / 1000


def load_scan_config(path: Path) -> ScanConfig:
    """Lee y valida `config.json`; cualquier problema es `ConfigurationError`."""

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read config {path}: {exc}") from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a JSON object")
    try:
        return ScanConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid config {path}:\n{exc}") from exc
