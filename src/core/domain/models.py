"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los artefactos persistidos (found.json, status.json) se serializan con las
  mismas claves camelCase que ya existen en disco.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

VerdictMethod = Literal["epp", "rdap", "dns", "unknown"]

_PRICE_RE = re.compile(r"\$?\s*(\d+(?:\.\d+)?)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Candidate(BaseModel):
    """Nombre propuesto por el motor de generación (efímero)."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=3, description="Dominio completo, p.ej. 'ab.io'.")
    strategy: str = Field(..., min_length=1, description="Estrategia que lo produjo.")


class Verdict(BaseModel):
    """Resultado de resolver un dominio.

    `available`:
    - True  => registrable
    - False => registrado/bloqueado
    - None  => inconcluso (todas las fuentes fallaron o no respondieron)
    """

    domain: str = Field(..., min_length=1)
    method: VerdictMethod = Field(default="unknown", description="Tier que decidió.")
    available: bool | None = Field(default=None)
    note: str | None = Field(default=None, description="Contexto legible (p.ej. RDAP description).")
    reason: str | None = Field(default=None, description="Diagnóstico cuando el tier es inconcluso.")
    premium: bool = Field(default=False)
    price_amount: float | None = Field(
        default=None,
        ge=0,
        description="Precio premium anual reportado por el tier bulk (autoritativo).",
    )
    price_display: str | None = Field(
        default=None,
        description="Representación cosmética del precio; nunca se parsea.",
    )

    @property
    def definite(self) -> bool:
        return self.available is not None

    @classmethod
    def inconclusive(cls, domain: str, reason: str, *, method: VerdictMethod = "unknown") -> "Verdict":
        return cls(domain=domain, method=method, available=None, reason=reason)


class FoundEntry(BaseModel):
    """Dominio disponible registrado en el FoundRegistry."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    domain: str = Field(..., min_length=1)
    strategy: str = Field(default="unknown")
    price: float = Field(..., ge=0, description="Precio anual (USD).")
    zone: str = Field(..., min_length=2)
    premium: bool = Field(default=False)
    checked_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_legacy(cls, data: dict[str, Any]) -> "FoundEntry":
        """Acepta entradas antiguas con `tld` en vez de `zone`."""

        if "zone" not in data and "tld" in data:
            data = {**data, "zone": data["tld"]}
        return cls.model_validate(data)

    @field_validator("price", mode="before")
    @classmethod
    def _parse_display_price(cls, value: Any) -> Any:
        # Ficheros antiguos guardaban "$12.98/yr".
        if isinstance(value, str):
            match = _PRICE_RE.search(value)
            if match is None:
                raise ValueError(f"unparseable price: {value!r}")
            return float(match.group(1))
        return value


class RunStatus(BaseModel):
    """Estado de la ejecución que se reescribe en cada checkpoint/finalización."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    running: bool
    started_at: datetime
    last_completed: datetime | None = None
    domains_checked: int = Field(default=0, ge=0)
    domains_found: int = Field(default=0, ge=0)
    run_duration: float | None = Field(default=None, ge=0, description="Segundos.")


@dataclass
class ScanState:
    """CheckedSet + FoundRegistry de una ejecución.

    Lo posee el orquestador y se inyecta explícitamente al store y al
    reporter; no hay estado global de proceso.
    """

    checked: set[str] = field(default_factory=set)
    found: list[FoundEntry] = field(default_factory=list)
    _found_index: set[str] = field(default_factory=set, init=False, repr=False)

    def __post_init__(self) -> None:
        unique: list[FoundEntry] = []
        for entry in self.found:
            if entry.domain in self._found_index:
                continue
            self._found_index.add(entry.domain)
            unique.append(entry)
        self.found = unique

    @classmethod
    def from_iterables(cls, checked: Iterable[str], found: Iterable[FoundEntry]) -> "ScanState":
        return cls(checked=set(checked), found=list(found))

    def was_checked(self, domain: str) -> bool:
        return domain in self.checked

    def mark_checked(self, domain: str) -> None:
        self.checked.add(domain)

    def add_found(self, entry: FoundEntry) -> bool:
        """Añade al registro; devuelve False si el dominio ya estaba."""

        if entry.domain in self._found_index:
            return False
        self._found_index.add(entry.domain)
        self.found.append(entry)
        return True

    def stats(self) -> tuple[int, int]:
        return len(self.checked), len(self.found)
