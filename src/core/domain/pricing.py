"""Precios anuales por zona.

Por qué en el dominio:
- El filtro de coste del orquestador se decide *antes* de tocar la red, así
  que es lógica pura sin I/O.
- La tabla por defecto puede sobreescribirse desde `config.json`.
"""

from __future__ import annotations

from collections.abc import Mapping

DEFAULT_PRICE = 15.0

# Precios de registro del primer año (USD).
DEFAULT_ZONE_PRICES: dict[str, float] = {
    ".com": 10.28,
    ".net": 12.98,
    ".org": 9.98,
    ".io": 34.98,
    ".co": 11.98,
    ".me": 6.98,
    ".dev": 12.98,
    ".app": 14.98,
    ".xyz": 2.00,
    ".sh": 39.98,
    ".ai": 79.98,
    ".cool": 3.98,
    ".lol": 2.98,
    ".so": 58.98,
    ".gg": 59.98,
    ".fm": 89.98,
}


def normalize_zone(zone: str) -> str:
    """`IO`, `io`, `.io` -> `.io`."""

    zone = zone.strip().lower()
    return zone if zone.startswith(".") else f".{zone}"


def zone_of(domain: str) -> str:
    return "." + domain.rsplit(".", 1)[-1].lower()


def zone_price(
    zone: str,
    prices: Mapping[str, float] | None = None,
    default: float = DEFAULT_PRICE,
) -> float:
    table = DEFAULT_ZONE_PRICES if prices is None else prices
    return float(table.get(normalize_zone(zone), default))


def is_affordable(
    zone: str,
    ceiling: float,
    prices: Mapping[str, float] | None = None,
    default: float = DEFAULT_PRICE,
) -> bool:
    return zone_price(zone, prices, default) <= ceiling


def format_price(amount: float) -> str:
    return f"${amount:.2f}/yr"
