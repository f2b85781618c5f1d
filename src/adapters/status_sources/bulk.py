"""Tier 1: estado bulk vía la API del registrador.

Implementación:
- Una sola petición con todos los dominios separados por comas.
- Respuesta: `{"status": [{"name", "available", "reason"?, "premium"?, "fee": {"amount"}?}]}`.

Notas:
- Sólo hay veredicto para los nombres que aparecen en la respuesta.
- Cualquier error (HTTP no-2xx, red, JSON) devuelve un mapa vacío: el
  llamador hace fallback para todo lo que falte.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence
from urllib.parse import quote

import httpx

from core.config import AppSettings
from core.domain.models import Verdict
from core.domain.pricing import format_price

logger = logging.getLogger(__name__)


def _fee_amount(fee: Any) -> float | None:
    if not isinstance(fee, dict):
        return None
    amount = fee.get("amount")
    try:
        value = float(amount)
    except (TypeError, ValueError):
        return None
    return value if value >= 0 else None


def parse_status_entry(entry: Any) -> Verdict | None:
    """Convierte una entrada de `status` en `Verdict` (o None si no es concluyente)."""

    if not isinstance(entry, dict):
        return None
    name = entry.get("name")
    available = entry.get("available")
    if not isinstance(name, str) or not isinstance(available, bool):
        return None

    reason = entry.get("reason")
    verdict = Verdict(
        domain=name.lower(),
        method="epp",
        available=available,
        note=reason if isinstance(reason, str) and reason else None,
    )

    amount = _fee_amount(entry.get("fee"))
    if entry.get("premium") and amount is not None:
        verdict.premium = True
        verdict.price_amount = amount
        verdict.price_display = format_price(amount)
    return verdict


class BulkStatusSource:
    """Cliente del endpoint bulk (`domainStatus?domains=a,b,c`)."""

    def __init__(self, client: httpx.AsyncClient, settings: AppSettings | None = None) -> None:
        self._client = client
        self._settings = settings or AppSettings()
        self._headers = {
            "Referer": self._settings.bulk_referer,
            "Origin": self._settings.bulk_referer.rstrip("/"),
        }

    def _url(self, domains: Sequence[str]) -> str:
        query = ",".join(quote(d, safe="") for d in domains)
        return f"{self._settings.bulk_status_url}?domains={query}"

    async def fetch(self, domains: Sequence[str], *, timeout: float | None = None) -> dict[str, Verdict]:
        if not domains:
            return {}
        timeout = timeout or self._settings.bulk_batch_timeout_seconds
        results: dict[str, Verdict] = {}
        try:
            resp = await self._client.get(self._url(domains), headers=self._headers, timeout=timeout)
            if not resp.is_success:
                logger.debug("Bulk status HTTP %s for %d domains", resp.status_code, len(domains))
                return results
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.debug("Bulk status request failed: %s", exc)
            return results

        entries = data.get("status") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            logger.debug("Bulk status response without a status list")
            return results
        for entry in entries:
            verdict = parse_status_entry(entry)
            if verdict is not None:
                results[verdict.domain] = verdict
        return results
