"""Tier 2: RDAP por zona.

Implementación:
- El mapa zona -> servidor se carga una vez del bootstrap IANA
  (`services: [[zonas], [urls]]`) y se cachea; si falla, se usa un mapa
  estático pequeño.
- `GET {server}/domain/{domain}`:
  - 404 => disponible, salvo que la `description` diga blocked/reserved/not available
  - 2xx => registrado
  - otro => inconcluso
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

import httpx

from core.config import AppSettings
from core.domain.models import Verdict
from core.exceptions import EndpointMapUnavailable

logger = logging.getLogger(__name__)

DEFAULT_RDAP_ENDPOINTS: dict[str, str] = {
    "com": "https://rdap.verisign.com/com/v1/",
    "net": "https://rdap.verisign.com/net/v1/",
    "org": "https://rdap.org.rdap.org/",
    "dev": "https://pubapi.registry.google/rdap/",
    "app": "https://pubapi.registry.google/rdap/",
}

_UNAVAILABLE_MARKERS = ("blocked", "reserved", "not available")


def parse_bootstrap(data: Any) -> dict[str, str]:
    """Aplana el documento bootstrap a `{zona: primer servidor}`."""

    mapping: dict[str, str] = {}
    services = data.get("services") if isinstance(data, dict) else None
    for service in services or []:
        if not isinstance(service, list) or len(service) < 2:
            continue
        zones, urls = service[0], service[1]
        if not isinstance(zones, list) or not isinstance(urls, list) or not urls:
            continue
        for zone in zones:
            if isinstance(zone, str):
                mapping[zone.lower()] = str(urls[0])
    return mapping


class RdapSource:
    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: AppSettings | None = None,
        *,
        fallback_endpoints: Mapping[str, str] | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or AppSettings()
        self._fallback = dict(DEFAULT_RDAP_ENDPOINTS if fallback_endpoints is None else fallback_endpoints)
        self._endpoints: dict[str, str] | None = None
        self._lock = asyncio.Lock()

    async def endpoints(self) -> dict[str, str]:
        """Mapa zona -> servidor (cargado una sola vez).

        Lanza `EndpointMapUnavailable` si ni el bootstrap ni el fallback aportan nada.
        """

        if self._endpoints is not None:
            return self._endpoints
        async with self._lock:
            if self._endpoints is None:
                self._endpoints = await self._load()
        return self._endpoints

    async def _load(self) -> dict[str, str]:
        mapping: dict[str, str] = {}
        try:
            resp = await self._client.get(
                self._settings.rdap_bootstrap_url,
                timeout=self._settings.bootstrap_timeout_seconds,
            )
            resp.raise_for_status()
            mapping = parse_bootstrap(resp.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("RDAP bootstrap unavailable (%s); using static endpoint map", exc)

        if not mapping:
            mapping = dict(self._fallback)
        if not mapping:
            raise EndpointMapUnavailable("no RDAP endpoint map could be obtained")
        logger.debug("RDAP endpoint map loaded for %d zones", len(mapping))
        return mapping

    async def check(self, domain: str) -> Verdict:
        endpoints = await self.endpoints()
        server = endpoints.get(domain.rsplit(".", 1)[-1].lower())
        if not server:
            return Verdict.inconclusive(domain, "no RDAP server", method="rdap")

        url = f"{server.rstrip('/')}/domain/{domain}"
        try:
            resp = await self._client.get(
                url,
                headers={"Accept": "application/rdap+json"},
                timeout=self._settings.rdap_timeout_seconds,
            )
        except httpx.HTTPError as exc:
            return Verdict.inconclusive(domain, str(exc) or type(exc).__name__, method="rdap")

        if resp.status_code == 404:
            return self._interpret_not_found(domain, resp)
        if resp.is_success:
            return Verdict(domain=domain, method="rdap", available=False)
        return Verdict.inconclusive(domain, f"HTTP {resp.status_code}", method="rdap")

    @staticmethod
    def _interpret_not_found(domain: str, resp: httpx.Response) -> Verdict:
        try:
            body = resp.json()
        except ValueError:
            body = None

        description = body.get("description") if isinstance(body, dict) else None
        if isinstance(description, list):
            parts = [str(d) for d in description]
            text = " ".join(parts).lower()
            if any(marker in text for marker in _UNAVAILABLE_MARKERS):
                return Verdict(domain=domain, method="rdap", available=False, note="; ".join(parts))
        return Verdict(domain=domain, method="rdap", available=True)
