"""Motor de resolución por tiers.

Orden estricto, cortando en el primer veredicto definitivo por dominio:

1. bulk (API del registrador, una llamada por lote)
2. RDAP por zona
3. delegación DNS (último recurso, requiere verificación manual)

Cada tier convierte sus fallos de red en un `Verdict` inconcluso; sólo
`EndpointMapUnavailable` llega al llamador, porque significa que la
configuración no permite resolver nada.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import httpx

from adapters.http_client import build_async_client
from adapters.status_sources import BulkStatusSource, DelegationSource, RdapSource
from core.config import AppSettings
from core.domain.models import Verdict
from core.exceptions import EndpointMapUnavailable

logger = logging.getLogger(__name__)


class ResolutionEngine:
    def __init__(
        self,
        *,
        bulk: BulkStatusSource,
        rdap: RdapSource,
        delegation: DelegationSource,
        settings: AppSettings | None = None,
    ) -> None:
        self._bulk = bulk
        self._rdap = rdap
        self._delegation = delegation
        self._settings = settings or AppSettings()

    async def warmup(self) -> int:
        """Precarga el mapa RDAP; devuelve cuántas zonas cubre."""

        return len(await self._rdap.endpoints())

    async def check_domain(self, domain: str) -> Verdict:
        bulk = await self._bulk.fetch([domain], timeout=self._settings.bulk_single_timeout_seconds)
        verdict = bulk.get(domain)
        if verdict is not None:
            return verdict
        try:
            return await self._fallback(domain)
        except Exception as exc:
            return self._settle(domain, exc)

    async def check_batch(self, domains: Sequence[str]) -> dict[str, Verdict]:
        """Una llamada bulk para todo el lote y fallbacks concurrentes para lo que falte.

        El mapa devuelto tiene una entrada por dominio pedido, en el orden pedido,
        independientemente del orden en que terminen las llamadas.
        """

        requested = list(dict.fromkeys(domains))
        if not requested:
            return {}

        bulk = await self._bulk.fetch(requested, timeout=self._settings.bulk_batch_timeout_seconds)
        results: dict[str, Verdict] = {d: bulk[d] for d in requested if d in bulk}

        missed = [d for d in requested if d not in results]
        if missed:
            logger.debug("Bulk tier left %d/%d unresolved", len(missed), len(requested))
            outcomes = await asyncio.gather(
                *(self._fallback(d) for d in missed),
                return_exceptions=True,
            )
            for domain, outcome in zip(missed, outcomes):
                results[domain] = self._settle(domain, outcome)

        return {d: results[d] for d in requested}

    @staticmethod
    def _settle(domain: str, outcome: Any) -> Verdict:
        if isinstance(outcome, Verdict):
            return outcome
        if isinstance(outcome, EndpointMapUnavailable):
            raise outcome
        if isinstance(outcome, Exception):
            logger.debug("Fallback for %s failed: %r", domain, outcome)
            return Verdict.inconclusive(domain, f"{type(outcome).__name__}: {outcome}")
        raise outcome

    async def _fallback(self, domain: str) -> Verdict:
        rdap = await self._rdap.check(domain)
        if rdap.definite:
            return rdap

        delegation = await self._delegation.check(domain)
        if delegation.definite:
            return delegation

        return Verdict.inconclusive(
            domain,
            f"all checks inconclusive (rdap: {rdap.reason}; dns: {delegation.reason})",
        )


@asynccontextmanager
async def open_resolution_engine(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    dns_resolver: Any | None = None,
) -> AsyncIterator[ResolutionEngine]:
    """Crea el motor con un único `httpx.AsyncClient` compartido por los tiers HTTP."""

    settings = settings or AppSettings()
    async with build_async_client(settings, transport=transport) as client:
        yield ResolutionEngine(
            bulk=BulkStatusSource(client, settings),
            rdap=RdapSource(client, settings),
            delegation=DelegationSource(settings, resolver=dns_resolver),
            settings=settings,
        )
