"""Tier 3: delegación DNS (registros NS).

Último recurso: que no haya delegación no garantiza que el dominio sea
registrable, así que todo veredicto de este tier se marca para verificación
manual.

- NXDOMAIN  => disponible
- NS        => registrado
- otro      => inconcluso
"""

from __future__ import annotations

from typing import Any

import dns.asyncresolver
import dns.exception
import dns.resolver

from core.config import AppSettings
from core.domain.models import Verdict

MANUAL_CHECK_NOTE = "DNS fallback, verify before purchasing"


class DelegationSource:
    def __init__(self, settings: AppSettings | None = None, *, resolver: Any | None = None) -> None:
        self._settings = settings or AppSettings()
        self._resolver = resolver

    def _get_resolver(self) -> Any:
        # Se crea al primer uso: leer resolv.conf puede fallar y eso es un
        # fallo del tier, no del arranque.
        if self._resolver is None:
            resolver = dns.asyncresolver.Resolver()
            resolver.lifetime = self._settings.dns_timeout_seconds
            self._resolver = resolver
        return self._resolver

    async def check(self, domain: str) -> Verdict:
        try:
            answer = await self._get_resolver().resolve(domain, "NS")
        except dns.resolver.NXDOMAIN:
            return Verdict(domain=domain, method="dns", available=True, note=MANUAL_CHECK_NOTE)
        except dns.resolver.NoAnswer:
            return Verdict.inconclusive(domain, "no NS records; manual check required", method="dns")
        except dns.exception.Timeout:
            return Verdict.inconclusive(domain, "DNS timeout; manual check required", method="dns")
        except dns.exception.DNSException as exc:
            return Verdict.inconclusive(
                domain,
                f"{type(exc).__name__}; manual check required",
                method="dns",
            )

        if len(answer) > 0:
            return Verdict(domain=domain, method="dns", available=False, note=MANUAL_CHECK_NOTE)
        return Verdict.inconclusive(domain, "empty NS answer; manual check required", method="dns")
