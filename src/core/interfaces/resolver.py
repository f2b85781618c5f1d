"""Contrato del motor de resolución.

Por qué Protocol:
- El orquestador sólo necesita `check_batch`; los tests inyectan resolvers
  falsos sin tocar la red.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from core.domain.models import Verdict


@runtime_checkable
class DomainResolver(Protocol):
    """Resuelve dominios a veredictos.

    Reglas de diseño:
    - Nunca lanza por fallos de red: se degradan a `Verdict(available=None)`.
    - La única excepción que se propaga es `EndpointMapUnavailable`.
    """

    async def check_domain(self, domain: str) -> Verdict:
        ...

    async def check_batch(self, domains: Sequence[str]) -> dict[str, Verdict]:
        ...
