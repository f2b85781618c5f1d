"""Fuentes de estado de dominios (tiers de resolución).

Por qué un paquete:
- Agrupa un módulo por fuente externa (bulk registrar API, RDAP, DNS).
- Cada fuente devuelve `Verdict` y nunca lanza por fallos de red.
"""

from adapters.status_sources.bulk import BulkStatusSource
from adapters.status_sources.delegation import DelegationSource
from adapters.status_sources.rdap import RdapSource

__all__ = [
    "BulkStatusSource",
    "DelegationSource",
    "RdapSource",
]
