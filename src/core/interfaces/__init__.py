"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) que implementan adaptadores concretos.
- Permite invertir dependencias: el Core depende de abstracciones.
"""

from core.interfaces.producer import CandidateProducer
from core.interfaces.reporter import ScanReporter
from core.interfaces.resolver import DomainResolver
from core.interfaces.store import StateStore

__all__ = [
    "CandidateProducer",
    "DomainResolver",
    "ScanReporter",
    "StateStore",
]
