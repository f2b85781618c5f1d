"""Contrato de una estrategia de generación.

Por qué Protocol:
- Una estrategia es cualquier cosa que sepa producir "el siguiente candidato
  o agotamiento"; el motor no necesita saber si por dentro baraja listas
  grandes en un hilo o simplemente itera una lista pequeña.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable


@runtime_checkable
class CandidateProducer(Protocol):
    """Productor re-entrante y potencialmente suspendible.

    Reglas de diseño:
    - `__anext__` devuelve el siguiente dominio o lanza `StopAsyncIteration`.
    - Nunca repite un valor y termina tras recorrer todo su espacio.
    """

    name: str

    def __aiter__(self) -> AsyncIterator[str]:
        ...

    async def __anext__(self) -> str:
        ...
