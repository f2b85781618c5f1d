"""Contrato del reporter (callbacks de la UI).

El Core llama al reporter en cada decisión; cómo se pinta (Rich, JSON, nada)
es problema del adaptador.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ScanReporter(Protocol):
    def available(self, domain: str, strategy: str, price: str) -> None:
        ...

    def taken(self, domain: str) -> None:
        ...

    def inconclusive(self, domain: str, reason: str) -> None:
        ...

    def skipped_premium(self, domain: str, price: str) -> None:
        ...

    def round_progress(self, round_number: int, size: int) -> None:
        ...

    def saving(self) -> None:
        ...

    def saved(self, found: int) -> None:
        ...

    def stats(self, checked: int, found: int) -> None:
        ...
