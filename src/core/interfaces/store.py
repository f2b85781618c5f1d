"""Contrato de persistencia del estado de exploración."""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from core.domain.models import FoundEntry, RunStatus


@runtime_checkable
class StateStore(Protocol):
    """Checked set (compartido, de larga vida) y found registry (sensible) por separado."""

    def load_checked(self) -> set[str]:
        ...

    def load_found(self) -> list[FoundEntry]:
        ...

    def save_checked(self, checked: Iterable[str]) -> None:
        ...

    def save_found(self, found: Iterable[FoundEntry]) -> None:
        ...

    def save_status(self, status: RunStatus) -> None:
        ...
