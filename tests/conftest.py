from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable, Iterable, Sequence

import pytest

from core.config import ScanConfig
from core.domain.models import Candidate, FoundEntry, RunStatus, Verdict
from core.exceptions import PersistenceError


class RecordingReporter:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def kinds(self, kind: str) -> list[tuple]:
        return [e for e in self.events if e[0] == kind]

    def available(self, domain: str, strategy: str, price: str) -> None:
        self.events.append(("available", domain, strategy, price))

    def taken(self, domain: str) -> None:
        self.events.append(("taken", domain))

    def inconclusive(self, domain: str, reason: str) -> None:
        self.events.append(("inconclusive", domain, reason))

    def skipped_premium(self, domain: str, price: str) -> None:
        self.events.append(("skipped_premium", domain, price))

    def round_progress(self, round_number: int, size: int) -> None:
        self.events.append(("round", round_number, size))

    def saving(self) -> None:
        self.events.append(("saving",))

    def saved(self, found: int) -> None:
        self.events.append(("saved", found))

    def stats(self, checked: int, found: int) -> None:
        self.events.append(("stats", checked, found))


class MemoryStore:
    def __init__(
        self,
        checked: Iterable[str] = (),
        found: Iterable[FoundEntry] = (),
        *,
        fail_saves: bool = False,
    ) -> None:
        self.checked = set(checked)
        self.found = list(found)
        self.statuses: list[RunStatus] = []
        self.checked_saves = 0
        self.found_saves = 0
        self.fail_saves = fail_saves

    def load_checked(self) -> set[str]:
        return set(self.checked)

    def load_found(self) -> list[FoundEntry]:
        return list(self.found)

    def save_checked(self, checked: Iterable[str]) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.checked_saves += 1
        self.checked = set(checked)

    def save_found(self, found: Iterable[FoundEntry]) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.found_saves += 1
        self.found = list(found)

    def save_status(self, status: RunStatus) -> None:
        self.statuses.append(status)


class FakeResolver:
    """Resolver en memoria; `decide(domain)` devuelve el veredicto de cada dominio."""

    def __init__(
        self,
        decide: Callable[[str], Verdict] | None = None,
        *,
        delay: float = 0.0,
    ) -> None:
        self.decide = decide or (lambda d: Verdict(domain=d, method="epp", available=False))
        self.delay = delay
        self.batches: list[list[str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def resolved(self) -> list[str]:
        return [d for batch in self.batches for d in batch]

    async def check_domain(self, domain: str) -> Verdict:
        return (await self.check_batch([domain]))[domain]

    async def check_batch(self, domains: Sequence[str]) -> dict[str, Verdict]:
        self.batches.append(list(domains))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return {d: self.decide(d) for d in domains}
        finally:
            self.in_flight -= 1


async def list_engine(candidates: Iterable[Candidate | tuple[str, str]]) -> AsyncIterator[Candidate]:
    for item in candidates:
        if isinstance(item, tuple):
            item = Candidate(value=item[0], strategy=item[1])
        yield item


def make_config(**overrides) -> ScanConfig:
    values = {
        "zones": [".io", ".xyz"],
        "max_price_per_year": 50,
        "batch_size": 2,
        "max_concurrent_batches": 2,
        "request_delay_ms": 0,
        "strategies": [],
    }
    values.update(overrides)
    return ScanConfig(**values)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
