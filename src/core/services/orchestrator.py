"""Orquestación de la exploración por rondas.

Cada ronda: generar -> filtrar -> lotes -> resolver -> persistir.

- El flujo de control es secuencial; la concurrencia existe sólo *dentro* de
  una ronda (lotes en paralelo, acotados por `max_concurrent_batches`).
- El estado mutable (`ScanState`) sólo se toca después de que todos los lotes
  de la ronda terminen: la ronda es una barrera de sincronización.
- La cancelación es cooperativa y se comprueba entre rondas. Una segunda
  petición de parada mientras ya se está parando sale del proceso en seco.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import datetime
from typing import AsyncIterator, Callable, Sequence

from core.config import ScanConfig
from core.domain.models import Candidate, FoundEntry, RunStatus, ScanState, Verdict, utcnow
from core.domain.pricing import format_price, is_affordable, zone_of, zone_price
from core.exceptions import EndpointMapUnavailable, PersistenceError
from core.interfaces.reporter import ScanReporter
from core.interfaces.resolver import DomainResolver
from core.interfaces.store import StateStore

logger = logging.getLogger(__name__)

_YIELD_EVERY = 2000


class ScanOrchestrator:
    def __init__(
        self,
        *,
        config: ScanConfig,
        engine: AsyncIterator[Candidate],
        resolver: DomainResolver,
        store: StateStore,
        reporter: ScanReporter,
        force_exit: Callable[[int], object] = os._exit,
    ) -> None:
        self._config = config
        self._engine = engine
        self._resolver = resolver
        self._store = store
        self._reporter = reporter
        self._force_exit = force_exit

        self.state = ScanState()
        self.exhausted = False
        self._stopping = False
        self._started_at: datetime = utcnow()
        self._t0 = time.monotonic()
        self._affordable: dict[str, bool] = {}

    @property
    def stopping(self) -> bool:
        return self._stopping

    def request_stop(self, reason: str = "Stop requested") -> None:
        """Parada cooperativa; la segunda llamada fuerza la salida inmediata."""

        if self._stopping:
            logger.warning("Second stop request received, exiting immediately")
            self._force_exit(1)
            return
        self._stopping = True
        logger.info("%s, finishing current round", reason)

    def _deadline_reached(self, max_runtime: float) -> None:
        if not self._stopping:
            self.request_stop(f"Max runtime ({max_runtime:.0f}s) reached")

    async def run(self, *, max_runtime: float | None = None) -> RunStatus:
        """Ejecuta rondas hasta agotar candidatos, recibir stop o alcanzar `max_runtime`.

        Siempre termina con un checkpoint final y `RunStatus(running=False)`,
        también si una ronda propaga `EndpointMapUnavailable`.
        """

        self.state = ScanState.from_iterables(self._store.load_checked(), self._store.load_found())
        checked, found = self.state.stats()
        if checked:
            logger.info("Resuming: %d already checked, %d found so far", checked, found)

        self._started_at = utcnow()
        self._t0 = time.monotonic()
        self._save_status(self._status(running=True))

        timer: asyncio.TimerHandle | None = None
        if max_runtime:
            loop = asyncio.get_running_loop()
            timer = loop.call_later(max_runtime, self._deadline_reached, max_runtime)

        try:
            await self._rounds()
        finally:
            if timer is not None:
                timer.cancel()
            status = self._finalize()
        return status

    async def _rounds(self) -> None:
        round_number = 0
        since_save = 0
        while not self._stopping:
            survivors = await self._collect_round()
            if self._stopping:
                break
            if not survivors:
                self.exhausted = True
                logger.info("Candidate space exhausted")
                break

            round_number += 1
            self._reporter.round_progress(round_number, len(survivors))

            # Una sola espera por ronda, nunca por dominio.
            await asyncio.sleep(self._config.request_delay_seconds)
            if self._stopping:
                break

            verdicts = await self._dispatch(survivors)
            if self._stopping:
                logger.info("Discarding %d results from round %d after stop request", len(verdicts), round_number)
                break

            added = self._process(survivors, verdicts)
            since_save += len(survivors)
            periodic = since_save >= self._config.save_every
            if periodic:
                since_save = 0
            if added or periodic:
                self._checkpoint()

    def _is_affordable(self, zone: str) -> bool:
        if zone not in self._affordable:
            self._affordable[zone] = is_affordable(
                zone,
                self._config.max_price_per_year,
                self._config.price_table,
                self._config.default_price,
            )
        return self._affordable[zone]

    async def _collect_round(self) -> list[Candidate]:
        """Tira del motor hasta `round_size` supervivientes o agotamiento."""

        round_size = self._config.round_size or self._config.batch_size
        survivors: list[Candidate] = []
        in_round: set[str] = set()
        skipped = 0
        while len(survivors) < round_size:
            candidate = await anext(self._engine, None)
            if candidate is None:
                break
            domain = candidate.value
            if (
                domain in in_round
                or self.state.was_checked(domain)
                or not self._is_affordable(zone_of(domain))
            ):
                skipped += 1
                # Los generadores no ceden el loop; al reanudar hay prefijos enormes ya comprobados.
                if skipped % _YIELD_EVERY == 0:
                    await asyncio.sleep(0)
                    if self._stopping:
                        break
                continue
            in_round.add(domain)
            survivors.append(candidate)
        return survivors

    async def _dispatch(self, survivors: Sequence[Candidate]) -> dict[str, Verdict]:
        """Join estructurado: todos los lotes terminan antes de devolver.

        Un lote que falla se traduce en veredictos inconclusos para sus dominios.
        """

        size = self._config.batch_size
        batches = [survivors[i:i + size] for i in range(0, len(survivors), size)]
        semaphore = asyncio.Semaphore(self._config.max_concurrent_batches)

        async def run_batch(batch: Sequence[Candidate]) -> dict[str, Verdict]:
            async with semaphore:
                return await self._resolver.check_batch([c.value for c in batch])

        outcomes = await asyncio.gather(*(run_batch(b) for b in batches), return_exceptions=True)

        verdicts: dict[str, Verdict] = {}
        for batch, outcome in zip(batches, outcomes):
            if isinstance(outcome, EndpointMapUnavailable):
                raise outcome
            if isinstance(outcome, Exception):
                logger.warning("Batch of %d domains failed: %r", len(batch), outcome)
                for candidate in batch:
                    verdicts[candidate.value] = Verdict.inconclusive(
                        candidate.value,
                        f"batch failed: {type(outcome).__name__}",
                    )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            verdicts.update(outcome)
        return verdicts

    def _process(self, survivors: Sequence[Candidate], verdicts: dict[str, Verdict]) -> int:
        """Aplica veredictos en orden de enumeración; devuelve cuántos hallazgos nuevos hubo."""

        added = 0
        for candidate in survivors:
            domain = candidate.value
            verdict = verdicts.get(domain)
            if verdict is None:
                self._reporter.inconclusive(domain, "no verdict")
                continue

            self.state.mark_checked(domain)
            if verdict.available is True:
                if self._record_available(candidate, verdict):
                    added += 1
            elif verdict.available is False:
                self._reporter.taken(domain)
            else:
                self._reporter.inconclusive(domain, verdict.reason or "unknown")
        return added

    def _record_available(self, candidate: Candidate, verdict: Verdict) -> bool:
        domain = candidate.value
        premium_amount = verdict.price_amount if verdict.premium else None
        if premium_amount is not None and premium_amount > self._config.max_price_per_year:
            self._reporter.skipped_premium(domain, format_price(premium_amount))
            return False

        zone = zone_of(domain)
        price = (
            premium_amount
            if premium_amount is not None
            else zone_price(zone, self._config.price_table, self._config.default_price)
        )
        entry = FoundEntry(
            domain=domain,
            strategy=candidate.strategy,
            price=price,
            zone=zone,
            premium=verdict.premium,
        )
        if not self.state.add_found(entry):
            return False

        label = format_price(price) + (" [PREMIUM]" if verdict.premium else "")
        self._reporter.available(domain, candidate.strategy, label)
        return True

    def _status(self, *, running: bool) -> RunStatus:
        checked, found = self.state.stats()
        status = RunStatus(
            running=running,
            started_at=self._started_at,
            domains_checked=checked,
            domains_found=found,
        )
        if not running:
            status.last_completed = utcnow()
            status.run_duration = round(time.monotonic() - self._t0, 3)
        return status

    def _save_status(self, status: RunStatus) -> None:
        try:
            self._store.save_status(status)
        except PersistenceError as exc:
            logger.error("Could not write run status: %s", exc)

    def _checkpoint(self) -> bool:
        try:
            self._store.save_checked(self.state.checked)
            self._store.save_found(self.state.found)
        except PersistenceError as exc:
            logger.error("Checkpoint failed, will retry at the next one: %s", exc)
            return False
        self._save_status(self._status(running=True))
        return True

    def _finalize(self) -> RunStatus:
        self._reporter.saving()
        saved = self._checkpoint()
        checked, found = self.state.stats()
        if saved:
            self._reporter.saved(found)
        self._reporter.stats(checked, found)

        status = self._status(running=False)
        self._save_status(status)
        return status
