from __future__ import annotations

import asyncio
import random

import pytest

from core.domain.models import Candidate, FoundEntry, Verdict
from core.exceptions import EndpointMapUnavailable
from core.services.generation import build_generation_engine
from core.services.orchestrator import ScanOrchestrator
from tests.conftest import FakeResolver, MemoryStore, RecordingReporter, list_engine, make_config


def available(domain: str) -> Verdict:
    return Verdict(domain=domain, method="epp", available=True)


def build(
    candidates,
    *,
    resolver: FakeResolver | None = None,
    store: MemoryStore | None = None,
    reporter: RecordingReporter | None = None,
    **config,
) -> tuple[ScanOrchestrator, FakeResolver, MemoryStore, RecordingReporter]:
    resolver = resolver or FakeResolver()
    store = store or MemoryStore()
    reporter = reporter or RecordingReporter()
    orchestrator = ScanOrchestrator(
        config=make_config(**config),
        engine=list_engine(candidates),
        resolver=resolver,
        store=store,
        reporter=reporter,
        force_exit=lambda code: None,
    )
    return orchestrator, resolver, store, reporter


async def test_expensive_premium_is_skipped():
    resolver = FakeResolver(
        lambda d: Verdict(domain=d, method="epp", available=True, premium=True, price_amount=120)
    )
    orchestrator, _, store, reporter = build([("ab.io", "2-Letter")], resolver=resolver, max_price_per_year=50)

    await orchestrator.run()

    assert reporter.kinds("skipped_premium") == [("skipped_premium", "ab.io", "$120.00/yr")]
    assert reporter.kinds("available") == []
    assert store.found == []
    assert "ab.io" in store.checked


async def test_affordable_premium_is_recorded_with_its_fee():
    resolver = FakeResolver(
        lambda d: Verdict(domain=d, method="epp", available=True, premium=True, price_amount=30)
    )
    orchestrator, _, store, reporter = build([("ab.io", "2-Letter")], resolver=resolver, max_price_per_year=50)

    await orchestrator.run()

    (entry,) = store.found
    assert entry.price == 30
    assert entry.premium is True
    assert reporter.kinds("available") == [("available", "ab.io", "2-Letter", "$30.00/yr [PREMIUM]")]


async def test_unaffordable_zone_never_reaches_resolver():
    orchestrator, resolver, store, _ = build(
        [("ab.io", "2-Letter"), ("ab.xyz", "2-Letter"), ("cd.io", "2-Letter")],
        prices={".io": 60},
        max_price_per_year=20,
    )

    await orchestrator.run()

    assert resolver.resolved == ["ab.xyz"]
    assert store.checked == {"ab.xyz"}


async def test_unlisted_zone_uses_default_price():
    orchestrator, resolver, _, _ = build(
        [("ab.zzz", "2-Letter"), ("ab.xyz", "2-Letter")],
        zones=[".zzz", ".xyz"],
        default_price=25,
        max_price_per_year=20,
    )

    await orchestrator.run()

    assert resolver.resolved == ["ab.xyz"]


async def test_verdicts_are_applied_in_enumeration_order():
    outcomes = {"aa.io": True, "bb.io": False, "cc.io": None, "dd.io": True}
    resolver = FakeResolver(lambda d: Verdict(domain=d, available=outcomes[d], reason="rdap: HTTP 500"))
    orchestrator, _, store, reporter = build(
        [(d, "2-Letter") for d in outcomes],
        resolver=resolver,
        batch_size=1,
        max_concurrent_batches=4,
    )

    await orchestrator.run()

    decisions = [e[:2] for e in reporter.events if e[0] in ("available", "taken", "inconclusive")]
    assert decisions == [
        ("available", "aa.io"),
        ("taken", "bb.io"),
        ("inconclusive", "cc.io"),
        ("available", "dd.io"),
    ]
    assert store.checked == set(outcomes)
    assert [e.domain for e in store.found] == ["aa.io", "dd.io"]


async def test_concurrent_batches_are_bounded():
    resolver = FakeResolver(delay=0.01)
    orchestrator, _, _, _ = build(
        [(f"a{c}.io", "2-Letter") for c in "abcdefghijkl"],
        resolver=resolver,
        batch_size=1,
        max_concurrent_batches=3,
        round_size=12,
    )

    await orchestrator.run()

    assert len(resolver.batches) == 12
    assert resolver.max_in_flight <= 3


async def test_duplicates_within_a_run_are_resolved_once():
    orchestrator, resolver, _, _ = build(
        [("go.io", "2-Letter"), ("go.io", "Short & Catchy"), ("ab.io", "2-Letter"), ("go.io", "Word Combos")],
        batch_size=1,
        round_size=2,
    )

    await orchestrator.run()

    assert sorted(resolver.resolved) == ["ab.io", "go.io"]


async def test_failed_batch_degrades_to_inconclusive():
    class FlakyResolver(FakeResolver):
        async def check_batch(self, domains):
            if "bb.io" in domains:
                raise RuntimeError("socket closed")
            return await super().check_batch(domains)

    resolver = FlakyResolver(available)
    orchestrator, _, store, reporter = build(
        [("aa.io", "2-Letter"), ("bb.io", "2-Letter"), ("cc.io", "2-Letter")],
        resolver=resolver,
        batch_size=1,
    )

    status = await orchestrator.run()

    assert ("inconclusive", "bb.io", "batch failed: RuntimeError") in reporter.events
    assert store.checked == {"aa.io", "bb.io", "cc.io"}
    assert [e.domain for e in store.found] == ["aa.io", "cc.io"]
    assert orchestrator.exhausted
    assert status.running is False


async def test_endpoint_map_failure_is_surfaced_after_final_save():
    class BrokenResolver(FakeResolver):
        async def check_batch(self, domains):
            raise EndpointMapUnavailable("no RDAP endpoint map could be obtained")

    orchestrator, _, store, _ = build([("aa.io", "2-Letter")], resolver=BrokenResolver())

    with pytest.raises(EndpointMapUnavailable):
        await orchestrator.run()

    assert store.statuses[-1].running is False
    assert store.checked_saves >= 1


async def test_stop_mid_round_settles_and_persists():
    release = asyncio.Event()
    dispatched = asyncio.Event()

    class BlockingResolver(FakeResolver):
        async def check_batch(self, domains):
            dispatched.set()
            await release.wait()
            await asyncio.sleep(0.01)
            return await super().check_batch(domains)

    resolver = BlockingResolver(available)
    orchestrator, _, store, reporter = build(
        [(f"a{c}.io", "2-Letter") for c in "abcdef"],
        resolver=resolver,
        batch_size=2,
        round_size=2,
    )

    task = asyncio.create_task(orchestrator.run())
    await asyncio.wait_for(dispatched.wait(), timeout=1)
    orchestrator.request_stop()
    release.set()
    status = await asyncio.wait_for(task, timeout=1)

    assert len(resolver.batches) == 1
    assert status.running is False
    assert status.last_completed is not None
    assert status.run_duration > 0
    assert store.statuses[0].running is True
    assert store.statuses[-1] == status
    assert store.checked_saves >= 1
    assert store.found_saves >= 1
    assert ("saving",) in reporter.events
    assert not orchestrator.exhausted


async def test_second_stop_forces_exit():
    exits: list[int] = []
    orchestrator, _, _, _ = build([])
    orchestrator._force_exit = exits.append

    orchestrator.request_stop()
    assert exits == []
    orchestrator.request_stop()
    assert exits == [1]


async def test_max_runtime_stops_an_unbounded_scan():
    config = make_config(zones=[".io"], batch_size=5, round_size=5)
    store = MemoryStore()
    orchestrator = ScanOrchestrator(
        config=config,
        engine=build_generation_engine(config, words=[], rng=random.Random(0)),
        resolver=FakeResolver(delay=0.02),
        store=store,
        reporter=RecordingReporter(),
        force_exit=lambda code: None,
    )

    status = await asyncio.wait_for(orchestrator.run(max_runtime=0.1), timeout=5)

    assert status.running is False
    assert 0 < status.domains_checked < 676
    assert not orchestrator.exhausted


async def test_resume_never_rechecks_or_duplicates():
    store = MemoryStore()
    candidates = [("aa.io", "2-Letter"), ("bb.io", "2-Letter"), ("cc.io", "2-Letter")]

    first, resolver, _, _ = build(candidates[:2], resolver=FakeResolver(available), store=store)
    await first.run()
    assert sorted(resolver.resolved) == ["aa.io", "bb.io"]

    second, resolver, _, _ = build(candidates, resolver=FakeResolver(available), store=store)
    await second.run()

    assert resolver.resolved == ["cc.io"]
    assert sorted(e.domain for e in store.found) == ["aa.io", "bb.io", "cc.io"]
    assert store.statuses[-1].domains_found == 3


async def test_found_entry_without_checked_mark_is_not_duplicated():
    store = MemoryStore(found=[FoundEntry(domain="aa.io", price=34.98, zone=".io")])
    orchestrator, _, store, reporter = build(
        [("aa.io", "2-Letter")], resolver=FakeResolver(available), store=store
    )

    await orchestrator.run()

    assert [e.domain for e in store.found] == ["aa.io"]
    assert reporter.kinds("available") == []
    assert "aa.io" in store.checked


async def test_checkpoint_after_find_and_periodically():
    outcomes = {"aa.io": False, "bb.io": False, "cc.io": True, "dd.io": False, "ee.io": False}
    resolver = FakeResolver(lambda d: Verdict(domain=d, available=outcomes[d]))
    orchestrator, _, store, _ = build(
        [(d, "2-Letter") for d in outcomes],
        resolver=resolver,
        batch_size=1,
        round_size=1,
        save_every=2,
    )

    await orchestrator.run()

    # rondas 2 y 4 (periódico), ronda 3 (hallazgo) y el guardado final.
    assert store.checked_saves == 4


async def test_persistence_failure_does_not_abort_the_run():
    store = MemoryStore(fail_saves=True)
    orchestrator, resolver, _, reporter = build(
        [("aa.io", "2-Letter"), ("bb.io", "2-Letter")],
        resolver=FakeResolver(available),
        store=store,
        batch_size=1,
        round_size=1,
    )

    status = await orchestrator.run()

    assert resolver.resolved == ["aa.io", "bb.io"]
    assert status.domains_found == 2
    assert reporter.kinds("saved") == []
    assert store.statuses[-1].running is False


async def test_stop_during_long_resume_skip_is_honoured():
    checked = [f"d{i}.io" for i in range(6000)]
    pulled: list[str] = []

    async def engine():
        for domain in [*checked, "new.io"]:
            pulled.append(domain)
            yield Candidate(value=domain, strategy="2-Letter")

    class StopOnStart(MemoryStore):
        def save_status(self, status):
            super().save_status(status)
            if len(self.statuses) == 1:
                asyncio.get_running_loop().call_soon(orchestrator.request_stop)

    store = StopOnStart(checked=checked)
    resolver = FakeResolver()
    orchestrator = ScanOrchestrator(
        config=make_config(round_size=1),
        engine=engine(),
        resolver=resolver,
        store=store,
        reporter=RecordingReporter(),
        force_exit=lambda code: None,
    )

    await orchestrator.run()

    assert len(pulled) < len(checked)
    assert resolver.batches == []
    assert "new.io" not in store.checked
    assert not orchestrator.exhausted
