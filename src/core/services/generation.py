"""Motor de generación de candidatos.

Cada estrategia es un productor asíncrono que recorre *su* espacio
combinatorio exactamente una vez, en un orden barajado una sola vez por
proceso (se barajan las colecciones base, no cada elemento). El motor los
intercala en round-robin: un elemento por estrategia activa en cada vuelta, y
las estrategias agotadas salen de la rotación.

Nunca se materializa el producto cartesiano de todas las estrategias: cada
una construye (de forma perezosa, al primer `anext`) sólo su propia lista de
combinaciones.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import random
import string
from collections import deque
from typing import AsyncIterator, Callable, Iterable, Sequence

from core.config import ScanConfig
from core.domain.models import Candidate
from core.exceptions import ConfigurationError
from core.interfaces.producer import CandidateProducer

logger = logging.getLogger(__name__)

CHARS = string.ascii_lowercase

# Listas mayores que esto se barajan fuera del event loop.
_OFFLOAD_THRESHOLD = 20_000

PREFIXES = (
    "get", "try", "use", "hey", "my", "go", "the", "on", "to", "we", "so", "its",
    "run", "ask", "no", "all", "be", "do", "hi", "oh", "yo", "is", "by", "up",
    "one", "new", "hot", "top", "big", "raw", "pro", "sub", "pre", "neo", "re",
)
SUFFIXES = (
    "hq", "app", "dev", "lab", "hub", "ly", "ify", "up", "now", "ai", "io", "os",
    "run", "go", "pro", "box", "kit", "ops", "it", "er", "ed", "fy", "sy", "zy",
    "on", "an", "in", "en", "x", "z", "co", "me", "to", "db", "ui", "api", "cli",
    "net", "web", "log", "bot", "bit", "way", "max", "pod", "zen",
)
NAME_PREFIXES = (
    "hey", "ask", "get", "hi", "by", "its", "im", "the", "yo", "mr", "dr", "go",
    "oh", "am", "be", "do", "my", "so", "we", "not", "for", "sir", "pro",
)
NAME_SUFFIXES = (
    "hq", "dev", "lab", "code", "builds", "works", "tech", "hub", "ops", "ai",
    "app", "run", "pro", "craft", "zone", "stack", "verse", "space", "net", "web",
    "log", "box", "bot", "land", "camp", "base", "core", "lite", "max", "now",
    "xyz", "io",
)
NUMBERS = (
    "0", "1", "2", "3", "4", "5", "6", "7", "8", "9", "00", "01", "10", "11",
    "42", "69", "99", "007", "101", "123", "256", "404", "420", "500", "666",
    "777", "888", "999",
)

MANDATORY_STRATEGY = "two-letter"

STRATEGY_LABELS: dict[str, str] = {
    "two-letter": "2-Letter",
    "short": "Short & Catchy",
    "keyword": "Keyword-Based",
    "personal": "Personal Names",
    "expired": "Short Combos",
    "word-combos": "Word Combos",
    "word-numbers": "Word+Number",
}


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(items))


async def _shuffled(items: Iterable[str], rng: random.Random) -> list[str]:
    out = list(items)
    if len(out) > _OFFLOAD_THRESHOLD:
        await asyncio.to_thread(rng.shuffle, out)
    else:
        rng.shuffle(out)
    return out


def _letter_combos(length: int) -> list[str]:
    return ["".join(p) for p in itertools.product(CHARS, repeat=length)]


async def _labels_across_zones(
    labels: Sequence[str],
    zones: Sequence[str],
) -> AsyncIterator[str]:
    for label in labels:
        for zone in zones:
            yield f"{label}{zone}"


async def two_letter(zones: Sequence[str], rng: random.Random) -> AsyncIterator[str]:
    combos = await _shuffled(_letter_combos(2), rng)
    async for domain in _labels_across_zones(combos, await _shuffled(zones, rng)):
        yield domain


async def short_words(
    words: Sequence[str],
    zones: Sequence[str],
    rng: random.Random,
) -> AsyncIterator[str]:
    shuffled = await _shuffled(_unique(words), rng)
    async for domain in _labels_across_zones(shuffled, await _shuffled(zones, rng)):
        yield domain


async def affixed(
    bases: Sequence[str],
    prefixes: Sequence[str],
    suffixes: Sequence[str],
    zones: Sequence[str],
    rng: random.Random,
) -> AsyncIterator[str]:
    """`base`, `prefix+base`, `base+suffix` por cada base, en todas las zonas.

    Dos combinaciones distintas pueden producir la misma etiqueta
    (`get`+`app` / `getapp`), por eso se lleva un set de etiquetas emitidas;
    el espacio es pequeño (bases x afijos).
    """

    shuffled_bases = await _shuffled(_unique(bases), rng)
    shuffled_prefixes = await _shuffled(_unique(prefixes), rng)
    shuffled_suffixes = await _shuffled(_unique(suffixes), rng)
    shuffled_zones = await _shuffled(zones, rng)

    seen: set[str] = set()
    for base in shuffled_bases:
        labels = itertools.chain(
            [base],
            (f"{prefix}{base}" for prefix in shuffled_prefixes),
            (f"{base}{suffix}" for suffix in shuffled_suffixes),
        )
        for label in labels:
            if label in seen:
                continue
            seen.add(label)
            for zone in shuffled_zones:
                yield f"{label}{zone}"


async def short_combos(
    zones: Sequence[str],
    four_letter_zones: Sequence[str],
    rng: random.Random,
) -> AsyncIterator[str]:
    """3 letras en todas las zonas y luego 4 letras en las zonas baratas."""

    combos = await _shuffled(await asyncio.to_thread(_letter_combos, 3), rng)
    async for domain in _labels_across_zones(combos, await _shuffled(zones, rng)):
        yield domain

    allowed = set(four_letter_zones)
    cheap = [zone for zone in zones if zone in allowed]
    if not cheap:
        return

    # Se suelta la lista de 3 letras antes de construir la de 4 (~457k).
    del combos
    combos = await _shuffled(await asyncio.to_thread(_letter_combos, 4), rng)
    async for domain in _labels_across_zones(combos, await _shuffled(cheap, rng)):
        yield domain


async def word_combos(
    words: Sequence[str],
    zones: Sequence[str],
    rng: random.Random,
) -> AsyncIterator[str]:
    short = [w for w in _unique(words) if len(w) <= 4]
    pairs = _unique(
        a + b
        for a in short
        for b in short
        if a != b and len(a) + len(b) <= 8
    )
    shuffled = await _shuffled(pairs, rng)
    async for domain in _labels_across_zones(shuffled, await _shuffled(zones, rng)):
        yield domain


async def word_numbers(
    words: Sequence[str],
    zones: Sequence[str],
    rng: random.Random,
) -> AsyncIterator[str]:
    # Las palabras son alfabéticas, así que palabra+número nunca colisiona.
    bases = await _shuffled([w for w in _unique(words) if len(w) <= 5 and w.isalpha()], rng)
    numbers = await _shuffled(NUMBERS, rng)
    shuffled_zones = await _shuffled(zones, rng)
    for word in bases:
        for number in numbers:
            for zone in shuffled_zones:
                yield f"{word}{number}{zone}"


class Strategy:
    """Adapta un async generator a `CandidateProducer` con nombre visible."""

    def __init__(self, name: str, factory: Callable[[], AsyncIterator[str]]) -> None:
        self.name = name
        self._factory = factory
        self._iterator: AsyncIterator[str] | None = None

    def __aiter__(self) -> "Strategy":
        return self

    async def __anext__(self) -> str:
        if self._iterator is None:
            self._iterator = self._factory()
        return await self._iterator.__anext__()

    def __repr__(self) -> str:
        return f"Strategy({self.name!r})"


class GenerationEngine:
    """Fair merge (round-robin) de varios productores.

    Se agota sólo cuando no queda ningún productor activo; a partir de ahí
    `__anext__` lanza `StopAsyncIteration` en vez de bloquear.
    """

    def __init__(self, producers: Iterable[CandidateProducer]) -> None:
        self._active: deque[CandidateProducer] = deque(producers)

    @property
    def exhausted(self) -> bool:
        return not self._active

    @property
    def active_strategies(self) -> list[str]:
        return [p.name for p in self._active]

    def __aiter__(self) -> "GenerationEngine":
        return self

    async def __anext__(self) -> Candidate:
        while self._active:
            producer = self._active.popleft()
            try:
                value = await anext(producer)
            except StopAsyncIteration:
                logger.info("Strategy %s exhausted", producer.name)
                continue
            self._active.append(producer)
            return Candidate(value=value, strategy=producer.name)
        raise StopAsyncIteration


def build_strategies(
    config: ScanConfig,
    words: Sequence[str],
    rng: random.Random | None = None,
) -> list[Strategy]:
    """Catálogo de estrategias activas para `config`.

    `two-letter` siempre va primero; el resto según `config.strategies`.
    """

    rng = rng or random.Random()
    unknown = set(config.strategies) - set(STRATEGY_LABELS)
    if unknown:
        raise ConfigurationError(f"unknown strategies: {', '.join(sorted(unknown))}")

    zones = config.zones
    factories: dict[str, Callable[[], AsyncIterator[str]]] = {
        "two-letter": lambda: two_letter(zones, rng),
        "short": lambda: short_words(words, zones, rng),
        "keyword": lambda: affixed(config.keywords, PREFIXES, SUFFIXES, zones, rng),
        "personal": lambda: affixed(config.personal_names, NAME_PREFIXES, NAME_SUFFIXES, zones, rng),
        "expired": lambda: short_combos(zones, config.four_letter_zones, rng),
        "word-combos": lambda: word_combos(words, zones, rng),
        "word-numbers": lambda: word_numbers(words, zones, rng),
    }

    enabled = _unique([MANDATORY_STRATEGY, *config.strategies])
    return [Strategy(STRATEGY_LABELS[key], factories[key]) for key in enabled]


def build_generation_engine(
    config: ScanConfig,
    words: Sequence[str],
    rng: random.Random | None = None,
) -> GenerationEngine:
    strategies = build_strategies(config, words, rng)
    logger.debug("Active strategies: %s", [s.name for s in strategies])
    return GenerationEngine(strategies)
