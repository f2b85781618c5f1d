"""Persistencia JSON del estado de exploración.

Por qué JSON:
- `checked.json` es estado compartido de larga vida (se versiona junto al repo).
- `found.json` es el artefacto sensible; va en un fichero aparte para poder
  cifrarlo/ignorarlo por separado.
- `status.json` describe la última ejecución.

Las escrituras son atómicas (fichero temporal + replace) para que un corte a
mitad de checkpoint no deje JSON truncado.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from core.domain.models import FoundEntry, RunStatus
from core.exceptions import PersistenceError

logger = logging.getLogger(__name__)

CHECKED_FILENAME = "checked.json"
FOUND_FILENAME = "found.json"
STATUS_FILENAME = "status.json"
LEGACY_FILENAME = "results.json"


def _read_json(path: Path) -> Any | None:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return None


def _write_json(path: Path, payload: Any, *, indent: int | None = None) -> None:
    tmp = path.with_name(f".{path.name}.tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=indent) + "\n", encoding="utf-8")
        os.replace(tmp, path)
    except OSError as exc:
        raise PersistenceError(f"cannot write {path}: {exc}") from exc


def _parse_found(items: Any, source: Path) -> list[FoundEntry]:
    entries: list[FoundEntry] = []
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(FoundEntry.from_legacy(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid found entry in %s: %s", source, exc.errors()[0]["msg"])
    return entries


class JsonStateStore:
    """Implementa `core.interfaces.StateStore` sobre un directorio de datos."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir
        self.checked_path = data_dir / CHECKED_FILENAME
        self.found_path = data_dir / FOUND_FILENAME
        self.status_path = data_dir / STATUS_FILENAME
        self.legacy_path = data_dir / LEGACY_FILENAME

    def load_checked(self) -> set[str]:
        checked: set[str] = set()
        data = _read_json(self.checked_path)
        if isinstance(data, list):
            checked.update(d for d in data if isinstance(d, str))

        legacy = _read_json(self.legacy_path)
        if isinstance(legacy, dict) and isinstance(legacy.get("checked"), list):
            checked.update(d for d in legacy["checked"] if isinstance(d, str))
        return checked

    def load_found(self) -> list[FoundEntry]:
        found = _parse_found(_read_json(self.found_path), self.found_path)
        seen = {entry.domain for entry in found}

        # Migración de results.json: sólo entradas nuevas.
        legacy = _read_json(self.legacy_path)
        if isinstance(legacy, dict):
            for entry in _parse_found(legacy.get("found"), self.legacy_path):
                if entry.domain in seen:
                    continue
                seen.add(entry.domain)
                found.append(entry)
        return found

    def save_checked(self, checked: Iterable[str]) -> None:
        _write_json(self.checked_path, sorted(checked))

    def save_found(self, found: Iterable[FoundEntry]) -> None:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in found]
        _write_json(self.found_path, payload, indent=2)

    def save_status(self, status: RunStatus) -> None:
        _write_json(self.status_path, status.model_dump(mode="json", by_alias=True), indent=2)
