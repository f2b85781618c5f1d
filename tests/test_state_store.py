from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from adapters.state_store import JsonStateStore
from core.domain.models import FoundEntry, RunStatus
from core.exceptions import PersistenceError


def test_missing_files_load_empty(tmp_path):
    store = JsonStateStore(tmp_path / "data")

    assert store.load_checked() == set()
    assert store.load_found() == []


def test_checkpoint_files_use_on_disk_format(tmp_path):
    store = JsonStateStore(tmp_path)
    entry = FoundEntry(
        domain="ab.io",
        strategy="2-Letter",
        price=34.98,
        zone=".io",
        checked_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
    )

    store.save_checked({"cd.io", "ab.io"})
    store.save_found([entry])
    store.save_status(RunStatus(running=True, started_at=datetime(2026, 1, 2, tzinfo=timezone.utc)))

    assert json.loads((tmp_path / "checked.json").read_text()) == ["ab.io", "cd.io"]
    (raw,) = json.loads((tmp_path / "found.json").read_text())
    assert raw["checkedAt"].startswith("2026-01-02")
    assert raw["zone"] == ".io"
    status = json.loads((tmp_path / "status.json").read_text())
    assert status["running"] is True
    assert "domainsChecked" in status
    assert store.load_found() == [entry]
    assert not list(tmp_path.glob(".*.tmp"))


def test_legacy_results_are_migrated_without_duplicates(tmp_path):
    (tmp_path / "found.json").write_text(
        json.dumps([{"domain": "ab.io", "strategy": "2-Letter", "price": 34.98, "zone": ".io"}])
    )
    (tmp_path / "results.json").write_text(
        json.dumps(
            {
                "checked": ["ab.io", "xy.dev"],
                "found": [
                    {"domain": "ab.io", "strategy": "2-Letter", "price": "$34.98/yr", "tld": ".io"},
                    {"domain": "xy.dev", "strategy": "2-Letter", "price": "$12.98/yr", "tld": ".dev",
                     "checkedAt": "2025-05-01T10:00:00.000Z"},
                ],
            }
        )
    )
    store = JsonStateStore(tmp_path)

    found = store.load_found()

    assert [e.domain for e in found] == ["ab.io", "xy.dev"]
    assert found[1].price == 12.98
    assert found[1].zone == ".dev"
    assert store.load_checked() == {"ab.io", "xy.dev"}


def test_corrupt_files_are_ignored(tmp_path):
    (tmp_path / "checked.json").write_text("[\"ab.io\", ")
    (tmp_path / "found.json").write_text(json.dumps([{"domain": "ab.io"}, "junk"]))
    store = JsonStateStore(tmp_path)

    assert store.load_checked() == set()
    assert store.load_found() == []


def test_write_failure_raises_persistence_error(tmp_path):
    blocker = tmp_path / "data"
    blocker.write_text("not a directory")
    store = JsonStateStore(blocker)

    with pytest.raises(PersistenceError):
        store.save_checked({"ab.io"})
