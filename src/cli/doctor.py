"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from adapters.status_sources import BulkStatusSource, DelegationSource, RdapSource
from core.config import AppSettings, load_scan_config
from core.exceptions import DomainRadarError
from core.resources_loader import WORDS_FILENAME, data_dir, load_word_list

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()

_PROBE_DOMAIN = "example.com"


async def _check_sources(settings: AppSettings) -> list[tuple[str, bool, str]]:
    """Probe each resolution tier once with a domain that is certainly registered."""

    rows: list[tuple[str, bool, str]] = []
    async with build_async_client(settings) as client:
        bulk = await BulkStatusSource(client, settings).fetch([_PROBE_DOMAIN])
        verdict = bulk.get(_PROBE_DOMAIN)
        rows.append(
            (
                "Bulk status API",
                verdict is not None,
                f"available={verdict.available}" if verdict else "no verdict (fallbacks will be used)",
            )
        )

        try:
            endpoints = await RdapSource(client, settings).endpoints()
            rows.append(("RDAP bootstrap", True, f"{len(endpoints)} zones mapped"))
        except DomainRadarError as exc:
            rows.append(("RDAP bootstrap", False, str(exc)))

    try:
        dns_verdict = await DelegationSource(settings).check(_PROBE_DOMAIN)
        rows.append(("DNS delegation", dns_verdict.definite, dns_verdict.note or dns_verdict.reason or ""))
    except Exception as exc:
        rows.append(("DNS delegation", False, str(exc)))
    return rows


def _check_config(path: Path) -> tuple[bool, str]:
    try:
        config = load_scan_config(path)
    except DomainRadarError as exc:
        return False, str(exc).splitlines()[0]
    return True, f"{len(config.zones)} zones, strategies: {', '.join(config.strategies) or '-'}"


@app.command()
def run(
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.json."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="Domain Radar Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    ok_config, detail_config = _check_config(config or settings.config_path)
    table.add_row("config.json", "OK" if ok_config else "FAIL", detail_config)

    words_path = data_dir(settings) / WORDS_FILENAME
    words = load_word_list(words_path)
    table.add_row("Word list", "OK" if words else "OPTIONAL", f"{len(words)} words ({words_path})")

    for name, ok, detail in asyncio.run(_check_sources(settings)):
        table.add_row(name, "OK" if ok else "FAIL", detail)

    _console.print(table)

    if not ok_config:
        raise typer.Exit(code=1)
