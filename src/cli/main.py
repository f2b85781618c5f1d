"""CLI principal (Typer).

Por qué Typer:
- Opciones tipadas sin boilerplate de argparse.
- Subcomandos (`doctor`) registrados como apps independientes.

La CLI sólo cablea: settings -> config -> motores -> orquestador. Toda la
lógica vive en `core/`.
"""

from __future__ import annotations

import asyncio
import signal
from pathlib import Path

import typer
from rich.console import Console

from adapters.state_store import JsonStateStore
from cli import doctor
from cli.ui_components import ConsoleReporter, build_config_table, print_banner
from core.config import AppSettings, ScanConfig, load_scan_config
from core.exceptions import DomainRadarError
from core.logging_config import setup_logging
from core.resources_loader import WORDS_FILENAME, data_dir, load_word_list
from core.services.generation import build_generation_engine
from core.services.orchestrator import ScanOrchestrator
from core.services.resolution import open_resolution_engine

app = typer.Typer(no_args_is_help=True, help="Scan combinatorial domain spaces for registerable names.")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def _install_stop_handlers(orchestrator: ScanOrchestrator) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
        except (NotImplementedError, RuntimeError, ValueError):
            # Windows: sin add_signal_handler.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(orchestrator.request_stop))


async def run_scan(
    *,
    settings: AppSettings,
    config: ScanConfig,
    reporter: ConsoleReporter,
    max_runtime: float | None = None,
) -> ScanOrchestrator:
    base = data_dir(settings)
    words = load_word_list(base / WORDS_FILENAME)
    store = JsonStateStore(base)

    async with open_resolution_engine(settings) as resolver:
        with _console.status("Loading RDAP bootstrap..."):
            zones = await resolver.warmup()
        _console.print(f"[dim]RDAP endpoints loaded for {zones} zones[/]")

        orchestrator = ScanOrchestrator(
            config=config,
            engine=build_generation_engine(config, words),
            resolver=resolver,
            store=store,
            reporter=reporter,
        )
        _install_stop_handlers(orchestrator)
        await orchestrator.run(max_runtime=max_runtime)
    return orchestrator


@app.command()
def scan(
    config: Path = typer.Option(None, "--config", "-c", help="Path to config.json."),
    max_runtime: float = typer.Option(None, "--max-runtime", min=1, help="Stop gracefully after N seconds."),
    data: Path = typer.Option(None, "--data-dir", help="Directory for checked/found/status files."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show taken domains and debug logs."),
) -> None:
    """Explore the configured namespace until exhausted or stopped (Ctrl+C)."""

    settings = AppSettings()
    if data is not None:
        settings = settings.model_copy(update={"data_dir": data})
    setup_logging("DEBUG" if verbose else settings.log_level)

    try:
        scan_config = load_scan_config(config or settings.config_path)
    except DomainRadarError as exc:
        _console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1)

    print_banner(_console)
    _console.print(build_config_table(scan_config, max_runtime=max_runtime))

    reporter = ConsoleReporter(_console, verbose=verbose)
    try:
        orchestrator = asyncio.run(
            run_scan(settings=settings, config=scan_config, reporter=reporter, max_runtime=max_runtime)
        )
    except DomainRadarError as exc:
        _console.print(f"[red]Fatal error:[/red] {exc}")
        raise typer.Exit(code=1)

    if orchestrator.exhausted:
        _console.print("All domain combinations exhausted. Edit config.json to add more!")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
