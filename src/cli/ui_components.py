"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- `ConsoleReporter` implementa `core.interfaces.ScanReporter`; el Core nunca
  imprime nada por su cuenta.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import ScanConfig


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("DOMAIN RADAR", style="bold cyan")
    subtitle = Text("Scanning for available domains...", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_config_table(config: ScanConfig, *, max_runtime: float | None = None) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Setting", style="dim", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Zones", ", ".join(config.zones))
    table.add_row("Max price", f"${config.max_price_per_year}/yr")
    table.add_row("Keywords", ", ".join(config.keywords) or "-")
    table.add_row("Names", ", ".join(config.personal_names) or "-")
    table.add_row("Strategies", ", ".join(config.strategies) or "-")
    table.add_row("Batch size", f"{config.batch_size} x {config.max_concurrent_batches} concurrent")
    if max_runtime:
        table.add_row("Max runtime", f"{max_runtime:.0f}s")
    return table


class ConsoleReporter:
    """Pinta cada decisión del orquestador.

    Los dominios tomados sólo se muestran en modo verbose: en una ejecución
    normal son la inmensa mayoría y taparían los hallazgos.
    """

    def __init__(self, console: Console | None = None, *, verbose: bool = False) -> None:
        self._console = console or Console()
        self._verbose = verbose

    def available(self, domain: str, strategy: str, price: str) -> None:
        self._console.print(
            f"[bold black on green] AVAILABLE [/] [bold green]{domain}[/]  "
            f"[dim]\\[{strategy}][/]  [yellow]{price}[/]"
        )

    def taken(self, domain: str) -> None:
        if self._verbose:
            self._console.print(f"[dim]taken: {domain}[/]")

    def inconclusive(self, domain: str, reason: str) -> None:
        self._console.print(f"[yellow]? {domain:<30}[/] [dim]({reason})[/]")

    def skipped_premium(self, domain: str, price: str) -> None:
        self._console.print(f"[yellow]$ {domain:<30}[/] [dim](premium {price}, too expensive)[/]")

    def round_progress(self, round_number: int, size: int) -> None:
        if self._verbose:
            self._console.print(f"[dim]round #{round_number} ({size} domains)...[/]")

    def saving(self) -> None:
        self._console.print("[dim]Saving results...[/]")

    def saved(self, found: int) -> None:
        self._console.print(f"[green]Results saved! ({found} domains found)[/]")

    def stats(self, checked: int, found: int) -> None:
        self._console.print(
            f"[bold cyan]Stats:[/] {checked} checked, [green]{found} available[/]"
        )
