"""Command line interface: analyze GC logs and generate synthetic ones."""

import asyncio
import dataclasses
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from . import __version__
from .aggregators import Aggregator, PauseTimeAggregator, SafepointAggregator
from .app import Orchestrator
from .config import PipelineSettings
from .errors import DeploymentError, LogSourceError, PipelineStallError
from .io import GCLogFile, RotatingGCLogFile, SingleGCLogFile
from .logging_config import setup_logging
from .models import RunResult
from .parsers import all_parsers
from .sim import GCLogSim

GCFLOW_THEME = Theme(
    {
        "critical": "bold red",
        "warning": "bold yellow",
        "success": "bold green",
        "info": "cyan",
        "metric": "white",
        "label": "dim white",
    }
)

console = Console(theme=GCFLOW_THEME)

app = typer.Typer(
    name="gcflow",
    help="Stream JVM GC logs through parsers and aggregators",
    add_completion=False,
    rich_markup_mode="rich",
)


class OutputFormat(str, Enum):
    DIR = "dir"
    ZIP = "zip"
    GZ = "gz"
    TGZ = "tgz"
    FILE = "file"


def create_key_value_table(title: str, rows: list[tuple[str, str]]) -> Table:
    """Create a simple two-column key/value table."""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="label")
    table.add_column("Value", style="metric")
    for label, value in rows:
        table.add_row(label, value)
    return table


def create_runtime_panel(path: Path, result: RunResult) -> Panel:
    rows = [
        ("Log source", str(path)),
        ("Lines published", f"{result.events_published:,}"),
        ("Runtime", str(result.runtime_duration)),
        ("Runtime (s)", f"{result.runtime_duration.to_seconds():.3f}"),
    ]
    return Panel(create_key_value_table("", rows), title="JVM Runtime", border_style="info")


def open_log_source(path: Path, rotating: bool) -> GCLogFile:
    if rotating or path.is_dir():
        return RotatingGCLogFile(path)
    return SingleGCLogFile(path)


async def run_pipeline(
    log_source: GCLogFile, aggregators: list[Aggregator], settings: PipelineSettings
) -> RunResult:
    async with Orchestrator(all_parsers(), aggregators, settings=settings) as orchestrator:
        return await orchestrator.run(log_source)


@app.command()
def analyze(
    path: Annotated[
        Path,
        typer.Argument(
            help="GC log file, archive, or directory of rotated logs",
            exists=True,
            file_okay=True,
            dir_okay=True,
            readable=True,
        ),
    ],
    rotating: Annotated[
        bool,
        typer.Option(
            "--rotating",
            "-r",
            help="Treat PATH as one file of a rotated set and read the whole set",
        ),
    ] = False,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Seconds to wait for the pipeline to drain (default: GCFLOW_COMPLETION_TIMEOUT)",
            min=0.0,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Log level (default: LOG_LEVEL or INFO)"),
    ] = None,
) -> None:
    """Analyze a JVM GC log and print runtime, pause and safepoint summaries."""
    setup_logging(log_level)

    try:
        settings = PipelineSettings.from_env()
        if timeout is not None:
            settings = dataclasses.replace(settings, completion_timeout=timeout or None)
        log_source = open_log_source(path, rotating)
    except (ValueError, LogSourceError) as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        raise typer.Exit(1)

    aggregators: list[Aggregator] = [PauseTimeAggregator(), SafepointAggregator()]
    try:
        result = asyncio.run(run_pipeline(log_source, aggregators, settings))
    except (DeploymentError, PipelineStallError) as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        raise typer.Exit(1)

    console.print(create_runtime_panel(path, result))
    for aggregator in aggregators:
        console.print(create_key_value_table(aggregator.name, aggregator.summary()))

    if result.error is not None:
        console.print(f"[critical]ERROR: {result.error}[/critical]")
        raise typer.Exit(1)


@app.command()
def simulate(
    output: Annotated[
        Path,
        typer.Argument(help="File or directory to write"),
    ],
    records: Annotated[
        int,
        typer.Option("--records", "-n", help="Number of log lines", min=0),
    ] = 3000,
    files: Annotated[
        int,
        typer.Option("--files", "-k", help="Number of rotated segments", min=1),
    ] = 5,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output layout", case_sensitive=False),
    ] = OutputFormat.DIR,
    seed: Annotated[int, typer.Option("--seed", help="Random seed")] = 0,
) -> None:
    """Write a synthetic Parallel GC log."""
    sim = GCLogSim(seed=seed)
    if output_format is OutputFormat.DIR:
        written = sim.write_rotating(output, records, files, wrap=True)
    elif output_format is OutputFormat.ZIP:
        written = sim.write_zip(output, records, files, wrap=True)
    elif output_format is OutputFormat.GZ:
        written = sim.write_gzip(output, records)
    elif output_format is OutputFormat.TGZ:
        written = sim.write_tar_gz(output, records, files)
    else:
        written = sim.write_single(output, records)
    console.print(f"[success]Wrote {records:,} lines to {written}[/success]")


@app.command()
def version() -> None:
    """Display version."""
    console.print(f"gcflow {__version__}")


if __name__ == "__main__":
    app()
