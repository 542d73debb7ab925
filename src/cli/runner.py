# src/cli/runner.py

"""Headless CLI runner: drives the pipeline and renders its progress."""

import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn
from rich.table import Table

from src.models.errors import ConfigurationError
from src.models.listing import Listing
from src.models.pipeline_result import PipelineResult
from src.services.pipeline import WantlistPipeline
from src.services.progress_channel import ProgressChannel, Subscription

logger = logging.getLogger("crate_scout.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

_PLACES = [
    ("🥇 Buy this first", "bold yellow"),
    ("🥈 Buy this second", "bold white"),
    ("🥉 Buy this third", "bold bright_black"),
]


async def _render_progress(subscription: Subscription) -> None:
    """Drain progress events into a Rich progress bar until closed."""
    with Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=_err,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting", total=100)
        async for event in subscription:
            description = event.message
            if event.eta_seconds is not None:
                description += f" (ETA {event.eta_seconds}s)"
            progress.update(
                task, completed=event.percent, description=description
            )


def _print_table(listings: list[Listing]) -> None:
    """Render the ranked listings as a Rich table on stdout."""
    table = Table(
        title="Here are your lowest priced items",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Rank", width=18)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Condition")
    table.add_column("Link", overflow="fold", style="dim")

    for (label, style), listing in zip(_PLACES, listings):
        table.add_row(
            f"[{style}]{label}[/{style}]",
            listing.name,
            f"${listing.price:,.2f}",
            listing.condition,
            listing.link,
        )

    Console().print(table)


def _print_source_notices(result: PipelineResult) -> None:
    """Warn on stderr about sources that failed during the run."""
    if not result.discogs_success:
        _err.print(
            "[yellow]Discogs is not responding. "
            "Showing Bandcamp results only.[/yellow]"
        )
    if not result.bandcamp_success:
        _err.print(
            "[yellow]Bandcamp is not responding. "
            "Showing Discogs results only.[/yellow]"
        )


async def cli_fetch(
    discogs_username: str | None,
    bandcamp_username: str | None,
    output_format: str,
) -> int:
    """Run the pipeline and return an exit code (0=ok, 1=empty, 2=config)."""
    channel = ProgressChannel()
    renderer = asyncio.create_task(
        _render_progress(channel.subscribe())
    )
    pipeline = WantlistPipeline()

    try:
        result = await pipeline.run(
            discogs_username, bandcamp_username, progress=channel
        )
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        _err.print(f"[red]{exc}[/red]")
        return 2
    finally:
        channel.close()
        await renderer

    _print_source_notices(result)

    if output_format == "table":
        if result.results:
            _print_table(result.results)
    else:
        json.dump(
            result.to_dict(),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")

    if not result.results:
        _err.print("[yellow]No listings found.[/yellow]")
        return 1
    return 0


async def run_health_check() -> int:
    """Run connectivity health check on all sources."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running upstream health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Source Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Source", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.source_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
