"""CLI entry point for pkghealth."""

import asyncio
import json
import logging
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from pkghealth.analyzers.pipeline import HealthAggregator
from pkghealth.config import ConfigError, Settings
from pkghealth.models.schemas import ComponentIdentity, HealthRecord

app = typer.Typer(help="Package health aggregation tool.")

console = Console()
err_console = Console(stderr=True)

FIELD_LABELS = {
    "stars": "Stars",
    "forks": "Forks",
    "dependents": "Dependents",
    "contributors": "Contributors",
    "commit_frequency_weekly": "Commits / Week",
    "open_issues": "Open Issues",
    "open_prs": "Open PRs",
    "last_commit_date": "Last Commit",
    "bus_factor": "Bus Factor",
    "avg_issue_age_days": "Avg Issue Age (days)",
    "has_readme": "Has README",
    "has_code_of_conduct": "Has Code of Conduct",
    "has_security_policy": "Has Security Policy",
    "files": "Files (root)",
    "is_repo_archived": "Archived",
    "scorecard_score": "Scorecard Score",
    "scorecard_reference_version": "Scorecard Version",
    "scorecard_timestamp": "Scorecard Date",
}


def configure_logging(level: str) -> None:
    """Route stdlib logging through rich on stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, int):
        return f"{value:,}"
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def render_record(record: HealthRecord) -> None:
    """Print a record as rich tables."""
    console.print()
    console.print(f"[bold cyan]{record.identity.purl}[/bold cyan]")

    populated = record.populated_fields()
    if not populated:
        console.print("[yellow]No health data found[/yellow]")
        return

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for field, label in FIELD_LABELS.items():
        value = getattr(record, field)
        if value is not None:
            table.add_row(label, _format_value(value))
    console.print(table)

    if record.scorecard_checks:
        checks = Table(title="OpenSSF Scorecard Checks")
        checks.add_column("Check", style="cyan")
        checks.add_column("Score", justify="right")
        checks.add_column("Reason", style="dim", max_width=60)
        for check in record.scorecard_checks:
            score = "-" if check.score is None or check.score < 0 else f"{check.score:g}"
            checks.add_row(check.name, score, check.reason or "")
        console.print(checks)


@app.command()
def analyze(
    names: list[str] = typer.Argument(..., help="Package name(s) to analyze"),
    purl_type: str = typer.Option(..., "--type", "-t", help="Package URL type (npm, pypi, maven, golang, ...)"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Package namespace (npm scope, Maven group)"),
    version: str | None = typer.Option(None, "--version", "-v", help="Package version"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON file"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
    verbose: bool = typer.Option(False, "--verbose", help="Log provider activity"),
) -> None:
    """Aggregate health signals for one or more packages."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    configure_logging("DEBUG" if verbose else settings.log_level)

    identities = [
        ComponentIdentity(type=purl_type.lower(), namespace=namespace, name=name, version=version)
        for name in names
    ]
    asyncio.run(_analyze(identities, settings, output, as_json))


async def _analyze(
    identities: list[ComponentIdentity],
    settings: Settings,
    output: Path | None,
    as_json: bool,
) -> None:
    """Async implementation of analyze."""
    async with HealthAggregator.from_settings(settings) as aggregator:
        if not aggregator.registry.is_applicable(identities[0]):
            err_console.print(f"[yellow]No analyzer supports type '{identities[0].type}'[/yellow]")

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
            transient=True,
        ) as progress:
            task = progress.add_task("Collecting health data...", total=None)
            records = []
            for identity in identities:
                progress.update(task, description=f"Analyzing {identity.purl}...")
                records.append(await aggregator.analyze(identity))

    data = [record.model_dump(mode="json", exclude_none=True) for record in records]

    if as_json:
        console.print_json(json.dumps(data if len(data) > 1 else data[0]))
    else:
        for record in records:
            render_record(record)

    # Save to file if requested
    if output:
        output.write_text(json.dumps(data if len(data) > 1 else data[0], indent=2))
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from pkghealth import __version__

    console.print(f"pkghealth v{__version__}")


if __name__ == "__main__":
    app()
