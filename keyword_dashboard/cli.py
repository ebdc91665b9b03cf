"""Typer CLI application for the Keyword Analysis Dashboard.

Provides commands to analyze a keyword-planner export, classify keyword
intent, inspect the default settings and launch the Streamlit dashboard.
"""

import asyncio
import logging
import math
import subprocess
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from keyword_dashboard.exceptions import ParseError
from keyword_dashboard.models.config import DEFAULT_CONFIG, FIELD_KEYS, diff
from keyword_dashboard.models.keyword import KeywordRecord
from keyword_dashboard.utils.helpers import format_number, slugify
from keyword_dashboard.utils.validators import validate_config

console = Console()
app = typer.Typer(
    name="kwdash",
    help="Keyword Analysis Dashboard -- top, niche and low-bid keywords from keyword-planner exports.",
    add_completion=False,
    no_args_is_help=True,
)

TABLE_TITLES = {
    "top": "Top Keywords",
    "niche": "Niche Keywords",
    "lowBid": "Low Bid Keywords",
}

DASHBOARD_APP = Path(__file__).resolve().parent.parent / "dashboard" / "app.py"


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_session():
    """Lazy-import and return an AnalysisSession instance."""
    from keyword_dashboard.session import AnalysisSession
    return AnalysisSession()


def _print_keywords(records: list[KeywordRecord], title: str) -> None:
    """Pretty-print a keyword selection using Rich."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Keyword", style="cyan", min_width=25)
    table.add_column("Avg. Monthly Searches", justify="right")
    table.add_column("Competition", justify="right")
    table.add_column("Top Page Bid (Low)", justify="right")
    table.add_column("Top Page Bid (High)", justify="right")
    table.add_column("Intent")

    for record in records:
        table.add_row(
            escape(record.keyword),
            "{:,}".format(record.avg_monthly_searches),
            str(record.competition),
            "{:.2f}".format(record.top_page_bid_low),
            "{:.2f}".format(record.top_page_bid_high),
            str(record.intention or ""),
        )
    if not records:
        table.add_row("[yellow]No keywords matched[/yellow]", "", "", "", "", "")
    console.print(table)


def _print_modified(config) -> None:
    """List settings that differ from their defaults."""
    modified = diff(config)
    if not modified:
        return
    table = Table(title="Modified Settings", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Default", justify="right")
    for key in FIELD_KEYS:
        if key in modified:
            table.add_row(key + " [blue]*[/blue]", str(config.get(key)), str(DEFAULT_CONFIG.get(key)))
    console.print(table)


# ------------------------------------------------------------------
# analyze
# ------------------------------------------------------------------
@app.command()
def analyze(
    file: Path = typer.Argument(..., help="Tab-separated keyword-planner export."),
    top_count: int = typer.Option(DEFAULT_CONFIG.top_keywords.count, "--top-count", help="Number of top keywords."),
    top_min_searches: int = typer.Option(
        DEFAULT_CONFIG.top_keywords.min_searches, "--top-min-searches", help="Minimum monthly searches for top keywords."
    ),
    niche_count: int = typer.Option(DEFAULT_CONFIG.niche_keywords.count, "--niche-count", help="Number of niche keywords."),
    niche_min_searches: int = typer.Option(
        DEFAULT_CONFIG.niche_keywords.min_searches, "--niche-min-searches", help="Minimum monthly searches for niche keywords."
    ),
    niche_max_searches: int = typer.Option(
        DEFAULT_CONFIG.niche_keywords.max_searches, "--niche-max-searches", help="Maximum monthly searches for niche keywords."
    ),
    niche_max_competition: float = typer.Option(
        DEFAULT_CONFIG.niche_keywords.max_competition, "--niche-max-competition", help="Competition ceiling for niche keywords."
    ),
    low_bid_count: int = typer.Option(DEFAULT_CONFIG.low_bid_keywords.count, "--low-bid-count", help="Number of low-bid keywords."),
    max_bid_percentile: int = typer.Option(
        DEFAULT_CONFIG.low_bid_keywords.max_bid_percentile, "--max-bid-percentile", help="Bid percentile keywords must stay under."
    ),
    min_search_percentile: int = typer.Option(
        DEFAULT_CONFIG.low_bid_keywords.min_search_percentile, "--min-search-percentile",
        help="Search percentile keywords must exceed.",
    ),
    export_dir: Optional[Path] = typer.Option(None, "--export-dir", "-o", help="Write the three selections as CSV here."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Analyze a keyword export and print top, niche and low-bid keywords."""
    _setup_logging(verbose)
    console.print(Panel("[bold cyan]Keyword Analysis: " + file.name + "[/bold cyan]"))

    session = _get_session()
    settings = {
        "top_keywords": {"count": top_count, "min_searches": top_min_searches},
        "niche_keywords": {
            "count": niche_count,
            "min_searches": niche_min_searches,
            "max_searches": niche_max_searches,
            "max_competition": niche_max_competition,
        },
        "low_bid_keywords": {
            "count": low_bid_count,
            "max_bid_percentile": max_bid_percentile,
            "min_search_percentile": min_search_percentile,
        },
    }
    for section, values in settings.items():
        for field_name, value in values.items():
            session.update_config(section, field_name, value)

    ok, warnings = validate_config(session.config)
    if not ok:
        for message in warnings:
            console.print("[yellow]⚠[/yellow] " + message)

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        progress.add_task(description="Reading and analyzing keywords...", total=None)
        try:
            _run_async(session.load_file(file))
        except ParseError as exc:
            progress.stop()
            console.print("[red]✘[/red] Could not parse " + file.name + ": " + str(exc))
            raise typer.Exit(code=1)
        result = session.analyze()

    from keyword_dashboard.modules.keyword_research import KeywordAnalyzer

    summary = KeywordAnalyzer.summarize(result.all_valid)
    bid_cut = "unbounded" if math.isinf(result.bid_threshold) else "{:.2f}".format(result.bid_threshold)
    intents = ", ".join(k + ": " + str(v) for k, v in summary["intent_distribution"].items())
    console.print(
        "Keywords: [bold]" + str(summary["total_keywords"]) + "[/bold]"
        + " (" + str(session.rejected_rows) + " rows rejected)"
        + " | Total searches: " + format_number(summary["total_monthly_searches"])
        + " | Avg. competition: " + str(summary["average_competition"])
    )
    console.print("Intent: " + intents)
    console.print(
        "Low-bid cut: searches > " + str(result.search_threshold) + ", bid high < " + bid_cut
    )

    _print_modified(session.config)
    for key, records in result.as_tables().items():
        _print_keywords(records, TABLE_TITLES[key])

    if export_dir is not None:
        analyzer = KeywordAnalyzer()
        for key, records in result.as_tables().items():
            target = export_dir / (slugify(TABLE_TITLES[key]) + ".csv")
            path = analyzer.export_to_csv(records, str(target))
            console.print("[green]✔[/green] Exported " + path)

    console.print("[green]✔[/green] Analysis complete.")


# ------------------------------------------------------------------
# classify
# ------------------------------------------------------------------
@app.command()
def classify(
    keywords: list[str] = typer.Argument(..., help="Keywords to classify."),
    rules: Optional[Path] = typer.Option(None, "--rules", "-r", help="Custom intent marker YAML file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Print the search intent of each keyword."""
    _setup_logging(verbose)
    from keyword_dashboard.modules.keyword_research import IntentClassifier

    classifier = IntentClassifier(rules_path=rules)
    table = Table(title="Search Intent", show_header=True, header_style="bold magenta")
    table.add_column("Keyword", style="cyan", min_width=25)
    table.add_column("Intent")
    for keyword in keywords:
        table.add_row(escape(keyword), classifier.classify(keyword).value)
    console.print(table)


# ------------------------------------------------------------------
# defaults
# ------------------------------------------------------------------
@app.command()
def defaults() -> None:
    """Show the default analysis settings."""
    table = Table(title="Default Settings", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Default", justify="right")
    for key in FIELD_KEYS:
        table.add_row(key, str(DEFAULT_CONFIG.get(key)))
    console.print(table)


# ------------------------------------------------------------------
# dashboard
# ------------------------------------------------------------------
@app.command()
def dashboard(
    port: int = typer.Option(8501, "--port", "-p", help="Streamlit server port."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Launch the Streamlit keyword dashboard (needs a source checkout with dashboard/app.py)."""
    _setup_logging(verbose)
    if not DASHBOARD_APP.exists():
        console.print(
            "[red]✘[/red] Dashboard script not found at " + str(DASHBOARD_APP)
            + ". Run from a source checkout, or use: streamlit run dashboard/app.py"
        )
        raise typer.Exit(code=1)
    console.print("[bold cyan]Launching dashboard on port " + str(port) + "...[/bold cyan]")
    subprocess.run(
        ["streamlit", "run", str(DASHBOARD_APP), "--server.port", str(port)],
        check=False,
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
