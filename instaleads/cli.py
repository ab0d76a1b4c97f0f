"""Command-line interface for instaleads."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from instaleads import LeadScraper, ScraperConfig, extract_brazil_phones, save_json, save_csv, summarize, __version__
from instaleads.config import LogFormat, SessionBackend
from instaleads.core.exporter import default_output_path, filter_with_phones
from instaleads.exceptions import InstaleadsError
from instaleads.session.sqlite_store import SQLiteSessionStore

app = typer.Typer(
    name="instaleads",
    help="Search-driven Instagram lead finder",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"instaleads version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """instaleads - search-driven Instagram lead finder."""
    pass


def _fail(error: InstaleadsError) -> None:
    err_console.print(f"[red]✗ [{error.code}] {error}[/red]")
    if error.action:
        err_console.print(f"[dim]{error.action}[/dim]")
    raise typer.Exit(1)


@app.command()
def search(
    query: str = typer.Argument(..., help='Search query, e.g. \'site:instagram.com "loja" "sp"\''),
    pages: int = typer.Option(3, "--pages", "-p", min=1, help="Result pages to scrape"),
    only_with_phones: bool = typer.Option(
        False, "--only-with-phones", help="Keep only results where a phone was found"
    ),
    max_profiles: int = typer.Option(25, "--max-profiles", min=0, help="Cap on profiles fetched"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="JSON output path (default: output/google-<query>-<time>.json)"
    ),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Also write a CSV to this path"),
    headless: bool = typer.Option(
        False, "--headless/--no-headless", help="Run browser in headless mode"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="JSON logs, no summary table"
    ),
):
    """Search, enrich Instagram profiles and extract phones."""
    config = ScraperConfig(
        headless=headless,
        max_profiles=max_profiles,
        log_format=LogFormat.CONSOLE if not quiet else LogFormat.JSON,
    )

    async def run():
        async with LeadScraper(config) as scraper:
            return await scraper.search(query, max_pages=pages)

    try:
        result = asyncio.run(run())
    except InstaleadsError as e:
        _fail(e)

    summary = summarize(result)
    if only_with_phones:
        result = filter_with_phones(result)

    json_path = save_json(result, output or default_output_path(query, config.output_dir))
    console.print(f"[dim]Saved to {json_path}[/dim]")

    if csv_path:
        save_csv(result, csv_path)
        console.print(f"[dim]Saved to {csv_path}[/dim]")

    if not quiet:
        _print_summary(summary)


@app.command()
def phones(
    bio: Optional[str] = typer.Option(None, "--bio", "-b", help="Bio text"),
    link: Optional[str] = typer.Option(None, "--link", "-l", help="Primary profile link"),
    bio_links: Optional[list[str]] = typer.Option(None, "--bio-link", help="Extra bio link (repeatable)"),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON"),
):
    """Run phone extraction over ad-hoc bio text and links."""
    extraction = extract_brazil_phones(bio, link, bio_links or [])

    if as_json:
        console.print_json(json.dumps(extraction.model_dump(mode="json", by_alias=True)))
        return

    if not extraction.phones_details:
        console.print("[yellow]No phones found[/yellow]")
        raise typer.Exit(1)

    table = Table(title="Phones")
    table.add_column("Phone")
    table.add_column("E.164", style="dim")
    table.add_column("Confidence")
    table.add_column("Sources", style="dim")

    for detail in extraction.phones_details:
        marker = "★ " if detail.phone_e164 == extraction.primary_phone_e164 else ""
        table.add_row(
            f"{marker}{detail.phone_pt_br}",
            detail.phone_e164,
            detail.confidence.value,
            ", ".join(detail.sources),
        )

    console.print(table)


@app.command()
def session(
    action: str = typer.Argument(..., help="Action: clear, info"),
):
    """Manage stored browser sessions."""
    config = ScraperConfig()
    if config.session_backend == SessionBackend.NONE:
        console.print("Session storage is disabled")
        return

    async def run():
        async with SQLiteSessionStore(config.sqlite_path, config.session_ttl_seconds) as store:
            if action == "clear":
                await store.clear()
                console.print("[green]✓[/green] Cleared all sessions")

            elif action == "info":
                rows = await store.info()
                if not rows:
                    console.print("No stored sessions")
                    return
                table = Table(title=f"Sessions ({config.sqlite_path})")
                table.add_column("Platform")
                table.add_column("Cookies", justify="right")
                table.add_column("Age", justify="right")
                table.add_column("Expired")
                for row in rows:
                    table.add_row(
                        row["platform"],
                        str(row["cookies"]),
                        f"{row['age_seconds'] / 3600:.1f} h",
                        "yes" if row["expired"] else "no",
                    )
                console.print(table)

            else:
                console.print(f"[red]Unknown action: {action}[/red]")
                console.print("Available actions: clear, info")
                raise typer.Exit(1)

    try:
        asyncio.run(run())
    except InstaleadsError as e:
        _fail(e)


def _print_summary(summary):
    """Print run statistics as tables."""
    table = Table(title="Results", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", justify="right")

    table.add_row("Total results", str(summary.total_results))
    for status, count in summary.status_counts.items():
        if count:
            table.add_row(status, str(count))
    table.add_row("Profiles enriched", str(summary.profiles_enriched))
    table.add_row("Profiles skipped (cap)", str(summary.profiles_skipped))
    table.add_row("Unique phones", str(summary.unique_phones))
    table.add_row("Results with phones", str(summary.results_with_phones))

    console.print(table)

    if summary.top_area_codes:
        codes = ", ".join(f"{ddd} ({count})" for ddd, count in summary.top_area_codes)
        console.print(f"[bold]Top DDDs:[/bold] {codes}")


if __name__ == "__main__":
    app()
