"""
cli.py — Click CLI entrypoint for the listing pipeline.

Usage:
    homematch-pipeline ingest --location "Oakland, CA" --location "Berkeley, CA"
    homematch-pipeline ingest --max-pages 1 --dry-run
    homematch-pipeline --log-format json ingest
"""

from __future__ import annotations

import asyncio
import json

import click

from homematch_shared.config import settings
from homematch_pipeline.utils.logging import configure_logging


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level",
)
@click.option(
    "--log-format",
    default=settings.log_format,
    type=click.Choice(["json", "console"]),
    help="Log renderer",
)
def main(log_level: str, log_format: str) -> None:
    """HomeMatch listing pipeline."""
    configure_logging(log_level=log_level, log_format=log_format)


@main.command()
@click.option(
    "--location",
    "locations",
    multiple=True,
    help='"City, ST" to ingest; repeatable. Defaults to ZILLOW_LOCATIONS.',
)
@click.option("--max-pages", type=click.IntRange(min=1), default=None, help="Pages per location")
@click.option("--dry-run", is_flag=True, help="Fetch and transform without writing")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
def ingest(locations: tuple[str, ...], max_pages: int | None, dry_run: bool, as_json: bool) -> None:
    """Pull for-sale listings from Zillow and upsert them into properties."""
    from homematch_pipeline.pipelines.listings import run

    try:
        summary = asyncio.run(run(locations, dry_run=dry_run, max_pages=max_pages))
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        for loc in summary.locations:
            marker = "✗" if loc.errors else "✓"
            click.echo(
                f"  {marker} {loc.location:30s} "
                f"{loc.attempted:4d} seen  {loc.transformed:4d} valid  "
                f"{loc.loaded:4d} loaded  {loc.skipped:4d} skipped"
            )
            for error in loc.errors:
                click.echo(f"      {error}", err=True)
        totals = summary.totals
        click.echo(
            f"Total: {totals['attempted']} seen, {totals['transformed']} valid, "
            f"{totals['loaded']} loaded, {totals['skipped']} skipped"
            + (" (dry run)" if dry_run else "")
        )

    if summary.error_count and not summary.totals["loaded"] and not dry_run:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
