# cli.py

import asyncio
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer

from listing_harvester.core.config import (
    COLLECTION_SCROLL,
    COLLECTION_URL,
    DEFAULT_LIMIT,
    DEFAULT_OUT,
    EXPECTED_ORIGIN,
    RESULT_DIR,
    COLLECTION_OUT_NAME,
    ScrollConfig,
)
from listing_harvester.core.logger import get_logger, setup_logging
from listing_harvester.pipeline.graph import run_harvest
from listing_harvester.services.browser import BrowserLaunchError, NavigationError
from listing_harvester.services.exporter import export_records
from listing_harvester.services.field_extractor import FieldExtractor
from listing_harvester.services.html_snapshot import snapshot_from_file
from listing_harvester.services.target_resolver import TargetResolutionError
from listing_harvester.strategies.collection import run_collection
from listing_harvester.strategies.listing_crawl import ListingCrawler, extract_listings

logger = get_logger(__name__)

app = typer.Typer(help="Harvest free listings from scroll-loaded, component-based store pages.")


@app.command()
def run(
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", min=1, help="Max listings per target and overall"),
    url: Optional[str] = typer.Option(None, "--url", help="Seed page to crawl when no target list is used"),
    in_file: Optional[Path] = typer.Option(None, "--in", help="Prior list of {href} entries to crawl"),
    out: Path = typer.Option(DEFAULT_OUT, "--out", help="Where to write the JSON result"),
    include_price: bool = typer.Option(False, "--include-price", help="Keep priceText in the output"),
    write_csv: bool = typer.Option(False, "--csv", help="Also write a CSV next to the JSON file"),
    max_rounds: Optional[int] = typer.Option(None, "--max-rounds", min=0, help="Scroll round cap per target"),
    idle_ms: Optional[int] = typer.Option(None, "--idle-ms", min=0, help="Settle delay after each scroll burst"),
    log_level: str = typer.Option("INFO", "--log-level"),
):
    """
    Crawl each target, keep free listings, dedupe and save them.
    Example:
        python main.py run --url "https://apps.microsoft.com/collections/..." --limit 50
    """
    setup_logging(log_level=log_level.upper())

    scroll = ScrollConfig()
    if max_rounds is not None:
        scroll = replace(scroll, max_rounds=max_rounds)
    if idle_ms is not None:
        scroll = replace(scroll, idle_delay_ms=idle_ms)

    try:
        result = asyncio.run(
            run_harvest(
                limit=limit,
                seed_url=url,
                source_path=str(in_file) if in_file else None,
                output_path=str(out),
                include_price=include_price,
                write_csv=write_csv,
                crawler=ListingCrawler(scroll_config=scroll),
            )
        )
    except TargetResolutionError as exc:
        logger.error("%s", exc)
        raise typer.Exit(1)
    except BrowserLaunchError as exc:
        logger.error("Could not start a browser session: %s", exc)
        raise typer.Exit(1)

    for err in result.get("errors", []):
        logger.warning("Error: %s", err)


@app.command()
def collect(
    url: str = typer.Option(COLLECTION_URL, "--url", help="Collection page to harvest"),
    out: Path = typer.Option(RESULT_DIR / COLLECTION_OUT_NAME, "--out", help="Where to write {title, href} entries"),
    max_rounds: Optional[int] = typer.Option(None, "--max-rounds", min=0),
    log_level: str = typer.Option("INFO", "--log-level"),
):
    """Harvest a collection page into a target list for `run --in`."""
    setup_logging(log_level=log_level.upper())

    scroll = COLLECTION_SCROLL
    if max_rounds is not None:
        scroll = replace(scroll, max_rounds=max_rounds)

    try:
        asyncio.run(run_collection(url, out, scroll_config=scroll))
    except (BrowserLaunchError, NavigationError) as exc:
        logger.error("%s", exc)
        raise typer.Exit(1)


@app.command()
def extract(
    html_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Saved page HTML with declarative shadow roots"),
    origin: str = typer.Option(EXPECTED_ORIGIN, "--origin", help="Origin the page was served from"),
    limit: int = typer.Option(DEFAULT_LIMIT, "--limit", min=1),
    out: Path = typer.Option(DEFAULT_OUT, "--out"),
    include_price: bool = typer.Option(False, "--include-price"),
    log_level: str = typer.Option("INFO", "--log-level"),
):
    """Run card extraction over a saved HTML snapshot, no browser needed."""
    setup_logging(log_level=log_level.upper())

    root = snapshot_from_file(html_file)
    report = extract_listings(root, origin, limit, extractor=FieldExtractor(expected_origin=origin))
    logger.info(
        "%d cards, %d incomplete, %d not qualifying, %d kept",
        report.cards,
        report.incomplete,
        report.rejected,
        len(report.records),
    )
    export_records(report.records, out, include_price=include_price)
