"""Per-target crawl: navigate, converge, extract, filter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from listing_harvester.core.config import ScrollConfig
from listing_harvester.core.logger import get_logger
from listing_harvester.models.dom import DomNode
from listing_harvester.models.record import Record
from listing_harvester.services.aggregator import DedupAggregator
from listing_harvester.services.browser import BrowserSession, NavigationError
from listing_harvester.services.card_locator import CardLocator
from listing_harvester.services.field_extractor import FieldExtractor
from listing_harvester.services.item_filter import ItemFilter
from listing_harvester.services.scroll_controller import (
    ConvergenceResult,
    ScrollConvergenceController,
)

logger = get_logger(__name__)


@dataclass
class ExtractionReport:
    records: List[Record] = field(default_factory=list)
    cards: int = 0
    incomplete: int = 0
    rejected: int = 0
    duplicates: int = 0


@dataclass
class TargetResult:
    url: str
    records: List[Record] = field(default_factory=list)
    report: Optional[ExtractionReport] = None
    convergence: Optional[ConvergenceResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def extract_listings(
    root: DomNode,
    page_url: str,
    limit: int,
    *,
    locator: Optional[CardLocator] = None,
    extractor: Optional[FieldExtractor] = None,
    item_filter: Optional[ItemFilter] = None,
) -> ExtractionReport:
    """One extraction pass over a snapshot: locate, extract, filter, dedup, cap."""
    locator = locator or CardLocator()
    extractor = extractor or FieldExtractor()
    item_filter = item_filter or ItemFilter()

    report = ExtractionReport()
    unique = DedupAggregator(limit)

    for card in locator.locate(root):
        report.cards += 1
        record = extractor.extract(card, page_url)
        if record is None:
            report.incomplete += 1
            continue
        if not item_filter.accepts(record, record.price_text):
            report.rejected += 1
            continue
        if not unique.add(record):
            report.duplicates += 1
        if unique.full:
            break

    report.records = unique.records
    return report


@dataclass
class ListingCrawler:
    scroll_config: ScrollConfig = field(default_factory=ScrollConfig)
    locator: CardLocator = field(default_factory=CardLocator)
    extractor: FieldExtractor = field(default_factory=FieldExtractor)
    item_filter: ItemFilter = field(default_factory=ItemFilter)

    async def crawl(self, session: BrowserSession, url: str, limit: int) -> TargetResult:
        page = await session.open_page()
        try:
            try:
                await page.goto(url)
            except NavigationError as exc:
                logger.warning("Skipping %s: %s", url, exc.reason)
                return TargetResult(url=url, error=str(exc))

            async def count_cards() -> int:
                return self.locator.count(await page.snapshot())

            controller = ScrollConvergenceController(self.scroll_config)
            convergence = await controller.run(page, want_count=limit, count_cards=count_cards)
            logger.info(
                "Scrolling stopped (%s) after %d rounds", convergence.reason.value, convergence.rounds
            )

            root = await page.snapshot()
            report = extract_listings(
                root,
                page.url or url,
                limit,
                locator=self.locator,
                extractor=self.extractor,
                item_filter=self.item_filter,
            )
            return TargetResult(url=url, records=report.records, report=report, convergence=convergence)
        finally:
            await page.close()
