"""Collection pages: harvest ``{title, href}`` pairs for later listing crawls."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import urljoin

from listing_harvester.core.config import COLLECTION_SCROLL, COLLECTION_TITLE_CLASSES, ScrollConfig
from listing_harvester.core.logger import get_logger
from listing_harvester.models.dom import DomNode, all_of, has_class, tag_is
from listing_harvester.models.record import CollectionEntry
from listing_harvester.services.browser import BrowserSession
from listing_harvester.services.dom_walker import walk_composed
from listing_harvester.services.exporter import export_collection
from listing_harvester.services.field_extractor import normalize_text
from listing_harvester.services.scroll_controller import ScrollConvergenceController

logger = get_logger(__name__)

_ANCHOR = tag_is("a")


def nearest_anchor(node: DomNode) -> Optional[DomNode]:
    """Ancestor anchor, else a descendant anchor, else the first anchor beside it."""
    anchor = node.closest(_ANCHOR) or node.find_first(_ANCHOR)
    if anchor is None and node.parent is not None:
        anchor = node.parent.find_first(_ANCHOR)
    return anchor


def extract_collection_entries(
    root: DomNode,
    page_url: str,
    title_classes: Sequence[str] = COLLECTION_TITLE_CLASSES,
) -> List[CollectionEntry]:
    is_title = all_of(tag_is("p"), has_class(*title_classes))
    entries: List[CollectionEntry] = []
    seen: set[tuple[str, str]] = set()

    for node in walk_composed(root):
        if not node.is_element or not is_title(node):
            continue
        title = normalize_text(node.text_content)
        anchor = nearest_anchor(node)
        raw_href = anchor.get("href").strip() if anchor else ""
        if not title or not raw_href:
            continue
        href = urljoin(page_url, raw_href)
        key = (href, title)
        if key in seen:
            continue
        seen.add(key)
        entries.append(CollectionEntry(title=title, href=href))

    return entries


async def harvest_collection(
    session: BrowserSession,
    url: str,
    scroll_config: ScrollConfig = COLLECTION_SCROLL,
) -> List[CollectionEntry]:
    """Load a collection page to the bottom and return its entries.

    Navigation errors propagate: a collection run has a single target.
    """
    page = await session.open_page()
    try:
        await page.goto(url)
        convergence = await ScrollConvergenceController(scroll_config).run(page)
        logger.info("Collection scrolling stopped (%s) after %d rounds", convergence.reason.value, convergence.rounds)
        root = await page.snapshot()
        entries = extract_collection_entries(root, page.url or url)
        logger.info("Found %d collection entries on %s", len(entries), url)
        return entries
    finally:
        await page.close()


async def run_collection(
    url: str,
    output_path: Path,
    *,
    scroll_config: ScrollConfig = COLLECTION_SCROLL,
    session_factory: Callable[[], Any] = BrowserSession,
) -> Path:
    async with session_factory() as session:
        entries = await harvest_collection(session, url, scroll_config)
    return export_collection(entries, output_path)
