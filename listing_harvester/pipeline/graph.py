from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from langgraph.graph import END, StateGraph

from listing_harvester.core.config import DEFAULT_LIMIT, DEFAULT_OUT
from listing_harvester.core.logger import get_logger
from listing_harvester.models.state import HarvestState
from listing_harvester.services.aggregator import DedupAggregator, aggregate
from listing_harvester.services.browser import BrowserSession
from listing_harvester.services.exporter import export_records
from listing_harvester.services.target_resolver import TargetResolver
from listing_harvester.strategies.listing_crawl import ListingCrawler, TargetResult

logger = get_logger(__name__)

SessionFactory = Callable[[], Any]


def _limit(state: HarvestState) -> int:
    return int(state.get("limit") or DEFAULT_LIMIT)


def build_harvest_graph(
    session_factory: SessionFactory = BrowserSession,
    crawler: Optional[ListingCrawler] = None,
    resolver_factory: Callable[[HarvestState], TargetResolver] | None = None,
):
    """
    resolve -> crawl -> aggregate -> export

    `resolve` runs before a browser exists, so a run with no targets never
    launches one. `crawl` owns the browser session and visits targets one
    page at a time.
    """
    crawler = crawler or ListingCrawler()

    def _resolver(state: HarvestState) -> TargetResolver:
        if resolver_factory is not None:
            return resolver_factory(state)
        source = state.get("source_path")
        return TargetResolver(
            source_path=Path(source) if source else None,
            seed_url=state.get("seed_url"),
        )

    async def resolve_node(state: HarvestState) -> Dict[str, Any]:
        targets = _resolver(state).resolve()
        logger.info("Resolved %d target(s)", len(targets))
        return {"targets": targets}

    async def crawl_node(state: HarvestState) -> Dict[str, Any]:
        limit = _limit(state)
        results: List[TargetResult] = []
        errors = list(state.get("errors") or [])
        running = DedupAggregator(limit)

        async with session_factory() as session:
            for url in state["targets"]:
                logger.info("Crawling: %s", url)
                result = await crawler.crawl(session, url, limit)
                results.append(result)
                if not result.ok:
                    errors.append(f"navigation_error: {result.error}")
                    continue

                report = result.report
                logger.info(
                    "  Found %d free listings (%d cards, %d incomplete, %d not qualifying)",
                    len(result.records),
                    report.cards if report else 0,
                    report.incomplete if report else 0,
                    report.rejected if report else 0,
                )
                running.extend(result.records)
                if running.full:
                    logger.info("Reached the limit of %d listings; skipping remaining targets", limit)
                    break

        return {"results": results, "errors": errors}

    async def aggregate_node(state: HarvestState) -> Dict[str, Any]:
        results = state.get("results") or []
        records = aggregate((r.records for r in results if r.ok), _limit(state))
        failed = sum(1 for r in results if not r.ok)
        if failed:
            logger.warning("%d of %d target(s) could not be loaded", failed, len(results))
        return {"records": records}

    async def export_node(state: HarvestState) -> Dict[str, Any]:
        path = export_records(
            state.get("records") or [],
            Path(state.get("output_path") or DEFAULT_OUT),
            include_price=bool(state.get("include_price")),
            write_csv=bool(state.get("write_csv")),
        )
        return {"saved_path": str(path)}

    graph = StateGraph(HarvestState)

    graph.add_node("resolve", resolve_node)
    graph.add_node("crawl", crawl_node)
    graph.add_node("aggregate", aggregate_node)
    graph.add_node("export", export_node)
    graph.set_entry_point("resolve")

    graph.add_edge("resolve", "crawl")
    graph.add_edge("crawl", "aggregate")
    graph.add_edge("aggregate", "export")
    graph.add_edge("export", END)
    return graph.compile()


async def run_harvest(
    *,
    limit: int = DEFAULT_LIMIT,
    seed_url: Optional[str] = None,
    source_path: Optional[str] = None,
    output_path: Optional[str] = None,
    include_price: bool = False,
    write_csv: bool = False,
    session_factory: SessionFactory = BrowserSession,
    crawler: Optional[ListingCrawler] = None,
) -> HarvestState:
    graph = build_harvest_graph(session_factory=session_factory, crawler=crawler)
    state: HarvestState = {
        "source_path": source_path,
        "seed_url": seed_url,
        "limit": limit,
        "output_path": str(output_path or DEFAULT_OUT),
        "include_price": include_price,
        "write_csv": write_csv,
        "errors": [],
    }
    result = await graph.ainvoke(state)
    logger.info("Saved %d unique listings to %s", len(result.get("records") or []), result.get("saved_path"))
    return result
