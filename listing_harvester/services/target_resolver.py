"""Works out which pages to crawl."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from listing_harvester.core.config import DEFAULT_IN, HUB_URL
from listing_harvester.core.logger import get_logger

logger = get_logger(__name__)


class TargetResolutionError(Exception):
    """No usable addresses after every source was tried."""


def hrefs_from_entries(raw: Any) -> List[str]:
    """Pull addresses out of a prior list of strings and ``{href}``-like dicts."""
    if not isinstance(raw, list):
        return []
    hrefs: List[str] = []
    for entry in raw:
        if isinstance(entry, str):
            href = entry
        elif isinstance(entry, dict):
            href = entry.get("href") or entry.get("url") or ""
        else:
            continue
        if isinstance(href, str) and href.strip():
            hrefs.append(href.strip())
    return hrefs


def load_target_file(path: Path) -> List[str]:
    if not path.exists():
        return []
    if not path.is_file():
        logger.warning("Target list %s is not a file; ignoring it", path)
        return []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Could not read target list %s: %s", path, exc)
        return []
    try:
        raw = json.loads(text)
    except (ValueError, RecursionError):
        logger.warning("Target list %s is not valid JSON; ignoring it", path)
        return []
    return hrefs_from_entries(raw)


@dataclass
class TargetResolver:
    """
    Sources, first hit wins: the prior list at `source_path`, then
    `seed_url`, then `hub_url`.

    When `source_path` is given explicitly and yields nothing, the hub is not
    used as a silent substitute: without a seed the run fails. Only the
    implicit default list falls through to the hub.
    """

    source_path: Optional[Path] = None
    seed_url: Optional[str] = None
    hub_url: str = HUB_URL
    default_source_path: Optional[Path] = DEFAULT_IN

    def resolve(self) -> List[str]:
        explicit = self.source_path is not None
        path = Path(self.source_path) if explicit else self.default_source_path

        if path is not None:
            hrefs = load_target_file(Path(path))
            if hrefs:
                logger.info("Loaded %d targets from %s", len(hrefs), path)
                return hrefs
            if explicit:
                logger.warning("No usable targets in %s", path)

        if self.seed_url and self.seed_url.strip():
            return [self.seed_url.strip()]

        if explicit:
            raise TargetResolutionError(
                f"No targets found: {path} has no usable addresses and no seed URL was given"
            )

        if self.hub_url:
            return [self.hub_url]

        raise TargetResolutionError("No targets found (no target list, seed URL or hub URL)")


def resolve_targets(
    source_path: Optional[Path | str] = None,
    seed_url: Optional[str] = None,
    hub_url: str = HUB_URL,
) -> List[str]:
    resolver = TargetResolver(
        source_path=Path(source_path) if source_path else None,
        seed_url=seed_url,
        hub_url=hub_url,
    )
    return resolver.resolve()
