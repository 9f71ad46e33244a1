# item_filter.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Pattern

from listing_harvester.core.config import FREE_REGEX
from listing_harvester.models.record import Record


@dataclass(frozen=True)
class ItemFilter:
    """Decides which extracted listings qualify. Swap the pattern to change the rule."""

    pattern: Pattern[str] = FREE_REGEX

    def accepts(self, record: Record, price_text: Optional[str] = None) -> bool:
        text = price_text if price_text is not None else record.price_text
        return bool(text) and bool(self.pattern.search(text))


free_only = ItemFilter()
