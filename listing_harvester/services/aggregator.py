# aggregator.py

from __future__ import annotations

from typing import Iterable, List

from listing_harvester.models.record import Record


class DedupAggregator:
    """
    Keeps the first Record seen for each dedup key, in arrival order, up to
    `max_size` records. Later duplicates and anything past the cap are dropped.
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 0:
            raise ValueError("max_size must be >= 0")
        self.max_size = max_size
        self._seen: set[str] = set()
        self._records: List[Record] = []
        self.duplicates = 0

    @property
    def full(self) -> bool:
        return len(self._records) >= self.max_size

    @property
    def records(self) -> List[Record]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def add(self, record: Record) -> bool:
        if self.full:
            return False
        key = record.dedup_key
        if key in self._seen:
            self.duplicates += 1
            return False
        self._seen.add(key)
        self._records.append(record)
        return True

    def extend(self, records: Iterable[Record]) -> int:
        added = 0
        for record in records:
            if self.full:
                break
            if self.add(record):
                added += 1
        return added


def aggregate(batches: Iterable[Iterable[Record]], max_size: int) -> List[Record]:
    agg = DedupAggregator(max_size)
    for batch in batches:
        agg.extend(batch)
        if agg.full:
            break
    return agg.records
