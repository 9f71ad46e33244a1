from __future__ import annotations

from typing import Any, List, Optional, TypedDict

from listing_harvester.models.record import Record


class HarvestState(TypedDict, total=False):
    # Inputs
    source_path: Optional[str]
    seed_url: Optional[str]
    limit: int
    output_path: str
    include_price: bool
    write_csv: bool

    # Produced by the graph
    targets: List[str]
    results: List[Any]  # TargetResult
    records: List[Record]
    saved_path: Optional[str]

    # Diagnostics
    errors: List[str]
