# exporter.py

import csv
import json
from pathlib import Path
from typing import Any, List, Sequence

from loguru import logger

from listing_harvester.models.record import CollectionEntry, Record

RECORD_FIELDS = ["title", "identifier", "href"]


def write_json(payload: Any, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return path


def export_records(
    records: Sequence[Record],
    output_path: Path,
    *,
    include_price: bool = False,
    write_csv: bool = False,
) -> Path:
    """
    Write the final records as JSON, in order. With `write_csv` a CSV file is
    written next to it using the same stem.
    """
    rows: List[dict] = [r.to_output(include_price=include_price) for r in records]
    json_path = write_json(rows, output_path)
    logger.success(f"Saved {len(rows)} items to {json_path}")

    if write_csv:
        csv_path = json_path.with_suffix(".csv")
        fieldnames = RECORD_FIELDS + (["priceText"] if include_price else [])
        with open(csv_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            for row in rows:
                writer.writerow(row)
        logger.success(f"Exported {len(rows)} items to {csv_path}")

    return json_path


def export_collection(entries: Sequence[CollectionEntry], output_path: Path) -> Path:
    path = write_json([e.model_dump() for e in entries], output_path)
    logger.success(f"Saved {len(entries)} items to {path}")
    return path
