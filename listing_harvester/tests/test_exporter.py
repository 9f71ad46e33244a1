import csv
import json

from listing_harvester.models.record import CollectionEntry, Record
from listing_harvester.services.exporter import export_collection, export_records

RECORDS = [
    Record(title="Ünïcode App", identifier="9A", href="https://apps.microsoft.com/detail/9A", price_text="Free"),
    Record(title="Other", identifier="9B", href="https://apps.microsoft.com/detail/9B"),
]


def test_json_output_has_the_record_shape(tmp_path):
    path = export_records(RECORDS, tmp_path / "nested" / "out.json")

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload == [
        {"title": "Ünïcode App", "identifier": "9A", "href": "https://apps.microsoft.com/detail/9A"},
        {"title": "Other", "identifier": "9B", "href": "https://apps.microsoft.com/detail/9B"},
    ]
    assert "Ünïcode" in path.read_text(encoding="utf-8")


def test_price_is_kept_on_request_and_csv_written_alongside(tmp_path):
    path = export_records(RECORDS, tmp_path / "out.json", include_price=True, write_csv=True)

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload[0]["priceText"] == "Free"
    assert "priceText" not in payload[1]

    with open(tmp_path / "out.csv", newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [r["identifier"] for r in rows] == ["9A", "9B"]
    assert rows[0]["priceText"] == "Free"


def test_empty_result_is_still_written(tmp_path):
    path = export_records([], tmp_path / "out.json")

    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_collection_entries_are_title_href_pairs(tmp_path):
    path = export_collection([CollectionEntry(title="A", href="https://a.test/1")], tmp_path / "c.json")

    assert json.loads(path.read_text(encoding="utf-8")) == [{"title": "A", "href": "https://a.test/1"}]
