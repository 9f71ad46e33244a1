import json

import pytest

from listing_harvester.services.target_resolver import (
    TargetResolutionError,
    TargetResolver,
    hrefs_from_entries,
)

HUB = "https://apps.microsoft.com/home"
SEED = "https://apps.microsoft.com/collections/free"


def write(path, payload):
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
    return path


def test_prior_list_wins(tmp_path):
    source = write(tmp_path / "items.json", [{"title": "A", "href": "https://a.test/1"}, "https://a.test/2"])

    resolver = TargetResolver(source_path=source, seed_url=SEED, hub_url=HUB)

    assert resolver.resolve() == ["https://a.test/1", "https://a.test/2"]


def test_entries_without_an_address_are_skipped():
    raw = [{"title": "no link"}, {"url": " https://a.test/u "}, "", 42, {"href": "  "}, {"href": "https://a.test/h"}]

    assert hrefs_from_entries(raw) == ["https://a.test/u", "https://a.test/h"]
    assert hrefs_from_entries({"href": "https://a.test"}) == []


def test_missing_default_list_falls_back_to_seed(tmp_path):
    resolver = TargetResolver(seed_url=SEED, hub_url=HUB, default_source_path=tmp_path / "absent.json")

    assert resolver.resolve() == [SEED]


def test_missing_default_list_and_seed_fall_back_to_hub(tmp_path):
    resolver = TargetResolver(hub_url=HUB, default_source_path=tmp_path / "absent.json")

    assert resolver.resolve() == [HUB]


def test_invalid_default_list_is_treated_as_empty(tmp_path):
    source = write(tmp_path / "broken.json", "{ not json")

    resolver = TargetResolver(hub_url=HUB, default_source_path=source)

    assert resolver.resolve() == [HUB]


def test_empty_explicit_list_uses_seed(tmp_path):
    source = write(tmp_path / "empty.json", [])

    assert TargetResolver(source_path=source, seed_url=SEED, hub_url=HUB).resolve() == [SEED]


def test_empty_explicit_list_without_seed_is_an_error(tmp_path):
    source = write(tmp_path / "empty.json", [])

    with pytest.raises(TargetResolutionError):
        TargetResolver(source_path=source, hub_url=HUB).resolve()


def test_nothing_at_all_is_an_error(tmp_path):
    resolver = TargetResolver(hub_url="", default_source_path=tmp_path / "absent.json")

    with pytest.raises(TargetResolutionError):
        resolver.resolve()


def test_directory_as_list_falls_back_to_seed(tmp_path):
    assert TargetResolver(source_path=tmp_path, seed_url=SEED, hub_url=HUB).resolve() == [SEED]


def test_directory_as_list_without_seed_is_an_error(tmp_path):
    with pytest.raises(TargetResolutionError):
        TargetResolver(source_path=tmp_path, hub_url=HUB).resolve()
