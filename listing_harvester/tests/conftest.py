from __future__ import annotations

import html
import json
from typing import Dict, List, Optional, Union

import pytest

from listing_harvester.models.dom import DomNode
from listing_harvester.services.browser import NavigationError
from listing_harvester.services.html_snapshot import snapshot_from_html

ORIGIN = "https://apps.microsoft.com"
PAGE_URL = f"{ORIGIN}/collections/free-apps?hl=en-US"


def shadow(inner: str) -> str:
    return f'<template shadowrootmode="open">{inner}</template>'


def card_html(
    href: Optional[str] = None,
    title: Optional[str] = "Sample App",
    price: Optional[str] = "Free",
    *,
    price_in_badge: bool = True,
    descriptor: Optional[Union[dict, str]] = None,
    card_class: str = "product-card",
    tag: str = "square-card",
    extra: str = "",
) -> str:
    parts = []
    if href is not None:
        parts.append(f'<a href="{href}"><span class="name">{title or ""}</span></a>')
    if title is not None:
        parts.append(f'<span part="title">{title}</span>')
    if price is not None:
        if price_in_badge:
            container = '<div part="price-container">' + price + "</div>"
            parts.append(f"<price-badge>{shadow(container)}</price-badge>")
        else:
            parts.append(f'<div class="price-container">{price}</div>')
    parts.append(extra)

    attrs = f'class="{card_class}"'
    if descriptor is not None:
        raw = descriptor if isinstance(descriptor, str) else json.dumps(descriptor)
        attrs += f' telemetry-data="{html.escape(raw, quote=True)}"'
    return f"<{tag} {attrs}>{shadow(''.join(parts))}</{tag}>"


def page_html(*cards: str) -> str:
    grid = f"<store-grid>{shadow(''.join(cards))}</store-grid>"
    return f"<html><body><main>{grid}</main></body></html>"


def build_card(**kwargs) -> DomNode:
    """Snapshot a page holding one card and return that card node."""
    root = snapshot_from_html(page_html(card_html(**kwargs)))
    grid = root.find_first(lambda n: n.tag == "store-grid")
    return grid.shadow_root.find_first(lambda n: n.tag == kwargs.get("tag", "square-card"))


class FakePage:
    """Stands in for ListingPage: serves one snapshot and a scripted height series."""

    def __init__(self, session: "FakeSession") -> None:
        self._session = session
        self.url = "about:blank"
        self.root: Optional[DomNode] = None
        self.bursts = 0
        self.closed = False
        self._heights: List[int] = []

    async def goto(self, url: str) -> None:
        site = self._session.sites.get(url)
        self._session.visited.append(url)
        if site is None or isinstance(site, Exception):
            raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
        self.url = url
        self.root = snapshot_from_html(site)
        self._heights = list(self._session.heights)

    async def snapshot(self) -> DomNode:
        return self.root

    async def scroll_burst(self, steps: int, min_step_px: int, viewport_ratio: float) -> None:
        self.bursts += 1

    async def scroll_height(self) -> int:
        if len(self._heights) > 1:
            return self._heights.pop(0)
        return self._heights[0] if self._heights else 0

    async def click_load_more(self) -> int:
        return 0

    async def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, sites: Dict[str, Union[str, Exception]], heights: Optional[List[int]] = None) -> None:
        self.sites = sites
        self.heights = heights or [1000]
        self.visited: List[str] = []
        self.pages: List[FakePage] = []
        self.entered = False
        self.exited = False

    async def open_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def __aenter__(self) -> "FakeSession":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.exited = True


@pytest.fixture
def five_card_page() -> str:
    """Three free cards, a duplicate of the first, and one off-origin card."""
    return page_html(
        card_html("/detail/app-one/9NBLGGH4NNS1", "App One", "Free"),
        card_html("/detail/app-two/9WZDNCRFJ3TJ", "App Two", "FREE trial"),
        card_html("/detail/app-three/9P7KNL5RWT25", "App Three", "Free*"),
        card_html("/detail/app-one/9NBLGGH4NNS1", "App One (again)", "Free"),
        card_html("https://evil.example.com/detail/x/9XXXXXXXXXXX", "Off Origin", "Free"),
    )
