"""Field extraction for a single located card.

Each output field is resolved through an ordered list of strategies and the
first non-empty answer wins:

    price       price-badge shadow -> price container directly in the card
    href        anchor whose href carries the detail-path marker
    title       title element -> anchor text -> side-channel descriptor
    identifier  side-channel descriptor -> detail-path segment of the href

A card that cannot produce a title, identifier and on-origin href is
"incomplete" and comes back as ``None``. That is an expected outcome, not an
error, so nothing here raises or logs per card.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Pattern, Sequence
from urllib.parse import urljoin, urlsplit, urlunsplit

from pydantic import ValidationError

from listing_harvester.core.config import (
    DESCRIPTOR_ATTR,
    DETAIL_ID_REGEX,
    DETAIL_PATH_MARKER,
    EXPECTED_ORIGIN,
    PRICE_BADGE_TAG,
    PRICE_CONTAINER_PART,
    TITLE_PART,
)
from listing_harvester.models.dom import (
    DomNode,
    all_of,
    any_of,
    attr_contains,
    attr_equals,
    has_class,
    tag_is,
)
from listing_harvester.models.record import CardDescriptor, Record

_WS_RE = re.compile(r"\s+")


def normalize_text(value: Optional[str]) -> str:
    return _WS_RE.sub(" ", value or "").strip()


_DEFAULT_PORTS = {"http": 80, "https": 443}


def origin_of(url: str) -> str:
    """Canonical `scheme://host[:port]`: lowercased, default port dropped."""
    parts = urlsplit(url)
    if not parts.scheme or not parts.hostname:
        return ""
    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    try:
        port = parts.port
    except ValueError:
        return ""
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def parse_descriptor(raw: Optional[str]) -> Optional[CardDescriptor]:
    """Parse-then-validate the side-channel blob; any failure means absent."""
    if not raw:
        return None
    try:
        payload = json.loads(raw.replace("&quot;", '"'))
    except (ValueError, TypeError, RecursionError):
        return None
    if not isinstance(payload, dict):
        return None
    try:
        return CardDescriptor.model_validate(payload)
    except ValidationError:
        return None


@dataclass
class CardContext:
    """Per-card lookups shared by the strategies."""

    card: DomNode
    page_url: str
    detail_marker: str
    descriptor_attr: str
    _anchor: Optional[DomNode] = field(default=None, init=False)
    _anchor_done: bool = field(default=False, init=False)
    _descriptor: Optional[CardDescriptor] = field(default=None, init=False)
    _descriptor_done: bool = field(default=False, init=False)

    @property
    def scope(self) -> DomNode:
        # Card markup normally lives in the card's own shadow root.
        return self.card.shadow_root or self.card

    @property
    def anchor(self) -> Optional[DomNode]:
        if not self._anchor_done:
            self._anchor = self.scope.find_first(
                all_of(tag_is("a"), attr_contains("href", self.detail_marker))
            )
            self._anchor_done = True
        return self._anchor

    @property
    def descriptor(self) -> Optional[CardDescriptor]:
        if not self._descriptor_done:
            self._descriptor = parse_descriptor(self.card.attrs.get(self.descriptor_attr))
            self._descriptor_done = True
        return self._descriptor


Strategy = Callable[[CardContext], str]


def first_non_empty(ctx: CardContext, strategies: Sequence[Strategy]) -> str:
    for strategy in strategies:
        value = normalize_text(strategy(ctx))
        if value:
            return value
    return ""


# ---- price ----

_PRICE_CONTAINER = any_of(
    all_of(tag_is("div"), attr_equals("part", PRICE_CONTAINER_PART)),
    has_class(PRICE_CONTAINER_PART),
)


def price_from_badge(ctx: CardContext) -> str:
    badge = ctx.scope.find_first(tag_is(PRICE_BADGE_TAG))
    if badge is None or badge.shadow_root is None:
        return ""
    root = badge.shadow_root
    container = root.find_first(
        all_of(tag_is("div"), attr_equals("part", PRICE_CONTAINER_PART))
    ) or root.find_first(has_class(PRICE_CONTAINER_PART))
    return container.text_content if container else ""


def price_from_card(ctx: CardContext) -> str:
    container = ctx.scope.find_first(_PRICE_CONTAINER)
    return container.text_content if container else ""


# ---- href ----

def href_from_detail_anchor(ctx: CardContext) -> str:
    anchor = ctx.anchor
    return anchor.get("href") if anchor else ""


# ---- title ----

_TITLE_ELEMENT = any_of(
    attr_equals("part", TITLE_PART),
    all_of(tag_is("p"), has_class(TITLE_PART)),
)


def title_from_element(ctx: CardContext) -> str:
    el = ctx.scope.find_first(_TITLE_ELEMENT)
    return el.text_content if el else ""


def title_from_anchor(ctx: CardContext) -> str:
    return ctx.anchor.text_content if ctx.anchor else ""


def title_from_descriptor(ctx: CardContext) -> str:
    return (ctx.descriptor.item_name or "") if ctx.descriptor else ""


# ---- identifier ----

def identifier_from_descriptor(ctx: CardContext) -> str:
    return (ctx.descriptor.item_id or "") if ctx.descriptor else ""


def make_identifier_from_href(pattern: Pattern[str]) -> Strategy:
    def identifier_from_href(ctx: CardContext) -> str:
        href = href_from_detail_anchor(ctx)
        if not href:
            return ""
        match = pattern.search(urljoin(origin_of(ctx.page_url) or ctx.page_url, href))
        return match.group(1) if match else ""

    return identifier_from_href


@dataclass
class FieldExtractor:
    expected_origin: str = EXPECTED_ORIGIN
    detail_marker: str = DETAIL_PATH_MARKER
    descriptor_attr: str = DESCRIPTOR_ATTR
    detail_id_pattern: Pattern[str] = DETAIL_ID_REGEX
    price_strategies: List[Strategy] = field(default_factory=lambda: [price_from_badge, price_from_card])
    href_strategies: List[Strategy] = field(default_factory=lambda: [href_from_detail_anchor])
    title_strategies: List[Strategy] = field(
        default_factory=lambda: [title_from_element, title_from_anchor, title_from_descriptor]
    )
    identifier_strategies: Optional[List[Strategy]] = None

    def __post_init__(self) -> None:
        if self.identifier_strategies is None:
            self.identifier_strategies = [
                identifier_from_descriptor,
                make_identifier_from_href(self.detail_id_pattern),
            ]

    def extract(self, card: DomNode, page_url: str) -> Optional[Record]:
        """Return a complete Record for `card`, or None when it is incomplete."""
        ctx = CardContext(
            card=card,
            page_url=page_url,
            detail_marker=self.detail_marker,
            descriptor_attr=self.descriptor_attr,
        )

        href = self.resolve_href(first_non_empty(ctx, self.href_strategies), page_url)
        if not href:
            return None

        title = first_non_empty(ctx, self.title_strategies)
        identifier = first_non_empty(ctx, self.identifier_strategies or [])
        if not title or not identifier:
            return None

        price_text = first_non_empty(ctx, self.price_strategies)
        return Record(
            title=title,
            identifier=identifier,
            href=href,
            price_text=price_text or None,
        )

    def resolve_href(self, raw_href: str, page_url: str) -> str:
        """Absolute href on the expected origin, or "" when it falls outside it."""
        if not raw_href:
            return ""
        page_origin = origin_of(page_url)
        absolute = urljoin(page_origin or page_url, raw_href)
        expected = origin_of(self.expected_origin) if self.expected_origin else page_origin
        if not expected or origin_of(absolute) != expected:
            return ""
        # Rebuild on the canonical origin so the stored href always starts with it.
        parts = urlsplit(absolute)
        return expected + urlunsplit(("", "", parts.path, parts.query, parts.fragment))
