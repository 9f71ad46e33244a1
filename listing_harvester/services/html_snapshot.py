"""Build a composed-tree snapshot from static HTML.

Shadow roots are read from declarative ``<template shadowrootmode="open">``
children, which is how saved pages and fixtures carry encapsulated markup.
"""

from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from listing_harvester.models.dom import SHADOW_ROOT, DomNode, text

_SHADOW_ATTRS = ("shadowrootmode", "shadowroot")
_SKIP_TAGS = {"script", "style", "noscript"}


def _is_shadow_template(tag: Tag) -> bool:
    return tag.name == "template" and any(tag.has_attr(a) for a in _SHADOW_ATTRS)


def _attrs(tag: Tag) -> dict[str, str]:
    out: dict[str, str] = {}
    for key, value in tag.attrs.items():
        out[key] = " ".join(value) if isinstance(value, list) else str(value)
    return out


def _convert_children(tag: Tag) -> list[DomNode]:
    children: list[DomNode] = []
    for child in tag.children:
        if isinstance(child, PreformattedString):
            continue
        if isinstance(child, NavigableString):
            children.append(text(str(child)))
        elif isinstance(child, Tag) and child.name not in _SKIP_TAGS and not _is_shadow_template(child):
            children.append(_convert(child))
    return children


def _convert(tag: Tag) -> DomNode:
    shadow = None
    for child in tag.find_all("template", recursive=False):
        if _is_shadow_template(child):
            shadow = DomNode(tag=SHADOW_ROOT, children=_convert_children(child))
            break
    return DomNode(tag=tag.name, attrs=_attrs(tag), children=_convert_children(tag), shadow_root=shadow)


def snapshot_from_html(html: str) -> DomNode:
    # html.parser keeps the nesting exactly as written; template content
    # would be re-parented by a fixing parser.
    soup = BeautifulSoup(html, "html.parser")
    root = soup.find("html")
    if isinstance(root, Tag):
        return _convert(root)
    return DomNode(tag="html", children=_convert_children(soup))


def snapshot_from_file(path: Path | str) -> DomNode:
    return snapshot_from_html(Path(path).read_text(encoding="utf-8"))
