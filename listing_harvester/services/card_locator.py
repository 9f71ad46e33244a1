# card_locator.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List

from listing_harvester.core.config import CARD_CLASS_TOKEN, CARD_TAG
from listing_harvester.models.dom import DomNode
from listing_harvester.services.dom_walker import walk_composed


@dataclass(frozen=True)
class CardLocator:
    """Picks listing cards out of a composed-tree walk by tag and class token."""

    tag: str = CARD_TAG
    class_token: str = CARD_CLASS_TOKEN

    def is_card(self, node: DomNode) -> bool:
        if not node.is_element or node.tag != self.tag.lower():
            return False
        return self.class_token.casefold() in node.class_tokens

    def filter(self, nodes: Iterable[DomNode]) -> Iterator[DomNode]:
        seen: set[int] = set()
        for node in nodes:
            if id(node) in seen or not self.is_card(node):
                continue
            seen.add(id(node))
            yield node

    def locate(self, root: DomNode) -> List[DomNode]:
        return list(self.filter(walk_composed(root)))

    def count(self, root: DomNode) -> int:
        return sum(1 for _ in self.filter(walk_composed(root)))
