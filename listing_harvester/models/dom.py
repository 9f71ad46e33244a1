"""Snapshot of a rendered page's composed tree.

A ``DomNode`` is what the in-page snapshot script (or the offline HTML
adapter) hands back: elements with their attributes, text nodes, and an
optional shadow root that is kept apart from the regular children. Queries
on a node mirror ``querySelector``: they stay inside one tree and never
cross into a shadow root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

TEXT = "#text"
SHADOW_ROOT = "#shadow-root"

NodePredicate = Callable[["DomNode"], bool]


@dataclass(eq=False)
class DomNode:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    children: List["DomNode"] = field(default_factory=list)
    shadow_root: Optional["DomNode"] = None
    data: str = ""
    parent: Optional["DomNode"] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()
        for child in self.children:
            child.parent = self

    @property
    def is_element(self) -> bool:
        return not self.tag.startswith("#")

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT

    def get(self, name: str, default: str = "") -> str:
        return self.attrs.get(name, default)

    @property
    def class_tokens(self) -> List[str]:
        return self.get("class").casefold().split()

    @property
    def text_content(self) -> str:
        """Concatenated text of the light subtree, like ``Node.textContent``."""
        if self.is_text:
            return self.data
        return "".join(n.data for n in self.iter_descendants() if n.is_text)

    def iter_descendants(self) -> Iterator["DomNode"]:
        """Light-tree descendants in document order, excluding ``self``."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_first(self, predicate: NodePredicate) -> Optional["DomNode"]:
        for node in self.iter_descendants():
            if node.is_element and predicate(node):
                return node
        return None

    def find_all(self, predicate: NodePredicate) -> List["DomNode"]:
        return [n for n in self.iter_descendants() if n.is_element and predicate(n)]

    def closest(self, predicate: NodePredicate) -> Optional["DomNode"]:
        cur: Optional[DomNode] = self
        while cur is not None:
            if cur.is_element and predicate(cur):
                return cur
            cur = cur.parent
        return None


def element(tag: str, attrs: Optional[Dict[str, str]] = None, *children: DomNode, shadow: Optional[DomNode] = None) -> DomNode:
    return DomNode(tag=tag, attrs=dict(attrs or {}), children=list(children), shadow_root=shadow)


def text(data: str) -> DomNode:
    return DomNode(tag=TEXT, data=data)


def shadow(*children: DomNode) -> DomNode:
    return DomNode(tag=SHADOW_ROOT, children=list(children))


def from_payload(payload: Any) -> DomNode:
    """Build a tree from the snapshot script's JSON shape.

    Text nodes arrive as bare strings; elements and shadow roots as
    ``{"t": tag, "a": attrs, "c": children, "s": shadow}``.
    """
    if isinstance(payload, str):
        return text(payload)
    shadow_payload = payload.get("s")
    return DomNode(
        tag=payload.get("t") or "",
        attrs={str(k): str(v) for k, v in (payload.get("a") or {}).items()},
        children=[from_payload(child) for child in payload.get("c") or []],
        shadow_root=from_payload(shadow_payload) if shadow_payload else None,
    )


# ---- predicates ----

def tag_is(name: str) -> NodePredicate:
    name = name.lower()
    return lambda node: node.tag == name


def attr_equals(name: str, value: str) -> NodePredicate:
    return lambda node: node.attrs.get(name) == value


def attr_contains(name: str, fragment: str) -> NodePredicate:
    return lambda node: fragment in node.attrs.get(name, "")


def has_class(*tokens: str) -> NodePredicate:
    wanted = [t.casefold() for t in tokens]

    def _match(node: DomNode) -> bool:
        classes = node.class_tokens
        return all(t in classes for t in wanted)

    return _match


def all_of(*predicates: NodePredicate) -> NodePredicate:
    return lambda node: all(p(node) for p in predicates)


def any_of(*predicates: NodePredicate) -> NodePredicate:
    return lambda node: any(p(node) for p in predicates)
