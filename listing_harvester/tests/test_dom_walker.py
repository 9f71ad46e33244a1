from listing_harvester.models.dom import element, shadow, text
from listing_harvester.services.dom_walker import walk_composed
from listing_harvester.services.html_snapshot import snapshot_from_html


def _tags(nodes):
    return [n.tag for n in nodes if n.is_element or n.tag == "#shadow-root"]


def test_shadow_root_is_visited_right_after_its_host():
    root = element(
        "main",
        None,
        element("host-a", None, element("light-child"), shadow=shadow(element("inner"))),
        element("sibling"),
    )

    assert _tags(walk_composed(root)) == [
        "main",
        "host-a",
        "#shadow-root",
        "inner",
        "light-child",
        "sibling",
    ]


def test_nested_shadow_roots_are_entered():
    deepest = element("deep-leaf")
    root = element(
        "outer-host",
        None,
        shadow=shadow(element("middle-host", None, shadow=shadow(deepest))),
    )

    assert any(node is deepest for node in walk_composed(root))


def test_accessor_controls_boundary_crossing():
    root = element("host", None, element("light"), shadow=shadow(element("hidden")))

    tags = _tags(walk_composed(root, get_boundary_root=lambda node: None))

    assert tags == ["host", "light"]


def test_walk_is_lazy_and_repeatable_on_unchanged_tree():
    root = element("div", None, text("hi"), element("span"))

    walker = walk_composed(root)
    assert next(walker) is root

    first = [n.tag for n in walk_composed(root)]
    second = [n.tag for n in walk_composed(root)]
    assert first == second == ["div", "#text", "span"]


def test_html_snapshot_reads_declarative_shadow_roots():
    root = snapshot_from_html(
        "<html><body><x-card class='a'>"
        "<template shadowrootmode='open'><span part='title'>Hello</span></template>"
        "light</x-card></body></html>"
    )

    card = root.find_first(lambda n: n.tag == "x-card")
    assert card.shadow_root is not None
    assert card.text_content == "light"
    assert card.shadow_root.find_first(lambda n: n.tag == "span").text_content == "Hello"
    # the template itself is not a regular child
    assert all(child.tag != "template" for child in card.children)
