from listing_harvester.models.dom import element, shadow
from listing_harvester.services.card_locator import CardLocator
from listing_harvester.services.dom_walker import walk_composed
from listing_harvester.services.html_snapshot import snapshot_from_html

from .conftest import card_html, page_html


def test_matches_tag_and_class_token_case_insensitively():
    locator = CardLocator()

    assert locator.is_card(element("square-card", {"class": "Product-Card wide"}))
    assert not locator.is_card(element("square-card", {"class": "hero-card"}))
    assert not locator.is_card(element("div", {"class": "product-card"}))
    assert not locator.is_card(element("square-card", {"class": "product-cards"}))
    assert not locator.is_card(element("square-card"))


def test_finds_cards_inside_nested_shadow_roots_in_traversal_order():
    root = snapshot_from_html(
        page_html(
            card_html("/detail/a/1", "First"),
            card_html("/detail/b/2", "Decoy", card_class="hero-card"),
            card_html("/detail/c/3", "Second"),
        )
    )

    cards = CardLocator().locate(root)

    assert len(cards) == 2
    titles = [c.shadow_root.find_first(lambda n: n.get("part") == "title").text_content for c in cards]
    assert titles == ["First", "Second"]


def test_never_yields_the_same_node_twice():
    card = element("square-card", {"class": "product-card"})
    root = element("main", None, card, shadow=shadow(element("x")))

    nodes = list(walk_composed(root)) + [card]

    assert list(CardLocator().filter(nodes)) == [card]


def test_count_agrees_with_locate():
    root = snapshot_from_html(page_html(*[card_html(f"/detail/x/{i}", f"App {i}") for i in range(4)]))
    locator = CardLocator()

    assert locator.count(root) == len(locator.locate(root)) == 4
