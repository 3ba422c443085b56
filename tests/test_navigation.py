"""Unit tests for page records, the navigation tree, and navigation snapshots."""

from __future__ import annotations

import asyncio
import itertools
import logging

import pytest

from selfhelp_pages.navigation import (
    NavigationIndex,
    NavigationStore,
    PageRecord,
    PageRecordError,
    build_tree,
    derive_footer,
    derive_menu,
    derive_menu_tree,
    iter_nodes,
)
from selfhelp_pages.routing import RouteCompileError

HOME = PageRecord(id=1, keyword="home", url="/home", nav_position=1)
ABOUT = PageRecord(id=2, keyword="about", url="/about", nav_position=2)
TEAM = PageRecord(id=3, keyword="team", url="/about/team", parent=2, nav_position=1)


def _keywords(records: list[PageRecord]) -> list[str]:
    return [record.keyword for record in records]


def test_home_about_team_tree_and_menu() -> None:
    tree = build_tree([HOME, ABOUT, TEAM])
    assert [node.keyword for node in tree] == ["home", "about"], "expected two roots"
    assert [child.keyword for child in tree[1].children] == ["team"], (
        "expected team nested under about"
    )
    assert _keywords(derive_menu(tree)) == ["home", "about", "team"], (
        "expected the depth-first menu"
    )


def test_build_tree_preserves_ids_for_every_input_order() -> None:
    records = [
        HOME,
        ABOUT,
        TEAM,
        PageRecord(id=4, keyword="faq", parent=2),
        PageRecord(id=5, keyword="imprint", footer_position=1),
    ]
    expected = {record.id for record in records}
    shapes = set()
    for ordering in itertools.permutations(records):
        tree = build_tree(ordering)
        ids = [node.id for node in iter_nodes(tree)]
        assert len(ids) == len(expected), f"expected no duplicates, got {ids}"
        assert set(ids) == expected, f"expected ids {expected}, got {set(ids)}"
        shapes.add(tuple(_keywords([node.record for node in iter_nodes(tree)])))
    assert len(shapes) == 1, f"expected one tree shape for positioned pages, got {shapes}"


def test_null_positions_sort_last_with_stable_ties() -> None:
    records = [
        PageRecord(id=1, keyword="unplaced-a"),
        PageRecord(id=2, keyword="third", nav_position=3),
        PageRecord(id=3, keyword="first", nav_position=1),
        PageRecord(id=4, keyword="unplaced-b"),
        PageRecord(id=5, keyword="tie-a", nav_position=2),
        PageRecord(id=6, keyword="tie-b", nav_position=2),
    ]
    order = [node.keyword for node in build_tree(records)]
    assert order == ["first", "tie-a", "tie-b", "third", "unplaced-a", "unplaced-b"], (
        f"expected positioned pages first, ties in input order, got {order}"
    )


def test_build_tree_is_deterministic() -> None:
    records = [HOME, ABOUT, TEAM]
    assert build_tree(records) == build_tree(list(records)), (
        "expected identical input to yield an identical tree"
    )


def test_orphan_becomes_root_and_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    orphan = PageRecord(id=9, keyword="lost", parent=42, nav_position=5)
    with caplog.at_level(logging.WARNING):
        tree = build_tree([HOME, orphan])
    assert [node.keyword for node in tree] == ["home", "lost"], "expected orphan as root"
    assert any("missing parent 42" in record.getMessage() for record in caplog.records), (
        "expected a warning about the missing parent"
    )


def test_self_parent_and_cycles_are_broken() -> None:
    records = [
        PageRecord(id=1, keyword="selfish", parent=1),
        PageRecord(id=2, keyword="b", parent=3),
        PageRecord(id=3, keyword="c", parent=2),
        PageRecord(id=4, keyword="d", parent=3),
    ]
    tree = build_tree(records)
    assert [node.keyword for node in tree] == ["selfish", "b"], (
        "expected self-parent and earliest cycle member promoted to roots"
    )
    b_node = tree[1]
    assert [child.keyword for child in b_node.children] == ["c"], "expected c under b"
    assert [child.keyword for child in b_node.children[0].children] == ["d"], (
        "expected d kept under c"
    )


def test_duplicate_ids_keep_first() -> None:
    tree = build_tree([HOME, PageRecord(id=1, keyword="shadow")])
    assert [node.keyword for node in tree] == ["home"], "expected the first record kept"


def test_headless_pages_are_not_in_menu_or_footer() -> None:
    hidden = PageRecord(
        id=7, keyword="login", nav_position=1, footer_position=1, is_headless=True
    )
    tree = build_tree([hidden, HOME])
    assert _keywords(derive_menu(tree)) == ["home"], "expected headless page excluded"
    assert derive_footer(tree) == [], "expected headless page excluded from footer"


def test_footer_orders_by_footer_position() -> None:
    records = [
        PageRecord(id=1, keyword="privacy", footer_position=2),
        PageRecord(id=2, keyword="imprint", footer_position=1),
        PageRecord(id=3, keyword="home", nav_position=1),
    ]
    assert _keywords(derive_footer(build_tree(records))) == ["imprint", "privacy"], (
        "expected footer entries by footer position"
    )


def test_menu_tree_drops_hidden_subtrees() -> None:
    records = [
        HOME,
        PageRecord(id=2, keyword="admin"),
        PageRecord(id=3, keyword="users", parent=2, nav_position=1),
    ]
    tree = build_tree(records)
    assert _keywords(derive_menu(tree)) == ["home", "users"], (
        "expected the flat menu to keep children of hidden parents"
    )
    assert [node.keyword for node in derive_menu_tree(tree)] == ["home"], (
        "expected the nested menu to drop the hidden subtree"
    )


def test_page_record_from_payload_accepts_backend_spellings() -> None:
    record = PageRecord.from_payload(
        {
            "id_pages": "12",
            "keyword": "profile",
            "url": "/profile/[i:uid]",
            "parent_page_id": 3,
            "nav_position": "4",
            "footer_position": None,
            "is_headless": "0",
            "protocol": "GET|POST",
        }
    )
    assert record.id == 12 and record.parent == 3, "expected ids parsed to ints"
    assert record.nav_position == 4, "expected position parsed"
    assert record.is_headless is False, "expected '0' to read as not headless"
    assert record.protocol == ("GET", "POST"), "expected protocol split on '|'"


def test_page_record_from_payload_requires_id_and_keyword() -> None:
    with pytest.raises(PageRecordError):
        PageRecord.from_payload({"keyword": "nameless"})
    with pytest.raises(PageRecordError):
        PageRecord.from_payload({"id": 1, "keyword": "  "})


def test_index_lookup_routes_and_breadcrumbs() -> None:
    profile = PageRecord(id=4, keyword="member", url="/about/team/[i:member_id]", parent=3)
    index = NavigationIndex.build([HOME, ABOUT, TEAM, profile])
    assert len(index) == 4, "expected every page indexed"
    assert index.lookup("team") == TEAM, "expected keyword lookup"
    hit = index.match_path("/about/team/8")
    assert hit is not None and hit.target.keyword == "member", "expected route match"
    assert hit.params == {"member_id": "8"}, "expected extracted params"
    assert _keywords(index.breadcrumbs("member")) == ["about", "team", "member"], (
        "expected the root-to-page trail"
    )
    assert index.breadcrumbs("nope") == [], "expected empty trail for unknown pages"
    assert index.menu_entries() == [
        {"label": "home", "href": "/home"},
        {"label": "about", "href": "/about"},
        {"label": "team", "href": "/about/team"},
    ], "expected menu entries with display paths"


def test_index_build_propagates_bad_templates() -> None:
    with pytest.raises(RouteCompileError):
        NavigationIndex.build([PageRecord(id=1, keyword="bad", url="/x/[z:q]")])


class _PageSource:
    def __init__(self, pages: list[PageRecord]) -> None:
        self.pages = pages
        self.languages: list[str | None] = []

    async def fetch_pages(self, language: str | None = None) -> list[PageRecord]:
        self.languages.append(language)
        return list(self.pages)


def test_store_refresh_swaps_whole_snapshot() -> None:
    source = _PageSource([HOME])
    store = NavigationStore(source)
    before = store.current
    assert len(before) == 0, "expected an empty snapshot before the first refresh"

    first = asyncio.run(store.refresh("de-CH"))
    source.pages = [HOME, ABOUT, TEAM]
    second = asyncio.run(store.refresh("de-CH"))

    assert len(first) == 1, "expected the old snapshot to stay intact"
    assert store.current is second and len(second) == 3, "expected the new snapshot"
    assert source.languages == ["de-CH", "de-CH"], "expected language forwarded"


def test_store_refresh_without_source_fails() -> None:
    with pytest.raises(RuntimeError, match="no page source"):
        asyncio.run(NavigationStore().refresh())
