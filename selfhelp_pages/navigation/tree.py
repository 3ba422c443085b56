"""Build the navigation forest from a flat list of page records.

:func:`build_tree` indexes records by id, attaches each one under its parent
(records whose parent is missing become roots), and orders every sibling
group by ``nav_position`` with unplaced pages last. The result is a pure
function of the input list. :func:`derive_menu` and :func:`derive_footer`
flatten the forest into the entries shown in the site menu and footer.

Example
-------
>>> from selfhelp_pages.navigation import PageRecord, build_tree, derive_menu
>>> tree = build_tree([
...     PageRecord(id=1, keyword="home", nav_position=1),
...     PageRecord(id=2, keyword="about", nav_position=2),
...     PageRecord(id=3, keyword="team", parent=2, nav_position=1),
... ])
>>> [record.keyword for record in derive_menu(tree)]
['home', 'about', 'team']
"""

from __future__ import annotations

import collections.abc as cabc
import logging

from .models import NavigationNode, PageRecord

logger = logging.getLogger(__name__)

Forest = tuple[NavigationNode, ...]


def build_tree(records: cabc.Iterable[PageRecord]) -> Forest:
    """Return the ordered navigation forest for ``records``.

    Parameters
    ----------
    records : Iterable[PageRecord]
        Page records in any order.

    Returns
    -------
    tuple[NavigationNode, ...]
        Root nodes. Every distinct input id appears exactly once in the
        forest; sibling groups are ordered by ``nav_position`` ascending,
        unplaced pages last, ties kept in input order.

    Notes
    -----
    Integrity problems are repaired rather than raised, and logged:
    a record whose parent id is unknown, or which names itself as parent,
    becomes a root; in a parent cycle the member listed first in the input
    becomes a root; repeated ids keep their first occurrence.
    """
    unique: list[PageRecord] = []
    by_id: dict[int, PageRecord] = {}
    for record in records:
        if record.id in by_id:
            logger.warning("Duplicate page id %s (%r); keeping the first", record.id, record.keyword)
            continue
        by_id[record.id] = record
        unique.append(record)
    order = {record.id: index for index, record in enumerate(unique)}

    roots: list[int] = []
    children: dict[int, list[int]] = {record.id: [] for record in unique}
    parent_of: dict[int, int | None] = {}
    for record in unique:
        parent = record.parent
        if parent is not None and parent == record.id:
            logger.warning("Page %r lists itself as parent; treating it as a root", record.keyword)
            parent = None
        elif parent is not None and parent not in by_id:
            logger.warning(
                "Page %r references missing parent %s; treating it as a root",
                record.keyword,
                parent,
            )
            parent = None
        parent_of[record.id] = parent
        if parent is None:
            roots.append(record.id)
        else:
            children[parent].append(record.id)

    _break_cycles(unique, roots, children, parent_of)

    def sort_key(page_id: int) -> tuple[bool, int, int]:
        position = by_id[page_id].nav_position
        return (position is None, position or 0, order[page_id])

    def freeze(page_id: int) -> NavigationNode:
        kids = sorted(children[page_id], key=sort_key)
        _warn_duplicate_keywords(by_id[page_id].keyword, [by_id[kid] for kid in kids])
        return NavigationNode(
            record=by_id[page_id], children=tuple(freeze(kid) for kid in kids)
        )

    ordered_roots = sorted(roots, key=sort_key)
    _warn_duplicate_keywords(None, [by_id[root] for root in ordered_roots])
    return tuple(freeze(root) for root in ordered_roots)


def _break_cycles(
    unique: list[PageRecord],
    roots: list[int],
    children: dict[int, list[int]],
    parent_of: dict[int, int | None],
) -> None:
    """Promote one member of each parent cycle to root so no id is lost."""
    reachable: set[int] = set()

    def mark(start: int) -> None:
        stack = [start]
        while stack:
            current = stack.pop()
            if current in reachable:
                continue
            reachable.add(current)
            stack.extend(children[current])

    for root in roots:
        mark(root)
    position = {record.id: index for index, record in enumerate(unique)}
    for record in unique:
        if record.id in reachable:
            continue
        chain: list[int] = []
        current: int | None = record.id
        while current is not None and current not in chain:
            chain.append(current)
            current = parent_of[current]
        if current is None:  # pragma: no cover - unreachable nodes always loop
            continue
        cycle = chain[chain.index(current) :]
        promoted = min(cycle, key=position.__getitem__)
        former_parent = parent_of[promoted]
        if former_parent is not None:
            children[former_parent].remove(promoted)
        parent_of[promoted] = None
        roots.append(promoted)
        logger.warning("Parent cycle among pages %s; promoting %s to root", cycle, promoted)
        mark(promoted)


def _warn_duplicate_keywords(parent: str | None, siblings: list[PageRecord]) -> None:
    seen: set[str] = set()
    for record in siblings:
        if record.keyword in seen:
            logger.warning(
                "Duplicate keyword %r under %s", record.keyword, parent or "the root"
            )
        seen.add(record.keyword)


def iter_nodes(tree: cabc.Iterable[NavigationNode]) -> cabc.Iterator[NavigationNode]:
    """Yield every node depth-first, parents before children."""
    for node in tree:
        yield node
        yield from iter_nodes(node.children)


def derive_menu(tree: cabc.Iterable[NavigationNode]) -> list[PageRecord]:
    """Flatten ``tree`` depth-first into pages placed in the menu.

    Keeps records with a ``nav_position`` that are not headless, in tree
    order. A child is listed even when its parent is not.
    """
    return [node.record for node in iter_nodes(tree) if node.record.in_menu]


def derive_footer(tree: cabc.Iterable[NavigationNode]) -> list[PageRecord]:
    """Return pages placed in the footer ordered by ``footer_position``.

    Ties keep depth-first tree order.
    """
    placed = [node.record for node in iter_nodes(tree) if node.record.in_footer]
    return sorted(placed, key=lambda record: record.footer_position or 0)


def derive_menu_tree(tree: cabc.Iterable[NavigationNode]) -> Forest:
    """Return the nested menu: hidden pages are dropped with their subtree."""
    return tuple(
        NavigationNode(record=node.record, children=derive_menu_tree(node.children))
        for node in tree
        if node.record.in_menu
    )


__all__ = [
    "Forest",
    "build_tree",
    "derive_footer",
    "derive_menu",
    "derive_menu_tree",
    "iter_nodes",
]
