"""Immutable navigation snapshots and the store that swaps them."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import types
import typing as typ

from selfhelp_pages.routing import RouteHit, RouteTable, display_path

from .models import NavigationNode, PageRecord
from .tree import Forest, build_tree, derive_footer, derive_menu, iter_nodes

logger = logging.getLogger(__name__)


@dc.dataclass(frozen=True, slots=True)
class NavigationIndex:
    """Everything derived from one fetch of the page list.

    Instances are never mutated; a refresh builds a new index and replaces
    the reference held by :class:`NavigationStore`, so readers always see a
    complete snapshot.

    Attributes
    ----------
    tree : tuple[NavigationNode, ...]
        Ordered navigation forest.
    by_id : Mapping[int, PageRecord]
        Records keyed by page id.
    by_keyword : Mapping[str, PageRecord]
        Records keyed by keyword (first in tree order wins on duplicates).
    parent_of : Mapping[int, int | None]
        Effective parent id of every page after integrity repairs, used for
        breadcrumb walks without back-references in the tree.
    routes : RouteTable[PageRecord]
        Compiled URL templates of every routable page.
    menu : tuple[PageRecord, ...]
        Pages shown in the menu, in tree order.
    footer : tuple[PageRecord, ...]
        Pages shown in the footer, by footer position.
    """

    tree: Forest
    by_id: cabc.Mapping[int, PageRecord]
    by_keyword: cabc.Mapping[str, PageRecord]
    parent_of: cabc.Mapping[int, int | None]
    routes: RouteTable[PageRecord]
    menu: tuple[PageRecord, ...]
    footer: tuple[PageRecord, ...]

    @classmethod
    def build(cls, records: cabc.Iterable[PageRecord]) -> NavigationIndex:
        """Build a snapshot from page records.

        Raises
        ------
        RouteCompileError
            If a stored URL template is malformed.
        """
        tree = build_tree(records)
        by_id: dict[int, PageRecord] = {}
        by_keyword: dict[str, PageRecord] = {}
        parent_of: dict[int, int | None] = {}
        routes: RouteTable[PageRecord] = RouteTable()

        def walk(nodes: cabc.Iterable[NavigationNode], parent: int | None) -> None:
            for node in nodes:
                record = node.record
                by_id[record.id] = record
                parent_of[record.id] = parent
                if record.keyword in by_keyword:
                    logger.warning("Keyword %r is used by more than one page", record.keyword)
                else:
                    by_keyword[record.keyword] = record
                if record.url:
                    routes.add(record.url, record)
                walk(node.children, record.id)

        walk(tree, None)
        return cls(
            tree=tree,
            by_id=types.MappingProxyType(by_id),
            by_keyword=types.MappingProxyType(by_keyword),
            parent_of=types.MappingProxyType(parent_of),
            routes=routes,
            menu=tuple(derive_menu(tree)),
            footer=tuple(derive_footer(tree)),
        )

    @classmethod
    def empty(cls) -> NavigationIndex:
        return cls.build(())

    def __len__(self) -> int:
        return len(self.by_id)

    def lookup(self, keyword: str) -> PageRecord | None:
        """Return the page for ``keyword``, or ``None``."""
        return self.by_keyword.get(keyword)

    def match_path(self, path: str) -> RouteHit[PageRecord] | None:
        """Return the most specific page whose URL template matches ``path``."""
        return self.routes.match(path)

    def breadcrumbs(self, keyword: str) -> list[PageRecord]:
        """Return the pages from the root down to ``keyword`` (empty if unknown)."""
        record = self.lookup(keyword)
        trail: list[PageRecord] = []
        while record is not None:
            trail.append(record)
            parent = self.parent_of.get(record.id)
            record = None if parent is None else self.by_id.get(parent)
        trail.reverse()
        return trail

    def menu_entries(self) -> list[dict[str, str]]:
        """Return ``label``/``href`` pairs for the menu."""
        return [_entry(record) for record in self.menu]

    def footer_entries(self) -> list[dict[str, str]]:
        """Return ``label``/``href`` pairs for the footer."""
        return [_entry(record) for record in self.footer]

    def walk(self) -> cabc.Iterator[NavigationNode]:
        return iter_nodes(self.tree)


def _entry(record: PageRecord) -> dict[str, str]:
    return {"label": record.keyword, "href": display_path(record.url)}


class PageListSource(typ.Protocol):
    """Anything that can fetch the flat page list for a language."""

    async def fetch_pages(self, language: str | None = None) -> list[PageRecord]: ...


class NavigationStore:
    """Hold the current :class:`NavigationIndex` and rebuild it wholesale."""

    def __init__(
        self, source: PageListSource | None = None, *, index: NavigationIndex | None = None
    ) -> None:
        self._source = source
        self._index = index if index is not None else NavigationIndex.empty()
        self.language: str | None = None

    @property
    def current(self) -> NavigationIndex:
        """Return the latest complete snapshot."""
        return self._index

    def replace(self, records: cabc.Iterable[PageRecord]) -> NavigationIndex:
        """Build a new snapshot from ``records`` and swap it in."""
        index = NavigationIndex.build(records)
        self._index = index
        return index

    async def refresh(self, language: str | None = None) -> NavigationIndex:
        """Fetch the page list for ``language`` and swap in a fresh snapshot.

        The previous snapshot stays visible until the new one is complete; if
        the fetch fails the exception propagates and nothing is replaced.
        """
        if self._source is None:
            msg = "NavigationStore has no page source to refresh from."
            raise RuntimeError(msg)
        records = await self._source.fetch_pages(language)
        index = self.replace(records)
        self.language = language
        logger.debug("Navigation rebuilt with %d pages", len(index))
        return index


__all__ = ["NavigationIndex", "NavigationStore", "PageListSource"]
