"""Navigation Tree Builder: page records, menu derivation, and snapshots."""

from .index import NavigationIndex, NavigationStore, PageListSource
from .models import NavigationNode, PageRecord, PageRecordError
from .tree import (
    build_tree,
    derive_footer,
    derive_menu,
    derive_menu_tree,
    iter_nodes,
)

__all__ = [
    "NavigationIndex",
    "NavigationNode",
    "NavigationStore",
    "PageListSource",
    "PageRecord",
    "PageRecordError",
    "build_tree",
    "derive_footer",
    "derive_menu",
    "derive_menu_tree",
    "iter_nodes",
]
