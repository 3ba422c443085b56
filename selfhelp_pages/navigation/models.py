"""Page records and the navigation nodes derived from them."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from selfhelp_pages._constants import DEFAULT_PROTOCOL


class PageRecordError(ValueError):
    """Raised when a page record payload lacks an id or keyword."""


@dc.dataclass(frozen=True, slots=True)
class PageRecord:
    """One page as listed by the backend.

    Attributes
    ----------
    id : int
        Page identifier.
    keyword : str
        Stable human-readable identifier, independent of the URL template.
    url : str | None
        Raw URL template; may contain ``[type:name]`` parameters.
    parent : int | None
        Id of the parent page, ``None`` for top-level pages.
    nav_position : int | None
        Ordering hint within the menu; ``None`` means not placed in the menu.
    footer_position : int | None
        Ordering hint within the footer; ``None`` means not in the footer.
    is_headless : bool
        Headless pages are routable but never shown in menus.
    protocol : tuple[str, ...]
        HTTP methods the page accepts.
    """

    id: int
    keyword: str
    url: str | None = None
    parent: int | None = None
    nav_position: int | None = None
    footer_position: int | None = None
    is_headless: bool = False
    protocol: tuple[str, ...] = DEFAULT_PROTOCOL

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> PageRecord:
        """Build a record from an API mapping.

        Accepts both ``id``/``parent`` and the backend's ``id_pages`` /
        ``parent_page_id`` spellings.

        Raises
        ------
        PageRecordError
            If the payload has no usable id or keyword.
        """
        raw_id = payload.get("id", payload.get("id_pages"))
        page_id = _optional_int(raw_id)
        keyword = str(payload.get("keyword") or "").strip()
        if page_id is None or not keyword:
            msg = f"Page record needs an integer id and a keyword, got {dict(payload)!r}."
            raise PageRecordError(msg)
        parent = payload.get("parent", payload.get("parent_page_id"))
        url = payload.get("url")
        protocol = payload.get("protocol")
        return cls(
            id=page_id,
            keyword=keyword,
            url=str(url) if url else None,
            parent=_optional_int(parent),
            nav_position=_optional_int(payload.get("nav_position")),
            footer_position=_optional_int(payload.get("footer_position")),
            is_headless=_truthy(payload.get("is_headless")),
            protocol=_parse_protocol(protocol),
        )

    @property
    def in_menu(self) -> bool:
        return self.nav_position is not None and not self.is_headless

    @property
    def in_footer(self) -> bool:
        return self.footer_position is not None and not self.is_headless


@dc.dataclass(frozen=True, slots=True)
class NavigationNode:
    """A page record with its ordered child pages."""

    record: PageRecord
    children: tuple[NavigationNode, ...] = ()

    @property
    def id(self) -> int:
        return self.record.id

    @property
    def keyword(self) -> str:
        return self.record.keyword


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(typ.cast("typ.Any", value))
    except (TypeError, ValueError):
        return None


def _truthy(value: object) -> bool:
    match value:
        case bool():
            return value
        case int():
            return value != 0
        case str() as text:
            return text.strip().lower() in {"1", "true", "yes"}
        case _:
            return False


def _parse_protocol(value: object) -> tuple[str, ...]:
    if not value:
        return DEFAULT_PROTOCOL
    methods = [part.strip().upper() for part in str(value).split("|")]
    return tuple(method for method in methods if method) or DEFAULT_PROTOCOL


__all__ = ["NavigationNode", "PageRecord", "PageRecordError"]
