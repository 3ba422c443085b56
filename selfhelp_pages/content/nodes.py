r"""Content nodes ("styles"): the recursive tree that composes a page.

Each node carries a ``kind`` discriminator (the stored ``style_name``), its
content fields, and for composite kinds an ordered list of children. The
tree is rebuilt from the content payload on every fetch and treated as
read-only afterwards.

Example
-------
>>> from selfhelp_pages.content.nodes import parse_nodes
>>> nodes = parse_nodes([None, {"id": 3, "style_name": "heading",
...                              "title": {"content": "Welcome"}}])
>>> nodes[0] is None, nodes[1].field("title")
(True, 'Welcome')
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import logging
import typing as typ

from selfhelp_pages._constants import RESPONSE_ENVELOPE_KEY

from .fields import ContentField, is_field_payload, parse_field_variants, pick_variant

logger = logging.getLogger(__name__)

_STRUCTURAL_KEYS = frozenset({"id", "style_name", "kind", "css", "children", "fields"})


class StyleKind(enum.StrEnum):
    """Closed set of content kinds the renderer knows how to draw."""

    CONTAINER = "container"
    JUMBOTRON = "jumbotron"
    CARD = "card"
    DIV = "div"
    ALERT = "alert"
    FORM_USER_INPUT_LOG = "formUserInputLog"
    HEADING = "heading"
    MARKDOWN = "markdown"
    MARKDOWN_INLINE = "markdownInline"
    PLAINTEXT = "plaintext"
    IMAGE = "image"
    LINK = "link"
    BUTTON = "button"
    TEXTAREA = "textarea"

    @property
    def composite(self) -> bool:
        """Return whether nodes of this kind render their children."""
        return self in _COMPOSITE_KINDS

    @classmethod
    def parse(cls, raw: str | None) -> StyleKind | None:
        """Return the matching kind, or ``None`` for unknown or empty values."""
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


_COMPOSITE_KINDS = frozenset(
    {
        StyleKind.CONTAINER,
        StyleKind.JUMBOTRON,
        StyleKind.CARD,
        StyleKind.DIV,
        StyleKind.ALERT,
        StyleKind.FORM_USER_INPUT_LOG,
    }
)


@dc.dataclass(frozen=True, slots=True)
class ContentNode:
    """One renderable section of a page.

    Attributes
    ----------
    id : int
        Section identifier (``0`` when the payload carried none).
    kind : str | None
        Raw discriminator as stored; see :class:`StyleKind` for known values.
    css : str
        Extra CSS classes configured for the section.
    fields : Mapping[str, Mapping[str, ContentField]]
        Field name to language variants (``"all"`` for untranslated fields).
    children : tuple[ContentNode | None, ...]
        Child nodes in stored order; ``None`` marks a deleted-but-positioned
        slot. Only meaningful for composite kinds.
    problem : str | None
        Why the node could not be parsed cleanly, if it could not.
    """

    id: int
    kind: str | None
    css: str = ""
    fields: cabc.Mapping[str, cabc.Mapping[str, ContentField]] = dc.field(
        default_factory=dict
    )
    children: tuple[ContentNode | None, ...] = ()
    problem: str | None = None

    @property
    def style_kind(self) -> StyleKind | None:
        """Return the parsed kind, or ``None`` when unknown."""
        return StyleKind.parse(self.kind)

    def get_field(self, name: str, language: str | None = None) -> ContentField | None:
        """Return the field for ``name`` in ``language``, or ``None``."""
        return pick_variant(self.fields.get(name, {}), language)

    def field(
        self, name: str, default: typ.Any = None, *, language: str | None = None
    ) -> typ.Any:
        """Return the content of ``name`` or ``default`` when the field is absent."""
        found = self.get_field(name, language)
        return default if found is None else found.content

    def text(self, name: str, default: str = "", *, language: str | None = None) -> str:
        """Return the field content as text, or ``default`` when absent."""
        found = self.get_field(name, language)
        return default if found is None else found.as_text()

    def flag(self, name: str, *, language: str | None = None) -> bool:
        """Return ``True`` when a ``"0"``/``"1"`` flag field is set to ``"1"``."""
        return self.text(name, "0", language=language).strip() == "1"

    def number(self, name: str, default: int = 0, *, language: str | None = None) -> int:
        """Return an integer field, falling back to ``default`` when unparseable."""
        value = self.field(name, language=language)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def has_field(self, name: str) -> bool:
        return bool(self.fields.get(name))


def unwrap_envelope(payload: object) -> object:
    """Return ``payload["data"]`` for enveloped responses, else ``payload``."""
    if isinstance(payload, cabc.Mapping) and RESPONSE_ENVELOPE_KEY in payload:
        return typ.cast("cabc.Mapping[str, object]", payload)[RESPONSE_ENVELOPE_KEY]
    return payload


def parse_nodes(payload: object) -> list[ContentNode | None]:
    """Parse a root-level content payload into nodes.

    ``None`` entries are preserved in place. Entries that are not mappings
    become nodes with a ``problem`` so rendering can surface them without
    affecting their siblings.
    """
    payload = unwrap_envelope(payload)
    if isinstance(payload, cabc.Mapping) and "sections" in payload:
        payload = typ.cast("cabc.Mapping[str, object]", payload)["sections"]
    if payload is None:
        return []
    if not isinstance(payload, cabc.Sequence) or isinstance(payload, str | bytes):
        msg = f"Content payload must be a list of nodes, got {type(payload).__name__}."
        raise TypeError(msg)
    return [parse_node(item) for item in payload]


def parse_node(raw: object) -> ContentNode | None:
    """Parse a single node payload; ``None`` stays ``None``."""
    if raw is None:
        return None
    if not isinstance(raw, cabc.Mapping):
        logger.warning("Content node payload is not a mapping: %r", raw)
        return ContentNode(id=0, kind=None, problem="node payload is not a mapping")
    mapping = typ.cast("cabc.Mapping[str, typ.Any]", raw)
    kind = mapping.get("style_name", mapping.get("kind"))
    node_id, id_problem = _parse_id(mapping.get("id"))
    children_raw = mapping.get("children") or []
    children: tuple[ContentNode | None, ...] = ()
    if isinstance(children_raw, cabc.Sequence) and not isinstance(children_raw, str):
        children = tuple(parse_node(child) for child in children_raw)
    return ContentNode(
        id=node_id,
        kind=None if kind is None else str(kind),
        css=_parse_css(mapping.get("css")),
        fields=_collect_fields(mapping),
        children=children,
        problem=id_problem,
    )


def _parse_id(raw: object) -> tuple[int, str | None]:
    value = raw
    if is_field_payload(raw):
        value = typ.cast("cabc.Mapping[str, object]", raw)["content"]
    if value is None:
        return 0, "missing id"
    try:
        return int(typ.cast("typ.Any", value)), None
    except (TypeError, ValueError):
        return 0, f"invalid id {value!r}"


def _parse_css(raw: object) -> str:
    field = ContentField.from_payload(raw) if is_field_payload(raw) else None
    if field is not None:
        return field.as_text().strip()
    if isinstance(raw, str):
        return raw.strip()
    return ""


def _collect_fields(
    mapping: cabc.Mapping[str, typ.Any],
) -> dict[str, dict[str, ContentField]]:
    """Gather direct ``{content: ...}`` properties, then the ``fields`` map.

    Direct properties win over entries of the same name in ``fields``.
    """
    collected: dict[str, dict[str, ContentField]] = {}
    for key, value in mapping.items():
        if key in _STRUCTURAL_KEYS or not is_field_payload(value):
            continue
        variants = parse_field_variants(value)
        if variants:
            collected[key] = variants
    nested = mapping.get("fields")
    if isinstance(nested, cabc.Mapping):
        for key, value in nested.items():
            if key in collected:
                continue
            variants = parse_field_variants(value)
            if variants:
                collected[str(key)] = variants
    return collected


__all__ = [
    "ContentNode",
    "StyleKind",
    "parse_node",
    "parse_nodes",
    "unwrap_envelope",
]
