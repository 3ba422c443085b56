"""Content fields: the named, typed values attached to a content node."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from selfhelp_pages._constants import ALL_LANGUAGES_KEY


@dc.dataclass(frozen=True, slots=True)
class ContentField:
    """A single stored value bound to a node.

    Attributes
    ----------
    content : Any
        The stored value. Empty strings, ``0`` and ``False`` are valid
        content; a missing field is represented by the key being absent from
        the node rather than by ``None`` here.
    meta : str | None
        Optional editor metadata (for example the field's display hint).
    type : str | None
        Optional field type name reported by the backend.
    """

    content: typ.Any
    meta: str | None = None
    type: str | None = None

    @classmethod
    def from_payload(cls, raw: object) -> ContentField | None:
        """Build a field from a ``{content, meta, type}`` mapping or a scalar.

        Returns ``None`` when the payload carries no content, so callers can
        treat it the same as an absent key.
        """
        if raw is None:
            return None
        if isinstance(raw, cabc.Mapping):
            mapping = typ.cast("cabc.Mapping[str, typ.Any]", raw)
            if mapping.get("content") is None:
                return None
            meta = mapping.get("meta")
            field_type = mapping.get("type")
            return cls(
                content=mapping["content"],
                meta=None if meta is None else str(meta),
                type=None if field_type is None else str(field_type),
            )
        return cls(content=raw)

    def as_text(self) -> str:
        """Return the content as a string (booleans as ``"0"``/``"1"``)."""
        if isinstance(self.content, bool):
            return "1" if self.content else "0"
        return str(self.content)


FieldVariants = cabc.Mapping[str, ContentField]


def is_field_payload(raw: object) -> bool:
    """Return whether ``raw`` looks like a single ``{content: ...}`` field."""
    return isinstance(raw, cabc.Mapping) and "content" in raw


def parse_field_variants(raw: object) -> dict[str, ContentField]:
    """Normalise a field payload into a ``{language: ContentField}`` mapping.

    A plain field becomes ``{"all": field}``. A per-language mapping such as
    ``{"all": {...}, "de-CH": {...}}`` keeps each variant that has content.
    """
    if is_field_payload(raw):
        field = ContentField.from_payload(raw)
        return {} if field is None else {ALL_LANGUAGES_KEY: field}
    variants: dict[str, ContentField] = {}
    if isinstance(raw, cabc.Mapping):
        for language, payload in typ.cast("cabc.Mapping[str, object]", raw).items():
            field = ContentField.from_payload(payload)
            if field is not None:
                variants[str(language)] = field
    return variants


def pick_variant(variants: FieldVariants, language: str | None) -> ContentField | None:
    """Choose ``all`` first, then the requested language, then any variant."""
    if not variants:
        return None
    if ALL_LANGUAGES_KEY in variants:
        return variants[ALL_LANGUAGES_KEY]
    if language is not None and language in variants:
        return variants[language]
    return next(iter(variants.values()))


__all__ = [
    "ContentField",
    "FieldVariants",
    "is_field_payload",
    "parse_field_variants",
    "pick_variant",
]
