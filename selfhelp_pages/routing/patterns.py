r"""Compile legacy bracket-parameter URL templates into typed matchers.

Stored page URLs embed parameters as ``[<type>:<name>]`` where ``<type>`` is
one of ``i`` (integer), ``a`` (alphanumeric), ``s`` (slug) or ``h`` (hex).
A ``?`` directly after a group makes that parameter optional, together with
a ``/`` directly before it. :func:`compile_route` validates the template and
builds an anchored regular expression; :func:`match_route` applies it to a
concrete path and returns the extracted parameters.

Example
-------
>>> from selfhelp_pages.routing.patterns import compile_route, match_route
>>> route = compile_route("/items/[i:id]")
>>> match_route(route, "/items/42").params
{'id': '42'}
>>> match_route(route, "/items/abc").matched
False
"""

from __future__ import annotations

import dataclasses as dc
import enum
import re

from selfhelp_pages._constants import ROUTE_TYPE_PATTERNS

PARAM_NAME_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
DISPLAY_PARAM_PATTERN = re.compile(r"\[[iash]:([^\]]+)\]\??")


class RouteCompileError(ValueError):
    """Raised when a stored URL template cannot be compiled."""


class ParamType(enum.StrEnum):
    """Closed alphabet of parameter types accepted in route templates."""

    INTEGER = "i"
    ALPHA = "a"
    SLUG = "s"
    HEX = "h"

    @property
    def pattern(self) -> str:
        return ROUTE_TYPE_PATTERNS[self.value]

    def accepts(self, value: str) -> bool:
        """Return whether ``value`` is valid for this type beyond its shape."""
        if self is ParamType.INTEGER:
            try:
                int(value, 10)
            except ValueError:
                return False
        return True


@dc.dataclass(frozen=True, slots=True)
class _Param:
    name: str
    type: ParamType
    optional: bool


@dc.dataclass(frozen=True, slots=True)
class CompiledRoute:
    """A validated template ready for matching.

    Attributes
    ----------
    template : str
        The raw template as stored.
    regex : re.Pattern[str]
        Expression matched against the whole request path.
    param_types : dict[str, ParamType]
        Parameter name to declared type, in template order.
    optional_params : frozenset[str]
        Names of parameters that may be absent.
    literal_prefix : str
        Literal text before the first parameter (the whole template when it
        has none).
    literal_length : int
        Total length of literal text in the template.
    """

    template: str
    regex: re.Pattern[str]
    param_types: dict[str, ParamType]
    optional_params: frozenset[str]
    literal_prefix: str
    literal_length: int

    @property
    def is_static(self) -> bool:
        return not self.param_types

    @property
    def specificity(self) -> tuple[int, int, int, str]:
        """Sort key: fewer params, longer literal prefix, more literal text."""
        return (
            len(self.param_types),
            -len(self.literal_prefix),
            -self.literal_length,
            self.template,
        )


@dc.dataclass(frozen=True, slots=True)
class RouteMatch:
    """Outcome of matching one path against one compiled route."""

    matched: bool
    params: dict[str, str] = dc.field(default_factory=dict)

    def __bool__(self) -> bool:
        return self.matched


def compile_route(template: str) -> CompiledRoute:
    """Compile ``template`` into a :class:`CompiledRoute`.

    Parameters
    ----------
    template : str
        Stored URL template, for example ``/records/[i:record_id]``.

    Returns
    -------
    CompiledRoute
        The anchored matcher plus the declared parameter types.

    Raises
    ------
    RouteCompileError
        If brackets are unbalanced or nested, a type letter is unknown, or a
        parameter name is empty, invalid, or repeated.
    """
    if not isinstance(template, str):
        msg = f"Route template must be a string, got {type(template).__name__}."
        raise RouteCompileError(msg)
    pieces = _scan(template)
    regex_parts: list[str] = []
    param_types: dict[str, ParamType] = {}
    optional: set[str] = set()
    prefix_parts: list[str] = []
    literal_length = 0
    for piece in pieces:
        if isinstance(piece, str):
            literal_length += len(piece)
            regex_parts.append(re.escape(piece))
            if not param_types:
                prefix_parts.append(piece)
            continue
        param_types[piece.name] = piece.type
        group = f"(?P<{piece.name}>{piece.type.pattern})"
        if not piece.optional:
            regex_parts.append(group)
            continue
        optional.add(piece.name)
        head = "".join(regex_parts)
        if head.endswith("/") and len(head) > 1:
            regex_parts[-1] = regex_parts[-1][:-1]
            regex_parts.append(f"(?:/{group})?")
        else:
            regex_parts.append(f"{group}?")
    return CompiledRoute(
        template=template,
        regex=re.compile("".join(regex_parts)),
        param_types=param_types,
        optional_params=frozenset(optional),
        literal_prefix="".join(prefix_parts),
        literal_length=literal_length,
    )


def match_route(route: CompiledRoute, path: str) -> RouteMatch:
    """Match ``path`` against ``route`` from start to end.

    Never raises: a non-matching path, a value that fails its declared type,
    or a non-string path all produce ``RouteMatch(matched=False)`` with no
    params.
    """
    if not isinstance(path, str):
        return RouteMatch(matched=False)
    found = route.regex.fullmatch(path)
    if found is None:
        return RouteMatch(matched=False)
    params: dict[str, str] = {}
    for name, param_type in route.param_types.items():
        value = found.group(name)
        if value is None:
            continue
        if not param_type.accepts(value):
            return RouteMatch(matched=False)
        params[name] = value
    return RouteMatch(matched=True, params=params)


def display_path(template: str | None) -> str:
    """Convert ``[i:record_id]`` groups to ``[record_id]``; empty -> ``/``."""
    if not template:
        return "/"
    return DISPLAY_PARAM_PATTERN.sub(r"[\1]", template)


def _scan(template: str) -> list[str | _Param]:
    """Split ``template`` into literal strings and parameter groups."""
    pieces: list[str | _Param] = []
    seen: set[str] = set()
    literal: list[str] = []
    index = 0
    while index < len(template):
        char = template[index]
        if char == "]":
            msg = f"Unbalanced ']' at position {index} in route template {template!r}."
            raise RouteCompileError(msg)
        if char != "[":
            literal.append(char)
            index += 1
            continue
        close = template.find("]", index + 1)
        nested = template.find("[", index + 1)
        if close == -1:
            msg = f"Unbalanced '[' at position {index} in route template {template!r}."
            raise RouteCompileError(msg)
        if nested != -1 and nested < close:
            msg = f"Nested '[' at position {nested} in route template {template!r}."
            raise RouteCompileError(msg)
        param = _parse_group(template, template[index + 1 : close], seen)
        optional = close + 1 < len(template) and template[close + 1] == "?"
        if literal:
            pieces.append("".join(literal))
            literal = []
        pieces.append(dc.replace(param, optional=optional))
        index = close + (2 if optional else 1)
    if literal:
        pieces.append("".join(literal))
    return pieces


def _parse_group(template: str, body: str, seen: set[str]) -> _Param:
    type_letter, sep, name = body.partition(":")
    if not sep:
        msg = f"Parameter group '[{body}]' in {template!r} must look like '[type:name]'."
        raise RouteCompileError(msg)
    try:
        param_type = ParamType(type_letter)
    except ValueError as exc:
        known = ", ".join(member.value for member in ParamType)
        msg = (
            f"Unknown parameter type {type_letter!r} in {template!r}; "
            f"expected one of: {known}."
        )
        raise RouteCompileError(msg) from exc
    if not PARAM_NAME_PATTERN.fullmatch(name):
        msg = f"Invalid parameter name {name!r} in route template {template!r}."
        raise RouteCompileError(msg)
    if name in seen:
        msg = f"Duplicate parameter name {name!r} in route template {template!r}."
        raise RouteCompileError(msg)
    seen.add(name)
    return _Param(name=name, type=param_type, optional=False)


__all__ = [
    "CompiledRoute",
    "ParamType",
    "RouteCompileError",
    "RouteMatch",
    "compile_route",
    "display_path",
    "match_route",
]
