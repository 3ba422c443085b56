"""Deterministic lookup of a request path across many compiled routes."""

from __future__ import annotations

import bisect
import collections.abc as cabc
import dataclasses as dc
import typing as typ

from .patterns import CompiledRoute, RouteMatch, compile_route, match_route

T = typ.TypeVar("T")


@dc.dataclass(frozen=True)
class RouteHit(typ.Generic[T]):
    """The winning route for a path together with its extracted params."""

    target: T
    route: CompiledRoute
    params: dict[str, str]


@dc.dataclass(frozen=True)
class _Entry(typ.Generic[T]):
    route: CompiledRoute
    target: T
    order: int


def _precedence(entry: _Entry[typ.Any]) -> tuple[typ.Any, int]:
    return (entry.route.specificity, entry.order)


class RouteTable(typ.Generic[T]):
    """Ordered collection of routes; the most specific matching route wins.

    Routes are tried by :attr:`CompiledRoute.specificity` (fewer parameters,
    then longer literal prefix, then more literal text, then template text)
    and finally by insertion order, so two templates matching the same path
    always resolve the same way.
    """

    def __init__(self, routes: cabc.Iterable[tuple[str, T]] = ()) -> None:
        self._entries: list[_Entry[T]] = []
        for template, target in routes:
            self.add(template, target)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, template: str, target: T) -> CompiledRoute:
        """Compile ``template`` and register it for ``target``.

        Raises
        ------
        RouteCompileError
            Propagated from :func:`compile_route` for malformed templates.
        """
        route = compile_route(template)
        entry = _Entry(route=route, target=target, order=len(self._entries))
        bisect.insort(self._entries, entry, key=_precedence)
        return route

    def match(self, path: str) -> RouteHit[T] | None:
        """Return the most specific route matching ``path``, or ``None``."""
        for entry in self._entries:
            result: RouteMatch = match_route(entry.route, path)
            if result.matched:
                return RouteHit(target=entry.target, route=entry.route, params=result.params)
        return None

    def candidates(self, path: str) -> list[RouteHit[T]]:
        """Return every matching route in the order :meth:`match` considers them."""
        hits: list[RouteHit[T]] = []
        for entry in self._entries:
            result = match_route(entry.route, path)
            if result.matched:
                hits.append(
                    RouteHit(target=entry.target, route=entry.route, params=result.params)
                )
        return hits


__all__ = ["RouteHit", "RouteTable"]
