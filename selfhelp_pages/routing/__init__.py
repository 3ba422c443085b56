"""Route Pattern Compiler for legacy ``[type:name]`` URL templates."""

from .patterns import (
    CompiledRoute,
    ParamType,
    RouteCompileError,
    RouteMatch,
    compile_route,
    display_path,
    match_route,
)
from .table import RouteHit, RouteTable

__all__ = [
    "CompiledRoute",
    "ParamType",
    "RouteCompileError",
    "RouteHit",
    "RouteMatch",
    "RouteTable",
    "compile_route",
    "display_path",
    "match_route",
]
