"""Content fields, content nodes, and the content tree renderer."""

from .fields import ContentField
from .markdown import MarkdownRenderer
from .nodes import ContentNode, StyleKind, parse_node, parse_nodes
from .renderer import ContentTreeRenderer, MalformedNodeError, section_class

__all__ = [
    "ContentField",
    "ContentNode",
    "ContentTreeRenderer",
    "MalformedNodeError",
    "MarkdownRenderer",
    "StyleKind",
    "parse_node",
    "parse_nodes",
    "section_class",
]
