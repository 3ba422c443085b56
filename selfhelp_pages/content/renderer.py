"""Render content trees into HTML, one kind-specific template per node.

:class:`ContentTreeRenderer` walks a root list of :class:`ContentNode`
values in stored order, dispatches each to the renderer registered for its
:class:`StyleKind`, and recurses into children for composite kinds only.
Unknown kinds and malformed nodes fall back to a visible placeholder so gaps
in the content are discoverable instead of silently dropped.

Example
-------
>>> from selfhelp_pages.config import Settings
>>> from selfhelp_pages.content import ContentTreeRenderer, parse_nodes
>>> renderer = ContentTreeRenderer(Settings())
>>> nodes = parse_nodes([{"id": 1, "style_name": "heading",
...                       "title": {"content": "Hi"}}])
>>> renderer.render_html(nodes)  # doctest: +ELLIPSIS
'<h1 class="section-1...">Hi</h1>'
"""

from __future__ import annotations

import collections.abc as cabc
import logging
import typing as typ
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from selfhelp_pages._constants import SECTION_CLASS_TEMPLATE, UNKNOWN_STYLE_CLASS
from selfhelp_pages.config import Settings, get_settings

from .markdown import MarkdownRenderer
from .nodes import ContentNode, StyleKind

logger = logging.getLogger(__name__)

ALERT_TYPES = frozenset({"primary", "secondary", "success", "danger", "warning", "info"})


class MalformedNodeError(ValueError):
    """Raised by a kind renderer when a node lacks a required field."""


RenderFunc = cabc.Callable[["ContentTreeRenderer", ContentNode, Markup], Markup]


class ContentTreeRenderer:
    """Render content nodes with the templates under ``templates/styles``."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        templates_dir: Path | None = None,
        language: str | None = None,
    ) -> None:
        """Initialize the renderer with settings and template location.

        Parameters
        ----------
        settings : Settings, optional
            Runtime settings; defaults to the process-wide record.
        templates_dir : Path, optional
            Directory containing Jinja templates; defaults to the package
            templates.
        language : str, optional
            Language variant used when reading translated fields; defaults to
            ``settings.language``.
        """
        self.settings = settings or get_settings()
        self.language = language if language is not None else self.settings.language
        default_templates = Path(__file__).resolve().parents[1] / "templates"
        self.templates_dir = templates_dir or default_templates
        self.markdown = MarkdownRenderer(self.settings.pygments_style)
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._registry: dict[StyleKind, RenderFunc] = dict(DEFAULT_RENDERERS)

    @property
    def registered_kinds(self) -> frozenset[StyleKind]:
        return frozenset(self._registry)

    def register(self, kind: StyleKind, func: RenderFunc) -> None:
        """Replace the renderer used for ``kind``."""
        self._registry[kind] = func

    def render(self, nodes: cabc.Iterable[ContentNode | None]) -> list[Markup]:
        """Render each non-null root node, preserving stored order.

        Returns
        -------
        list[Markup]
            One HTML fragment per non-null node. ``None`` slots produce no
            output and nodes are never reordered or de-duplicated.
        """
        return [self.render_node(node) for node in nodes if node is not None]

    def render_html(self, nodes: cabc.Iterable[ContentNode | None]) -> str:
        """Render ``nodes`` and join the fragments with newlines."""
        return "\n".join(self.render(nodes))

    def render_node(self, node: ContentNode) -> Markup:
        """Dispatch a single node to its kind renderer or the fallback."""
        if node.problem:
            logger.warning("Rendering fallback for malformed node: %s", node.problem)
            return self.render_fallback(node, node.problem)
        kind = node.style_kind
        if kind is None:
            logger.warning("Unknown content kind %r on node %s", node.kind, node.id)
            return self.render_fallback(node, "unsupported content kind")
        children = self.render_children(node) if kind.composite else Markup("")
        try:
            return self._registry[kind](self, node, children)
        except MalformedNodeError as exc:
            logger.warning("Malformed %s node %s: %s", kind.value, node.id, exc)
            return self.render_fallback(node, str(exc))

    def render_children(self, node: ContentNode) -> Markup:
        """Render a composite node's children; empty children render as ``""``."""
        return Markup("\n").join(self.render(node.children))

    def render_fallback(self, node: ContentNode, reason: str) -> Markup:
        """Render the visible placeholder for a node that cannot be drawn."""
        return self.render_template(
            "styles/unknown.jinja",
            node=node,
            css_class=section_class(node, UNKNOWN_STYLE_CLASS),
            kind_label=node.kind or "<missing>",
            reason=reason,
            child_count=sum(1 for child in node.children if child is not None),
        )

    def render_template(self, name: str, **context: typ.Any) -> Markup:
        """Render a template by name into markup."""
        return Markup(self.env.get_template(name).render(**context).strip())

    def render_page(
        self,
        nodes: cabc.Iterable[ContentNode | None],
        *,
        title: str,
        menu: cabc.Sequence[cabc.Mapping[str, str]] = (),
        footer: cabc.Sequence[cabc.Mapping[str, str]] = (),
    ) -> str:
        """Render a full HTML document around the page's sections.

        Parameters
        ----------
        nodes : Iterable[ContentNode | None]
            Root content nodes of the page.
        title : str
            Page title shown in the ``<title>`` element.
        menu, footer : Sequence[Mapping[str, str]]
            Navigation entries with ``label`` and ``href`` keys.
        """
        template = self.env.get_template("page.jinja")
        return template.render(
            title=title,
            site_name=self.settings.site_name,
            sections=self.render(nodes),
            menu=menu,
            footer=footer,
            pygments_css=self.markdown.stylesheet,
            language=self.language,
        )

    def text(self, node: ContentNode, name: str, default: str = "") -> str:
        return node.text(name, default, language=self.language)

    def flag(self, node: ContentNode, name: str) -> bool:
        return node.flag(name, language=self.language)

    def number(self, node: ContentNode, name: str, default: int = 0) -> int:
        return node.number(name, default, language=self.language)

    def require(self, node: ContentNode, name: str) -> str:
        """Return a non-blank text field or raise :class:`MalformedNodeError`."""
        value = self.text(node, name).strip()
        if not value:
            msg = f"missing required field '{name}'"
            raise MalformedNodeError(msg)
        return value


def section_class(node: ContentNode, *extra: str) -> str:
    """Return ``section-<id>`` followed by any extra and configured classes."""
    parts = [*extra, SECTION_CLASS_TEMPLATE.format(id=node.id), node.css]
    return " ".join(part for part in parts if part)


def _template(kind: StyleKind) -> str:
    return f"styles/{kind.value}.jinja"


def _render_container(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.CONTAINER),
        css_class=section_class(node),
        is_fluid=r.flag(node, "is_fluid"),
        children=children,
    )


def _render_jumbotron(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.JUMBOTRON), css_class=section_class(node), children=children
    )


def _render_card(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.CARD),
        css_class=section_class(node),
        title=r.text(node, "title"),
        children=children,
    )


def _render_div(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    declarations = [
        f"{prop}: {value}"
        for prop, field in (
            ("background-color", "color_background"),
            ("border-color", "color_border"),
            ("color", "color_text"),
        )
        if (value := r.text(node, field).strip())
    ]
    return r.render_template(
        _template(StyleKind.DIV),
        css_class=section_class(node),
        inline_style="; ".join(declarations),
        children=children,
    )


def _render_alert(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    alert_type = r.text(node, "type", "info").strip() or "info"
    if alert_type not in ALERT_TYPES:
        alert_type = "info"
    return r.render_template(
        _template(StyleKind.ALERT),
        css_class=section_class(node),
        alert_type=alert_type,
        dismissable=r.flag(node, "is_dismissable"),
        children=children,
    )


def _render_form_log(r: ContentTreeRenderer, node: ContentNode, children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.FORM_USER_INPUT_LOG),
        css_class=section_class(node),
        name=r.text(node, "name", f"form-{node.id}"),
        submit_label=r.text(node, "label", "Submit"),
        alert_success=r.text(node, "alert_success"),
        is_log=r.flag(node, "is_log"),
        children=children,
    )


def _render_heading(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    title = r.require(node, "title")
    level = min(max(r.number(node, "level", 1), 1), 6)
    return r.render_template(
        _template(StyleKind.HEADING),
        css_class=section_class(node),
        level=level,
        title=title,
    )


def _render_markdown(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.MARKDOWN),
        css_class=section_class(node),
        html=Markup(r.markdown.block(r.text(node, "text_md"))),
    )


def _render_markdown_inline(
    r: ContentTreeRenderer, node: ContentNode, _children: Markup
) -> Markup:
    return r.render_template(
        _template(StyleKind.MARKDOWN_INLINE),
        css_class=section_class(node),
        html=Markup(r.markdown.inline(r.text(node, "text_md"))),
    )


def _render_plaintext(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.PLAINTEXT),
        css_class=section_class(node),
        text=r.text(node, "text"),
        is_paragraph=r.flag(node, "is_paragraph"),
    )


def _render_image(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.IMAGE),
        css_class=section_class(node),
        src=r.require(node, "img_src"),
        alt=r.text(node, "alt"),
        title=r.text(node, "title"),
    )


def _render_link(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    url = r.require(node, "url")
    return r.render_template(
        _template(StyleKind.LINK),
        css_class=section_class(node),
        url=url,
        label=r.text(node, "label").strip() or url,
        new_tab=r.flag(node, "open_in_new_tab"),
    )


def _render_button(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.BUTTON),
        css_class=section_class(node),
        label=r.require(node, "label"),
        url=r.text(node, "url").strip(),
        variant=r.text(node, "type", "primary").strip() or "primary",
    )


def _render_textarea(r: ContentTreeRenderer, node: ContentNode, _children: Markup) -> Markup:
    return r.render_template(
        _template(StyleKind.TEXTAREA),
        css_class=section_class(node),
        name=r.text(node, "name", f"field-{node.id}"),
        label=r.text(node, "label"),
        placeholder=r.text(node, "placeholder"),
        value=r.text(node, "value"),
        required=r.flag(node, "is_required"),
    )


DEFAULT_RENDERERS: dict[StyleKind, RenderFunc] = {
    StyleKind.CONTAINER: _render_container,
    StyleKind.JUMBOTRON: _render_jumbotron,
    StyleKind.CARD: _render_card,
    StyleKind.DIV: _render_div,
    StyleKind.ALERT: _render_alert,
    StyleKind.FORM_USER_INPUT_LOG: _render_form_log,
    StyleKind.HEADING: _render_heading,
    StyleKind.MARKDOWN: _render_markdown,
    StyleKind.MARKDOWN_INLINE: _render_markdown_inline,
    StyleKind.PLAINTEXT: _render_plaintext,
    StyleKind.IMAGE: _render_image,
    StyleKind.LINK: _render_link,
    StyleKind.BUTTON: _render_button,
    StyleKind.TEXTAREA: _render_textarea,
}


__all__ = [
    "DEFAULT_RENDERERS",
    "ContentTreeRenderer",
    "MalformedNodeError",
    "section_class",
]
