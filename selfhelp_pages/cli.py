"""Cyclopts CLI entrypoint for inspecting navigation and rendering CMS pages.

The ``pages`` console script defined here fetches the page list from the CMS
backend, prints the resulting navigation tree, resolves request paths against
the stored URL templates, and renders a page's content tree to a standalone
HTML file. Settings come from ``config/selfhelp.yaml`` plus ``SELFHELP_*``
environment overrides; every option can also be passed as an ``INPUT_*``
environment variable.

Examples
--------
Print the navigation tree for the default language:

>>> from selfhelp_pages.cli import main
>>> main()  # doctest: +SKIP

Render one page into a custom directory:

>>> from selfhelp_pages.cli import app
>>> app(["render", "home", "--output-dir", "dist"])  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import logging.config
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import Settings, configure, load_settings
from .content import ContentTreeRenderer
from .navigation import NavigationIndex, NavigationNode, NavigationStore
from .resolver import CmsApiClient, PageContentResolver, Resolution

DEFAULT_CONFIG = Path("config/selfhelp.yaml")

app = App(name="pages", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]

ConfigOption = typ.Annotated[
    Path, Parameter(help="Path to settings file", env_var="INPUT_CONFIG")
]
LanguageOption = typ.Annotated[
    str | None, Parameter(help="Language variant", env_var="INPUT_LANGUAGE")
]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:
            return str(path)
    return str(path)


def configure_logging(level: str) -> None:
    """Install a single console handler at ``level``."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "plain"},
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )


def _bootstrap(config: Path) -> Settings:
    """Load settings (defaults when the file is absent) and install them."""
    settings = load_settings(config) if config.exists() else Settings()
    configure(settings)
    configure_logging(settings.log_level)
    return settings


def format_tree(nodes: cabc.Iterable[NavigationNode], depth: int = 0) -> list[str]:
    """Return one indented line per page, marking menu and footer placement."""
    lines: list[str] = []
    for node in nodes:
        record = node.record
        marks = []
        if record.in_menu:
            marks.append(f"nav={record.nav_position}")
        if record.in_footer:
            marks.append(f"footer={record.footer_position}")
        if record.is_headless:
            marks.append("headless")
        suffix = f" [{', '.join(marks)}]" if marks else ""
        lines.append(f"{'  ' * depth}{record.keyword} ({record.url or '-'}){suffix}")
        lines.extend(format_tree(node.children, depth + 1))
    return lines


@app.command(help="Print the navigation tree, menu, and footer.")
def menu(*, config: ConfigOption = DEFAULT_CONFIG, language: LanguageOption = None) -> None:
    """Fetch the page list and print the derived navigation.

    Parameters
    ----------
    config : Path, optional
        Path to the settings file (overridable via ``INPUT_CONFIG``).
    language : str or None, optional
        Language variant of the page list; defaults to the configured one.
    """
    settings = _bootstrap(config)
    client = CmsApiClient(settings)
    try:
        index = asyncio.run(NavigationStore(client).refresh(language))
    finally:
        client.close()
    for line in format_tree(index.tree):
        print(line)
    print("menu: " + ", ".join(record.keyword for record in index.menu))
    print("footer: " + ", ".join(record.keyword for record in index.footer))


@app.command(help="Show which page a request path resolves to.")
def match(
    path: str, *, config: ConfigOption = DEFAULT_CONFIG, language: LanguageOption = None
) -> None:
    """Resolve ``path`` against the stored URL templates.

    Raises
    ------
    SystemExit
        With status 1 when no page template matches ``path``.
    """
    settings = _bootstrap(config)
    client = CmsApiClient(settings)
    try:
        index = asyncio.run(NavigationStore(client).refresh(language))
    finally:
        client.close()
    hit = index.match_path(path)
    if hit is None:
        print(f"no page matches {path}")
        raise SystemExit(1)
    print(f"{hit.target.keyword} ({hit.route.template})")
    for name, value in hit.params.items():
        print(f"  {name} = {value}")


@app.command(help="Render a page's content tree to an HTML file.")
def render(
    keyword: str,
    *,
    config: ConfigOption = DEFAULT_CONFIG,
    language: LanguageOption = None,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
) -> None:
    """Resolve ``keyword`` and write ``<keyword>.html``.

    Parameters
    ----------
    keyword : str
        Page keyword to render.
    config : Path, optional
        Path to the settings file.
    language : str or None, optional
        Language variant; defaults to the configured one.
    output_dir : Path or None, optional
        Output directory; defaults to ``settings.output_dir``.

    Raises
    ------
    SystemExit
        With status 1 when the page cannot be resolved or
        ``keyword`` is not a plain file name.
    """
    if not keyword or keyword in {".", ".."} or any(sep in keyword for sep in "/\\"):
        print(f"cannot render {keyword!r}: keyword must be a plain file name")
        raise SystemExit(1)
    settings = _bootstrap(config)
    client = CmsApiClient(settings)
    try:
        index, resolution = asyncio.run(_resolve(client, settings, keyword, language))
    finally:
        client.close()
    if not resolution.ok:
        print(f"cannot render {keyword}: {resolution.error}")
        raise SystemExit(1)
    renderer = ContentTreeRenderer(settings, language=language)
    html = renderer.render_page(
        resolution.nodes,
        title=keyword,
        menu=index.menu_entries(),
        footer=index.footer_entries(),
    )
    out_dir = output_dir or settings.output_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / f"{keyword}.html"
    output_path.write_text(html, encoding="utf-8")
    print(f"wrote {_format_path(output_path)}")


async def _resolve(
    client: CmsApiClient, settings: Settings, keyword: str, language: str | None
) -> tuple[NavigationIndex, Resolution]:
    store = NavigationStore(client)
    index = await store.refresh(language)
    resolver = PageContentResolver(client, store, settings=settings)
    return index, await resolver.resolve(keyword, language)


def main() -> None:
    """Invoke the Cyclopts application that powers the `pages` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
