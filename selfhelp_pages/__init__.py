"""Dynamic content and navigation resolution for the SelfHelp CMS frontend.

This package turns the CMS page list into a navigation tree, resolves request
paths written in the legacy ``[type:name]`` URL syntax, and renders a page's
recursive content tree to HTML. The ``pages`` console script exposes these
pieces for inspection and static rendering.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from selfhelp_pages import main
>>> main()  # doctest: +SKIP
>>> from selfhelp_pages import app
>>> app.name
('pages',)
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
