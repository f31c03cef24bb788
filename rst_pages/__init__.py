"""Compile an RST dialect into HTML pages for a static site.

This package exposes the ``rst-pages`` CLI alongside the compiler it drives.
Single documents go through :class:`RstCompiler`; whole sites through
:class:`~rst_pages.site.SiteBuilder`, which also resolves snippet cards and
book navigation across documents.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.
- ``RstCompiler``: Per-document compiler.

Examples
--------
>>> from rst_pages import RstCompiler
>>> RstCompiler().compile("Hello *there*.").html
'<p>Hello <em>there</em>.</p>'
"""

from __future__ import annotations

from .cli import app, main
from .compiler import CompileContext, Document, RstCompiler

__all__ = ["CompileContext", "Document", "RstCompiler", "app", "main"]
