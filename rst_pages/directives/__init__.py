"""Directive scanning, the handler registry, and built-in handlers.

Example
-------
>>> from rst_pages.directives import DirectiveExpander, default_registry
>>> from rst_pages.fragments import FragmentStash
>>> stash = FragmentStash()
>>> text = DirectiveExpander(default_registry()).expand(".. snippet-card:: demo", stash)
>>> stash.restore(text)
'<div class="embedded-snippet-card" data-snippet="demo"></div>'
"""

from __future__ import annotations

from .expander import DirectiveExpander, error_marker
from .handlers import (
    CodeBlockHandler,
    CsvTableHandler,
    DiagramHandler,
    IncludeHandler,
    ListTableHandler,
    MathHandler,
    MusicScoreHandler,
    SnippetCardHandler,
    ToctreeHandler,
    default_registry,
)
from .registry import DirectiveHandler, DirectiveRegistry, SourceText
from .scanner import DirectiveInvocation, SourceLine, scan, tokenize

__all__ = [
    "CodeBlockHandler",
    "CsvTableHandler",
    "DiagramHandler",
    "DirectiveExpander",
    "DirectiveHandler",
    "DirectiveInvocation",
    "DirectiveRegistry",
    "IncludeHandler",
    "ListTableHandler",
    "MathHandler",
    "MusicScoreHandler",
    "SnippetCardHandler",
    "SourceLine",
    "SourceText",
    "ToctreeHandler",
    "default_registry",
    "error_marker",
    "scan",
    "tokenize",
]
