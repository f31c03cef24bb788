"""Typed dataclasses describing rst-pages site configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("config/site.yaml")


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class CodeConfig:
    """Options for highlighted code blocks."""

    pygments_style: str = "monokai"
    line_numbers: bool = False
    copy_button: bool = True


@dc.dataclass(slots=True)
class SnippetCardConfig:
    """Which parts of an embedded snippet card are rendered."""

    show_metadata: bool = True
    show_footer: bool = True
    collapsible: bool = False


@dc.dataclass(slots=True)
class SiteConfig:
    """Site-wide settings consumed by the builder and the compiler.

    Attributes
    ----------
    title : str
        Site name shown in page titles.
    base_url : str
        Prefix joined onto every site-relative URL in links.
    content_dir : Path
        Directory holding ``articles/``, ``snippets/``, ``books/`` and
        ``projects/``.
    output_dir : Path
        Directory the rendered site is written to.
    jobs : int
        Worker threads used to compile documents.
    strict_directives : bool
        Abort a document on directive errors instead of substituting an
        inline error marker.
    code : CodeConfig
        Code block options.
    cards : SnippetCardConfig
        Embedded snippet card options.
    """

    title: str = "Untitled Site"
    base_url: str = ""
    content_dir: Path = Path("content")
    output_dir: Path = Path("_site")
    jobs: int = 1
    strict_directives: bool = False
    code: CodeConfig = dc.field(default_factory=CodeConfig)
    cards: SnippetCardConfig = dc.field(default_factory=SnippetCardConfig)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CodeConfig",
    "SiteConfig",
    "SiteConfigError",
    "SnippetCardConfig",
]
