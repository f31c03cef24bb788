"""Load and validate the site configuration YAML for rst-pages builds.

This subpackage parses ``config/site.yaml`` into strongly typed dataclasses
(:class:`SiteConfig`, :class:`CodeConfig`, :class:`SnippetCardConfig`) that the
site builder and the compiler consume. The primary entry point is
:func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from rst_pages.config import build_site_config
>>> site = build_site_config({"jobs": 4, "code": {"line_numbers": True}}, base_dir=Path("/srv"))
>>> site.jobs, site.code.line_numbers, site.content_dir
(4, True, PosixPath('/srv/content'))
"""

from .loader import build_site_config, load_site_config
from .models import (
    DEFAULT_CONFIG_PATH,
    CodeConfig,
    SiteConfig,
    SiteConfigError,
    SnippetCardConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CodeConfig",
    "SiteConfig",
    "SiteConfigError",
    "SnippetCardConfig",
    "build_site_config",
    "load_site_config",
]
