"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ

from ruamel.yaml import YAML

from .helpers import (
    _as_bool,
    _as_positive_int,
    _build_card_config,
    _build_code_config,
    _optional_str,
    _resolve_dir,
    _section,
)
from .models import SiteConfig

if typ.TYPE_CHECKING:
    from pathlib import Path


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML file describing a site build.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/site.yaml``).

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied. Relative ``content_dir``
        and ``output_dir`` values are resolved against ``path``'s directory.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If a value has the wrong type or is out of range (for example,
        ``jobs: 0``).
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from rst_pages.config import load_site_config
    >>> config = load_site_config(Path("config/site.yaml"))  # doctest: +SKIP
    >>> config.code.pygments_style  # doctest: +SKIP
    'monokai'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    return build_site_config(loaded, base_dir=path.parent)


def build_site_config(
    raw: typ.Mapping[str, typ.Any], *, base_dir: Path
) -> SiteConfig:
    """Build a :class:`SiteConfig` from an already parsed mapping."""
    defaults = SiteConfig()
    return SiteConfig(
        title=_optional_str(raw.get("title")) or defaults.title,
        base_url=_optional_str(raw.get("base_url")) or defaults.base_url,
        content_dir=_resolve_dir(base_dir, raw.get("content_dir"), defaults.content_dir),
        output_dir=_resolve_dir(base_dir, raw.get("output_dir"), defaults.output_dir),
        jobs=_as_positive_int(raw.get("jobs", defaults.jobs), "jobs"),
        strict_directives=_as_bool(
            raw.get("strict_directives", defaults.strict_directives), "strict_directives"
        ),
        code=_build_code_config(_section(raw, "code")),
        cards=_build_card_config(_section(raw, "cards")),
    )


__all__ = ["build_site_config", "load_site_config"]
