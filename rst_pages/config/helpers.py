"""Value coercion helpers shared by the configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import CodeConfig, SiteConfigError, SnippetCardConfig

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0"})


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: object, key: str) -> bool:
    """Interpret YAML booleans and their common string spellings."""
    match value:
        case bool():
            return value
        case str() as text if text.strip().lower() in _TRUE_STRINGS:
            return True
        case str() as text if text.strip().lower() in _FALSE_STRINGS:
            return False
        case _:
            msg = f"'{key}' must be a boolean, got {value!r}."
            raise SiteConfigError(msg)


def _as_positive_int(value: object, key: str) -> int:
    """Return ``value`` as an int of at least 1."""
    if isinstance(value, bool):
        msg = f"'{key}' must be an integer, got {value!r}."
        raise SiteConfigError(msg)
    try:
        number = int(str(value).strip())
    except ValueError as exc:
        msg = f"'{key}' must be an integer, got {value!r}."
        raise SiteConfigError(msg) from exc
    if number < 1:
        msg = f"'{key}' must be at least 1, got {number}."
        raise SiteConfigError(msg)
    return number


def _resolve_dir(base: Path, value: object | None, default: Path) -> Path:
    """Resolve a configured directory against the config file's directory."""
    text = _optional_str(value)
    path = Path(text) if text else default
    return path if path.is_absolute() else base / path


def _section(raw: typ.Mapping[str, typ.Any], key: str) -> typ.Mapping[str, typ.Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        msg = f"'{key}' must be a mapping."
        raise SiteConfigError(msg)
    return value


def _build_code_config(payload: typ.Mapping[str, typ.Any]) -> CodeConfig:
    """Build a CodeConfig instance from the provided mapping payload."""
    base = CodeConfig()
    return CodeConfig(
        pygments_style=_optional_str(payload.get("pygments_style")) or base.pygments_style,
        line_numbers=_as_bool(payload.get("line_numbers", base.line_numbers), "code.line_numbers"),
        copy_button=_as_bool(payload.get("copy_button", base.copy_button), "code.copy_button"),
    )


def _build_card_config(payload: typ.Mapping[str, typ.Any]) -> SnippetCardConfig:
    """Build a SnippetCardConfig instance from the provided mapping payload."""
    base = SnippetCardConfig()
    return SnippetCardConfig(
        show_metadata=_as_bool(
            payload.get("show_metadata", base.show_metadata), "cards.show_metadata"
        ),
        show_footer=_as_bool(payload.get("show_footer", base.show_footer), "cards.show_footer"),
        collapsible=_as_bool(payload.get("collapsible", base.collapsible), "cards.collapsible"),
    )


__all__ = [
    "_as_bool",
    "_as_positive_int",
    "_build_card_config",
    "_build_code_config",
    "_optional_str",
    "_resolve_dir",
    "_section",
]
