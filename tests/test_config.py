"""Unit tests for site configuration loading.

Usage
-----
Run ``pytest tests/test_config.py -v``. Each test writes its own
``site.yaml`` into pytest's ``tmp_path``.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest

from rst_pages.config import SiteConfigError, build_site_config, load_site_config

if typ.TYPE_CHECKING:
    import collections.abc as cabc


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "config" / "site.yaml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_load_resolves_directories_against_config(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        "title: Notes\n"
        "base_url: https://notes.example\n"
        "content_dir: ../content\n"
        "output_dir: /srv/site\n"
        "jobs: 3\n"
        "code:\n"
        "  pygments_style: friendly\n"
        "  line_numbers: yes\n"
        "cards:\n"
        "  collapsible: true\n",
    )

    config = load_site_config(path)

    assert config.title == "Notes"
    assert config.base_url == "https://notes.example"
    assert config.content_dir == path.parent / "../content"
    assert config.output_dir == Path("/srv/site")
    assert config.jobs == 3
    assert config.code.pygments_style == "friendly"
    assert config.code.line_numbers is True
    assert config.code.copy_button is True
    assert config.cards.collapsible is True
    assert config.cards.show_footer is True


def test_empty_file_uses_defaults(tmp_path: Path) -> None:
    config = load_site_config(_write_config(tmp_path, ""))
    assert config.title == "Untitled Site"
    assert config.content_dir == tmp_path / "config" / "content"
    assert config.jobs == 1
    assert config.strict_directives is False


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="not found"):
        load_site_config(tmp_path / "absent.yaml")


def test_non_mapping_top_level_raises(tmp_path: Path) -> None:
    with pytest.raises(TypeError, match="mapping"):
        load_site_config(_write_config(tmp_path, "- one\n- two\n"))


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ({"jobs": 0}, "at least 1"),
        ({"jobs": "many"}, "must be an integer"),
        ({"jobs": True}, "must be an integer"),
        ({"strict_directives": "maybe"}, "must be a boolean"),
        ({"code": ["monokai"]}, "'code' must be a mapping"),
        ({"cards": {"show_footer": 2}}, "cards.show_footer"),
    ],
    ids=["jobs-zero", "jobs-text", "jobs-bool", "strict-text", "code-list", "card-int"],
)
def test_invalid_values_raise(raw: cabc.Mapping[str, typ.Any], message: str) -> None:
    with pytest.raises(SiteConfigError, match=message):
        build_site_config(raw, base_dir=Path("/srv"))


@pytest.mark.parametrize(
    ("spelling", "expected"),
    [("true", True), ("On", True), ("1", True), ("no", False), ("OFF", False)],
)
def test_boolean_spellings(spelling: str, expected: bool) -> None:
    config = build_site_config({"strict_directives": spelling}, base_dir=Path("/srv"))
    assert config.strict_directives is expected
