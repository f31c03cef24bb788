"""Unit tests for slug and anchor derivation.

The markup converter writes heading ids and every TOC strategy links to them,
so these tests compile real headings and compare the ids in the HTML with the
anchors each outline produces for the same titles.

Usage
-----
Run ``pytest tests/test_slugify.py -v``. No fixtures beyond pytest's
parametrisation are needed.
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from rst_pages.compiler import RstCompiler
from rst_pages.frontmatter import ContentType
from rst_pages.slugify import build_url, heading_anchor, normalize_reference, slugify
from rst_pages.toc import generate_article_toc, scan_headings

TITLES = [
    "C++",
    "Node.js",
    "A->B",
    "Getting Started",
    "What's new?",
    "C# and F#",
    "Using *emphasis* in titles",
    "x != y && y >= z",
]


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("C++", "cpp"),
        ("Node.js", "nodejs"),
        ("A->B", "aarrowb"),
        ("Getting Started", "getting-started"),
        ("What's new?", "what-s-new"),
        ("C++/CLI Interop", "cpp-cli-interop"),
        (".NET on Linux", "dotnet-on-linux"),
        ("Ready -> Set", "ready-arrow-set"),
    ],
)
def test_slugify_known_titles(title: str, expected: str) -> None:
    assert slugify(title) == expected


@pytest.mark.parametrize("title", TITLES)
def test_slugify_is_deterministic(title: str) -> None:
    assert slugify(title) == slugify(title)


def test_heading_anchor_never_empty() -> None:
    assert slugify("???") == ""
    assert heading_anchor("???") == "section"


@pytest.mark.parametrize("title", TITLES)
def test_markup_and_toc_anchors_agree(title: str) -> None:
    """Heading ids in compiled HTML match both outline strategies."""
    source = f"{title}\n{'=' * (len(title) + 2)}\n\nBody text.\n"
    compiler = RstCompiler()

    article = compiler.compile(source, content_type=ContentType.ARTICLE)
    snippet = compiler.compile(source, content_type=ContentType.SNIPPET)

    heading = BeautifulSoup(article.html, "html.parser").find("h2")
    assert heading is not None
    html_id = heading["id"]
    assert article.toc[0].anchor == html_id
    assert snippet.toc[0].anchor == html_id
    assert generate_article_toc(source)[0].anchor == html_id
    assert scan_headings(article.html)[0].anchor == html_id


def test_normalize_reference_folds_underscores() -> None:
    assert normalize_reference("uncertainty_principle") == "uncertainty-principle"
    assert normalize_reference("Uncertainty-Principle") == "uncertainty-principle"


@pytest.mark.parametrize(
    ("base", "path", "expected"),
    [
        ("", "articles/a.html", "/articles/a.html"),
        ("https://example.com", "/articles/a.html", "https://example.com/articles/a.html"),
        ("https://example.com/blog/", "a.html", "https://example.com/blog/a.html"),
    ],
)
def test_build_url_joins_with_single_slash(base: str, path: str, expected: str) -> None:
    assert build_url(base, path) == expected
