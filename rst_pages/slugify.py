r"""Derive URL- and id-safe slugs from titles.

A single :func:`slugify` serves the markup converter's heading pass, every TOC
generator, metadata ids, and snippet-card ids, so anchors emitted into HTML
always match the anchors the TOC links to.

The transformation runs in a fixed order:

1. lower-case the text;
2. substitute language idioms (``c++`` -> ``cpp``, ``node.js`` -> ``nodejs``);
3. substitute operator idioms (``->`` -> ``arrow``, ``!=`` -> ``not-equals``);
4. turn spaces and punctuation into hyphens;
5. drop anything that is not alphanumeric or a hyphen;
6. collapse hyphen runs and trim hyphens from both ends.

Examples
--------
>>> slugify("Getting Started with C++")
'getting-started-with-cpp'
>>> slugify("Node.js & You")
'nodejs-you'
>>> slugify("A->B")
'aarrowb'
>>> build_url("/docs/", "articles/intro.html")
'/docs/articles/intro.html'
"""

from __future__ import annotations

import re

LANGUAGE_IDIOMS: tuple[tuple[str, str], ...] = (
    ("c++/cli", "cpp-cli"),
    ("c++", "cpp"),
    ("c#", "csharp"),
    ("f#", "fsharp"),
    (".net", "dotnet"),
    ("node.js", "nodejs"),
    ("react.js", "reactjs"),
    ("vue.js", "vuejs"),
    ("angular.js", "angularjs"),
)

OPERATOR_IDIOMS: tuple[tuple[str, str], ...] = (
    ("++", "plus"),
    ("--", "minus"),
    ("==", "equals"),
    ("!=", "not-equals"),
    ("<=", "less-equal"),
    (">=", "greater-equal"),
    ("->", "arrow"),
    ("=>", "fat-arrow"),
    ("&&", "and"),
    ("||", "or"),
)

SEPARATOR_CHARS = " -_.,;:!?@#$%^&*()=[]{}\\|<>/\"'"
_SEPARATOR_TABLE = str.maketrans(dict.fromkeys(SEPARATOR_CHARS, "-"))
_HYPHEN_RUN = re.compile(r"-{2,}")
FALLBACK_ANCHOR = "section"


def slugify(title: str) -> str:
    """Return the canonical slug for ``title``.

    Parameters
    ----------
    title : str
        Heading, snippet, or document title.

    Returns
    -------
    str
        Lower-case slug of alphanumerics joined by single hyphens. May be empty
        when ``title`` holds no alphanumeric characters.
    """
    result = title.lower()
    for source, target in LANGUAGE_IDIOMS:
        result = result.replace(source, target)
    for source, target in OPERATOR_IDIOMS:
        result = result.replace(source, target)
    result = result.translate(_SEPARATOR_TABLE)
    result = "".join(ch for ch in result if ch.isalnum() or ch == "-")
    result = _HYPHEN_RUN.sub("-", result)
    return result.strip("-")


def heading_anchor(title: str) -> str:
    """Return the ``id`` used for a heading, never empty."""
    return slugify(title) or FALLBACK_ANCHOR


def normalize_reference(reference: str) -> str:
    """Fold a snippet reference so hyphen and underscore spellings agree."""
    return slugify(reference.replace("_", "-"))


def build_url(base_url: str, path: str) -> str:
    """Join ``path`` onto ``base_url`` with exactly one slash between them."""
    clean_path = path.lstrip("/")
    if not base_url:
        return f"/{clean_path}"
    return f"{base_url.rstrip('/')}/{clean_path}"


__all__ = [
    "FALLBACK_ANCHOR",
    "build_url",
    "heading_anchor",
    "normalize_reference",
    "slugify",
]
