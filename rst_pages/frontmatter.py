r"""Split the leading metadata block from RST sources and build metadata.

Sources may begin with a YAML block fenced by ``---`` lines. The block is
parsed with ``ruamel.yaml`` and turned into a :class:`ContentMetadata` that
the compiler, resolver, templates, and manifest all share.

Example
-------
>>> meta, body = split_frontmatter("---\ntitle: Hello\n---\nBody\n")
>>> meta["title"], body
('Hello', 'Body\n')
>>> build_metadata(meta).url
'articles/hello.html'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import enum
import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import BOOK_INDEX_STEM, BOOKS_DIRNAME, DEFAULT_TITLE
from .errors import FrontmatterError
from .slugify import slugify

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

FRONTMATTER_FENCE = "---"
KNOWN_KEYS = frozenset(
    {"id", "title", "type", "date", "tags", "author", "excerpt", "description"}
)


class ContentType(enum.StrEnum):
    """Kinds of documents a site is built from."""

    ARTICLE = "article"
    BOOK = "book"
    SNIPPET = "snippet"
    PROJECT = "project"

    @classmethod
    def parse(cls, value: object) -> ContentType:
        """Return the content type named by ``value``, defaulting to article."""
        text = str(value).strip().lower() if value is not None else ""
        if not text:
            return cls.ARTICLE
        try:
            return cls(text)
        except ValueError:
            logger.warning("Unknown content type %r; treating it as an article", text)
            return cls.ARTICLE


@dc.dataclass(slots=True)
class ContentMetadata:
    """Metadata exposed to templates, the resolver, and the manifest.

    Attributes
    ----------
    id : str
        Stable identifier; snippet references resolve against it.
    title : str
        Display title.
    content_type : ContentType
        Kind of document, which decides its URL and TOC strategy.
    date : str
        ISO date string, empty when absent.
    tags : list[str]
        Free-form tags in source order.
    author : str or None
        Optional author name.
    excerpt : str or None
        Author-supplied summary (``excerpt`` or ``description``).
    url : str
        Site-relative output path.
    extra : dict[str, Any]
        Frontmatter keys with no dedicated field.
    """

    id: str
    title: str
    content_type: ContentType = ContentType.ARTICLE
    date: str = ""
    tags: list[str] = dc.field(default_factory=list)
    author: str | None = None
    excerpt: str | None = None
    url: str = ""
    extra: dict[str, typ.Any] = dc.field(default_factory=dict)


def split_frontmatter(text: str) -> tuple[dict[str, typ.Any], str]:
    """Separate the optional YAML block from the document body.

    Parameters
    ----------
    text : str
        Full source text. ``\r\n`` line endings are normalised first.

    Returns
    -------
    tuple[dict[str, Any], str]
        Parsed frontmatter mapping (empty when absent) and the remaining body.

    Raises
    ------
    FrontmatterError
        If the block is not valid YAML or does not hold a mapping.
    """
    normalized = text.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].rstrip() != FRONTMATTER_FENCE:
        return {}, normalized
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == FRONTMATTER_FENCE:
            block = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1 :])
            return _parse_block(block), body
    return {}, normalized


def strip_frontmatter(text: str) -> str:
    """Return ``text`` without its metadata block, ignoring its contents."""
    normalized = text.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].rstrip() != FRONTMATTER_FENCE:
        return normalized
    for idx in range(1, len(lines)):
        if lines[idx].rstrip() == FRONTMATTER_FENCE:
            return "\n".join(lines[idx + 1 :])
    return normalized


def _parse_block(block: str) -> dict[str, typ.Any]:
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        loaded = loader.load(block)
    except YAMLError as exc:
        msg = f"Failed to parse frontmatter: {exc}"
        raise FrontmatterError(msg) from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        msg = "Frontmatter must be a mapping of keys to values."
        raise FrontmatterError(msg)
    return {str(key): value for key, value in loaded.items()}


def build_metadata(
    frontmatter: typ.Mapping[str, typ.Any],
    *,
    content_type: ContentType | None = None,
    path: Path | None = None,
) -> ContentMetadata:
    """Build :class:`ContentMetadata` from a parsed frontmatter mapping.

    Parameters
    ----------
    frontmatter : Mapping[str, Any]
        Parsed metadata block.
    content_type : ContentType, optional
        Override for the ``type`` key, used when the directory decides it.
    path : Path, optional
        Source path. Book chapters use it for their URL and fallback title.

    Returns
    -------
    ContentMetadata
        Metadata with defaults applied and URL derived from type and id.
    """
    kind = content_type or ContentType.parse(frontmatter.get("type"))
    location = book_location(path) if kind is ContentType.BOOK else None
    chapter = location if location is not None and location[1] != BOOK_INDEX_STEM else None

    title = _optional_text(frontmatter.get("title"))
    if title is None:
        title = _title_from_stem(path) if chapter else DEFAULT_TITLE
    doc_id = _optional_text(frontmatter.get("id")) or slugify(title)

    excerpt = _optional_text(frontmatter.get("excerpt"))
    if excerpt is None:
        excerpt = _optional_text(frontmatter.get("description"))

    return ContentMetadata(
        id=doc_id,
        title=title,
        content_type=kind,
        date=_normalize_date(frontmatter.get("date")),
        tags=_normalize_tags(frontmatter.get("tags")),
        author=_optional_text(frontmatter.get("author")),
        excerpt=excerpt,
        url=_build_document_url(kind, doc_id, location),
        extra={k: v for k, v in frontmatter.items() if k not in KNOWN_KEYS},
    )


def _build_document_url(
    kind: ContentType, doc_id: str, location: tuple[str, str] | None
) -> str:
    match kind:
        case ContentType.BOOK if location is not None:
            book, slug = location
            return f"books/{book}/{slug}.html"
        case ContentType.BOOK:
            return f"books/{doc_id}/index.html"
        case ContentType.SNIPPET:
            return f"snippets/{doc_id}.html"
        case ContentType.PROJECT:
            return f"projects/{doc_id}.html"
        case _:
            return f"articles/{doc_id}.html"


def book_location(path: Path | None) -> tuple[str, str] | None:
    """Return ``(book, page slug)`` for a page that lives in a book directory.

    The book is the directory directly below ``books``; the slug is the page's
    path below that directory without its suffix, so chapters may sit in
    sub-directories. Outside a ``books`` tree the parent directory names the
    book. A page lying directly in ``books`` belongs to no book.

    >>> book_location(Path("content/books/guide/part1/intro.rst"))
    ('guide', 'part1/intro')
    >>> book_location(Path("content/books/guide/index.rst"))
    ('guide', 'index')
    """
    if path is None:
        return None
    folders = path.parts[:-1]
    if BOOKS_DIRNAME in folders:
        below = folders[len(folders) - folders[::-1].index(BOOKS_DIRNAME) :]
        if not below:
            return None
        return below[0], "/".join((*below[1:], path.stem))
    if not path.parent.name:
        return None
    return path.parent.name, path.stem


def _title_from_stem(path: Path | None) -> str:
    if path is None:
        return DEFAULT_TITLE
    return path.stem.replace("-", " ").replace("_", " ")


def _optional_text(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_date(value: object | None) -> str:
    match value:
        case dt.datetime():
            return value.date().isoformat()
        case dt.date():
            return value.isoformat()
        case None:
            return ""
        case _:
            return str(value).strip()


def _normalize_tags(value: object | None) -> list[str]:
    if isinstance(value, str):
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if isinstance(value, list):
        return [str(tag).strip() for tag in value if str(tag).strip()]
    return []


__all__ = [
    "ContentMetadata",
    "ContentType",
    "book_location",
    "build_metadata",
    "split_frontmatter",
    "strip_frontmatter",
]
