"""Common literal values shared across rst_pages.

Heading levels, TOC exclusions, and output filenames live here so the markup
converter, both TOC generators, and the site builder read the same values.

Examples
--------
>>> from rst_pages import _constants
>>> _constants.HEADING_LEVELS["="]
2
>>> _constants.MANIFEST_FILENAME
'site-manifest.json'
"""

# Underline character -> HTML heading level. Level 1 belongs to the page title.
HEADING_LEVELS: dict[str, int] = {
    "=": 2,
    "-": 3,
    "~": 4,
    "^": 5,
    "*": 5,
    '"': 6,
    "'": 6,
    "`": 6,
    "+": 6,
    "#": 6,
}

# Headings containing any of these fragments are navigation chrome, not content.
TOC_EXCLUDED_TITLES: tuple[str, ...] = (
    "Referenced Snippet:",
    "Table of Contents",
    "Articles",
    "Tags",
)

DEFAULT_TITLE = "Untitled"

# A book is the directory directly below BOOKS_DIRNAME; its landing page has this stem.
BOOKS_DIRNAME = "books"
BOOK_INDEX_STEM = "index"
SNIPPET_TOC_PREFIX = "Snippet: "
SNIPPET_ANCHOR_PREFIX = "snippet-"

MANIFEST_FILENAME = "site-manifest.json"
CODE_STYLESHEET_PATH = "assets/code.css"
