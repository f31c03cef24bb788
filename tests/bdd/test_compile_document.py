"""Behaviour tests for compiling a single document.

These pytest-bdd scenarios drive ``RstCompiler`` with small sources to check
the two things every page relies on: headings carry stable anchors with the
inline markup rendered in paragraphs, and ``code-block`` directives come out
highlighted inside the code widget.

Usage:
    Run these behaviour tests with pytest, for example:

        pytest tests/bdd/test_compile_document.py -v

Prerequisites:
    - The test extra (pytest-bdd and BeautifulSoup) installed via
      ``pip install -e .[test]``.
    - Access to the feature file at ``features/compile_document.feature``
      within this repository.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from rst_pages.compiler import RstCompiler

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "compile_document.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


@given("an RST source with a title and an emphasised word")
def given_titled_source(scenario_state: dict[str, object]) -> None:
    """Store a source with one section title and an emphasised word."""
    scenario_state["source"] = "Title\n=====\n\nHello *world*."


@given("an RST source with a Python code-block")
def given_code_block_source(scenario_state: dict[str, object]) -> None:
    """Store a source holding a single-line Python ``code-block``."""
    scenario_state["source"] = ".. code-block:: python\n\n   x = 1\n"


@when("I compile the source")
def when_compile(scenario_state: dict[str, object]) -> None:
    """Compile the stored source and keep the parsed fragment.

    Parameters
    ----------
    scenario_state : dict[str, object]
        Mutable state dictionary shared across BDD steps. This step reads
        ``source`` and stores the compiled ``html`` and its ``soup``.

    Returns
    -------
    None
        This step mutates ``scenario_state`` in place and does not return a
        value.
    """
    document = RstCompiler().compile(str(scenario_state["source"]))
    scenario_state["html"] = document.html
    scenario_state["soup"] = BeautifulSoup(document.html, "html.parser")


@then(parsers.parse('the HTML has a heading anchored as "{anchor}"'))
def then_heading_anchor(scenario_state: dict[str, object], anchor: str) -> None:
    """Assert that the title rendered as a heading with the expected id."""
    soup = scenario_state["soup"]
    assert isinstance(soup, BeautifulSoup)
    heading = soup.find(id=anchor)
    assert heading is not None, scenario_state["html"]
    assert heading.name in {"h1", "h2", "h3", "h4", "h5", "h6"}
    assert heading.get_text() == "Title"


@then("the emphasised word sits inside a paragraph")
def then_emphasis_in_paragraph(scenario_state: dict[str, object]) -> None:
    """Assert that ``*world*`` became ``<em>`` inside a ``<p>``."""
    soup = scenario_state["soup"]
    assert isinstance(soup, BeautifulSoup)
    emphasis = soup.select_one("p em")
    assert emphasis is not None, scenario_state["html"]
    assert emphasis.get_text() == "world"


@then("the HTML wraps the code in a code-content container")
def then_code_content(scenario_state: dict[str, object]) -> None:
    """Assert that the code widget holds a ``code-content`` wrapper."""
    soup = scenario_state["soup"]
    assert isinstance(soup, BeautifulSoup)
    assert soup.select_one("div.code-block div.code-content") is not None


@then("each token of the assignment is highlighted")
def then_tokens_highlighted(scenario_state: dict[str, object]) -> None:
    """Assert that Pygments wrapped ``x``, ``=``, and ``1`` in spans."""
    soup = scenario_state["soup"]
    assert isinstance(soup, BeautifulSoup)
    content = soup.select_one("div.code-content")
    assert content is not None
    tokens = {span.get_text() for span in content.select("span[class]")}
    assert {"x", "=", "1"} <= tokens
