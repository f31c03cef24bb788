"""Cyclopts CLI entrypoint for building rst-pages sites.

The ``rst-pages`` console script defined here builds a whole site from a
content directory (``rst-pages build``) or compiles a single file to an HTML
fragment on stdout (``rst-pages render``), which is handy when checking how a
directive renders. Every option can also be supplied through an ``INPUT_*``
environment variable so the commands run unchanged inside CI actions.

Examples
--------
Build the site described by the default configuration:

>>> from rst_pages.cli import main
>>> main()  # doctest: +SKIP

Build into a custom directory with debug logging:

>>> from rst_pages.cli import app
>>> app.run(["build", "--output-dir", "dist", "--verbose"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .compiler import CompileContext, RstCompiler
from .config import DEFAULT_CONFIG_PATH, SiteConfigError, load_site_config
from .errors import CompileError
from .frontmatter import ContentType
from .site import SiteBuilder

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

app = App(
    name="rst-pages",
    config=cyclopts.config.Env("INPUT_", command=False),  # type: ignore[unknown-argument]
)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _fail(message: str) -> typ.NoReturn:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(1)


@app.command(help="Compile every document under the content directory into HTML pages.")
def build(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG_PATH,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(help="Override the output folder", env_var="INPUT_OUTPUT_DIR"),
    ] = None,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug output", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Build the site described by ``config``.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    output_dir : Path or None, optional
        Write pages here instead of the configured ``output_dir``.
    verbose : bool, optional
        Log at DEBUG instead of WARNING.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is missing or invalid, or when a
        document fails to compile. The reason is printed to stderr.
    """
    _configure_logging(verbose=verbose)
    try:
        site_config = load_site_config(config)
        result = SiteBuilder(site_config, output_dir=output_dir).build()
    except FileNotFoundError:
        _fail(f"config file not found: {config}")
    except (CompileError, SiteConfigError, TypeError) as exc:
        _fail(str(exc))

    for path in result.written:
        print(f"wrote {_format_path(path)}")
    for reference in result.unresolved:
        print(f"warning: {reference}", file=sys.stderr)


@app.command(help="Compile one RST file and print its HTML fragment.")
def render(
    file: typ.Annotated[Path, Parameter(help="RST source to compile")],
    *,
    content_type: typ.Annotated[
        ContentType | None,
        Parameter(help="Override the frontmatter type", env_var="INPUT_CONTENT_TYPE"),
    ] = None,
    strict: typ.Annotated[
        bool, Parameter(help="Fail on invalid directive bodies", env_var="INPUT_STRICT")
    ] = False,
    verbose: typ.Annotated[
        bool, Parameter(help="Log debug output", env_var="INPUT_VERBOSE")
    ] = False,
) -> None:
    """Print the compiled HTML of ``file``.

    Snippet cards are left as placeholders; resolving them needs the whole
    site, which only ``build`` has.
    """
    _configure_logging(verbose=verbose)
    compiler = RstCompiler(CompileContext.create(strict=strict, include_base=file.parent))
    try:
        document = compiler.compile_file(file, content_type=content_type)
    except CompileError as exc:
        _fail(str(exc))
    print(document.html)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``rst-pages`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
