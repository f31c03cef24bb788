"""Replace directives in RST source with stashed HTML fragments."""

from __future__ import annotations

import logging
import typing as typ
from html import escape

from ..errors import DirectiveError, IncludeError
from .registry import DirectiveRegistry, SourceText
from .scanner import DirectiveInvocation, SourceLine, scan, tokenize

if typ.TYPE_CHECKING:
    from pathlib import Path

    from ..fragments import FragmentStash

logger = logging.getLogger(__name__)

DEFAULT_MAX_INCLUDE_DEPTH = 8


def error_marker(name: str, message: str) -> str:
    """Return the inline marker that stands in for a failed directive."""
    return (
        f'<div class="directive-error" data-directive="{escape(name, quote=True)}">'
        f"{escape(message)}</div>"
    )


class DirectiveExpander:
    """Expand every registered directive in a document body.

    Parameters
    ----------
    registry : DirectiveRegistry
        Handlers keyed by directive name.
    strict : bool, optional
        Re-raise :class:`DirectiveError` instead of substituting an inline
        ``directive-error`` marker.
    max_include_depth : int, optional
        Nesting limit for ``include`` directives, which also stops cycles.
    """

    def __init__(
        self,
        registry: DirectiveRegistry,
        *,
        strict: bool = False,
        max_include_depth: int = DEFAULT_MAX_INCLUDE_DEPTH,
    ) -> None:
        self.registry = registry
        self.strict = strict
        self.max_include_depth = max_include_depth

    def expand(
        self,
        text: str,
        stash: FragmentStash,
        *,
        source: Path | None = None,
        depth: int = 0,
    ) -> str:
        """Return ``text`` with each known directive replaced by a block token.

        Unknown directives keep their source text. Included files are expanded
        recursively relative to their own location.
        """
        output: list[str] = []
        for event in scan(tokenize(text)):
            match event:
                case SourceLine():
                    output.append(event.text)
                case DirectiveInvocation():
                    output.append(self._expand_one(event, stash, source=source, depth=depth))
        return "\n".join(output)

    def _expand_one(
        self,
        invocation: DirectiveInvocation,
        stash: FragmentStash,
        *,
        source: Path | None,
        depth: int,
    ) -> str:
        handler = self.registry.get(invocation.name)
        if handler is None:
            logger.debug("Leaving unknown directive %r unexpanded", invocation.name)
            return invocation.source_text

        logger.debug("Expanding %s directive at offset %d", invocation.name, invocation.span[0])
        try:
            result = handler.handle(
                invocation.argument, invocation.body, invocation.options, source=source
            )
        except DirectiveError as exc:
            exc.attach(source)
            if self.strict:
                raise
            logger.warning("Replacing failed %s directive: %s", invocation.name, exc)
            return stash.block(error_marker(invocation.name, exc.message))

        if isinstance(result, SourceText):
            if depth >= self.max_include_depth:
                msg = f"include nesting deeper than {self.max_include_depth} at {result.origin}"
                raise IncludeError(msg, document=source)
            return self.expand(result, stash, source=result.origin or source, depth=depth + 1)
        return stash.block(result) if result else ""


__all__ = ["DEFAULT_MAX_INCLUDE_DEPTH", "DirectiveExpander", "error_marker"]
