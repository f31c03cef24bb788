"""Map directive names to handler objects.

Handlers are looked up by name at expansion time, so the set of directives is
open: anything that satisfies :class:`DirectiveHandler` can be registered.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class SourceText(str):
    """Handler output that is RST source rather than finished HTML.

    The expander feeds instances back through directive expansion instead of
    parking them as HTML fragments. ``origin`` is the file the text was read
    from, used to resolve nested includes.
    """

    origin: Path | None

    def __new__(cls, text: str, origin: Path | None = None) -> SourceText:
        instance = super().__new__(cls, text)
        instance.origin = origin
        return instance


@typ.runtime_checkable
class DirectiveHandler(typ.Protocol):
    """Expand one directive invocation into an HTML fragment."""

    def handle(
        self,
        argument: str,
        body: str,
        options: cabc.Mapping[str, str],
        *,
        source: Path | None = None,
    ) -> str:
        """Return HTML (or :class:`SourceText`) for the directive.

        Raises
        ------
        DirectiveError
            If the directive's own content is structurally invalid.
        """
        ...


class DirectiveRegistry:
    """Name-to-handler mapping consulted by the expander."""

    def __init__(
        self, handlers: cabc.Mapping[str, DirectiveHandler] | None = None
    ) -> None:
        self._handlers: dict[str, DirectiveHandler] = dict(handlers or {})

    def register(self, name: str, handler: DirectiveHandler) -> None:
        """Register ``handler`` for ``name``, replacing any earlier one."""
        self._handlers[name] = handler

    def get(self, name: str) -> DirectiveHandler | None:
        return self._handlers.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    @property
    def names(self) -> list[str]:
        return sorted(self._handlers)


__all__ = ["DirectiveHandler", "DirectiveRegistry", "SourceText"]
