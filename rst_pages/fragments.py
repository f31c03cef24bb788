"""Hold finished HTML fragments out of reach of later text passes.

Directive handlers and the math extractor produce HTML that must not be
touched by the emphasis, link, list, or paragraph passes. They park each
fragment in a :class:`FragmentStash` and leave an opaque token behind; the
compiler restores every token once the markup passes are done.

Block tokens look like an HTML comment on a line of their own, so the
paragraph pass treats them as structural HTML. Each stash stamps its block
tokens with a random nonce, so a comment that merely looks like a token in
the source is passed through as written. Inline tokens use private-use code
points that no markup regex matches.
"""

from __future__ import annotations

import re
import secrets

BLOCK_TOKEN = "<!--rst-fragment:{nonce}:{index}-->"
INLINE_TOKEN = "\ue000{index}\ue001"
INLINE_TOKEN_PATTERN = re.compile(r"\ue000\d+\ue001")


class FragmentStash:
    """Store HTML fragments and swap them back in after markup conversion."""

    def __init__(self) -> None:
        self._fragments: list[str] = []
        self._nonce = secrets.token_hex(4)
        self._pattern = re.compile(
            rf"<!--rst-fragment:{self._nonce}:(\d+)-->|\ue000(\d+)\ue001"
        )

    def __len__(self) -> int:
        return len(self._fragments)

    def block(self, html: str) -> str:
        """Park a block-level fragment and return its placeholder line."""
        self._fragments.append(html)
        return BLOCK_TOKEN.format(nonce=self._nonce, index=len(self._fragments) - 1)

    def inline(self, html: str) -> str:
        """Park an inline fragment and return its placeholder token."""
        self._fragments.append(html)
        return INLINE_TOKEN.format(index=len(self._fragments) - 1)

    def restore(self, text: str) -> str:
        """Replace every token in ``text`` with the fragment it stands for.

        Tokens this stash never issued are left as they are.
        """

        def _repl(match: re.Match[str]) -> str:
            index = int(match.group(1) or match.group(2))
            if index >= len(self._fragments):
                return match.group(0)
            return self._pattern.sub(_repl, self._fragments[index])

        return self._pattern.sub(_repl, text)


__all__ = ["INLINE_TOKEN_PATTERN", "FragmentStash"]
