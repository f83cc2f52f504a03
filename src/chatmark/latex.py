# -*- coding: utf-8 -*-
"""
LaTeX shielding for the markdown parser.

The markdown parser would mangle ``$...$`` and ``$$...$$`` (underscores turn
into emphasis, backslashes get eaten), so math is swapped for placeholder
tokens before parsing. While rendering, text nodes are split on those tokens
and math widgets are put back in their place.

Usage::

    shield = LatexShield()
    safe = shield.extract(raw_markdown)
    # ... parse `safe` ...
    segments = shield.split_on_placeholders(text_node)

One instance serves exactly one preprocessing run.
"""

import logging
import re
import secrets
from typing import Dict, List, NamedTuple, Optional, Pattern

from chatmark.exceptions import LatexShieldReusedError
from chatmark.models import Segment

logger = logging.getLogger(__name__)

# Zero-width space: never typed in ordinary prose
MARKER = "\u200b"

_BLOCK_PATTERN = re.compile(r"\$\$([\s\S]+?)\$\$")

# $...$ but not $$, not escaped \$, non-whitespace right inside both
# delimiters. `$ 5 - $ 10` stays literal.
_INLINE_PATTERN = re.compile(
    r"(?<!\$)(?<!\\)\$(?!\$)"
    r"([^\s$" + MARKER + r"](?:[^$" + MARKER + r"]*?[^\s$" + MARKER + r"])?)"
    r"\$(?!\$)"
)


class _Placeholder(NamedTuple):
    expression: str
    is_block: bool
    source: str


class LatexShield:
    """Extracts LaTeX into placeholder tokens and restores it afterwards."""

    def __init__(self):
        self._placeholders: Dict[str, _Placeholder] = {}
        self._counter = 0
        self._nonce = ""
        self._used = False
        self._split_pattern: Optional[Pattern[str]] = None

    @property
    def has_latex(self) -> bool:
        return bool(self._placeholders)

    @property
    def placeholder_count(self) -> int:
        return len(self._placeholders)

    @property
    def _marker_prefix(self) -> str:
        return f"{MARKER}{MARKER}LATEX_"

    def extract(self, content: str) -> str:
        """
        Replace LaTeX expressions in *content* with placeholder tokens.

        Block math is extracted first and padded with blank lines so the
        parser sees the token as its own paragraph; inline math second.
        """
        if self._used:
            raise LatexShieldReusedError()
        self._used = True
        self._nonce = self._pick_nonce(content)

        def _block(match: "re.Match[str]") -> str:
            key = self._register(match.group(1).strip(), True, match.group(0))
            return f"\n\n{key}\n\n"

        def _inline(match: "re.Match[str]") -> str:
            return self._register(match.group(1), False, match.group(0))

        result = _BLOCK_PATTERN.sub(_block, content)
        result = _INLINE_PATTERN.sub(_inline, result)
        if self._placeholders:
            logger.debug(f"Shielded {len(self._placeholders)} LaTeX expression(s)")
        return result

    def contains_placeholder(self, text: str) -> bool:
        """Quick check before calling :meth:`split_on_placeholders`."""
        return bool(self._placeholders) and self._token_prefix in text

    def split_on_placeholders(self, text: str) -> List[Segment]:
        """Split *text* into ordered plain-text and math segments."""
        if not self._placeholders:
            return [Segment.text(text)]

        segments: List[Segment] = []
        last_end = 0
        for match in self._get_split_pattern().finditer(text):
            if match.start() > last_end:
                segments.append(Segment.text(text[last_end:match.start()]))
            token = match.group(0)
            entry = self._placeholders[token.strip("\n")]
            segments.append(Segment.math(
                entry.expression,
                is_block=entry.is_block,
                token=token,
                source=entry.source,
            ))
            last_end = match.end()

        if last_end < len(text):
            segments.append(Segment.text(text[last_end:]))
        return segments

    def restore(self, text: str) -> str:
        """Put the original ``$...$`` literals back into *text*."""
        if not self.contains_placeholder(text):
            return text
        for token, entry in self._placeholders.items():
            if entry.is_block:
                text = text.replace(f"\n\n{token}\n\n", entry.source)
            text = text.replace(token, entry.source)
        return text

    # -- internals --

    @property
    def _token_prefix(self) -> str:
        return f"{self._marker_prefix}{self._nonce}"

    def _pick_nonce(self, content: str) -> str:
        while True:
            nonce = secrets.token_hex(4)
            if f"{self._marker_prefix}{nonce}" not in content:
                return nonce

    def _register(self, expression: str, is_block: bool, source: str) -> str:
        kind = "BLOCK" if is_block else "INLINE"
        key = f"{self._token_prefix}_{kind}_{self._counter}{MARKER}{MARKER}"
        self._counter += 1
        self._placeholders[key] = _Placeholder(expression, is_block, source)
        self._split_pattern = None
        return key

    def _get_split_pattern(self) -> Pattern[str]:
        if self._split_pattern is None:
            alternatives = []
            for key, entry in self._placeholders.items():
                # The blank-line padding added by extract belongs to the block
                if entry.is_block:
                    alternatives.append(re.escape(f"\n\n{key}\n\n"))
                alternatives.append(re.escape(key))
            self._split_pattern = re.compile("|".join(alternatives))
        return self._split_pattern
