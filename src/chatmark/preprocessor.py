# -*- coding: utf-8 -*-
"""
Content preprocessing for LLM chat messages.

- :func:`normalize` prepares raw markdown for display (keeps reasoning blocks)
- :func:`sanitize` cleans content for copy/export (removes reasoning blocks)
- :func:`to_plain_text` converts markdown to plain text for speech
- :func:`soften_inline_code` adds wrap points to long inline code

None of these functions raise on malformed markdown; broken input is
repaired or passed through as text.
"""

import html
import logging
import re
from typing import Optional

from chatmark.document import link_reference_labels
from chatmark.models import ExtensionSet

logger = logging.getLogger(__name__)

ZERO_WIDTH_SPACE = "\u200b"
ZERO_WIDTH_NON_JOINER = "\u200c"


# ---------------------------------------------------------------------------
# Display / sanitization patterns
# ---------------------------------------------------------------------------

# "- ```python" -> list marker and fence on separate lines
_BULLET_FENCE_RE = re.compile(r"^([ \t]*(?:[*+-]|\d+\.)[ \t]+)```([^\s`]*)[ \t]*$", re.MULTILINE)
_DEDENT_OPEN_RE = re.compile(r"^[ \t]+(```[^\n`]*)$", re.MULTILINE)
_DEDENT_CLOSE_RE = re.compile(r"^[ \t]+```[ \t]*$", re.MULTILINE)
# "some text```" at end of line -> closing fence on its own line
_INLINE_CLOSING_RE = re.compile(r"([^\n`])```(?=[ \t]*(?:\n|\Z))")
_FENCE_LINE_RE = re.compile(r"^[ \t]*```", re.MULTILINE)

# "**Label**\n---" would become a Setext heading
_LABEL_THEN_DASH_RE = re.compile(r"^(\*\*[^\n*]+\*\*.*)\n([ \t]*-{3,}[ \t]*)$", re.MULTILINE)
# "## 1. Intro" -> keep the number out of list parsing
_ATX_ENUM_RE = re.compile(r"^([ \t]{0,3}#{1,6}[ \t]+\d+)\.([ \t]*)(\S)", re.MULTILINE)
_LINK_WITH_TRAILING_SPACES_RE = re.compile(r"\[[^\]]+\]\([^)]+\)[ \t]{2,}$")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")

# Reasoning / tool-call annotation blocks, both forms
_ANNOTATION_BLOCKS_RE = re.compile(
    r'<details\s+type="(?:reasoning|code_interpreter|tool_calls)"[^>]*>[\s\S]*?</details>'
    r"|<(think|thinking|reasoning)(?:\s[^>]*)?>[\s\S]*?</\1>",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Plain text (TTS) patterns
# ---------------------------------------------------------------------------

_CODE_BLOCK_RE = re.compile(r"```[^\n]*(?:\n[\s\S]*?)?(?:```|\Z)")
_INLINE_CODE_RE = re.compile(r"`([^`]+)`")
_IMAGE_RE = re.compile(r"!\[[^\]]*\]\([^)]+\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
# Only paired markers; lone * and _ are math or identifiers
_BOLD_ITALIC_RE = re.compile(r"\*\*\*([^*]+)\*\*\*")
_BOLD_RE = re.compile(r"\*\*([^*]+)\*\*")
_BOLD_UNDERSCORE_RE = re.compile(r"(?<!\w)__([^_\n]+)__(?!\w)")
_STRIKETHROUGH_RE = re.compile(r"~~([^~]+)~~")
_ITALIC_ASTERISK_RE = re.compile(r"(?:^|(?<=\s))\*([^*\s]+)\*(?=\s|$)")
_ITALIC_UNDERSCORE_RE = re.compile(r"(?:^|(?<=\s))_([^_\s]+)_(?=\s|$)")
_HEADING_RE = re.compile(r"^[ \t]*#{1,6}(?:[ \t]+|$)", re.MULTILINE)
_LIST_MARKER_RE = re.compile(r"^[ \t]*(?:[-*+]|\d+\.)[ \t]+", re.MULTILINE)
_BLOCKQUOTE_RE = re.compile(r"^[ \t]*(?:>[ \t]?)+", re.MULTILINE)
_HORIZONTAL_RULE_RE = re.compile(r"^[ \t]*[-*_]{3,}[ \t]*$", re.MULTILINE)
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_EMOJI_RE = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # misc symbols and pictographs
    "\U0001F680-\U0001F6FF"  # transport and map
    "\U0001F1E0-\U0001F1FF"  # flags
    "\u2600-\u26FF"          # misc symbols
    "\u2700-\u27BF"          # dingbats
    "\U0001F900-\U0001F9FF"  # supplemental symbols
    "\U0001FA00-\U0001FA6F"  # chess, cards
    "\U0001FA70-\U0001FAFF"  # symbols extended-A
    "\uFE00-\uFE0F"          # variation selectors
    "\U0001F018-\U0001F270"
    "\u238C-\u2454"          # misc technical
    "\u20D0-\u20FF"          # combining marks for symbols
    "]"
)
_WHITESPACE_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def normalize(text: str, extensions: Optional[ExtensionSet] = None) -> str:
    """
    Normalize raw markdown for display.

    - strips link reference definitions (e.g. citation annotations)
    - repairs code fences LLMs commonly break, closing an unterminated one
    - disambiguates Setext-looking labels and numbered headings
    - separates consecutive link lines

    Reasoning / tool-call blocks are kept for the collapsible UI.
    """
    if not text:
        return text

    output = text.replace("\r\n", "\n")
    output = _strip_link_reference_definitions(output, extensions)
    output = _normalize_fences(output)
    output = _LABEL_THEN_DASH_RE.sub(r"\1\n\n\2", output)
    output = _ATX_ENUM_RE.sub(lambda m: f"{m.group(1)}.{ZERO_WIDTH_NON_JOINER}{m.group(2)}{m.group(3)}", output)
    output = _separate_consecutive_links(output)
    return output


def sanitize(text: str, extensions: Optional[ExtensionSet] = None) -> str:
    """
    Clean content for clipboard copy or export.

    Strips link reference definitions and reasoning / tool-call blocks,
    collapses blank lines and trims. Idempotent.
    """
    if not text:
        return text

    output = text
    # Removing a block can expose a new match; repeat until stable.
    # Every step only deletes, so this terminates.
    while True:
        cleaned = _sanitize_once(output, extensions)
        if cleaned == output:
            return cleaned
        output = cleaned


def to_plain_text(text: str) -> str:
    """Convert markdown to plain text for text-to-speech."""
    if not text or not text.strip():
        return ""

    output = sanitize(text)
    output = _CODE_BLOCK_RE.sub("", output)
    output = _INLINE_CODE_RE.sub(r"\1", output)
    output = _IMAGE_RE.sub("", output)
    output = _LINK_RE.sub(r"\1", output)
    output = _BOLD_ITALIC_RE.sub(r"\1", output)
    output = _BOLD_RE.sub(r"\1", output)
    output = _BOLD_UNDERSCORE_RE.sub(r"\1", output)
    output = _STRIKETHROUGH_RE.sub(r"\1", output)
    output = _ITALIC_ASTERISK_RE.sub(r"\1", output)
    output = _ITALIC_UNDERSCORE_RE.sub(r"\1", output)
    output = _HEADING_RE.sub("", output)
    output = _LIST_MARKER_RE.sub("", output)
    output = _BLOCKQUOTE_RE.sub("", output)
    output = _HORIZONTAL_RULE_RE.sub("", output)
    output = _HTML_TAG_RE.sub("", output)
    output = html.unescape(output)
    output = _EMOJI_RE.sub("", output)
    output = output.replace("`", "").replace("#", "")
    output = _WHITESPACE_RE.sub(" ", output)
    return output.strip()


def soften_inline_code(text: str, chunk_size: int = 24) -> str:
    """Insert a zero-width space every *chunk_size* characters of long code."""
    if chunk_size <= 0 or len(text) <= chunk_size:
        return text
    chunks = [text[i:i + chunk_size] for i in range(0, len(text), chunk_size)]
    # A break after the final full chunk matches per-character insertion
    softened = ZERO_WIDTH_SPACE.join(chunks)
    if len(text) % chunk_size == 0:
        softened += ZERO_WIDTH_SPACE
    return softened


def count_fence_lines(text: str) -> int:
    """Number of lines that start a code fence."""
    return len(_FENCE_LINE_RE.findall(text))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _sanitize_once(text: str, extensions: Optional[ExtensionSet]) -> str:
    # Deleting a block can join a lone \r with the next \n
    output = text.replace("\r\n", "\n")
    output = _strip_link_reference_definitions(output, extensions)
    output = _ANNOTATION_BLOCKS_RE.sub("", output)
    output = _MULTIPLE_NEWLINES_RE.sub("\n\n", output)
    return output.strip()


def _normalize_fences(text: str) -> str:
    output = _BULLET_FENCE_RE.sub(r"\1\n```\2", text)
    output = _DEDENT_OPEN_RE.sub(r"\1", output)
    output = _DEDENT_CLOSE_RE.sub("```", output)
    output = _INLINE_CLOSING_RE.sub(r"\1\n```", output)

    if count_fence_lines(output) % 2 == 1:
        logger.debug("Auto-closing unterminated code fence")
        if not output.endswith("\n"):
            output += "\n"
        output += "```"
    return output


def _separate_consecutive_links(text: str) -> str:
    lines = text.split("\n")
    if len(lines) <= 1:
        return text

    result = []
    for i, line in enumerate(lines):
        result.append(line)
        if i < len(lines) - 1 and _LINK_WITH_TRAILING_SPACES_RE.search(line):
            result.append("")
    return "\n".join(result)


def _strip_link_reference_definitions(text: str, extensions: Optional[ExtensionSet] = None) -> str:
    """
    Remove link reference definitions the parser actually recognizes.

    The parser discovers the labels first, so literal text that merely
    looks like ``[x]: y`` is left alone.
    """
    if "[" not in text:
        return text

    labels = link_reference_labels(text, extensions)
    if not labels:
        return text

    label_patterns = "|".join(
        re.escape(label).replace(" ", r"\s+")
        for label in sorted(labels, key=len, reverse=True)
    )
    ref_def_re = re.compile(
        r"^[ ]{0,3}\[(?:" + label_patterns + r")\]:[ \t]*(?:<[^>\n]*>|\S*)"
        r"""(?:[ \t]+(?:"[^"\n]*"|'[^'\n]*'|\([^)\n]*\)))?[ \t]*$""",
        re.MULTILINE | re.IGNORECASE,
    )
    output, count = ref_def_re.subn("", text)
    if count:
        logger.debug(f"Stripped {count} link reference definition(s)")
    output = _MULTIPLE_NEWLINES_RE.sub("\n\n", output)
    return output.strip()
