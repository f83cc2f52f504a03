# -*- coding: utf-8 -*-
"""
Reasoning and tool-call annotation blocks.

Chat backends embed model reasoning and tool invocations in message content
as HTML-ish blocks::

    <details type="reasoning" done="true" duration="3">
    <summary>Thought for 3 seconds</summary>
    > step one
    </details>

    <details type="tool_calls" done="true" id="c1" name="search"
             arguments="{&quot;q&quot;: &quot;x&quot;}" result="..."></details>

    <think>...</think>

:func:`split_annotations` cuts a message into ordered markdown parts and
annotation models so the renderer can show them as collapsible sections.
"""

import html
import json
import logging
import re
from typing import Dict, List

from chatmark.models import ContentPart, MarkdownPart, ReasoningBlock, ToolCallBlock

logger = logging.getLogger(__name__)

_DETAILS_TYPES = ("reasoning", "code_interpreter", "tool_calls")
_THINK_TAGS = ("think", "thinking", "reasoning")

_BLOCK_RE = re.compile(
    r'<details(?P<attrs>\s+[^>]*?type="(?:' + "|".join(_DETAILS_TYPES) + r')"[^>]*)>'
    r"(?P<body>[\s\S]*?)</details>"
    r"|<(?P<tag>" + "|".join(_THINK_TAGS) + r")(?:\s[^>]*)?>(?P<think>[\s\S]*?)</(?P=tag)>",
    re.IGNORECASE,
)
# Opener with no closer yet (streaming)
_OPEN_RE = re.compile(
    r'<details(?P<attrs>\s+[^>]*?type="(?:reasoning|code_interpreter)"[^>]*)>'
    r"|<(?P<tag>" + "|".join(_THINK_TAGS) + r")(?:\s[^>]*)?>",
    re.IGNORECASE,
)
_ATTR_RE = re.compile(r'([\w-]+)="([^"]*)"')
_SUMMARY_RE = re.compile(r"^\s*<summary>([\s\S]*?)</summary>", re.IGNORECASE)
_QUOTE_PREFIX_RE = re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE)


def split_annotations(text: str) -> List[ContentPart]:
    """Split *text* into markdown parts and annotation blocks, in order."""
    parts: List[ContentPart] = []
    if not text:
        return parts

    position = 0
    for match in _BLOCK_RE.finditer(text):
        _append_markdown(parts, text[position:match.start()])
        if match.group("tag"):
            parts.append(_think_block(match.group("tag"), match.group("think"), done=True))
        else:
            parts.append(_details_block(_parse_attributes(match.group("attrs")), match.group("body")))
        position = match.end()

    tail = text[position:]
    opener = _OPEN_RE.search(tail)
    if opener:
        _append_markdown(parts, tail[:opener.start()])
        body = tail[opener.end():]
        if opener.group("tag"):
            parts.append(_think_block(opener.group("tag"), body, done=False))
        else:
            attrs = _parse_attributes(opener.group("attrs"))
            attrs["done"] = "false"
            parts.append(_details_block(attrs, body))
        logger.debug("Unterminated reasoning block treated as in progress")
    else:
        _append_markdown(parts, tail)
    return parts


def has_annotations(text: str) -> bool:
    return bool(_BLOCK_RE.search(text) or _OPEN_RE.search(text))


def _append_markdown(parts: List[ContentPart], chunk: str) -> None:
    if chunk.strip():
        parts.append(MarkdownPart(text=chunk))


def _parse_attributes(raw: str) -> Dict[str, str]:
    return {key.lower(): html.unescape(value) for key, value in _ATTR_RE.findall(raw or "")}


def _split_summary(body: str):
    match = _SUMMARY_RE.match(body)
    if not match:
        return "", body
    return html.unescape(match.group(1).strip()), body[match.end():]


def _clean_reasoning(content: str) -> str:
    return _QUOTE_PREFIX_RE.sub("", content).strip()


def _think_block(tag: str, content: str, done: bool) -> ReasoningBlock:
    return ReasoningBlock(
        kind="think" if tag.lower() != "reasoning" else "reasoning",
        content=_clean_reasoning(content),
        done=done,
    )


def _details_block(attrs: Dict[str, str], body: str) -> ContentPart:
    kind = attrs.get("type", "reasoning").lower()
    done = attrs.get("done", "true").lower() != "false"
    summary, content = _split_summary(body)

    if kind == "tool_calls":
        return ToolCallBlock(
            id=attrs.get("id", ""),
            name=attrs.get("name", ""),
            arguments=_pretty_json(attrs.get("arguments", "")),
            result=_pretty_json(attrs.get("result", "")),
            done=done,
            files=_parse_files(attrs.get("files", "")),
            summary=summary,
        )

    try:
        duration = int(attrs.get("duration", "0") or 0)
    except ValueError:
        duration = 0
    return ReasoningBlock(
        kind=kind,
        summary=summary,
        content=_clean_reasoning(content),
        done=done,
        duration=max(duration, 0),
    )


def _pretty_json(value: str) -> str:
    """Indent *value* if it is JSON; otherwise return it unchanged."""
    stripped = value.strip()
    if not stripped or stripped[0] not in "[{\"":
        return value
    try:
        parsed = json.loads(stripped)
    except json.JSONDecodeError:
        return value
    # Results are often JSON-encoded twice
    if isinstance(parsed, str):
        return _pretty_json(parsed)
    return json.dumps(parsed, indent=2, ensure_ascii=False)


def _parse_files(value: str) -> List[str]:
    if not value.strip():
        return []
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    files = []
    for item in parsed:
        if isinstance(item, str):
            files.append(item)
        elif isinstance(item, dict):
            url = item.get("url") or item.get("name")
            if url:
                files.append(str(url))
    return files
