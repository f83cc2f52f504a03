# -*- coding: utf-8 -*-
"""
Markdown rendering entry points.

The pipeline for one pass::

    normalize -> split_annotations -> (per markdown part)
        LatexShield.extract -> document.parse -> BlockRenderer

Every pass builds a new visual tree and a new :class:`RenderScope` holding
the interaction handles of that tree. :class:`StreamingRenderer` re-renders a
growing message and releases the previous pass's handles first.
"""

import logging
from typing import List, NamedTuple, Optional

from chatmark.annotations import split_annotations
from chatmark.block_renderer import BlockRenderer, ImageBuilder
from chatmark.document import parse
from chatmark.inline_renderer import CopyCallback, InlineRenderer, LinkTapCallback
from chatmark.latex import LatexShield
from chatmark.models import ExtensionSet, MarkdownPart, ReasoningBlock, ToolCallBlock
from chatmark.preprocessor import normalize
from chatmark.scope import RenderScope
from chatmark.style import MarkdownStyle
from chatmark.visual import Collapsible, Column, ToolCall, VisualNode

logger = logging.getLogger(__name__)


class RenderResult(NamedTuple):
    tree: Column
    scope: RenderScope


class MarkdownRenderer:
    """Renders chat markdown into a visual tree."""

    def __init__(
        self,
        style: Optional[MarkdownStyle] = None,
        *,
        on_link_tap: Optional[LinkTapCallback] = None,
        on_copy: Optional[CopyCallback] = None,
        image_builder: Optional[ImageBuilder] = None,
        extensions: Optional[ExtensionSet] = None,
        normalize_input: bool = True,
    ):
        self.style = style or MarkdownStyle.light()
        self.on_link_tap = on_link_tap
        self.on_copy = on_copy
        self.image_builder = image_builder
        self.extensions = extensions or ExtensionSet.github_web()
        self.normalize_input = normalize_input

    def render(self, data: str, scope: Optional[RenderScope] = None) -> RenderResult:
        scope = scope or RenderScope()
        content = normalize(data, self.extensions) if self.normalize_input else (data or "")

        children: List[VisualNode] = []
        for part in split_annotations(content):
            if isinstance(part, MarkdownPart):
                children.extend(self._render_markdown(part.text, scope).children)
            elif isinstance(part, ReasoningBlock):
                children.append(self._render_reasoning(part, scope))
            elif isinstance(part, ToolCallBlock):
                children.append(ToolCall(
                    name=part.name,
                    arguments=part.arguments,
                    result=part.result,
                    done=part.done,
                    files=part.files,
                ))
        return RenderResult(Column(children=children), scope)

    def _render_markdown(self, text: str, scope: RenderScope) -> Column:
        shield = LatexShield()
        shielded = shield.extract(text)
        nodes = parse(shielded, self.extensions)

        inline = InlineRenderer(self.style, shield, scope, self.on_link_tap, self.on_copy)
        blocks = BlockRenderer(self.style, inline, shield, self.image_builder)
        return blocks.render_blocks(nodes)

    def _render_reasoning(self, block: ReasoningBlock, scope: RenderScope) -> Collapsible:
        body = self._render_markdown(block.content, scope) if block.content else Column()
        return Collapsible(
            title=block.display_title(),
            body=body,
            done=block.done,
            annotation=block.kind,
        )


def render_markdown(data: str, style: Optional[MarkdownStyle] = None, **kwargs) -> RenderResult:
    """One-shot render with a fresh :class:`MarkdownRenderer`."""
    return MarkdownRenderer(style, **kwargs).render(data)


class StreamingRenderer:
    """
    Re-renders a message as it streams in.

    Each pass gets a new scope; the previous scope is released before the
    next tree is built, so only the current tree's handles are live.
    """

    def __init__(self, renderer: Optional[MarkdownRenderer] = None):
        self.renderer = renderer or MarkdownRenderer()
        self._content: Optional[str] = None
        self._result: Optional[RenderResult] = None
        self.passes = 0

    @property
    def content(self) -> str:
        return self._content or ""

    @property
    def tree(self) -> Column:
        return self._result.tree if self._result else Column()

    @property
    def scope(self) -> Optional[RenderScope]:
        return self._result.scope if self._result else None

    def update(self, content: str) -> RenderResult:
        """Render *content* unless it equals what was rendered last."""
        if self._result is not None and content == self._content:
            return self._result
        return self.replace(content)

    def append(self, chunk: str) -> RenderResult:
        return self.update(self.content + chunk)

    def replace(self, content: str) -> RenderResult:
        """Always re-render, e.g. when the message was edited."""
        self._release_current()
        self._content = content
        self._result = self.renderer.render(content)
        self.passes += 1
        return self._result

    def close(self) -> None:
        self._release_current()

    def _release_current(self) -> None:
        if self._result is not None:
            self._result.scope.release()
