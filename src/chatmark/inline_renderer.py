# -*- coding: utf-8 -*-
"""
Inline rendering: AST inline nodes to a flat list of styled spans.

Formatting tags (strong, em, del) derive a child style from the current one
and recurse. Text nodes are checked for LaTeX placeholders and split into
text and math spans. Links and inline code get interaction handles from
the render scope.
"""

import logging
from typing import Callable, List, Optional, Sequence

from chatmark.document import InlineTag, Node
from chatmark.latex import LatexShield
from chatmark.scope import HANDLE_COPY, HANDLE_LINK, RenderScope
from chatmark.style import MarkdownStyle, TextStyle
from chatmark.visual import CodeSpan, InlineSpan, MathSpan, TextSpan

logger = logging.getLogger(__name__)

LinkTapCallback = Callable[[str, str], None]
CopyCallback = Callable[[str], None]


class InlineRenderer:
    """Renders inline AST nodes into spans for one render pass."""

    def __init__(
        self,
        style: MarkdownStyle,
        shield: LatexShield,
        scope: RenderScope,
        on_link_tap: Optional[LinkTapCallback] = None,
        on_copy: Optional[CopyCallback] = None,
    ):
        self.style = style
        self.shield = shield
        self.scope = scope
        self.on_link_tap = on_link_tap
        self.on_copy = on_copy

    def with_shield(self, shield: LatexShield) -> "InlineRenderer":
        """Same callbacks and scope, different placeholder map."""
        return InlineRenderer(self.style, shield, self.scope, self.on_link_tap, self.on_copy)

    def render(self, nodes: Sequence[Node], parent_style: Optional[TextStyle] = None) -> List[InlineSpan]:
        current = parent_style or self.style.body
        spans: List[InlineSpan] = []
        for node in nodes:
            spans.extend(self._render_node(node, current))
        return spans

    def _render_node(self, node: Node, current: TextStyle) -> List[InlineSpan]:
        tag = InlineTag.from_tag(node.tag)

        if tag is InlineTag.TEXT:
            return self._render_text(node.text or "", current)
        if tag is InlineTag.STRONG:
            return self.render(node.children or [], current.copy_with(font_weight=700))
        if tag is InlineTag.EM:
            return self.render(node.children or [], current.copy_with(italic=True))
        if tag is InlineTag.DEL:
            return self.render(node.children or [], current.copy_with(strikethrough=True))
        if tag is InlineTag.CODE:
            return [self._render_code(node)]
        if tag is InlineTag.LINK:
            return self._render_link(node, current)
        if tag is InlineTag.IMG:
            alt = node.attributes.get("alt", "")
            return [TextSpan(text=alt, style=current)] if alt else []
        if tag is InlineTag.BR:
            return [TextSpan(text="\n", style=current)]

        if node.children:
            return self.render(node.children, current)
        return self._render_text(node.text_content, current)

    def _render_text(self, text: str, current: TextStyle) -> List[InlineSpan]:
        if not text:
            return []
        if not self.shield.contains_placeholder(text):
            return [TextSpan(text=text, style=current)]

        spans: List[InlineSpan] = []
        for segment in self.shield.split_on_placeholders(text):
            if segment.is_math:
                spans.append(MathSpan(tex=segment.content, is_block=segment.is_block, style=current))
            elif segment.content:
                spans.append(TextSpan(text=segment.content, style=current))
        return spans

    def _render_code(self, node: Node) -> CodeSpan:
        code = self.shield.restore(node.text_content)
        handle = self.scope.create_handle(HANDLE_COPY, self.on_copy, code)
        return CodeSpan(code=code, style=self.style.code_span, copy_handle=handle)

    def _render_link(self, node: Node, current: TextStyle) -> List[InlineSpan]:
        href = node.attributes.get("href", "")
        title = node.attributes.get("title", "")
        handle = self.scope.create_handle(HANDLE_LINK, self.on_link_tap, href, title)
        link_style = current.copy_with(color=self.style.link_color, underline=True)

        children = node.children or [Node.text_node(href)]
        spans = self.render(children, link_style)
        return [span.model_copy(update={"link": handle}) for span in spans]
