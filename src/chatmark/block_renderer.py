# -*- coding: utf-8 -*-
"""
Block rendering: AST block nodes to visual blocks.

Dispatches on the block tag (headings, code blocks, blockquotes, lists,
tables, alerts, images, ...) and hands inline content to the
:class:`~chatmark.inline_renderer.InlineRenderer`. Unknown tags fall back to
their children, so no input makes the renderer raise.
"""

import logging
from typing import Callable, List, NamedTuple, Optional, Sequence
from urllib.parse import urlparse

from chatmark.document import (
    ALERT_MARKER_RE, ALERT_TYPES, BLOCK_LEVEL_TAGS, BlockTag, Node, leading_text,
)
from chatmark.inline_renderer import InlineRenderer
from chatmark.latex import LatexShield
from chatmark.style import MarkdownStyle, TextStyle
from chatmark.visual import (
    Alert, Blockquote, CodeBlock, Column, Divider, Empty, Heading, Image, ImageError,
    ListBlock, ListItem, RichText, Table, TableCell, TableRow, VisualNode,
)

logger = logging.getLogger(__name__)

ImageBuilder = Callable[[str, str, str], VisualNode]

_IMAGE_SCHEMES = {"http", "https", "data", "file", ""}


class _AlertConfig(NamedTuple):
    color: str
    icon: str
    label: str


_ALERTS = {
    "note": _AlertConfig("#0969da", "ℹ️", "Note"),
    "tip": _AlertConfig("#1a7f37", "💡", "Tip"),
    "important": _AlertConfig("#8250df", "❗", "Important"),
    "warning": _AlertConfig("#bf8700", "⚠️", "Warning"),
    "caution": _AlertConfig("#cf222e", "🛑", "Caution"),
}


class BlockRenderer:
    """Renders block-level AST nodes for one render pass."""

    def __init__(
        self,
        style: MarkdownStyle,
        inline_renderer: InlineRenderer,
        shield: LatexShield,
        image_builder: Optional[ImageBuilder] = None,
        text_style: Optional[TextStyle] = None,
    ):
        self.style = style
        self.inline = inline_renderer
        self.shield = shield
        self.image_builder = image_builder
        self.text_style = text_style or style.body

    def nested(self, text_style: Optional[TextStyle] = None) -> "BlockRenderer":
        """Fresh renderer for a nested container (blockquote, alert)."""
        return BlockRenderer(
            self.style, self.inline, self.shield, self.image_builder,
            text_style or self.text_style,
        )

    # -- Entry points --

    def render_blocks(self, nodes: Sequence[Node]) -> Column:
        """
        Render a list of nodes into a column.

        Consecutive inline nodes (text, strong, links, ...) are grouped into
        a single rich text block. Tight list items mix them with nested
        lists, so both kinds can appear side by side.
        """
        children: List[VisualNode] = []
        pending: List[Node] = []

        def flush() -> None:
            if pending:
                spans = self.inline.render(pending, self.text_style)
                if spans:
                    children.append(RichText(spans=spans))
                pending.clear()

        for node in nodes:
            if self._is_inline(node):
                pending.append(node)
                continue
            flush()
            block = self.render_block(node)
            if block is not None and not isinstance(block, Empty):
                children.append(block)
        flush()
        return Column(children=children)

    def render_block(self, node: Node) -> Optional[VisualNode]:
        tag = BlockTag.from_tag(node.tag)

        if tag is BlockTag.PARAGRAPH:
            return self._render_paragraph(node)
        if tag.heading_level:
            return self._render_heading(node, tag.heading_level)
        if tag is BlockTag.PRE:
            return self._render_code_block(node)
        if tag is BlockTag.BLOCKQUOTE:
            return self._render_blockquote(node)
        if tag is BlockTag.UL:
            return self._render_list(node, ordered=False)
        if tag is BlockTag.OL:
            return self._render_list(node, ordered=True)
        if tag is BlockTag.LI:
            return self._render_list_item_content(node)
        if tag is BlockTag.TABLE:
            return self._render_table(node)
        if tag is BlockTag.HR:
            return Divider(color=self.style.divider_color)
        if tag is BlockTag.DIV:
            return self._render_div(node)
        if tag is BlockTag.SECTION:
            return self._render_section(node)
        if tag is BlockTag.IMG:
            return self._render_image(node)
        return self._render_fallback(node)

    # -- Paragraphs and headings --

    def _render_paragraph(self, node: Node) -> Optional[VisualNode]:
        children = node.children or []
        if len(children) == 1 and children[0].tag == "img":
            return self._render_image(children[0])
        spans = self.inline.render(children, self.text_style)
        if not spans:
            return None
        return RichText(spans=spans, spacing=self.style.paragraph_spacing)

    def _render_heading(self, node: Node, level: int) -> Heading:
        spans = self.inline.render(node.children or [], self.style.heading_style(level))
        return Heading(
            level=level,
            spans=spans,
            top_spacing=self.style.heading_top_spacing,
            bottom_spacing=self.style.heading_bottom_spacing,
        )

    # -- Code --

    def _render_code_block(self, node: Node) -> CodeBlock:
        code_node = next((child for child in node.children or [] if child.tag == "code"), None)
        language = ""
        if code_node is not None:
            for cls in code_node.attributes.get("class", "").split():
                if cls.startswith("language-"):
                    language = cls[len("language-"):]
                    break
            code = code_node.text_content
        else:
            code = node.text_content
        return CodeBlock(
            code=self.shield.restore(code),
            language=language,
            style=self.style.code_block,
        )

    # -- Blockquote and alerts --

    def _render_blockquote(self, node: Node) -> Blockquote:
        inner = self.nested(self.style.blockquote_text)
        return Blockquote(
            body=inner.render_blocks(node.children or []),
            border_color=self.style.blockquote_border_color,
        )

    def _render_div(self, node: Node) -> Optional[VisualNode]:
        cls = node.attributes.get("class", "")
        if "markdown-alert" in cls:
            return self._render_alert(node, cls)
        return self._render_fallback(node)

    def _render_alert(self, node: Node, cls: str) -> Alert:
        alert_type = _alert_type_from_class(cls)
        body_nodes: List[Node] = []
        marker_seen = False

        for child in node.children or []:
            if not marker_seen and child.tag == "p":
                marker_seen = True
                found, remaining = _strip_alert_marker(child)
                if found:
                    alert_type = found
                if remaining is not None:
                    body_nodes.append(remaining)
            else:
                body_nodes.append(child)

        config = _ALERTS.get(alert_type, _ALERTS["note"])
        return Alert(
            alert_type=alert_type,
            label=config.label,
            icon=config.icon,
            color=config.color,
            body=self.nested().render_blocks(body_nodes),
        )

    # -- Lists --

    def _render_list(self, node: Node, ordered: bool) -> ListBlock:
        start = 1
        if ordered:
            raw_start = node.attributes.get("start", "1")
            try:
                start = int(raw_start)
            except ValueError:
                logger.debug(f"Invalid ordered list start {raw_start!r}, using 1")
                start = 1

        items: List[ListItem] = []
        number = start
        for child in node.children or []:
            if child.tag != "li":
                continue
            marker = f"{number}." if ordered else "•"
            items.append(ListItem(marker=marker, content=self._render_list_item_content(child)))
            number += 1
        return ListBlock(ordered=ordered, start=start, items=items)

    def _render_list_item_content(self, node: Node) -> VisualNode:
        children = node.children or []
        if any(child.tag in BLOCK_LEVEL_TAGS for child in children):
            return self.render_blocks(children)
        return RichText(
            spans=self.inline.render(children, self.text_style),
            spacing=self.style.list_item_spacing,
        )

    # -- Tables --

    def _render_table(self, node: Node) -> Optional[Table]:
        header_rows: List[Node] = []
        body_rows: List[Node] = []
        for section in node.children or []:
            if section.tag == "thead":
                header_rows.extend(row for row in section.children or [] if row.tag == "tr")
            elif section.tag == "tbody":
                body_rows.extend(row for row in section.children or [] if row.tag == "tr")
            elif section.tag == "tr":
                body_rows.append(section)

        if not header_rows and body_rows:
            header_rows = [body_rows.pop(0)]
        if not header_rows:
            return None

        columns = self._render_cells(header_rows[0], self.style.table_header, header=True)
        if not columns:
            return None
        width = len(columns)

        rows: List[TableRow] = []
        for index, row in enumerate(body_rows):
            cells = self._render_cells(row, self.style.table_cell)
            if len(cells) < width:
                logger.debug(f"Table row {index}: padding {len(cells)} cell(s) to {width}")
                cells.extend(TableCell() for _ in range(width - len(cells)))
            elif len(cells) > width:
                logger.debug(f"Table row {index}: truncating {len(cells)} cell(s) to {width}")
                cells = cells[:width]
            rows.append(TableRow(cells=cells))
        return Table(columns=columns, rows=rows)

    def _render_cells(self, row: Node, text_style: TextStyle, header: bool = False) -> List[TableCell]:
        cells: List[TableCell] = []
        for cell in row.children or []:
            if cell.tag not in ("th", "td"):
                continue
            alignment = cell.attributes.get("align", "left")
            if alignment not in ("left", "center", "right"):
                alignment = "left"
            cells.append(TableCell(
                spans=self.inline.render(cell.children or [], text_style),
                alignment=alignment,
                header=header,
            ))
        return cells

    # -- Sections, images, fallback --

    def _render_section(self, node: Node) -> Optional[Column]:
        if not node.children:
            return None
        return self.render_blocks(node.children)

    def _render_image(self, node: Node) -> Optional[VisualNode]:
        src = node.attributes.get("src", "").strip()
        if not src:
            return None
        alt = node.attributes.get("alt", "")
        title = node.attributes.get("title", "")

        if self.image_builder is not None:
            try:
                return self.image_builder(src, alt, title)
            except Exception as e:
                logger.error(f"Image builder failed for {src}: {e}")
                return ImageError(src=src, reason=str(e))

        try:
            scheme = urlparse(src).scheme.lower()
        except ValueError as e:
            return ImageError(src=src, reason=str(e))
        if scheme not in _IMAGE_SCHEMES:
            return ImageError(src=src, reason=f"Unsupported scheme: {scheme}")
        return Image(src=src, alt=alt, title=title)

    def _render_fallback(self, node: Node) -> VisualNode:
        if node.children:
            return self.render_blocks(node.children)
        text = node.text_content
        if text.strip():
            return RichText(spans=self.inline.render([Node.text_node(text)], self.text_style))
        return Empty()

    @staticmethod
    def _is_inline(node: Node) -> bool:
        if node.is_text:
            return True
        return node.tag not in BLOCK_LEVEL_TAGS and node.tag not in ("li", "html", "img")


def _alert_type_from_class(cls: str) -> str:
    for alert_type in ALERT_TYPES:
        if f"markdown-alert-{alert_type}" in cls:
            return alert_type
    return "note"


def _strip_alert_marker(paragraph: Node):
    """
    Split a leading ``[!TYPE]`` marker off *paragraph*.

    Returns ``(alert_type or None, remaining paragraph or None)``. Inline
    formatting after the marker is preserved.
    """
    children = list(paragraph.children or [])
    leading = 0
    while leading < len(children) and children[leading].is_text:
        leading += 1
    if not leading:
        return None, paragraph

    text = leading_text(paragraph)
    match = ALERT_MARKER_RE.match(text)
    if not match:
        return None, paragraph

    rest = text[match.end():]
    remaining = [Node.text_node(rest)] if rest.strip() else []
    remaining.extend(children[leading:])
    # Line break that ended the marker line
    while remaining and remaining[0].tag == "br":
        remaining.pop(0)
    if not remaining:
        return match.group(1).lower(), None
    return match.group(1).lower(), Node.element("p", remaining)
