# -*- coding: utf-8 -*-
"""
Visual tree → HTML for QTextBrowser.

Qt's rich text engine understands a subset of HTML 4 with inline CSS, so
every element carries its own ``style`` attribute. Interaction handles are
emitted as ``<a href="link:N">`` / ``<a href="copy:N">`` anchors; the widget
resolves them through the render scope.
"""

from html import escape
from typing import Callable, Dict, List, Optional, Sequence, Type

from chatmark.math_text import latex_to_unicode
from chatmark.preprocessor import soften_inline_code
from chatmark.style import MONOSPACE_FONT, MarkdownStyle, TextStyle
from chatmark.visual import (
    Alert, Blockquote, CodeBlock, CodeSpan, Collapsible, Column, Divider, Empty,
    Heading, Image, ImageError, InlineSpan, ListBlock, ListItem, MathSpan,
    RichText, Table, TextSpan, ToolCall, VisualNode,
)

_MATH_FONT = "'Cambria Math','Times New Roman',serif"


def to_html(node: VisualNode, style: MarkdownStyle, chunk_size: int = 24) -> str:
    """Convert a visual tree to inline-styled HTML."""
    return _HtmlWriter(style, chunk_size).block(node)


def spans_to_html(spans: Sequence[InlineSpan], style: MarkdownStyle, chunk_size: int = 24) -> str:
    return _HtmlWriter(style, chunk_size).spans(spans)


def _css(text_style: TextStyle, base: TextStyle) -> str:
    """CSS declarations where *text_style* differs from *base*."""
    rules = []
    if text_style.font_size != base.font_size:
        rules.append(f"font-size:{text_style.font_size:g}px;")
    if text_style.font_weight != base.font_weight:
        rules.append("font-weight:bold;" if text_style.bold else f"font-weight:{text_style.font_weight};")
    if text_style.italic and not base.italic:
        rules.append("font-style:italic;")
    decorations = []
    if text_style.underline:
        decorations.append("underline")
    if text_style.strikethrough:
        decorations.append("line-through")
    if decorations:
        rules.append(f"text-decoration:{' '.join(decorations)};")
    if text_style.color != base.color:
        rules.append(f"color:{text_style.color};")
    if text_style.font_family and text_style.font_family != base.font_family:
        rules.append(f"font-family:{text_style.font_family};")
    return " ".join(rules)


def _text_html(text: str) -> str:
    return escape(text, quote=False).replace("\n", "<br>")


class _HtmlWriter:
    def __init__(self, style: MarkdownStyle, chunk_size: int):
        self.style = style
        self.chunk_size = chunk_size
        self._handlers: Dict[Type[VisualNode], Callable[[VisualNode], str]] = {
            Column: self._column,
            Empty: lambda node: "",
            RichText: self._rich_text,
            Heading: self._heading,
            CodeBlock: self._code_block,
            Blockquote: self._blockquote,
            ListBlock: self._list,
            ListItem: self._list_item,
            Table: self._table,
            Divider: self._divider,
            Alert: self._alert,
            Image: self._image,
            ImageError: self._image_error,
            Collapsible: self._collapsible,
            ToolCall: self._tool_call,
        }

    def block(self, node: VisualNode) -> str:
        handler = self._handlers.get(type(node))
        if handler is None:
            return "".join(self.block(child) for child in node.child_nodes())
        return handler(node)

    # -- Inline --

    def spans(self, spans: Sequence[InlineSpan], base: Optional[TextStyle] = None) -> str:
        base = base or self.style.body
        parts: List[str] = []
        for span in spans:
            html = self._span(span, base)
            if span.link is not None:
                html = f'<a href="{span.link.anchor}" style="color:{self.style.link_color};">{html}</a>'
            parts.append(html)
        return "".join(parts)

    def _span(self, span: InlineSpan, base: TextStyle) -> str:
        if isinstance(span, TextSpan):
            css = _css(span.style, base)
            text = _text_html(span.text)
            return f'<span style="{css}">{text}</span>' if css else text
        if isinstance(span, MathSpan):
            rendered = escape(latex_to_unicode(span.tex), quote=False)
            if span.is_block:
                return (
                    f'<div style="background:{self.style.surface_container}; '
                    f'border:1px solid {self.style.divider_color}; border-radius:6px; '
                    f'padding:10px 14px; margin:8px 0; text-align:center; '
                    f'font-family:{_MATH_FONT}; font-size:{base.font_size:g}px;">{rendered}</div>'
                )
            return f'<span style="font-family:{_MATH_FONT};">{rendered}</span>'
        if isinstance(span, CodeSpan):
            code = escape(soften_inline_code(span.code, self.chunk_size), quote=False)
            html = (
                f'<code style="background:{self.style.code_span_background}; padding:2px 5px; '
                f'border-radius:{self.style.code_span_radius:g}px; font-family:{MONOSPACE_FONT}; '
                f'font-size:{span.style.font_size:g}px; color:{span.style.color};">{code}</code>'
            )
            if span.copy_handle is not None and span.link is None:
                html = f'<a href="{span.copy_handle.anchor}" style="text-decoration:none;">{html}</a>'
            return html
        return ""

    # -- Blocks --

    def _column(self, node: Column) -> str:
        return "".join(self.block(child) for child in node.children)

    def _rich_text(self, node: RichText) -> str:
        return f'<div style="margin:{node.spacing:g}px 0;">{self.spans(node.spans)}</div>'

    def _heading(self, node: Heading) -> str:
        heading = self.style.heading_style(node.level)
        return (
            f'<div style="font-size:{heading.font_size:g}px; font-weight:bold; '
            f'margin:{node.top_spacing:g}px 0 {node.bottom_spacing:g}px 0; color:{heading.color};">'
            f"{self.spans(node.spans, heading)}</div>"
        )

    def _code_block(self, node: CodeBlock) -> str:
        lang_label = (
            f'<div style="font-size:9px; color:#999; margin-bottom:4px;">{escape(node.language)}</div>'
            if node.language else ""
        )
        return (
            f'<div style="background:{self.style.code_block_background}; color:{node.style.color}; '
            f"padding:10px 12px; border-radius:{self.style.code_block_radius:g}px; "
            f"font-family:{MONOSPACE_FONT}; font-size:{node.style.font_size:g}px; "
            f"white-space:pre-wrap; margin:{self.style.code_block_spacing:g}px 0; "
            f'border:1px solid {self.style.code_block_border};">'
            f"{lang_label}{escape(node.code, quote=False)}</div>"
        )

    def _blockquote(self, node: Blockquote) -> str:
        return (
            f'<div style="border-left:3px solid {node.border_color or self.style.blockquote_border_color}; '
            f"padding-left:12px; color:{self.style.blockquote_text.color}; "
            f'margin:{self.style.blockquote_spacing:g}px 0; font-style:italic;">'
            f"{self.block(node.body)}</div>"
        )

    def _list(self, node: ListBlock) -> str:
        items = "".join(self._list_item(item) for item in node.items)
        return f'<table cellspacing="0" cellpadding="0" style="margin:4px 0 4px 8px;">{items}</table>'

    def _list_item(self, node: ListItem) -> str:
        return (
            f'<tr><td style="padding-right:6px; vertical-align:top;">{escape(node.marker)}</td>'
            f'<td style="padding:{self.style.list_item_spacing:g}px 0;">{self.block(node.content)}</td></tr>'
        )

    def _table(self, node: Table) -> str:
        border = self.style.table_border_color
        cell_css = f"border:1px solid {border}; padding:6px 10px;"
        header_css = f"{cell_css} font-weight:bold; background-color:{self.style.table_header_background};"

        html = (
            '<table border="1" cellpadding="6" cellspacing="0" '
            f'style="border-collapse:collapse; border:1px solid {border}; '
            f'margin:{self.style.table_spacing:g}px 0; width:auto;">'
        )
        html += "<tr>"
        for cell in node.columns:
            html += (
                f'<td style="{header_css} text-align:{cell.alignment};">'
                f"{self.spans(cell.spans, self.style.table_header)}</td>"
            )
        html += "</tr>"
        for row in node.rows:
            html += "<tr>"
            for index, cell in enumerate(row.cells):
                align = node.columns[index].alignment
                html += (
                    f'<td style="{cell_css} text-align:{align};">'
                    f"{self.spans(cell.spans, self.style.table_cell)}</td>"
                )
            html += "</tr>"
        return html + "</table>"

    def _divider(self, node: Divider) -> str:
        color = node.color or self.style.divider_color
        return f'<hr style="border:none; border-top:1px solid {color}; margin:10px 0;">'

    def _alert(self, node: Alert) -> str:
        return (
            f'<div style="border-left:3px solid {node.color}; padding-left:12px; '
            f'margin:{self.style.blockquote_spacing:g}px 0;">'
            f'<div style="font-weight:bold; color:{node.color};">{node.icon} {escape(node.label)}</div>'
            f"{self.block(node.body)}</div>"
        )

    def _image(self, node: Image) -> str:
        label = escape(node.alt or node.src)
        return f'<a href="{escape(node.src)}" style="color:{self.style.link_color};">[Image: {label}]</a>'

    def _image_error(self, node: ImageError) -> str:
        return (
            f'<div style="color:#c0392b; font-size:11px;">'
            f"Image unavailable: {escape(node.src)}</div>"
        )

    def _collapsible(self, node: Collapsible) -> str:
        return self._framed(f"💭 {escape(node.title)}", self.block(node.body))

    def _tool_call(self, node: ToolCall) -> str:
        body = ""
        if node.arguments:
            body += self._pre(node.arguments)
        if node.result:
            body += self._pre(node.result)
        return self._framed(escape(node.title), body)

    def _pre(self, text: str) -> str:
        return (
            f'<div style="font-family:{MONOSPACE_FONT}; font-size:11px; white-space:pre-wrap; '
            f'color:{self.style.text_secondary}; margin:4px 0;">{escape(text, quote=False)}</div>'
        )

    def _framed(self, title: str, body: str) -> str:
        return (
            f'<div style="border:1px solid {self.style.divider_color}; border-radius:6px; '
            f'background:{self.style.surface_container}; padding:6px 10px; margin:6px 0;">'
            f'<div style="font-weight:bold; color:{self.style.text_secondary};">{title}</div>'
            f"{body}</div>"
        )
