# -*- coding: utf-8 -*-
"""
Style tokens for the markdown renderer.

All colors, text styles and spacing values needed to render markdown
elements live in one immutable :class:`MarkdownStyle`, resolved once per
render pass. The renderer only reads from it.
"""

from typing import TYPE_CHECKING, Literal, Optional

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from chatmark.models import RendererConfig


class TextStyle(BaseModel):
    """Immutable text style; derive variants with :meth:`copy_with`."""
    model_config = ConfigDict(frozen=True)

    font_size: float = 14
    font_weight: int = 400
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    color: str = "#333333"
    background: Optional[str] = None
    font_family: Optional[str] = None
    line_height: float = 1.5

    @property
    def bold(self) -> bool:
        return self.font_weight >= 600

    def copy_with(self, **changes) -> "TextStyle":
        """Return a copy with the given attributes replaced."""
        return self.model_copy(update=changes)


MONOSPACE_FONT = "Consolas, 'Courier New', monospace"


class MarkdownStyle(BaseModel):
    """Per-element style configuration for markdown rendering."""
    model_config = ConfigDict(frozen=True)

    is_dark: bool = False

    # Text styles
    body: TextStyle
    h1: TextStyle
    h2: TextStyle
    h3: TextStyle
    h4: TextStyle
    h5: TextStyle
    h6: TextStyle
    code_span: TextStyle
    code_block: TextStyle
    blockquote_text: TextStyle
    table_header: TextStyle
    table_cell: TextStyle

    # Spacing (chat-optimized, tight)
    paragraph_spacing: float = 4
    heading_top_spacing: float = 8
    heading_bottom_spacing: float = 4
    list_item_spacing: float = 2
    code_block_spacing: float = 4
    blockquote_spacing: float = 4
    table_spacing: float = 4

    # Colors
    code_span_background: str
    code_block_background: str
    code_block_border: str
    blockquote_border_color: str
    table_border_color: str
    table_header_background: str
    link_color: str
    divider_color: str
    text_primary: str
    text_secondary: str
    surface_container: str

    # Shapes
    code_block_radius: float = 6
    code_span_radius: float = 3
    table_radius: float = 4

    def heading_style(self, level: int) -> TextStyle:
        """Heading style for level 1-6; anything else falls back to body."""
        return {
            1: self.h1, 2: self.h2, 3: self.h3,
            4: self.h4, 5: self.h5, 6: self.h6,
        }.get(level, self.body)

    @classmethod
    def light(cls, base_font_size: float = 14) -> "MarkdownStyle":
        return cls._build(dark=False, base=base_font_size)

    @classmethod
    def dark(cls, base_font_size: float = 14) -> "MarkdownStyle":
        return cls._build(dark=True, base=base_font_size)

    @classmethod
    def from_theme(
        cls,
        theme: Literal["light", "dark"] = "light",
        base_font_size: float = 14,
    ) -> "MarkdownStyle":
        return cls._build(dark=theme == "dark", base=base_font_size)

    @classmethod
    def from_config(cls, config: "RendererConfig") -> "MarkdownStyle":
        return cls.from_theme(config.theme, config.base_font_size)

    @classmethod
    def _build(cls, dark: bool, base: float) -> "MarkdownStyle":
        text_primary = "#e6e6e6" if dark else "#333333"
        text_secondary = "#a0a0a0" if dark else "#555555"
        divider = "#444444" if dark else "#cccccc"
        code_bg = "#2b2b2b" if dark else "#f0f0f0"
        # Inline code highlight: red-on-gray like common chat UIs
        code_span_text = "#e06c75" if dark else "#eb5757"

        body = TextStyle(font_size=base, color=text_primary)
        mono = TextStyle(
            font_size=base - 2,
            font_family=MONOSPACE_FONT,
            color=text_primary,
        )

        def heading(scale: float, weight: int = 600, color: str = text_primary) -> TextStyle:
            return TextStyle(
                font_size=round(base * scale, 1),
                font_weight=weight,
                color=color,
                line_height=1.3,
            )

        return cls(
            is_dark=dark,
            body=body,
            h1=heading(1.45, weight=700),
            h2=heading(1.25),
            h3=heading(1.1),
            h4=heading(1.0),
            h5=heading(0.95),
            h6=heading(0.85, color=text_secondary),
            code_span=mono.copy_with(color=code_span_text),
            code_block=mono.copy_with(color="#f8f8f2"),
            blockquote_text=body.copy_with(color=text_secondary, italic=True),
            table_header=TextStyle(font_size=base - 1, font_weight=600, color=text_primary, line_height=1.4),
            table_cell=TextStyle(font_size=base - 1, color=text_primary, line_height=1.4),
            code_span_background=code_bg,
            code_block_background="#1e1e1e" if dark else "#2d2d2d",
            code_block_border="#3c3c3c" if dark else "#555555",
            blockquote_border_color=divider,
            table_border_color=divider,
            table_header_background=code_bg,
            link_color="#58a6ff" if dark else "#2980b9",
            divider_color=divider,
            text_primary=text_primary,
            text_secondary=text_secondary,
            surface_container="#252526" if dark else "#f0f4f8",
        )
