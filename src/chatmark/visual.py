# -*- coding: utf-8 -*-
"""
Visual tree produced by the renderers.

Block nodes describe layout (columns, headings, code blocks, tables, ...),
inline spans describe styled runs of text inside them. The tree is rebuilt
from scratch on every render pass and never mutated afterwards.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chatmark.scope import InteractionHandle
from chatmark.style import TextStyle


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


# ---------------------------------------------------------------------------
# Inline spans
# ---------------------------------------------------------------------------

class InlineSpan(_Frozen):
    link: Optional[InteractionHandle] = None

    @property
    def plain_text(self) -> str:
        return ""


class TextSpan(InlineSpan):
    kind: Literal["text"] = "text"
    text: str
    style: TextStyle

    @property
    def plain_text(self) -> str:
        return self.text


class MathSpan(InlineSpan):
    kind: Literal["math"] = "math"
    tex: str
    is_block: bool = False
    style: TextStyle

    @property
    def plain_text(self) -> str:
        return self.tex


class CodeSpan(InlineSpan):
    kind: Literal["code"] = "code"
    code: str
    style: TextStyle
    copy_handle: Optional[InteractionHandle] = None

    @property
    def plain_text(self) -> str:
        return self.code


Span = Union[TextSpan, MathSpan, CodeSpan]


def spans_text(spans: List[InlineSpan]) -> str:
    """Concatenated plain text of *spans*."""
    return "".join(span.plain_text for span in spans)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class VisualNode(_Frozen):
    def iter_tree(self):
        """Yield this node and every descendant block, depth first."""
        yield self
        for child in self.child_nodes():
            yield from child.iter_tree()

    def child_nodes(self) -> List["VisualNode"]:
        return []


class Empty(VisualNode):
    kind: Literal["empty"] = "empty"


class Column(VisualNode):
    kind: Literal["column"] = "column"
    children: List[VisualNode] = Field(default_factory=list)

    def child_nodes(self) -> List[VisualNode]:
        return list(self.children)


class RichText(VisualNode):
    kind: Literal["rich_text"] = "rich_text"
    spans: List[Span] = Field(default_factory=list)
    spacing: float = 0

    @property
    def text(self) -> str:
        return spans_text(self.spans)


class Heading(VisualNode):
    kind: Literal["heading"] = "heading"
    level: int
    spans: List[Span] = Field(default_factory=list)
    top_spacing: float = 0
    bottom_spacing: float = 0

    @property
    def text(self) -> str:
        return spans_text(self.spans)


class CodeBlock(VisualNode):
    kind: Literal["code_block"] = "code_block"
    code: str
    language: str = ""
    style: TextStyle


class Blockquote(VisualNode):
    kind: Literal["blockquote"] = "blockquote"
    body: Column
    border_color: str = ""

    def child_nodes(self) -> List[VisualNode]:
        return [self.body]


class ListItem(VisualNode):
    kind: Literal["list_item"] = "list_item"
    marker: str
    content: VisualNode

    def child_nodes(self) -> List[VisualNode]:
        return [self.content]


class ListBlock(VisualNode):
    kind: Literal["list"] = "list"
    ordered: bool = False
    start: int = 1
    items: List[ListItem] = Field(default_factory=list)

    def child_nodes(self) -> List[VisualNode]:
        return list(self.items)


class TableCell(_Frozen):
    spans: List[Span] = Field(default_factory=list)
    alignment: Literal["left", "center", "right"] = "left"
    header: bool = False

    @property
    def text(self) -> str:
        return spans_text(self.spans)


class TableRow(_Frozen):
    cells: List[TableCell] = Field(default_factory=list)


class Table(VisualNode):
    kind: Literal["table"] = "table"
    columns: List[TableCell]
    rows: List[TableRow] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_row_lengths(self) -> "Table":
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row.cells) != width:
                raise ValueError(f"Row {index} has {len(row.cells)} cells, expected {width}")
        return self


class Divider(VisualNode):
    kind: Literal["divider"] = "divider"
    color: str = ""


class Alert(VisualNode):
    kind: Literal["alert"] = "alert"
    alert_type: str
    label: str
    icon: str
    color: str
    body: Column

    def child_nodes(self) -> List[VisualNode]:
        return [self.body]


class Image(VisualNode):
    kind: Literal["image"] = "image"
    src: str
    alt: str = ""
    title: str = ""


class ImageError(VisualNode):
    kind: Literal["image_error"] = "image_error"
    src: str
    reason: str = ""


class Collapsible(VisualNode):
    """Reasoning section, collapsed by default."""
    kind: Literal["collapsible"] = "collapsible"
    title: str
    body: Column
    done: bool = True
    annotation: str = "reasoning"

    def child_nodes(self) -> List[VisualNode]:
        return [self.body]


class ToolCall(VisualNode):
    kind: Literal["tool_call"] = "tool_call"
    name: str
    arguments: str = ""
    result: str = ""
    done: bool = True
    files: List[str] = Field(default_factory=list)

    @property
    def title(self) -> str:
        name = self.name or "tool"
        return f"🔧 {name}" if self.done else f"⏳ {name}…"

