# -*- coding: utf-8 -*-
"""
Markdown document parsing.

Wraps markdown-it-py and converts its syntax tree into a small, read-only
tree of :class:`Node` objects with HTML-like tags (``p``, ``h1``, ``pre``,
``ul``, ``a``, ...). The renderers only ever see this tree.

The conversion also smooths over parser specifics:

- tight list paragraphs are unwrapped into their inline children;
- fenced code becomes ``pre > code.language-xxx``;
- ``> [!NOTE]`` style blockquotes become ``div.markdown-alert``;
- footnotes become a trailing ``section.footnotes``.
"""

import logging
import re
from enum import Enum
from functools import lru_cache
from typing import Dict, List, Optional, Set

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from mdit_py_plugins.footnote import footnote_plugin
from pydantic import BaseModel, ConfigDict, Field

from chatmark.models import ExtensionSet

logger = logging.getLogger(__name__)

TEXT_TAG = "#text"


class Node(BaseModel):
    """A read-only AST node: a tag, attributes and optional children."""
    model_config = ConfigDict(frozen=True)

    tag: str
    attributes: Dict[str, str] = Field(default_factory=dict)
    children: Optional[List["Node"]] = None
    text: Optional[str] = None

    @classmethod
    def text_node(cls, text: str) -> "Node":
        return cls(tag=TEXT_TAG, text=text)

    @classmethod
    def element(cls, tag: str, children: Optional[List["Node"]] = None, **attributes: str) -> "Node":
        return cls(tag=tag, attributes=attributes, children=children)

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT_TAG

    @property
    def text_content(self) -> str:
        if self.is_text:
            return self.text or ""
        if not self.children:
            return ""
        return "".join(child.text_content for child in self.children)


Node.model_rebuild()


class BlockTag(str, Enum):
    """Block-level tags the block renderer dispatches on."""
    PARAGRAPH = "p"
    H1 = "h1"
    H2 = "h2"
    H3 = "h3"
    H4 = "h4"
    H5 = "h5"
    H6 = "h6"
    PRE = "pre"
    BLOCKQUOTE = "blockquote"
    UL = "ul"
    OL = "ol"
    LI = "li"
    TABLE = "table"
    HR = "hr"
    DIV = "div"
    SECTION = "section"
    IMG = "img"
    UNKNOWN = ""

    @classmethod
    def from_tag(cls, tag: str) -> "BlockTag":
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN

    @property
    def heading_level(self) -> int:
        """1-6 for heading tags, 0 otherwise."""
        if len(self.value) == 2 and self.value[0] == "h" and self.value[1].isdigit():
            return int(self.value[1])
        return 0


class InlineTag(str, Enum):
    """Inline-level tags the inline renderer dispatches on."""
    TEXT = TEXT_TAG
    STRONG = "strong"
    EM = "em"
    DEL = "del"
    CODE = "code"
    LINK = "a"
    IMG = "img"
    BR = "br"
    UNKNOWN = ""

    @classmethod
    def from_tag(cls, tag: str) -> "InlineTag":
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


# Tags that make a list item render as nested blocks
BLOCK_LEVEL_TAGS = frozenset({
    "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "ul", "ol", "pre", "blockquote", "table", "hr",
    "div", "section",
})

ALERT_TYPES = ("note", "tip", "important", "warning", "caution")

ALERT_MARKER_RE = re.compile(
    r"^\s*\[!(" + "|".join(ALERT_TYPES) + r")\][ \t]*(?:\n|$)",
    re.IGNORECASE,
)
_HTML_BREAK_RE = re.compile(r"^<br\s*/?>$", re.IGNORECASE)
_ALIGN_RE = re.compile(r"text-align:\s*(left|center|right)")


def leading_text(paragraph: Node) -> str:
    """Text of the plain text children that open *paragraph*, up to the first element."""
    parts = []
    for child in paragraph.children or []:
        if not child.is_text:
            break
        parts.append(child.text or "")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Parser construction
# ---------------------------------------------------------------------------

@lru_cache(maxsize=8)
def _build_parser(extensions: ExtensionSet) -> MarkdownIt:
    md = MarkdownIt("commonmark")
    if extensions.tables:
        md.enable("table")
    if extensions.strikethrough:
        md.enable("strikethrough")
    if extensions.footnotes:
        md.use(footnote_plugin)
    return md


def link_reference_labels(text: str, extensions: Optional[ExtensionSet] = None) -> Set[str]:
    """
    Return the labels of all link reference definitions in *text*.

    Labels come back normalized the way the parser stores them
    (whitespace collapsed, case folded).
    """
    md = _build_parser(extensions or ExtensionSet.github_web())
    env: dict = {}
    md.parse(text, env)
    return set(env.get("references", {}))


def parse(text: str, extensions: Optional[ExtensionSet] = None) -> List[Node]:
    """Parse markdown *text* into a list of block-level :class:`Node` objects."""
    extensions = extensions or ExtensionSet.github_web()
    md = _build_parser(extensions)
    root = SyntaxTreeNode(md.parse(text))
    converter = _TreeConverter(extensions)
    return converter.convert_children(root.children)


# ---------------------------------------------------------------------------
# Syntax tree conversion
# ---------------------------------------------------------------------------

class _TreeConverter:
    """Converts a markdown-it syntax tree into :class:`Node` objects."""

    def __init__(self, extensions: ExtensionSet):
        self.extensions = extensions

    def convert_children(self, nodes: List[SyntaxTreeNode]) -> List[Node]:
        result: List[Node] = []
        for node in nodes:
            result.extend(self.convert(node))
        return result

    def convert(self, node: SyntaxTreeNode) -> List[Node]:
        handler = getattr(self, f"_convert_{node.type}", None)
        if handler is not None:
            return handler(node)
        # Unknown token types keep their tag (or type) and children
        tag = node.tag or node.type
        if node.children:
            return [Node.element(tag, self.convert_children(node.children))]
        if node.content:
            return [Node.text_node(node.content)]
        return []

    # -- Blocks --

    def _convert_paragraph(self, node: SyntaxTreeNode) -> List[Node]:
        children = self.convert_children(node.children)
        if node.hidden:
            # Tight list items: no paragraph wrapper
            return children
        return [Node.element("p", children)]

    def _convert_inline(self, node: SyntaxTreeNode) -> List[Node]:
        return self.convert_children(node.children)

    def _convert_heading(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element(node.tag, self.convert_children(node.children))]

    def _convert_fence(self, node: SyntaxTreeNode) -> List[Node]:
        info = (node.info or "").strip()
        language = info.split()[0] if info else ""
        return [self._code_block(node.content, language)]

    def _convert_code_block(self, node: SyntaxTreeNode) -> List[Node]:
        return [self._code_block(node.content, "")]

    def _code_block(self, content: str, language: str) -> Node:
        if content.endswith("\n"):
            content = content[:-1]
        attrs = {"class": f"language-{language}"} if language else {}
        code = Node(tag="code", attributes=attrs, children=[Node.text_node(content)])
        return Node.element("pre", [code])

    def _convert_blockquote(self, node: SyntaxTreeNode) -> List[Node]:
        children = self.convert_children(node.children)
        alert_type = self._alert_type(children) if self.extensions.alerts else None
        if alert_type:
            return [Node(
                tag="div",
                attributes={"class": f"markdown-alert markdown-alert-{alert_type}"},
                children=children,
            )]
        return [Node.element("blockquote", children)]

    @staticmethod
    def _alert_type(children: List[Node]) -> Optional[str]:
        if not children or children[0].tag != "p":
            return None
        match = ALERT_MARKER_RE.match(leading_text(children[0]))
        return match.group(1).lower() if match else None

    def _convert_bullet_list(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("ul", self.convert_children(node.children))]

    def _convert_ordered_list(self, node: SyntaxTreeNode) -> List[Node]:
        attrs = {}
        start = node.attrs.get("start")
        if start is not None:
            attrs["start"] = str(start)
        return [Node(tag="ol", attributes=attrs, children=self.convert_children(node.children))]

    def _convert_list_item(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("li", self.convert_children(node.children))]

    def _convert_table(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("table", self.convert_children(node.children))]

    def _convert_thead(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("thead", self.convert_children(node.children))]

    def _convert_tbody(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("tbody", self.convert_children(node.children))]

    def _convert_tr(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("tr", self.convert_children(node.children))]

    def _convert_th(self, node: SyntaxTreeNode) -> List[Node]:
        return [self._table_cell("th", node)]

    def _convert_td(self, node: SyntaxTreeNode) -> List[Node]:
        return [self._table_cell("td", node)]

    def _table_cell(self, tag: str, node: SyntaxTreeNode) -> Node:
        attrs = {}
        match = _ALIGN_RE.search(str(node.attrs.get("style", "")))
        if match:
            attrs["align"] = match.group(1)
        return Node(tag=tag, attributes=attrs, children=self.convert_children(node.children))

    def _convert_hr(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("hr")]

    def _convert_html_block(self, node: SyntaxTreeNode) -> List[Node]:
        content = node.content.strip()
        if not content:
            return []
        return [Node.element("html", [Node.text_node(content)])]

    # -- Footnotes --

    def _convert_footnote_block(self, node: SyntaxTreeNode) -> List[Node]:
        items = self.convert_children(node.children)
        return [Node(
            tag="section",
            attributes={"class": "footnotes"},
            children=[Node.element("hr"), Node.element("ol", items)],
        )]

    def _convert_footnote(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("li", self.convert_children(node.children))]

    def _convert_footnote_anchor(self, node: SyntaxTreeNode) -> List[Node]:
        return []

    def _convert_footnote_ref(self, node: SyntaxTreeNode) -> List[Node]:
        meta = node.meta or {}
        number = str(meta.get("id", 0) + 1)
        link = Node(
            tag="a",
            attributes={"href": f"#fn{number}"},
            children=[Node.text_node(number)],
        )
        return [Node(tag="sup", attributes={"class": "footnote-ref"}, children=[link])]

    # -- Inline --

    def _convert_text(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.text_node(node.content)] if node.content else []

    def _convert_softbreak(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("br")]

    def _convert_hardbreak(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("br")]

    def _convert_strong(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("strong", self.convert_children(node.children))]

    def _convert_em(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("em", self.convert_children(node.children))]

    def _convert_s(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("del", self.convert_children(node.children))]

    def _convert_code_inline(self, node: SyntaxTreeNode) -> List[Node]:
        return [Node.element("code", [Node.text_node(node.content)])]

    def _convert_link(self, node: SyntaxTreeNode) -> List[Node]:
        attrs = {"href": str(node.attrs.get("href", ""))}
        title = node.attrs.get("title")
        if title:
            attrs["title"] = str(title)
        return [Node(tag="a", attributes=attrs, children=self.convert_children(node.children))]

    def _convert_image(self, node: SyntaxTreeNode) -> List[Node]:
        alt_nodes = self.convert_children(node.children)
        attrs = {
            "src": str(node.attrs.get("src", "")),
            "alt": "".join(child.text_content for child in alt_nodes) or node.content,
        }
        title = node.attrs.get("title")
        if title:
            attrs["title"] = str(title)
        return [Node(tag="img", attributes=attrs)]

    def _convert_html_inline(self, node: SyntaxTreeNode) -> List[Node]:
        if _HTML_BREAK_RE.match(node.content.strip()):
            return [Node.element("br")]
        return [Node.text_node(node.content)]
