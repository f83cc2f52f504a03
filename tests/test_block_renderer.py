"""Tests for block rendering."""

import pytest

from chatmark.block_renderer import BlockRenderer
from chatmark.document import Node, parse
from chatmark.inline_renderer import InlineRenderer
from chatmark.latex import LatexShield
from chatmark.visual import (
    Alert, Blockquote, CodeBlock, Column, Divider, Empty, Heading, Image, ImageError,
    ListBlock, MathSpan, RichText, Table,
)


def text(value):
    return Node.text_node(value)


def el(tag, *children, **attributes):
    return Node(tag=tag, attributes=attributes, children=list(children))


def row(tag, *values):
    return el("tr", *(el(tag, text(value)) for value in values))


@pytest.fixture
def make_blocks(style, scope):
    def factory(shield=None, image_builder=None):
        if shield is None:
            shield = LatexShield()
            shield.extract("")
        inline = InlineRenderer(style, shield, scope)
        return BlockRenderer(style, inline, shield, image_builder=image_builder)
    return factory


@pytest.fixture
def render(make_blocks):
    def _render(markdown, **kwargs):
        shield = LatexShield()
        nodes = parse(shield.extract(markdown))
        return make_blocks(shield, **kwargs).render_blocks(nodes).children
    return _render


# === 1. TEXT BLOCKS ===


class TestTextBlocks:
    """Paragraphs, headings, quotes and code."""

    def test_paragraph(self, render, style):
        (block,) = render("Hello")
        assert isinstance(block, RichText)
        assert block.text == "Hello"
        assert block.spacing == style.paragraph_spacing

    def test_heading_levels(self, render, style):
        blocks = render("# One\n\n### Three")
        assert [b.level for b in blocks] == [1, 3]
        assert isinstance(blocks[0], Heading)
        assert blocks[0].spans[0].style == style.h1
        assert blocks[1].text == "Three"

    def test_code_block(self, render, style):
        (block,) = render("```python\nprint(1)\n```")
        assert isinstance(block, CodeBlock)
        assert block.language == "python"
        assert block.code == "print(1)"
        assert block.style == style.code_block

    def test_code_block_keeps_dollars(self, render):
        (block,) = render("```sh\necho $HOME $PATH$\n```")
        assert block.code == "echo $HOME $PATH$"

    def test_blockquote_style(self, render, style):
        (block,) = render("> quoted")
        assert isinstance(block, Blockquote)
        (inner,) = block.body.children
        assert inner.spans[0].style == style.blockquote_text

    def test_block_math(self, render):
        (block,) = render("Before\n\n$$\nE=mc^2\n$$\n\nAfter")[1:2]
        assert isinstance(block, RichText)
        (span,) = block.spans
        assert isinstance(span, MathSpan)
        assert span.is_block
        assert span.tex == "E=mc^2"

    def test_hr(self, render):
        (block,) = render("---")
        assert isinstance(block, Divider)

    def test_unknown_block_renders_text(self, make_blocks):
        block = make_blocks().render_block(el("html", text("<div>raw</div>")))
        assert isinstance(block, Column)
        assert block.children[0].text == "<div>raw</div>"

    def test_empty_unknown_block_is_empty(self, make_blocks):
        assert isinstance(make_blocks().render_block(Node(tag="aside")), Empty)

    def test_empty_blocks_left_out_of_column(self, make_blocks):
        column = make_blocks().render_blocks([Node(tag="div"), el("hr")])
        assert [type(child) for child in column.children] == [Divider]


# === 2. LISTS ===


class TestLists:
    """Bullets, numbering and nesting."""

    def test_bullets(self, render):
        (block,) = render("- a\n- b")
        assert isinstance(block, ListBlock)
        assert not block.ordered
        assert [item.marker for item in block.items] == ["•", "•"]
        assert block.items[0].content.text == "a"

    def test_ordered_start(self, render):
        (block,) = render("5. a\n6. b")
        assert block.ordered
        assert block.start == 5
        assert [item.marker for item in block.items] == ["5.", "6."]

    def test_invalid_start_falls_back(self, make_blocks):
        node = Node(tag="ol", attributes={"start": "x"}, children=[el("li", text("a"))])
        block = make_blocks().render_block(node)
        assert block.start == 1
        assert block.items[0].marker == "1."

    def test_nested_list(self, render):
        (block,) = render("- a\n  - b")
        content = block.items[0].content
        assert isinstance(content, Column)
        first, nested = content.children
        assert first.text == "a"
        assert isinstance(nested, ListBlock)
        assert nested.items[0].content.text == "b"


# === 3. TABLES ===


class TestTables:
    """Tables always have as many cells per row as columns."""

    def test_markdown_table(self, render):
        (block,) = render("| a | b |\n|:-|-:|\n| 1 | 2 |")
        assert isinstance(block, Table)
        assert [cell.text for cell in block.columns] == ["a", "b"]
        assert [cell.alignment for cell in block.columns] == ["left", "right"]
        assert all(cell.header for cell in block.columns)
        assert [cell.text for cell in block.rows[0].cells] == ["1", "2"]

    def test_short_row_padded(self, make_blocks):
        node = el(
            "table",
            el("thead", row("th", "A", "B", "C", "D")),
            el("tbody", row("td", "1", "2")),
        )
        block = make_blocks().render_block(node)
        cells = block.rows[0].cells
        assert len(cells) == 4
        assert [cell.text for cell in cells] == ["1", "2", "", ""]

    def test_long_row_truncated(self, make_blocks):
        node = el(
            "table",
            el("thead", row("th", "A", "B")),
            el("tbody", row("td", "1", "2", "3")),
        )
        block = make_blocks().render_block(node)
        assert [cell.text for cell in block.rows[0].cells] == ["1", "2"]

    def test_first_row_used_as_header(self, make_blocks):
        node = el("table", row("td", "H1", "H2"), row("td", "v1", "v2"))
        block = make_blocks().render_block(node)
        assert [cell.text for cell in block.columns] == ["H1", "H2"]
        assert len(block.rows) == 1

    def test_empty_table_skipped(self, make_blocks):
        assert make_blocks().render_block(el("table")) is None

    def test_mismatched_rows_rejected(self):
        from chatmark.visual import TableCell, TableRow

        with pytest.raises(ValueError):
            Table(columns=[TableCell()], rows=[TableRow(cells=[TableCell(), TableCell()])])


# === 4. ALERTS ===


class TestAlerts:
    """GitHub alerts with the marker stripped from the body."""

    def test_warning_alert(self, render):
        (block,) = render("> [!WARNING]\n> Careful now")
        assert isinstance(block, Alert)
        assert block.alert_type == "warning"
        assert block.label == "Warning"
        assert block.color == "#bf8700"
        (body,) = block.body.children
        assert body.text == "Careful now"

    def test_marker_followed_by_text_is_blockquote(self, render):
        (block,) = render("> [!TIP] Use **this**")
        assert isinstance(block, Blockquote)

    def test_marker_inside_code_is_blockquote(self, render):
        (block,) = render("> `[!NOTE]` is the syntax for notes")
        assert isinstance(block, Blockquote)

    def test_marker_line_then_formatted_body(self, render):
        (block,) = render("> [!TIP]\n> Use **this**")
        assert block.alert_type == "tip"
        assert block.body.children[0].text == "Use this"

    def test_alert_from_class_only(self, make_blocks):
        node = Node(
            tag="div",
            attributes={"class": "markdown-alert markdown-alert-caution"},
            children=[el("p", text("Hi"))],
        )
        block = make_blocks().render_block(node)
        assert block.alert_type == "caution"
        assert block.label == "Caution"
        assert block.body.children[0].text == "Hi"

    def test_plain_div_falls_back(self, make_blocks):
        block = make_blocks().render_block(el("div", el("p", text("x"))))
        assert isinstance(block, Column)


# === 5. IMAGES ===


class TestImages:
    """Standalone images and the image builder."""

    def test_image_paragraph(self, render):
        (block,) = render('![chart](https://a.b/c.png "Title")')
        assert isinstance(block, Image)
        assert block.src == "https://a.b/c.png"
        assert block.alt == "chart"
        assert block.title == "Title"

    def test_unsupported_scheme(self, make_blocks):
        block = make_blocks().render_block(Node(tag="img", attributes={"src": "ftp://x/y.png"}))
        assert isinstance(block, ImageError)

    def test_builder_used(self, make_blocks):
        builder = lambda src, alt, title: Divider(color=src)
        block = make_blocks(image_builder=builder).render_block(
            Node(tag="img", attributes={"src": "https://x"})
        )
        assert block == Divider(color="https://x")

    def test_builder_failure_becomes_error_node(self, make_blocks):
        def builder(src, alt, title):
            raise RuntimeError("boom")

        block = make_blocks(image_builder=builder).render_block(
            Node(tag="img", attributes={"src": "https://x"})
        )
        assert isinstance(block, ImageError)
        assert block.reason == "boom"

    def test_missing_src_skipped(self, make_blocks):
        assert make_blocks().render_block(Node(tag="img", attributes={})) is None


# === 6. FOOTNOTES ===


class TestFootnotes:
    """Footnote section renders as divider plus numbered list."""

    def test_footnote_section(self, render):
        blocks = render("Text[^1]\n\n[^1]: The note")
        section = blocks[-1]
        assert isinstance(section, Column)
        divider, notes = section.children
        assert isinstance(divider, Divider)
        assert isinstance(notes, ListBlock)
        assert notes.items[0].marker == "1."
