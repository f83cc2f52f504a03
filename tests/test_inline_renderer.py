"""Tests for inline span rendering."""

import pytest

from chatmark.document import Node, parse
from chatmark.exceptions import ScopeReleasedError
from chatmark.inline_renderer import InlineRenderer
from chatmark.latex import LatexShield
from chatmark.visual import CodeSpan, MathSpan, TextSpan


def text(value):
    return Node.text_node(value)


def el(tag, *children, **attributes):
    return Node(tag=tag, attributes=attributes, children=list(children))


@pytest.fixture
def calls():
    return {"links": [], "copies": []}


@pytest.fixture
def make_renderer(style, scope, calls):
    def factory(shield=None):
        if shield is None:
            shield = LatexShield()
            shield.extract("")
        return InlineRenderer(
            style,
            shield,
            scope,
            on_link_tap=lambda href, title: calls["links"].append((href, title)),
            on_copy=lambda code: calls["copies"].append(code),
        )
    return factory


def render_markdown_inline(make_renderer, markdown):
    shield = LatexShield()
    shielded = shield.extract(markdown)
    paragraph = parse(shielded)[0]
    return make_renderer(shield).render(paragraph.children)


# === 1. FORMATTING ===


class TestFormatting:
    """Strong, emphasis and strikethrough derive child styles."""

    def test_plain_text_uses_body_style(self, make_renderer, style):
        (span,) = make_renderer().render([text("hi")])
        assert isinstance(span, TextSpan)
        assert span.style == style.body

    def test_strong(self, make_renderer):
        (span,) = make_renderer().render([el("strong", text("b"))])
        assert span.style.bold
        assert not span.style.italic

    def test_em(self, make_renderer):
        (span,) = make_renderer().render([el("em", text("i"))])
        assert span.style.italic

    def test_del(self, make_renderer):
        (span,) = make_renderer().render([el("del", text("x"))])
        assert span.style.strikethrough

    def test_nested_styles_combine(self, make_renderer):
        (span,) = make_renderer().render([el("strong", el("em", text("both")))])
        assert span.style.bold and span.style.italic

    def test_parent_style_inherited(self, make_renderer, style):
        (span,) = make_renderer().render([text("x")], style.h2)
        assert span.style == style.h2

    def test_br(self, make_renderer):
        spans = make_renderer().render([text("a"), el("br"), text("b")])
        assert [s.text for s in spans] == ["a", "\n", "b"]

    def test_image_alt_text(self, make_renderer):
        spans = make_renderer().render([Node(tag="img", attributes={"src": "x.png", "alt": "diagram"})])
        assert spans[0].text == "diagram"

    def test_unknown_tag_renders_children(self, make_renderer):
        spans = make_renderer().render([el("sup", text("1"))])
        assert spans[0].text == "1"

    def test_empty_text_skipped(self, make_renderer):
        assert make_renderer().render([text("")]) == []


# === 2. MATH ===


class TestMath:
    """Placeholders in text become math spans."""

    def test_inline_math_split(self, make_renderer):
        spans = render_markdown_inline(make_renderer, "see $x^2$ now")
        assert [type(s) for s in spans] == [TextSpan, MathSpan, TextSpan]
        assert spans[1].tex == "x^2"
        assert spans[1].is_block is False
        assert spans[0].text == "see "
        assert spans[2].text == " now"

    def test_math_keeps_surrounding_style(self, make_renderer):
        spans = render_markdown_inline(make_renderer, "**bold $a_1$**")
        math = [s for s in spans if isinstance(s, MathSpan)]
        assert math[0].tex == "a_1"
        assert math[0].style.bold

    def test_code_span_restores_literal(self, make_renderer):
        (span,) = render_markdown_inline(make_renderer, "`$x$`")
        assert isinstance(span, CodeSpan)
        assert span.code == "$x$"


# === 3. HANDLES ===


class TestHandles:
    """Links and code spans get interaction handles."""

    def test_code_copy_handle(self, make_renderer, calls):
        (span,) = make_renderer().render([el("code", text("pip install"))])
        assert span.copy_handle.kind == "copy"
        assert span.copy_handle.activate() is True
        assert calls["copies"] == ["pip install"]

    def test_link_handle_shared_across_spans(self, make_renderer, style, calls):
        link = Node(
            tag="a",
            attributes={"href": "https://a.b", "title": "T"},
            children=[text("x "), el("strong", text("y"))],
        )
        spans = make_renderer().render([link])
        assert len(spans) == 2
        assert spans[0].link is spans[1].link
        assert spans[0].style.color == style.link_color
        assert spans[0].style.underline
        assert spans[1].style.bold

        spans[0].link.activate()
        assert calls["links"] == [("https://a.b", "T")]

    def test_link_without_children_shows_href(self, make_renderer):
        (span,) = make_renderer().render([Node(tag="a", attributes={"href": "https://a.b"})])
        assert span.text == "https://a.b"

    def test_one_handle_per_link(self, make_renderer, scope):
        make_renderer().render([
            Node(tag="a", attributes={"href": "1"}, children=[text("a"), text("b")]),
            Node(tag="a", attributes={"href": "2"}, children=[text("c")]),
        ])
        assert len(scope.handles) == 2

    def test_released_scope_rejects_new_handles(self, make_renderer, scope):
        scope.release()
        with pytest.raises(ScopeReleasedError):
            make_renderer().render([el("code", text("x"))])
