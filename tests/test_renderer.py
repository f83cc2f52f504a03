"""End-to-end tests for MarkdownRenderer and StreamingRenderer."""

from chatmark.renderer import MarkdownRenderer, StreamingRenderer, render_markdown
from chatmark.visual import (
    CodeBlock, Collapsible, Divider, Heading, ListBlock, MathSpan, RichText, Table, TextSpan,
    ToolCall,
)

REASONING = (
    '<details type="reasoning" done="true" duration="3">\n'
    "<summary>Thinking…</summary>\n"
    "> step one\n"
    "</details>\n\n"
    "Answer"
)

TOOL_CALL = (
    '<details type="tool_calls" done="true" id="c1" name="search" '
    'arguments="{&quot;q&quot;: 1}" result="&quot;ok&quot;"></details>'
)


# === 1. SCENARIOS ===


class TestScenarios:
    """Chat messages as LLMs actually produce them."""

    def test_bold_label_then_dashes(self, renderer):
        tree = renderer.render("**Bold** then\n---").tree
        first, second = tree.children
        assert isinstance(first, RichText)
        assert first.spans[0].style.bold
        assert isinstance(second, Divider)

    def test_truncated_code_block(self, renderer):
        tree = renderer.render("Here is code:\n```python\nprint(1)").tree
        text, code = tree.children
        assert text.text == "Here is code:"
        assert isinstance(code, CodeBlock)
        assert code.language == "python"
        assert code.code == "print(1)"

    def test_price_and_math(self, renderer):
        (block,) = renderer.render("Price is $5 and $x+y$ is math").tree.children
        kinds = [type(span) for span in block.spans]
        assert kinds == [TextSpan, MathSpan, TextSpan]
        assert block.spans[0].text == "Price is $5 and "
        assert block.spans[1].tex == "x+y"

    def test_reasoning_block(self, renderer):
        collapsible, answer = renderer.render(REASONING).tree.children
        assert isinstance(collapsible, Collapsible)
        assert collapsible.title == "Thought for 3 seconds"
        assert collapsible.done
        assert collapsible.body.children[0].text == "step one"
        assert answer.text == "Answer"

    def test_short_table_row_padded(self, renderer):
        markdown = "| a | b | c | d |\n|---|---|---|---|\n| 1 | 2 |"
        (table,) = renderer.render(markdown).tree.children
        assert isinstance(table, Table)
        assert len(table.columns) == 4
        assert [cell.text for cell in table.rows[0].cells] == ["1", "2", "", ""]

    def test_numbered_heading_stays_heading(self, renderer):
        (heading,) = renderer.render("## 1. Intro").tree.children
        assert isinstance(heading, Heading)
        assert heading.level == 2
        assert "Intro" in heading.text

    def test_mixed_document(self, renderer):
        markdown = (
            "# Plan\n\n"
            "1. Install\n2. Run `make`\n\n"
            "> [!NOTE]\n> Needs $n \\geq 2$ cores\n\n"
            "Done."
        )
        kinds = [node.kind for node in renderer.render(markdown).tree.children]
        assert kinds == ["heading", "list", "alert", "rich_text"]

    def test_quoted_alert_syntax_stays_blockquote(self, renderer):
        result = renderer.render("> `[!NOTE]` is the syntax for notes")
        assert [node.kind for node in result.tree.children] == ["blockquote"]


# === 2. ANNOTATIONS ===


class TestAnnotations:
    """Reasoning and tool-call blocks become dedicated nodes."""

    def test_streaming_think_block(self, renderer):
        (collapsible,) = renderer.render("<think>partial thought").tree.children
        assert isinstance(collapsible, Collapsible)
        assert collapsible.done is False
        assert collapsible.title == "Thinking…"
        assert collapsible.annotation == "think"

    def test_tool_call(self, renderer):
        (tool,) = renderer.render(TOOL_CALL).tree.children
        assert isinstance(tool, ToolCall)
        assert tool.name == "search"
        assert tool.arguments == '{\n  "q": 1\n}'
        assert tool.result == "ok"
        assert tool.title == "🔧 search"

    def test_reasoning_body_handles_share_scope(self, renderer):
        markdown = "<think>see [docs](https://d.io)</think>\n\nAnswer with `code`"
        result = renderer.render(markdown)
        assert sorted(handle.kind for handle in result.scope.handles) == ["copy", "link"]


# === 3. HANDLES AND CALLBACKS ===


class TestCallbacks:
    """Links and code spans route to the renderer's callbacks."""

    def test_link_and_copy(self, renderer, taps):
        result = renderer.render("Visit [site](https://a.b) and run `ls -la`.")
        link = result.scope.find("link:0")
        copy = result.scope.find("copy:1")
        assert link.activate()
        assert copy.activate()
        assert taps["links"] == [("https://a.b", "")]
        assert taps["copies"] == ["ls -la"]

    def test_released_scope_is_inert(self, renderer, taps):
        result = renderer.render("[x](https://a.b)")
        result.scope.release()
        assert result.scope.find("link:0").activate() is False
        assert taps["links"] == []

    def test_render_markdown_helper(self):
        result = render_markdown("- one")
        assert isinstance(result.tree.children[0], ListBlock)

    def test_normalization_can_be_disabled(self):
        renderer = MarkdownRenderer(normalize_input=False)
        (block,) = renderer.render("**Bold** then\n---").tree.children
        assert isinstance(block, Heading)


# === 4. STREAMING ===


class TestStreaming:
    """Re-rendering a growing message."""

    def test_each_pass_releases_previous_scope(self):
        stream = StreamingRenderer()
        first = stream.update("Hello [a](https://a.b)")
        handle = first.scope.handles[0]
        second = stream.update("Hello [a](https://a.b) and more")
        assert first.scope.released
        assert handle.released
        assert not second.scope.released
        assert stream.passes == 2

    def test_unchanged_content_not_rerendered(self):
        stream = StreamingRenderer()
        first = stream.update("same")
        assert stream.update("same") is first
        assert stream.passes == 1

    def test_append(self):
        stream = StreamingRenderer()
        stream.append("```python\nprint(")
        assert isinstance(stream.tree.children[0], CodeBlock)
        stream.append("1)\n```\n\nafter")
        assert stream.content == "```python\nprint(1)\n```\n\nafter"
        code, text = stream.tree.children
        assert code.code == "print(1)"
        assert text.text == "after"

    def test_replace_always_renders(self):
        stream = StreamingRenderer()
        stream.update("x")
        stream.replace("x")
        assert stream.passes == 2

    def test_close_releases(self):
        stream = StreamingRenderer()
        result = stream.update("`code`")
        stream.close()
        assert result.scope.released

    def test_empty_state(self):
        stream = StreamingRenderer()
        assert stream.tree.children == []
        assert stream.scope is None
        assert stream.content == ""
