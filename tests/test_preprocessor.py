"""Tests for the content pipeline: normalize, sanitize, plain text, soft wraps."""

import re

import pytest

from chatmark.preprocessor import (
    ZERO_WIDTH_NON_JOINER,
    ZERO_WIDTH_SPACE,
    count_fence_lines,
    normalize,
    sanitize,
    soften_inline_code,
    to_plain_text,
)

REASONING = (
    '<details type="reasoning" done="true" duration="2">\n'
    "<summary>Thought for 2 seconds</summary>\n"
    "> secret chain of thought\n"
    "</details>\n"
)

SAMPLES = [
    "",
    "plain",
    "# Title\n\nBody",
    REASONING + "Answer",
    "<think>a</think>\n\n\n\nb",
    "<thi<think>x</think>nk>y</think>z",
    "See [docs][1].\n\n[1]: https://example.com",
    "```python\nprint(1)",
    "- ```js\ncode\n```",
    "a\n\n\n\n\nb  ",
    "a\r<think>x</think>\nb",
]


# === 1. NORMALIZE: CODE FENCES ===


class TestNormalizeFences:
    """Code fence repair for display."""

    def test_unterminated_fence_is_closed(self):
        """Truncated stream output gets a closing fence."""
        result = normalize("Here is code:\n```python\nprint(1)")
        assert result == "Here is code:\n```python\nprint(1)\n```"

    def test_balanced_fences_unchanged(self):
        text = "```\ncode\n```"
        assert normalize(text) == text

    def test_fence_after_bullet_moved_to_own_line(self):
        result = normalize("- ```python\ncode\n```")
        lines = result.split("\n")
        assert lines[0].rstrip() == "-"
        assert lines[1] == "```python"

    def test_indented_fences_dedented(self):
        result = normalize("  ```js\n  x\n  ```")
        assert result == "```js\n  x\n```"

    def test_closing_fence_glued_to_text(self):
        assert normalize("```\ncode```") == "```\ncode\n```"

    @pytest.mark.parametrize("text", SAMPLES + ["```", "```a\n```b\n```", "x\n  ```\n- ```"])
    def test_fence_count_always_even(self, text):
        assert count_fence_lines(normalize(text)) % 2 == 0


# === 2. NORMALIZE: DISAMBIGUATION ===


class TestNormalizeDisambiguation:
    """Fixes for constructs the parser would misread."""

    def test_label_then_dashes_not_setext(self):
        assert normalize("**Bold** then\n---") == "**Bold** then\n\n---"

    def test_numbered_heading_guarded(self):
        result = normalize("## 1. Intro")
        assert result == f"## 1.{ZERO_WIDTH_NON_JOINER} Intro"

    def test_consecutive_links_separated(self):
        result = normalize("[a](http://x)  \n[b](http://y)")
        assert result == "[a](http://x)  \n\n[b](http://y)"

    def test_reasoning_block_preserved(self):
        text = REASONING + "Answer"
        assert normalize(text) == text

    def test_empty_input(self):
        assert normalize("") == ""

    def test_crlf_converted(self):
        assert normalize("a\r\nb") == "a\nb"


# === 3. NORMALIZE: REFERENCE DEFINITIONS ===


class TestReferenceDefinitions:
    """Link reference definitions are stripped only when the parser sees them."""

    def test_definition_removed(self):
        assert normalize("See [docs][1].\n\n[1]: https://example.com") == "See [docs][1]."

    def test_definition_with_title_removed(self):
        result = normalize('Text\n\n[ref]: https://example.com "Title"')
        assert result == "Text"

    def test_footnote_definition_kept(self):
        result = normalize("Text[^1]\n\n[^1]: The note")
        assert "[^1]: The note" in result

    def test_lookalike_inside_code_kept(self):
        text = "```\n[x]: not-a-ref\n```"
        assert normalize(text) == text


# === 4. SANITIZE ===


class TestSanitize:
    """Clipboard / export cleaning."""

    def test_reasoning_removed(self):
        assert sanitize(REASONING + "Answer") == "Answer"

    def test_think_tags_removed(self):
        assert sanitize("<think>abc</think>\n\n\n\nHello") == "Hello"

    def test_tool_calls_removed(self):
        text = 'Before\n<details type="tool_calls" done="true" name="x"></details>\nAfter'
        assert sanitize(text) == "Before\n\nAfter"

    def test_blank_lines_collapsed(self):
        assert sanitize("a\n\n\n\n\nb  ") == "a\n\nb"

    def test_line_ending_joined_by_removal_normalized(self):
        assert sanitize("a\r<think>x</think>\nb") == "a\nb"

    def test_block_exposed_by_removal_also_removed(self):
        assert sanitize("<thi<think>x</think>nk>y</think>z") == "z"

    @pytest.mark.parametrize("text", SAMPLES)
    def test_idempotent(self, text):
        once = sanitize(text)
        assert sanitize(once) == once


# === 5. PLAIN TEXT ===


class TestPlainText:
    """Markdown to speakable text."""

    def test_full_message(self):
        text = (
            "# Title\n\nSome **bold** and `code` with [link](http://x).\n\n"
            "```py\nprint()\n```\n- item \U0001F600"
        )
        assert to_plain_text(text) == "Title Some bold and code with link. item"

    def test_blank(self):
        assert to_plain_text("   \n") == ""

    def test_unterminated_code_block_removed(self):
        assert to_plain_text("Intro\n```python\nx = 1") == "Intro"

    def test_lone_asterisk_kept(self):
        assert to_plain_text("2 * 3 = 6") == "2 * 3 = 6"

    def test_identifiers_kept(self):
        assert to_plain_text("call snake_case_name now") == "call snake_case_name now"

    def test_entities_decoded(self):
        assert to_plain_text("a &amp; b") == "a & b"

    def test_stray_backtick_removed(self):
        assert to_plain_text("stray ` tick") == "stray tick"

    def test_reasoning_content_dropped(self):
        result = to_plain_text(REASONING + "Answer")
        assert "secret" not in result
        assert result == "Answer"

    def test_heading_marker_removed(self):
        assert to_plain_text("## Heading\n\nText") == "Heading Text"

    def test_hash_inside_text_removed(self):
        assert to_plain_text("Use C# and #tags") == "Use C and tags"

    def test_no_markup_left(self):
        text = "### H\n\n[a](b) ![img](c.png) `x` ☀ **y**"
        result = to_plain_text(text)
        assert not re.search(r"[#`]|\]\(", result)
        assert "☀" not in result


# === 6. SOFTEN INLINE CODE ===


class TestSoftenInlineCode:
    """Zero-width break points for long inline code."""

    def test_short_code_unchanged(self):
        assert soften_inline_code("short") == "short"

    def test_breaks_inserted(self):
        text = "a" * 50
        result = soften_inline_code(text, 24)
        assert result.count(ZERO_WIDTH_SPACE) == 2
        assert result.replace(ZERO_WIDTH_SPACE, "") == text
        assert result.index(ZERO_WIDTH_SPACE) == 24

    def test_exact_multiple_gets_trailing_break(self):
        result = soften_inline_code("b" * 48, 24)
        assert result.endswith(ZERO_WIDTH_SPACE)
        assert result.count(ZERO_WIDTH_SPACE) == 2

    def test_invalid_chunk_size(self):
        assert soften_inline_code("abcdef", 0) == "abcdef"
