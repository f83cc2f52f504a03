"""
chatmark.

Рендеринг markdown-сообщений LLM-чатов: нормализация, защита LaTeX,
визуальное дерево, HTML для QTextBrowser.
"""

from chatmark.preprocessor import (
    normalize,
    sanitize,
    to_plain_text,
    soften_inline_code,
)
from chatmark.latex import LatexShield
from chatmark.models import (
    ExtensionSet,
    Segment,
    ReasoningBlock,
    ToolCallBlock,
    RendererConfig,
)
from chatmark.renderer import (
    MarkdownRenderer,
    StreamingRenderer,
    RenderResult,
    render_markdown,
)
from chatmark.scope import RenderScope, InteractionHandle
from chatmark.style import MarkdownStyle, TextStyle
from chatmark.exceptions import (
    ChatMarkError,
    ConfigError,
    LatexShieldReusedError,
    ScopeReleasedError,
)

__version__ = "1.0.0"

__all__ = [
    # Pipeline
    "normalize",
    "sanitize",
    "to_plain_text",
    "soften_inline_code",
    "LatexShield",
    # Rendering
    "MarkdownRenderer",
    "StreamingRenderer",
    "RenderResult",
    "render_markdown",
    "RenderScope",
    "InteractionHandle",
    "MarkdownStyle",
    "TextStyle",
    # Models
    "ExtensionSet",
    "Segment",
    "ReasoningBlock",
    "ToolCallBlock",
    "RendererConfig",
    # Exceptions
    "ChatMarkError",
    "ConfigError",
    "LatexShieldReusedError",
    "ScopeReleasedError",
]
