"""
Pydantic модели chatmark.

Сегменты LaTeX, блоки аннотаций (reasoning / tool calls),
набор расширений парсера и локальная конфигурация рендерера.
"""

from typing import Optional, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# ===== PARSER MODELS =====

class ExtensionSet(BaseModel):
    """Набор расширений markdown-парсера."""
    model_config = ConfigDict(frozen=True)

    tables: bool = Field(default=True, description="GFM таблицы")
    strikethrough: bool = Field(default=True, description="~~зачёркивание~~")
    footnotes: bool = Field(default=True, description="Сноски [^1]")
    alerts: bool = Field(default=True, description="GitHub alerts: > [!NOTE]")

    @classmethod
    def github_web(cls) -> "ExtensionSet":
        """Расширения уровня GitHub (по умолчанию)."""
        return cls()

    @classmethod
    def commonmark(cls) -> "ExtensionSet":
        """Чистый CommonMark без расширений."""
        return cls(tables=False, strikethrough=False, footnotes=False, alerts=False)


# ===== LATEX MODELS =====

class Segment(BaseModel):
    """
    Фрагмент текста: обычный текст или LaTeX-выражение.

    Для математики `content` содержит TeX, `token` - плейсхолдер,
    который был на его месте, `source` - исходный литерал `$...$`.
    """
    model_config = ConfigDict(frozen=True)

    content: str
    is_math: bool = False
    is_block: bool = False
    token: Optional[str] = None
    source: Optional[str] = None

    @classmethod
    def text(cls, content: str) -> "Segment":
        return cls(content=content)

    @classmethod
    def math(cls, tex: str, *, is_block: bool, token: str, source: str) -> "Segment":
        return cls(content=tex, is_math=True, is_block=is_block, token=token, source=source)


# ===== ANNOTATION MODELS =====

class MarkdownPart(BaseModel):
    """Обычный markdown между блоками аннотаций."""
    model_config = ConfigDict(frozen=True)

    text: str


class ReasoningBlock(BaseModel):
    """Блок рассуждений модели (<details type="reasoning"> или <think>)."""
    model_config = ConfigDict(frozen=True)

    kind: str = "reasoning"
    summary: str = ""
    content: str = ""
    done: bool = True
    duration: int = Field(default=0, description="Длительность в секундах (0 = неизвестно)")

    def display_title(self, streaming: bool = False) -> str:
        """Заголовок сворачиваемой секции."""
        summary = self.summary.strip()
        is_placeholder = summary.lower() in ("thinking…", "thinking...")
        if streaming or not self.done:
            return summary or "Thinking…"
        if self.duration > 0:
            unit = "second" if self.duration == 1 else "seconds"
            return f"Thought for {self.duration} {unit}"
        if not summary or is_placeholder:
            return "Thoughts"
        return summary


class ToolCallBlock(BaseModel):
    """Вызов инструмента (<details type="tool_calls">)."""
    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str = ""
    arguments: str = ""
    result: str = ""
    done: bool = True
    files: List[str] = Field(default_factory=list)
    summary: str = ""


Annotation = Union[ReasoningBlock, ToolCallBlock]
ContentPart = Union[MarkdownPart, ReasoningBlock, ToolCallBlock]


# ===== LOCAL CONFIG MODELS =====

class RendererConfig(BaseModel):
    """Конфигурация рендерера."""
    model_config = ConfigDict(validate_assignment=True)

    theme: Literal["light", "dark"] = Field(default="light", description="Тема оформления")
    base_font_size: int = Field(default=14, ge=8, le=32, description="Базовый размер шрифта (px)")
    inline_code_chunk_size: int = Field(
        default=24, ge=4,
        description="Длина куска inline-кода до невидимого переноса"
    )
    stream_interval_ms: int = Field(
        default=50, ge=0,
        description="Дебаунс перерисовки при стриминге (мс)"
    )
    stream_chunk_size: int = Field(default=12, ge=1, description="Размер чанка в режиме просмотра стриминга")
    extensions: ExtensionSet = Field(default_factory=ExtensionSet)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
