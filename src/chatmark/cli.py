"""
CLI интерфейс chatmark.

Использование:
    chatmark normalize message.md
    chatmark plain message.md
    cat message.md | chatmark html -
    chatmark tree message.md
    chatmark view message.md --stream
    chatmark config set theme dark
"""

import sys
import os
import logging
from collections import Counter
from pathlib import Path
from typing import Optional

# Windows кодировка
if sys.platform == "win32":
    os.environ.setdefault("PYTHONIOENCODING", "utf-8")

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from chatmark.config import ConfigManager, get_config_manager
from chatmark.exceptions import ChatMarkError, ConfigError
from chatmark.html_renderer import to_html
from chatmark.preprocessor import normalize as normalize_text
from chatmark.preprocessor import sanitize as sanitize_text
from chatmark.preprocessor import to_plain_text
from chatmark.renderer import MarkdownRenderer, RenderResult
from chatmark.style import MarkdownStyle
from chatmark.visual import (
    Alert, CodeBlock, Collapsible, Heading, ListItem, MathSpan, RichText,
    Table as TableNode, ToolCall, VisualNode, Image, ImageError,
)

console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def error(message: str) -> None:
    """Вывести ошибку."""
    console.print(f"[red]✗[/red] {message}")


def success(message: str) -> None:
    """Вывести успех."""
    console.print(f"[green]✓[/green] {message}")


def info(message: str) -> None:
    """Вывести информацию."""
    console.print(f"[blue]ℹ[/blue] {message}")


def _config_manager(ctx: click.Context) -> ConfigManager:
    return ctx.obj["config_manager"]


def _read_input(source) -> str:
    return source.read().replace("\r\n", "\n")


def _renderer(ctx: click.Context, theme: Optional[str] = None) -> MarkdownRenderer:
    config = _config_manager(ctx).get_config()
    style = MarkdownStyle.from_theme(theme or config.theme, config.base_font_size)
    return MarkdownRenderer(style, extensions=config.extensions)


def _render(ctx: click.Context, text: str) -> RenderResult:
    return _renderer(ctx).render(text)


input_argument = click.argument("source", type=click.File("r", encoding="utf-8"), default="-")


@click.group()
@click.option(
    "--config-dir",
    envvar="CHATMARK_CONFIG_DIR",
    type=click.Path(file_okay=False, path_type=Path),
    help="Директория конфигурации (по умолчанию: ~/.chatmark)",
)
@click.option("--verbose", "-v", is_flag=True, help="Подробный лог (DEBUG)")
@click.pass_context
def main(ctx, config_dir: Optional[Path], verbose: bool):
    """chatmark - рендеринг markdown-сообщений LLM-чатов."""
    ctx.ensure_object(dict)
    manager = get_config_manager(config_dir)
    ctx.obj["config_manager"] = manager

    level = "DEBUG" if verbose else manager.get_config().log_level
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, stream=sys.stderr)


# ===== TEXT PIPELINE COMMANDS =====

@main.command()
@input_argument
@click.pass_context
def normalize(ctx, source):
    """Подготовить markdown к отображению (починить ограды кода и т.п.)."""
    extensions = _config_manager(ctx).get_config().extensions
    click.echo(normalize_text(_read_input(source), extensions))


@main.command()
@input_argument
@click.pass_context
def sanitize(ctx, source):
    """Очистить сообщение для копирования (без блоков рассуждений)."""
    extensions = _config_manager(ctx).get_config().extensions
    click.echo(sanitize_text(_read_input(source), extensions))


@main.command()
@input_argument
def plain(source):
    """Преобразовать markdown в простой текст (для озвучки)."""
    click.echo(to_plain_text(_read_input(source)))


# ===== RENDER COMMANDS =====

@main.command()
@input_argument
@click.option("--theme", type=click.Choice(["light", "dark"]), help="Тема (по умолчанию из конфигурации)")
@click.pass_context
def html(ctx, source, theme: Optional[str]):
    """Отрендерить сообщение в HTML для QTextBrowser."""
    config = _config_manager(ctx).get_config()
    renderer = _renderer(ctx, theme)
    result = renderer.render(_read_input(source))
    click.echo(to_html(result.tree, renderer.style, config.inline_code_chunk_size))
    result.scope.release()


def _node_label(node: VisualNode) -> str:
    label = f"[bold]{node.kind}[/bold]"
    if isinstance(node, Heading):
        return f"{label} h{node.level}: {escape(node.text)}"
    if isinstance(node, RichText):
        text = node.text.replace("\n", " ")
        if len(text) > 60:
            text = text[:57] + "..."
        return f"{label}: {escape(text)}"
    if isinstance(node, CodeBlock):
        lines = node.code.count("\n") + 1 if node.code else 0
        return f"{label} [cyan]{escape(node.language or 'text')}[/cyan] ({lines} lines)"
    if isinstance(node, ListItem):
        return f"{label} {escape(node.marker)}"
    if isinstance(node, TableNode):
        return f"{label} {len(node.columns)}x{len(node.rows)}"
    if isinstance(node, Alert):
        return f"{label} {node.icon} {escape(node.label)}"
    if isinstance(node, (Image, ImageError)):
        return f"{label} {escape(node.src)}"
    if isinstance(node, (Collapsible, ToolCall)):
        return f"{label} {escape(node.title)}"
    return label


def _build_tree(node: VisualNode, branch: Tree) -> None:
    for child in node.child_nodes():
        _build_tree(child, branch.add(_node_label(child)))


@main.command()
@input_argument
@click.pass_context
def tree(ctx, source):
    """Показать визуальное дерево сообщения."""
    result = _render(ctx, _read_input(source))
    root = Tree(_node_label(result.tree))
    _build_tree(result.tree, root)
    console.print(root)
    result.scope.release()


def _count_math(node: VisualNode) -> int:
    spans = []
    if isinstance(node, (RichText, Heading)):
        spans = node.spans
    elif isinstance(node, TableNode):
        for cell in node.columns:
            spans.extend(cell.spans)
        for row in node.rows:
            for cell in row.cells:
                spans.extend(cell.spans)
    return sum(1 for span in spans if isinstance(span, MathSpan))


@main.command()
@input_argument
@click.pass_context
def stats(ctx, source):
    """Статистика по сообщению: узлы, формулы, ссылки."""
    result = _render(ctx, _read_input(source))
    nodes = list(result.tree.iter_tree())
    counts = Counter(node.kind for node in nodes)
    handles = Counter(handle.kind for handle in result.scope.handles)

    table = Table(title="Статистика")
    table.add_column("Элемент", style="cyan")
    table.add_column("Количество", justify="right")
    for kind, count in sorted(counts.items()):
        table.add_row(kind, str(count))
    table.add_row("math", str(sum(_count_math(node) for node in nodes)))
    table.add_row("links", str(handles.get("link", 0)))
    table.add_row("code spans", str(handles.get("copy", 0)))
    console.print(table)
    result.scope.release()


@main.command()
@input_argument
@click.option("--stream", is_flag=True, help="Показывать текст кусками, как при стриминге")
@click.pass_context
def view(ctx, source, stream: bool):
    """Открыть сообщение в окне просмотра (PyQt6)."""
    from chatmark.gui import run_viewer

    text = _read_input(source)
    config = _config_manager(ctx).get_config()
    sys.exit(run_viewer(text, stream=stream, config=config, title=getattr(source, "name", "chatmark")))


# ===== CONFIG COMMANDS =====

@main.group()
def config():
    """Настройки рендерера."""
    pass


@config.command("show")
@click.pass_context
def config_show(ctx):
    """Показать текущие настройки."""
    manager = _config_manager(ctx)
    table = Table(title="Конфигурация", show_header=False)
    table.add_column("Параметр", style="cyan")
    table.add_column("Значение")
    for key, value in manager.as_dict().items():
        table.add_row(key, escape(str(value)))
    console.print(table)
    info(f"Файл: {manager.config_file}")


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx, key: str, value: str):
    """Установить значение настройки (например: theme dark)."""
    try:
        _config_manager(ctx).set_value(key, value)
        success(f"{key} = {escape(value)}")
    except ConfigError as e:
        error(escape(e.message))
        sys.exit(1)


@config.command("reset")
@click.confirmation_option(prompt="Сбросить все настройки?")
@click.pass_context
def config_reset(ctx):
    """Сбросить настройки к значениям по умолчанию."""
    try:
        _config_manager(ctx).reset()
        success("Настройки сброшены")
    except (OSError, ChatMarkError) as e:
        error(f"Ошибка: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
