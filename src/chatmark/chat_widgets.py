# -*- coding: utf-8 -*-
"""
Виджеты чата: сворачиваемые секции, markdown-представление, пузыри сообщений, стриминг.
"""

import sys
import html
import logging
import traceback
from typing import List, Optional

from PyQt6.QtWidgets import (
    QApplication, QFrame, QVBoxLayout, QHBoxLayout, QPushButton,
    QWidget, QTextBrowser,
)
from PyQt6.QtCore import Qt, QTimer, QUrl
from PyQt6.QtGui import QFont, QDesktopServices

from chatmark.html_renderer import to_html
from chatmark.models import RendererConfig
from chatmark.renderer import MarkdownRenderer, RenderResult, StreamingRenderer
from chatmark.scope import RenderScope
from chatmark.style import MarkdownStyle
from chatmark.visual import Collapsible, Column, ToolCall, VisualNode

logger = logging.getLogger(__name__)


def install_exception_hook():
    """Устанавливает глобальный обработчик необработанных исключений для PyQt6."""
    def _exception_hook(exc_type, exc_value, exc_tb):
        msg = "".join(traceback.format_exception(exc_type, exc_value, exc_tb))
        logger.critical(f"Unhandled exception:\n{msg}")
        # Вызов дефолтного обработчика (чтобы Python мог завершить процесс)
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _exception_hook


def open_link(href: str, title: str = "") -> None:
    """Открыть ссылку во внешнем браузере."""
    if href.startswith("#"):
        return
    QDesktopServices.openUrl(QUrl(href))


def copy_to_clipboard(text: str) -> None:
    QApplication.clipboard().setText(text)


def create_renderer(config: RendererConfig) -> MarkdownRenderer:
    """Рендерер с Qt-обработчиками ссылок и копирования."""
    return MarkdownRenderer(
        MarkdownStyle.from_config(config),
        on_link_tap=open_link,
        on_copy=copy_to_clipboard,
        extensions=config.extensions,
    )


class CollapsibleSection(QFrame):
    """Сворачиваемый блок с заголовком-кнопкой и областью содержимого."""

    def __init__(self, title: str, parent=None, initially_expanded: bool = False):
        super().__init__(parent)
        self._title = title

        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(10, 2, 10, 2)
        main_layout.setSpacing(0)

        # Кнопка-заголовок
        self._toggle_btn = QPushButton()
        self._toggle_btn.setCheckable(True)
        self._toggle_btn.setChecked(initially_expanded)
        self._toggle_btn.clicked.connect(self._on_toggle)
        self._toggle_btn.setCursor(Qt.CursorShape.PointingHandCursor)
        self._toggle_btn.setStyleSheet("""
            QPushButton {
                text-align: left; border: none; background: #f0f4f8;
                padding: 4px 8px; border-radius: 4px; font-size: 11px; color: #555;
            }
            QPushButton:hover { background: #e2e8f0; }
        """)
        main_layout.addWidget(self._toggle_btn)

        # Контейнер содержимого
        self._content_widget = QWidget()
        self._content_layout = QVBoxLayout(self._content_widget)
        self._content_layout.setContentsMargins(10, 4, 0, 4)
        self._content_layout.setSpacing(2)
        main_layout.addWidget(self._content_widget)

        self._content_widget.setVisible(initially_expanded)
        self._update_label()

    def _on_toggle(self):
        self._content_widget.setVisible(self._toggle_btn.isChecked())
        self._update_label()

    def _update_label(self):
        arrow = "▼" if self._toggle_btn.isChecked() else "▶"
        self._toggle_btn.setText(f"{arrow}  {self._title}")

    def add_widget(self, widget: QWidget):
        self._content_layout.addWidget(widget)

    def set_expanded(self, expanded: bool):
        self._toggle_btn.setChecked(expanded)
        self._on_toggle()

    @property
    def expanded(self) -> bool:
        return self._toggle_btn.isChecked()


class _AutoHeightBrowser(QTextBrowser):
    """QTextBrowser, подгоняющий высоту под содержимое."""

    MAX_HEIGHT = 2000

    def __init__(self, parent=None):
        super().__init__(parent)
        self._adjusting = False  # Защита от рекурсии при пересчёте высоты
        self.setOpenLinks(False)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setFrameShape(QFrame.Shape.NoFrame)
        self.setStyleSheet("QTextBrowser { background: transparent; }")

    def apply_height(self):
        if self._adjusting:
            return
        self._adjusting = True
        try:
            self.document().setTextWidth(self.viewport().width() or 400)
            h = int(self.document().size().height()) + 10
            if h > self.MAX_HEIGHT:
                self.setMaximumHeight(self.MAX_HEIGHT)
                self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAsNeeded)
            else:
                self.setFixedHeight(max(h, 24))
        finally:
            self._adjusting = False

    def resizeEvent(self, event):
        """Пересчитать высоту при изменении ширины виджета."""
        super().resizeEvent(event)
        self.apply_height()


class MarkdownView(QWidget):
    """
    Отображение результата рендеринга.

    Блоки рассуждений и вызовы инструментов становятся CollapsibleSection,
    всё остальное выводится в QTextBrowser. Клики по якорям `link:N` /
    `copy:N` разрешаются через RenderScope текущего прохода.
    """

    def __init__(self, style: MarkdownStyle, chunk_size: int = 24, parent=None):
        super().__init__(parent)
        self._style = style
        self._chunk_size = chunk_size
        self._scope: Optional[RenderScope] = None
        self._browsers: List[_AutoHeightBrowser] = []

        self._layout = QVBoxLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._layout.setSpacing(4)

    def set_result(self, result: RenderResult) -> None:
        """Перестроить виджеты по новому дереву."""
        self._clear()
        self._scope = result.scope

        pending: List[VisualNode] = []
        for node in result.tree.children:
            if isinstance(node, (Collapsible, ToolCall)):
                self._flush(pending, self._layout)
                pending = []
                self._layout.addWidget(self._section(node))
            else:
                pending.append(node)
        self._flush(pending, self._layout)

    def _section(self, node: VisualNode) -> CollapsibleSection:
        if isinstance(node, Collapsible):
            section = CollapsibleSection(node.title, initially_expanded=not node.done)
            section.add_widget(self._browser(node.body))
            return section

        section = CollapsibleSection(node.title)
        parts = []
        if node.arguments:
            parts.append(f"<pre>{html.escape(node.arguments)}</pre>")
        if node.result:
            parts.append(f"<pre>{html.escape(node.result)}</pre>")
        browser = _AutoHeightBrowser()
        browser.setHtml("".join(parts) or "<i>…</i>")
        section.add_widget(browser)
        return section

    def _flush(self, nodes: List[VisualNode], layout: QVBoxLayout) -> None:
        if nodes:
            layout.addWidget(self._browser(Column(children=nodes)))

    def _browser(self, column: Column) -> _AutoHeightBrowser:
        browser = _AutoHeightBrowser()
        browser.setFont(QFont("Segoe UI", 11))
        browser.anchorClicked.connect(self._on_anchor_clicked)
        browser.setHtml(to_html(column, self._style, self._chunk_size))
        self._browsers.append(browser)
        return browser

    def _on_anchor_clicked(self, url: QUrl) -> None:
        anchor = url.toString()
        handle = self._scope.find(anchor) if self._scope is not None else None
        if handle is not None:
            handle.activate()
        elif url.scheme() in ("http", "https"):
            QDesktopServices.openUrl(url)
        else:
            logger.debug(f"Unhandled anchor: {anchor}")

    def _clear(self) -> None:
        self._browsers.clear()
        while self._layout.count():
            item = self._layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()

    def apply_height(self) -> None:
        for browser in self._browsers:
            browser.apply_height()


def _bubble_frame(widget: QWidget, role: str) -> QFrame:
    frame = QFrame()
    frame.setObjectName("bubble")
    if role == "user":
        frame.setStyleSheet("QFrame#bubble { background: #e0e0e0; border: none; border-radius: 18px; }")
    else:
        frame.setStyleSheet(
            "QFrame#bubble { background: #ffffff; border: 1px solid #e0e0e0; border-radius: 18px; }"
        )
    inner = QVBoxLayout(frame)
    inner.setContentsMargins(16, 12, 16, 12)
    inner.addWidget(widget)
    return frame


class MessageBubbleWidget(QFrame):
    """Пузырь сообщения (пользователь или ассистент)."""

    def __init__(self, role: str, content: str, config: Optional[RendererConfig] = None, parent=None):
        super().__init__(parent)
        config = config or RendererConfig()
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 5, 0, 5)
        layout.setSpacing(0)

        if role == "user":
            browser = _AutoHeightBrowser()
            browser.setHtml(
                f'<div style="white-space: pre-wrap; text-align: right;">{html.escape(content)}</div>'
            )
            layout.addStretch(2)
            layout.addWidget(_bubble_frame(browser, role), 8)
            self._view = None
            return

        renderer = create_renderer(config)
        self._result = renderer.render(content)
        self._view = MarkdownView(renderer.style, config.inline_code_chunk_size)
        self._view.set_result(self._result)
        layout.addWidget(_bubble_frame(self._view, role), 8)
        layout.addStretch(2)

    def release(self) -> None:
        """Освободить обработчики ссылок (сообщение удалено из чата)."""
        if self._view is not None:
            self._result.scope.release()


class StreamingBubbleWidget(QFrame):
    """Виджет для стриминга токенов в реальном времени."""

    def __init__(self, config: Optional[RendererConfig] = None, parent=None):
        super().__init__(parent)
        config = config or RendererConfig()
        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 5, 0, 5)
        layout.setSpacing(0)

        renderer = create_renderer(config)
        self._streaming = StreamingRenderer(renderer)
        self._view = MarkdownView(renderer.style, config.inline_code_chunk_size)
        layout.addWidget(_bubble_frame(self._view, "assistant"), 8)
        layout.addStretch(2)

        self._accumulated = ""

        # Дебаунс перерисовки
        self._render_timer = QTimer(self)
        self._render_timer.setSingleShot(True)
        self._render_timer.setInterval(config.stream_interval_ms)
        self._render_timer.timeout.connect(self._rerender)

    def append_token(self, token: str):
        self._accumulated += token
        if not self._render_timer.isActive():
            self._render_timer.start()

    def set_content(self, content: str):
        """Заменить содержимое целиком (сообщение отредактировано)."""
        self._accumulated = content
        self._render_timer.stop()
        self._view.set_result(self._streaming.replace(content))

    def finish(self):
        """Завершение стрима: финальная отрисовка без ожидания таймера."""
        self._render_timer.stop()
        self._rerender()

    def get_accumulated_text(self) -> str:
        return self._accumulated

    def close_stream(self):
        self._render_timer.stop()
        self._streaming.close()

    def _rerender(self):
        self._view.set_result(self._streaming.update(self._accumulated))
