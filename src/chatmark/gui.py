# -*- coding: utf-8 -*-
"""
Просмотрщик markdown-сообщений на PyQt6.

Показывает сообщение в пузыре ассистента. В режиме стриминга текст
подаётся кусками, имитируя поступление токенов от LLM.
"""

import sys
import os
import logging
from typing import Optional

from PyQt6.QtWidgets import QApplication, QMainWindow, QScrollArea, QVBoxLayout, QWidget
from PyQt6.QtCore import QTimer
from PyQt6.QtGui import QFont

from chatmark.chat_widgets import MessageBubbleWidget, StreamingBubbleWidget, install_exception_hook
from chatmark.models import RendererConfig

logger = logging.getLogger(__name__)

FEED_INTERVAL_MS = 30


class ViewerWindow(QMainWindow):
    """Окно с одним сообщением."""

    def __init__(self, text: str, config: RendererConfig, stream: bool = False, title: str = "chatmark"):
        super().__init__()
        self.setWindowTitle(title)
        self.resize(820, 900)

        self._text = text
        self._config = config
        self._position = 0

        container = QWidget()
        self._layout = QVBoxLayout(container)
        self._layout.setContentsMargins(12, 12, 12, 12)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(container)
        self.setCentralWidget(scroll)

        if stream:
            self._bubble = StreamingBubbleWidget(config)
            self._layout.addWidget(self._bubble)
            self._feed_timer = QTimer(self)
            self._feed_timer.setInterval(FEED_INTERVAL_MS)
            self._feed_timer.timeout.connect(self._feed_chunk)
            self._feed_timer.start()
        else:
            self._bubble = MessageBubbleWidget("assistant", text, config)
            self._layout.addWidget(self._bubble)
        self._layout.addStretch(1)

    def _feed_chunk(self):
        size = self._config.stream_chunk_size
        chunk = self._text[self._position:self._position + size]
        self._position += size
        if chunk:
            self._bubble.append_token(chunk)
            return
        self._feed_timer.stop()
        self._bubble.finish()
        logger.info(f"Stream finished: {len(self._text)} chars")

    def closeEvent(self, event):
        if isinstance(self._bubble, StreamingBubbleWidget):
            self._bubble.close_stream()
        else:
            self._bubble.release()
        super().closeEvent(event)


def run_viewer(text: str, stream: bool = False, config: Optional[RendererConfig] = None, title: str = "chatmark") -> int:
    """Запустить окно просмотра и вернуть код выхода Qt."""
    if sys.platform == 'win32':
        os.environ['PYTHONIOENCODING'] = 'utf-8'

    install_exception_hook()

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("chatmark")
    app.setStyle("Fusion")
    app.setFont(QFont("Segoe UI", 10))

    window = ViewerWindow(text, config or RendererConfig(), stream=stream, title=title)
    window.show()
    return app.exec()
