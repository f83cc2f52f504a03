"""Shared fixtures for chatmark tests."""

import pytest

from chatmark.config import ConfigManager
from chatmark.renderer import MarkdownRenderer
from chatmark.scope import RenderScope
from chatmark.style import MarkdownStyle


@pytest.fixture
def style():
    return MarkdownStyle.light()


@pytest.fixture
def scope():
    scope = RenderScope()
    yield scope
    scope.release()


@pytest.fixture
def taps():
    """Records link taps and copy requests."""
    return {"links": [], "copies": []}


@pytest.fixture
def renderer(style, taps):
    return MarkdownRenderer(
        style,
        on_link_tap=lambda href, title: taps["links"].append((href, title)),
        on_copy=lambda code: taps["copies"].append(code),
    )


@pytest.fixture
def config_manager(tmp_path):
    return ConfigManager(tmp_path / "config")
