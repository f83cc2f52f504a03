"""Tests for interaction handles and render scopes."""

import pytest

from chatmark.exceptions import ScopeReleasedError
from chatmark.scope import HANDLE_COPY, HANDLE_LINK, RenderScope


class TestRenderScope:
    """Handle lifetime is bound to the scope."""

    def test_create_and_activate(self):
        received = []
        scope = RenderScope()
        handle = scope.create_handle(HANDLE_LINK, lambda *args: received.append(args), "https://a.b", "")
        assert handle.anchor == "link:0"
        assert handle.activate() is True
        assert received == [("https://a.b", "")]

    def test_ids_unique_across_kinds(self):
        scope = RenderScope()
        first = scope.create_handle(HANDLE_LINK)
        second = scope.create_handle(HANDLE_COPY)
        assert first.anchor == "link:0"
        assert second.anchor == "copy:1"
        assert scope.find("copy:1") is second
        assert scope.find("copy:0") is None

    def test_handle_without_callback(self):
        handle = RenderScope().create_handle(HANDLE_COPY)
        assert handle.activate() is False

    def test_release_disables_handles(self):
        calls = []
        scope = RenderScope()
        handle = scope.create_handle(HANDLE_COPY, calls.append, "code")
        scope.release()
        assert scope.released
        assert handle.released
        assert handle.activate() is False
        assert calls == []
        assert "released" in repr(handle)

    def test_release_idempotent(self):
        scope = RenderScope()
        scope.release()
        scope.release()
        assert scope.released

    def test_no_handles_after_release(self):
        scope = RenderScope()
        scope.release()
        with pytest.raises(ScopeReleasedError):
            scope.create_handle(HANDLE_LINK)

    def test_context_manager(self):
        with RenderScope() as scope:
            handle = scope.create_handle(HANDLE_LINK)
        assert handle.released
