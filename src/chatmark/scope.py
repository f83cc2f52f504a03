# -*- coding: utf-8 -*-
"""
Interaction handles and their per-render scope.

Every link and inline code span in a rendered tree gets an
:class:`InteractionHandle` (tap to open, tap to copy). Handles belong to the
:class:`RenderScope` of the pass that created them; releasing the scope
releases all of them, so a stale tree can never fire callbacks.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from chatmark.exceptions import ScopeReleasedError

logger = logging.getLogger(__name__)

HANDLE_LINK = "link"
HANDLE_COPY = "copy"


class InteractionHandle:
    """A tap target bound to a callback and its arguments."""

    def __init__(
        self,
        handle_id: int,
        kind: str,
        callback: Optional[Callable[..., Any]] = None,
        args: Tuple[Any, ...] = (),
    ):
        self.handle_id = handle_id
        self.kind = kind
        self.args = args
        self._callback = callback
        self._released = False

    @property
    def anchor(self) -> str:
        """Anchor string used in HTML output, e.g. ``link:3``."""
        return f"{self.kind}:{self.handle_id}"

    @property
    def released(self) -> bool:
        return self._released

    def activate(self) -> bool:
        """Invoke the callback. Returns False if nothing was called."""
        if self._released:
            logger.debug(f"Ignoring activation of released handle {self.anchor}")
            return False
        if self._callback is None:
            return False
        self._callback(*self.args)
        return True

    def release(self) -> None:
        self._released = True
        self._callback = None

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"InteractionHandle({self.anchor}, {state})"


class RenderScope:
    """Owns every handle created during one render pass."""

    def __init__(self):
        self._handles: Dict[str, InteractionHandle] = {}
        self._next_id = 0
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def handles(self) -> List[InteractionHandle]:
        return list(self._handles.values())

    def create_handle(
        self,
        kind: str,
        callback: Optional[Callable[..., Any]] = None,
        *args: Any,
    ) -> InteractionHandle:
        if self._released:
            raise ScopeReleasedError()
        handle = InteractionHandle(self._next_id, kind, callback, args)
        self._next_id += 1
        self._handles[handle.anchor] = handle
        return handle

    def find(self, anchor: str) -> Optional[InteractionHandle]:
        return self._handles.get(anchor)

    def release(self) -> None:
        if self._released:
            return
        for handle in self._handles.values():
            handle.release()
        self._released = True
        logger.debug(f"Released render scope with {len(self._handles)} handle(s)")

    def __enter__(self) -> "RenderScope":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
