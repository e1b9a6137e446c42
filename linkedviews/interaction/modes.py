"""
Interaction Mode Controller

Per-view state machine choosing between MOVE (pan/zoom) and SELECT (lasso).

TRANSITIONS:
============
Declared once in MODE_BINDINGS: for each target mode, which interactors
are detached, which are attached, and which cursor is shown. Interactors
are only swapped by a deliberate toggle, never in the middle of a pointer
gesture.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..contracts.base import ViewMode, ViewName
from ..observability import InteractionAuditLog, AuditEventType
from ..visualization.renderer import Renderer


ZOOM = "zoom"
LASSO = "lasso"


class Interactor:
    """Something that listens to pointer input on one view while attached."""

    def __init__(self):
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach(self):
        self._attached = True

    def detach(self):
        self._attached = False


class LassoInteractor(Interactor):
    """
    Handle on the external lasso/marquee collaborator of one view.

    Only the fill colour is owned here; polygon geometry is not.
    """

    def __init__(self, view: ViewName, fill_color: Optional[str] = None):
        super().__init__()
        self.view = view
        self.fill_color = fill_color


@dataclass(frozen=True)
class ModeBindings:
    detach: Tuple[str, ...]
    attach: Tuple[str, ...]
    cursor: Optional[str] = None


MODE_BINDINGS: Dict[ViewMode, ModeBindings] = {
    ViewMode.SELECT: ModeBindings(detach=(ZOOM,), attach=(LASSO,)),
    ViewMode.MOVE: ModeBindings(detach=(LASSO,), attach=(ZOOM,), cursor="move"),
}

INITIAL_MODE = ViewMode.MOVE


class InteractionModeController:
    """Single writer of every view's mode."""

    def __init__(self, renderer: Optional[Renderer] = None, audit: Optional[InteractionAuditLog] = None):
        self._renderer = renderer or Renderer()
        self._audit = audit or InteractionAuditLog()
        self._modes: Dict[ViewName, ViewMode] = {}
        self._interactors: Dict[ViewName, Dict[str, Interactor]] = {}
        self._gesture: Dict[ViewName, bool] = {v: False for v in ViewName}

    def register(self, view: ViewName, zoom: Interactor, lasso: Interactor):
        """Bind a view's interactors and enter the initial mode."""
        self._interactors[view] = {ZOOM: zoom, LASSO: lasso}
        self._enter(view, INITIAL_MODE)

    def mode(self, view: ViewName) -> ViewMode:
        return self._modes[view]

    # Historical two-flag view of the single mode
    def select_mode(self, view: ViewName) -> bool:
        return self._modes[view] is ViewMode.SELECT

    def move_mode(self, view: ViewName) -> bool:
        return self._modes[view] is ViewMode.MOVE

    def begin_gesture(self, view: ViewName):
        self._gesture[view] = True

    def end_gesture(self, view: ViewName):
        self._gesture[view] = False

    def gesture_in_progress(self, view: ViewName) -> bool:
        return self._gesture[view]

    def toggle(self, view: ViewName) -> ViewMode:
        """
        Flip MOVE <-> SELECT.

        Refused while a pointer gesture is in progress; the unchanged
        mode is returned.
        """
        current = self._modes[view]
        if self._gesture[view]:
            self._audit.record(
                AuditEventType.MODE_CHANGED, "refused", view=view, mode=current.value,
            )
            return current
        return self._enter(view, current.toggled)

    def _enter(self, view: ViewName, mode: ViewMode) -> ViewMode:
        bindings = MODE_BINDINGS[mode]
        interactors = self._interactors[view]
        for name in bindings.detach:
            interactors[name].detach()
        for name in bindings.attach:
            interactors[name].attach()
        if bindings.cursor is not None:
            self._renderer.set_cursor(view, bindings.cursor)

        self._modes[view] = mode
        self._audit.record(AuditEventType.MODE_CHANGED, "enter", view=view, mode=mode.value)
        return mode
