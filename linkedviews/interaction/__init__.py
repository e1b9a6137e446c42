"""
Interaction Layer

User input: selection gestures, MOVE/SELECT modes and pan/zoom.
"""

from .selection import (
    SelectionSet, SelectionTracker, Modifiers, NO_MODIFIERS,
    apply_lasso, compute_selection, has_changed, sort_selection, selection_key,
)
from .modes import (
    Interactor, LassoInteractor, InteractionModeController,
    ModeBindings, MODE_BINDINGS, INITIAL_MODE, ZOOM, LASSO,
)
from .transform import ViewTransform, ZoomGesture

__all__ = [
    'SelectionSet', 'SelectionTracker', 'Modifiers', 'NO_MODIFIERS',
    'apply_lasso', 'compute_selection', 'has_changed', 'sort_selection', 'selection_key',
    'Interactor', 'LassoInteractor', 'InteractionModeController',
    'ModeBindings', 'MODE_BINDINGS', 'INITIAL_MODE', 'ZOOM', 'LASSO',
    'ViewTransform', 'ZoomGesture',
]
