"""
Selection Tracking

Derives a view's selection and decides whether it changed since the last
synchronization.

WHY A GATE:
A lasso re-evaluates intersection on every pointer move. Only a change in
the set of selected base ids may reach the backend; this comparison, and
only this one, gates SyncEngine.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from ..contracts.base import BaseId, ViewName
from ..contracts.graph import GraphView


SelectionSet = Tuple[BaseId, ...]


def selection_key(base_id: BaseId) -> Tuple[int, object]:
    """Deterministic order for mixed id types: numbers first, then strings."""
    if isinstance(base_id, (int, float)) and not isinstance(base_id, bool):
        return (0, base_id)
    return (1, str(base_id))


def sort_selection(base_ids) -> SelectionSet:
    return tuple(sorted(base_ids, key=selection_key))


def compute_selection(graph: GraphView) -> SelectionSet:
    """Sorted base ids of the nodes flagged selected."""
    return sort_selection(n.base_id for n in graph.nodes if n.selected)


def has_changed(new: SelectionSet, previous: SelectionSet) -> bool:
    """True iff sizes differ or any position differs after sorting."""
    if len(new) != len(previous):
        return True
    return sort_selection(new) != sort_selection(previous)


# =============================================================================
# LASSO SELECTION RULES
# =============================================================================

@dataclass(frozen=True)
class Modifiers:
    """Keyboard modifiers held during a selection gesture."""
    shift: bool = False
    ctrl: bool = False
    meta: bool = False

    @property
    def keep(self) -> bool:
        return self.ctrl or self.meta


NO_MODIFIERS = Modifiers()


def apply_lasso(
    graph: GraphView,
    contains: Callable[[float, float], bool],
    modifiers: Modifiers = NO_MODIFIERS
) -> SelectionSet:
    """
    Update `selected` flags from a lasso or marquee gesture.

    `contains(x, y)` is the geometry collaborator, evaluated at display
    coordinates:
    - ctrl/meta: an already selected node stays selected
    - shift: an intersecting node is removed, others keep their flag
    - otherwise: selected iff it intersects
    """
    for node in graph.nodes:
        if modifiers.keep and node.selected:
            continue
        intersects = contains(node.current_x, node.current_y)
        if modifiers.shift:
            if intersects:
                node.selected = False
        else:
            node.selected = intersects
    return compute_selection(graph)


class SelectionTracker:
    """Per-view memory of the last synchronized selection."""

    def __init__(self):
        self._previous: Dict[ViewName, SelectionSet] = {v: () for v in ViewName}

    def previous(self, view: ViewName) -> SelectionSet:
        return self._previous[view]

    def observe(self, view: ViewName, graph: GraphView) -> Optional[SelectionSet]:
        """
        The current selection if it differs from the last one seen,
        otherwise None. The new selection becomes the reference.
        """
        current = compute_selection(graph)
        if not has_changed(current, self._previous[view]):
            return None
        self._previous[view] = current
        return current

    def forget(self, view: ViewName):
        """Contents were replaced; the next tick compares against nothing."""
        self._previous[view] = ()
