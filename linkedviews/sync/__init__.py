"""
Sync Layer

Per-view state records and the two components that talk to the backend
on behalf of a view: SyncEngine and LayoutDispatcher.
"""

from .state import ViewState, ApplicationState, ResponseApplier
from .engine import SyncEngine
from .layout import (
    LayoutDispatcher,
    FORCE_LAYOUT, CIRCULAR_LAYOUT, RANDOM_LAYOUT, DEGREE_METRIC, BETWEENNESS_METRIC,
)

__all__ = [
    'ViewState', 'ApplicationState', 'ResponseApplier',
    'SyncEngine', 'LayoutDispatcher',
    'FORCE_LAYOUT', 'CIRCULAR_LAYOUT', 'RANDOM_LAYOUT', 'DEGREE_METRIC', 'BETWEENNESS_METRIC',
]
