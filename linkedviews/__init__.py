"""
linkedviews

Keeps two linked graph views, "substrate" and "catalyst", in sync through
a remote analysis backend.

LAYERS:
=======
contracts      -> shared types, errors, wire protocol
transport      -> httpx client
session        -> backend session lifecycle
visualization  -> rescaling, entanglement feedback, renderer interface
interaction    -> selection, MOVE/SELECT modes, pan/zoom
sync           -> SyncEngine, LayoutDispatcher, per-view state
app            -> LinkedViewsApp wiring and event handlers

DIRECTION OF DEPENDENCY:
========================
contracts <- transport <- session <- sync <- app
contracts <- visualization <- interaction <- sync
"""

from .config import AppConfig, BackendConfig, InteractionConfig, ViewportConfig
from .contracts import (
    ViewName, ViewMode, SyncOperator, pair_of,
    EntanglementIndices, Node, Link, GraphView,
    LinkedViewsError, NoActiveSession, BackendError, BackendUnavailable, MalformedResponse,
    InvalidGraph,
)
from .interaction import Modifiers, ZoomGesture
from .visualization import Renderer

__all__ = [
    'AppConfig', 'BackendConfig', 'InteractionConfig', 'ViewportConfig',
    'ViewName', 'ViewMode', 'SyncOperator', 'pair_of',
    'EntanglementIndices', 'Node', 'Link', 'GraphView',
    'LinkedViewsError', 'NoActiveSession', 'BackendError',
    'BackendUnavailable', 'MalformedResponse', 'InvalidGraph',
    'Modifiers', 'ZoomGesture', 'Renderer',
    'get_app',
]


def get_app(config=None, renderer=None):
    """
    Build a LinkedViewsApp (lazy import keeps the contracts importable
    without pulling in the transport).

    Usage:
        from linkedviews import get_app
        app = get_app()
        await app.load(path="graph.json")
    """
    from .app import LinkedViewsApp
    return LinkedViewsApp(config, renderer)
