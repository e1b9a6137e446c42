"""
Layout Dispatcher

Requests a named layout or metric computation for one view.

Layout algorithms know nothing about the viewport, so every response is
rescaled before it is applied. A metric changes node sizes, which moves
chrome in the rendering layer: both views' chrome is rebuilt and the
entanglement feedback re-emitted afterwards.
"""

from __future__ import annotations
from typing import Callable, Optional

from ..config import InteractionConfig
from ..contracts.base import ViewName
from ..contracts.wire import AlgorithmKind, GraphResponse, algorithm_request
from ..session import SessionManager
from ..transport import BackendClient
from ..visualization.renderer import Renderer
from .state import ApplicationState, ResponseApplier


# Algorithm names understood by the backend
FORCE_LAYOUT = "FM^3 (OGDF)"
CIRCULAR_LAYOUT = "Circular"
RANDOM_LAYOUT = "Random"
DEGREE_METRIC = "Degree"
BETWEENNESS_METRIC = "Betweenness Centrality"


class LayoutDispatcher:

    def __init__(
        self,
        state: ApplicationState,
        session: SessionManager,
        client: BackendClient,
        applier: ResponseApplier,
        renderer: Optional[Renderer] = None,
        config: Optional[InteractionConfig] = None,
        refresh_feedback: Optional[Callable[[], None]] = None
    ):
        self._state = state
        self._session = session
        self._client = client
        self._applier = applier
        self._renderer = renderer or Renderer()
        self._config = config or InteractionConfig()
        self._refresh_feedback = refresh_feedback

    async def apply_layout(self, view: ViewName, name: str) -> Optional[GraphResponse]:
        response = await self._dispatch(view, AlgorithmKind.LAYOUT, name)
        if response is not None:
            target = self._state.view(view)
            self._renderer.move(view, target.graph)
        return response

    async def apply_metric(self, view: ViewName, name: str) -> Optional[GraphResponse]:
        response = await self._dispatch(view, AlgorithmKind.FLOAT, name)
        if response is not None:
            target = self._state.view(view)
            self._renderer.resize(view, target.graph)
            self._renderer.refresh_chrome()
            if self._refresh_feedback is not None:
                self._refresh_feedback()
        return response

    def reset_size(self, view: ViewName):
        """Every node back to the default metric; local only."""
        target = self._state.view(view)
        for node in target.graph.nodes:
            node.view_metric = self._config.default_view_metric
        self._renderer.resize(view, target.graph)

    async def _dispatch(self, view: ViewName, kind: AlgorithmKind, name: str) -> Optional[GraphResponse]:
        self._session.ensure_available()
        sid = await self._session.wait_for_session()
        response = await self._client.send(algorithm_request(sid, kind, name, view))
        action = f"{kind.value}:{name}"
        if not self._applier.apply(self._state.view(view), response, action):
            return None
        return response
