"""
Sync Engine

Sends a view's selection to the backend and applies the related subgraph
to the paired view.

PROTOCOL:
=========
- synchronize: "analyse" with selection + operator; result -> paired view
- analyse: initial "analyse" of the substrate; result -> catalyst
- induce_subgraph: "update" with selection; result -> same view

EMPTY SELECTION:
================
Carries no synchronization signal. Selection styling of both views is
reset and the paired view's node sizes return to the default metric.
No backend call is made.

ORDERING:
=========
Requests are never cancelled. Results apply in arrival order, so a slow
stale response can overwrite a newer one unless stale discarding is
enabled in InteractionConfig.
"""

from __future__ import annotations
from typing import Optional
import logging

from ..config import InteractionConfig
from ..contracts.base import (
    EntanglementIndices, SyncOperator, ViewName,
)
from ..contracts.graph import selection_payload
from ..contracts.wire import (
    GraphResponse, analyse_request, initial_analyse_request, update_request,
)
from ..interaction.selection import SelectionSet, compute_selection
from ..observability import InteractionAuditLog, AuditEventType
from ..session import SessionManager
from ..transport import BackendClient
from ..visualization.feedback import EntanglementFeedback
from ..visualization.renderer import Renderer
from .state import ApplicationState, ResponseApplier


logger = logging.getLogger(__name__)


class SyncEngine:
    """Single writer of the entanglement indices and the sync operator."""

    def __init__(
        self,
        state: ApplicationState,
        session: SessionManager,
        client: BackendClient,
        applier: ResponseApplier,
        feedback: EntanglementFeedback,
        renderer: Optional[Renderer] = None,
        config: Optional[InteractionConfig] = None,
        audit: Optional[InteractionAuditLog] = None
    ):
        self._state = state
        self._session = session
        self._client = client
        self._applier = applier
        self._feedback = feedback
        self._renderer = renderer or Renderer()
        self._config = config or InteractionConfig()
        self._audit = audit or InteractionAuditLog()

    @property
    def indices(self) -> EntanglementIndices:
        return self._state.indices

    @property
    def operator(self) -> SyncOperator:
        return self._state.operator

    def toggle_operator(self) -> SyncOperator:
        self._state.operator = self._state.operator.toggled
        self._renderer.set_operator_label(self._state.operator)
        return self._state.operator

    async def synchronize(
        self,
        source: ViewName,
        selection: SelectionSet,
        operator: Optional[SyncOperator] = None
    ) -> Optional[GraphResponse]:
        """
        Synchronize the paired view from `source`'s selection.

        Returns the applied response, or None when nothing was applied
        (empty selection, or a discarded stale response).
        """
        if not selection:
            self.clear(source)
            return None

        self._session.ensure_available()
        operator = operator or self._state.operator
        sid = await self._session.wait_for_session()

        logger.debug("Synchronizing %s selection of %d node(s) with %s", source.value, len(selection), operator.value)
        request = analyse_request(sid, selection_payload(selection), source, operator)
        response = await self._client.send(request)

        paired = self._state.paired(source)
        if not self._applier.apply(paired, response, "synchronize"):
            return None
        self._renderer.show(paired.name, paired.graph)
        self._update_indices(response)
        return response

    def clear(self, source: ViewName):
        """Empty selection policy; no backend call."""
        paired = self._state.paired(source)
        for view in self._state:
            self._renderer.reset_selection_styling(view.name)
        paired.graph.clear_selection()
        for node in paired.graph.nodes:
            node.view_metric = self._config.default_view_metric
        self._renderer.resize(paired.name, paired.graph)
        self._audit.record(AuditEventType.SELECTION_CLEARED, "synchronize", view=source)

    async def analyse(self) -> Optional[GraphResponse]:
        """Initial analysis of the whole substrate into the catalyst view."""
        self._session.ensure_available()
        sid = await self._session.wait_for_session()
        response = await self._client.send(initial_analyse_request(sid))

        catalyst = self._state.view(ViewName.CATALYST)
        if not self._applier.apply(catalyst, response, "analyse"):
            return None
        self._renderer.draw(catalyst.name, catalyst.graph)
        self._update_indices(response)
        return response

    async def induce_subgraph(self, view: ViewName) -> Optional[GraphResponse]:
        """Reduce `view` to the subgraph induced by its own selection."""
        self._session.ensure_available()
        target = self._state.view(view)
        selection = compute_selection(target.graph)
        sid = await self._session.wait_for_session()

        response = await self._client.send(update_request(sid, selection_payload(selection), view))
        if not self._applier.apply(target, response, "induce_subgraph"):
            return None
        self._renderer.exit(view, target.graph)
        return response

    def _update_indices(self, response: GraphResponse):
        indices = response.indices
        if indices is None:
            return
        self._state.indices = indices
        state = self._feedback.update(indices)
        self._audit.record(
            AuditEventType.FEEDBACK_UPDATED, "indices",
            intensity=state.intensity_text, homogeneity=state.homogeneity_text,
            bucket=state.bucket,
        )

    def refresh_feedback(self):
        """Re-emit feedback for the current indices (after chrome rebuilds)."""
        self._feedback.update(self._state.indices)
