"""
Application State

One explicit record per view plus the few global fields.

OWNERSHIP (single writer per field):
====================================
- SessionManager: session id (held by SessionManager itself)
- InteractionModeController: view modes (held by the controller)
- SyncEngine: entanglement indices, sync operator
- Response application: graph contents, applied_sequence
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ..contracts.base import (
    EntanglementIndices, SyncOperator, ViewName, pair_of,
)
from ..contracts.graph import GraphView
from ..contracts.wire import GraphResponse
from ..interaction.modes import LassoInteractor
from ..interaction.selection import SelectionTracker
from ..interaction.transform import ViewTransform
from ..observability import InteractionAuditLog, AuditEventType
from ..visualization.rescale import CoordinateRescaler


@dataclass
class ViewState:
    name: ViewName
    graph: GraphView
    lasso: LassoInteractor
    transform: Optional[ViewTransform] = None
    labels_shown: bool = True
    links_shown: bool = True
    node_information_shown: bool = False

    # Sequence number of the last response applied to this view
    applied_sequence: int = 0


@dataclass
class ApplicationState:
    views: Dict[ViewName, ViewState]
    operator: SyncOperator = SyncOperator.AND
    indices: EntanglementIndices = field(default_factory=EntanglementIndices)

    @classmethod
    def create(cls, operator: SyncOperator = SyncOperator.AND) -> ApplicationState:
        views = {
            v: ViewState(name=v, graph=GraphView(v), lasso=LassoInteractor(v))
            for v in ViewName
        }
        return cls(views=views, operator=operator)

    def view(self, name: ViewName) -> ViewState:
        return self.views[name]

    def paired(self, name: ViewName) -> ViewState:
        return self.views[pair_of(name)]

    def __iter__(self) -> Iterator[ViewState]:
        return iter(self.views.values())

    def lassos(self):
        return [v.lasso for v in self.views.values()]


class ResponseApplier:
    """
    Applies validated backend responses to a view.

    Responses apply in arrival order (last write wins). With
    `discard_stale` set, a response older than the last one applied to
    the same view is dropped instead.
    """

    def __init__(
        self,
        rescaler: CoordinateRescaler,
        tracker: SelectionTracker,
        audit: InteractionAuditLog,
        discard_stale: bool = False
    ):
        self._rescaler = rescaler
        self._tracker = tracker
        self._audit = audit
        self._discard_stale = discard_stale

    def apply(self, view: ViewState, response: GraphResponse, action: str) -> bool:
        if self._discard_stale and response.sequence < view.applied_sequence:
            self._audit.record(
                AuditEventType.RESPONSE_DISCARDED, action, view=view.name,
                sequence=response.sequence, applied=view.applied_sequence,
            )
            return False

        nodes = list(response.nodes)
        self._rescaler.rescale(nodes)
        view.graph.replace(nodes, list(response.links))
        if view.transform is not None:
            view.transform.reset(refresh=False)
        self._tracker.forget(view.name)
        view.applied_sequence = response.sequence

        self._audit.record(
            AuditEventType.RESPONSE_APPLIED, action, view=view.name,
            sequence=response.sequence, epoch=view.graph.epoch, nodes=len(nodes),
        )
        return True
