"""
Contracts Layer

Shared types for every other layer: view identity, modes, errors,
the graph model and the backend wire protocol.

PRINCIPLES:
1. No I/O
2. No rendering logic
3. Views addressed by ViewName only
"""

from .base import (
    SessionId, BaseId,
    ViewName, ViewMode, SyncOperator, pair_of,
    ErrorCode, LinkedViewsError, NoActiveSession,
    BackendError, BackendUnavailable, MalformedResponse, InvalidGraph,
    EntanglementIndices,
)
from .graph import (
    Node, Link, GraphView, DEFAULT_VIEW_METRIC,
    assign_base_ids, has_base_ids, selection_payload, dangling_links,
)
from .wire import (
    RequestType, AlgorithmKind, BackendRequest, GraphResponse,
    creation_request, search_creation_request, update_request,
    algorithm_request, analyse_request, initial_analyse_request,
    parse_graph_response,
)

__all__ = [
    'SessionId', 'BaseId',
    'ViewName', 'ViewMode', 'SyncOperator', 'pair_of',
    'ErrorCode', 'LinkedViewsError', 'NoActiveSession',
    'BackendError', 'BackendUnavailable', 'MalformedResponse', 'InvalidGraph',
    'EntanglementIndices',
    'Node', 'Link', 'GraphView', 'DEFAULT_VIEW_METRIC',
    'assign_base_ids', 'has_base_ids', 'selection_payload', 'dangling_links',
    'RequestType', 'AlgorithmKind', 'BackendRequest', 'GraphResponse',
    'creation_request', 'search_creation_request', 'update_request',
    'algorithm_request', 'analyse_request', 'initial_analyse_request',
    'parse_graph_response',
]
