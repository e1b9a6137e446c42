"""
Backend Wire Contracts

Typed request builders and response schemas for the analysis backend.

PROTOCOL:
=========
Every request is a form-encoded POST. JSON-valued fields (`graph`,
`parameters`) travel as JSON strings. Every response body is JSON:

    {nodes: [...], links: [...], data?: {sid?, "entanglement intensity"?,
                                          "entanglement homogeneity"?}}

VALIDATION:
===========
Responses are validated in full before any view is touched.
A response that fails validation is a MalformedResponse; nothing of it
is applied.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .base import (
    SessionId, ViewName, SyncOperator, EntanglementIndices,
    ErrorCode, MalformedResponse,
)
from .graph import Node, Link, dangling_links


INTENSITY_KEY = "entanglement intensity"
HOMOGENEITY_KEY = "entanglement homogeneity"


# =============================================================================
# REQUESTS
# =============================================================================

class RequestType(Enum):
    CREATION = "creation"
    UPDATE = "update"
    ALGORITHM = "algorithm"
    ANALYSE = "analyse"


class AlgorithmKind(Enum):
    """`layout` moves nodes, `float` computes a per-node metric."""
    LAYOUT = "layout"
    FLOAT = "float"


@dataclass(frozen=True)
class BackendRequest:
    """A request ready to be form-encoded."""
    request_type: RequestType
    form: Dict[str, str] = field(default_factory=dict)
    target: Optional[ViewName] = None

    @property
    def sid(self) -> Optional[str]:
        return self.form.get("sid")


def creation_request(graph_json: str) -> BackendRequest:
    return BackendRequest(RequestType.CREATION, {"type": "creation", "graph": graph_json})


def search_creation_request(query: str) -> BackendRequest:
    return BackendRequest(RequestType.CREATION, {"type": "creation", "search": query})


def update_request(sid: SessionId, selection_json: str, target: ViewName) -> BackendRequest:
    return BackendRequest(
        RequestType.UPDATE,
        {"sid": str(sid), "type": "update", "graph": selection_json, "target": target.value},
        target,
    )


def algorithm_request(sid: SessionId, kind: AlgorithmKind, name: str, target: ViewName) -> BackendRequest:
    parameters = {"type": kind.value, "name": name, "target": target.value}
    return BackendRequest(
        RequestType.ALGORITHM,
        {"sid": str(sid), "type": "algorithm", "parameters": json.dumps(parameters)},
        target,
    )


def analyse_request(
    sid: SessionId,
    selection_json: str,
    target: ViewName,
    operator: SyncOperator
) -> BackendRequest:
    return BackendRequest(
        RequestType.ANALYSE,
        {"sid": str(sid), "type": "analyse", "graph": selection_json,
         "target": target.value, "operator": operator.value},
        target,
    )


def initial_analyse_request(sid: SessionId) -> BackendRequest:
    return BackendRequest(
        RequestType.ANALYSE,
        {"sid": str(sid), "type": "analyse", "target": ViewName.SUBSTRATE.value},
        ViewName.SUBSTRATE,
    )


# =============================================================================
# RESPONSES
# =============================================================================

class WireNode(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    base_id: Union[int, str] = Field(alias="baseID")
    x: float = 0.0
    y: float = 0.0
    view_metric: Optional[float] = Field(default=None, alias="viewMetric")


class WireLink(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    base_id: Union[int, str] = Field(alias="baseID")
    source: Any
    target: Any


class WireGraphResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    nodes: List[WireNode] = Field(default_factory=list)
    links: List[WireLink] = Field(default_factory=list)
    data: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class GraphResponse:
    """
    A validated backend response.

    `nodes`/`links` are fresh objects for a new epoch of the target view.
    """
    nodes: Tuple[Node, ...]
    links: Tuple[Link, ...]
    data: Dict[str, Any]
    sequence: int = 0

    @property
    def session_id(self) -> Optional[SessionId]:
        return self.data.get("sid")

    @property
    def indices(self) -> Optional[EntanglementIndices]:
        """Entanglement indices, if the response carries them."""
        if INTENSITY_KEY not in self.data or HOMOGENEITY_KEY not in self.data:
            return None
        return EntanglementIndices(
            intensity=float(self.data[INTENSITY_KEY]),
            homogeneity=float(self.data[HOMOGENEITY_KEY]),
        )


def parse_graph_response(body: Union[str, bytes], sequence: int = 0) -> GraphResponse:
    """
    Decode and validate a response body.

    Raises:
        MalformedResponse: body is not JSON, violates the schema, or has
            links whose endpoints are not nodes of the same response.
    """
    try:
        raw = json.loads(body)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(
            f"Response is not JSON: {e}", ErrorCode.MALFORMED_JSON
        ).with_context("sequence", sequence)

    try:
        parsed = WireGraphResponse.model_validate(raw)
    except ValidationError as e:
        raise MalformedResponse(
            f"Response violates schema: {e.error_count()} error(s)", ErrorCode.SCHEMA_VIOLATION
        ).with_context("sequence", sequence)

    try:
        nodes = [Node.from_wire(n.model_dump(by_alias=True)) for n in parsed.nodes]
        links = [Link.from_wire(l.model_dump(by_alias=True)) for l in parsed.links]
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(
            f"Response element cannot be read: {e}", ErrorCode.SCHEMA_VIOLATION
        ).with_context("sequence", sequence)

    dangling = dangling_links(nodes, links)
    if dangling:
        raise MalformedResponse(
            f"{len(dangling)} link(s) reference unknown nodes", ErrorCode.DANGLING_LINK
        ).with_context("link", dangling[0].base_id)

    data = parsed.data or {}
    for key in (INTENSITY_KEY, HOMOGENEITY_KEY):
        if key in data:
            try:
                float(data[key])
            except (TypeError, ValueError):
                raise MalformedResponse(
                    f"Index {key!r} is not numeric", ErrorCode.SCHEMA_VIOLATION
                ).with_context("value", data[key])

    return GraphResponse(
        nodes=tuple(nodes),
        links=tuple(links),
        data=dict(data),
        sequence=sequence,
    )
