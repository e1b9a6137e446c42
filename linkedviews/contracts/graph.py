"""
Graph View Contracts

Nodes, links and the per-view graph container.

OWNERSHIP:
==========
- A Node belongs to exactly one GraphView, never shared across views
- Contents are replaced wholesale; each replacement starts a new epoch
- Only selection, label visibility and display coordinates are mutated
  within an epoch
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
import json

from .base import BaseId, ErrorCode, InvalidGraph, ViewName


DEFAULT_VIEW_METRIC = 3.0

# Wire keys that map onto typed Node fields; everything else is round-tripped
_NODE_KEYS = {"baseID", "x", "y", "currentX", "currentY", "id", "label",
              "viewMetric", "selected", "labelVisibility"}
_LINK_KEYS = {"baseID", "source", "target"}


@dataclass
class Node:
    """
    A node of one view.

    `x, y` are logical (backend-space) coordinates.
    `current_x, current_y` are display coordinates after pan/zoom.
    """
    base_id: BaseId
    x: float = 0.0
    y: float = 0.0
    current_x: float = 0.0
    current_y: float = 0.0
    selected: bool = False
    label_visibility: bool = False
    view_metric: float = DEFAULT_VIEW_METRIC
    label: Optional[str] = None
    source_id: Optional[Any] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> Node:
        x = float(data.get("x", 0.0))
        y = float(data.get("y", 0.0))
        metric = data.get("viewMetric")
        return cls(
            base_id=data["baseID"],
            x=x,
            y=y,
            current_x=x,
            current_y=y,
            view_metric=DEFAULT_VIEW_METRIC if metric is None else float(metric),
            label=data.get("label"),
            source_id=data.get("id"),
            attributes={k: v for k, v in data.items() if k not in _NODE_KEYS},
        )

    def to_wire(self) -> Dict[str, Any]:
        payload = dict(self.attributes)
        payload.update({"baseID": self.base_id, "x": self.x, "y": self.y,
                        "viewMetric": self.view_metric})
        if self.source_id is not None:
            payload["id"] = self.source_id
        if self.label is not None:
            payload["label"] = self.label
        return payload

    def reset_display(self):
        """Display coordinates back onto logical coordinates."""
        self.current_x = self.x
        self.current_y = self.y


@dataclass
class Link:
    """A link between two nodes of the same view, addressed by base id."""
    base_id: BaseId
    source_id: BaseId
    target_id: BaseId
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> Link:
        return cls(
            base_id=data["baseID"],
            source_id=_endpoint(data["source"]),
            target_id=_endpoint(data["target"]),
            attributes={k: v for k, v in data.items() if k not in _LINK_KEYS},
        )

    def to_wire(self) -> Dict[str, Any]:
        payload = dict(self.attributes)
        payload.update({"baseID": self.base_id, "source": self.source_id,
                        "target": self.target_id})
        return payload


def _endpoint(value: Any) -> BaseId:
    # Bound link endpoints may come back as node objects
    if isinstance(value, dict):
        return value["baseID"]
    return value


def dangling_links(nodes: Iterable[Node], links: Iterable[Link]) -> List[Link]:
    """Links whose endpoints do not resolve to a node base id."""
    known = {n.base_id for n in nodes}
    return [l for l in links if l.source_id not in known or l.target_id not in known]


class GraphView:
    """
    Ordered nodes and links for one of {substrate, catalyst}.

    Two instances exist per application; they are never merged.
    """

    def __init__(self, name: ViewName):
        self._name = name
        self._nodes: List[Node] = []
        self._links: List[Link] = []
        self._epoch = 0

    @property
    def name(self) -> ViewName:
        return self._name

    @property
    def nodes(self) -> List[Node]:
        return self._nodes

    @property
    def links(self) -> List[Link]:
        return self._links

    @property
    def epoch(self) -> int:
        return self._epoch

    def replace(self, nodes: List[Node], links: List[Link]):
        """Replace contents wholesale and start a new epoch."""
        self._nodes = list(nodes)
        self._links = list(links)
        self._epoch += 1

    def selected_nodes(self) -> List[Node]:
        return [n for n in self._nodes if n.selected]

    def node(self, base_id: BaseId) -> Optional[Node]:
        for n in self._nodes:
            if n.base_id == base_id:
                return n
        return None

    def clear_selection(self):
        for n in self._nodes:
            n.selected = False

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def to_wire(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "nodes": [n.to_wire() for n in self._nodes],
            "links": [l.to_wire() for l in self._links],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    def load_wire(self, data: Dict[str, Any]):
        """Replace contents from a wire dict that already carries base ids."""
        self.replace(
            [Node.from_wire(n) for n in data.get("nodes", [])],
            [Link.from_wire(l) for l in data.get("links", [])],
        )


# =============================================================================
# BASE ID ASSIGNMENT (once, at ingestion)
# =============================================================================

def assign_base_ids(data: Dict[str, Any], id_field: Optional[str] = None) -> Dict[str, Any]:
    """
    Stamp `baseID` onto raw wire nodes and links before the first send.

    With no `id_field` the positional index is used, otherwise the value of
    that field. Integer link endpoints index the node list and are rewritten
    to that node's base id. Missing coordinates default to 0. Mutates and
    returns `data`.

    Raises:
        InvalidGraph: not a nodes/links object, or a node lacks `id_field`.
    """
    if not isinstance(data, dict):
        raise InvalidGraph("Graph must be a JSON object with nodes and links")
    nodes = data.setdefault("nodes", [])
    links = data.setdefault("links", [])
    if not isinstance(nodes, list) or not isinstance(links, list):
        raise InvalidGraph("Graph nodes and links must be lists")
    if not all(isinstance(item, dict) for item in nodes + links):
        raise InvalidGraph("Graph nodes and links must be objects")

    for node in nodes:
        node.setdefault("x", 0)
        node.setdefault("y", 0)
        node["currentX"] = node["x"]
        node["currentY"] = node["y"]

    for i, item in enumerate(nodes):
        if not id_field:
            item["baseID"] = i
        elif id_field in item:
            item["baseID"] = item[id_field]
        else:
            raise InvalidGraph(
                f"Node has no {id_field!r} field", ErrorCode.INVALID_GRAPH
            ).with_context("node", i)

    for i, item in enumerate(links):
        item["baseID"] = i if not id_field else item.get(id_field, i)
        for end in ("source", "target"):
            if end not in item:
                raise InvalidGraph(f"Link has no {end}").with_context("link", i)
            item[end] = _node_base_id(nodes, item[end])

    return data


def _node_base_id(nodes: List[Dict[str, Any]], endpoint: Any) -> Any:
    # Integer endpoints are positions in the node list
    if isinstance(endpoint, int) and not isinstance(endpoint, bool) and 0 <= endpoint < len(nodes):
        return nodes[endpoint]["baseID"]
    return endpoint


def has_base_ids(data: Dict[str, Any]) -> bool:
    """True when every node and link of a raw graph already carries a baseID."""
    nodes, links = data.get("nodes", []), data.get("links", [])
    if not isinstance(nodes, list) or not isinstance(links, list):
        return False
    return all(isinstance(item, dict) and "baseID" in item for item in nodes + links)


def selection_payload(base_ids: Tuple[BaseId, ...]) -> str:
    """Only base ids cross the sync boundary."""
    return json.dumps({"nodes": [{"baseID": b} for b in base_ids]})
