"""
Test Fixtures

A scripted fake analysis backend served through httpx.MockTransport, a
renderer that records every call, and small sample graphs.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs

import httpx

from linkedviews.app import LinkedViewsApp
from linkedviews.config import AppConfig, InteractionConfig
from linkedviews.contracts.base import ViewName
from linkedviews.contracts.graph import GraphView, Node
from linkedviews.visualization.renderer import Renderer


SESSION_ID = 7
BACKEND_URL = "http://backend.test"


# =============================================================================
# SAMPLE GRAPHS
# =============================================================================

def three_node_graph() -> Dict[str, Any]:
    """Substrate with ids a, b, c and no baseID yet."""
    return {
        "nodes": [
            {"id": "a", "label": "A", "x": 0.0, "y": 0.0},
            {"id": "b", "label": "B", "x": 10.0, "y": 5.0},
            {"id": "c", "label": "C", "x": 20.0, "y": 10.0},
        ],
        "links": [
            {"source": 0, "target": 1},
            {"source": 1, "target": 2},
        ],
    }


def catalyst_payload(
    base_ids=(100, 101),
    intensity: Optional[float] = 0.4,
    homogeneity: Optional[float] = 0.75
) -> Dict[str, Any]:
    nodes = [{"baseID": b, "label": f"cat{b}", "x": float(i), "y": float(i * 2)}
             for i, b in enumerate(base_ids)]
    links = []
    if len(base_ids) > 1:
        links.append({"baseID": 0, "source": base_ids[0], "target": base_ids[1]})
    payload: Dict[str, Any] = {"nodes": nodes, "links": links}
    if intensity is not None:
        payload["data"] = {
            "entanglement intensity": intensity,
            "entanglement homogeneity": homogeneity,
        }
    return payload


def make_graph(view: ViewName, coords) -> GraphView:
    graph = GraphView(view)
    graph.replace([Node(base_id=i, x=x, y=y, current_x=x, current_y=y)
                   for i, (x, y) in enumerate(coords)], [])
    return graph


# =============================================================================
# FAKE BACKEND
# =============================================================================

class FakeBackend:
    """
    In-process stand-in for the analysis backend.

    Every request is decoded and recorded. Responses come from per-type
    handlers; `hold(i)` blocks the i-th request (0-based arrival index)
    until the returned event is set.
    """

    def __init__(self, session_id=SESSION_ID):
        self.session_id = session_id
        self.requests: List[Dict[str, str]] = []
        self.holds: Dict[int, asyncio.Event] = {}
        self.overrides: Dict[str, Callable[[Dict[str, str]], httpx.Response]] = {}

    # Decoded form of the recorded requests
    def of_type(self, request_type: str) -> List[Dict[str, str]]:
        return [r for r in self.requests if r.get("type") == request_type]

    def hold(self, index: int) -> asyncio.Event:
        event = asyncio.Event()
        self.holds[index] = event
        return event

    async def wait_for_requests(self, count: int):
        for _ in range(10000):
            if len(self.requests) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} requests, saw {len(self.requests)}")

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport())

    async def handle(self, request: httpx.Request) -> httpx.Response:
        form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
        index = len(self.requests)
        self.requests.append(form)

        if index in self.holds:
            await self.holds[index].wait()

        request_type = form.get("type", "")
        if request_type in self.overrides:
            return self.overrides[request_type](form)
        handler = getattr(self, f"_on_{request_type}", None)
        if handler is None:
            return httpx.Response(400, text="unknown request type")
        return httpx.Response(200, text=json.dumps(handler(form)))

    def _on_creation(self, form: Dict[str, str]) -> Dict[str, Any]:
        # Search results come back raw, like a graph file
        graph = three_node_graph() if "search" in form else json.loads(form["graph"])
        graph["data"] = {"sid": self.session_id}
        return graph

    def _on_analyse(self, form: Dict[str, str]) -> Dict[str, Any]:
        if "graph" not in form:
            return catalyst_payload()
        selected = [n["baseID"] for n in json.loads(form["graph"])["nodes"]]
        return catalyst_payload(
            base_ids=tuple(100 + b for b in selected if isinstance(b, int)) or (100,),
            intensity=0.2 * len(selected),
            homogeneity=0.5,
        )

    def _on_update(self, form: Dict[str, str]) -> Dict[str, Any]:
        selected = [n["baseID"] for n in json.loads(form["graph"])["nodes"]]
        return {
            "nodes": [{"baseID": b, "x": float(b), "y": float(b)} for b in selected],
            "links": [],
        }

    def _on_algorithm(self, form: Dict[str, str]) -> Dict[str, Any]:
        params = json.loads(form["parameters"])
        nodes = [
            {"baseID": i, "x": float(i * 100), "y": float(i * 50),
             "layout": params["name"], "viewMetric": float(i + 1) * 2}
            for i in range(3)
        ]
        return {"nodes": nodes, "links": [{"baseID": 0, "source": 0, "target": 1}]}


# =============================================================================
# RECORDING RENDERER
# =============================================================================

class RecordingRenderer(Renderer):
    """Records (method, args) for every call."""

    def __init__(self):
        self.calls: List[Tuple[str, tuple]] = []
        self.errors = []
        self.feedback: Optional[Tuple[str, str, str]] = None

    def _record(self, name, *args):
        self.calls.append((name, args))

    def named(self, name: str) -> List[tuple]:
        return [args for n, args in self.calls if n == name]

    def draw(self, view, graph):
        self._record("draw", view)

    def show(self, view, graph):
        self._record("show", view)

    def move(self, view, graph):
        self._record("move", view)

    def resize(self, view, graph):
        self._record("resize", view)

    def exit(self, view, graph):
        self._record("exit", view)

    def reset_selection_styling(self, view):
        self._record("reset_selection_styling", view)

    def apply_transform(self, view, translate_x, translate_y, scale, label_size):
        self._record("apply_transform", view, translate_x, translate_y, scale, label_size)

    def set_cursor(self, view, cursor):
        self._record("set_cursor", view, cursor)

    def set_labels(self, view, visible):
        self._record("set_labels", view, visible)

    def set_links_visible(self, view, visible):
        self._record("set_links_visible", view, visible)

    def set_node_information(self, view, enabled):
        self._record("set_node_information", view, enabled)

    def show_node_information(self, view, node):
        self._record("show_node_information", view, node.base_id, node.current_x, node.current_y)

    def refresh_chrome(self):
        self._record("refresh_chrome")

    def set_feedback(self, color, intensity_text, homogeneity_text):
        self.feedback = (color, intensity_text, homogeneity_text)
        self._record("set_feedback", color)

    def set_operator_label(self, operator):
        self._record("set_operator_label", operator)

    def notify_error(self, error):
        self.errors.append(error)
        self._record("notify_error", error.code)


def make_app(
    backend: FakeBackend,
    renderer: Optional[Renderer] = None,
    discard_stale: bool = False,
    base_id_field: Optional[str] = None
) -> LinkedViewsApp:
    config = AppConfig(
        interaction=InteractionConfig(discard_stale_responses=discard_stale),
        base_id_field=base_id_field,
    )
    config = AppConfig.from_env(config, {"LINKEDVIEWS_BACKEND_URL": BACKEND_URL})
    return LinkedViewsApp(config, renderer or RecordingRenderer(), http_client=backend.client())


def inside(*base_points):
    """A `contains` predicate true at the given display points."""
    points = set(base_points)
    return lambda x, y: (x, y) in points


def contains_nodes(graph: GraphView, base_ids):
    """A `contains` predicate selecting exactly the given nodes."""
    wanted = {(n.current_x, n.current_y) for n in graph.nodes if n.base_id in set(base_ids)}
    return lambda x, y: (x, y) in wanted


async def loaded_app(backend: FakeBackend, **kwargs) -> LinkedViewsApp:
    """App with the three-node substrate loaded and the initial analysis applied."""
    app = make_app(backend, **kwargs)
    await app.load(graph=three_node_graph())
    return app
