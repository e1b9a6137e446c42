"""
End-to-End Tests

AXIOMS UNDER TEST:
==================
1. Loading seeds the substrate, creates the session and fills the catalyst
2. Backend failures are reported and leave both views untouched
3. Display toggles never reach the backend
4. A graph that cannot be read or seeded is reported as InvalidGraph
"""

import asyncio
import json

import httpx
import pytest

from linkedviews.contracts.base import (
    BackendUnavailable, ErrorCode, InvalidGraph, MalformedResponse, NoActiveSession,
    ViewMode, ViewName,
)
from linkedviews.interaction.selection import Modifiers
from linkedviews.interaction.transform import ZoomGesture
from linkedviews.observability import AuditEventType

from ..fixtures import (
    SESSION_ID, FakeBackend, RecordingRenderer, contains_nodes, loaded_app, make_app,
    make_graph, three_node_graph,
)


def snapshot(app):
    return {
        view.name: (view.graph.epoch, [(n.base_id, n.x, n.y) for n in view.graph.nodes])
        for view in app.state
    }


# =============================================================================
# LOADING
# =============================================================================

class TestLoad:

    def test_load_from_graph(self):
        backend = FakeBackend()
        renderer = RecordingRenderer()
        app = asyncio.run(loaded_app(backend, renderer=renderer))

        assert [r["type"] for r in backend.requests] == ["creation", "analyse"]
        sent = json.loads(backend.requests[0]["graph"])
        assert [n["baseID"] for n in sent["nodes"]] == [0, 1, 2]

        assert app.session.current_session() == SESSION_ID
        assert [n.base_id for n in app.state.view(ViewName.SUBSTRATE).graph.nodes] == [0, 1, 2]
        assert [n.base_id for n in app.state.view(ViewName.CATALYST).graph.nodes] == [100, 101]
        assert app.sync.indices.intensity == pytest.approx(0.4)
        assert app.sync.indices.homogeneity == pytest.approx(0.75)

        assert renderer.named("draw") == [(ViewName.SUBSTRATE,), (ViewName.CATALYST,)]
        assert renderer.feedback == ("#FDAE6B", "0.4", "0.75")

    def test_load_with_named_id_field(self):
        backend = FakeBackend()
        app = asyncio.run(loaded_app(backend, base_id_field="id"))
        substrate = app.state.view(ViewName.SUBSTRATE).graph
        assert [n.base_id for n in substrate.nodes] == ["a", "b", "c"]
        assert [(l.source_id, l.target_id) for l in substrate.links] == [("a", "b"), ("b", "c")]

        sent = json.loads(backend.requests[0]["graph"])
        assert [(l["source"], l["target"]) for l in sent["links"]] == [("a", "b"), ("b", "c")]

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text(json.dumps(three_node_graph()), encoding="utf-8")
        backend = FakeBackend()

        async def scenario():
            app = make_app(backend)
            await app.load(path=path)
            return app

        app = asyncio.run(scenario())
        assert len(app.state.view(ViewName.SUBSTRATE).graph) == 3

    def test_load_from_search(self):
        backend = FakeBackend()
        renderer = RecordingRenderer()

        async def scenario():
            app = make_app(backend, renderer=renderer)
            await app.load(search="enzymes")
            return app

        app = asyncio.run(scenario())
        assert backend.requests[0] == {"type": "creation", "search": "enzymes"}
        assert [r["type"] for r in backend.requests] == ["creation", "creation", "analyse"]

        # The raw search result is stamped locally and sent back as the session graph
        created = json.loads(backend.requests[1]["graph"])
        assert [n["baseID"] for n in created["nodes"]] == [0, 1, 2]
        assert [l["baseID"] for l in created["links"]] == [0, 1]
        assert "data" not in created

        assert app.session.current_session() == SESSION_ID
        assert [n.base_id for n in app.state.view(ViewName.SUBSTRATE).graph.nodes] == [0, 1, 2]
        assert len(app.state.view(ViewName.CATALYST).graph) == 2
        assert renderer.named("draw") == [(ViewName.SUBSTRATE,), (ViewName.CATALYST,)]

    def test_failed_creation_is_reported_and_raised(self):
        backend = FakeBackend()
        backend.overrides["creation"] = lambda form: httpx.Response(502)
        renderer = RecordingRenderer()

        with pytest.raises(BackendUnavailable):
            asyncio.run(loaded_app(backend, renderer=renderer))

        assert [e.code for e in renderer.errors] == [ErrorCode.BACKEND_HTTP_ERROR]
        assert len(backend.requests) == 1


class TestLoadErrors:

    def load(self, renderer, **kwargs):
        backend = FakeBackend()

        async def scenario():
            app = make_app(backend, renderer=renderer)
            try:
                await app.load(**kwargs)
            finally:
                await app.aclose()

        asyncio.run(scenario())

    def test_unreadable_file(self, tmp_path):
        renderer = RecordingRenderer()
        with pytest.raises(InvalidGraph) as exc:
            self.load(renderer, path=tmp_path / "missing.json")

        assert exc.value.code is ErrorCode.INVALID_GRAPH
        assert [e.code for e in renderer.errors] == [ErrorCode.INVALID_GRAPH]

    def test_file_is_not_json(self, tmp_path):
        path = tmp_path / "graph.json"
        path.write_text("{nodes: oops", encoding="utf-8")
        renderer = RecordingRenderer()

        with pytest.raises(InvalidGraph) as exc:
            self.load(renderer, path=path)
        assert ("path", str(path)) in exc.value.context
        assert len(renderer.errors) == 1

    def test_graph_text_is_not_json(self):
        with pytest.raises(InvalidGraph):
            self.load(RecordingRenderer(), graph="not a graph")

    def test_node_coordinates_not_numeric(self):
        graph = three_node_graph()
        graph["nodes"][0]["x"] = "left"
        with pytest.raises(InvalidGraph):
            self.load(RecordingRenderer(), graph=graph)

    def test_no_source(self):
        renderer = RecordingRenderer()
        with pytest.raises(InvalidGraph) as exc:
            self.load(renderer)
        assert exc.value.code is ErrorCode.NO_GRAPH_SOURCE
        assert [e.code for e in renderer.errors] == [ErrorCode.NO_GRAPH_SOURCE]


# =============================================================================
# THE FULL INTERACTION
# =============================================================================

class TestLassoScenario:

    def test_three_node_lasso(self):
        backend = FakeBackend()

        async def scenario():
            app = await loaded_app(backend)
            assert app.toggle_mode(ViewName.SUBSTRATE) is ViewMode.SELECT

            graph = app.state.view(ViewName.SUBSTRATE).graph
            app.on_pointer_down(ViewName.SUBSTRATE)
            app.on_lasso_tick(ViewName.SUBSTRATE, contains_nodes(graph, [0]))
            app.on_lasso_tick(ViewName.SUBSTRATE, contains_nodes(graph, [0]))
            app.on_lasso_tick(ViewName.SUBSTRATE, contains_nodes(graph, [2]), Modifiers(ctrl=True))
            # Mode switching is refused mid-gesture
            assert app.toggle_mode(ViewName.SUBSTRATE) is ViewMode.SELECT
            app.on_lasso_release(ViewName.SUBSTRATE)
            assert not app.modes.gesture_in_progress(ViewName.SUBSTRATE)
            await app.drain()
            return app

        app = asyncio.run(scenario())
        syncs = backend.of_type("analyse")[1:]
        assert [json.loads(r["graph"]) for r in syncs] == [
            {"nodes": [{"baseID": 0}]},
            {"nodes": [{"baseID": 0}, {"baseID": 2}]},
        ]
        assert [n.base_id for n in app.state.view(ViewName.CATALYST).graph.nodes] == [100, 102]

    def test_lasso_without_session_keeps_tracker_reference(self):
        backend = FakeBackend()

        async def scenario():
            app = make_app(backend)
            substrate = app.state.view(ViewName.SUBSTRATE).graph
            seeded = make_graph(ViewName.SUBSTRATE, [(0.0, 0.0), (5.0, 5.0)])
            substrate.replace(seeded.nodes, seeded.links)
            app.toggle_mode(ViewName.SUBSTRATE)

            with pytest.raises(NoActiveSession):
                app.on_lasso_tick(ViewName.SUBSTRATE, contains_nodes(substrate, [1]))
            await app.aclose()
            return app

        app = asyncio.run(scenario())
        assert app.tracker.previous(ViewName.SUBSTRATE) == ()
        assert backend.requests == []

    def test_lasso_ignored_in_move_mode(self):
        backend = FakeBackend()

        async def scenario():
            app = await loaded_app(backend)
            graph = app.state.view(ViewName.SUBSTRATE).graph
            return app.on_lasso_tick(ViewName.SUBSTRATE, contains_nodes(graph, [1]))

        assert asyncio.run(scenario()) is None
        assert len(backend.requests) == 2


# =============================================================================
# FAILURES
# =============================================================================

class TestFailures:

    def run_failed_sync(self, response):
        backend = FakeBackend()
        renderer = RecordingRenderer()

        async def scenario():
            app = await loaded_app(backend, renderer=renderer)
            before = snapshot(app)
            backend.overrides["analyse"] = lambda form: response
            app.request_sync(ViewName.SUBSTRATE, (1,))
            await app.drain()
            return app, before

        app, before = asyncio.run(scenario())
        return app, renderer, before

    def test_malformed_response_leaves_views_unchanged(self):
        app, renderer, before = self.run_failed_sync(httpx.Response(200, text="{not json"))

        assert snapshot(app) == before
        assert len(renderer.errors) == 1
        assert isinstance(renderer.errors[0], MalformedResponse)
        failed = app.audit.entries(AuditEventType.REQUEST_FAILED)
        assert failed[0].get("code") == "MALFORMED_JSON"

    def test_dangling_link_rejected(self):
        body = {"nodes": [{"baseID": 1}], "links": [{"baseID": 0, "source": 1, "target": 42}]}
        app, renderer, before = self.run_failed_sync(httpx.Response(200, json=body))

        assert snapshot(app) == before
        assert renderer.errors[0].code is ErrorCode.DANGLING_LINK

    def test_http_error_reported(self):
        app, renderer, before = self.run_failed_sync(httpx.Response(500))

        assert snapshot(app) == before
        assert isinstance(renderer.errors[0], BackendUnavailable)
        assert app.sync.indices.intensity == pytest.approx(0.4)

    def test_interaction_continues_after_failure(self):
        app, _, _ = self.run_failed_sync(httpx.Response(500))
        assert app.toggle_mode(ViewName.CATALYST) is ViewMode.SELECT


# =============================================================================
# DISPLAY TOGGLES
# =============================================================================

class TestDisplayToggles:

    def test_labels_hide_keeps_selected(self):
        backend = FakeBackend()
        renderer = RecordingRenderer()
        app = asyncio.run(loaded_app(backend, renderer=renderer))
        app.state.view(ViewName.SUBSTRATE).graph.nodes[1].selected = True

        assert app.toggle_labels(ViewName.SUBSTRATE) is False
        assert renderer.named("set_labels")[-1] == (ViewName.SUBSTRATE, frozenset({1}))
        assert app.toggle_labels(ViewName.SUBSTRATE) is True
        assert renderer.named("set_labels")[-1] == (ViewName.SUBSTRATE, None)
        assert len(backend.requests) == 2

    def test_links_toggle(self):
        backend = FakeBackend()
        renderer = RecordingRenderer()
        app = asyncio.run(loaded_app(backend, renderer=renderer))

        assert app.toggle_links(ViewName.CATALYST) is False
        assert renderer.named("set_links_visible") == [(ViewName.CATALYST, False)]

    def test_reset_view(self):
        backend = FakeBackend()
        app = asyncio.run(loaded_app(backend))
        app.on_zoom(ViewName.CATALYST, ZoomGesture(dx=12.0, dy=4.0))
        app.reset_view(ViewName.CATALYST)

        view = app.state.view(ViewName.CATALYST)
        assert view.transform.translate == (0.0, 0.0)
        assert all(n.current_x == n.x for n in view.graph.nodes)

    def test_node_information_on_hover(self):
        backend = FakeBackend()
        renderer = RecordingRenderer()
        app = asyncio.run(loaded_app(backend, renderer=renderer))
        node = app.state.view(ViewName.SUBSTRATE).graph.nodes[2]

        assert app.on_node_hover(ViewName.SUBSTRATE, 2) is None
        assert app.toggle_node_information(ViewName.SUBSTRATE) is True
        assert app.on_node_hover(ViewName.SUBSTRATE, 2) is node

        assert renderer.named("set_node_information") == [(ViewName.SUBSTRATE, True)]
        assert renderer.named("show_node_information") == [
            (ViewName.SUBSTRATE, 2, node.current_x, node.current_y),
        ]
        assert len(backend.requests) == 2

    def test_node_information_is_per_view(self):
        backend = FakeBackend()
        app = asyncio.run(loaded_app(backend))
        app.toggle_node_information(ViewName.CATALYST)

        assert app.on_node_hover(ViewName.SUBSTRATE, 0) is None
        assert app.on_node_hover(ViewName.CATALYST, 100).label == "cat100"
        assert app.on_node_hover(ViewName.CATALYST, 999) is None
        assert app.toggle_node_information(ViewName.CATALYST) is False
