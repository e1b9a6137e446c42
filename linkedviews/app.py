"""
Linked Views Application

Wires the layers together and exposes the event handlers a rendering
front end calls.

EVENT MODEL:
============
Single-threaded asyncio. Handlers are plain synchronous calls made from
inside the running loop. Backend work is scheduled as tasks, so pointer
gestures and mode toggles keep running while requests are outstanding.

FAILURES:
=========
- NoActiveSession is raised by the handler itself, before anything is
  scheduled
- Backend and parsing failures inside scheduled work are reported through
  Renderer.notify_error, logged and audited; local state is left as it was
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union
import asyncio
import json
import logging

import httpx

from .config import AppConfig
from .contracts.base import (
    BaseId, ErrorCode, InvalidGraph, LinkedViewsError, SyncOperator, ViewMode,
    ViewName,
)
from .contracts.graph import GraphView, Node, assign_base_ids, has_base_ids
from .interaction.modes import InteractionModeController
from .interaction.selection import (
    Modifiers, NO_MODIFIERS, SelectionSet, SelectionTracker, apply_lasso,
    has_changed,
)
from .interaction.transform import ViewTransform, ZoomGesture
from .observability import InteractionAuditLog, AuditEventType
from .session import SessionManager
from .sync.engine import SyncEngine
from .sync.layout import LayoutDispatcher
from .sync.state import ApplicationState, ResponseApplier
from .transport import BackendClient
from .visualization.feedback import EntanglementFeedback
from .visualization.renderer import Renderer
from .visualization.rescale import CoordinateRescaler


logger = logging.getLogger(__name__)


class LinkedViewsApp:
    """
    The substrate/catalyst pair and everything that keeps them in sync.

    Usage:
        app = LinkedViewsApp(config, renderer)
        await app.load(path="graph.json")
        app.toggle_mode(ViewName.SUBSTRATE)
        app.on_lasso_tick(ViewName.SUBSTRATE, polygon.contains)
        await app.drain()
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        renderer: Optional[Renderer] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self._config = config or AppConfig()
        self._renderer = renderer or Renderer()
        self._audit = InteractionAuditLog()
        interaction = self._config.interaction

        self._client = BackendClient(self._config.backend, http_client, self._audit)
        self._session = SessionManager(self._client, self._audit)
        self._tracker = SelectionTracker()
        self._rescaler = CoordinateRescaler(self._config.viewport)
        self._state = ApplicationState.create(interaction.default_operator)
        self._applier = ResponseApplier(
            self._rescaler, self._tracker, self._audit,
            discard_stale=interaction.discard_stale_responses,
        )
        self._feedback = EntanglementFeedback(self._renderer, self._state.lassos)
        self._sync = SyncEngine(
            self._state, self._session, self._client, self._applier,
            self._feedback, self._renderer, interaction, self._audit,
        )
        self._layout = LayoutDispatcher(
            self._state, self._session, self._client, self._applier,
            self._renderer, interaction, self._sync.refresh_feedback,
        )
        self._modes = InteractionModeController(self._renderer, self._audit)

        for view in self._state:
            view.transform = ViewTransform(
                view.name, view.graph, self._modes.mode, interaction,
                self._renderer, self.refresh_chrome,
            )
            self._modes.register(view.name, zoom=view.transform, lasso=view.lasso)

        self._tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def state(self) -> ApplicationState:
        return self._state

    @property
    def session(self) -> SessionManager:
        return self._session

    @property
    def sync(self) -> SyncEngine:
        return self._sync

    @property
    def layout(self) -> LayoutDispatcher:
        return self._layout

    @property
    def modes(self) -> InteractionModeController:
        return self._modes

    @property
    def tracker(self) -> SelectionTracker:
        return self._tracker

    @property
    def audit(self) -> InteractionAuditLog:
        return self._audit

    # =========================================================================
    # LOADING
    # =========================================================================

    async def load(
        self,
        graph: Union[str, Dict[str, Any], None] = None,
        search: Optional[str] = None,
        path: Union[str, Path, None] = None
    ):
        """
        Seed the substrate, create the backend session, run the initial
        analysis.

        Precedence: search query, explicit graph, file path, then
        AppConfig.default_graph_path. A search result is seeded like a
        local graph: base ids are stamped here and the session is created
        from it. Failures are reported and re-raised.
        """
        try:
            if search is not None:
                data = await self._session.search(search)
                data.pop("data", None)
            else:
                data = self._read_graph(graph, path)
            if search is None or not has_base_ids(data):
                assign_base_ids(data, self._config.base_id_field)
            payload = json.dumps(data)

            substrate = self._state.view(ViewName.SUBSTRATE)
            self._seed(substrate.graph, data)
            self._rescaler.rescale(substrate.graph.nodes)
            self._renderer.draw(substrate.name, substrate.graph)

            _, response = await self._session.create_session(payload)
            self._applier.apply(substrate, response, "creation")
            self._renderer.move(substrate.name, substrate.graph)

            await self._sync.analyse()
        except LinkedViewsError as e:
            self._report(e, "load", None)
            raise

    def _read_graph(self, graph: Union[str, Dict[str, Any], None], path: Union[str, Path, None]) -> Dict[str, Any]:
        if isinstance(graph, dict):
            return graph
        if isinstance(graph, str) and graph:
            try:
                return json.loads(graph)
            except ValueError as e:
                raise InvalidGraph(f"Graph is not JSON: {e}")

        source = path or self._config.default_graph_path
        if source is None:
            raise InvalidGraph(
                "No graph, search query, file or default graph path given",
                ErrorCode.NO_GRAPH_SOURCE,
            )
        try:
            with open(source, 'r', encoding='utf-8') as f:
                return json.load(f)
        except OSError as e:
            raise InvalidGraph(f"Cannot read graph file: {e}").with_context("path", source)
        except ValueError as e:
            raise InvalidGraph(f"Graph file is not JSON: {e}").with_context("path", source)

    @staticmethod
    def _seed(graph: GraphView, data: Dict[str, Any]):
        try:
            graph.load_wire(data)
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidGraph(f"Graph element cannot be read: {e}")

    # =========================================================================
    # POINTER AND GESTURE HANDLERS
    # =========================================================================

    def on_pointer_down(self, view: ViewName):
        self._modes.begin_gesture(view)

    def on_pointer_up(self, view: ViewName):
        self._modes.end_gesture(view)

    def on_lasso_tick(
        self,
        view: ViewName,
        contains: Callable[[float, float], bool],
        modifiers: Modifiers = NO_MODIFIERS
    ) -> Optional[asyncio.Task]:
        """
        Re-evaluate the selection during a lasso/marquee gesture.

        Schedules a synchronization only when the selected base ids changed.
        Without a session the tracker keeps its reference selection, so the
        next tick after creation still counts as a change.
        """
        state = self._state.view(view)
        if self._modes.mode(view) is not ViewMode.SELECT or not state.lasso.attached:
            return None

        current = apply_lasso(state.graph, contains, modifiers)
        if current and has_changed(current, self._tracker.previous(view)):
            self._session.ensure_available()

        selection = self._tracker.observe(view, state.graph)
        if selection is None:
            return None

        if not selection:
            self._sync.clear(view)
            return None

        self._audit.record(
            AuditEventType.SELECTION_CHANGED, "lasso", view=view, size=len(selection),
        )
        return self._spawn(self._sync.synchronize(view, selection), "synchronize", view)

    def on_lasso_release(self, view: ViewName):
        """End of a lasso gesture. Synchronization already happened per tick."""
        self._modes.end_gesture(view)

    def on_zoom(self, view: ViewName, gesture: ZoomGesture) -> bool:
        return self._state.view(view).transform.handle(gesture)

    def toggle_mode(self, view: ViewName) -> ViewMode:
        return self._modes.toggle(view)

    # =========================================================================
    # BUTTON ACTIONS
    # =========================================================================

    def request_layout(self, view: ViewName, name: str) -> asyncio.Task:
        self._session.ensure_available()
        return self._spawn(self._layout.apply_layout(view, name), "layout", view)

    def request_metric(self, view: ViewName, name: str) -> asyncio.Task:
        self._session.ensure_available()
        return self._spawn(self._layout.apply_metric(view, name), "metric", view)

    def request_induced_subgraph(self, view: ViewName) -> asyncio.Task:
        self._session.ensure_available()
        return self._spawn(self._sync.induce_subgraph(view), "induce_subgraph", view)

    def request_analysis(self) -> asyncio.Task:
        self._session.ensure_available()
        return self._spawn(self._sync.analyse(), "analyse", ViewName.SUBSTRATE)

    def request_sync(self, view: ViewName, selection: SelectionSet) -> Optional[asyncio.Task]:
        """Synchronize an explicit selection, bypassing the lasso."""
        if not selection:
            self._sync.clear(view)
            return None
        self._session.ensure_available()
        return self._spawn(self._sync.synchronize(view, selection), "synchronize", view)

    def reset_view(self, view: ViewName):
        self._state.view(view).transform.reset()

    def reset_size(self, view: ViewName):
        self._layout.reset_size(view)

    def toggle_operator(self) -> SyncOperator:
        return self._sync.toggle_operator()

    def toggle_labels(self, view: ViewName) -> bool:
        """
        Show or hide labels. Hiding keeps the labels of selected nodes and
        of nodes whose label was already pinned visible.
        """
        state = self._state.view(view)
        state.labels_shown = not state.labels_shown
        if state.labels_shown:
            self._renderer.set_labels(view, None)
            return True

        for node in state.graph.nodes:
            node.label_visibility = node.selected or node.label_visibility
        visible = frozenset(n.base_id for n in state.graph.nodes if n.label_visibility)
        self._renderer.set_labels(view, visible)
        return False

    def toggle_links(self, view: ViewName) -> bool:
        state = self._state.view(view)
        state.links_shown = not state.links_shown
        self._renderer.set_links_visible(view, state.links_shown)
        return state.links_shown

    def toggle_node_information(self, view: ViewName) -> bool:
        """Turn the hover box with a node's base id and label on or off."""
        state = self._state.view(view)
        state.node_information_shown = not state.node_information_shown
        self._renderer.set_node_information(view, state.node_information_shown)
        return state.node_information_shown

    def on_node_hover(self, view: ViewName, base_id: BaseId) -> Optional[Node]:
        """
        Show the information box of the hovered node, at its display
        coordinates. Nothing happens while the box is turned off.
        """
        state = self._state.view(view)
        if not state.node_information_shown:
            return None
        node = state.graph.node(base_id)
        if node is not None:
            self._renderer.show_node_information(view, node)
        return node

    def refresh_chrome(self):
        """Rebuild both views' chrome and re-emit the entanglement feedback."""
        self._renderer.refresh_chrome()
        self._sync.refresh_feedback()

    # =========================================================================
    # TASKS
    # =========================================================================

    def _spawn(self, work: Awaitable, action: str, view: Optional[ViewName]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._guarded(work, action, view))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, work: Awaitable, action: str, view: Optional[ViewName]):
        try:
            return await work
        except LinkedViewsError as e:
            self._report(e, action, view)
            return None

    def _report(self, error: LinkedViewsError, action: str, view: Optional[ViewName]):
        logger.warning("%s failed: %s", action, error)
        self._audit.record(
            AuditEventType.REQUEST_FAILED, action, view=view, code=error.code.name,
        )
        self._renderer.notify_error(error)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """Wait until every scheduled request has resolved and been applied."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self):
        await self.drain()
        await self._client.aclose()
