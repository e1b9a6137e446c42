"""
Renderer Collaborator

The drawing layer (SVG, canvas, a GUI toolkit) lives outside this package.
The core only tells it WHAT changed; it never reads anything back.

Every method is a no-op here so a headless application runs unchanged;
concrete renderers override what they draw.
"""

from __future__ import annotations
from typing import FrozenSet, Optional

from ..contracts.base import BaseId, LinkedViewsError, SyncOperator, ViewName
from ..contracts.graph import GraphView, Node


class Renderer:
    """Interface to the excluded rendering layer."""

    # Content replacement, one verb per kind of update
    def draw(self, view: ViewName, graph: GraphView):
        """Full redraw after a load or initial analysis."""

    def show(self, view: ViewName, graph: GraphView):
        """Synchronization result applied to the paired view."""

    def move(self, view: ViewName, graph: GraphView):
        """Positions changed (layout)."""

    def resize(self, view: ViewName, graph: GraphView):
        """Node sizes changed (metric or size reset)."""

    def exit(self, view: ViewName, graph: GraphView):
        """Contents reduced to an induced subgraph."""

    # Display state
    def reset_selection_styling(self, view: ViewName):
        pass

    def apply_transform(self, view: ViewName, translate_x: float, translate_y: float,
                        scale: float, label_size: int):
        pass

    def set_cursor(self, view: ViewName, cursor: Optional[str]):
        pass

    def set_labels(self, view: ViewName, visible: Optional[FrozenSet[BaseId]]):
        """`None` shows every label; otherwise only the given nodes' labels."""

    def set_links_visible(self, view: ViewName, visible: bool):
        pass

    def set_node_information(self, view: ViewName, enabled: bool):
        pass

    def show_node_information(self, view: ViewName, node: Node):
        """Box with "ID <base id>" and the label, drawn at current_x, current_y."""

    # Chrome
    def refresh_chrome(self):
        """Rebuild buttons and overlays of both views."""

    def set_feedback(self, color: str, intensity_text: str, homogeneity_text: str):
        pass

    def set_operator_label(self, operator: SyncOperator):
        pass

    def notify_error(self, error: LinkedViewsError):
        pass
