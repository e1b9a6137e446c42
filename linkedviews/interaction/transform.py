"""
View Transform (zoom/pan)

Projects logical node coordinates onto the screen under pan and zoom.

INVARIANTS:
===========
- Only current_x/current_y change; logical x/y are never written
- Scale stays within [min_scale, max_scale]
- Gestures are ignored unless the view is in MOVE mode
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Tuple
import math

from ..config import InteractionConfig
from ..contracts.base import ViewMode, ViewName
from ..contracts.graph import GraphView
from ..visualization.renderer import Renderer
from .modes import Interactor


@dataclass(frozen=True)
class ZoomGesture:
    """
    One tick of a pan/zoom gesture, relative to the previous tick.

    `origin` is the screen point that stays fixed while zooming.
    """
    dx: float = 0.0
    dy: float = 0.0
    scale_factor: float = 1.0
    origin: Optional[Tuple[float, float]] = None


class ViewTransform(Interactor):
    """Zoom/pan interactor of one view; state accumulates across ticks."""

    def __init__(
        self,
        view: ViewName,
        graph: GraphView,
        mode_of: Callable[[ViewName], ViewMode],
        config: Optional[InteractionConfig] = None,
        renderer: Optional[Renderer] = None,
        refresh_chrome: Optional[Callable[[], None]] = None
    ):
        super().__init__()
        self._view = view
        self._graph = graph
        self._mode_of = mode_of
        self._config = config or InteractionConfig()
        self._renderer = renderer or Renderer()
        self._refresh_chrome = refresh_chrome or self._renderer.refresh_chrome
        self._scale = 1.0
        self._translate = (0.0, 0.0)

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def translate(self) -> Tuple[float, float]:
        return self._translate

    @property
    def label_size(self) -> int:
        return math.ceil(self._config.base_font_size / self._scale)

    def clamp(self, scale: float) -> float:
        return min(self._config.max_scale, max(self._config.min_scale, scale))

    def handle(self, gesture: ZoomGesture) -> bool:
        """Apply one gesture tick. Returns False when the tick is ignored."""
        if not self.attached or self._mode_of(self._view) is not ViewMode.MOVE:
            return False

        old_scale = self._scale
        new_scale = self.clamp(old_scale * gesture.scale_factor)
        tx, ty = self._translate

        if gesture.origin is not None and new_scale != old_scale:
            ox, oy = gesture.origin
            ratio = new_scale / old_scale
            tx = ox - (ox - tx) * ratio
            ty = oy - (oy - ty) * ratio

        self._scale = new_scale
        self._translate = (tx + gesture.dx, ty + gesture.dy)
        self._project()
        return True

    def _project(self):
        tx, ty = self._translate
        for node in self._graph.nodes:
            node.current_x = node.x * self._scale + tx
            node.current_y = node.y * self._scale + ty

        self._renderer.apply_transform(self._view, tx, ty, self._scale, self.label_size)
        self._refresh_chrome()

    def reset(self, refresh: bool = True):
        """Identity transform; display coordinates back onto logical ones."""
        self._scale = 1.0
        self._translate = (0.0, 0.0)
        for node in self._graph.nodes:
            node.reset_display()
        if refresh:
            self._renderer.apply_transform(self._view, 0.0, 0.0, 1.0, self.label_size)
            self._refresh_chrome()
