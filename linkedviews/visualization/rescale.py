"""
Coordinate Rescaler

Fits an arbitrary-bounds layout into the viewport, preserving aspect ratio.

Backend layouts are in an unrelated scale, so the same uniform scale is
reapplied to every graph-bearing response.
"""

from __future__ import annotations
from typing import Sequence

from ..config import ViewportConfig
from ..contracts.graph import Node


# Keeps the scale finite when every node shares a coordinate
EPSILON = 1e-20


def rescale_nodes(
    nodes: Sequence[Node],
    width: float,
    height: float,
    reserved_left: float,
    frame: float
) -> Sequence[Node]:
    """
    Rescale `nodes` in place into
    [reserved_left + frame, width - frame] x [frame, height - frame].
    """
    if not nodes:
        return nodes

    min_x = min(n.x for n in nodes)
    max_x = max(n.x for n in nodes)
    min_y = min(n.y for n in nodes)
    max_y = max(n.y for n in nodes)

    available_w = width - (reserved_left + 2 * frame)
    available_h = height - 2 * frame
    scale = min(available_w / (max_x - min_x + EPSILON),
                available_h / (max_y - min_y + EPSILON))

    for n in nodes:
        n.x = (n.x - min_x) * scale + reserved_left + frame
        n.y = (n.y - min_y) * scale + frame
        n.current_x = n.x
        n.current_y = n.y

    return nodes


class CoordinateRescaler:
    """Rescaler bound to one viewport configuration."""

    def __init__(self, viewport: ViewportConfig):
        self._viewport = viewport

    @property
    def viewport(self) -> ViewportConfig:
        return self._viewport

    def rescale(self, nodes: Sequence[Node]) -> Sequence[Node]:
        v = self._viewport
        return rescale_nodes(nodes, v.width, v.height, v.button_width, v.frame)
