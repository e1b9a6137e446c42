"""
Visualization Layer

Coordinate fitting, entanglement feedback and the renderer interface.
No drawing happens here.
"""

from .rescale import CoordinateRescaler, rescale_nodes, EPSILON
from .feedback import EntanglementFeedback, FeedbackState, PALETTE, bucket_for, round_half_up
from .renderer import Renderer

__all__ = [
    'CoordinateRescaler', 'rescale_nodes', 'EPSILON',
    'EntanglementFeedback', 'FeedbackState', 'PALETTE', 'bucket_for', 'round_half_up',
    'Renderer',
]
