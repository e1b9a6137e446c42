"""
Entanglement Feedback

Maps the two entanglement indices onto a discrete colour and display text.
Pure derived display state; never drives backend requests.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple
import math

from ..contracts.base import EntanglementIndices
from .renderer import Renderer


# Six-step sequential palette, light to dark
PALETTE: Tuple[str, ...] = (
    '#FEEDDE', '#FDD0A2', '#FDAE6B', '#FD8D3C', '#E6550D', '#A63603',
)
DISPLAY_DIGITS = 5


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def bucket_for(intensity: float) -> int:
    """round(intensity * 5) mod 6, halves rounded up."""
    return int(round_half_up(intensity * 5)) % len(PALETTE)


@dataclass(frozen=True)
class FeedbackState:
    bucket: int
    color: str
    intensity_text: str
    homogeneity_text: str


class EntanglementFeedback:
    """
    Applies the indices to the feedback frame and to each lasso's fill,
    so the selection gesture is tinted by the last-known score.
    """

    def __init__(self, renderer: Renderer, lassos: Callable[[], Iterable[object]]):
        self._renderer = renderer
        self._lassos = lassos
        self._state: Optional[FeedbackState] = None

    @property
    def state(self) -> Optional[FeedbackState]:
        return self._state

    def update(self, indices: EntanglementIndices) -> FeedbackState:
        bucket = bucket_for(indices.intensity)
        state = FeedbackState(
            bucket=bucket,
            color=PALETTE[bucket],
            intensity_text=str(round_half_up(indices.intensity, DISPLAY_DIGITS)),
            homogeneity_text=str(round_half_up(indices.homogeneity, DISPLAY_DIGITS)),
        )
        self._state = state

        self._renderer.set_feedback(state.color, state.intensity_text, state.homogeneity_text)
        for lasso in self._lassos():
            if lasso is not None:
                lasso.fill_color = state.color
        return state
