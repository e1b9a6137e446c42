"""
Base Contracts and Shared Types

Foundational enums and the error taxonomy shared by every layer.

BOUNDARY ENFORCEMENT:
=====================
- Pure types, no I/O
- Views are addressed by ViewName, never by building names from strings
- Every failure mode is an explicit ErrorCode
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Tuple, Union


SessionId = Union[int, str]
BaseId = Union[int, str]


# =============================================================================
# VIEW IDENTITY
# =============================================================================

class ViewName(Enum):
    """The two linked graph views."""
    SUBSTRATE = "substrate"
    CATALYST = "catalyst"

    @property
    def paired(self) -> ViewName:
        return pair_of(self)


_PAIRS = {
    ViewName.SUBSTRATE: ViewName.CATALYST,
    ViewName.CATALYST: ViewName.SUBSTRATE,
}


def pair_of(view: ViewName) -> ViewName:
    """Return the view that receives synchronization results from `view`."""
    return _PAIRS[view]


class ViewMode(Enum):
    """
    Input mode of a view.

    MOVE attaches pan/zoom, SELECT attaches the lasso.
    Exactly one is active per view.
    """
    MOVE = "move"
    SELECT = "select"

    @property
    def toggled(self) -> ViewMode:
        return ViewMode.SELECT if self is ViewMode.MOVE else ViewMode.MOVE


class SyncOperator(Enum):
    """How the backend combines selection criteria during catalyst analysis."""
    AND = "AND"
    OR = "OR"

    @property
    def toggled(self) -> SyncOperator:
        return SyncOperator.OR if self is SyncOperator.AND else SyncOperator.AND


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for the client.
    No silent fallbacks - every error state is enumerated.
    """
    # Session errors
    NO_ACTIVE_SESSION = auto()
    SESSION_CREATION_FAILED = auto()

    # Transport errors
    BACKEND_TIMEOUT = auto()
    BACKEND_UNREACHABLE = auto()
    BACKEND_HTTP_ERROR = auto()

    # Payload errors
    MALFORMED_JSON = auto()
    SCHEMA_VIOLATION = auto()
    DANGLING_LINK = auto()
    MISSING_SESSION_ID = auto()

    # Local graph errors
    INVALID_GRAPH = auto()
    NO_GRAPH_SOURCE = auto()


class LinkedViewsError(Exception):
    """
    Base class for every error raised by linkedviews.

    Carries an ErrorCode and ordered (key, value) context pairs
    so failures can be logged and audited as data.
    """

    code: ErrorCode = ErrorCode.SCHEMA_VIOLATION

    def __init__(self, message: str, code: Optional[ErrorCode] = None, context: Tuple[Tuple[str, str], ...] = ()):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = tuple(context)

    def with_context(self, key: str, value: object) -> LinkedViewsError:
        self.context = self.context + ((key, str(value)),)
        return self

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{k}={v}" for k, v in self.context)
        return f"{self.message} ({details})"


class NoActiveSession(LinkedViewsError):
    """A backend call was attempted before a session id exists."""
    code = ErrorCode.NO_ACTIVE_SESSION


class BackendError(LinkedViewsError):
    """
    Failures that are reported to the user and never crash the interaction.
    Local view state is left unchanged.
    """


class BackendUnavailable(BackendError):
    """Timeout, network failure or non-success HTTP status."""
    code = ErrorCode.BACKEND_UNREACHABLE


class MalformedResponse(BackendError):
    """The backend answered with something that cannot be applied."""
    code = ErrorCode.SCHEMA_VIOLATION


class InvalidGraph(LinkedViewsError):
    """A local graph (file, JSON text or search result) cannot be seeded."""
    code = ErrorCode.INVALID_GRAPH


# =============================================================================
# DERIVED INDICES
# =============================================================================

@dataclass(frozen=True)
class EntanglementIndices:
    """
    Similarity indices between the two views' current selections.
    Zero until the first successful analysis.
    """
    intensity: float = 0.0
    homogeneity: float = 0.0
