"""
Session Manager

Owns the backend session id. Every other backend call depends on it.

INVARIANTS:
===========
- At most one session is live; a new one replaces the previous id
- No request is ever sent with an unset session id
- Work issued while a creation is in flight waits for it instead of racing
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Tuple, Union
import asyncio
import logging

from .contracts.base import (
    SessionId, NoActiveSession, MalformedResponse, ErrorCode,
)
from .contracts.graph import GraphView
from .contracts.wire import (
    BackendRequest, GraphResponse, creation_request, search_creation_request,
)
from .observability import InteractionAuditLog, AuditEventType
from .transport import BackendClient


logger = logging.getLogger(__name__)


class SessionManager:
    """Single writer of the session id."""

    def __init__(self, client: BackendClient, audit: Optional[InteractionAuditLog] = None):
        self._client = client
        self._audit = audit or InteractionAuditLog()
        self._sid: Optional[SessionId] = None
        self._generation = 0
        self._pending: Optional[asyncio.Future] = None

    def current_session(self) -> Optional[SessionId]:
        return self._sid

    @property
    def generation(self) -> int:
        """Incremented every time a session is established."""
        return self._generation

    @property
    def is_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def create_session(self, initial_graph: Union[GraphView, str]) -> Tuple[SessionId, GraphResponse]:
        """
        Create a backend graph from the local substrate.

        Returns the new session id and the backend's copy of the graph.
        Raises BackendUnavailable or MalformedResponse.
        """
        payload = initial_graph if isinstance(initial_graph, str) else initial_graph.to_json()
        return await self._create(creation_request(payload))

    async def search(self, query: str) -> Dict[str, Any]:
        """
        Run a search engine query on the backend.

        Returns the raw result graph, usually without base ids. The caller
        stamps them and creates the session from it with create_session.
        No session id is taken from this response.
        """
        logger.debug("Searching backend for %r", query)
        return await self._client.fetch_json(search_creation_request(query))

    async def _create(self, request: BackendRequest) -> Tuple[SessionId, GraphResponse]:
        loop = asyncio.get_running_loop()
        pending = loop.create_future()
        self._pending = pending

        try:
            response = await self._client.send(request)
            sid = response.session_id
            if sid is None:
                raise MalformedResponse(
                    "Creation response carries no session id", ErrorCode.MISSING_SESSION_ID
                )
        except Exception as e:
            if not pending.done():
                pending.set_exception(NoActiveSession(
                    f"Session creation failed: {e}", ErrorCode.SESSION_CREATION_FAILED
                ))
                # Waiters retrieve it; don't warn about an unobserved exception
                pending.exception()
            raise
        finally:
            if self._pending is pending:
                self._pending = None

        self._sid = sid
        self._generation += 1
        pending.set_result(sid)
        self._audit.record(
            AuditEventType.SESSION_CREATED, request.form.get("type", "creation"),
            sid=sid, generation=self._generation,
        )
        return sid, response

    def ensure_available(self):
        """
        Fail fast before scheduling backend work.

        Raises NoActiveSession unless a session exists or is being created.
        """
        if self._sid is None and not self.is_pending:
            raise NoActiveSession("No backend session has been created")

    async def wait_for_session(self) -> SessionId:
        """Session id, waiting for an in-flight creation if there is one."""
        if self._pending is not None and not self._pending.done():
            logger.debug("Waiting for session creation before sending request")
            return await asyncio.shield(self._pending)
        if self._sid is None:
            raise NoActiveSession("No backend session has been created")
        return self._sid
