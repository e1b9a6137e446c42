"""
Backend Transport

Sends form-encoded requests to the analysis backend with httpx.

GUARANTEES:
===========
1. Every request gets a monotonic sequence number
2. Failed requests raise BackendUnavailable or MalformedResponse
3. A response is fully validated before it is returned
"""

from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
import json

import httpx

from .config import BackendConfig
from .contracts.base import BackendUnavailable, ErrorCode, MalformedResponse
from .contracts.wire import BackendRequest, GraphResponse, parse_graph_response
from .observability import InteractionAuditLog, AuditEventType


class BackendClient:
    """
    Async client for the analysis backend.

    The underlying httpx.AsyncClient may be injected (tests pass one built
    on httpx.MockTransport); otherwise one is created and owned here.
    """

    def __init__(
        self,
        config: Optional[BackendConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        audit: Optional[InteractionAuditLog] = None
    ):
        self._config = config or BackendConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self._config.timeout_seconds)
        self._audit = audit or InteractionAuditLog()
        self._sequence = 0

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    async def send(self, request: BackendRequest) -> GraphResponse:
        """POST a request and return the validated graph response."""
        sequence, body = await self._post(request)
        return parse_graph_response(body, sequence=sequence)

    async def fetch_json(self, request: BackendRequest) -> Dict[str, Any]:
        """
        POST a request and return the decoded JSON object as is.

        Used for search results, which are raw graphs still without base
        ids. Raises MalformedResponse unless the body is a JSON object.
        """
        sequence, body = await self._post(request)
        try:
            raw = json.loads(body)
        except ValueError as e:
            raise MalformedResponse(
                f"Response is not JSON: {e}", ErrorCode.MALFORMED_JSON
            ).with_context("sequence", sequence)
        if not isinstance(raw, dict):
            raise MalformedResponse(
                "Response is not a JSON object", ErrorCode.SCHEMA_VIOLATION
            ).with_context("sequence", sequence)
        return raw

    async def _post(self, request: BackendRequest) -> Tuple[int, bytes]:
        sequence = self._next_sequence()
        self._audit.record(
            AuditEventType.REQUEST_SENT,
            request.request_type.value,
            view=request.target,
            sequence=sequence,
        )

        try:
            response = await self._client.post(self._config.address, data=request.form)
        except httpx.TimeoutException:
            raise BackendUnavailable(
                "Backend request timed out", ErrorCode.BACKEND_TIMEOUT
            ).with_context("sequence", sequence)
        except httpx.HTTPError as e:
            raise BackendUnavailable(
                f"Backend unreachable: {e}", ErrorCode.BACKEND_UNREACHABLE
            ).with_context("sequence", sequence)

        if response.status_code != 200:
            raise BackendUnavailable(
                f"HTTP {response.status_code}", ErrorCode.BACKEND_HTTP_ERROR
            ).with_context("sequence", sequence)

        return sequence, response.content

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()
