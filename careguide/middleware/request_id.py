"""
Care Guide Notes API — Request ID Middleware
==============================================

What:  Assigns a correlation ID to each request and echoes it back in the
       X-Request-ID response header.
How:   Uses the client's X-Request-ID when present, otherwise the first 8 hex
       characters of a UUID4. The ID is stored in a ContextVar (read by the
       access logger and the exception handlers) and in request.state (read by
       route handlers).
Who:   Registered in careguide.main.create_app().
When:  Outermost custom middleware, so every later layer and every error
       envelope sees the same ID.

Where the ID shows up:
    - the `X-Request-ID` response header, on success and on error
    - the `request_id` field of every error envelope
    - each access log line: `GET /api/v1/notes 200 12.3ms [a1b2c3d4] from 127.0.0.1`

The single-page client can generate its own ID per user action and send it;
a failed call can then be matched to the server log line from the error
shown to the user.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ── Context Variable ──────────────────────────────────────────────────────
# Coroutine-local: concurrent requests on one event loop each see their own
# ID. Empty outside a request (startup logs, CLI seeding).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with a correlation ID.

    Behavior:
        1. Take X-Request-ID from the request if the client sent a non-empty one
        2. Otherwise generate a short ID
        3. Store it in request_id_var and request.state.request_id
        4. Copy it onto the response headers
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # An empty header counts as absent
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
