"""Application middleware implementations."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .context import REQUEST_ID_HEADER, request_id_bound, resolve_request_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an ``X-Request-ID`` and echo it on the response.

    The id is kept on ``request.state`` for the exception handlers, which run
    outside this middleware's context binding.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        with request_id_bound(request_id):
            response = await call_next(request)
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
        return response


__all__ = ["CorrelationIdMiddleware"]
