"""Per-request correlation state shared by middleware, error handlers and logs."""

from __future__ import annotations

import re
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

REQUEST_ID_HEADER = "X-Request-ID"
NO_REQUEST_ID = "-"

_ACCEPTED_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")
_request_id: ContextVar[str] = ContextVar("pictodo_request_id", default=NO_REQUEST_ID)


def get_request_id() -> str:
    """Return the id bound to the current request, or ``"-"`` outside one."""
    return _request_id.get()


def resolve_request_id(candidate: str | None) -> str:
    """Reuse a well-formed incoming id; otherwise mint a fresh one."""
    if candidate and _ACCEPTED_REQUEST_ID.match(candidate):
        return candidate
    return uuid.uuid4().hex


@contextmanager
def request_id_bound(request_id: str | None) -> Iterator[str]:
    """Bind ``request_id`` for every log record emitted inside the block.

    A missing id leaves the current binding untouched.
    """
    if not request_id:
        yield get_request_id()
        return
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


__all__ = [
    "NO_REQUEST_ID",
    "REQUEST_ID_HEADER",
    "get_request_id",
    "request_id_bound",
    "resolve_request_id",
]
