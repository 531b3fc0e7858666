"""Request id bound to the handling of one HTTP request."""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

REQUEST_ID_HEADER = "X-Request-ID"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


def current_request_id() -> Optional[str]:
    return _request_id_ctx.get()


@contextmanager
def bound_request_id(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind ``request_id``, or a fresh one when it is empty, for the duration of the block."""
    value = request_id or new_request_id()
    token = _request_id_ctx.set(value)
    try:
        yield value
    finally:
        _request_id_ctx.reset(token)
