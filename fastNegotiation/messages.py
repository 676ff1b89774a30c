"""
Copy-on-write request helpers for FastNegotiation.

Starlette requests are read-only views over an ASGI scope. These helpers
return a new Request over a new scope so the caller's scope is never
modified.
"""

from typing import Any
from urllib.parse import quote

from starlette.requests import Request


def header_line(request: Request, name: str) -> str:
    """Return all values of a header joined by commas, or "" if absent."""
    return ", ".join(request.headers.getlist(name))


def _replace_scope(request: Request, **changes: Any) -> Request:
    scope = {**request.scope, **changes}
    return Request(scope, request.receive)


def with_header(request: Request, name: str, value: str) -> Request:
    """Return a copy of the request with exactly one value for a header."""
    key = name.lower().encode("latin-1")
    headers = [(k, v) for k, v in request.scope["headers"] if k.lower() != key]
    headers.append((key, value.encode("latin-1")))
    return _replace_scope(request, headers=headers)


def with_path(request: Request, path: str) -> Request:
    """Return a copy of the request routed to another path."""
    return _replace_scope(request, path=path, raw_path=quote(path).encode("ascii"))
