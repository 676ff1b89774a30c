"""
Negotiated request context for FastNegotiation.

Each stage publishes its decision here while the downstream app runs.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar


_format_ctx: ContextVar[str | None] = ContextVar("negotiated_format", default=None)
_media_type_ctx: ContextVar[str | None] = ContextVar("negotiated_media_type", default=None)
_charset_ctx: ContextVar[str | None] = ContextVar("negotiated_charset", default=None)
_encoding_ctx: ContextVar[str | None] = ContextVar("negotiated_encoding", default=None)
_language_ctx: ContextVar[str | None] = ContextVar("negotiated_language", default=None)


def get_format() -> str | None:
    """
    Get the negotiated format identifier (e.g. ``"json"``).

    Example:
        ```python
        from fastNegotiation import get_format

        async def handler(request):
            if get_format() == "json":
                return JSONResponse(data)
            return HTMLResponse(render(data))
        ```
    """
    return _format_ctx.get()


def get_media_type() -> str | None:
    """Get the negotiated MIME type."""
    return _media_type_ctx.get()


def get_charset() -> str | None:
    """Get the negotiated charset."""
    return _charset_ctx.get()


def get_encoding() -> str | None:
    """Get the negotiated content encoding ("" when none matched)."""
    return _encoding_ctx.get()


def get_language() -> str | None:
    """Get the negotiated language."""
    return _language_ctx.get()


_VARS = {
    "format": _format_ctx,
    "media_type": _media_type_ctx,
    "charset": _charset_ctx,
    "encoding": _encoding_ctx,
    "language": _language_ctx,
}


@contextmanager
def negotiated(**values: str | None) -> Iterator[None]:
    """Publish negotiated values for the duration of the block."""
    tokens = [(_VARS[key], _VARS[key].set(value)) for key, value in values.items()]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)
