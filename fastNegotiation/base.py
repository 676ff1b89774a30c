"""
Base middleware for FastNegotiation.

Stages are raw ASGI middlewares: the request is rewritten by building
new scopes, and the response is only touched through its start message.
"""

import logging
from collections.abc import Awaitable, Callable

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send


ResponseHook = Callable[[MutableHeaders], None]
CallNext = Callable[..., Awaitable[None]]


class FastNegotiationMiddleware:
    """
    Base class for negotiation stages.

    Subclasses implement ``dispatch``. It either returns a Response to
    short-circuit the chain, or calls ``call_next`` once with the
    rewritten request and returns None.

    ``call_next(request, on_response=None)`` runs the wrapped app. When
    ``on_response`` is given it receives the headers of the downstream
    response before they are sent.
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: set[str] | None = None,
        logger_name: str = "fastNegotiation",
    ) -> None:
        self.app = app
        self.exclude_paths = frozenset(exclude_paths or ())
        self._logger = logging.getLogger(logger_name)

    def should_skip(self, request: Request) -> bool:
        """Check whether the request path is excluded from negotiation."""
        path = request.url.path
        return any(
            path == excluded or path.startswith(excluded.rstrip("/") + "/")
            for excluded in self.exclude_paths
        )

    async def dispatch(self, request: Request, call_next: CallNext) -> Response | None:
        raise NotImplementedError

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if self.should_skip(request):
            await self.app(scope, receive, send)
            return

        delegated = False

        async def call_next(next_request: Request, on_response: ResponseHook | None = None) -> None:
            nonlocal delegated
            if delegated:
                raise RuntimeError("call_next() may only be called once per request")
            delegated = True

            async def send_wrapper(message: Message) -> None:
                if on_response is not None and message["type"] == "http.response.start":
                    message = {**message, "headers": list(message.get("headers", []))}
                    on_response(MutableHeaders(scope=message))
                await send(message)

            await self.app(next_request.scope, next_request.receive, send_wrapper)

        response = await self.dispatch(request, call_next)
        if response is not None:
            await response(scope, receive, send)
