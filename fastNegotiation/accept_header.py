"""
Token header negotiation shared by the charset and encoding middlewares.
"""

from starlette.requests import Request
from starlette.responses import Response

from fastNegotiation.base import CallNext, FastNegotiationMiddleware
from fastNegotiation.context import negotiated
from fastNegotiation.messages import header_line, with_header
from fastNegotiation.negotiator import WeightedValue, negotiate


class AcceptHeaderMiddleware(FastNegotiationMiddleware):
    """
    Rewrites one Accept-* request header to the single best supported token.

    The header becomes "" when nothing matches, so downstream code can
    tell that no acceptable value was found. Responses pass through
    untouched.

    Subclasses set ``header_name`` and ``context_key`` and provide
    ``supported`` with its parsed form ``parsed_supported``.
    """

    header_name: str = ""
    context_key: str = ""

    @property
    def supported(self) -> tuple[str, ...]:
        raise NotImplementedError

    @property
    def parsed_supported(self) -> tuple[WeightedValue, ...]:
        raise NotImplementedError

    def detect(self, request: Request) -> str:
        """Return the best supported token for the request, or ""."""
        header = header_line(request, self.header_name)
        return negotiate(header, self.supported, parsed=self.parsed_supported) or ""

    async def dispatch(self, request: Request, call_next: CallNext) -> Response | None:
        value = self.detect(request)
        self._logger.debug(f"Negotiated {self.header_name}: {value!r}")

        request = with_header(request, self.header_name, value)
        setattr(request.state, self.context_key, value)

        with negotiated(**{self.context_key: value}):
            await call_next(request)

        return None
