"""
Content Encoding Middleware for FastNegotiation.

Negotiates Accept-Encoding against the supported encodings.
"""

from dataclasses import dataclass, field, replace

from fastNegotiation.accept_header import AcceptHeaderMiddleware
from fastNegotiation.negotiator import WeightedValue, parse_candidates


@dataclass(frozen=True)
class ContentEncodingConfig:
    """
    Configuration for content encoding middleware.

    Attributes:
        encodings: Supported encodings in preference order.
        logger_name: Logger used for negotiation decisions.
        parsed_encodings: ``encodings``, parsed once.
    """

    encodings: tuple[str, ...] = ("gzip", "deflate")
    logger_name: str = "fastNegotiation"
    parsed_encodings: tuple[WeightedValue, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parsed_encodings", parse_candidates(self.encodings))
        object.__setattr__(self, "encodings", tuple(self.encodings))


class ContentEncodingMiddleware(AcceptHeaderMiddleware):
    """
    Middleware that negotiates the response encoding.

    The request's Accept-Encoding is replaced by the single encoding the
    server should use, or "" for identity.

    Example:
        ```python
        from fastNegotiation import ContentEncodingMiddleware

        app.add_middleware(ContentEncodingMiddleware, encodings=["br", "gzip"])

        async def handler(request):
            if request.headers["accept-encoding"] == "gzip":
                return Response(gzip.compress(body), headers={"Content-Encoding": "gzip"})
            return Response(body)
        ```
    """

    header_name = "Accept-Encoding"
    context_key = "encoding"

    def __init__(
        self,
        app,
        encodings: list[str] | None = None,
        config: ContentEncodingConfig | None = None,
        exclude_paths: set[str] | None = None,
    ) -> None:
        config = config or ContentEncodingConfig()
        if encodings is not None:
            config = replace(config, encodings=encodings)

        self.config = config
        super().__init__(app, exclude_paths=exclude_paths, logger_name=config.logger_name)

    @property
    def supported(self) -> tuple[str, ...]:
        return self.config.encodings

    @property
    def parsed_supported(self) -> tuple[WeightedValue, ...]:
        return self.config.parsed_encodings
