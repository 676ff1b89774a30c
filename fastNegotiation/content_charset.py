"""
Content Charset Middleware for FastNegotiation.

Negotiates Accept-Charset against the supported charsets.
"""

from dataclasses import dataclass, field, replace

from fastNegotiation.accept_header import AcceptHeaderMiddleware
from fastNegotiation.negotiator import WeightedValue, parse_candidates


@dataclass(frozen=True)
class ContentCharsetConfig:
    """
    Configuration for content charset middleware.

    Attributes:
        charsets: Supported charsets in preference order.
        logger_name: Logger used for negotiation decisions.
        parsed_charsets: ``charsets``, parsed once.
    """

    charsets: tuple[str, ...] = ("UTF-8",)
    logger_name: str = "fastNegotiation"
    parsed_charsets: tuple[WeightedValue, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parsed_charsets", parse_candidates(self.charsets))
        object.__setattr__(self, "charsets", tuple(self.charsets))


class ContentCharsetMiddleware(AcceptHeaderMiddleware):
    """
    Middleware that negotiates the request charset.

    Example:
        ```python
        from fastNegotiation import ContentCharsetMiddleware, get_charset

        app.add_middleware(ContentCharsetMiddleware, charsets=["UTF-8", "ISO-8859-1"])

        async def handler(request):
            charset = get_charset()  # "" when nothing acceptable was offered
            ...
        ```
    """

    header_name = "Accept-Charset"
    context_key = "charset"

    def __init__(
        self,
        app,
        charsets: list[str] | None = None,
        config: ContentCharsetConfig | None = None,
        exclude_paths: set[str] | None = None,
    ) -> None:
        config = config or ContentCharsetConfig()
        if charsets is not None:
            config = replace(config, charsets=charsets)

        self.config = config
        super().__init__(app, exclude_paths=exclude_paths, logger_name=config.logger_name)

    @property
    def supported(self) -> tuple[str, ...]:
        return self.config.charsets

    @property
    def parsed_supported(self) -> tuple[WeightedValue, ...]:
        return self.config.parsed_charsets
