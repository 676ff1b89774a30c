"""
Content Type Middleware for FastNegotiation.

Negotiates the response format from the path extension or the Accept
header, and the charset from Accept-Charset.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from posixpath import splitext
from typing import Any

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response

from fastNegotiation.base import CallNext, FastNegotiationMiddleware
from fastNegotiation.context import negotiated
from fastNegotiation.exceptions import NegotiationConfigError
from fastNegotiation.formats import DEFAULT_FORMATS, Format, build_formats
from fastNegotiation.messages import header_line, with_header
from fastNegotiation.negotiator import NegotiationMode, WeightedValue, negotiate, parse_candidates


@dataclass(frozen=True)
class ContentTypeConfig:
    """
    Configuration for content type middleware.

    Attributes:
        formats: Ordered format table; the first format is the default.
        use_default: Fall back to the first format instead of answering 406.
        charsets: Supported charsets; the first is the default.
        nosniff: Add ``X-Content-Type-Options: nosniff`` to responses.
        logger_name: Logger used for negotiation decisions.
        parsed_mime_types: The table's MIME types, parsed once.
        parsed_charsets: ``charsets``, parsed once.
    """

    formats: Mapping[str, Format] = field(default_factory=lambda: DEFAULT_FORMATS)
    use_default: bool = True
    charsets: tuple[str, ...] = ("UTF-8",)
    nosniff: bool = True
    logger_name: str = "fastNegotiation"
    _mime_types: tuple[str, ...] = field(init=False, repr=False, compare=False)
    parsed_mime_types: tuple[WeightedValue, ...] = field(init=False, repr=False, compare=False)
    parsed_charsets: tuple[WeightedValue, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "formats", build_formats(self.formats))
        object.__setattr__(self, "parsed_charsets", parse_candidates(self.charsets))
        object.__setattr__(self, "charsets", tuple(self.charsets))

        if not self.charsets:
            raise NegotiationConfigError("At least one charset is required")

        mime_types = tuple(
            mime for fmt in self.formats.values() for mime in fmt.mime_types
        )
        object.__setattr__(self, "_mime_types", mime_types)
        object.__setattr__(
            self, "parsed_mime_types", parse_candidates(mime_types, NegotiationMode.MIME)
        )

    @property
    def mime_types(self) -> tuple[str, ...]:
        """Every configured MIME type, in table order."""
        return self._mime_types


class ContentTypeMiddleware(FastNegotiationMiddleware):
    """
    Middleware that negotiates the response content type.

    The format comes from the path extension when it is a known one,
    otherwise from the Accept header. The request's Accept and
    Accept-Charset headers are rewritten to the decision, and the
    response gets a Content-Type when the handler didn't set one.

    Example:
        ```python
        from fastNegotiation import ContentTypeMiddleware

        app.add_middleware(
            ContentTypeMiddleware,
            charsets=["UTF-8", "ISO-8859-1"],
            use_default=False,  # 406 when nothing matches
        )

        async def handler(request):
            # "application/json" for /data.json or Accept: application/json
            return Response(render(request.headers["accept"]))
        ```
    """

    def __init__(
        self,
        app,
        config: ContentTypeConfig | None = None,
        formats: Mapping[str, Any] | None = None,
        use_default: bool | None = None,
        charsets: list[str] | None = None,
        nosniff: bool | None = None,
        exclude_paths: set[str] | None = None,
    ) -> None:
        config = config or ContentTypeConfig()

        overrides: dict[str, Any] = {}
        if formats:
            overrides["formats"] = formats
        if use_default is not None:
            overrides["use_default"] = use_default
        if charsets is not None:
            overrides["charsets"] = charsets
        if nosniff is not None:
            overrides["nosniff"] = nosniff

        self.config = replace(config, **overrides) if overrides else config
        super().__init__(app, exclude_paths=exclude_paths, logger_name=self.config.logger_name)

    @staticmethod
    def default_formats() -> Mapping[str, Format]:
        """Return the packaged format table."""
        return DEFAULT_FORMATS

    def detect_from_extension(self, request: Request) -> str | None:
        """Return the format whose extensions include the path's extension."""
        extension = splitext(request.url.path)[1][1:].lower()
        if not extension:
            return None

        for format_id, fmt in self.config.formats.items():
            if extension in fmt.extensions:
                return format_id

        return None

    def detect_from_header(self, request: Request) -> str | None:
        """Return the format of the best MIME type for the Accept header."""
        accept = header_line(request, "Accept")
        mime = negotiate(
            accept,
            self.config.mime_types,
            NegotiationMode.MIME,
            parsed=self.config.parsed_mime_types,
        )
        if mime is None:
            return None

        for format_id, fmt in self.config.formats.items():
            if mime in fmt.mime_types:
                return format_id

        return None

    def detect_charset(self, request: Request) -> str:
        """Return the best charset, falling back to the first configured one."""
        accept_charset = header_line(request, "Accept-Charset")
        charsets = self.config.charsets
        return negotiate(accept_charset, charsets, parsed=self.config.parsed_charsets) or charsets[0]

    async def dispatch(self, request: Request, call_next: CallNext) -> Response | None:
        format_id = self.detect_from_extension(request) or self.detect_from_header(request)

        if format_id is None:
            if not self.config.use_default:
                self._logger.info(
                    f"No acceptable format for {request.url.path} "
                    f"(Accept: {header_line(request, 'Accept')!r}), responding 406"
                )
                return Response(status_code=406)
            format_id = next(iter(self.config.formats))

        fmt = self.config.formats[format_id]
        media_type = fmt.mime_type
        charset = self.detect_charset(request)
        self._logger.debug(f"Negotiated format {format_id} ({media_type}; {charset})")

        request = with_header(request, "Accept", media_type)
        request = with_header(request, "Accept-Charset", charset)
        request.state.format = format_id
        request.state.media_type = media_type
        request.state.charset = charset

        content_type = f"{media_type}; charset={charset}" if fmt.needs_charset else media_type

        def on_response(headers: MutableHeaders) -> None:
            if "content-type" not in headers:
                headers["Content-Type"] = content_type
            if self.config.nosniff and "x-content-type-options" not in headers:
                headers["X-Content-Type-Options"] = "nosniff"

        with negotiated(format=format_id, media_type=media_type, charset=charset):
            await call_next(request, on_response)

        return None
