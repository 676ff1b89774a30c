"""
Content Language Middleware for FastNegotiation.

Negotiates the request language from Accept-Language, or from a
language prefix in the URL path.
"""

from dataclasses import dataclass, field, replace
from typing import Any

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from fastNegotiation.base import CallNext, FastNegotiationMiddleware
from fastNegotiation.context import negotiated
from fastNegotiation.messages import header_line, with_header, with_path
from fastNegotiation.negotiator import WeightedValue, negotiate, parse_candidates


@dataclass(frozen=True)
class ContentLanguageConfig:
    """
    Configuration for content language middleware.

    Attributes:
        languages: Supported languages; the first is the default.
        use_path: Read the language from the first path segment.
        redirect: In path mode, redirect paths without a language
            to the same path prefixed with the negotiated one.
        logger_name: Logger used for negotiation decisions.
        parsed_languages: ``languages``, parsed once.
    """

    languages: tuple[str, ...] = ()
    use_path: bool = False
    redirect: bool = False
    logger_name: str = "fastNegotiation"
    parsed_languages: tuple[WeightedValue, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "parsed_languages", parse_candidates(self.languages))
        object.__setattr__(self, "languages", tuple(self.languages))


class ContentLanguageMiddleware(FastNegotiationMiddleware):
    """
    Middleware that negotiates the request language.

    Header mode rewrites Accept-Language to the best supported language,
    falling back to the first one.

    Path mode looks for a supported language as the first path segment
    (``/es/about``). When found, the segment is stripped before routing.
    Otherwise the language is negotiated from the header and, with
    ``redirect`` enabled, the client is sent to ``/<language>/about``.

    Example:
        ```python
        from fastNegotiation import ContentLanguageMiddleware, get_language

        app.add_middleware(
            ContentLanguageMiddleware,
            languages=["en", "es", "gl"],
            use_path=True,
            redirect=True,
        )

        # GET /about      -> 302 Location: /en/about
        # GET /es/about   -> routed to /about, get_language() == "es"
        ```
    """

    def __init__(
        self,
        app,
        languages: list[str] | None = None,
        config: ContentLanguageConfig | None = None,
        use_path: bool | None = None,
        redirect: bool | None = None,
        exclude_paths: set[str] | None = None,
    ) -> None:
        config = config or ContentLanguageConfig()

        overrides: dict[str, Any] = {}
        if languages is not None:
            overrides["languages"] = languages
        if use_path is not None:
            overrides["use_path"] = use_path
        if redirect is not None:
            overrides["redirect"] = redirect

        self.config = replace(config, **overrides) if overrides else config
        super().__init__(app, exclude_paths=exclude_paths, logger_name=self.config.logger_name)

    def detect_from_header(self, request: Request) -> str | None:
        """Return the best language for Accept-Language, defaulting to the first."""
        languages = self.config.languages
        if not languages:
            return None

        accept_language = header_line(request, "Accept-Language")
        return negotiate(accept_language, languages, parsed=self.config.parsed_languages) or languages[0]

    def detect_from_path(self, path: str) -> str | None:
        """Return the supported language named by the first path segment."""
        segment = path.lstrip("/").split("/", 1)[0].lower()
        if not segment:
            return None

        for language in self.config.languages:
            if language.lower() == segment:
                return language

        return None

    async def dispatch(self, request: Request, call_next: CallNext) -> Response | None:
        if self.config.use_path:
            return await self._dispatch_path(request, call_next)

        language = self.detect_from_header(request)
        self._logger.debug(f"Negotiated language {language!r} from header")
        await self._delegate(request, language or "", call_next)
        return None

    async def _dispatch_path(self, request: Request, call_next: CallNext) -> Response | None:
        if not self.config.languages:
            await call_next(request)
            return None

        path = request.url.path
        language = self.detect_from_path(path)

        if language is not None:
            _, _, rest = path.lstrip("/").partition("/")
            self._logger.debug(f"Negotiated language {language!r} from path {path}")
            await self._delegate(with_path(request, "/" + rest), language, call_next)
            return None

        language = self.detect_from_header(request)

        if self.config.redirect:
            location = f"/{language}/{path.lstrip('/')}"
            if request.url.query:
                location = f"{location}?{request.url.query}"
            self._logger.info(f"Redirecting {path} to {location}")
            return RedirectResponse(location, status_code=302)

        self._logger.debug(f"Negotiated language {language!r} from header for {path}")
        await self._delegate(request, language, call_next)
        return None

    async def _delegate(self, request: Request, language: str, call_next: CallNext) -> None:
        request = with_header(request, "Accept-Language", language)
        request.state.language = language

        with negotiated(language=language or None):
            await call_next(request)
