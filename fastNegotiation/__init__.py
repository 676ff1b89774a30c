"""
FastNegotiation - HTTP content negotiation middlewares for Starlette.

Each middleware negotiates one aspect of the representation (format,
charset, encoding, language) and rewrites the request so downstream
handlers see the decision.
"""

from fastNegotiation.base import FastNegotiationMiddleware
from fastNegotiation.content_charset import ContentCharsetConfig, ContentCharsetMiddleware
from fastNegotiation.content_encoding import ContentEncodingConfig, ContentEncodingMiddleware
from fastNegotiation.content_language import ContentLanguageConfig, ContentLanguageMiddleware
from fastNegotiation.content_type import ContentTypeConfig, ContentTypeMiddleware
from fastNegotiation.context import (
    get_charset,
    get_encoding,
    get_format,
    get_language,
    get_media_type,
)
from fastNegotiation.exceptions import (
    InvalidHeaderError,
    NegotiationConfigError,
    NegotiationError,
)
from fastNegotiation.formats import DEFAULT_FORMATS, Format, build_formats
from fastNegotiation.negotiator import (
    NegotiationMode,
    WeightedValue,
    negotiate,
    parse_candidates,
    parse_header,
)


__version__ = "0.1.0"

__all__ = [
    "DEFAULT_FORMATS",
    "ContentCharsetConfig",
    "ContentCharsetMiddleware",
    "ContentEncodingConfig",
    "ContentEncodingMiddleware",
    "ContentLanguageConfig",
    "ContentLanguageMiddleware",
    "ContentTypeConfig",
    "ContentTypeMiddleware",
    "FastNegotiationMiddleware",
    "Format",
    "InvalidHeaderError",
    "NegotiationConfigError",
    "NegotiationError",
    "NegotiationMode",
    "WeightedValue",
    "build_formats",
    "get_charset",
    "get_encoding",
    "get_format",
    "get_language",
    "get_media_type",
    "negotiate",
    "parse_candidates",
    "parse_header",
]
