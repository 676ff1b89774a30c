"""
Format table for content type negotiation.

A format is a logical content type ("html", "json") mapped to its MIME
types and file extensions. Table order is significant: the first format
is the default.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from fastNegotiation.exceptions import NegotiationConfigError


@dataclass(frozen=True)
class Format:
    """
    One negotiable format.

    Attributes:
        mime_types: MIME types, the first being canonical.
        extensions: Lowercase file extensions without the dot.
        needs_charset: Append ``; charset=...`` to the Content-Type.
    """

    mime_types: tuple[str, ...]
    extensions: frozenset[str] = field(default_factory=frozenset)
    needs_charset: bool = True

    def __post_init__(self) -> None:
        # Accept lists/sets from callers, store immutable copies.
        object.__setattr__(self, "mime_types", tuple(self.mime_types))
        object.__setattr__(self, "extensions", frozenset(e.lower() for e in self.extensions))

        if not self.mime_types:
            raise NegotiationConfigError("A format needs at least one MIME type")
        for mime in self.mime_types:
            if not isinstance(mime, str) or mime.count("/") != 1 or "*" in mime:
                raise NegotiationConfigError(f"Invalid MIME type {mime!r}")

    @property
    def mime_type(self) -> str:
        """The canonical MIME type."""
        return self.mime_types[0]


def _text(extensions: tuple[str, ...], *mime_types: str) -> Format:
    return Format(mime_types, frozenset(extensions), needs_charset=True)


def _binary(extensions: tuple[str, ...], *mime_types: str) -> Format:
    return Format(mime_types, frozenset(extensions), needs_charset=False)


DEFAULT_FORMATS: Mapping[str, Format] = MappingProxyType(
    {
        # text
        "html": _text(("html", "htm", "php"), "text/html", "application/xhtml+xml"),
        "txt": _text(("txt",), "text/plain"),
        "css": _text(("css",), "text/css"),
        "json": _text(("json",), "application/json", "text/json", "application/x-json"),
        "jsonp": _text(
            ("jsonp",), "text/javascript", "application/javascript", "application/x-javascript"
        ),
        "js": _text(("js",), "text/javascript", "application/javascript", "application/x-javascript"),
        "csv": _text(("csv",), "text/csv"),
        "md": _text(("md", "markdown"), "text/markdown"),
        # xml
        "rdf": _text(("rdf",), "application/rdf+xml"),
        "rss": _text(("rss",), "application/rss+xml"),
        "atom": _text(("atom",), "application/atom+xml"),
        "xml": _text(("xml",), "text/xml", "application/xml", "application/x-xml"),
        "svg": _text(("svg", "svgz"), "image/svg+xml"),
        # images
        "bmp": _binary(("bmp",), "image/bmp"),
        "gif": _binary(("gif",), "image/gif"),
        "ico": _binary(("ico",), "image/x-icon", "image/vnd.microsoft.icon"),
        "jpg": _binary(("jpg", "jpeg", "jpe"), "image/jpeg", "image/jpg"),
        "png": _binary(("png",), "image/png"),
        "webp": _binary(("webp",), "image/webp"),
        "avif": _binary(("avif",), "image/avif"),
        # fonts
        "eot": _binary(("eot",), "application/vnd.ms-fontobject"),
        "otf": _binary(("otf",), "font/otf", "font/opentype", "application/font-otf"),
        "ttf": _binary(("ttf",), "font/ttf", "font/truetype", "application/font-ttf"),
        "woff": _binary(("woff",), "font/woff", "application/font-woff"),
        "woff2": _binary(("woff2",), "font/woff2", "application/font-woff2"),
        # audio and video
        "mp3": _binary(("mp3",), "audio/mpeg"),
        "ogg": _binary(("ogg", "oga"), "audio/ogg"),
        "wav": _binary(("wav",), "audio/wav", "audio/x-wav"),
        "mp4": _binary(("mp4", "m4v"), "video/mp4"),
        "webm": _binary(("webm",), "video/webm"),
        # documents and archives
        "pdf": _binary(("pdf",), "application/pdf"),
        "zip": _binary(("zip",), "application/zip", "application/x-zip-compressed"),
        "gz": _binary(("gz", "gzip"), "application/gzip", "application/x-gzip"),
        "tar": _binary(("tar",), "application/x-tar"),
    }
)


def _coerce(format_id: str, entry: Any) -> Format:
    if isinstance(entry, Format):
        return entry
    if not isinstance(entry, Mapping):
        raise NegotiationConfigError(f"Format {format_id!r} must be a Format or a mapping")

    try:
        return Format(
            mime_types=tuple(entry["mime_types"]),
            extensions=frozenset(entry.get("extensions", ())),
            needs_charset=bool(entry.get("needs_charset", True)),
        )
    except KeyError:
        raise NegotiationConfigError(f"Format {format_id!r} has no mime_types") from None


def build_formats(table: Mapping[str, Any]) -> Mapping[str, Format]:
    """
    Validate a format table and freeze it.

    Values may be ``Format`` instances or mappings with ``mime_types``,
    ``extensions`` and ``needs_charset`` keys.

    Raises:
        NegotiationConfigError: If the table is empty or malformed.
    """
    if not table:
        raise NegotiationConfigError("At least one format is required")

    return MappingProxyType({format_id: _coerce(format_id, entry) for format_id, entry in table.items()})
