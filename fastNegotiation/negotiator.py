"""
Accept* header negotiation for FastNegotiation.

Parses weighted header lists and picks the best server-supported value.
"""

import enum
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from fastNegotiation.exceptions import InvalidHeaderError, NegotiationConfigError


logger = logging.getLogger("fastNegotiation.negotiator")

# RFC 7230 token characters.
_TOKEN = re.compile(r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+")


class NegotiationMode(enum.Enum):
    """How header items are compared against supported values."""

    MIME = "mime"
    TOKEN = "token"


@dataclass(frozen=True)
class WeightedValue:
    """
    One item of a parsed Accept* header.

    Attributes:
        value: The media type or token, as written by the client.
        quality: The ``q`` weight in [0, 1].
        parameters: Non-``q`` parameters, lowercased keys.
        position: Index of the item within the header.
    """

    value: str
    quality: float = 1.0
    parameters: tuple[tuple[str, str], ...] = ()
    position: int = 0

    @property
    def base(self) -> str:
        return self.value.split("/", 1)[0].lower()

    @property
    def sub(self) -> str:
        _, _, sub = self.value.partition("/")
        return sub.lower()


def _parse_quality(header: str, raw: str) -> float:
    try:
        quality = float(raw)
    except ValueError:
        raise InvalidHeaderError(header, f"bad quality value {raw!r}") from None

    if not 0.0 <= quality <= 1.0:
        raise InvalidHeaderError(header, f"quality {raw!r} out of range")

    return quality


def _parse_item(header: str, item: str, mode: NegotiationMode, position: int) -> WeightedValue:
    value, *params = (part.strip() for part in item.split(";"))
    if not value:
        raise InvalidHeaderError(header, "empty value")

    if mode is NegotiationMode.MIME:
        if value == "*":
            value = "*/*"
        base, slash, sub = value.partition("/")
        if not slash or not base or not sub:
            raise InvalidHeaderError(header, f"{value!r} is not a media type")

    quality = 1.0
    parameters = []
    for param in params:
        if not param:
            continue
        key, eq, raw = param.partition("=")
        key = key.strip().lower()
        if not eq or not key:
            raise InvalidHeaderError(header, f"bad parameter {param!r}")
        if key == "q":
            quality = _parse_quality(header, raw.strip())
        else:
            parameters.append((key, raw.strip().strip('"')))

    return WeightedValue(value, quality, tuple(parameters), position)


def parse_header(header: str, mode: NegotiationMode = NegotiationMode.TOKEN) -> list[WeightedValue]:
    """
    Parse an Accept* header into weighted values, in header order.

    Raises:
        InvalidHeaderError: If any item is malformed.
    """
    items = [raw.strip() for raw in header.split(",")]
    return [
        _parse_item(header, item, mode, position)
        for position, item in enumerate(filter(None, items))
    ]


def _check_candidate(candidate: str, mode: NegotiationMode, position: int) -> WeightedValue:
    if not isinstance(candidate, str) or "," in candidate:
        raise NegotiationConfigError(f"Invalid supported value {candidate!r}")

    try:
        parsed = _parse_item(candidate, candidate, mode, position)
        candidate.encode("latin-1")
    except (InvalidHeaderError, UnicodeEncodeError) as exc:
        raise NegotiationConfigError(f"Invalid supported value {candidate!r}") from exc

    if mode is NegotiationMode.MIME:
        base, _, sub = parsed.value.partition("/")
        names = [base, sub]
    else:
        names = [parsed.value]
    names.extend(key for key, _ in parsed.parameters)

    if not all(_TOKEN.fullmatch(name) for name in names):
        raise NegotiationConfigError(f"Invalid supported value {candidate!r}")

    return parsed


def parse_candidates(
    candidates: Sequence[str], mode: NegotiationMode = NegotiationMode.TOKEN
) -> tuple[WeightedValue, ...]:
    """
    Parse a server-supported list once, at configuration time.

    Every value must be a single header item whose value and parameter
    names are HTTP tokens, so it can be written back into a header.
    The result can be passed to ``negotiate`` as ``parsed``.

    Raises:
        NegotiationConfigError: If a value is not a valid header item.
    """
    if isinstance(candidates, str):
        raise NegotiationConfigError(f"Expected a list of values, got {candidates!r}")

    return tuple(
        _check_candidate(candidate, mode, position) for position, candidate in enumerate(candidates)
    )


def _match_score(accepted: WeightedValue, candidate: WeightedValue, mode: NegotiationMode) -> int | None:
    """Return the specificity of a match, or None when they don't match."""
    if mode is NegotiationMode.TOKEN:
        if accepted.value == "*":
            return 0
        if accepted.value.lower() == candidate.value.lower():
            return 1
        return None

    base_equal = accepted.base == candidate.base
    sub_equal = accepted.sub == candidate.sub
    if not (base_equal or accepted.base == "*"):
        return None
    if not (sub_equal or accepted.sub == "*"):
        return None

    # Every client parameter has to be offered by the server.
    offered = dict(candidate.parameters)
    if any(offered.get(key) != value for key, value in accepted.parameters):
        return None

    return 100 * base_equal + 10 * sub_equal + len(accepted.parameters)


def negotiate(
    header: str,
    candidates: Sequence[str],
    mode: NegotiationMode = NegotiationMode.TOKEN,
    parsed: Sequence[WeightedValue] | None = None,
) -> str | None:
    """
    Pick the best candidate for a client header.

    Each candidate takes the quality of its most specific matching
    header item. The highest quality wins; ties go to the candidate
    declared first. Candidates with quality 0 are never chosen.

    Args:
        header: Raw header value, e.g. ``"text/html, */*;q=0.8"``.
        candidates: Server-supported values in preference order.
        mode: ``MIME`` for wildcard-aware media types, ``TOKEN`` otherwise.
        parsed: ``parse_candidates(candidates, mode)``, computed once by
            the caller. Parsed here when omitted.

    Returns:
        The winning candidate as declared, or None.

    Raises:
        NegotiationConfigError: If ``parsed`` is omitted and a candidate
            is malformed. Header errors are logged and treated as an
            empty header.
    """
    if not header or not candidates:
        return None

    try:
        accepted = parse_header(header, mode)
    except InvalidHeaderError as exc:
        logger.debug(f"Ignoring unparsable header: {exc}")
        return None

    offered = parse_candidates(candidates, mode) if parsed is None else parsed

    best: tuple[float, int] | None = None
    for index, candidate in enumerate(offered):
        score = quality = None
        for item in accepted:
            item_score = _match_score(item, candidate, mode)
            if item_score is not None and (score is None or item_score > score):
                score, quality = item_score, item.quality

        if score is None or quality <= 0:
            continue
        if best is None or quality > best[0]:
            best = (quality, index)

    return candidates[best[1]] if best is not None else None
