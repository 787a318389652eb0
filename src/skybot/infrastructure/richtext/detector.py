"""Regex-based facet detection.

Finds ``@handle`` mentions, ``http(s)://`` links and ``#tags`` and reports
them with UTF-8 byte offsets. Mentions are resolved to DIDs through the
supplied resolver; mentions that do not resolve are left as plain text.
"""

import re
from collections.abc import Awaitable, Callable

import structlog

from skybot.core.exceptions import AppException
from skybot.domain.entities.facet import Facet, Link, Mention, Tag
from skybot.infrastructure.richtext.provider import RichText

_LABEL = r"[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?"
MENTION_REGEX = re.compile(rf"(?:^|[\s(])(@({_LABEL}(?:\.{_LABEL})+))")
URL_REGEX = re.compile(r"(?:^|[\s(])(https?://[^\s]+)")
TAG_REGEX = re.compile(r"(?:^|\s)(#[^\s#]+)")

TRAILING_PUNCTUATION = ".,;:!?"
MAX_TAG_LENGTH = 64

logger = structlog.get_logger()

HandleResolver = Callable[[str], Awaitable[str | None]]


def _byte_offset(text: str, index: int) -> int:
    return len(text[:index].encode("utf-8"))


def _trim_url(url: str) -> str:
    url = url.rstrip(TRAILING_PUNCTUATION)
    if url.endswith(")") and "(" not in url:
        url = url[:-1]
    return url


class RegexFacetDetector:
    """Default facet detector."""

    def __init__(self, resolve_handle: HandleResolver) -> None:
        self._resolve_handle = resolve_handle

    def _facet(self, text: str, start: int, end: int, feature: Mention | Link | Tag) -> Facet:
        return Facet(
            byte_start=_byte_offset(text, start),
            byte_end=_byte_offset(text, end),
            features=(feature,),
        )

    async def detect(self, text: str) -> RichText:
        facets: list[Facet] = []

        for match in MENTION_REGEX.finditer(text):
            handle = match.group(2).lower()
            try:
                did = await self._resolve_handle(handle)
            except AppException as e:
                logger.warning("mention_resolve_failed", handle=handle, error=str(e))
                did = None
            if did:
                facets.append(self._facet(text, match.start(1), match.end(1), Mention(did=did)))

        for match in URL_REGEX.finditer(text):
            url = _trim_url(match.group(1))
            start = match.start(1)
            facets.append(self._facet(text, start, start + len(url), Link(uri=url)))

        for match in TAG_REGEX.finditer(text):
            raw = match.group(1).rstrip(TRAILING_PUNCTUATION)
            tag = raw[1:]
            if not tag or len(tag) > MAX_TAG_LENGTH or tag.isdigit():
                continue
            start = match.start(1)
            facets.append(self._facet(text, start, start + len(raw), Tag(tag=tag)))

        facets.sort(key=lambda facet: facet.byte_start)
        return RichText(text=text, facets=facets)
