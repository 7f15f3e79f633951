"""Helpers for turning scraped result markup into search results."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote

from .base import SearchResult, SearchResultType, decaying_score

NAMED_ENTITIES: dict[str, str] = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "quot": '"',
    "apos": "'",
    "nbsp": " ",
}

_ENTITY_RE = re.compile(r"&(#[xX][0-9a-fA-F]+|#[0-9]+|[A-Za-z][A-Za-z0-9]*);")
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_UDDG_RE = re.compile(r"[?&]uddg=([^&]+)")


def _replace_entity(match: re.Match[str]) -> str:
    body = match.group(1)
    if body.startswith("#"):
        try:
            codepoint = int(body[2:], 16) if body[1] in "xX" else int(body[1:])
            return chr(codepoint)
        except (ValueError, OverflowError):
            return match.group(0)
    return NAMED_ENTITIES.get(body, match.group(0))


def decode_html_entities(text: str) -> str:
    """Decode the common named entities and numeric references.

    Unknown named entities are left untouched.
    """
    return _ENTITY_RE.sub(_replace_entity, text)


def clean_text(fragment: str) -> str:
    """Strip tags, decode entities and collapse whitespace."""
    text = decode_html_entities(_TAG_RE.sub("", fragment))
    return _WHITESPACE_RE.sub(" ", text).strip()


def unwrap_redirect(href: str) -> str:
    """Resolve ``/l/?uddg=<target>`` redirect links to their target URL."""
    href = decode_html_entities(href.strip())
    match = _UDDG_RE.search(href)
    if match:
        return unquote(match.group(1))
    if href.startswith("//"):
        return f"https:{href}"
    return href


@dataclass(frozen=True)
class ExtractionStrategy:
    """One way of reading results out of a results page.

    The pattern must define ``url``, ``title`` and ``snippet`` named groups.
    """

    name: str
    pattern: re.Pattern[str]
    source: str = "DuckDuckGo"
    score_start: float = 0.9
    score_step: float = 0.05

    def extract(self, html: str, max_results: int = 10) -> list[SearchResult]:
        """Parse ``html`` into at most ``max_results`` results.

        Matches without a title or URL are skipped.
        """
        results: list[SearchResult] = []
        for match in self.pattern.finditer(html):
            url = unwrap_redirect(match.group("url"))
            title = clean_text(match.group("title"))
            if not url or not title:
                continue
            results.append(
                SearchResult(
                    title=title,
                    description=clean_text(match.group("snippet")),
                    url=url,
                    source=self.source,
                    type=SearchResultType.WEB_RESULT,
                    relevance_score=decaying_score(self.score_start, self.score_step, len(results)),
                    metadata={"strategy": self.name},
                )
            )
            if len(results) >= max_results:
                break
        return results
