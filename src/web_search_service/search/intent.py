"""Query intent classification.

Maps a free-text query to the specialized search endpoint most likely to
answer it. Scoring is deterministic and uses only the query text.
"""

from __future__ import annotations

import re
from enum import Enum

from ..core.logger import get_logger
from . import lexicon
from .lexicon import IntentLexicon

logger = get_logger("search.intent")

PHRASE_WEIGHT = 2
WORD_WEIGHT = 1
PATTERN_WEIGHT = 5

# Another intent beats a top-scoring web intent when it scores above this.
STRONG_SIGNAL_THRESHOLD = 3
MIN_TOP_SCORE = 2


class Intent(str, Enum):
    """Query intents in tie-break order."""

    RICH = "rich"
    NEWS = "news"
    VIDEO = "video"
    IMAGE = "image"
    WEB = "web"


LEXICONS: dict[Intent, IntentLexicon] = {
    Intent.RICH: lexicon.RICH,
    Intent.NEWS: lexicon.NEWS,
    Intent.VIDEO: lexicon.VIDEO,
    Intent.IMAGE: lexicon.IMAGE,
    Intent.WEB: lexicon.WEB,
}

_WHITESPACE_RE = re.compile(r"\s+")


class IntentClassifier:
    """Weighted keyword/pattern classifier.

    For every intent:
    - +2 when the lower-cased query contains a keyword as a substring
    - +1 for each word of that keyword found among the query's tokens
    - +5 for each pattern that matches the raw query

    Example:
        ```python
        classifier = IntentClassifier()
        classifier.classify("weather in Paris")  # Intent.RICH
        ```
    """

    def __init__(self, lexicons: dict[Intent, IntentLexicon] | None = None) -> None:
        self.lexicons = lexicons or LEXICONS

    def score(self, query: str) -> dict[Intent, int]:
        """Compute the score table for a query.

        Args:
            query: Raw query text

        Returns:
            Score per intent, in declaration order
        """
        query_lower = query.lower()
        tokens = _WHITESPACE_RE.split(query_lower)
        scores = {intent: 0 for intent in Intent}

        for intent, entry in self.lexicons.items():
            total = 0
            for keyword in entry.keywords:
                keyword_lower = keyword.lower()
                if keyword_lower in query_lower:
                    total += PHRASE_WEIGHT
                for word in _WHITESPACE_RE.split(keyword_lower):
                    if word in tokens:
                        total += WORD_WEIGHT
            for pattern in entry.patterns:
                if pattern.search(query):
                    total += PATTERN_WEIGHT
            scores[intent] = total

        return scores

    def classify(self, query: str) -> Intent:
        """Pick the intent for a query."""
        scores = self.score(query)
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        top_intent, top_score = ranked[0]
        second_intent, second_score = ranked[1]

        logger.debug("Intent scores for %r: %s", query, {k.value: v for k, v in scores.items()})

        if top_intent is Intent.WEB and second_score > STRONG_SIGNAL_THRESHOLD:
            logger.debug(
                "Web scored highest but %s has a strong signal (%d)",
                second_intent.value,
                second_score,
            )
            return second_intent

        if top_score < MIN_TOP_SCORE:
            return Intent.WEB

        return top_intent

    def explain(self, intent: Intent | str) -> str:
        """Human readable reason for an intent."""
        try:
            return self.lexicons[Intent(intent)].description
        except (KeyError, ValueError):
            return "Unknown intent"


_default_classifier = IntentClassifier()


def classify_query_intent(query: str) -> Intent:
    """Classify a query with the default lexicons."""
    return _default_classifier.classify(query)
