"""Keyword lexicons and regular expressions used by the intent classifier.

Each intent owns a list of keywords (single words or phrases) and a list of
patterns. The classifier treats this module as read-only data; entries that
appear twice in a list count twice.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class IntentLexicon:
    """Keywords and patterns for one intent."""

    keywords: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]
    description: str


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


RICH = IntentLexicon(
    keywords=(
        # Cryptocurrency
        "bitcoin", "btc", "ethereum", "eth", "crypto", "cryptocurrency", "dogecoin",
        "litecoin", "ripple", "xrp", "cardano", "ada", "solana", "sol", "polygon", "matic",
        # Markets
        "stock", "stocks", "share", "shares", "nasdaq", "dow", "s&p", "market cap",
        "ticker", "trading", "dividend", "portfolio",
        # Currency
        "currency", "exchange rate", "forex", "usd", "eur", "gbp", "jpy", "cad", "aud",
        "dollar", "euro", "pound", "yen", "conversion", "convert",
        # Weather
        "weather", "temperature", "forecast", "rain", "snow", "sunny", "cloudy",
        "humidity", "wind", "storm", "hurricane", "celsius", "fahrenheit",
        # Calculations
        "calculator", "calculate", "compute", "convert", "conversion", "unit",
        "miles to km", "kg to lbs", "feet to meters", "gallons to liters",
        # Time
        "time", "timezone", "current time", "time in", "date", "calendar",
        # Scores
        "score", "game", "match", "live score", "standings", "league table",
        # Prices
        "price", "cost", "value", "worth", "how much", "pricing", "rate",
    ),
    patterns=_compile(
        r"what(?:'s| is) (?:the )?(?:current |latest |today's )?price",
        r"how much (?:is|does|do|are|cost|costs)",
        r"price of",
        r"cost of",
        r"(?:bitcoin|btc|ethereum|eth|crypto|cryptocurrency|dogecoin|doge|solana|sol|cardano|ada) (?:price|value|worth|cost)",
        r"(?:btc|eth|doge|sol|ada|xrp)/(?:usd|eur|gbp)",
        r"(?:stock|share) price",
        r"(?:nasdaq|dow|s&p|nyse) (?:today|now|current)",
        r"ticker (?:symbol )?[A-Z]{1,5}",
        r"weather (?:in|at|for)",
        r"(?:temperature|forecast) (?:in|at|for)",
        r"(?:will it|is it going to) (?:rain|snow)",
        r"convert \d+",
        r"\d+ (?:usd|eur|gbp|jpy|cad|aud) to (?:usd|eur|gbp|jpy|cad|aud)",
        r"exchange rate",
        r"calculate",
        r"\d+ (?:\+|-|\*|/|plus|minus|times|divided by) \d+",
        r"what time is it in",
        r"current time in",
        r"time zone",
        r"(?:live )?(?:score|game|match) (?:of|for|between)",
        r"who(?:'s| is) winning",
    ),
    description="Real-time data query (prices, weather, calculations, or structured data)",
)

NEWS = IntentLexicon(
    keywords=(
        "news", "breaking", "latest", "recent", "update", "updates", "headline", "headlines",
        "report", "reported", "reporting", "announcement", "announced", "breaking news",
        "today", "yesterday", "this week", "this month", "currently", "now", "just now",
        "moments ago", "hours ago", "days ago",
        "happened", "happening", "occurred", "event", "incident", "situation",
        "development", "story", "coverage",
        "according to", "sources say", "reports indicate", "confirmed",
        "election", "politics", "government", "president", "congress", "senate",
        "conflict", "war", "peace", "treaty", "agreement", "scandal", "controversy",
    ),
    patterns=_compile(
        r"(?:latest|breaking|recent) news",
        r"news (?:about|on|regarding)",
        r"what happened",
        r"what's happening",
        r"(?:today's|yesterday's|this week's) (?:news|headlines|top stories)",
        r"breaking:",
        r"just (?:announced|reported|confirmed)",
        r"(?:recent|latest) (?:update|development|event)",
        r"(?:election|vote|voting) (?:results|news|update)",
        r"(?:war|conflict|crisis) in",
    ),
    description="Current events or breaking news query",
)

VIDEO = IntentLexicon(
    keywords=(
        "video", "youtube", "vimeo", "tiktok", "instagram reels", "shorts",
        "movie", "movies", "film", "films", "cinema", "theater", "theatre",
        "show", "series", "tv show", "television", "episode", "season",
        "documentary", "docuseries",
        "watch", "stream", "streaming", "netflix", "hulu", "disney+", "disney plus",
        "amazon prime", "hbo", "hbo max", "apple tv", "paramount+",
        "trailer", "teaser", "clip", "scene", "preview", "promo",
        "review", "reaction", "analysis", "breakdown",
        "tutorial", "how to", "guide", "walkthrough", "demonstration", "demo",
        "lesson", "course", "learn", "learning",
        "comedy", "funny", "hilarious", "sketch", "standup", "stand-up",
        "music video", "concert", "performance", "live performance",
        "disney", "pixar", "marvel", "dc", "warner bros", "universal",
        "star wars", "harry potter", "lord of the rings",
    ),
    patterns=_compile(
        r"(?:watch|stream|find) (?:the )?(?:movie|film|video|show|series)",
        r"(?:movie|film) (?:trailer|review|clip|scene)",
        r"how to .+(?:video|tutorial)",
        r"(?:disney|marvel|dc|netflix|hulu) (?:movie|show|series)",
        r"(?:latest|new|upcoming) (?:movie|film|show|series)",
        r"(?:best|top) (?:\d+ )?(?:movies|films|shows|series)",
        r"(?:full )?(?:movie|episode|season) (?:online|free|hd)",
        r"(?:youtube|vimeo|tiktok) video",
        r"music video (?:of|for|by)",
        r"(?:funny|comedy|hilarious) (?:video|clip)",
        r"tutorial (?:on|for|about)",
    ),
    description="Video content query (movies, shows, or tutorials)",
)

IMAGE = IntentLexicon(
    keywords=(
        "image", "images", "picture", "pictures", "photo", "photos", "photograph",
        "pic", "pics", "snapshot", "shot",
        "logo", "icon", "symbol", "emblem", "badge", "avatar",
        "wallpaper", "background", "backdrop", "banner", "header",
        "screenshot", "screen capture", "screengrab",
        "graphic", "illustration", "drawing", "artwork", "art",
        "diagram", "chart", "graph", "infographic", "visualization",
        "map", "blueprint", "sketch", "design",
        "look like", "looks like", "appearance", "visual", "visually",
        "show me", "display", "view", "see",
        "gallery", "album", "collection", "portfolio",
        "high resolution", "hd", "4k", "quality",
        "thumbnail", "preview",
    ),
    patterns=_compile(
        r"(?:show|find|get|search) (?:me )?(?:images?|pictures?|photos?)",
        r"(?:images?|pictures?|photos?) of",
        r"what does .+ look like",
        r"(?:logo|icon|symbol) (?:of|for)",
        r"picture of",
        r"(?:wallpaper|background) (?:for|of)",
        r"(?:diagram|chart|graph|infographic) (?:of|for|showing)",
        r"(?:screenshot|screen capture) of",
        r"(?:high resolution|hd|4k) (?:image|picture|photo)",
        r"(?:gallery|album|collection) of",
    ),
    description="Visual content query (pictures, photos, or graphics)",
)

WEB = IntentLexicon(
    keywords=(
        "what", "who", "where", "when", "why", "how", "which", "whose",
        "define", "definition", "meaning", "explain", "explanation",
        "describe", "description", "tell me", "information", "info",
        "about", "regarding", "concerning",
        "learn", "understand", "know", "find out", "discover",
        "compare", "comparison", "difference", "versus", "vs",
        "better", "best", "worst", "pros and cons",
        "list", "examples", "types", "kinds", "categories",
    ),
    patterns=_compile(
        r"^(?:what|who|where|when|why|how|which)",
        r"(?:define|definition of|meaning of)",
        r"(?:explain|describe|tell me about)",
        r"(?:how (?:do|does|did|can|could|would|should))",
        r"(?:what (?:is|are|was|were))",
        r"(?:who (?:is|are|was|were))",
        r"(?:difference between|compare)",
        r"(?:best|top|worst) .+(?:for|to)",
        r"(?:list of|examples of)",
        # catch-all, web always scores
        r".*",
    ),
    description="General information query",
)
