"""Result markup patterns for the DuckDuckGo HTML endpoints.

Ordered by preference. Update these when the upstream markup changes; the
provider's control flow does not need to change.
"""

from __future__ import annotations

import re

from ..scraping import ExtractionStrategy

_FLAGS = re.IGNORECASE | re.DOTALL

# <a class="result__a" href="..."> title </a> ... <a class="result__snippet"> snippet </a>
PRIMARY_HTML = ExtractionStrategy(
    name="html-primary",
    pattern=re.compile(
        r'<a[^>]*class="[^"]*\bresult__a\b[^"]*"[^>]*href="(?P<url>[^"]*)"[^>]*>(?P<title>.*?)</a>'
        r'.*?class="[^"]*\bresult__snippet\b[^"]*"[^>]*>(?P<snippet>.*?)</a>',
        _FLAGS,
    ),
)

# <h2 class="result__title"><a href="..."> title </a></h2> ... <div class="result__snippet"> snippet </div>
ALTERNATE_HTML = ExtractionStrategy(
    name="html-alternate",
    pattern=re.compile(
        r'<h2[^>]*class="[^"]*\bresult__title\b[^"]*"[^>]*>\s*<a[^>]*href="(?P<url>[^"]*)"[^>]*>(?P<title>.*?)</a>'
        r'.*?<div[^>]*class="[^"]*\bresult__snippet\b[^"]*"[^>]*>(?P<snippet>.*?)</div>',
        _FLAGS,
    ),
)

# <a href="..." class='result-link'> title </a> ... <td class='result-snippet'> snippet </td>
LITE_HTML = ExtractionStrategy(
    name="lite",
    pattern=re.compile(
        r"""<a[^>]*href=["'](?P<url>[^"']*)["'][^>]*class=["']result-link["'][^>]*>(?P<title>.*?)</a>"""
        r""".*?<td[^>]*class=["']result-snippet["'][^>]*>(?P<snippet>.*?)</td>""",
        _FLAGS,
    ),
)

HTML_PAGE_STRATEGIES: tuple[ExtractionStrategy, ...] = (PRIMARY_HTML, ALTERNATE_HTML)
LITE_PAGE_STRATEGIES: tuple[ExtractionStrategy, ...] = (LITE_HTML,)
