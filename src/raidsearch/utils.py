"""Text helpers: query-value encoding, match highlighting and URL path parts."""

from __future__ import annotations

import re
from urllib.parse import quote

# Characters encodeURIComponent leaves untouched besides ASCII alphanumerics.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    """Percent-encode ``value`` the way browsers encode a URI component."""
    return quote(value, safe=_URI_COMPONENT_SAFE)


def highlight_text(text: str, query: str | None, *, marker: str = "mark") -> str:
    """Wrap every case-insensitive literal occurrence of ``query`` in ``marker`` tags.

    A missing or blank (empty or whitespace-only) query leaves the text
    unchanged. The query is matched as plain text, so regular-expression
    metacharacters have no special meaning, and matched text keeps its
    original casing.
    """
    if not query or not query.strip():
        return text
    pattern = re.compile(re.escape(query), flags=re.IGNORECASE)
    return pattern.sub(lambda match: f"<{marker}>{match.group(0)}</{marker}>", text)


def last_path_segment(value: str) -> str:
    """Return what follows the final ``/`` (empty when ``value`` ends with one)."""
    return value.rsplit("/", 1)[-1]
