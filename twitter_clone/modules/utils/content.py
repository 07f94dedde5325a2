"""Tweet text helpers: hashtag extraction and clickable-hashtag rendering."""

from __future__ import annotations

import html
import re
from typing import List
from urllib.parse import quote

HASHTAG_PATTERN = re.compile(r"#\w+")


def extract_hashtags(content: str) -> List[str]:
    """Return distinct tags (lowercase, without '#') in order of first appearance."""
    seen: dict[str, None] = {}
    for match in HASHTAG_PATTERN.findall(content or ""):
        seen.setdefault(match[1:].lower(), None)
    return list(seen)


def render_clickable_hashtags(content: str, search_path: str = "/tweets/search") -> str:
    """Escape ``content`` as HTML and turn every hashtag into a search link."""
    escaped = html.escape(content or "", quote=False)

    def _link(match: re.Match) -> str:
        token = match.group(0)
        href = f"{search_path}?q={quote(token)}"
        return f'<a href="{href}" class="hashtag">{token}</a>'

    return HASHTAG_PATTERN.sub(_link, escaped)
