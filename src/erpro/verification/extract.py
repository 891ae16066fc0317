"""Document link extraction from generated text."""

from __future__ import annotations

import re
from functools import lru_cache

# Characters that end a URL: whitespace, table pipes and closing brackets
_URL_BODY = r"[^\s|)\]>]"


@lru_cache(maxsize=16)
def link_pattern(suffix: str) -> re.Pattern[str]:
    """Compile the pattern matching http(s) URLs that end in ``suffix``.

    The match is lazy and case-insensitive, and the suffix must not be
    followed by another word, slash or hyphen character.
    """
    return re.compile(
        rf"(?<![\w./-])https?://{_URL_BODY}+?{re.escape(suffix)}(?![\w/-])",
        re.IGNORECASE,
    )


def extract_links(text: str, suffix: str = ".pdf") -> list[str]:
    """Find unique URLs in ``text`` ending with ``suffix``.

    Args:
        text: Text to scan; may be empty.
        suffix: File suffix the URL must end with (e.g. ".pdf").

    Returns:
        URLs in first-seen order, deduplicated by exact string.
    """
    if not text:
        return []
    return list(dict.fromkeys(link_pattern(suffix).findall(text)))
