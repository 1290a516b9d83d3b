"""
Word counting for regulation markup
"""

import re
from typing import Optional

# Anything between '<' and the next '>' is treated as a tag, nested or not.
TAG_PATTERN = re.compile(r'<[^>]*>')


def strip_tags(markup: str) -> str:
    """Replace every markup tag with a single space"""
    return TAG_PATTERN.sub(' ', markup)


def count_words(markup: Optional[str]) -> int:
    """Count whitespace-delimited tokens left after stripping tags.

    This is a census approximation, not an XML parser: entities are not
    decoded and a stray '<' without a closing '>' is counted as text.
    """
    if not markup:
        return 0
    return len(strip_tags(markup).split())
