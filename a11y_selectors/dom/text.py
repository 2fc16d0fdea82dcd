"""
Text Normalizer - Whitespace folding used for every text comparison.
"""
from typing import Optional
import re

# \s already covers \xa0 for str patterns
WHITESPACE = re.compile(r"\s+")


def normalize(text: Optional[str]) -> str:
    """Collapse whitespace runs to a single space and trim the ends."""
    if not text:
        return ""
    return WHITESPACE.sub(" ", text).strip()
