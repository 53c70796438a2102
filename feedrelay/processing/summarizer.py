"""
Text Summarizer
===============

Extractive shortening of translated text: leading sentences are kept,
everything else is replaced by an ellipsis.
"""

import re
from typing import List

# A sentence ends at '.', '!' or '?' followed by whitespace or end of text
SENTENCE_PATTERN = re.compile(r"(.*?[.!?])(?:\s+|$)", re.DOTALL)

DEFAULT_ELLIPSIS = "…"


def split_sentences(text: str) -> List[str]:
    """Return the complete sentences found in ``text``, stripped.

    Trailing text without a terminator is not included.
    """
    sentences = []
    for match in SENTENCE_PATTERN.finditer(text):
        sentence = match.group(1).strip()
        if sentence:
            sentences.append(sentence)
    return sentences


def summarize(text: str, max_length: int, max_sentences: int, ellipsis: str = DEFAULT_ELLIPSIS) -> str:
    """Shorten ``text`` if it is longer than ``max_length``.

    Args:
        text: Text to shorten
        max_length: Texts up to this many characters are returned unchanged
        max_sentences: Number of leading sentences kept when shortening
        ellipsis: Marker appended to shortened text

    Returns:
        The original text, or a shortened version ending in ``ellipsis``
    """
    if len(text) <= max_length:
        return text

    sentences = split_sentences(text)
    if sentences:
        kept = " ".join(sentences[:max(1, max_sentences)]).strip()
        return kept + ellipsis

    # No sentence boundary: cut on a word boundary when there is one
    cut = text.rfind(" ", 0, max_length)
    if cut <= 0:
        cut = max_length
    return text[:cut].rstrip() + ellipsis


def limit_text(text: str, max_length: int, marker: str = "...") -> str:
    """Plain length cap; ``max_length`` of 0 disables it."""
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length] + marker
