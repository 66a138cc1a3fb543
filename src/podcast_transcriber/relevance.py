"""Keyword-overlap check between an item title and its transcript.

A transcript whose opening lines share no keyword with the title is
probably the wrong audio or a hallucinated transcription. The check is a
heuristic: the orchestrator retranscribes once on a miss and keeps the
original transcript if the retry misses too.
"""

from __future__ import annotations

import logging
import re
from typing import List

from . import config_constants

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def extract_keywords(title: str) -> List[str]:
    """Return the distinct keywords of ``title`` in order of appearance.

    Keywords are lowercase alphanumeric words longer than three characters
    that are not stop-words.

    Example:
        >>> extract_keywords("Tech News Weekly: The Podcast")
        ['tech', 'news', 'weekly']
    """
    words = _NON_ALNUM_RE.sub(" ", title.lower()).split()
    keywords: List[str] = []
    for word in words:
        if word in config_constants.RELEVANCE_STOP_WORDS:
            continue
        if len(word) < config_constants.RELEVANCE_MIN_KEYWORD_LENGTH:
            continue
        if word not in keywords:
            keywords.append(word)
    return keywords


def is_relevant(
    title: str,
    text: str,
    max_lines: int = config_constants.DEFAULT_RELEVANCE_LINES,
) -> bool:
    """Return True if any title keyword occurs in the first ``max_lines`` lines of ``text``.

    Matching is a case-insensitive substring search. A title without
    keywords cannot be checked and counts as relevant.
    """
    keywords = extract_keywords(title)
    if not keywords:
        logger.debug("No keywords in title %r, skipping relevance check", title)
        return True
    head = "\n".join(text.splitlines()[:max_lines]).lower()
    for keyword in keywords:
        if keyword in head:
            logger.debug("Relevance keyword %r found for %r", keyword, title)
            return True
    return False


class RelevanceVerifier:
    def __init__(self, max_lines: int = config_constants.DEFAULT_RELEVANCE_LINES):
        self.max_lines = max_lines

    def verify(self, title: str, text: str) -> bool:
        return is_relevant(title, text, self.max_lines)
