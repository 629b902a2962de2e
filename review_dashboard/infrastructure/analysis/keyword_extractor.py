"""
Keyword & Category Extraction
=============================

Per-review keywords (top 8 significant words) and a coarse category
chosen by the first matching keyword group.
"""

import re
from collections import Counter
from typing import List

from ...domain.models import Category

MAX_KEYWORDS = 8
MIN_WORD_LENGTH = 3
FALLBACK_KEYWORDS = ["general"]

STOP_WORDS = frozenset([
    'the', 'and', 'but', 'for', 'are', 'was', 'were', 'been', 'have', 'has', 'had',
    'will', 'would', 'could', 'should', 'this', 'that', 'with', 'from', 'they',
    'them', 'their', 'what', 'when', 'where', 'why', 'how', 'all', 'any', 'both',
    'each', 'few', 'more', 'most', 'other', 'some', 'such', 'only', 'own', 'same',
    'so', 'than', 'too', 'very', 'can', 'don', 'now', 'did', 'get', 'may', 'new',
    'one', 'way', 'use', 'man', 'day', 'see', 'him', 'two', 'who', 'its',
    'said', 'make', 'over', 'time', 'much', 'take', 'want', 'know', 'year',
    'come', 'just', 'like', 'long', 'well',
])

# Checked in order; the first group with a hit decides the category
CATEGORY_KEYWORDS = (
    (Category.BUG_REPORT, ('bug', 'crash', 'error', 'broken', 'fix', 'issue', 'problem',
                           'not working', "doesn't work", 'glitch')),
    (Category.FEATURE_REQUEST, ('add', 'feature', 'request', 'please', 'would be nice',
                                'suggestion', 'improve', 'enhancement')),
    (Category.PERFORMANCE, ('slow', 'lag', 'performance', 'speed', 'fast', 'loading')),
    (Category.UI_UX, ('design', 'ui', 'ux', 'interface', 'layout', 'button', 'screen')),
)


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[str]:
    """
    Most frequent significant words in the text, most frequent first.

    Words are lowercased, at least 3 characters, not stop words and not
    purely numeric. Never returns an empty list.
    """
    if not text or not text.strip():
        return list(FALLBACK_KEYWORDS)

    words = re.sub(r"[^\w\s]", " ", text.lower()).split()
    significant = [
        word for word in words
        if len(word) >= MIN_WORD_LENGTH
        and word not in STOP_WORDS
        and not word.isdigit()
    ]

    # most_common keeps first-seen order between equal counts
    keywords = [word for word, _ in Counter(significant).most_common(limit)]
    return keywords or list(FALLBACK_KEYWORDS)


def categorize_review(text: str) -> Category:
    """Substring match against the keyword groups, General when nothing hits."""
    if not text:
        return Category.GENERAL

    lowered = text.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.GENERAL
