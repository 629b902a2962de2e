"""
Sentiment Labeler - Positive / Neutral / Negative per Review
=============================================================

Priority:
1. An explicit sentiment column in the export wins outright.
2. Otherwise the review text is scored against the VADER lexicon
   (word valences summed, negations flipped) and the score is
   thresholded, with the star rating deciding near-zero scores.
3. No text at all: the star rating alone decides.

Always returns one of the three labels; never raises on bad input.
"""

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from vaderSentiment.vaderSentiment import NEGATE, SentimentIntensityAnalyzer

from ...domain.models import Sentiment

logger = logging.getLogger(__name__)

SENTIMENT_COLUMN_ALIASES = ("Sentiment", "sentiment", "Review Sentiment", "App Store Sentiment")

# Fixed scores for labels taken from an explicit column
LABEL_SCORES = {
    Sentiment.POSITIVE: 2,
    Sentiment.NEGATIVE: -2,
    Sentiment.NEUTRAL: 0,
}

# Scores this close to zero defer to the star rating
RATING_FALLBACK_THRESHOLD = 0.5

TOKEN_PATTERN = re.compile(r"[a-z0-9']+")


@dataclass
class SentimentResult:
    """Outcome of labeling one review."""
    sentiment: Sentiment
    score: float = 0
    positive_words: List[str] = field(default_factory=list)
    negative_words: List[str] = field(default_factory=list)


def normalize_sentiment_value(value: Any) -> Sentiment:
    """
    Map a free-form sentiment cell ("pos", "Negative", "-1", "mixed") to a label.

    Unrecognised values default to Neutral with a warning.
    """
    if value is None:
        return Sentiment.NEUTRAL

    if isinstance(value, float) and value.is_integer():
        value = int(value)
    label = str(value).lower().strip()
    if not label:
        return Sentiment.NEUTRAL

    # Negated forms contain the positive markers, so test them first
    if "unfavorable" in label or "dislike" in label:
        return Sentiment.NEGATIVE

    if ("positive" in label or "pos" in label or label in ("good", "happy", "1")
            or "favorable" in label or "like" in label):
        return Sentiment.POSITIVE

    if ("negative" in label or "neg" in label or label in ("bad", "angry", "-1")):
        return Sentiment.NEGATIVE

    if ("neutral" in label or "mixed" in label or label in ("okay", "0")
            or "moderate" in label):
        return Sentiment.NEUTRAL

    logger.warning(f"Unrecognized sentiment value: {value!r} - defaulting to Neutral")
    return Sentiment.NEUTRAL


def sentiment_from_rating(rating: int) -> Sentiment:
    """Star-rating thresholds. A rating of 0 means unknown and stays Neutral."""
    if rating >= 4:
        return Sentiment.POSITIVE
    if 1 <= rating <= 2:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def categorize_score(score: float, rating: int = 0) -> Sentiment:
    """Turn a signed lexicon score into a label, deferring to the rating near zero."""
    if abs(score) < RATING_FALLBACK_THRESHOLD and rating > 0:
        return sentiment_from_rating(rating)

    if score > 0:
        return Sentiment.POSITIVE
    if score < 0:
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


class LexiconScorer:
    """
    AFINN-style scorer over the VADER lexicon.

    Each token contributes its valence; a token directly after a negation
    word ("not", "don't", "never", ...) contributes the opposite.
    """

    def __init__(self, lexicon: Optional[Dict[str, float]] = None):
        self._lexicon = lexicon if lexicon is not None else SentimentIntensityAnalyzer().lexicon
        self._negations = {word.replace("'", "") for word in NEGATE}

    def score(self, text: str) -> SentimentResult:
        tokens = TOKEN_PATTERN.findall(text.lower())
        total = 0.0
        positive: List[str] = []
        negative: List[str] = []

        for i, token in enumerate(tokens):
            valence = self._lexicon.get(token)
            if valence is None:
                continue
            if i > 0 and tokens[i - 1].replace("'", "") in self._negations:
                valence = -valence
            total += valence
            if valence > 0:
                positive.append(token)
            elif valence < 0:
                negative.append(token)

        return SentimentResult(
            sentiment=Sentiment.NEUTRAL,
            score=round(total, 3),
            positive_words=positive,
            negative_words=negative,
        )


class SentimentLabeler:
    """
    Labels reviews using an explicit column, the lexicon, or the rating.

    USAGE:
        labeler = SentimentLabeler()
        result = labeler.label(row, content="Love it!", rating=5)
        print(result.sentiment)  # Sentiment.POSITIVE
    """

    def __init__(self, scorer: Optional[LexiconScorer] = None):
        self._scorer = scorer or LexiconScorer()

    def label(self, row: Dict[str, Any], content: str, rating: int = 0) -> SentimentResult:
        existing = self._explicit_sentiment(row)
        if existing is not None:
            sentiment = normalize_sentiment_value(existing)
            logger.debug(f"Using existing sentiment {existing!r} -> {sentiment.value}")
            return SentimentResult(sentiment=sentiment, score=LABEL_SCORES[sentiment])

        if content and content.strip():
            result = self._scorer.score(content)
            result.sentiment = categorize_score(result.score, rating)
            return result

        return SentimentResult(sentiment=categorize_score(0, rating), score=0)

    @staticmethod
    def _explicit_sentiment(row: Dict[str, Any]) -> Optional[Any]:
        for column in SENTIMENT_COLUMN_ALIASES:
            value = row.get(column)
            if value is None or (isinstance(value, float) and math.isnan(value)):
                continue
            if isinstance(value, str) and not value.strip():
                continue
            return value
        return None
