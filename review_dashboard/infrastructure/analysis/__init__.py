from .sentiment_labeler import (
    SentimentLabeler,
    SentimentResult,
    LexiconScorer,
    normalize_sentiment_value,
    categorize_score,
)
from .keyword_extractor import extract_keywords, categorize_review
from .aggregator import aggregate
from .review_filter import ReviewFilter, deduplicate_reviews, filter_reviews, quick_stats

__all__ = [
    "SentimentLabeler",
    "SentimentResult",
    "LexiconScorer",
    "normalize_sentiment_value",
    "categorize_score",
    "extract_keywords",
    "categorize_review",
    "aggregate",
    "ReviewFilter",
    "deduplicate_reviews",
    "filter_reviews",
    "quick_stats",
]
