"""
Review Filter - Dedup, Search and Quick Stats for the Review List
=================================================================

Backs the filterable review list and topic views: remove duplicate rows
from overlapping exports, apply search/rating/sentiment/date/metadata
filters, and summarize whatever survived.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from ...domain.models import RATING_BUCKETS, Review, Sentiment
from .aggregator import round_half_up

logger = logging.getLogger(__name__)

TIME_RANGES = {
    "7days": timedelta(days=7),
    "30days": timedelta(days=30),
    "90days": timedelta(days=90),
    "1year": timedelta(days=365),
}

SENTIMENT_FILTERS = {s.value.lower(): s for s in Sentiment}

DEDUP_CONTENT_CHARS = 200


@dataclass
class ReviewFilter:
    """
    Everything the review list can be narrowed by. "all" disables a filter.

    selected: "all", a star rating "1".."5", or positive/neutral/negative
    time_range: "all", "7days", "30days", "90days" or "1year"
    start_date/end_date: inclusive calendar days, override time_range
    """
    search: str = ""
    selected: str = "all"
    time_range: str = "all"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return (
            not self.search
            and self.selected == "all"
            and self.time_range == "all"
            and self.start_date is None
            and self.end_date is None
            and all(value == "all" for value in self.metadata.values())
        )


# Metadata filter name -> review attribute it compares against
METADATA_FIELDS = {
    "app_name": lambda r: r.app_name,
    "device": lambda r: r.device,
    "version": lambda r: r.version,
    "os": lambda r: r.os,
    "platform": lambda r: r.platform.value,
    "category": lambda r: r.category.value,
}


def _dedup_key(review: Review) -> str:
    author = (review.author or "Anonymous").lower().strip()
    stamp = review.date.isoformat() if review.date else ""
    content = (review.content or review.body or "").lower().strip()
    return f"{author}_{stamp}_{review.rating}_{content[:DEDUP_CONTENT_CHARS]}"


def deduplicate_reviews(reviews: List[Review]) -> List[Review]:
    """Drop reviews repeated across overlapping exports, keeping the first."""
    seen = set()
    unique = []
    for review in reviews:
        key = _dedup_key(review)
        if key in seen:
            continue
        seen.add(key)
        unique.append(review)

    dropped = len(reviews) - len(unique)
    if dropped:
        logger.info(f"Removed {dropped} duplicate reviews")
    return unique


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _date_bounds(criteria: ReviewFilter, now: datetime):
    if criteria.start_date or criteria.end_date:
        start = end = None
        if criteria.start_date:
            start = datetime.combine(criteria.start_date, time.min, tzinfo=timezone.utc)
        if criteria.end_date:
            end = datetime.combine(criteria.end_date, time.max, tzinfo=timezone.utc)
        return start, end

    window = TIME_RANGES.get(criteria.time_range)
    if window is not None:
        return now - window, None
    return None, None


def _searchable_text(review: Review) -> str:
    return " ".join([review.content, review.body, review.title, review.author]).lower()


def filter_reviews(reviews: List[Review], criteria: ReviewFilter,
                   now: Optional[datetime] = None) -> List[Review]:
    """Apply every active filter in criteria; all of them must match."""
    if not reviews or criteria.is_empty:
        return list(reviews or [])

    now = _as_utc(now or datetime.now(timezone.utc))
    start, end = _date_bounds(criteria, now)
    search = criteria.search.lower()

    selected = criteria.selected.strip().lower()
    rating_filter = int(selected) if selected.isdigit() else None
    sentiment_filter = SENTIMENT_FILTERS.get(selected)

    matched = []
    for review in reviews:
        if search and search not in _searchable_text(review):
            continue

        if rating_filter is not None and review.rating != rating_filter:
            continue
        if sentiment_filter is not None and review.sentiment != sentiment_filter:
            continue

        if start is not None or end is not None:
            if not isinstance(review.date, datetime):
                continue
            moment = _as_utc(review.date)
            if start is not None and moment < start:
                continue
            if end is not None and moment > end:
                continue

        if not _matches_metadata(review, criteria.metadata):
            continue

        matched.append(review)

    return matched


def _matches_metadata(review: Review, metadata: Dict[str, str]) -> bool:
    for name, wanted in metadata.items():
        if not wanted or wanted == "all":
            continue
        getter = METADATA_FIELDS.get(name)
        if getter is None:
            logger.debug(f"Ignoring unknown metadata filter: {name}")
            continue
        if getter(review) != wanted:
            return False
    return True


def quick_stats(reviews: List[Review]) -> Dict[str, Any]:
    """
    Headline numbers for a filtered list.

    avgRating here averages over all reviews (unrated count as 0) and is
    rounded to one decimal, matching the list header.
    """
    sentiment_counts = {s.value.lower(): 0 for s in Sentiment}
    rating_counts = {bucket: 0 for bucket in RATING_BUCKETS}
    total_rating = 0

    for review in reviews:
        total_rating += review.rating
        sentiment_counts[review.sentiment.value.lower()] += 1
        if review.rating in rating_counts:
            rating_counts[review.rating] += 1

    return {
        "totalCount": len(reviews),
        "avgRating": round_half_up(total_rating / len(reviews), 1) if reviews else 0,
        "sentimentBreakdown": sentiment_counts,
        "ratingDistribution": [
            {"rating": rating, "count": rating_counts[rating]}
            for rating in reversed(RATING_BUCKETS)
        ],
    }
