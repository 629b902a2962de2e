"""
Aggregator - Reviews to Dashboard Snapshot
===========================================

Folds a batch of labeled reviews into the AggregatedData snapshot every
dashboard view reads. Pure statistics, no I/O.

Two calls on the same input produce identical output: lastUpdated is the
newest review timestamp in the batch, not the wall clock.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Union

from ...domain.models import (
    RATING_BUCKETS,
    AggregatedData,
    Review,
    Sentiment,
    TimeSeriesPoint,
)

logger = logging.getLogger(__name__)

TOP_KEYWORDS_LIMIT = 20

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def round_half_up(value: float, digits: int = 0) -> Union[int, float]:
    """
    Round exact halves away from zero, unlike round().

    Returns an int for digits=0, otherwise a float.
    """
    rounded = Decimal(value).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)
    return int(rounded) if digits == 0 else float(rounded)


def _sort_key(review: Review) -> datetime:
    if isinstance(review.date, datetime):
        if review.date.tzinfo is None:
            return review.date.replace(tzinfo=timezone.utc)
        return review.date
    return _OLDEST


def _day_key(review: Review) -> str:
    """UTC calendar day of the review, raises when the date is unusable."""
    moment = review.date
    if not isinstance(moment, datetime):
        raise TypeError(f"review {review.id} has no usable date: {moment!r}")
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date().isoformat()


def _empty_rating_distribution() -> Dict[int, int]:
    return {bucket: 0 for bucket in RATING_BUCKETS}


def _empty_sentiment_distribution() -> Dict[str, int]:
    return {s.value: 0 for s in Sentiment}


def aggregate(reviews: List[Review]) -> AggregatedData:
    """
    Build the dashboard snapshot for a batch of reviews.

    An empty batch yields a fully-shaped, zero-valued snapshot.
    """
    reviews = list(reviews or [])
    total = len(reviews)

    rating_dist = _empty_rating_distribution()
    sentiment_dist = _empty_sentiment_distribution()
    category_dist: Dict[str, int] = {}
    platform_dist: Dict[str, int] = {}
    days: Dict[str, TimeSeriesPoint] = {}
    day_ratings: Dict[str, List[int]] = {}
    keyword_counts: Counter = Counter()
    rating_sum = 0
    rated = 0
    responded = 0

    for review in reviews:
        if 1 <= review.rating <= 5:
            rating_dist[review.rating] += 1
        if review.rating > 0:
            rating_sum += review.rating
            rated += 1

        sentiment = review.sentiment.value if isinstance(review.sentiment, Sentiment) else None
        sentiment_dist[sentiment if sentiment in sentiment_dist else Sentiment.NEUTRAL.value] += 1

        category = review.category.value
        category_dist[category] = category_dist.get(category, 0) + 1
        platform = review.platform.value
        platform_dist[platform] = platform_dist.get(platform, 0) + 1

        keyword_counts.update(review.keywords)

        if review.has_response:
            responded += 1

        try:
            day = _day_key(review)
        except (TypeError, ValueError, OverflowError) as e:
            # Still counted everywhere else
            logger.warning(f"Skipping review {review.id} in time series: {e}")
            continue

        point = days.get(day)
        if point is None:
            point = days[day] = TimeSeriesPoint(date=day)
            day_ratings[day] = []
        point.count += 1
        day_ratings[day].append(review.rating)
        point.sentiments[sentiment if sentiment in point.sentiments else Sentiment.NEUTRAL.value] += 1

    for day, point in days.items():
        ratings = day_ratings[day]
        point.avg_rating = sum(ratings) / len(ratings)

    ordered_reviews = sorted(reviews, key=_sort_key, reverse=True)
    last_updated = ""
    if ordered_reviews and isinstance(ordered_reviews[0].date, datetime):
        last_updated = ordered_reviews[0].date.isoformat()

    avg_rating = round_half_up(rating_sum / rated, 2) if rated else 0
    response_rate = round_half_up(responded * 100 / total) if total else 0

    logger.info(
        f"Aggregated {total} reviews: avg={avg_rating}, "
        f"sentiment={sentiment_dist}, response_rate={response_rate}%"
    )

    return AggregatedData(
        total_reviews=total,
        avg_rating=avg_rating,
        last_updated=last_updated,
        rating_distribution=rating_dist,
        sentiment_distribution=sentiment_dist,
        category_distribution=category_dist,
        platform_distribution=platform_dist,
        time_series=[days[day] for day in sorted(days)],
        top_keywords=[
            {"word": word, "count": count}
            for word, count in keyword_counts.most_common(TOP_KEYWORDS_LIMIT)
        ],
        reviews=ordered_reviews,
        response_rate=response_rate,
    )
