# Domain Layer
# ============
# Canonical review record and the aggregated snapshot built from it.

from .models import (
    Review,
    AggregatedData,
    TimeSeriesPoint,
    Sentiment,
    Platform,
    Category,
    RATING_BUCKETS,
)

__all__ = [
    "Review",
    "AggregatedData",
    "TimeSeriesPoint",
    "Sentiment",
    "Platform",
    "Category",
    "RATING_BUCKETS",
]
