"""
Data models - the shapes every dashboard view consumes.
========================================================

A spreadsheet row of any export flavour is converted into a Review, and a
list of Reviews is folded into one AggregatedData snapshot.

The dataclasses use snake_case; to_dict() emits the camelCase keys the
dashboard views and the chat-context builder read.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

RATING_BUCKETS = (1, 2, 3, 4, 5)


class Sentiment(Enum):
    """Sentiment label attached to every review."""
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


class Platform(Enum):
    """Store the review was written on."""
    IOS = "iOS"
    ANDROID = "Android"
    UNKNOWN = "Unknown"


class Category(Enum):
    """Coarse review category. Declaration order is match priority."""
    BUG_REPORT = "Bug Report"
    FEATURE_REQUEST = "Feature Request"
    PERFORMANCE = "Performance"
    UI_UX = "UI/UX"
    GENERAL = "General"


def to_jsonable(value: Any) -> Any:
    """Convert spreadsheet cell values (Timestamps, NaN, numpy scalars) to JSON types."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) else value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, "item"):
        # numpy scalar
        return to_jsonable(value.item())
    return str(value)


@dataclass
class Review:
    """A single normalized review, whatever export it came from."""
    id: int
    rating: int = 0                 # 0 = unknown, otherwise 1..5
    title: str = ""
    content: str = ""               # primary text used for analysis
    body: str = ""                  # raw alias kept for compatibility
    author: str = "Anonymous"
    date: Optional[datetime] = None
    version: str = ""
    device: str = ""
    os: str = ""
    platform: Platform = Platform.UNKNOWN
    response: str = ""
    country: str = "Unknown"
    language: str = "English"
    app_name: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = 0
    positive_words: List[str] = field(default_factory=list)
    negative_words: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=lambda: ["general"])
    category: Category = Category.GENERAL
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_response(self) -> bool:
        return bool(self.response and self.response.strip())

    @property
    def text(self) -> str:
        """Best available text for keyword and category analysis."""
        return self.content or self.body or self.title or ""

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "body": self.body,
            "author": self.author,
            "date": self.date.isoformat() if self.date else None,
            "version": self.version,
            "device": self.device,
            "os": self.os,
            "platform": self.platform.value,
            "response": self.response,
            "country": self.country,
            "language": self.language,
            "appName": self.app_name,
            "sentiment": self.sentiment.value,
            "sentimentScore": self.sentiment_score,
            "positiveWords": list(self.positive_words),
            "negativeWords": list(self.negative_words),
            "keywords": list(self.keywords),
            "category": self.category.value,
        }
        # Original columns ride along for debugging, canonical keys win
        for column, value in self.raw.items():
            if column not in data:
                data[column] = to_jsonable(value)
        return data


@dataclass
class TimeSeriesPoint:
    """Reviews for one calendar day."""
    date: str                       # YYYY-MM-DD
    count: int = 0
    avg_rating: float = 0
    sentiments: Dict[str, int] = field(
        default_factory=lambda: {s.value: 0 for s in Sentiment}
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "count": self.count,
            "avgRating": self.avg_rating,
            "sentiments": dict(self.sentiments),
        }


@dataclass(frozen=True)
class AggregatedData:
    """
    Immutable snapshot built from one batch of reviews.

    Every nested structure always exists, so renderers never null-check.
    """
    total_reviews: int
    avg_rating: float
    last_updated: str
    rating_distribution: Dict[int, int]
    sentiment_distribution: Dict[str, int]
    category_distribution: Dict[str, int]
    platform_distribution: Dict[str, int]
    time_series: List[TimeSeriesPoint]
    top_keywords: List[Dict[str, Any]]
    reviews: List[Review]
    response_rate: int

    @property
    def sentiment_breakdown(self) -> Dict[str, int]:
        return {
            "positive": self.sentiment_distribution.get(Sentiment.POSITIVE.value, 0),
            "neutral": self.sentiment_distribution.get(Sentiment.NEUTRAL.value, 0),
            "negative": self.sentiment_distribution.get(Sentiment.NEGATIVE.value, 0),
        }

    def to_dict(self, include_reviews: bool = True) -> Dict[str, Any]:
        return {
            "summary": {
                "totalReviews": self.total_reviews,
                "avgRating": self.avg_rating,
                "distribution": dict(self.rating_distribution),
                "lastUpdated": self.last_updated,
            },
            "ratingDistribution": dict(self.rating_distribution),
            "sentimentDistribution": dict(self.sentiment_distribution),
            "sentimentBreakdown": self.sentiment_breakdown,
            "categoryDistribution": dict(self.category_distribution),
            "platformDistribution": dict(self.platform_distribution),
            "timeSeriesData": [point.to_dict() for point in self.time_series],
            "topKeywords": [dict(k) for k in self.top_keywords],
            "reviews": [r.to_dict() for r in self.reviews] if include_reviews else [],
            "responseRate": self.response_rate,
        }
