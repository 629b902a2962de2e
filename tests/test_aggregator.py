from datetime import datetime, timezone

from review_dashboard.domain.models import Category, Platform, Sentiment
from review_dashboard.infrastructure.analysis import aggregate
from review_dashboard.infrastructure.analysis.aggregator import round_half_up

from .conftest import utc


def test_empty_batch_has_full_shape():
    data = aggregate([]).to_dict()

    assert data["summary"] == {
        "totalReviews": 0,
        "avgRating": 0,
        "distribution": {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        "lastUpdated": "",
    }
    assert data["sentimentDistribution"] == {"Positive": 0, "Neutral": 0, "Negative": 0}
    assert data["sentimentBreakdown"] == {"positive": 0, "neutral": 0, "negative": 0}
    assert data["categoryDistribution"] == {}
    assert data["platformDistribution"] == {}
    assert data["timeSeriesData"] == []
    assert data["topKeywords"] == []
    assert data["reviews"] == []
    assert data["responseRate"] == 0


def test_totals_and_average_skip_unrated(make_review):
    reviews = [make_review(rating=r) for r in (5, 4, 0, 1)]
    data = aggregate(reviews)

    assert data.total_reviews == 4
    assert data.avg_rating == 3.33
    assert data.rating_distribution == {1: 1, 2: 0, 3: 0, 4: 1, 5: 1}
    assert sum(data.rating_distribution.values()) == 3


def test_all_unrated_average_is_zero(make_review):
    assert aggregate([make_review(rating=0), make_review(rating=0)]).avg_rating == 0


def test_distributions(make_review):
    reviews = [
        make_review(sentiment=Sentiment.POSITIVE, category=Category.UI_UX, platform=Platform.IOS),
        make_review(sentiment=Sentiment.NEGATIVE, category=Category.BUG_REPORT,
                    platform=Platform.ANDROID),
        make_review(sentiment=Sentiment.NEGATIVE, category=Category.BUG_REPORT,
                    platform=Platform.ANDROID),
    ]
    data = aggregate(reviews)

    assert data.sentiment_distribution == {"Positive": 1, "Neutral": 0, "Negative": 2}
    assert data.sentiment_breakdown == {"positive": 1, "neutral": 0, "negative": 2}
    assert data.category_distribution == {"UI/UX": 1, "Bug Report": 2}
    assert data.platform_distribution == {"iOS": 1, "Android": 2}
    assert sum(data.sentiment_distribution.values()) == data.total_reviews


def test_time_series_grouped_by_day_ascending(make_review):
    reviews = [
        make_review(date=utc(2024, 1, 16), rating=2, sentiment=Sentiment.NEGATIVE),
        make_review(date=utc(2024, 1, 15, 8), rating=5),
        make_review(date=utc(2024, 1, 15, 20), rating=0, sentiment=Sentiment.NEUTRAL),
    ]
    series = aggregate(reviews).to_dict()["timeSeriesData"]

    assert [point["date"] for point in series] == ["2024-01-15", "2024-01-16"]
    assert series[0]["count"] == 2
    # unrated reviews still pull the daily average down
    assert series[0]["avgRating"] == 2.5
    assert series[0]["sentiments"] == {"Positive": 1, "Neutral": 1, "Negative": 0}
    assert series[1]["avgRating"] == 2


def test_bad_date_skipped_only_in_time_series(make_review):
    reviews = [make_review(date=utc(2024, 1, 15)), make_review(date=None, rating=1)]
    data = aggregate(reviews)

    assert data.total_reviews == 2
    assert data.rating_distribution[1] == 1
    assert len(data.time_series) == 1
    assert data.time_series[0].count == 1


def test_reviews_sorted_newest_first(make_review):
    old = make_review(date=utc(2023, 5, 1))
    new = make_review(date=utc(2024, 2, 1))
    middle = make_review(date=utc(2023, 12, 1))
    data = aggregate([old, new, middle])

    assert [r.id for r in data.reviews] == [new.id, middle.id, old.id]
    assert data.last_updated == new.date.isoformat()


def test_top_keywords_counted_and_capped(make_review):
    reviews = [make_review(keywords=["sync", "login"]), make_review(keywords=["sync"])]
    reviews.append(make_review(keywords=[f"word{i}" for i in range(30)]))
    top = aggregate(reviews).top_keywords

    assert top[0] == {"word": "sync", "count": 2}
    assert len(top) == 20


def test_response_rate_rounds_half_up(make_review):
    reviews = [make_review(response="Thanks")] + [make_review() for _ in range(7)]
    assert aggregate(reviews).response_rate == 13

    reviews = [make_review(response="Thanks"), make_review(response="  "), make_review()]
    assert aggregate(reviews).response_rate == 33


def test_aggregation_is_repeatable(make_review):
    reviews = [
        make_review(date=utc(2024, 1, 15), rating=4),
        make_review(date=utc(2024, 1, 17), rating=2, sentiment=Sentiment.NEGATIVE),
    ]
    assert aggregate(reviews).to_dict() == aggregate(reviews).to_dict()


def test_to_dict_without_reviews(make_review):
    data = aggregate([make_review()]).to_dict(include_reviews=False)
    assert data["reviews"] == []
    assert data["summary"]["totalReviews"] == 1


def test_average_rounds_exact_half_up(make_review):
    reviews = [make_review(rating=r) for r in (5, 5, 5, 2, 2, 2, 2, 2)]
    assert aggregate(reviews).avg_rating == 3.13


def test_round_half_up_digits():
    assert round_half_up(12.5) == 13
    assert round_half_up(3.125, 2) == 3.13
    assert round_half_up(3.25, 1) == 3.3
    assert round_half_up(10 / 3, 2) == 3.33


def test_day_keys_zero_padded_for_early_years(make_review):
    reviews = [
        make_review(date=datetime(999, 1, 1, tzinfo=timezone.utc)),
        make_review(date=utc(2024, 1, 15)),
    ]
    series = aggregate(reviews).time_series

    assert [p.date for p in series] == ["0999-01-01", "2024-01-15"]
