from datetime import datetime, timezone

import pytest
import requests

from review_dashboard.domain.models import Category, Platform, Review, Sentiment


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def make_review():
    """Build a labeled Review with sensible defaults."""
    counter = {"next": 0}

    def _make(**overrides):
        fields = dict(
            id=counter["next"],
            rating=5,
            content="Great app",
            author="Tester",
            date=utc(2024, 1, 15),
            sentiment=Sentiment.POSITIVE,
            keywords=["great", "app"],
            category=Category.GENERAL,
            platform=Platform.IOS,
        )
        fields.update(overrides)
        counter["next"] += 1
        return Review(**fields)

    return _make


@pytest.fixture
def sample_rows():
    return [
        {"Rating": 5, "Review Text": "Love the new design, so smooth", "Author": "amy",
         "Date": "2024-01-15", "Platform": "iOS", "Developer Response": "Thanks!"},
        {"Rating": 1, "Review Text": "App crashes every time I open it", "Author": "bob",
         "Date": "2024-01-15", "Platform": "Android"},
        {"Rating": 3, "Review Text": "Please add dark mode", "Author": "cy",
         "Date": "2024-01-16", "Device": "Pixel 8"},
        {"Rating": 4, "Review Text": "", "Author": "dee", "Date": "not a date"},
    ]


class FakeResponse:
    """Stand-in for requests.Response in HTTP client tests."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")
