from datetime import datetime, timezone

import pandas as pd
import pytest

from review_dashboard.domain.models import Category, Platform, Sentiment
from review_dashboard.infrastructure.analysis import aggregate
from review_dashboard.infrastructure.importer import (
    ExcelParser,
    ReviewFileError,
    ReviewProcessor,
    analyze_review_file,
    process_review_rows,
    read_review_rows,
    read_review_rows_from_bytes,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def processor():
    return ReviewProcessor()


def test_empty_row_is_neutral_general(processor):
    review = processor.process_row({}, 0, now=NOW)

    assert review.rating == 0
    assert review.sentiment == Sentiment.NEUTRAL
    assert review.keywords == ["general"]
    assert review.category == Category.GENERAL
    assert review.platform == Platform.UNKNOWN


def test_explicit_sentiment_contradicting_text(processor):
    row = {"Rating": 1, "Body": "terrible", "Sentiment": "Positive"}
    review = processor.process_row(row, 0, now=NOW)

    assert review.sentiment == Sentiment.POSITIVE
    assert review.sentiment_score == 2


def test_mixed_export_scenario(processor):
    row = {"Star Rating": 5, "Review Text": "Love it!", "App Store Date": 45000}
    review = processor.process_row(row, 0, now=NOW)

    assert review.rating == 5
    assert review.content == "Love it!"
    assert review.date.date().isoformat() == "2023-03-15"
    assert review.platform == Platform.IOS
    assert review.sentiment == Sentiment.POSITIVE
    assert review.keywords == ["love"]


def test_keywords_fall_back_to_title(processor):
    review = processor.process_row({"Title": "Battery drain"}, 0, now=NOW)
    assert review.keywords == ["battery", "drain"]


def test_batch_shares_one_timestamp(processor):
    reviews = processor.process_rows([{"Rating": 5}, {"Rating": 4}], now=NOW)
    assert [r.date for r in reviews] == [NOW, NOW]
    assert [r.id for r in reviews] == [0, 1]


def test_batch_labels_and_aggregates(processor, sample_rows):
    reviews = processor.process_rows(sample_rows, now=NOW)

    assert all(isinstance(r.sentiment, Sentiment) for r in reviews)
    assert all(1 <= len(r.keywords) <= 8 for r in reviews)
    assert reviews[0].category == Category.UI_UX
    assert reviews[1].category == Category.BUG_REPORT
    assert reviews[2].category == Category.FEATURE_REQUEST
    assert reviews[2].platform == Platform.ANDROID
    assert reviews[3].sentiment == Sentiment.POSITIVE
    assert reviews[3].date == NOW

    data = aggregate(reviews)
    assert data.total_reviews == 4
    assert data.avg_rating == 3.25
    assert data.response_rate == 25
    assert data.platform_distribution == {"iOS": 1, "Android": 2, "Unknown": 1}


def test_process_csv_file(tmp_path, sample_rows):
    path = tmp_path / "reviews.csv"
    pd.DataFrame(sample_rows).to_csv(path, index=False)

    data = analyze_review_file(str(path))

    assert data.total_reviews == 4
    assert data.rating_distribution == {1: 1, 2: 0, 3: 1, 4: 1, 5: 1}
    assert data.response_rate == 25


def test_process_xlsx_with_serial_dates(tmp_path):
    path = tmp_path / "appstore.xlsx"
    pd.DataFrame([
        {"Star Rating": 5, "Review Text": "Love it!", "App Store Date": 45000},
        {"Star Rating": 2, "Review Text": "Login is broken", "App Store Date": 45001},
    ]).to_excel(path, index=False)

    data = ReviewProcessor().process_file(str(path))

    assert data.total_reviews == 2
    assert [p.date for p in data.time_series] == ["2023-03-15", "2023-03-16"]
    assert data.platform_distribution == {"iOS": 2}
    assert data.category_distribution == {"General": 1, "Bug Report": 1}


def test_header_whitespace_stripped_and_nan_cells_become_none(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text(" Rating ,Body\n5,\n", encoding="utf-8")

    rows = read_review_rows(str(path))

    assert rows == [{"Rating": 5, "Body": None}]


def test_headers_only_file_yields_empty_snapshot(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text("Rating,Body\n", encoding="utf-8")

    data = analyze_review_file(str(path))

    assert data.total_reviews == 0
    assert data.to_dict()["summary"]["lastUpdated"] == ""


def test_sheet_names(tmp_path):
    path = tmp_path / "multi.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame([{"Rating": 5}]).to_excel(writer, sheet_name="iOS", index=False)
        pd.DataFrame([{"Rating": 1}]).to_excel(writer, sheet_name="Android", index=False)

    parser = ExcelParser()
    assert parser.get_sheet_names(str(path)) == ["iOS", "Android"]
    assert parser.parse(str(path), sheet_name="Android") == [{"Rating": 1}]
    assert parser.detected_columns == ["Rating"]


def test_unsupported_extension(tmp_path):
    path = tmp_path / "reviews.txt"
    path.write_text("Rating\n5\n", encoding="utf-8")

    with pytest.raises(ReviewFileError, match="Unsupported file format"):
        read_review_rows(str(path))


def test_missing_file():
    with pytest.raises(ReviewFileError, match="File not found"):
        read_review_rows("/nonexistent/reviews.xlsx")


def test_corrupt_upload():
    with pytest.raises(ReviewFileError):
        ReviewProcessor().process_upload(b"definitely not a workbook", "reviews.xlsx")


def test_empty_upload():
    with pytest.raises(ReviewFileError, match="empty"):
        ExcelParser().parse_bytes(b"", "reviews.csv")


def test_empty_csv_file(tmp_path):
    path = tmp_path / "reviews.csv"
    path.write_text("", encoding="utf-8")

    with pytest.raises(ReviewFileError):
        read_review_rows(str(path))


def test_convenience_helpers():
    rows = read_review_rows_from_bytes(b"Rating,Body\n2,Login is broken\n", "reviews.csv")
    reviews = process_review_rows(rows)

    assert len(reviews) == 1
    assert reviews[0].rating == 2
    assert reviews[0].category == Category.BUG_REPORT
