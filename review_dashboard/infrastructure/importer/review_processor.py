"""
Review Processor - the ingestion pipeline.

raw rows -> field normalizer -> sentiment labeler -> keywords/category
-> aggregator. Row-level problems are absorbed; only an unreadable file
(ReviewFileError) reaches the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ...domain.models import AggregatedData, Review
from ..analysis.aggregator import aggregate
from ..analysis.keyword_extractor import categorize_review, extract_keywords
from ..analysis.sentiment_labeler import SENTIMENT_COLUMN_ALIASES, SentimentLabeler
from .excel_parser import ExcelParser
from .field_normalizer import normalize_row

logger = logging.getLogger(__name__)


class ReviewProcessor:
    """
    Turns raw rows into fully labeled Reviews.

    Usage:
        processor = ReviewProcessor()
        reviews = processor.process_rows(rows)
        data = processor.process_file("reviews.xlsx")
    """

    def __init__(self, labeler: Optional[SentimentLabeler] = None):
        self._labeler = labeler or SentimentLabeler()

    def process_row(self, row: Dict[str, Any], index: int,
                    now: Optional[datetime] = None) -> Review:
        review = normalize_row(row, index, now=now)

        result = self._labeler.label(row, review.content or review.body, review.rating)
        review.sentiment = result.sentiment
        review.sentiment_score = result.score
        review.positive_words = result.positive_words
        review.negative_words = result.negative_words

        text = review.text
        review.keywords = extract_keywords(text)
        review.category = categorize_review(text)
        return review

    def process_rows(self, rows: List[Dict[str, Any]],
                     now: Optional[datetime] = None) -> List[Review]:
        logger.info(f"Processing review data... {len(rows)} rows")
        if rows:
            self._log_columns(rows[0])

        # One timestamp for the whole batch so undated rows agree
        now = now or datetime.now(timezone.utc)
        return [self.process_row(row, index, now=now) for index, row in enumerate(rows)]

    def process_file(self, file_path: str, sheet_name: Optional[str] = None) -> AggregatedData:
        rows = ExcelParser().parse(file_path, sheet_name)
        return aggregate(self.process_rows(rows))

    def process_upload(self, content: bytes, filename: str) -> AggregatedData:
        rows = ExcelParser().parse_bytes(content, filename)
        return aggregate(self.process_rows(rows))

    @staticmethod
    def _log_columns(first_row: Dict[str, Any]) -> None:
        columns = list(first_row.keys())
        sentiment_column = next((c for c in columns if c in SENTIMENT_COLUMN_ALIASES), None)
        if sentiment_column:
            logger.info(f"Found existing sentiment column: {sentiment_column}")
        else:
            logger.info("No sentiment column found - will perform sentiment analysis")

        device_columns = [c for c in columns if any(k in c.lower() for k in ("device", "model", "hardware"))]
        os_columns = [c for c in columns if any(k in c.lower() for k in ("os", "operating", "system"))]
        logger.debug(f"Device-related columns: {device_columns}")
        logger.debug(f"OS-related columns: {os_columns}")


def process_review_rows(rows: List[Dict[str, Any]]) -> List[Review]:
    """Convenience function: raw rows to labeled reviews."""
    return ReviewProcessor().process_rows(rows)


def analyze_review_file(file_path: str, sheet_name: Optional[str] = None) -> AggregatedData:
    """Convenience function: review file on disk to dashboard snapshot."""
    return ReviewProcessor().process_file(file_path, sheet_name)
