"""
Review Report Runner
====================

Parses one review export and prints the dashboard numbers to the console.

    python analyze_reviews.py reviews.xlsx [sheet name]
"""

import sys
import logging

from review_dashboard.domain.models import RATING_BUCKETS
from review_dashboard.infrastructure.importer import ReviewFileError, analyze_review_file

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_report(file_path: str, sheet_name: str = None) -> int:
    """Print the summary for one file. Returns a process exit code."""
    try:
        data = analyze_review_file(file_path, sheet_name)
    except ReviewFileError as e:
        logger.error(f"Please provide a valid Excel file: {e}")
        return 1

    print("\n" + "=" * 60)
    print(f"   Review Report - {file_path}")
    print("=" * 60 + "\n")

    print(f"Total reviews:  {data.total_reviews}")
    print(f"Average rating: {data.avg_rating}")
    print(f"Response rate:  {data.response_rate}%\n")

    print("Ratings:")
    for bucket in reversed(RATING_BUCKETS):
        print(f"  {bucket} stars: {data.rating_distribution[bucket]}")

    print("\nSentiment:")
    for label, count in data.sentiment_distribution.items():
        print(f"  {label}: {count}")

    print("\nCategories:")
    for label, count in data.category_distribution.items():
        print(f"  {label}: {count}")

    print("\nPlatforms:")
    for label, count in data.platform_distribution.items():
        print(f"  {label}: {count}")

    if data.top_keywords:
        print("\nTop keywords: " + ", ".join(
            f"{k['word']} ({k['count']})" for k in data.top_keywords[:10]
        ))

    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python analyze_reviews.py <file.xlsx|file.csv> [sheet name]")
        sys.exit(2)
    sys.exit(run_report(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
