from .excel_parser import (
    ExcelParser,
    ReviewFileError,
    read_review_rows,
    read_review_rows_from_bytes,
)
from .field_normalizer import FIELD_ALIASES, first_defined, normalize_row, parse_date
from .review_processor import ReviewProcessor, process_review_rows, analyze_review_file

__all__ = [
    "ExcelParser",
    "ReviewFileError",
    "read_review_rows",
    "read_review_rows_from_bytes",
    "FIELD_ALIASES",
    "first_defined",
    "normalize_row",
    "parse_date",
    "ReviewProcessor",
    "process_review_rows",
    "analyze_review_file",
]
