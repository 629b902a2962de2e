"""
Excel Parser - Universal Review Export Import
==============================================

Reads an App Store / Google Play review export (.xlsx, .xls or .csv) into
a list of raw rows keyed by the header row. No schema is enforced; column
mapping happens later in the field normalizer.
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.xlsx', '.xls', '.csv')

RawRow = Dict[str, Any]


class ReviewFileError(Exception):
    """Raised when a review file cannot be read at all."""
    pass


class ExcelParser:
    """
    Spreadsheet reader for review exports.

    Usage:
        parser = ExcelParser()
        rows = parser.parse("reviews.xlsx")
        # Returns: [{"Rating": 5, "Review Text": "Love it!", ...}, ...]
    """

    def __init__(self):
        self.detected_columns: List[str] = []

    def parse(self, file_path: str, sheet_name: Optional[str] = None) -> List[RawRow]:
        """
        Parse a review file from disk.

        Args:
            file_path: Path to the file (.xlsx, .xls, .csv)
            sheet_name: Optional sheet name for Excel files (first sheet by default)

        Returns:
            List of raw rows, one dict per data row
        """
        path = Path(file_path)

        if not path.exists():
            raise ReviewFileError(f"File not found: {file_path}")

        return self._read(str(path), path.suffix.lower(), sheet_name, source=str(path))

    def parse_bytes(self, content: bytes, filename: str,
                    sheet_name: Optional[str] = None) -> List[RawRow]:
        """Parse an uploaded file that is already fully in memory."""
        if not content:
            raise ReviewFileError(f"Uploaded file is empty: {filename}")

        ext = Path(filename).suffix.lower()
        return self._read(io.BytesIO(content), ext, sheet_name, source=filename)

    def _read(self, target: Union[str, io.BytesIO], ext: str,
              sheet_name: Optional[str], source: str) -> List[RawRow]:
        if ext not in SUPPORTED_EXTENSIONS:
            raise ReviewFileError(
                f"Unsupported file format: {ext or '(none)'}. Use .xlsx, .xls, or .csv"
            )

        try:
            if ext == '.csv':
                df = pd.read_csv(target)
            else:
                df = pd.read_excel(target, sheet_name=sheet_name or 0)
        except Exception as e:
            logger.error(f"Failed to read file {source}: {e}")
            raise ReviewFileError(f"Could not read {source}: {e}") from e

        # Headers keep their case, aliases are matched exactly
        df.columns = [str(col).strip() for col in df.columns]
        self.detected_columns = list(df.columns)
        logger.info(f"Detected columns: {self.detected_columns}")

        rows = self._to_rows(df)
        logger.info(f"Read {len(rows)} rows from {source}")
        return rows

    def _to_rows(self, df: pd.DataFrame) -> List[RawRow]:
        """Convert a DataFrame to dicts, turning NaN/NaT cells into None."""
        cleaned = df.astype(object).where(pd.notna(df), None)
        return cleaned.to_dict(orient='records')

    def get_sheet_names(self, file_path: str) -> List[str]:
        """Get list of sheet names from Excel file."""
        path = Path(file_path)
        if path.suffix.lower() in ['.xlsx', '.xls']:
            xl = pd.ExcelFile(file_path)
            return xl.sheet_names
        return []


def read_review_rows(file_path: str, sheet_name: Optional[str] = None) -> List[RawRow]:
    """Convenience function to read a review file from disk."""
    return ExcelParser().parse(file_path, sheet_name)


def read_review_rows_from_bytes(content: bytes, filename: str) -> List[RawRow]:
    """Convenience function to read an uploaded review file."""
    return ExcelParser().parse_bytes(content, filename)
