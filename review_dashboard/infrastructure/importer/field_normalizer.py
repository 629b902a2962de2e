"""
Field Normalizer - Export Columns to Canonical Reviews
=======================================================

App Store Connect, Google Play Console and third-party tools all name
their columns differently ("Rating" vs "Star Rating" vs "Score"). Every
canonical field has an ordered tuple of candidate column names in
FIELD_ALIASES; first_defined() walks it and the first usable value wins.

Nothing in here raises on a bad row: every field has a default, so a row
with no recognised columns still yields a valid (mostly empty) Review.

Platform detection is a best-effort classifier. Its precedence order is
fixed, including the overlapping iOS / Android OS-version ranges.
"""

import json
import logging
import math
import numbers
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Sequence

import pandas as pd

from ...domain.models import Platform, Review

logger = logging.getLogger(__name__)

# Canonical field -> candidate columns, highest priority first
FIELD_ALIASES: Dict[str, tuple] = {
    "rating": ("Rating", "Star Rating", "Star", "Stars", "Score",
               "App Store Rating", "User Rating"),
    "title": ("Title", "Review Title", "App Store Review Title", "Subject"),
    "content": ("Body", "Review", "Review Text", "Content", "Text",
                "App Store Review", "Review Content", "Message"),
    "body": ("Body", "Review Text"),
    "author": ("Author", "User", "User Name", "Reviewer", "Review Author", "Username"),
    "date": ("Date", "Review Date", "Submitted Date", "Created", "Timestamp",
             "App Store Date", "Review Submitted"),
    "version": ("Version", "App Version", "Application Version", "App Store Version"),
    "device": ("Device", "Device Model", "Device Type", "Device Name", "Model", "Hardware"),
    "os": ("OS", "Operating System", "OS Version", "System Version", "Os", "os", "System"),
    "response": ("Response", "Developer Response", "App Store Response", "Reply"),
    "country": ("Country", "Territory", "Region", "Location"),
    "language": ("Language", "Locale", "Review Language"),
    "app_name": ("App Name", "App", "Application", "Application Name",
                 "Product Name", "Product", "App Title"),
    "platform": ("Platform", "Store", "Source"),
}

# Consulted only after user-agent / metadata / platform inference came up empty
DEVICE_FALLBACK_ALIASES = ("User Device", "Review Device")
OS_FALLBACK_ALIASES = ("iOS Version", "Android Version")

USER_AGENT_ALIASES = ("User Agent", "UserAgent", "Browser Info")
METADATA_ALIASES = ("Metadata", "Review Metadata")
REVIEW_TEXT_ALIASES = ("Body", "Review", "Review Text")

FIELD_DEFAULTS: Dict[str, str] = {
    "author": "Anonymous",
    "country": "Unknown",
    "language": "English",
}

# Excel serial day 25569 is 1970-01-01
EXCEL_EPOCH_OFFSET_DAYS = 25569
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

IOS_ROW_MARKERS = ("app store", "ios", "iphone", "ipad", "apple", "itunes")
ANDROID_ROW_MARKERS = ("google play", "android", "google", "play store")
IOS_DEVICE_MARKERS = ("iphone", "ipad", "ipod")
ANDROID_DEVICE_MARKERS = ("samsung", "pixel", "lg", "huawei", "oneplus", "motorola")

NUMERIC_OS_VERSION = re.compile(r"^\d+\.\d+$")


def is_defined(value: Any) -> bool:
    """A cell counts as present unless it is None, NaN or an empty string."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def first_defined(row: Dict[str, Any], aliases: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first alias column that holds a usable value."""
    for column in aliases:
        value = row.get(column)
        if is_defined(value):
            return value
    return default


def as_text(value: Any) -> str:
    if not is_defined(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_rating(value: Any) -> int:
    """Integer star rating in 1..5, or 0 when missing or out of range."""
    if not is_defined(value) or isinstance(value, bool):
        return 0
    if isinstance(value, numbers.Real):
        if not math.isfinite(value):
            return 0
        rating = int(value)
    else:
        match = re.match(r"\s*(-?\d+)", str(value))
        if not match:
            return 0
        rating = int(match.group(1))
    return rating if 0 <= rating <= 5 else 0


def parse_date(value: Any, now: Optional[datetime] = None) -> datetime:
    """
    Parse a review timestamp into an aware UTC datetime.

    Numbers are Excel serial dates; anything else goes through pandas'
    generic parser. Missing or unparseable values become "now".
    """
    fallback = now or datetime.now(timezone.utc)

    if not is_defined(value) or isinstance(value, bool):
        return fallback

    if isinstance(value, numbers.Real):
        try:
            return UNIX_EPOCH + timedelta(
                milliseconds=(float(value) - EXCEL_EPOCH_OFFSET_DAYS) * 86400 * 1000
            )
        except (OverflowError, ValueError):
            return fallback

    try:
        parsed = pd.to_datetime(value, utc=True, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return fallback

    if parsed is None or pd.isna(parsed):
        return fallback
    return parsed.to_pydatetime()


def _row_text(row: Dict[str, Any]) -> str:
    return as_text(first_defined(row, REVIEW_TEXT_ALIASES, "")).lower()


def detect_platform(row: Dict[str, Any]) -> Platform:
    """
    Heuristic platform sniffing over the whole row.

    Precedence: serialized row keywords, then device model, then OS field.
    A bare "13.x" OS version satisfies the iOS check first.
    """
    row_str = json.dumps(row, default=str).lower()

    if any(marker in row_str for marker in IOS_ROW_MARKERS):
        return Platform.IOS
    if any(marker in row_str for marker in ANDROID_ROW_MARKERS):
        return Platform.ANDROID

    device_str = as_text(first_defined(row, ("Device", "Device Model"), "")).lower()
    if any(marker in device_str for marker in IOS_DEVICE_MARKERS):
        return Platform.IOS
    if any(marker in device_str for marker in ANDROID_DEVICE_MARKERS):
        return Platform.ANDROID

    os_str = as_text(first_defined(row, ("OS", "Operating System"), "")).lower()
    numeric_version = float(os_str) if NUMERIC_OS_VERSION.match(os_str) else None

    if "ios" in os_str or (numeric_version is not None and numeric_version >= 13):
        return Platform.IOS
    if "android" in os_str or (numeric_version is not None and 10 <= numeric_version <= 15):
        return Platform.ANDROID

    return Platform.UNKNOWN


def platform_from_label(label: str) -> Optional[Platform]:
    """Fold an explicit Platform/Store/Source value onto the enum, None if unrecognised."""
    text = label.lower()
    if "ios" in text or "apple" in text or "app store" in text or "itunes" in text:
        return Platform.IOS
    if "android" in text or "google" in text or "play" in text:
        return Platform.ANDROID
    return None


def resolve_platform(row: Dict[str, Any]) -> Platform:
    explicit = as_text(first_defined(row, FIELD_ALIASES["platform"], ""))
    if explicit:
        platform = platform_from_label(explicit)
        if platform is not None:
            return platform
        logger.debug(f"Unrecognised platform label {explicit!r}, sniffing row instead")
    return detect_platform(row)


def extract_device(row: Dict[str, Any]) -> str:
    """Device model from direct columns, user agent, metadata or platform hints."""
    direct = as_text(first_defined(row, FIELD_ALIASES["device"], "")).strip()
    if direct:
        return direct

    user_agent = as_text(first_defined(row, USER_AGENT_ALIASES, ""))
    if user_agent:
        for apple_device in ("iPhone", "iPad", "iPod"):
            if apple_device in user_agent:
                return apple_device

        match = re.search(r"\((.*?)\)", user_agent)
        if match and "Android" in user_agent:
            for part in match.group(1).split(";"):
                part = part.strip()
                if part and "Android" not in part and "Build" not in part:
                    return part

    metadata = first_defined(row, METADATA_ALIASES, "")
    if isinstance(metadata, str) and metadata:
        match = re.search(r"device[:\s]+([^,;\n]+)", metadata, re.IGNORECASE)
        if match:
            return match.group(1).strip()

    platform_label = as_text(first_defined(row, ("Platform", "Store"), "")).lower()
    if "ios" in platform_label or "apple" in platform_label:
        text = _row_text(row)
        if "ipad" in text:
            return "iPad"
        if "iphone" in text:
            return "iPhone"
        return "iOS Device"

    if "android" in platform_label or "google" in platform_label:
        return "Android Device"

    return as_text(first_defined(row, DEVICE_FALLBACK_ALIASES, ""))


def extract_os(row: Dict[str, Any]) -> str:
    """OS name/version from direct columns, user agent, metadata or platform hints."""
    direct = as_text(first_defined(row, FIELD_ALIASES["os"], "")).strip()
    if direct:
        return direct

    user_agent = as_text(first_defined(row, USER_AGENT_ALIASES, ""))
    if user_agent:
        ios_match = re.search(r"OS (\d+_\d+(?:_\d+)?)", user_agent)
        if ios_match:
            return "iOS " + ios_match.group(1).replace("_", ".")

        android_match = re.search(r"Android\s+(\d+\.?\d*)", user_agent)
        if android_match:
            return "Android " + android_match.group(1)

    metadata = first_defined(row, METADATA_ALIASES, "")
    if isinstance(metadata, str) and metadata:
        os_match = re.search(r"os[:\s]+([^,;\n]+)", metadata, re.IGNORECASE)
        if os_match:
            return os_match.group(1).strip()

        version_match = re.search(r"version[:\s]+([^,;\n]+)", metadata, re.IGNORECASE)
        if version_match and "." not in version_match.group(1):
            return version_match.group(1).strip()

    explicit = as_text(first_defined(row, ("Platform", "Store"), ""))
    platform = explicit if explicit else detect_platform(row).value
    device = extract_device(row)

    if platform == Platform.IOS.value or "iPhone" in device or "iPad" in device:
        match = re.search(r"ios\s*(\d+(?:\.\d+)?)", _row_text(row))
        return f"iOS {match.group(1)}" if match else "iOS"

    if platform == Platform.ANDROID.value or "Android" in device:
        match = re.search(r"android\s*(\d+(?:\.\d+)?)", _row_text(row))
        return f"Android {match.group(1)}" if match else "Android"

    return as_text(first_defined(row, OS_FALLBACK_ALIASES, ""))


def _field(row: Dict[str, Any], name: str) -> str:
    return as_text(first_defined(row, FIELD_ALIASES[name], FIELD_DEFAULTS.get(name, "")))


def normalize_row(row: Dict[str, Any], index: int, now: Optional[datetime] = None) -> Review:
    """
    Map one raw spreadsheet row onto a Review.

    Sentiment, keywords and category keep their neutral defaults here;
    the review processor fills them in.
    """
    return Review(
        id=index,
        rating=parse_rating(first_defined(row, FIELD_ALIASES["rating"])),
        title=_field(row, "title"),
        content=_field(row, "content"),
        body=_field(row, "body"),
        author=_field(row, "author"),
        date=parse_date(first_defined(row, FIELD_ALIASES["date"]), now=now),
        version=_field(row, "version"),
        device=extract_device(row),
        os=extract_os(row),
        platform=resolve_platform(row),
        response=_field(row, "response"),
        country=_field(row, "country"),
        language=_field(row, "language"),
        app_name=_field(row, "app_name"),
        raw=dict(row),
    )
