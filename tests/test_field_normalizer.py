from datetime import datetime, timezone

from review_dashboard.domain.models import Platform
from review_dashboard.infrastructure.importer.field_normalizer import (
    FIELD_ALIASES,
    detect_platform,
    extract_device,
    extract_os,
    first_defined,
    normalize_row,
    parse_date,
    parse_rating,
    resolve_platform,
)

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def test_excel_serial_date():
    assert parse_date(45000).date().isoformat() == "2023-03-15"


def test_excel_serial_date_is_utc_midnight():
    assert parse_date(25569) == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_date_string_parsed():
    parsed = parse_date("2024-01-15T10:30:00Z", now=NOW)
    assert parsed == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def test_unparseable_date_defaults_to_now():
    assert parse_date("not a date", now=NOW) == NOW
    assert parse_date(None, now=NOW) == NOW
    assert parse_date("", now=NOW) == NOW


def test_first_defined_respects_alias_order():
    row = {"Score": 3, "Star Rating": 4}
    assert first_defined(row, FIELD_ALIASES["rating"]) == 4


def test_first_defined_skips_empty_and_nan():
    row = {"Rating": "", "Star Rating": float("nan"), "Stars": 2}
    assert first_defined(row, FIELD_ALIASES["rating"]) == 2
    assert first_defined({}, FIELD_ALIASES["rating"], "fallback") == "fallback"


def test_parse_rating_variants():
    assert parse_rating(4) == 4
    assert parse_rating(4.0) == 4
    assert parse_rating("4 stars") == 4
    assert parse_rating("five") == 0
    assert parse_rating(None) == 0
    assert parse_rating(7) == 0


def test_empty_row_gets_defaults():
    review = normalize_row({}, 0, now=NOW)

    assert review.id == 0
    assert review.rating == 0
    assert review.author == "Anonymous"
    assert review.country == "Unknown"
    assert review.language == "English"
    assert review.platform == Platform.UNKNOWN
    assert review.content == ""
    assert review.date == NOW


def test_mixed_export_columns():
    row = {"Star Rating": 5, "Review Text": "Love it!", "App Store Date": 45000}
    review = normalize_row(row, 3, now=NOW)

    assert review.id == 3
    assert review.rating == 5
    assert review.content == "Love it!"
    assert review.body == "Love it!"
    assert review.date.date().isoformat() == "2023-03-15"
    # "app store" appears in the serialized row
    assert review.platform == Platform.IOS


def test_unmapped_columns_preserved():
    review = normalize_row({"Rating": 5, "Ticket": "T-1"}, 0, now=NOW)
    assert review.raw["Ticket"] == "T-1"
    assert review.to_dict()["Ticket"] == "T-1"


def test_detect_platform_from_device_vendor():
    assert detect_platform({"Device": "Samsung Galaxy S21"}) == Platform.ANDROID


def test_detect_platform_from_row_text():
    assert detect_platform({"Device": "iPhone 14"}) == Platform.IOS
    assert detect_platform({"Note": "downloaded from google play"}) == Platform.ANDROID


def test_detect_platform_os_version_ranges():
    # 13 and above satisfies the iOS check before the Android range is tried
    assert detect_platform({"OS": "14.2"}) == Platform.IOS
    assert detect_platform({"OS": "11.0"}) == Platform.ANDROID
    assert detect_platform({"OS": "9.1"}) == Platform.UNKNOWN


def test_explicit_platform_column_wins():
    assert resolve_platform({"Platform": "Google Play", "Device": "iPhone"}) == Platform.ANDROID
    assert resolve_platform({"Store": "App Store"}) == Platform.IOS


def test_unrecognised_platform_label_falls_back_to_sniffing():
    assert resolve_platform({"Platform": "Web"}) == Platform.UNKNOWN
    assert resolve_platform({"Source": "Web", "Device": "Pixel 7"}) == Platform.ANDROID


def test_device_and_os_from_user_agent():
    row = {"User Agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X)"}
    assert extract_device(row) == "iPhone"
    assert extract_os(row) == "iOS 17.2"


def test_device_and_os_from_metadata():
    row = {"Metadata": "device: Galaxy S22, os: Android 14"}
    assert extract_device(row) == "Galaxy S22"
    assert extract_os(row) == "Android 14"


def test_device_inferred_from_platform_column():
    assert extract_device({"Platform": "iOS", "Body": "Great on my iPad"}) == "iPad"
    assert extract_device({"Platform": "Android"}) == "Android Device"


def test_os_inferred_from_review_text():
    row = {"Platform": "iOS", "Body": "Broken since iOS 17.1"}
    assert extract_os(row) == "iOS 17.1"


def test_direct_device_and_os_columns():
    row = {"Device Model": " Pixel 8 ", "OS Version": "Android 14"}
    assert extract_device(row) == "Pixel 8"
    assert extract_os(row) == "Android 14"
