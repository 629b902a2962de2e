"""
Apple Import Client - App Store Connect Reviews via Backend Proxy
==================================================================

App Store Connect needs a signed JWT, so review import goes through a
backend service that holds (or receives) the credentials. This client
posts the multipart form the backend expects and hands the returned rows
to the normal review pipeline.

Backend contract:
    GET  <base>/health           -> {"status": "ok"}
    POST <base>/apple-reviews    multipart: appId, issuerId, privateKey
                                 -> {success, reviews[], fromCache, sources}
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from ..config import get_settings
from ..config.settings import AppleImportSettings

logger = logging.getLogger(__name__)

DEFAULT_TERRITORY = "U.S."
RESPONDED_PLACEHOLDER = (
    "Thank you for your feedback! We appreciate your input and are working to improve the app."
)


class AppleImportError(Exception):
    """Raised when reviews could not be imported from the backend."""
    pass


@dataclass
class AppleImportResult:
    """What the backend returned for one import."""
    reviews: List[Dict[str, Any]]
    from_cache: bool = False
    sources: Dict[str, Any] = field(default_factory=dict)


def transform_apple_reviews(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Map raw App Store Connect customerReview resources to export-style rows.

    The field normalizer reads the result like any spreadsheet export.
    """
    rows = []
    for item in items:
        attributes = item.get("attributes") or {}
        relationships = item.get("relationships") or {}

        response = ""
        if (relationships.get("response") or {}).get("data"):
            response = RESPONDED_PLACEHOLDER

        created = attributes.get("createdDate")
        date = ""
        if created:
            try:
                date = datetime.fromisoformat(created.replace("Z", "+00:00")).date().isoformat()
            except ValueError:
                logger.debug(f"Unparseable createdDate on review {item.get('id')}: {created}")

        rows.append({
            "Review ID": item.get("id"),
            "Rating": attributes.get("rating") or 0,
            "Review Title": attributes.get("title") or "",
            "Body": attributes.get("body") or "",
            "Review Text": attributes.get("body") or "",
            "Author": attributes.get("reviewerNickname") or "Anonymous",
            "Date": date,
            "App Version": attributes.get("appVersionString") or "",
            "Device Model": "iPhone",
            "Platform": "iOS",
            "OS": attributes.get("osVersion") or "",
            "Country": attributes.get("territory") or DEFAULT_TERRITORY,
            "Language": "English",
            "Developer Response": response,
        })
    return rows


class AppleImportClient:
    """
    Client for the Apple review import backend.

    USAGE:
        client = AppleImportClient()
        if client.check_health():
            result = client.import_reviews("1234567890", issuer_id, key_text)
            rows = result.reviews
    """

    def __init__(self, settings: Optional[AppleImportSettings] = None):
        self._settings = settings or get_settings().apple
        self._endpoint = self._settings.endpoint

    @property
    def health_url(self) -> str:
        return self._endpoint.replace("/apple-reviews", "/health")

    def check_health(self) -> bool:
        """True if the backend answers its health check with status ok."""
        try:
            response = requests.get(self.health_url, timeout=self._settings.health_timeout_seconds)
            body = response.json()
            available = response.ok and isinstance(body, dict) and body.get("status") == "ok"
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Apple backend not available at {self.health_url}: {e}")
            return False

        logger.info(f"Apple backend available: {available}")
        return available

    def import_reviews(self, app_id: str, issuer_id: Optional[str] = None,
                       private_key: Optional[str] = None,
                       use_server_credentials: bool = False) -> AppleImportResult:
        """
        Fetch all reviews for an app through the backend.

        Args:
            app_id: App Store Connect app id.
            issuer_id: API key issuer id (ignored with server credentials).
            private_key: .p8 key contents (ignored with server credentials).
            use_server_credentials: let the backend use its own configured key.
        """
        if not app_id:
            raise AppleImportError("App ID is required")

        form: Dict[str, tuple] = {"appId": (None, app_id)}
        if not use_server_credentials:
            if not issuer_id or not private_key:
                raise AppleImportError("Issuer ID and private key are required")
            form["issuerId"] = (None, issuer_id)
            form["privateKey"] = ("AuthKey.p8", private_key, "application/octet-stream")

        logger.info(f"Importing Apple App Store reviews for app {app_id}")

        try:
            response = requests.post(self._endpoint, files=form,
                                     timeout=self._settings.timeout_seconds)
        except requests.Timeout as e:
            raise AppleImportError("Request timed out. Please try again.") from e
        except requests.RequestException as e:
            raise AppleImportError(f"Apple import backend unavailable: {e}") from e

        if response.status_code == 400:
            raise AppleImportError(self._error_detail(response, "Invalid credentials provided"))
        if response.status_code == 401:
            raise AppleImportError("Authentication failed. Please check your Apple credentials.")

        try:
            response.raise_for_status()
            payload = response.json()
        except (requests.HTTPError, ValueError) as e:
            raise AppleImportError(f"Apple import failed: {e}") from e

        if not isinstance(payload, dict):
            raise AppleImportError("Apple import backend returned an unexpected response")

        if not payload.get("success"):
            raise AppleImportError(payload.get("error") or "Failed to fetch reviews")

        reviews = payload.get("reviews") or []
        # Older backends pass the raw App Store Connect resources through
        if reviews and "attributes" in reviews[0]:
            reviews = transform_apple_reviews(reviews)

        logger.info(
            f"Fetched {len(reviews)} reviews from Apple App Store "
            f"(from cache: {bool(payload.get('fromCache'))})"
        )
        return AppleImportResult(
            reviews=reviews,
            from_cache=bool(payload.get("fromCache")),
            sources=payload.get("sources") or {},
        )

    @staticmethod
    def _error_detail(response: requests.Response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if not isinstance(body, dict):
            return default
        return body.get("details") or body.get("error") or default
