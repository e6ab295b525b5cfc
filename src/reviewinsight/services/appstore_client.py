"""App Store review collection service for ReviewInsight."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import settings
from ..core.constants import AppStoreConstants
from ..core.exceptions import FetchError
from ..core.models import AppMetadata, Review, utcnow

logger = logging.getLogger(__name__)


def _label(node: Any) -> str:
    """Text of an RSS-JSON node ({"label": "..."})."""
    if isinstance(node, dict):
        value = node.get("label", "")
        return value if isinstance(value, str) else ""
    return ""


def _parse_datetime(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable review timestamp: {value}")
        return None


def parse_review_entry(entry: Dict[str, Any], fetched_at: Optional[datetime] = None) -> Optional[Review]:
    """Convert one feed entry into a Review; entries without a rating are not reviews."""
    rating_label = _label(entry.get("im:rating"))
    if not rating_label:
        return None
    try:
        rating = int(rating_label)
    except ValueError:
        rating = None
    author = entry.get("author") or {}
    return Review(
        id=_label(entry.get("id")),
        title=_label(entry.get("title")),
        content=_label(entry.get("content")),
        rating=rating,
        author=_label(author.get("name")) if isinstance(author, dict) else "",
        version=_label(entry.get("im:version")),
        updated=_parse_datetime(_label(entry.get("updated"))),
        fetched_at=fetched_at or utcnow(),
    )


class AppStoreService:
    """Fetches customer reviews and app metadata from the public App Store feeds."""

    def __init__(self, country: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.country = country or settings.appstore_country
        self.timeout = timeout or settings.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": AppStoreConstants.USER_AGENT})

    @retry(
        stop=stop_after_attempt(settings.max_retries),
        wait=wait_exponential(multiplier=settings.retry_delay, max=settings.retry_backoff * 10),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def _feed_page(self, app_id: str, page: int) -> List[Dict[str, Any]]:
        url = AppStoreConstants.REVIEWS_URL.format(country=self.country, page=page, app_id=app_id)
        logger.info(f"Fetching reviews from: {url}")
        data = self._get_json(url)
        entries = (data.get("feed") or {}).get("entry") or []
        if isinstance(entries, dict):
            entries = [entries]
        return entries

    def fetch_reviews(self, app_id: str, limit: int = 50) -> List[Review]:
        """Most recent reviews for an app, newest first, at most `limit`."""
        fetched_at = utcnow()
        reviews: List[Review] = []
        try:
            for page in range(1, AppStoreConstants.MAX_PAGES + 1):
                try:
                    entries = self._feed_page(app_id, page)
                except requests.HTTPError as e:
                    if not reviews:
                        raise
                    # later pages are not always served; keep what we have
                    logger.warning(f"Stopping at page {page}: {e}")
                    break
                page_reviews = [r for r in (parse_review_entry(e, fetched_at) for e in entries) if r is not None]
                if not page_reviews:
                    break
                reviews.extend(page_reviews)
                if len(reviews) >= limit:
                    break
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching reviews: {e}")
            raise FetchError(f"Failed to fetch reviews: {e}") from e

        reviews = reviews[:limit]
        logger.info(f"Successfully fetched {len(reviews)} reviews for app {app_id}")
        return reviews

    def get_app_info(self, app_id: str) -> AppMetadata:
        try:
            url = AppStoreConstants.LOOKUP_URL.format(country=self.country)
            data = self._get_json(url, params={"id": app_id})
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error fetching app info: {e}")
            raise FetchError(f"Failed to fetch app info: {e}") from e

        results = data.get("results") or []
        if not results:
            raise FetchError("Failed to fetch app info: App not found")
        app = results[0]
        return AppMetadata(
            id=str(app.get("trackId", app_id)),
            name=app.get("trackName", ""),
            bundle_id=app.get("bundleId", ""),
            version=app.get("version", ""),
            description=app.get("description", ""),
            average_user_rating=app.get("averageUserRating"),
            user_rating_count=app.get("userRatingCount"),
            genres=list(app.get("genres") or []),
            release_date=app.get("releaseDate"),
            current_version_release_date=app.get("currentVersionReleaseDate"),
        )

    def get_sample_app_ids(self) -> List[str]:
        return list(AppStoreConstants.SAMPLE_APP_IDS)
