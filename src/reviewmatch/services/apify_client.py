"""Apify client for the Google Maps reviews scraper actor."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.config import Settings, settings as default_settings
from ..core.constants import ScrapeConstants
from ..core.exceptions import ScrapeProviderError, UpstreamParseError

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class JobState:
    """Snapshot of a scrape run."""
    status: JobStatus
    raw_status: str
    dataset_id: Optional[str] = None


class _TransientHTTPError(Exception):
    """5xx or 429 from Apify; worth retrying."""


def map_run_status(raw_status: Optional[str]) -> JobStatus:
    """Map an Apify run status onto the provider-neutral job status."""
    status = (raw_status or "").upper()
    if status == ScrapeConstants.STATUS_SUCCEEDED:
        return JobStatus.SUCCEEDED
    if status in ScrapeConstants.STATUS_FAILED:
        return JobStatus.FAILED
    if status in ScrapeConstants.STATUS_ABORTED:
        return JobStatus.ABORTED
    return JobStatus.PENDING


class ApifyClient:
    """Thin wrapper over the Apify REST API (runs, run status, dataset items)."""

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or default_settings
        self.token = self.settings.require_apify_token()
        self.base_url = self.settings.apify_base_url.rstrip("/")
        self.actor_id = self.settings.apify_actor_id
        self.session = session or requests.Session()

    def build_run_input(self, url: str) -> Dict[str, Any]:
        """Actor input for a single place URL."""
        return {
            "startUrls": [{"url": url}],
            "maxReviews": self.settings.scrape_max_reviews,
            "language": self.settings.scrape_language,
            "reviewsSort": self.settings.scrape_reviews_sort,
            "scrapeReviewerName": True,
            "scrapeReviewerUrl": False,
            "scrapeResponseFromOwner": False,
        }

    def create_job(self, url: str) -> str:
        """Start an actor run for the URL and return its run id."""
        payload = self._request("POST", f"/acts/{self.actor_id}/runs", json=self.build_run_input(url))
        run_id = (payload.get("data") or {}).get("id") if isinstance(payload, dict) else None
        if not run_id:
            raise UpstreamParseError("Apify did not return a run id")
        logger.info(f"Started Apify run {run_id} for URL: {url}")
        return run_id

    def get_job_status(self, run_id: str) -> JobState:
        """Fetch the current status of a run."""
        payload = self._request("GET", f"/actor-runs/{run_id}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise UpstreamParseError(f"Apify returned a malformed status for run {run_id}")

        raw_status = str(data.get("status") or "")
        state = JobState(
            status=map_run_status(raw_status),
            raw_status=raw_status,
            dataset_id=data.get("defaultDatasetId"),
        )
        if state.status is JobStatus.SUCCEEDED and not state.dataset_id:
            raise UpstreamParseError(f"Apify run {run_id} succeeded without a dataset")
        return state

    def get_dataset(self, dataset_id: str) -> List[Any]:
        """Download every item of a dataset."""
        items = self._request("GET", f"/datasets/{dataset_id}/items")
        if not isinstance(items, list):
            raise UpstreamParseError(f"Apify dataset {dataset_id} is not a list")
        return items

    def _request(self, method: str, path: str, **kwargs) -> Any:
        retryer = Retrying(
            stop=stop_after_attempt(max(1, self.settings.max_retries)),
            wait=wait_exponential(multiplier=self.settings.retry_delay, max=self.settings.retry_backoff * 10),
            retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout, _TransientHTTPError)),
            reraise=True,
        )
        try:
            return retryer(self._send, method, path, **kwargs)
        except (requests.RequestException, _TransientHTTPError) as exc:
            logger.error(f"Apify {method} {path} failed: {exc}")
            raise ScrapeProviderError(f"Apify request failed: {exc}") from exc

    def _send(self, method: str, path: str, **kwargs) -> Any:
        response = self.session.request(
            method,
            f"{self.base_url}{path}",
            params={"token": self.token},
            timeout=self.settings.request_timeout,
            **kwargs,
        )
        if response.status_code == 429 or response.status_code >= 500:
            logger.warning(f"Apify {method} {path} returned {response.status_code}, retrying")
            raise _TransientHTTPError(f"status {response.status_code}")
        if response.status_code >= 400:
            raise ScrapeProviderError(
                f"Apify {method} {path} failed with status {response.status_code}: {response.text[:200]}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamParseError(f"Apify returned invalid JSON for {path}") from exc
