"""Sequential scrape orchestration: start a job per URL, poll, normalize."""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from ..core.config import Settings, settings as default_settings
from ..core.models import PlaceReviews
from ..core.normalizer import FieldAliases, build_place_reviews, load_field_aliases
from .apify_client import ApifyClient, JobStatus

logger = logging.getLogger(__name__)


class PollOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class PollResult:
    outcome: PollOutcome
    attempts: int
    dataset_id: Optional[str] = None


class JobPoller:
    """Bounded polling of a single run.

    Sleeps one interval before every status check and stops at the first
    terminal status or after ``max_attempts`` checks. A timed-out run is left
    running on the provider side.
    """

    def __init__(
        self,
        client: ApifyClient,
        interval: float,
        max_attempts: int,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep

    def wait(self, run_id: str) -> PollResult:
        for attempt in range(1, self.max_attempts + 1):
            self.sleep(self.interval)
            state = self.client.get_job_status(run_id)
            logger.debug(f"Run {run_id} poll {attempt}/{self.max_attempts}: {state.raw_status}")

            if state.status is JobStatus.SUCCEEDED:
                return PollResult(PollOutcome.SUCCEEDED, attempt, state.dataset_id)
            if state.status is JobStatus.FAILED:
                return PollResult(PollOutcome.FAILED, attempt)
            if state.status is JobStatus.ABORTED:
                return PollResult(PollOutcome.ABORTED, attempt)

        return PollResult(PollOutcome.TIMED_OUT, self.max_attempts)


class ReviewFetcher:
    """Fetches and normalizes reviews for a list of place URLs, one at a time."""

    def __init__(
        self,
        client: Optional[ApifyClient] = None,
        settings: Optional[Settings] = None,
        sleep: Callable[[float], None] = time.sleep,
        aliases: Optional[FieldAliases] = None,
    ):
        self.settings = settings or default_settings
        self.client = client or ApifyClient(self.settings)
        self.poller = JobPoller(
            self.client,
            interval=self.settings.poll_interval_seconds,
            max_attempts=self.settings.poll_max_attempts,
            sleep=sleep,
        )
        self.aliases = aliases or load_field_aliases(self.settings.field_aliases_file)

    def fetch(self, urls: Sequence[str]) -> List[PlaceReviews]:
        """Scrape every non-blank URL. Failed, aborted or timed-out runs are skipped."""
        places: List[PlaceReviews] = []
        for url in urls:
            if not url.strip():
                continue
            place = self.fetch_one(url)
            if place is not None:
                places.append(place)

        total_reviews = sum(len(p.reviews) for p in places)
        logger.info(f"Total places: {len(places)}, Total reviews: {total_reviews}")
        return places

    def fetch_one(self, url: str) -> Optional[PlaceReviews]:
        """Scrape a single URL; None when the run yields nothing usable.

        Starting the job is not retried beyond the client's transient-error
        retries, and its failure propagates to the caller.
        """
        run_id = self.client.create_job(url)
        result = self.poller.wait(run_id)

        if result.outcome is PollOutcome.TIMED_OUT:
            logger.warning(f"Apify run {run_id} timed out after {result.attempts} polls for URL: {url}")
            return None
        if result.outcome is not PollOutcome.SUCCEEDED:
            logger.error(f"Apify run {result.outcome.value} for URL: {url}")
            return None

        dataset = self.client.get_dataset(result.dataset_id)
        if not dataset:
            logger.warning(f"No dataset returned for URL: {url}")
            return None

        return build_place_reviews(url, dataset, self.aliases)
