"""Tests for sequential scrape orchestration."""

import pytest

from conftest import make_settings
from reviewmatch.core.exceptions import ScrapeProviderError
from reviewmatch.services.apify_client import JobState, map_run_status
from reviewmatch.services.scrape_orchestrator import JobPoller, PollOutcome, ReviewFetcher

CAFE_X_DATASET = [
    {"title": "Cafe X", "totalScore": 4.2, "reviewsCount": 120},
    {"text": "Great espresso and friendly baristas", "stars": 5, "name": "Ann",
     "publishedAtDate": "2024-05-01T09:00:00Z"},
    {"stars": 3, "name": "Silent Sam"},
]


class FakeApifyClient:
    """Scripted provider: per-URL status sequences and datasets."""

    def __init__(self, scripts, fail_create=()):
        self.scripts = scripts
        self.fail_create = set(fail_create)
        self.created = []
        self.status_calls = {}

    def create_job(self, url):
        if url in self.fail_create:
            raise ScrapeProviderError(f"cannot start {url}")
        self.created.append(url)
        return f"run:{url}"

    def get_job_status(self, run_id):
        url = run_id.split(":", 1)[1]
        calls = self.status_calls.get(run_id, 0)
        self.status_calls[run_id] = calls + 1
        statuses = self.scripts[url]["statuses"]
        raw = statuses[min(calls, len(statuses) - 1)]
        dataset_id = f"ds:{url}" if raw == "SUCCEEDED" else None
        return JobState(status=map_run_status(raw), raw_status=raw, dataset_id=dataset_id)

    def get_dataset(self, dataset_id):
        return self.scripts[dataset_id.split(":", 1)[1]].get("dataset", [])


class TestJobPoller:
    """Bounded polling."""

    def setup_method(self):
        self.sleeps = []

    def _poller(self, client, max_attempts=5):
        return JobPoller(client, interval=2.0, max_attempts=max_attempts, sleep=self.sleeps.append)

    def test_sleeps_before_each_check(self):
        client = FakeApifyClient({"u": {"statuses": ["RUNNING", "RUNNING", "SUCCEEDED"]}})
        result = self._poller(client).wait("run:u")
        assert result.outcome is PollOutcome.SUCCEEDED
        assert result.attempts == 3
        assert result.dataset_id == "ds:u"
        assert self.sleeps == [2.0, 2.0, 2.0]

    def test_times_out_after_max_attempts(self):
        client = FakeApifyClient({"u": {"statuses": ["RUNNING"]}})
        result = self._poller(client, max_attempts=4).wait("run:u")
        assert result.outcome is PollOutcome.TIMED_OUT
        assert client.status_calls["run:u"] == 4

    @pytest.mark.parametrize("raw,outcome", [
        ("FAILED", PollOutcome.FAILED),
        ("TIMED-OUT", PollOutcome.FAILED),
        ("ABORTED", PollOutcome.ABORTED),
    ])
    def test_terminal_failures(self, raw, outcome):
        client = FakeApifyClient({"u": {"statuses": ["READY", raw]}})
        assert self._poller(client).wait("run:u").outcome is outcome


class TestReviewFetcher:
    """Per-URL skip semantics and ordering."""

    def setup_method(self):
        self.settings = make_settings()

    def _fetcher(self, client):
        return ReviewFetcher(client=client, settings=self.settings, sleep=lambda _: None)

    def test_failed_run_is_skipped_and_order_kept(self):
        client = FakeApifyClient({
            "u1": {"statuses": ["SUCCEEDED"], "dataset": [{"title": "One"}, {"text": "good", "stars": 4}]},
            "u2": {"statuses": ["RUNNING", "FAILED"]},
            "u3": {"statuses": ["SUCCEEDED"], "dataset": [{"title": "Three"}, {"text": "bad", "stars": 1}]},
        })
        places = self._fetcher(client).fetch(["u1", "u2", "u3"])
        assert [p.url for p in places] == ["u1", "u3"]
        assert [p.place_name for p in places] == ["One", "Three"]

    def test_timed_out_run_is_skipped(self):
        client = FakeApifyClient({
            "slow": {"statuses": ["RUNNING"]},
            "fast": {"statuses": ["SUCCEEDED"], "dataset": [{"text": "ok"}]},
        })
        places = self._fetcher(client).fetch(["slow", "fast"])
        assert [p.url for p in places] == ["fast"]
        assert client.status_calls["run:slow"] == self.settings.poll_max_attempts

    def test_start_failure_is_fatal(self):
        client = FakeApifyClient({"u1": {"statuses": ["SUCCEEDED"], "dataset": [{"text": "ok"}]}},
                                 fail_create={"u2"})
        with pytest.raises(ScrapeProviderError):
            self._fetcher(client).fetch(["u1", "u2"])

    def test_empty_dataset_is_omitted(self):
        client = FakeApifyClient({"u": {"statuses": ["SUCCEEDED"], "dataset": []}})
        assert self._fetcher(client).fetch(["u"]) == []

    def test_dataset_without_reviews_is_kept(self):
        client = FakeApifyClient({"u": {"statuses": ["SUCCEEDED"], "dataset": [{"title": "Quiet Bar"}]}})
        [place] = self._fetcher(client).fetch(["u"])
        assert place.place_name == "Quiet Bar"
        assert place.reviews == []

    def test_blank_urls_are_skipped(self):
        client = FakeApifyClient({"u": {"statuses": ["SUCCEEDED"], "dataset": [{"text": "ok"}]}})
        places = self._fetcher(client).fetch(["", "   ", "u"])
        assert [p.url for p in places] == ["u"]
        assert client.created == ["u"]

    def test_end_to_end_place(self):
        client = FakeApifyClient({"https://maps.example/cafe-x": {"statuses": ["SUCCEEDED"], "dataset": CAFE_X_DATASET}})
        [place] = self._fetcher(client).fetch(["https://maps.example/cafe-x"])

        assert place.to_dict() == {
            "url": "https://maps.example/cafe-x",
            "placeName": "Cafe X",
            "totalScore": 4.2,
            "reviewsCount": 120,
            "reviews": [{
                "text": "Great espresso and friendly baristas",
                "rating": 5,
                "reviewer": "Ann",
                "date": "2024-05-01T09:00:00Z",
            }],
        }
