"""Tests for caller-facing operations."""

import json

import pytest

from conftest import FakeLLM, make_settings
from reviewmatch.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    InternalError,
    ScrapeProviderError,
    ValidationError,
)
from reviewmatch.core.models import PlaceReviews
from reviewmatch.services.aspect_generator import AspectGenerator
from reviewmatch.services.aspect_scoring import AspectScoringEngine
from reviewmatch.services.location_resolver import LocationResolver
from reviewmatch.services.operations import (
    CallerContext,
    analyze_reviews,
    fetch_reviews,
    generate_aspects,
    resolve_locations,
)

CALLER = CallerContext(uid="user-1")
ANONYMOUS = CallerContext()


class StubFetcher:
    def __init__(self, places=None, error=None):
        self.places = places or []
        self.error = error
        self.urls = None

    def fetch(self, urls):
        self.urls = urls
        if self.error:
            raise self.error
        return self.places


def _place_dict(name, text="Nice coffee"):
    return {
        "url": f"https://maps.example/{name}",
        "placeName": name,
        "totalScore": 4.5,
        "reviewsCount": 3,
        "reviews": [{"text": text, "rating": 5, "reviewer": "Ann", "date": "2024-06-01"}],
    }


def test_local_context_is_authenticated():
    assert CallerContext.local().authenticated
    assert not ANONYMOUS.authenticated


class TestFetchReviews:
    """fetch_reviews validation and wrapping."""

    def setup_method(self):
        self.settings = make_settings()

    def test_auth_is_checked_before_validation(self):
        with pytest.raises(AuthorizationError) as exc_info:
            fetch_reviews(ANONYMOUS, [], fetcher=StubFetcher(), settings=self.settings)
        assert exc_info.value.kind == "unauthenticated"

    @pytest.mark.parametrize("urls", [None, [], "https://maps.example/a"])
    def test_urls_array_is_required(self, urls):
        with pytest.raises(ValidationError) as exc_info:
            fetch_reviews(CALLER, urls, fetcher=StubFetcher(), settings=self.settings)
        assert exc_info.value.detail == "URLs array is required"
        assert exc_info.value.kind == "invalid-argument"

    def test_too_many_urls(self):
        fetcher = StubFetcher()
        urls = [f"https://maps.example/{i}" for i in range(11)]
        with pytest.raises(ValidationError) as exc_info:
            fetch_reviews(CALLER, urls, fetcher=fetcher, settings=self.settings)
        assert exc_info.value.detail == "Maximum 10 URLs allowed"
        assert fetcher.urls is None

    def test_ten_urls_are_accepted(self):
        fetcher = StubFetcher()
        urls = [f"https://maps.example/{i}" for i in range(10)]
        assert fetch_reviews(CALLER, urls, fetcher=fetcher, settings=self.settings) == {"reviews": []}
        assert fetcher.urls == urls

    def test_missing_token_is_a_precondition_failure(self):
        with pytest.raises(ConfigurationError):
            fetch_reviews(CALLER, ["u"], settings=make_settings(apify_api_token=""))

    def test_unreadable_alias_file_is_a_precondition_failure(self, tmp_path):
        settings = make_settings(field_aliases_file=str(tmp_path / "missing.yaml"))
        with pytest.raises(ConfigurationError) as exc_info:
            fetch_reviews(CALLER, ["u"], settings=settings)
        assert exc_info.value.to_dict()["code"] == "failed-precondition"

    def test_returns_serialized_places(self):
        place = PlaceReviews.from_dict(_place_dict("Cafe X"))
        result = fetch_reviews(CALLER, ["u"], fetcher=StubFetcher([place]), settings=self.settings)
        assert result == {"reviews": [_place_dict("Cafe X")]}

    def test_provider_failure_is_wrapped(self):
        fetcher = StubFetcher(error=ScrapeProviderError("Apify request failed: 500"))
        with pytest.raises(InternalError) as exc_info:
            fetch_reviews(CALLER, ["u"], fetcher=fetcher, settings=self.settings)
        assert exc_info.value.detail == "Failed to fetch reviews: Apify request failed: 500"
        assert exc_info.value.to_dict()["code"] == "internal"


class TestAnalyzeReviews:
    """analyze_reviews validation and ranking."""

    def setup_method(self):
        self.settings = make_settings()

    def _engine(self, *scores):
        llm = FakeLLM(*[json.dumps({"matchScore": s, "summary": f"score {s}"}) for s in scores])
        return AspectScoringEngine(llm=llm, settings=self.settings)

    def test_auth_first(self):
        with pytest.raises(AuthorizationError):
            analyze_reviews(None, [], "coffee", engine=self._engine())

    def test_reviews_are_required(self):
        with pytest.raises(ValidationError) as exc_info:
            analyze_reviews(CALLER, [], "coffee", engine=self._engine())
        assert exc_info.value.detail == "Reviews are required"

    def test_malformed_place_is_invalid(self):
        with pytest.raises(ValidationError):
            analyze_reviews(CALLER, [{"placeName": "x"}], "coffee", engine=self._engine())

    def test_locations_sorted_by_score(self):
        places = [_place_dict("a"), _place_dict("b"), _place_dict("c")]
        result = analyze_reviews(CALLER, places, "coffee", engine=self._engine(30, 80, 55))
        assert [loc["placeName"] for loc in result["locations"]] == ["b", "c", "a"]
        assert [loc["matchScore"] for loc in result["locations"]] == [80, 55, 30]
        assert len(result["locations"][0]["monthlyReviews"]) == 12

    def test_model_failure_is_wrapped(self):
        engine = AspectScoringEngine(llm=FakeLLM("not json"), settings=self.settings)
        with pytest.raises(InternalError) as exc_info:
            analyze_reviews(CALLER, [_place_dict("a")], "coffee", engine=engine)
        assert exc_info.value.detail.startswith("Failed to analyze reviews: ")

    def test_unexpected_errors_are_wrapped(self):
        engine = AspectScoringEngine(llm=FakeLLM(RuntimeError("socket closed")), settings=self.settings)
        with pytest.raises(InternalError) as exc_info:
            analyze_reviews(CALLER, [_place_dict("a")], "coffee", engine=engine)
        assert exc_info.value.detail == "Failed to analyze reviews: socket closed"


class TestGenerateAspects:
    """generate_aspects."""

    def test_location_type_is_required(self):
        with pytest.raises(ValidationError) as exc_info:
            generate_aspects(CALLER, "  ", settings=make_settings())
        assert exc_info.value.detail == "Location type is required"

    def test_auth_first(self):
        with pytest.raises(AuthorizationError):
            generate_aspects(ANONYMOUS, "")

    def test_returns_suggestions(self):
        llm = FakeLLM(json.dumps({"positiveAspects": ["quiet"], "negativeAspects": ["noisy"]}))
        generator = AspectGenerator(llm=llm, settings=make_settings())
        assert generate_aspects(CALLER, "library", generator=generator) == {
            "positiveAspects": ["quiet"],
            "negativeAspects": ["noisy"],
        }


class TestResolveLocations:
    """resolve_locations."""

    def test_query_is_required(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_locations(CALLER, "", settings=make_settings())
        assert exc_info.value.detail == "Query is required"

    def test_missing_key_is_a_precondition_failure(self):
        with pytest.raises(ConfigurationError):
            resolve_locations(CALLER, "cafes", settings=make_settings(groq_api_key="", openai_api_key=""))

    def test_returns_locations(self):
        llm = FakeLLM(json.dumps({
            "query": "cafes",
            "locations": [{"name": "Cafe X", "address": "1 Main St", "confidence_score": 0.9}],
        }))
        resolver = LocationResolver(llm=llm, settings=make_settings())
        result = resolve_locations(CALLER, "cafes", resolver=resolver)
        assert result["query"] == "cafes"
        assert result["locations"][0]["name"] == "Cafe X"
        assert result["locations"][0]["mapsUrl"].startswith("https://www.google.com/maps/search/?api=1&query=")
