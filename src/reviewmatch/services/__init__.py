"""Services for reviewmatch."""

from .apify_client import ApifyClient
from .aspect_generator import AspectGenerator
from .aspect_scoring import AspectScoringEngine
from .llm import LLMServiceFactory
from .location_resolver import LocationResolver
from .scrape_orchestrator import ReviewFetcher

__all__ = [
    "ApifyClient",
    "AspectGenerator",
    "AspectScoringEngine",
    "LLMServiceFactory",
    "LocationResolver",
    "ReviewFetcher",
]
